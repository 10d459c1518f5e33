"""
Special provisions (¶11) screening.

Free-text provisions are where contracts go sideways, so two opinions are
combined:
  - static_heuristics(): a fixed list of red-flag phrases. Pure regex.
  - an optional classifier assessment (e.g. the LLM in classifier_llm.py).

The classifier may raise the level but can never talk it below "caution"
once a red flag has matched.
"""

from __future__ import annotations

import re
from typing import Optional

from .models import ProvisionsAnalysis, ProvisionsAssessment, ProvisionsClassification

RED_FLAGS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"time is of the essence", re.IGNORECASE), "time is of the essence"),
    (
        re.compile(r"automatic(?:ally)?.*extension|extend.*automatically", re.IGNORECASE),
        "automatic extension",
    ),
    (
        re.compile(r"seller.*pay.*all closing costs", re.IGNORECASE),
        "seller pays all closing costs",
    ),
    (re.compile(r"notwithstanding.*paragraph", re.IGNORECASE), "overrides a form paragraph"),
    (re.compile(r"supersede", re.IGNORECASE), "supersedes form terms"),
    (re.compile(r"waive inspection", re.IGNORECASE), "inspection waived"),
)


def static_heuristics(text: str) -> list[str]:
    """Labels of every red flag found in the text, in RED_FLAGS order."""
    return [label for pattern, label in RED_FLAGS if pattern.search(text)]


def analyze_special_provisions(
    text: str,
    assessment: Optional[ProvisionsAssessment] = None,
) -> ProvisionsAnalysis:
    """Merge a classifier assessment (if any) with the red-flag hints."""
    hints = static_heuristics(text)
    opinion = assessment or ProvisionsAssessment()

    classification = opinion.classification
    if hints and classification.rank < ProvisionsClassification.CAUTION.rank:
        classification = ProvisionsClassification.CAUTION

    return ProvisionsAnalysis(
        classification=classification,
        reasons=[*opinion.reasons, *hints],
        summary=opinion.summary,
        hints=hints,
    )
