"""
LLM-based special provisions classifier using OpenAI structured output.

The LLM is a second reader for free-text provisions, nothing more. It never
touches the extracted fields, never decides compliance, and its opinion is
always merged with the deterministic red-flag heuristics in provisions.py.

Design:
  - JSON mode enforced (structured output, not free text)
  - Graceful fallback: no API key → returns None → heuristics only
"""

from __future__ import annotations

import json
import logging
from typing import Optional

from .config import Settings, load_settings
from .models import ProvisionsAssessment, ProvisionsClassification

logger = logging.getLogger(__name__)


# ─── System Prompt ───────────────────────────────────────────────────

SYSTEM_PROMPT = """\
You review the Special Provisions paragraph of a Texas TREC 20 residential
resale contract for a real estate broker's compliance desk.

Classify the text:
  - "none":    ordinary business details, nothing unusual
  - "caution": terms a broker should read twice (deadline pressure,
               unusual cost allocation, waived protections)
  - "review":  text that changes or overrides the promulgated form, or
               practices law (must go to a supervisor or attorney)

CRITICAL RULES:
1. Judge only the text given. Do not invent terms that are not there.
2. Each reason is one short sentence quoting or naming the clause.

Return a JSON object with these exact keys:
{
    "classification": "none" | "caution" | "review",
    "reasons": ["string", ...],
    "summary": "one sentence"
}
"""


def classify_with_llm(
    text: str, settings: Optional[Settings] = None
) -> ProvisionsAssessment | None:
    """Classify special provisions text with an LLM.

    Returns:
        ProvisionsAssessment if the LLM succeeds, None if unavailable or it fails.
        Failure is NOT an error: the red-flag heuristics still run.
    """
    settings = settings or load_settings()
    if not settings.openai_api_key:
        logger.info("No OPENAI_API_KEY set — skipping LLM provisions review (heuristics only)")
        return None

    try:
        from openai import OpenAI

        client = OpenAI(api_key=settings.openai_api_key)

        response = client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {
                    "role": "user",
                    "content": f"Classify these special provisions:\n\n{text}",
                },
            ],
            response_format={"type": "json_object"},
        )

        content = response.choices[0].message.content
        if content is None:
            logger.error("LLM returned empty content")
            return None
        data = json.loads(content)

        logger.info("LLM provisions review succeeded")
        return ProvisionsAssessment(
            classification=_safe_classification(data.get("classification")),
            reasons=[str(reason) for reason in data.get("reasons") or []],
            summary=str(data.get("summary") or ""),
        )

    except Exception as e:
        logger.error("LLM provisions review failed: %s", e)
        return None


def _safe_classification(value: object) -> ProvisionsClassification:
    """Unknown labels become "none"; the heuristics floor still applies."""
    try:
        return ProvisionsClassification(str(value).strip().lower())
    except ValueError:
        return ProvisionsClassification.NONE
