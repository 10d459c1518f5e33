"""
Special provisions screening: red-flag heuristics, classifier merge, and the
LLM classifier's no-key / failure fallbacks.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest

from contract_validator.classifier_llm import classify_with_llm
from contract_validator.config import Settings
from contract_validator.models import ProvisionsAssessment, ProvisionsClassification
from contract_validator.provisions import analyze_special_provisions, static_heuristics


def _assessment(classification: str, *reasons: str) -> ProvisionsAssessment:
    return ProvisionsAssessment(
        classification=ProvisionsClassification(classification),
        reasons=list(reasons),
        summary=f"{classification} summary",
    )


# ═══════════════════════════════════════════════════════════════════════
# HEURISTICS
# ═══════════════════════════════════════════════════════════════════════


class TestStaticHeuristics:
    @pytest.mark.parametrize(
        "text, label",
        [
            ("Time is of the essence for all deadlines.", "time is of the essence"),
            ("The option period shall extend automatically by 5 days.", "automatic extension"),
            ("Automatic 30 day extension if appraisal is late.", "automatic extension"),
            ("Seller shall pay all closing costs.", "seller pays all closing costs"),
            ("Notwithstanding Paragraph 7, Buyer accepts the roof.", "overrides a form paragraph"),
            ("This addendum shall supersede the contract.", "supersedes form terms"),
            ("Buyer agrees to waive inspection.", "inspection waived"),
        ],
    )
    def test_each_red_flag(self, text: str, label: str):
        assert static_heuristics(text) == [label]

    def test_benign_text(self):
        assert static_heuristics("Seller to leave fridge.") == []

    def test_multiple_flags_in_order(self):
        text = "Buyer will waive inspection. Time is of the essence."
        assert static_heuristics(text) == ["time is of the essence", "inspection waived"]


# ═══════════════════════════════════════════════════════════════════════
# MERGE
# ═══════════════════════════════════════════════════════════════════════


class TestAnalyzeSpecialProvisions:
    def test_no_classifier_no_flags(self):
        analysis = analyze_special_provisions("Seller to leave fridge.")
        assert analysis.classification == ProvisionsClassification.NONE
        assert analysis.reasons == []
        assert analysis.hints == []

    def test_no_classifier_with_flag_is_caution(self):
        analysis = analyze_special_provisions("Time is of the essence.")
        assert analysis.classification == ProvisionsClassification.CAUTION
        assert analysis.hints == ["time is of the essence"]

    def test_hints_floor_a_none_classification(self):
        analysis = analyze_special_provisions(
            "Buyer agrees to waive inspection.", _assessment("none", "looks fine")
        )
        assert analysis.classification == ProvisionsClassification.CAUTION
        assert analysis.reasons == ["looks fine", "inspection waived"]
        assert analysis.summary == "none summary"

    def test_review_is_never_downgraded(self):
        analysis = analyze_special_provisions("Time is of the essence.", _assessment("review", "x"))
        assert analysis.classification == ProvisionsClassification.REVIEW

    def test_classifier_alone_can_raise(self):
        analysis = analyze_special_provisions("Seller to leave fridge.", _assessment("review", "odd"))
        assert analysis.classification == ProvisionsClassification.REVIEW
        assert analysis.hints == []


# ═══════════════════════════════════════════════════════════════════════
# LLM CLASSIFIER
# ═══════════════════════════════════════════════════════════════════════


def _fake_completion(content: str | None) -> SimpleNamespace:
    message = SimpleNamespace(content=content)
    return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class TestClassifyWithLlm:
    def test_no_api_key_returns_none(self):
        assert classify_with_llm("anything", Settings(openai_api_key=None)) is None

    def test_parses_json_response(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _fake_completion(
            '{"classification": "Review", "reasons": ["overrides ¶7"], "summary": "Edits the form."}'
        )
        with patch("openai.OpenAI", return_value=client):
            result = classify_with_llm("Notwithstanding paragraph 7...", Settings(openai_api_key="sk-test"))
        assert result is not None
        assert result.classification == ProvisionsClassification.REVIEW
        assert result.reasons == ["overrides ¶7"]
        assert result.summary == "Edits the form."

    def test_unknown_label_becomes_none(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _fake_completion('{"classification": "scary"}')
        with patch("openai.OpenAI", return_value=client):
            result = classify_with_llm("text", Settings(openai_api_key="sk-test"))
        assert result is not None
        assert result.classification == ProvisionsClassification.NONE
        assert result.reasons == []

    def test_api_failure_returns_none(self):
        client = MagicMock()
        client.chat.completions.create.side_effect = RuntimeError("rate limited")
        with patch("openai.OpenAI", return_value=client):
            assert classify_with_llm("text", Settings(openai_api_key="sk-test")) is None

    def test_empty_content_returns_none(self):
        client = MagicMock()
        client.chat.completions.create.return_value = _fake_completion(None)
        with patch("openai.OpenAI", return_value=client):
            assert classify_with_llm("text", Settings(openai_api_key="sk-test")) is None
