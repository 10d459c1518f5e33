"""
Main review pipeline — orchestrates the full workflow.

Flow:
  ┌───────────┐
  │ PDF bytes │
  └─────┬─────┘
        │
  ┌─────▼─────┐
  │  Extract  │   ← form fields, or OCR + regex battery
  └─────┬─────┘
        │ RawContract (strings)
  ┌─────▼─────┐
  │ Normalize │   ← ISO dates, integer cents, schema check
  └─────┬─────┘
        │ Contract (typed)
  ┌─────▼─────┐     ┌──────────────┐
  │   Rules   │     │  Provisions  │   ← red flags + optional LLM
  └─────┬─────┘     └──────┬───────┘
        └────────┬─────────┘
          ┌──────▼──────┐
          │   Report    │
          └─────────────┘

Design principles:
  - Extraction failures and normalization failures STOP the pipeline with a
    typed error. Rules only ever see a fully valid Contract.
  - Rule failures never stop it: they surface as "<id>.error" issues.
  - The LLM is optional and advisory (provisions classification only).
  - The original PDF bytes are SHA-256 hashed for audit trail.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Optional

from .classifier_llm import classify_with_llm
from .config import Settings, load_settings
from .engine import Rule, run_rules
from .extractor import extract
from .models import ComplianceReport, Contract, ExtractionResult
from .normalizer import normalize
from .ocr import Recognizer
from .provisions import analyze_special_provisions
from .registry import FormsRegistry, load_registry
from .rules import trec20_rules
from .version_detector import TREC20_FORM

logger = logging.getLogger(__name__)


def extract_and_normalize(data: bytes, recognizer: Optional[Recognizer] = None) -> ExtractionResult:
    """Extraction step of the pipeline, exposed for callers that only need the raw record.

    Normalization is a separate step: call normalize(result.raw).
    """
    return extract(data, recognizer=recognizer)


class ContractReviewPipeline:
    """Orchestrates the full contract review workflow.

    Usage:
        pipeline = ContractReviewPipeline()
        report = pipeline.run(pdf_bytes)
        if not report.is_compliant:
            for issue in report.issues:
                print(issue)
    """

    def __init__(
        self,
        registry: FormsRegistry | None = None,
        recognizer: Optional[Recognizer] = None,
        form_code: str = TREC20_FORM,
        settings: Settings | None = None,
    ):
        self.settings = settings or load_settings()
        self.registry = (
            registry if registry is not None else load_registry(self.settings.forms_registry_path)
        )
        self.recognizer = recognizer
        self.form_code = form_code
        self.rules: list[Rule[Contract]] = trec20_rules(self.registry, form_code)

    def run(self, data: bytes, *, include_debug: bool = False) -> ComplianceReport:
        """Execute the full pipeline on one PDF.

        Raises:
            OcrNotConfiguredError: Scanned PDF and no recognizer configured.
            NormalizationError: Extracted values could not be normalized.
        """
        # ── Step 0: Audit hash of original input ────────────────────
        doc_hash = hashlib.sha256(data).hexdigest()

        # ── Step 1: Extract ─────────────────────────────────────────
        extraction = extract_and_normalize(data, recognizer=self.recognizer)
        logger.info("Extracted contract via %s", extraction.meta.mode.value)

        # ── Step 2: Normalize (raises on bad input) ─────────────────
        contract = normalize(extraction.raw)

        # ── Step 3: Rules ───────────────────────────────────────────
        issues = run_rules(contract, self.rules, include_debug=include_debug)
        logger.info("%d rule(s) evaluated, %d issue(s) raised", len(self.rules), len(issues))

        # ── Step 4: Special provisions ──────────────────────────────
        provisions = None
        if contract.special_provisions_text:
            assessment = classify_with_llm(contract.special_provisions_text, self.settings)
            provisions = analyze_special_provisions(contract.special_provisions_text, assessment)

        return ComplianceReport(
            document_hash=doc_hash,
            extraction=extraction.meta,
            contract=contract,
            issues=issues,
            provisions=provisions,
        )
