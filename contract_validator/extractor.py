"""
Dual-mode field extraction.

  ┌────────────┐
  │ PDF bytes  │
  └─────┬──────┘
        │
  ┌─────▼──────────────┐   yes   ┌──────────────────┐
  │ meaningful fields? ├────────►│ field-map table  │  mode = structured
  └─────┬──────────────┘         └──────────────────┘
        │ no
  ┌─────▼──────────────┐         ┌──────────────────┐
  │ OCR recognizer     ├────────►│ regex battery    │  mode = ocr-fallback
  └────────────────────┘         └──────────────────┘

Signature and initials fields never carry business data, so a PDF whose only
fields are signature boxes counts as unstructured. With no recognizer
supplied that is a configuration error — there is no silent fallback.
"""

from __future__ import annotations

import logging
import re
from typing import Optional

from .exceptions import OcrNotConfiguredError
from .extractor_regex import extract_with_regex
from .field_mappings import TREC20_FIELD_MAPPINGS, apply_field_mappings
from .models import (
    ExtractionMetadata,
    ExtractionMode,
    ExtractionResult,
    FinancingType,
)
from .ocr import Recognizer
from .pdf_forms import read_form_fields
from .version_detector import detect_version, detect_version_from_text

logger = logging.getLogger(__name__)

# Words that contain "sig" without being signatures.
_SIG_LOOKALIKES = re.compile(r"design|assign|consign", re.IGNORECASE)
_SIGNATURE_MARK = re.compile(r"sig|initial", re.IGNORECASE)
_MARKER_FIELD = re.compile(r"^__\w+__$")


def is_meaningful_field(name: str) -> bool:
    """False for signature/initials boxes and hidden __MARKER__ fields.

    Matching is a case-insensitive substring search, so "BUYERSIGNATURE",
    "buyer_sig" and "SellerInitials" are all excluded. "DesignatedAgent" and
    "AssignmentClause" are kept.
    """
    if _MARKER_FIELD.match(name):
        return False
    return not _SIGNATURE_MARK.search(_SIG_LOOKALIKES.sub("", name))


def extract(data: bytes, recognizer: Optional[Recognizer] = None) -> ExtractionResult:
    """Read a contract PDF into a RawContract plus extraction metadata.

    Raises:
        OcrNotConfiguredError: The PDF has no meaningful form fields and no
            recognizer was supplied.
    """
    fields = read_form_fields(data)
    meaningful = [name for name in fields if is_meaningful_field(name)]

    if meaningful:
        logger.info("Structured extraction: %d meaningful form field(s)", len(meaningful))
        raw = apply_field_mappings(fields, TREC20_FIELD_MAPPINGS)
        raw.financing_type = _known_financing_type(raw.financing_type)
        version = detect_version(data).version
        mode = ExtractionMode.STRUCTURED
    else:
        if recognizer is None:
            raise OcrNotConfiguredError(
                "OCR provider not configured: document has no fillable fields",
                {"form_fields": sorted(fields)},
            )
        logger.info("No meaningful form fields — falling back to OCR")
        text = recognizer.recognize(data).full_text
        raw = extract_with_regex(text)
        version = detect_version_from_text(text)
        mode = ExtractionMode.OCR_FALLBACK

    raw.form_version = version
    return ExtractionResult(
        raw=raw,
        meta=ExtractionMetadata(mode=mode, detected_version=version),
    )


def _known_financing_type(value: Optional[str]) -> Optional[str]:
    """Drop dropdown values that are not one of the financing enum members."""
    if not value:
        return None
    candidate = value.strip().lower()
    valid = {member.value for member in FinancingType}
    return candidate if candidate in valid else None
