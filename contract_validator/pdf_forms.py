"""
Low-level PDF reading: fillable (AcroForm) field values and page text.

Both readers are forgiving — an unreadable or form-less PDF yields an empty
result, never an exception. Deciding what "empty" means is the caller's job.
"""

from __future__ import annotations

import io
import logging

from pypdf import PdfReader
from pypdf.errors import PyPdfError

logger = logging.getLogger(__name__)


def read_form_fields(data: bytes) -> dict[str, str]:
    """Return a flat {field_name: string_value} map of the PDF's form fields.

    Text fields give their text, choice fields their (first) selection,
    checkboxes "true"/"false". Fields without a value map to "".
    Signature (/Sig) fields are left out: they never carry contract data.
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        raw_fields = reader.get_fields()
    except (PyPdfError, ValueError, KeyError, TypeError) as exc:
        logger.warning("Failed to read PDF form fields: %s", exc)
        return {}

    if not raw_fields:
        return {}

    fields: dict[str, str] = {}
    for name, field in raw_fields.items():
        if field.get("/FT") == "/Sig":
            continue
        fields[name] = _field_value(field)
    return fields


def read_page_text(data: bytes) -> list[str]:
    """Return the text layer of every page (empty strings for image-only pages)."""
    try:
        reader = PdfReader(io.BytesIO(data))
        return [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError, KeyError, TypeError) as exc:
        logger.warning("Failed to read PDF page text: %s", exc)
        return []


def _field_value(field: dict) -> str:
    field_type = field.get("/FT")
    value = field.get("/V")

    if field_type == "/Sig" or value is None:
        return ""
    if field_type == "/Btn":
        return "false" if str(value) in {"/Off", "Off", ""} else "true"
    if isinstance(value, list):
        return str(value[0]).strip() if value else ""
    return str(value).strip()
