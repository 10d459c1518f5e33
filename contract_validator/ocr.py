"""
OCR capability contract and its implementations.

The extractor depends only on the Recognizer protocol:

    recognizer.recognize(pdf_bytes) -> OcrResult(full_text=...)

It does not care whether the text comes from Tesseract, a cached result
or a fixed string in a test. Timeouts and retries around recognize() are
the caller's business — the core makes exactly one call.
"""

from __future__ import annotations

import io
import logging
from typing import Protocol, runtime_checkable

import pdfplumber
import pytesseract
from pydantic import BaseModel

logger = logging.getLogger(__name__)


class OcrResult(BaseModel):
    full_text: str


@runtime_checkable
class Recognizer(Protocol):
    def recognize(self, data: bytes) -> OcrResult: ...


class StaticTextRecognizer:
    """Returns the same text for every document (fixtures, cached OCR output)."""

    def __init__(self, text: str):
        self.text = text

    def recognize(self, data: bytes) -> OcrResult:
        return OcrResult(full_text=self.text)


class TesseractRecognizer:
    """Render each PDF page to an image and run Tesseract over it.

    Requires the `tesseract` binary on PATH.
    """

    def __init__(self, language: str = "eng", resolution: int = 300):
        self.language = language
        self.resolution = resolution

    def recognize(self, data: bytes) -> OcrResult:
        pages: list[str] = []
        with pdfplumber.open(io.BytesIO(data)) as pdf:
            for number, page in enumerate(pdf.pages, start=1):
                image = page.to_image(resolution=self.resolution).original
                image = image.convert("L")  # grayscale
                text = pytesseract.image_to_string(image, lang=self.language)
                logger.info("OCR page %d: %d chars", number, len(text))
                pages.append(text.strip())
        return OcrResult(full_text="\n\n".join(pages))
