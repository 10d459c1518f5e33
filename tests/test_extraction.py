"""
Extraction tests: form-field mapping, OCR regex battery, version detection,
and the structured-vs-OCR mode switch.

Most mode-switch tests monkeypatch the PDF form reader; TestFillablePdf builds
real AcroForm PDFs with pypdf. The OCR path runs on a real (blank) PDF with a
canned recognizer.
"""

from __future__ import annotations

import io

import pytest
from pypdf import PdfWriter
from pypdf.generic import (
    ArrayObject,
    DictionaryObject,
    FloatObject,
    NameObject,
    TextStringObject,
)

from contract_validator import extractor, version_detector
from contract_validator.exceptions import OcrNotConfiguredError
from contract_validator.extractor import extract, is_meaningful_field
from contract_validator.extractor_regex import (
    extract_with_regex,
    named_date_to_slash,
    split_party_names,
)
from contract_validator.field_mappings import FieldMapping, apply_field_mappings
from contract_validator.models import ExtractionMode
from contract_validator.ocr import OcrResult, Recognizer, StaticTextRecognizer
from contract_validator.pdf_forms import _field_value, read_form_fields, read_page_text
from contract_validator.pipeline import extract_and_normalize
from contract_validator.version_detector import (
    detect_in_text,
    detect_version,
    detect_version_from_text,
)

# ─── Test Data ───────────────────────────────────────────────────────

OCR_TEXT = """\
TREC No. 20-18
Effective: 01/03/2025
ONE TO FOUR FAMILY RESIDENTIAL CONTRACT (RESALE)

Buyer: Jane Buyer
Seller: John Seller
Property: 123 Main St, Houston, TX 77002

Total Price: $300,000.00
Option Fee: $200.00
Option Period: 7 days
Closing Date: 02/01/2025

Special Provisions: Seller to leave fridge.

Page 1 of 12
"""


def _blank_pdf() -> bytes:
    writer = PdfWriter()
    writer.add_blank_page(width=612, height=792)
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


def _fillable_pdf(fields: dict[str, tuple[str, str | None]]) -> bytes:
    """One-page PDF whose AcroForm holds {name: (field_type, value)} widgets."""
    writer = PdfWriter()
    page = writer.add_blank_page(width=612, height=792)
    widgets = ArrayObject()
    for name, (field_type, value) in fields.items():
        widget = DictionaryObject({
            NameObject("/Type"): NameObject("/Annot"),
            NameObject("/Subtype"): NameObject("/Widget"),
            NameObject("/FT"): NameObject(field_type),
            NameObject("/T"): TextStringObject(name),
            NameObject("/Rect"): ArrayObject([FloatObject(n) for n in (50, 700, 250, 720)]),
        })
        if value is not None:
            widget[NameObject("/V")] = TextStringObject(value)
        widgets.append(writer._add_object(widget))
    page[NameObject("/Annots")] = widgets
    writer.root_object[NameObject("/AcroForm")] = DictionaryObject({
        NameObject("/Fields"): ArrayObject(widgets),
    })
    buffer = io.BytesIO()
    writer.write(buffer)
    return buffer.getvalue()


@pytest.fixture
def blank_pdf() -> bytes:
    return _blank_pdf()


@pytest.fixture
def form_fields(monkeypatch):
    """Install a fake AcroForm field map for both the extractor and the version detector."""

    def install(fields: dict[str, str]) -> None:
        monkeypatch.setattr(extractor, "read_form_fields", lambda data: dict(fields))
        monkeypatch.setattr(version_detector, "read_form_fields", lambda data: dict(fields))

    return install


# ═══════════════════════════════════════════════════════════════════════
# FIELD MAPPINGS
# ═══════════════════════════════════════════════════════════════════════


class TestFieldMappings:
    def test_full_mapping(self):
        raw = apply_field_mappings({
            "Buyer1Name": "Jane Buyer",
            "Buyer2Name": "Joe Buyer",
            "Seller1Name": "John Seller",
            "PropertyStreet": "123 Main St",
            "PropertyCity": "Houston",
            "PropertyState": "TX",
            "PropertyZip": "77002",
            "SalesPriceTotal": "300,000.00",
            "EffectiveDate": "01/03/2025",
            "OptionPeriodDays": "7",
        })
        assert raw.buyer_names == ["Jane Buyer", "Joe Buyer"]
        assert raw.seller_names == ["John Seller"]
        assert raw.property_address.city == "Houston"
        assert raw.sales_price.total == "300,000.00"
        assert raw.effective_date == "01/03/2025"
        assert raw.option_period_days == "7"

    def test_indexed_gaps_are_dropped(self):
        raw = apply_field_mappings({"Buyer1Name": "", "Buyer2Name": "Joe Buyer"})
        assert raw.buyer_names == ["Joe Buyer"]

    def test_empty_scalars_are_absent(self):
        raw = apply_field_mappings({"Buyer1Name": "Jane", "ClosingDate": "", "OptionFee": ""})
        assert raw.closing_date is None
        assert raw.option_fee is None

    def test_nested_slots_always_written(self):
        raw = apply_field_mappings({"Buyer1Name": "Jane"})
        assert raw.property_address.street == ""
        assert raw.sales_price.total == ""

    def test_custom_table(self):
        table = (
            FieldMapping("Purchaser", ("buyer_names",), array_index=0),
            FieldMapping("Town", ("property_address", "city")),
        )
        raw = apply_field_mappings({"Purchaser": "Ann", "Town": "Austin"}, table)
        assert raw.buyer_names == ["Ann"]
        assert raw.property_address.city == "Austin"


# ═══════════════════════════════════════════════════════════════════════
# PDF FORM READER
# ═══════════════════════════════════════════════════════════════════════


class TestPdfForms:
    def test_text_value_is_trimmed(self):
        assert _field_value({"/FT": "/Tx", "/V": "  Jane Buyer "}) == "Jane Buyer"

    def test_checkbox_values(self):
        assert _field_value({"/FT": "/Btn", "/V": "/Yes"}) == "true"
        assert _field_value({"/FT": "/Btn", "/V": "/Off"}) == "false"

    def test_signature_and_empty_values(self):
        assert _field_value({"/FT": "/Sig", "/V": "anything"}) == ""
        assert _field_value({"/FT": "/Tx"}) == ""

    def test_choice_list_takes_first(self):
        assert _field_value({"/FT": "/Ch", "/V": ["FHA", "VA"]}) == "FHA"

    def test_blank_pdf_has_no_fields(self, blank_pdf: bytes):
        assert read_form_fields(blank_pdf) == {}

    def test_unreadable_bytes(self):
        assert read_form_fields(b"not a pdf at all") == {}
        assert read_page_text(b"not a pdf at all") == []


# ═══════════════════════════════════════════════════════════════════════
# OCR REGEX BATTERY
# ═══════════════════════════════════════════════════════════════════════


class TestRegexExtractor:
    def test_sample_text(self):
        raw = extract_with_regex(OCR_TEXT)
        assert raw.buyer_names == ["Jane Buyer"]
        assert raw.seller_names == ["John Seller"]
        assert raw.property_address.street == "123 Main St"
        assert raw.property_address.city == "Houston"
        assert raw.property_address.state == "TX"
        assert raw.property_address.zip == "77002"
        assert raw.sales_price.total == "300000.00"
        assert raw.option_fee == "200.00"
        assert raw.option_period_days == "7"
        assert raw.closing_date == "02/01/2025"
        assert raw.special_provisions_text == "Seller to leave fridge."

    def test_unmatched_fields_are_absent(self):
        raw = extract_with_regex(OCR_TEXT)
        assert raw.effective_date is None
        assert raw.earnest_money is None
        assert raw.financing_type is None
        assert raw.sales_price.cash_portion == ""

    def test_parties_paragraph(self):
        text = (
            "1. PARTIES: The parties to this contract are John Seller and Mary Seller "
            "(Seller) and Jane Buyer (Buyer)."
        )
        raw = extract_with_regex(text)
        assert raw.seller_names == ["John Seller", "Mary Seller"]
        assert raw.buyer_names == ["Jane Buyer"]

    def test_named_closing_date(self):
        raw = extract_with_regex("Closing Date: March 15, 2025")
        assert raw.closing_date == "03/15/2025"

    @pytest.mark.parametrize(
        "line, expected",
        [
            ("Financing: All cash", "cash"),
            ("Financing: Third Party FHA loan", "fha"),
            ("Financing: conventional 30-year", "conventional"),
            ("Financing: Seller financed note", "other"),
        ],
    )
    def test_financing_line(self, line: str, expected: str):
        assert extract_with_regex(line).financing_type == expected

    def test_effective_date_label(self):
        assert extract_with_regex("Effective Date: 01/03/2025").effective_date == "01/03/2025"

    def test_empty_text(self):
        raw = extract_with_regex("")
        assert raw.buyer_names == []
        assert raw.property_address.street == ""
        assert raw.closing_date is None


class TestRegexHelpers:
    def test_split_party_names(self):
        assert split_party_names("John  Smith and Mary Smith") == ["John Smith", "Mary Smith"]

    def test_named_date(self):
        assert named_date_to_slash("March 5, 2025") == "03/05/2025"
        assert named_date_to_slash("Sept 30 2025") == "09/30/2025"
        assert named_date_to_slash("Smarch 5, 2025") is None


# ═══════════════════════════════════════════════════════════════════════
# VERSION DETECTION
# ═══════════════════════════════════════════════════════════════════════


class TestVersionDetection:
    def test_footer_in_text(self):
        detection = detect_in_text("TREC No. 20-18\nEffective: 01/03/2025")
        assert detection.form == "TREC-20"
        assert detection.version == "20-18"
        assert detection.effective_date_text == "01/03/2025"

    def test_named_effective_date(self):
        detection = detect_in_text("TREC NO. 20-17 Effective Date: January 3, 2024")
        assert detection.version == "20-17"
        assert detection.effective_date_text == "January 3, 2024"

    def test_unknown_form(self):
        detection = detect_in_text("TREC No. 40-11 Third Party Financing Addendum")
        assert detection.form == "unknown"
        assert detection.version is None

    def test_marker_fields(self, form_fields, blank_pdf: bytes):
        form_fields({"__VERSION__": "TREC No. 20-17", "__EFFECTIVE__": "Effective: 12/01/2023"})
        detection = detect_version(blank_pdf)
        assert detection.version == "20-17"
        assert detection.effective_date_text == "12/01/2023"

    def test_blank_pdf_is_unknown(self, blank_pdf: bytes):
        assert detect_version(blank_pdf).form == "unknown"

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("TREC No. 20-18", "20-18"),
            ("approved by TREC 20-17 for use", "20-17"),
            ("Form 20-16", "20-16"),
            ("no footer here", None),
        ],
    )
    def test_version_from_ocr_text(self, text: str, expected):
        assert detect_version_from_text(text) == expected


# ═══════════════════════════════════════════════════════════════════════
# MODE SELECTION
# ═══════════════════════════════════════════════════════════════════════


class TestModeSelection:
    def test_meaningful_field_names(self):
        assert is_meaningful_field("Buyer1Name")
        assert is_meaningful_field("DesignatedAgent")
        assert not is_meaningful_field("Buyer1Signature")
        assert not is_meaningful_field("SELLER_INITIALS")
        assert not is_meaningful_field("buyer_sig")
        assert not is_meaningful_field("BUYERSIGNATURE")
        assert not is_meaningful_field("buyersignature")
        assert not is_meaningful_field("SELLERINITIALS")
        assert not is_meaningful_field("buyersig")
        assert is_meaningful_field("AssignmentClause")
        assert not is_meaningful_field("__VERSION__")

    def test_structured_mode(self, form_fields, blank_pdf: bytes):
        form_fields({"Buyer1Name": "AcroForm Buyer", "PropertyCity": "Houston"})
        result = extract(blank_pdf)
        assert result.meta.mode == ExtractionMode.STRUCTURED
        assert result.raw.buyer_names == ["AcroForm Buyer"]
        assert result.raw.property_address.city == "Houston"

    def test_structured_mode_reads_version_markers(self, form_fields, blank_pdf: bytes):
        form_fields({"Buyer1Name": "Jane", "__VERSION__": "TREC No. 20-18"})
        result = extract(blank_pdf)
        assert result.meta.detected_version == "20-18"
        assert result.raw.form_version == "20-18"

    def test_structured_mode_never_calls_ocr(self, form_fields, blank_pdf: bytes):
        class ExplodingRecognizer:
            def recognize(self, data: bytes) -> OcrResult:
                raise AssertionError("OCR must not run for fillable PDFs")

        form_fields({"Buyer1Name": "Jane"})
        assert extract(blank_pdf, recognizer=ExplodingRecognizer()).meta.mode == ExtractionMode.STRUCTURED

    def test_unknown_financing_value_dropped(self, form_fields, blank_pdf: bytes):
        form_fields({"Buyer1Name": "Jane", "FinancingType": "Seller Carry"})
        assert extract(blank_pdf).raw.financing_type is None

    def test_known_financing_value_lowercased(self, form_fields, blank_pdf: bytes):
        form_fields({"Buyer1Name": "Jane", "FinancingType": "FHA"})
        assert extract(blank_pdf).raw.financing_type == "fha"

    def test_no_fields_no_ocr_is_config_error(self, blank_pdf: bytes):
        with pytest.raises(OcrNotConfiguredError, match="OCR provider not configured"):
            extract(blank_pdf)

    def test_signature_only_fields_fall_through(self, form_fields, blank_pdf: bytes):
        form_fields({"Buyer1Signature": "", "SELLER_INITIALS": "JS"})
        with pytest.raises(OcrNotConfiguredError) as exc_info:
            extract(blank_pdf)
        assert exc_info.value.code == "OCR_NOT_CONFIGURED"
        assert exc_info.value.details["form_fields"] == ["Buyer1Signature", "SELLER_INITIALS"]

    def test_unseparated_signature_names_fall_through(self, form_fields, blank_pdf: bytes):
        form_fields({"BUYERSIGNATURE": "", "SELLERINITIALS": "JS"})
        with pytest.raises(OcrNotConfiguredError):
            extract(blank_pdf)

    def test_signature_only_fields_use_ocr(self, form_fields, blank_pdf: bytes):
        form_fields({"Buyer1Signature": ""})
        result = extract(blank_pdf, recognizer=StaticTextRecognizer(OCR_TEXT))
        assert result.meta.mode == ExtractionMode.OCR_FALLBACK

    def test_ocr_fallback(self, blank_pdf: bytes):
        result = extract_and_normalize(blank_pdf, recognizer=StaticTextRecognizer(OCR_TEXT))
        assert result.meta.mode == ExtractionMode.OCR_FALLBACK
        assert result.meta.detected_version == "20-18"
        assert result.raw.form_version == "20-18"
        assert result.raw.buyer_names == ["Jane Buyer"]
        assert result.raw.sales_price.total == "300000.00"

    def test_static_recognizer_satisfies_protocol(self):
        assert isinstance(StaticTextRecognizer("x"), Recognizer)


# ═══════════════════════════════════════════════════════════════════════
# FILLABLE PDFs (no monkeypatching)
# ═══════════════════════════════════════════════════════════════════════


class TestFillablePdf:
    def test_reads_text_fields(self):
        pdf = _fillable_pdf({"Buyer1Name": ("/Tx", "Jane Buyer"), "PropertyCity": ("/Tx", " Houston ")})
        assert read_form_fields(pdf) == {"Buyer1Name": "Jane Buyer", "PropertyCity": "Houston"}

    def test_structured_extraction(self):
        pdf = _fillable_pdf({
            "Buyer1Name": ("/Tx", "Jane Buyer"),
            "__VERSION__": ("/Tx", "TREC No. 20-18"),
        })
        result = extract(pdf)
        assert result.meta.mode == ExtractionMode.STRUCTURED
        assert result.meta.detected_version == "20-18"
        assert result.raw.buyer_names == ["Jane Buyer"]
        assert result.raw.form_version == "20-18"

    def test_signature_typed_fields_are_skipped(self):
        pdf = _fillable_pdf({"Buyer1Name": ("/Tx", "Jane"), "BoxA": ("/Sig", None)})
        assert read_form_fields(pdf) == {"Buyer1Name": "Jane"}

    def test_signature_typed_field_alone_needs_ocr(self):
        pdf = _fillable_pdf({"BoxA": ("/Sig", None)})
        with pytest.raises(OcrNotConfiguredError):
            extract(pdf)
        result = extract(pdf, recognizer=StaticTextRecognizer(OCR_TEXT))
        assert result.meta.mode == ExtractionMode.OCR_FALLBACK
