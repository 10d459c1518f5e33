"""
Pydantic models for contract data — strict typing as our first line of defense.

Two shapes of the same contract live here:
  - RawContract: strings only, produced by either extraction mode.
  - Contract:    validated, typed, immutable. The only shape rules ever see.

If data doesn't fit the typed model, it fails loudly at the boundary — not
silently inside a rule.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# ─── Severity Levels ────────────────────────────────────────────────


class Severity(str, Enum):
    """Severity of a compliance issue, most severe first."""

    CRITICAL = "critical"  # Contract cannot proceed as written
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"  # Informational observation

    @property
    def rank(self) -> int:
        """0 for critical, 4 for info."""
        return _SEVERITY_ORDER.index(self)


_SEVERITY_ORDER: tuple[Severity, ...] = (
    Severity.CRITICAL,
    Severity.HIGH,
    Severity.MEDIUM,
    Severity.LOW,
    Severity.INFO,
)


# ─── Issue ──────────────────────────────────────────────────────────


class Issue(BaseModel):
    """A single compliance issue produced by a fired rule."""

    model_config = ConfigDict(frozen=True)

    id: str  # Machine-readable, e.g. "trec20.version.outdated"
    message: str  # Human-readable explanation
    severity: Severity
    cite: Optional[str] = None  # Paragraph reference, e.g. "TREC 20-18 ¶3"
    data: Optional[dict[str, Any]] = None


def count_by_severity(issues: list[Issue]) -> dict[str, int]:
    """Count issues per severity level (every level present, possibly 0)."""
    counts = {severity.value: 0 for severity in _SEVERITY_ORDER}
    for issue in issues:
        counts[issue.severity.value] += 1
    return counts


def sort_by_severity(issues: list[Issue]) -> list[Issue]:
    """Most severe first; rule order is kept within a severity level."""
    return sorted(issues, key=lambda issue: issue.severity.rank)


# ─── Extraction Models ──────────────────────────────────────────────


class ExtractionMode(str, Enum):
    STRUCTURED = "structured"
    OCR_FALLBACK = "ocr-fallback"


class ExtractionMetadata(BaseModel):
    """How a document was read. Created once per extraction call."""

    model_config = ConfigDict(frozen=True)

    mode: ExtractionMode
    detected_version: Optional[str] = None


class VersionDetection(BaseModel):
    """Result of form-family / version sniffing. Never an error."""

    form: str = "unknown"  # "TREC-20" or "unknown"
    version: Optional[str] = None
    effective_date_text: Optional[str] = None


class RawAddress(BaseModel):
    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""


class RawSalesPrice(BaseModel):
    cash_portion: str = ""
    financed_portion: str = ""
    total: str = ""


class RawContract(BaseModel):
    """What the form reader (or the OCR regex battery) extracts.

    Optional fields are None when the source had nothing for them, and ""
    when the source had the slot but it was blank. The normalizer relies on
    that difference.
    """

    buyer_names: list[str] = Field(default_factory=list)
    seller_names: list[str] = Field(default_factory=list)
    property_address: RawAddress = Field(default_factory=RawAddress)
    sales_price: RawSalesPrice = Field(default_factory=RawSalesPrice)
    effective_date: Optional[str] = None
    closing_date: Optional[str] = None
    option_fee: Optional[str] = None
    option_period_days: Optional[str] = None
    financing_type: Optional[str] = None
    special_provisions_text: Optional[str] = None
    earnest_money: Optional[str] = None
    title_company: Optional[str] = None
    hoa_fees: Optional[str] = None
    survey: Optional[str] = None
    form_version: Optional[str] = None


class ExtractionResult(BaseModel):
    raw: RawContract
    meta: ExtractionMetadata


# ─── Typed Contract ─────────────────────────────────────────────────

class FinancingType(str, Enum):
    CASH = "cash"
    CONVENTIONAL = "conventional"
    FHA = "fha"
    VA = "va"
    OTHER = "other"


class Address(BaseModel):
    model_config = ConfigDict(frozen=True)

    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=2, max_length=2)
    zip: str = Field(min_length=5, max_length=10)


class SalesPrice(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_cents: int = Field(ge=0)
    cash_portion_cents: Optional[int] = Field(default=None, ge=0)
    financed_portion_cents: Optional[int] = Field(default=None, ge=0)


class Contract(BaseModel):
    """Fully validated TREC 20 contract. Safe for rule evaluation."""

    model_config = ConfigDict(frozen=True)

    buyer_names: list[str] = Field(min_length=1)
    seller_names: list[str] = Field(min_length=1)
    property_address: Address
    sales_price: SalesPrice
    effective_date: Optional[date] = None
    closing_date: Optional[date] = None
    option_fee_cents: Optional[int] = Field(default=None, ge=0)
    option_period_days: Optional[int] = Field(default=None, ge=0)
    financing_type: Optional[FinancingType] = None
    special_provisions_text: Optional[str] = None
    earnest_money_cents: Optional[int] = Field(default=None, ge=0)
    hoa_fees_cents: Optional[int] = Field(default=None, ge=0)
    title_company: Optional[str] = None
    survey: Optional[str] = None
    form_version: Optional[str] = None  # e.g. "20-18"


# ─── Special Provisions ─────────────────────────────────────────────


class ProvisionsClassification(str, Enum):
    """Ordered from least to most concerning."""

    NONE = "none"
    CAUTION = "caution"
    REVIEW = "review"

    @property
    def rank(self) -> int:
        return list(ProvisionsClassification).index(self)


class ProvisionsAssessment(BaseModel):
    """An external classifier's opinion of the special provisions text."""

    classification: ProvisionsClassification = ProvisionsClassification.NONE
    reasons: list[str] = Field(default_factory=list)
    summary: str = ""


class ProvisionsAnalysis(ProvisionsAssessment):
    """Classifier opinion merged with local red-flag heuristics."""

    hints: list[str] = Field(default_factory=list)


# ─── Compliance Report ──────────────────────────────────────────────


class ComplianceReport(BaseModel):
    """The final output of the review pipeline."""

    document_hash: str  # SHA-256 of the original bytes for audit trail
    extraction: ExtractionMetadata
    contract: Contract
    issues: list[Issue] = Field(default_factory=list)
    provisions: Optional[ProvisionsAnalysis] = None

    @property
    def is_compliant(self) -> bool:
        """No critical or high issue was raised."""
        return not any(issue.severity.rank <= Severity.HIGH.rank for issue in self.issues)

    @property
    def severity_counts(self) -> dict[str, int]:
        return count_by_severity(self.issues)
