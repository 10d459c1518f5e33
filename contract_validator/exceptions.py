"""
Custom exception hierarchy for contract review.

Two families of hard failure exist:
  - ConfigurationError: the pipeline cannot run as configured (e.g. a scanned
    document arrives and no OCR capability was supplied).
  - NormalizationError: extracted values cannot be coerced into a valid
    typed contract. Partial records never reach the rule engine.

Rule failures are NOT exceptions at the caller level — the engine converts
them into low-severity issues.
"""

from __future__ import annotations


class ContractCheckError(Exception):
    """Base exception for all contract review failures."""

    def __init__(self, code: str, message: str, details: dict | None = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)


# ─── Configuration ───────────────────────────────────────────────────


class ConfigurationError(ContractCheckError):
    """The pipeline is missing a collaborator it needs for this document."""


class OcrNotConfiguredError(ConfigurationError):
    """No structured fields were found and no OCR capability was supplied."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("OCR_NOT_CONFIGURED", message, details)


# ─── Normalization ───────────────────────────────────────────────────


class NormalizationError(ContractCheckError):
    """Raw extracted values could not be turned into a typed contract."""


class DateFormatError(NormalizationError):
    """Date text does not have the MM/DD/YYYY shape."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("DATE_FORMAT_INVALID", message, details)


class InvalidDateError(NormalizationError):
    """Date text has the right shape but is not a real calendar date."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("DATE_INVALID", message, details)


class CurrencyFormatError(NormalizationError):
    """Currency text is malformed (bad grouping, residue, empty...)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("CURRENCY_FORMAT_INVALID", message, details)


class NegativeAmountError(NormalizationError):
    """Currency text is negative (leading minus or parenthesized)."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("NEGATIVE_AMOUNT", message, details)


class ContractSchemaError(NormalizationError):
    """The assembled contract violates one or more structural constraints."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__("SCHEMA_VALIDATION_FAILED", message, details)
