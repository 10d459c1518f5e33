"""
Currency text → integer cents.

THIS IS A CRITICAL FINANCIAL COMPONENT.

Accepted grammar:
    "1234"  "1234.5"  "1,234.56"  "$1,234.56"  "$ 100.50"  ".50"  "$.99"

Rejected (never silently clamped or guessed):
    "-1.00"  "-$100"  "($100.00)"  → NegativeAmountError
    "12,34.56"  "1,23"  "1.2,3"    → improper comma placement
    "1.2.3"                        → multiple decimal points
    "abc"  ""  "$"                 → malformed / empty

Arithmetic is done in Decimal and rounded half-up to the cent, so no
floating-point drift can leak into a price comparison.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal

from .exceptions import CurrencyFormatError, NegativeAmountError

_GROUPED_THOUSANDS = re.compile(r"^\d{1,3}(?:,\d{3})+$")
_PLAIN_NUMBER = re.compile(r"^\d*\.?\d*$")
_CENT = Decimal(1)


def parse_currency_to_cents(value: str) -> int:
    """Parse a currency string into non-negative integer cents.

    Args:
        value: e.g. "$1,234.56"

    Returns:
        123456

    Raises:
        NegativeAmountError: On a leading minus or a parenthesized amount.
        CurrencyFormatError: On any other malformed input.
    """
    if value is None or not value.strip():
        raise CurrencyFormatError("Invalid currency format: empty value", {"value": value})

    cleaned = value.strip()
    if cleaned.startswith("-") or "(" in cleaned:
        raise NegativeAmountError("Negative amounts are not allowed", {"value": value})

    cleaned = cleaned.removeprefix("$").strip()
    if not cleaned:
        raise CurrencyFormatError("Invalid currency format: no amount", {"value": value})
    if cleaned.startswith("-"):
        raise NegativeAmountError("Negative amounts are not allowed", {"value": value})

    if "," in cleaned:
        integer_part, _, fraction = cleaned.partition(".")
        if "," in fraction or not _GROUPED_THOUSANDS.match(integer_part):
            raise CurrencyFormatError(
                "Invalid currency format: improper comma placement", {"value": value}
            )
        cleaned = cleaned.replace(",", "")

    if cleaned.count(".") > 1:
        raise CurrencyFormatError(
            "Invalid currency format: multiple decimal points", {"value": value}
        )

    if not _PLAIN_NUMBER.match(cleaned) or cleaned == ".":
        raise CurrencyFormatError(
            "Invalid currency format: contains non-numeric characters", {"value": value}
        )

    cents = (Decimal(cleaned) * 100).quantize(_CENT, rounding=ROUND_HALF_UP)
    return int(cents)


def cents_to_dollars(cents: int) -> str:
    """12345 → "123.45" (no symbol, no grouping; parses back to the same cents)."""
    return f"{Decimal(cents) / 100:.2f}"


def format_cents(cents: int) -> str:
    """12345600 → "$123,456.00" for human-readable messages."""
    return f"${Decimal(cents) / 100:,.2f}"
