"""
RawContract (strings) → Contract (typed, validated).

Rules of the road:
  - Dates must be MM/DD/YYYY AND a real calendar date. No guessing.
  - Money goes through parse_currency_to_cents — integer cents only.
  - "Absent" and "zero" are different: optional numbers are parsed only when
    present and non-blank, and never defaulted.
  - The address object is always built, even if every part is blank, so
    the schema can name each missing part.
  - Anything the schema rejects comes back as ONE aggregated error. A
    half-valid contract never reaches the rule engine.
"""

from __future__ import annotations

import logging
import re
from datetime import date
from typing import Any, Optional, Union

from pydantic import ValidationError

from .exceptions import ContractSchemaError, DateFormatError, InvalidDateError
from .models import Contract, RawContract
from .money import parse_currency_to_cents

logger = logging.getLogger(__name__)

_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_LEADING_INT = re.compile(r"^\s*(-?\d+)")


def to_iso_date(value: str) -> str:
    """'1/3/2025' → '2025-01-03'.

    Raises:
        DateFormatError: Not MM/DD/YYYY.
        InvalidDateError: MM/DD/YYYY but not a real date (e.g. 02/30/2025).
    """
    match = _US_DATE.match(value.strip())
    if not match:
        raise DateFormatError(
            f"Invalid date format: {value}. Expected MM/DD/YYYY", {"value": value}
        )
    month, day, year = (int(part) for part in match.groups())
    try:
        return date(year, month, day).isoformat()
    except ValueError:
        raise InvalidDateError(f"Invalid date: {value}", {"value": value}) from None


def normalize(raw: Union[RawContract, dict[str, Any]]) -> Contract:
    """Convert a raw extraction into a validated Contract.

    Raises:
        NormalizationError: Any date, currency or structural problem.
    """
    if isinstance(raw, dict):
        try:
            raw = RawContract.model_validate(raw)
        except ValidationError as exc:
            raise _schema_error("Raw contract", exc) from None

    price = raw.sales_price
    sales_price: dict[str, Any] = {"total_cents": parse_currency_to_cents(price.total or "0")}
    if _present(price.cash_portion):
        sales_price["cash_portion_cents"] = parse_currency_to_cents(price.cash_portion)
    if _present(price.financed_portion):
        sales_price["financed_portion_cents"] = parse_currency_to_cents(price.financed_portion)

    address = raw.property_address
    data: dict[str, Any] = {
        "buyer_names": _clean_names(raw.buyer_names),
        "seller_names": _clean_names(raw.seller_names),
        "property_address": {
            "street": address.street.strip(),
            "city": address.city.strip(),
            "state": address.state.strip().upper(),
            "zip": address.zip.strip(),
        },
        "sales_price": sales_price,
    }

    if _present(raw.effective_date):
        data["effective_date"] = to_iso_date(raw.effective_date)
    if _present(raw.closing_date):
        data["closing_date"] = to_iso_date(raw.closing_date)
    if _present(raw.option_fee):
        data["option_fee_cents"] = parse_currency_to_cents(raw.option_fee)
    if _present(raw.earnest_money):
        data["earnest_money_cents"] = parse_currency_to_cents(raw.earnest_money)
    if _present(raw.hoa_fees):
        data["hoa_fees_cents"] = parse_currency_to_cents(raw.hoa_fees)

    option_days = _parse_days(raw.option_period_days)
    if option_days is not None:
        data["option_period_days"] = option_days

    if _present(raw.financing_type):
        data["financing_type"] = raw.financing_type.strip().lower()

    for field in ("special_provisions_text", "title_company", "survey", "form_version"):
        value = getattr(raw, field)
        if _present(value):
            data[field] = value.strip()

    try:
        return Contract.model_validate(data)
    except ValidationError as exc:
        raise _schema_error("Contract", exc) from None


# ─── Helpers ─────────────────────────────────────────────────────────


def _schema_error(what: str, exc: ValidationError) -> ContractSchemaError:
    errors = [
        {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
        for error in exc.errors()
    ]
    summary = "; ".join(f"{e['field']}: {e['message']}" for e in errors)
    logger.info("%s failed schema validation: %s", what, summary)
    return ContractSchemaError(
        f"{what} failed validation ({len(errors)} error(s)): {summary}",
        {"errors": errors},
    )


def _present(value: Optional[str]) -> bool:
    return value is not None and value.strip() != ""


def _clean_names(names: list[str]) -> list[str]:
    return [name.strip() for name in names if name.strip()]


def _parse_days(value: Optional[str]) -> Optional[int]:
    """'7' or '7 days' → 7; '0' → 0; blank or non-numeric → None.

    A leading minus is kept so the schema rejects '-3' instead of dropping it.
    """
    if not _present(value):
        return None
    match = _LEADING_INT.match(value)
    return int(match.group(1)) if match else None
