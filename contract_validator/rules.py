"""
TREC 20 (One to Four Family Residential Contract, Resale) rule set.

Twenty-five ordered, declarative rules. Each one is a pure function of the
validated Contract, plus the forms registry captured when the rule set is
built. Nothing here calls an LLM, touches the network, or reads the clock.

Money is integer cents throughout. Dates are datetime.date, so ordering and
"add N days" are plain date arithmetic.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Any

from .engine import Rule
from .models import Contract, FinancingType, Severity
from .money import format_cents
from .registry import FormsRegistry, get_expected_version, is_outdated

# ─── Constants ───────────────────────────────────────────────────────

DEFAULT_EXPECTED_VERSION = "20-18"
PRICE_TOLERANCE_CENTS = 100  # $1.00
PROVISIONS_MAX_CHARS = 500

_PARTIES = "TREC 20-18 ¶1 Parties"
_PROPERTY = "TREC 20-18 ¶2 Property"
_SALES_PRICE = "TREC 20-18 ¶3 Sales Price"
_FINANCING = "TREC 20-18 ¶7 Financing"
_CLOSING = "TREC 20-18 ¶9 Closing"
_PROVISIONS = "TREC 20-18 ¶11 Special Provisions"
_OPTION = "TREC 20-18 ¶23 Option"


# ─── Helpers ─────────────────────────────────────────────────────────


def _is_blank(value: str | None) -> bool:
    return value is None or value.strip() == ""


def _is_financed(c: Contract) -> bool:
    return c.financing_type is not None and c.financing_type != FinancingType.CASH


def _price_sum(c: Contract) -> tuple[int, int]:
    """(cash + financed, |sum - total|), missing portions counted as 0."""
    price = c.sales_price
    total = (price.cash_portion_cents or 0) + (price.financed_portion_cents or 0)
    return total, abs(total - price.total_cents)


def _financing_label(c: Contract) -> str:
    return getattr(c.financing_type, "value", c.financing_type)


def _option_end(c: Contract) -> date:
    return c.effective_date + timedelta(days=c.option_period_days)


def _matching_parties(c: Contract) -> list[str]:
    sellers = {name.strip().lower() for name in c.seller_names}
    matches: list[str] = []
    for name in c.buyer_names:
        key = name.strip().lower()
        if key in sellers and key not in matches:
            matches.append(key)
    return matches


# ─── Rule Builders ───────────────────────────────────────────────────


def _price_mismatch(c: Contract) -> dict[str, Any]:
    price = c.sales_price
    cash = price.cash_portion_cents or 0
    financed = price.financed_portion_cents or 0
    total, difference = _price_sum(c)
    return {
        "message": (
            f"Cash ({format_cents(cash)}) + Financed ({format_cents(financed)}) = "
            f"{format_cents(total)}, but total is {format_cents(price.total_cents)} "
            f"(difference: {format_cents(difference)})"
        ),
        "data": {
            "cash_portion_cents": cash,
            "financed_portion_cents": financed,
            "total_cents": price.total_cents,
            "sum": total,
            "difference": difference,
        },
    }


def _price_mismatch_debug(c: Contract) -> dict[str, Any]:
    total, difference = _price_sum(c)
    return {
        "cash_portion_cents": c.sales_price.cash_portion_cents,
        "financed_portion_cents": c.sales_price.financed_portion_cents,
        "total_cents": c.sales_price.total_cents,
        "calculated_sum": total,
        "difference": difference,
        "tolerance_cents": PRICE_TOLERANCE_CENTS,
    }


def _price_mismatch_fires(c: Contract) -> bool:
    price = c.sales_price
    if price.cash_portion_cents is None or price.financed_portion_cents is None:
        return False
    return _price_sum(c)[1] > PRICE_TOLERANCE_CENTS


def _option_end_late_fires(c: Contract) -> bool:
    if c.effective_date is None or c.closing_date is None or not c.option_period_days:
        return False
    return _option_end(c) >= c.closing_date


def _option_end_late(c: Contract) -> dict[str, Any]:
    end = _option_end(c)
    return {
        "message": (
            f"Option period ends on {end.isoformat()}, which is on or after "
            f"closing date {c.closing_date.isoformat()}"
        ),
        "data": {"option_end_date": end.isoformat(), "closing_date": c.closing_date.isoformat()},
    }


def _closing_weekend(c: Contract) -> dict[str, Any]:
    day_name = c.closing_date.strftime("%A")
    return {
        "message": (
            f"Closing date {c.closing_date.isoformat()} falls on a {day_name}. "
            "Consider selecting a business day."
        ),
        "data": {"closing_date": c.closing_date.isoformat(), "day_of_week": day_name},
    }


def _price_negative(c: Contract) -> bool:
    price = c.sales_price
    amounts = (
        price.total_cents,
        price.cash_portion_cents,
        price.financed_portion_cents,
        c.option_fee_cents,
    )
    return any(amount is not None and amount < 0 for amount in amounts)


def _price_parts_required(c: Contract) -> bool:
    if c.financing_type == FinancingType.CASH:
        return False
    price = c.sales_price
    return (price.cash_portion_cents is None) != (price.financed_portion_cents is None)


# ─── Rule Set ────────────────────────────────────────────────────────


def trec20_rules(registry: FormsRegistry, form_code: str = "TREC-20") -> list[Rule[Contract]]:
    """Build the ordered TREC 20 rule list against a forms registry.

    The expected version is looked up once here and baked into messages;
    an unknown form code falls back to "20-18" for message text only.
    """
    expected = get_expected_version(form_code, registry) or DEFAULT_EXPECTED_VERSION

    return [
        # 1
        Rule(
            id="trec20.version.missing",
            description="Form version is missing",
            severity=Severity.HIGH,
            cite="Form footer",
            predicate=lambda c: _is_blank(c.form_version),
            debug=lambda c: {
                "form_version": c.form_version,
                "is_empty": _is_blank(c.form_version),
            },
        ),
        # 2
        Rule(
            id="trec20.version.outdated",
            description="Outdated form version",
            severity=Severity.HIGH,
            cite="Form footer",
            predicate=lambda c: is_outdated(c.form_version, form_code, registry),
            build=lambda c: {
                "message": f"Outdated form version: {c.form_version}. Expected {expected}",
                "data": {"current_version": c.form_version, "expected_version": expected},
            },
            debug=lambda c: {
                "form_version": c.form_version,
                "expected_version": expected,
                "is_outdated": is_outdated(c.form_version, form_code, registry),
            },
        ),
        # 3
        Rule(
            id="trec20.buyer.missing",
            description="At least one buyer name is required",
            severity=Severity.CRITICAL,
            cite=_PARTIES,
            predicate=lambda c: not c.buyer_names,
            debug=lambda c: {
                "buyer_names": list(c.buyer_names or []),
                "buyer_count": len(c.buyer_names or []),
                "expected_minimum": 1,
            },
        ),
        # 4
        Rule(
            id="trec20.seller.missing",
            description="At least one seller name is required",
            severity=Severity.CRITICAL,
            cite=_PARTIES,
            predicate=lambda c: not c.seller_names,
            debug=lambda c: {
                "seller_names": list(c.seller_names or []),
                "seller_count": len(c.seller_names or []),
                "expected_minimum": 1,
            },
        ),
        # 5
        Rule(
            id="trec20.address.street.missing",
            description="Property street address is required",
            severity=Severity.CRITICAL,
            cite=_PROPERTY,
            predicate=lambda c: _is_blank(c.property_address.street),
            debug=lambda c: {
                "street": c.property_address.street,
                "is_empty": _is_blank(c.property_address.street),
            },
        ),
        # 6
        Rule(
            id="trec20.address.city.missing",
            description="Property city is required",
            severity=Severity.CRITICAL,
            cite=_PROPERTY,
            predicate=lambda c: _is_blank(c.property_address.city),
        ),
        # 7
        Rule(
            id="trec20.address.state.invalid",
            description="Property state must be 2 letters",
            severity=Severity.HIGH,
            cite=_PROPERTY,
            predicate=lambda c: len(c.property_address.state) != 2,
        ),
        # 8
        Rule(
            id="trec20.address.zip.invalid",
            description="Property ZIP code must be at least 5 digits",
            severity=Severity.MEDIUM,
            cite=_PROPERTY,
            predicate=lambda c: len(c.property_address.zip) < 5,
        ),
        # 9
        Rule(
            id="trec20.price.zero",
            description="Sales price must be greater than zero",
            severity=Severity.CRITICAL,
            cite=_SALES_PRICE,
            predicate=lambda c: c.sales_price.total_cents <= 0,
        ),
        # 10
        Rule(
            id="trec20.price.sum.mismatch",
            description="Cash plus financed amounts do not equal total price",
            severity=Severity.HIGH,
            cite=_SALES_PRICE,
            predicate=_price_mismatch_fires,
            build=_price_mismatch,
            debug=_price_mismatch_debug,
        ),
        # 11
        Rule(
            id="trec20.cash.has.financing",
            description="Cash transactions should not have financed portion",
            severity=Severity.HIGH,
            cite=_FINANCING,
            predicate=lambda c: (
                c.financing_type == FinancingType.CASH
                and (c.sales_price.financed_portion_cents or 0) > 0
            ),
        ),
        # 12
        Rule(
            id="trec20.financing.missing",
            description="Financed transactions must have financed portion",
            severity=Severity.HIGH,
            cite=_FINANCING,
            predicate=lambda c: (
                _is_financed(c) and (c.sales_price.financed_portion_cents or 0) <= 0
            ),
            build=lambda c: {
                "message": (
                    f"{_financing_label(c)} financing requires a financed portion "
                    "greater than zero"
                ),
                "data": {"financing_type": _financing_label(c)},
            },
        ),
        # 13
        Rule(
            id="trec20.dates.order",
            description="Effective date must not be after closing date",
            severity=Severity.HIGH,
            cite=_CLOSING,
            predicate=lambda c: (
                c.effective_date is not None
                and c.closing_date is not None
                and c.effective_date > c.closing_date
            ),
            build=lambda c: {
                "message": (
                    f"Effective date ({c.effective_date.isoformat()}) is after "
                    f"closing date ({c.closing_date.isoformat()})"
                ),
                "data": {
                    "effective_date": c.effective_date.isoformat(),
                    "closing_date": c.closing_date.isoformat(),
                },
            },
        ),
        # 14
        Rule(
            id="trec20.option.period.missing",
            description="Option period days required when option fee is present",
            severity=Severity.HIGH,
            cite=_OPTION,
            predicate=lambda c: (
                (c.option_fee_cents or 0) > 0 and not c.option_period_days
            ),
        ),
        # 15
        Rule(
            id="trec20.option.period.zero",
            description="Option period must be greater than zero when fee is paid",
            severity=Severity.MEDIUM,
            cite=_OPTION,
            predicate=lambda c: (
                (c.option_fee_cents or 0) > 0
                and c.option_period_days is not None
                and c.option_period_days <= 0
            ),
        ),
        # 16
        Rule(
            id="trec20.option.end.late",
            description="Option period ends after closing date",
            severity=Severity.MEDIUM,
            cite=_OPTION,
            predicate=_option_end_late_fires,
            build=_option_end_late,
        ),
        # 17
        Rule(
            id="trec20.closing.weekend",
            description="Closing date falls on a weekend",
            severity=Severity.LOW,
            cite="Business day considerations",
            predicate=lambda c: c.closing_date is not None and c.closing_date.weekday() >= 5,
            build=_closing_weekend,
        ),
        # 18
        Rule(
            id="trec20.provisions.long",
            description="Special provisions text is unusually long",
            severity=Severity.LOW,
            cite=_PROVISIONS,
            predicate=lambda c: (
                c.special_provisions_text is not None
                and len(c.special_provisions_text) > PROVISIONS_MAX_CHARS
            ),
            build=lambda c: {
                "message": (
                    f"Special provisions text is {len(c.special_provisions_text)} "
                    f"characters (recommended: under {PROVISIONS_MAX_CHARS})"
                ),
                "data": {
                    "length": len(c.special_provisions_text),
                    "recommended": PROVISIONS_MAX_CHARS,
                },
            },
        ),
        # 19
        Rule(
            id="trec20.parties.same",
            description="Buyer and seller names appear to be the same",
            severity=Severity.MEDIUM,
            cite=_PARTIES,
            predicate=lambda c: bool(_matching_parties(c)),
            build=lambda c: {
                "message": (
                    "Same party appears as both buyer and seller: "
                    + ", ".join(_matching_parties(c))
                ),
                "data": {"matching_names": _matching_parties(c)},
            },
        ),
        # 20
        Rule(
            id="trec20.price.parts.required",
            description="Both cash and financed portions should be specified",
            severity=Severity.MEDIUM,
            cite=_SALES_PRICE,
            predicate=_price_parts_required,
        ),
        # 21
        Rule(
            id="trec20.price.negative",
            description="Price amounts cannot be negative",
            severity=Severity.CRITICAL,
            cite=_SALES_PRICE,
            predicate=_price_negative,
        ),
        # 22
        Rule(
            id="trec20.closing.missing",
            description="Closing date is required",
            severity=Severity.HIGH,
            cite=_CLOSING,
            predicate=lambda c: c.closing_date is None,
        ),
        # 23
        Rule(
            id="trec20.effective.missing",
            description="Effective date is required",
            severity=Severity.MEDIUM,
            cite="TREC 20-18 Contract Date",
            predicate=lambda c: c.effective_date is None,
        ),
        # 24
        Rule(
            id="trec20.names.whitespace",
            description="Names contain only whitespace",
            severity=Severity.CRITICAL,
            cite=_PARTIES,
            predicate=lambda c: any(
                name.strip() == "" for name in [*c.buyer_names, *c.seller_names]
            ),
        ),
        # 25
        Rule(
            id="trec20.address.state.case",
            description="State abbreviation should be uppercase",
            severity=Severity.INFO,
            cite=_PROPERTY,
            predicate=lambda c: c.property_address.state != c.property_address.state.upper(),
            build=lambda c: {
                "message": (
                    f'State abbreviation "{c.property_address.state}" should be '
                    f'uppercase "{c.property_address.state.upper()}"'
                ),
                "data": {
                    "current": c.property_address.state,
                    "suggested": c.property_address.state.upper(),
                },
            },
        ),
    ]
