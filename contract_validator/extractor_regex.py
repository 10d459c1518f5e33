"""
Deterministic regex-based extraction from OCR text.

Used only when a contract has no meaningful fillable fields (a scan, a
flattened print). The output has exactly the same RawContract shape as the
form-field path, so the normalizer never needs to know which path ran.

Philosophy: It's better to extract nothing than to extract wrong data.
              Each field has an ORDERED list of patterns; the first match wins.
              A field with no match is left as None — never defaulted.
"""

from __future__ import annotations

import re
from typing import Optional

from .models import RawAddress, RawContract, RawSalesPrice

_AMOUNT = r"([\d,]+(?:\.\d{2})?)"
_STREET_SUFFIX = (
    r"(?:St|Street|Ln|Lane|Dr|Drive|Rd|Road|Ave|Avenue|Blvd|Boulevard|Way|Court|Ct"
    r"|Place|Pl|Circle|Cir|Trail|Tr|Parkway|Pkwy)"
)
_SLASH_DATE = r"\d{1,2}/\d{1,2}/\d{4}"
_NAMED_DATE = r"[A-Z][a-z]+\s+\d{1,2},?\s+\d{4}"

_MONTHS: dict[str, int] = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sep": 9, "sept": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

_FINANCING_KEYWORDS: tuple[tuple[str, str], ...] = (
    (r"\bcash\b", "cash"),
    (r"\bconventional\b", "conventional"),
    (r"\bFHA\b", "fha"),
    (r"\bVA\b", "va"),
)


# ─── Pattern Battery ─────────────────────────────────────────────────


def _compile(*patterns: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(p, re.IGNORECASE) for p in patterns)


_PARTIES = _compile(
    r"PARTIES:.*?are\s+([^(]+?)\s*\(Seller\)\s*and\s+([^(]+?)\s*\(Buyer\)",
)
_BUYER = _compile(
    r"Buyers?:?\s*([^(]+?)\s*\(Buyer\)",
    r"Buyers?:\s*([^\n]+)",
)
_SELLER = _compile(
    r"(?:are|Sellers?:?)\s*([^(]+?)\s*\(Seller\)",
    r"Sellers?:\s*([^\n]+)",
)
_PROPERTY = _compile(
    rf"known as\s+(\d+\s+[^,\n]+?{_STREET_SUFFIX}[^,\n]*),\s*[^,]*?,?\s*City of\s+([^,\n]+),"
    r"\s*([A-Z]{2})\s*(\d{5})",
    rf"(?:known as|Property:|address)\s*([^,\n]+?{_STREET_SUFFIX}[^,\n]*),?\s*(?:City of\s+)?"
    r"([^,\n]+),?\s*([A-Z]{2})\s*(\d{5})",
)
_TOTAL_PRICE = _compile(
    rf"Sales\s+Price\s*\(Sum\s+of\s+A\s+and\s+B\)\s*\.+\s*\$\s*{_AMOUNT}",
    rf"Total\s+(?:Sales\s+)?Price\s*[:.)]\s*\$?\s*{_AMOUNT}",
    rf"Sales\s+Price\s*[:.)]\s*\$?\s*{_AMOUNT}",
)
_CASH_PORTION = _compile(
    rf"Cash\s+portion\s+of\s+Sales\s+Price[^$\n]*\$\s*{_AMOUNT}",
    rf"Cash\s+Portion\s*:\s*\$?\s*{_AMOUNT}",
)
_FINANCED_PORTION = _compile(
    rf"Sum\s+of\s+all\s+financing[^$\n]*\$\s*{_AMOUNT}",
    rf"(?:Financed|Loan)\s+(?:Portion|Amount)\s*:\s*\$?\s*{_AMOUNT}",
)
_OPTION_FEE = _compile(
    rf"(?:Option\s+Fee|Buyer's\s+agreement\s+to\s+pay\s+Seller)\s*:?\s*\$\s*{_AMOUNT}",
)
_OPTION_PERIOD = _compile(
    r"(?:within|Option\s+Period:?)\s*(\d+)\s*days?\s+(?:after|of)",
    r"Option\s+Period:?\s*(\d+)\s*days?",
)
_CLOSING_DATE = _compile(
    rf"closing[^.]*?(?:on\s+or\s+before|will\s+be\s+on)\s*({_NAMED_DATE}|{_SLASH_DATE})",
    rf"Closing\s+Date:?\s*({_SLASH_DATE}|{_NAMED_DATE})",
)
_EFFECTIVE_DATE = _compile(
    rf"Effective\s+Date:\s*({_SLASH_DATE}|{_NAMED_DATE})",
)
_SPECIAL_PROVISIONS = _compile(r"Special\s+Provisions:\s*([^\n]+)")
_EARNEST_MONEY = _compile(rf"(?:deposit|Earnest\s+Money:?)\s*\$\s*{_AMOUNT}")
_TITLE_COMPANY = _compile(
    r"(?:with|escrow\s+agent[,:]?)\s*([A-Z][\w ]+(?:Title|Escrow)[\w ]*Company)",
)
_HOA_FEES = _compile(rf"HOA\s+(?:Fees?|Dues):\s*\$?{_AMOUNT}")
_SURVEY = _compile(r"Survey:\s*([^\n]+)")
_FINANCING = _compile(r"Financing:\s*([^\n]+)")


# ─── Public API ──────────────────────────────────────────────────────


def extract_with_regex(raw_text: str) -> RawContract:
    """Extract contract fields from OCR text using the ordered pattern battery.

    Args:
        raw_text: Full recognized text of the contract.

    Returns:
        RawContract with every field that could be deterministically extracted.
    """
    buyers, sellers = _extract_parties(raw_text)

    return RawContract(
        buyer_names=buyers,
        seller_names=sellers,
        property_address=_extract_address(raw_text),
        sales_price=RawSalesPrice(
            total=_amount(_TOTAL_PRICE, raw_text) or "",
            cash_portion=_amount(_CASH_PORTION, raw_text) or "",
            financed_portion=_amount(_FINANCED_PORTION, raw_text) or "",
        ),
        effective_date=_date(_EFFECTIVE_DATE, raw_text),
        closing_date=_date(_CLOSING_DATE, raw_text),
        option_fee=_amount(_OPTION_FEE, raw_text),
        option_period_days=_group(_OPTION_PERIOD, raw_text),
        financing_type=_extract_financing_type(raw_text),
        special_provisions_text=_group(_SPECIAL_PROVISIONS, raw_text),
        earnest_money=_amount(_EARNEST_MONEY, raw_text),
        title_company=_group(_TITLE_COMPANY, raw_text),
        hoa_fees=_amount(_HOA_FEES, raw_text),
        survey=_group(_SURVEY, raw_text),
    )


def split_party_names(text: str) -> list[str]:
    """'John Smith and Mary Smith' → ['John Smith', 'Mary Smith']."""
    text = re.sub(r"\s+", " ", text.strip())
    return [name.strip() for name in re.split(r"\s+and\s+", text, flags=re.IGNORECASE) if name.strip()]


def named_date_to_slash(text: str) -> Optional[str]:
    """'March 15, 2025' → '03/15/2025'. None when the month is not recognised."""
    match = re.match(r"^([A-Za-z]+)\.?\s+(\d{1,2}),?\s+(\d{4})$", text.strip())
    if not match:
        return None
    month = _MONTHS.get(match.group(1).lower())
    if month is None:
        return None
    return f"{month:02d}/{int(match.group(2)):02d}/{match.group(3)}"


# ─── Individual Field Extractors ─────────────────────────────────────


def _first_match(patterns: tuple[re.Pattern[str], ...], text: str) -> Optional[re.Match[str]]:
    for pattern in patterns:
        match = pattern.search(text)
        if match:
            return match
    return None


def _group(patterns: tuple[re.Pattern[str], ...], text: str) -> Optional[str]:
    match = _first_match(patterns, text)
    return match.group(1).strip() if match else None


def _amount(patterns: tuple[re.Pattern[str], ...], text: str) -> Optional[str]:
    """Amounts are returned without grouping commas: '300,000.00' → '300000.00'."""
    value = _group(patterns, text)
    return value.replace(",", "") if value is not None else None


def _date(patterns: tuple[re.Pattern[str], ...], text: str) -> Optional[str]:
    """Dates are returned as MM/DD/YYYY; month-name dates are converted.

    An unrecognised month name is passed through unchanged so the normalizer
    reports it instead of the field silently disappearing.
    """
    value = _group(patterns, text)
    if value is None or re.fullmatch(_SLASH_DATE, value):
        return value
    return named_date_to_slash(value) or value


def _extract_parties(text: str) -> tuple[list[str], list[str]]:
    """Prefer the TREC '¶1 PARTIES' sentence; fall back to labeled lines."""
    match = _first_match(_PARTIES, text)
    if match:
        return split_party_names(match.group(2)), split_party_names(match.group(1))

    buyer = _group(_BUYER, text)
    seller = _group(_SELLER, text)
    return (
        split_party_names(buyer) if buyer else [],
        split_party_names(seller) if seller else [],
    )


def _extract_address(text: str) -> RawAddress:
    match = _first_match(_PROPERTY, text)
    if not match:
        return RawAddress()
    city = re.sub(r"^City of\s+", "", match.group(2).strip(), flags=re.IGNORECASE)
    return RawAddress(
        street=match.group(1).strip(),
        city=city,
        state=match.group(3).strip(),
        zip=match.group(4).strip(),
    )


def _extract_financing_type(text: str) -> Optional[str]:
    """Map a 'Financing: ...' line onto the financing enum (or 'other')."""
    line = _group(_FINANCING, text)
    if line is None:
        return None
    for pattern, financing_type in _FINANCING_KEYWORDS:
        if re.search(pattern, line, re.IGNORECASE):
            return financing_type
    return "other"
