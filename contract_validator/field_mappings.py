"""
Declarative form-field → RawContract mapping.

This table is the ONLY place that knows the fillable field names of a
document family. Supporting another family means swapping this table (and
the regex battery in extractor_regex.py) — the interpreter below stays put.

Three kinds of destination:
  - scalar:  ("effective_date",)                 → raw.effective_date
  - nested:  ("property_address", "street")      → raw.property_address.street
  - indexed: ("buyer_names",) + array_index=1    → raw.buyer_names[1]
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from .models import RawContract


@dataclass(frozen=True)
class FieldMapping:
    field_name: str
    path: tuple[str, ...]
    array_index: Optional[int] = None


TREC20_FIELD_MAPPINGS: tuple[FieldMapping, ...] = (
    FieldMapping("Buyer1Name", ("buyer_names",), array_index=0),
    FieldMapping("Buyer2Name", ("buyer_names",), array_index=1),
    FieldMapping("Seller1Name", ("seller_names",), array_index=0),
    FieldMapping("Seller2Name", ("seller_names",), array_index=1),
    FieldMapping("PropertyStreet", ("property_address", "street")),
    FieldMapping("PropertyCity", ("property_address", "city")),
    FieldMapping("PropertyState", ("property_address", "state")),
    FieldMapping("PropertyZip", ("property_address", "zip")),
    FieldMapping("SalesPriceTotal", ("sales_price", "total")),
    FieldMapping("SalesPriceCash", ("sales_price", "cash_portion")),
    FieldMapping("SalesPriceLoan", ("sales_price", "financed_portion")),
    FieldMapping("EffectiveDate", ("effective_date",)),
    FieldMapping("ClosingDate", ("closing_date",)),
    FieldMapping("OptionFee", ("option_fee",)),
    FieldMapping("OptionPeriodDays", ("option_period_days",)),
    FieldMapping("FinancingType", ("financing_type",)),
    FieldMapping("SpecialProvisions", ("special_provisions_text",)),
    FieldMapping("EarnestMoney", ("earnest_money",)),
    FieldMapping("TitleCompany", ("title_company",)),
)


def apply_field_mappings(
    fields: dict[str, str], mappings: tuple[FieldMapping, ...] = TREC20_FIELD_MAPPINGS
) -> RawContract:
    """Interpret a mapping table against a flat field map.

    Nested slots are always written (even when blank) so the address and
    price sub-objects are complete; top-level scalars are written only when
    the field has a value. Indexed slots are written in order and gaps are
    dropped afterwards.
    """
    data: dict[str, Any] = {}

    for mapping in mappings:
        value = fields.get(mapping.field_name, "") or ""

        if mapping.array_index is not None:
            if value:
                slots: list[str] = data.setdefault(mapping.path[0], [])
                while len(slots) <= mapping.array_index:
                    slots.append("")
                slots[mapping.array_index] = value
            continue

        *parents, leaf = mapping.path
        target = data
        for key in parents:
            target = target.setdefault(key, {})
        if value or parents:
            target[leaf] = value

    for key, value in data.items():
        if isinstance(value, list):
            data[key] = [item for item in value if item != ""]

    return RawContract.model_validate(data)
