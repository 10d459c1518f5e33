"""
Forms registry: which version of each promulgated form is currently expected.

Rows come from an external source (a database table, a JSON file) as
{form_code, expected_version, effective_date} and are folded into a lookup
map keyed by form code. The core only ever reads it.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterable, Optional

from pydantic import BaseModel

from .config import DEFAULT_REGISTRY_PATH


class FormsRegistryEntry(BaseModel):
    expected_version: str
    effective_date: Optional[str] = None


FormsRegistry = dict[str, FormsRegistryEntry]


def build_registry(rows: Iterable[dict[str, Any]]) -> FormsRegistry:
    """Fold registry rows into a {form_code: entry} map (later rows win)."""
    registry: FormsRegistry = {}
    for row in rows:
        registry[row["form_code"]] = FormsRegistryEntry(
            expected_version=row["expected_version"],
            effective_date=row.get("effective_date"),
        )
    return registry


def load_registry(path: str | Path | None = None) -> FormsRegistry:
    """Load registry rows from a JSON file.

    Args:
        path: Path to a JSON list of rows. Defaults to the bundled registry.
    """
    resolved = DEFAULT_REGISTRY_PATH if path is None else Path(path)

    with resolved.open(encoding="utf-8") as f:
        rows: list[dict[str, Any]] = json.load(f)
    return build_registry(rows)


def is_outdated(form_version: Optional[str], form_code: str, registry: FormsRegistry) -> bool:
    """True only when the registry knows the form AND a version was read AND they differ.

    Missing registry entry or missing version is "unknown", not "outdated".
    """
    entry = registry.get(form_code)
    if entry is None or not form_version:
        return False
    return form_version != entry.expected_version


def get_expected_version(form_code: str, registry: FormsRegistry) -> Optional[str]:
    entry = registry.get(form_code)
    return entry.expected_version if entry else None


def get_effective_date(form_code: str, registry: FormsRegistry) -> Optional[str]:
    entry = registry.get(form_code)
    return entry.effective_date if entry else None
