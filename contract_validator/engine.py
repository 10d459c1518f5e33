"""
Generic rule engine: declarative rules in, issues out.

A Rule is data: an id, a description, a severity, an optional cite, and up to
three callables:
  - predicate(record) -> bool        "is this a problem?"
  - build(record)     -> dict        overrides for the issue (message, data, cite)
  - debug(record)     -> dict        snapshot of the inputs the rule looked at

run_rules() walks the rules IN ORDER and never stops early. A rule that blows
up is reported as its own low-severity "<id>.error" issue and the engine moves
on, so one buggy rule cannot hide the findings of the other 24.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, Optional, Sequence, TypeVar

from .models import Issue, Severity

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Rule(Generic[T]):
    id: str
    description: str
    severity: Severity
    predicate: Callable[[T], bool]
    cite: Optional[str] = None
    build: Optional[Callable[[T], dict[str, Any]]] = None
    debug: Optional[Callable[[T], dict[str, Any]]] = None


def run_rules(
    record: T,
    rules: Sequence[Rule[T]],
    *,
    include_debug: bool = False,
) -> list[Issue]:
    """Evaluate every rule against one record.

    Args:
        record: The validated contract (or any record the rules understand).
        rules: Ordered rules; output order follows rule order.
        include_debug: Attach each fired rule's debug snapshot under data["debug"].

    Returns:
        Issues in rule order. Not sorted by severity.
    """
    issues: list[Issue] = []
    for rule in rules:
        try:
            issue = _evaluate(rule, record, include_debug)
        except Exception as exc:
            logger.warning("Rule %s raised %s: %s", rule.id, type(exc).__name__, exc)
            issues.append(
                Issue(
                    id=f"{rule.id}.error",
                    message=f"Rule threw: {exc}",
                    severity=Severity.LOW,
                )
            )
            continue
        if issue is not None:
            issues.append(issue)
    return issues


def _evaluate(rule: Rule[T], record: T, include_debug: bool) -> Optional[Issue]:
    if not rule.predicate(record):
        return None

    overrides = dict(rule.build(record)) if rule.build else {}
    data = overrides.get("data")

    if include_debug and rule.debug is not None:
        data = {**(data or {}), "debug": rule.debug(record)}

    return Issue(
        id=overrides.get("id", rule.id),
        message=overrides.get("message", rule.description),
        severity=overrides.get("severity", rule.severity),
        cite=overrides["cite"] if "cite" in overrides else rule.cite,
        data=data,
    )
