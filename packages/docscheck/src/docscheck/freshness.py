from __future__ import annotations

from datetime import date
from typing import Iterable

from .config import DEFAULT_STALE_THRESHOLD_DAYS, validate_threshold
from .model import REQUIRED_FRESHNESS, Category, DocumentUnit, Finding, FindingKind

StaleReport = list[Finding]


def scan(
    units: Iterable[DocumentUnit],
    threshold_days: int = DEFAULT_STALE_THRESHOLD_DAYS,
    as_of: date | None = None,
    required: frozenset[Category] = REQUIRED_FRESHNESS,
) -> StaleReport:
    """Flag required-freshness units that were never reviewed or are past the threshold.

    A unit reviewed exactly ``threshold_days`` ago is still fresh. Archived and
    removed units are exempt.
    """
    threshold_days = validate_threshold(threshold_days)
    as_of = as_of or date.today()
    findings: StaleReport = []
    for unit in sorted(units, key=lambda u: u.path):
        if unit.category not in required or unit.is_retired:
            continue
        if unit.last_reviewed is None:
            findings.append(
                Finding(
                    source=unit.path,
                    kind=FindingKind.MISSING_REVIEW,
                    detail=f"{unit.category.value} document has no last_reviewed date (owner: {unit.owner})",
                )
            )
            continue
        age = (as_of - unit.last_reviewed).days
        if age > threshold_days:
            findings.append(
                Finding(
                    source=unit.path,
                    kind=FindingKind.STALE,
                    detail=(
                        f"last reviewed {unit.last_reviewed.isoformat()}, {age} days ago "
                        f"(threshold {threshold_days}; owner: {unit.owner})"
                    ),
                    days_since_review=age,
                )
            )
    return findings
