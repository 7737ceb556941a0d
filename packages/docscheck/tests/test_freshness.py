from __future__ import annotations

from datetime import date, timedelta

import pytest
from helpers import unit

from docscheck.errors import ConfigError
from docscheck.freshness import scan
from docscheck.model import Category, FindingKind, Status

REVIEWED = date(2025, 1, 1)


def test_unit_past_threshold_is_stale_and_boundary_is_fresh() -> None:
    doc = unit("api/v1.md", Category.API_SPEC, last_reviewed=REVIEWED)
    threshold = 180

    stale = scan([doc], threshold, as_of=REVIEWED + timedelta(days=threshold + 1))
    assert [(f.source, f.kind, f.days_since_review) for f in stale] == [
        ("api/v1.md", FindingKind.STALE, threshold + 1)
    ]
    assert scan([doc], threshold, as_of=REVIEWED + timedelta(days=threshold - 1)) == []
    assert scan([doc], threshold, as_of=REVIEWED + timedelta(days=threshold)) == []


def test_missing_review_on_required_category_is_a_finding() -> None:
    findings = scan([unit("api/spec.md", Category.API_SPEC)], 180, as_of=REVIEWED)
    assert len(findings) == 1
    assert findings[0].kind is FindingKind.MISSING_REVIEW
    assert findings[0].to_dict()["path"] == "api/spec.md"
    assert findings[0].to_dict()["daysSinceReview"] is None


def test_only_required_freshness_categories_are_checked() -> None:
    old = date(2000, 1, 1)
    units = [
        unit("README.md", Category.README, last_reviewed=old),
        unit("guide.md", Category.GUIDE),
        unit("arch.md", Category.ARCHITECTURE, last_reviewed=old),
        unit("adr/0001.md", Category.ADR),
    ]
    findings = scan(units, 30, as_of=REVIEWED)
    assert [(f.source, f.kind) for f in findings] == [
        ("adr/0001.md", FindingKind.MISSING_REVIEW),
        ("arch.md", FindingKind.STALE),
    ]


def test_retired_units_are_exempt() -> None:
    units = [
        unit("old.md", Category.API_SPEC, status=Status.ARCHIVED),
        unit("gone.md", Category.API_SPEC, status=Status.REMOVED, replaced_by="new.md"),
        unit("dep.md", Category.API_SPEC, status=Status.DEPRECATED),
    ]
    assert [f.source for f in scan(units, 10, as_of=REVIEWED)] == ["dep.md"]


def test_required_categories_can_be_overridden() -> None:
    units = [unit("guide.md", Category.GUIDE), unit("api.md", Category.API_SPEC)]
    findings = scan(units, 10, as_of=REVIEWED, required=frozenset({Category.GUIDE}))
    assert [f.source for f in findings] == ["guide.md"]


def test_as_of_defaults_to_today() -> None:
    doc = unit("api.md", Category.API_SPEC, last_reviewed=date.today() - timedelta(days=5))
    assert scan([doc], 10) == []
    assert len(scan([doc], 4)) == 1


@pytest.mark.parametrize("bad", [0, -1, True, 1.5])
def test_threshold_must_be_positive_int(bad: object) -> None:
    with pytest.raises(ConfigError):
        scan([], bad)  # type: ignore[arg-type]
