from __future__ import annotations

from helpers import unit

from docscheck.corpus import load_corpus
from docscheck.index import GENERATED_MARKER, check_index, generate, write_index
from docscheck.model import Category, FindingKind, Status

UNITS = [
    unit("guides/zeta.md", Category.GUIDE, title="Zeta Guide"),
    unit("api/orders.md", Category.API_SPEC, title="Orders API", version_tag="2.x", owner="api-team"),
    unit("README.md", Category.README, title="Docs"),
    unit("guides/alpha.md", Category.GUIDE),
    unit("adr/0002-cache.md", Category.ADR, title="Use [Redis] Cache", status=Status.DEPRECATED),
    unit("adr/0001-db.md", Category.ADR, title="Pick Postgres"),
    unit("CHANGELOG.md", Category.CHANGELOG, status=Status.REMOVED, replaced_by="guides/alpha.md"),
]


def test_generate_groups_by_category_order_then_path() -> None:
    text = generate(UNITS)
    assert text == "\n".join(
        [
            "# Documentation Index",
            "",
            GENERATED_MARKER,
            "",
            "## API Specifications",
            "",
            "- [Orders API](api/orders.md) (owner: api-team; version: 2.x)",
            "",
            "## Architecture Decision Records",
            "",
            "- [Pick Postgres](adr/0001-db.md) (owner: docs-team)",
            "- [Use \\[Redis\\] Cache](adr/0002-cache.md) (owner: docs-team; status: deprecated)",
            "",
            "## Changelogs",
            "",
            "- [CHANGELOG.md](CHANGELOG.md) (owner: docs-team; status: removed; replaced by: guides/alpha.md)",
            "",
            "## Guides",
            "",
            "- [guides/alpha.md](guides/alpha.md) (owner: docs-team)",
            "- [Zeta Guide](guides/zeta.md) (owner: docs-team)",
            "",
        ]
    )


def test_generate_is_idempotent_and_order_independent() -> None:
    first = generate(UNITS)
    assert generate(UNITS) == first
    assert generate(list(reversed(UNITS))) == first


def test_nested_index_uses_relative_links() -> None:
    units = [unit("docs/README.md", Category.README), unit("docs/api/x.md", Category.API_SPEC), unit("top.md")]
    text = generate(units, index_path="docs/README.md", title="Docs")
    assert text.startswith("# Docs\n")
    assert "(api/x.md)" in text
    assert "(../top.md)" in text
    assert "docs/README.md" not in text


def test_written_index_passes_drift_check_and_link_check(make_corpus) -> None:
    root = make_corpus(
        {
            "guide.md": "# Guide\n",
            "api/spec.md": "---\ncategory: API_SPEC\nlast_reviewed: 2025-01-01\n---\n# Spec\n",
        }
    )
    corpus = load_corpus(root)
    missing = check_index(root, corpus.units.values())
    assert [f.kind for f in missing] == [FindingKind.INDEX_DRIFT]

    write_index(root, corpus.units.values())
    reloaded = load_corpus(root)
    assert "README.md" in reloaded.units
    assert check_index(root, reloaded.units.values()) == []

    from docscheck.links import validate

    assert validate(root) == []

    (root / "extra.md").write_text("# Extra\n", encoding="utf-8")
    drifted = check_index(root, load_corpus(root).units.values())
    assert [f.kind for f in drifted] == [FindingKind.INDEX_DRIFT]
