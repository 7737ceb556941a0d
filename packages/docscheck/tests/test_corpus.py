from __future__ import annotations

from datetime import date
from pathlib import Path

import pytest

from docscheck import corpus as corpus_module
from docscheck.config import DocsConfig
from docscheck.corpus import infer_category, load_corpus, normalize_ref
from docscheck.errors import CorpusError
from docscheck.model import Category, Status


@pytest.mark.parametrize(
    ("rel", "expected"),
    [
        ("README.md", Category.README),
        ("docs/readme.md", Category.README),
        ("CHANGELOG.md", Category.CHANGELOG),
        ("docs/adr/0001-use-postgres.md", Category.ADR),
        ("ADR-0003-caching.md", Category.ADR),
        ("api/orders.md", Category.API_SPEC),
        ("docs/openapi-guide.md", Category.API_SPEC),
        ("docs/architecture/overview.md", Category.ARCHITECTURE),
        ("docs/comment-style.md", Category.COMMENT_CONVENTION),
        ("docs/howto.md", Category.GUIDE),
    ],
)
def test_category_inference(rel: str, expected: Category) -> None:
    assert infer_category(rel) is expected


def test_configured_category_globs_win() -> None:
    overrides = (("handbook/*.md", Category.ARCHITECTURE),)
    assert infer_category("handbook/README.md", overrides) is Category.ARCHITECTURE


def test_frontmatter_populates_unit(make_corpus) -> None:
    root = make_corpus(
        {
            "api/v2.md": "\n".join(
                [
                    "---",
                    "category: api-spec",
                    "owner: platform",
                    "last_reviewed: 2025-03-01",
                    "version_tag: 2.x",
                    "status: deprecated",
                    "supersedes: v1.md",
                    "replaced_by: /api/v3.md",
                    "---",
                    "# Orders API v2",
                    "[v1](v1.md) and [web](https://example.invalid)",
                    "",
                ]
            ),
            "api/v1.md": "# v1\n",
            "api/v3.md": "# v3\n",
        }
    )
    units = load_corpus(root).units
    doc = units["api/v2.md"]
    assert doc.category is Category.API_SPEC
    assert doc.owner == "platform"
    assert doc.last_reviewed == date(2025, 3, 1)
    assert doc.version_tag == "2.x"
    assert doc.status is Status.DEPRECATED
    assert doc.supersedes == ("api/v1.md",)
    assert doc.replaced_by == "api/v3.md"
    assert doc.title == "Orders API v2"
    assert doc.links == ("v1.md", "https://example.invalid")
    assert units["api/v1.md"].last_reviewed is None


def test_sorted_units_are_in_path_order(make_corpus) -> None:
    root = make_corpus({"b.md": "", "a/z.md": "", "a.md": ""})
    assert [u.path for u in load_corpus(root).sorted_units()] == ["a.md", "a/z.md", "b.md"]


@pytest.mark.parametrize(
    "frontmatter",
    [
        "category: NOPE",
        "status: shredded",
        "last_reviewed: last tuesday",
        "supersedes: {a: 1}",
        "- just\n- a list",
        "key: [unclosed",
    ],
)
def test_invalid_frontmatter_is_structural(make_corpus, frontmatter: str) -> None:
    root = make_corpus({"bad.md": f"---\n{frontmatter}\n---\n# Bad\n"})
    with pytest.raises(CorpusError, match="bad.md"):
        load_corpus(root)


def test_git_dates_fill_missing_reviews(make_corpus, monkeypatch: pytest.MonkeyPatch) -> None:
    root = make_corpus({"arch.md": "# Arch\n", "adr/0001.md": "---\nlast_reviewed: 2024-01-01\n---\n# ADR\n"})
    seen: list[Path] = []

    def fake_last_commit(repo: Path, path: Path) -> date:
        seen.append(path)
        return date(2025, 6, 30)

    monkeypatch.setattr(corpus_module, "last_commit_date", fake_last_commit)
    units = load_corpus(root, DocsConfig(infer_review_dates=True)).units
    assert units["arch.md"].last_reviewed == date(2025, 6, 30)
    assert units["adr/0001.md"].last_reviewed == date(2024, 1, 1)
    assert [p.name for p in seen] == ["arch.md"]


def test_git_dates_off_by_default(make_corpus, monkeypatch: pytest.MonkeyPatch) -> None:
    root = make_corpus({"arch.md": "# Arch\n"})

    def boom(*_args: object) -> date:
        raise AssertionError("git must not be consulted")

    monkeypatch.setattr(corpus_module, "last_commit_date", boom)
    assert load_corpus(root).units["arch.md"].last_reviewed is None


def test_normalize_ref() -> None:
    assert normalize_ref("docs/api/v2.md", "v1.md") == "docs/api/v1.md"
    assert normalize_ref("docs/api/v2.md", "../guide.md") == "docs/guide.md"
    assert normalize_ref("docs/api/v2.md", "/root.md") == "root.md"
    assert normalize_ref("a.md", "./b/c.md") == "b/c.md"
