from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import Enum


class Category(str, Enum):
    README = "README"
    API_SPEC = "API_SPEC"
    ADR = "ADR"
    ARCHITECTURE = "ARCHITECTURE"
    CHANGELOG = "CHANGELOG"
    GUIDE = "GUIDE"
    COMMENT_CONVENTION = "COMMENT_CONVENTION"

    @classmethod
    def parse(cls, raw: str) -> "Category":
        key = raw.strip().upper().replace("-", "_").replace(" ", "_")
        return cls(key)

    @property
    def order(self) -> int:
        return list(Category).index(self)


REQUIRED_FRESHNESS = frozenset({Category.API_SPEC, Category.ARCHITECTURE, Category.ADR})

CATEGORY_TITLES = {
    Category.README: "Overview",
    Category.API_SPEC: "API Specifications",
    Category.ADR: "Architecture Decision Records",
    Category.ARCHITECTURE: "Architecture",
    Category.CHANGELOG: "Changelogs",
    Category.GUIDE: "Guides",
    Category.COMMENT_CONVENTION: "Comment Conventions",
}


class Status(str, Enum):
    ACTIVE = "active"
    ARCHIVED = "archived"
    DEPRECATED = "deprecated"
    REMOVED = "removed"


class FindingKind(str, Enum):
    BROKEN_FILE = "BROKEN_FILE"
    BROKEN_ANCHOR = "BROKEN_ANCHOR"
    MISSING_REVIEW = "MISSING_REVIEW"
    STALE = "STALE"
    VERSION_CONFLICT = "VERSION_CONFLICT"
    INVALID_VERSION = "INVALID_VERSION"
    INDEX_DRIFT = "INDEX_DRIFT"
    LIFECYCLE = "LIFECYCLE"


LINK_KINDS = frozenset({FindingKind.BROKEN_FILE, FindingKind.BROKEN_ANCHOR})
FRESHNESS_KINDS = frozenset({FindingKind.MISSING_REVIEW, FindingKind.STALE})


@dataclass(frozen=True)
class DocumentUnit:
    path: str
    category: Category
    owner: str = "unowned"
    last_reviewed: date | None = None
    version_tag: str | None = None
    links: tuple[str, ...] = ()
    status: Status = Status.ACTIVE
    supersedes: tuple[str, ...] = ()
    replaced_by: str | None = None
    title: str | None = None

    @property
    def requires_freshness(self) -> bool:
        return self.category in REQUIRED_FRESHNESS

    @property
    def is_retired(self) -> bool:
        return self.status in (Status.ARCHIVED, Status.REMOVED)


@dataclass(frozen=True)
class Finding:
    source: str
    kind: FindingKind
    detail: str
    line: int | None = None
    target: str | None = None
    days_since_review: int | None = None
    related: tuple[str, ...] = field(default_factory=tuple)

    def sort_key(self) -> tuple[str, int, str, str]:
        return (self.source, self.line or 0, self.kind.value, self.target or "")

    def render(self) -> str:
        where = self.source if self.line is None else f"{self.source}:{self.line}"
        return f"{where}: {self.kind.value}: {self.detail}"

    def to_dict(self) -> dict[str, object]:
        if self.kind in LINK_KINDS:
            return {
                "kind": self.kind.value,
                "sourceFile": self.source,
                "linkTarget": self.target,
                "lineNumber": self.line,
                "detail": self.detail,
            }
        if self.kind in FRESHNESS_KINDS:
            return {
                "kind": self.kind.value,
                "path": self.source,
                "daysSinceReview": self.days_since_review,
                "detail": self.detail,
            }
        payload: dict[str, object] = {
            "kind": self.kind.value,
            "path": self.source,
            "detail": self.detail,
        }
        if self.related:
            payload["related"] = list(self.related)
        return payload
