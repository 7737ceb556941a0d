from __future__ import annotations

import fnmatch
import re
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from pathlib import Path, PurePosixPath
from typing import Any, Iterator

import yaml

from .config import DocsConfig
from .core.git import last_commit_date
from .errors import CorpusError
from .markdown import extract_links, split_frontmatter, title_of
from .model import Category, DocumentUnit, Status

_ADR_NAME_RE = re.compile(r"^(adr)[-_]?\d+", re.IGNORECASE)
_ADR_DIRS = {"adr", "adrs", "decisions", "decision-records"}


@dataclass(frozen=True)
class SourceFile:
    rel_path: str
    path: Path
    text: str


@dataclass
class Corpus:
    root: Path
    files: dict[str, SourceFile] = field(default_factory=dict)
    units: dict[str, DocumentUnit] = field(default_factory=dict)

    def sorted_units(self) -> list[DocumentUnit]:
        return [self.units[p] for p in sorted(self.units)]


def _excluded(rel: str, patterns: tuple[str, ...]) -> bool:
    dirs = PurePosixPath(rel).parts[:-1]
    for pattern in patterns:
        if fnmatch.fnmatch(rel, pattern):
            return True
        if pattern.endswith("/**"):
            base = pattern[:-3]
            if "/" not in base and any(fnmatch.fnmatch(part, base) for part in dirs):
                return True
    return False


def iter_markdown_files(root: Path, exclude: tuple[str, ...] = ()) -> Iterator[Path]:
    """Markdown files under ``root`` in sorted POSIX order, minus excluded globs."""
    if not root.exists():
        raise CorpusError(f"corpus root does not exist: {root}")
    if not root.is_dir():
        raise CorpusError(f"corpus root is not a directory: {root}")
    try:
        candidates = sorted(root.rglob("*.md"), key=lambda p: p.relative_to(root).as_posix())
    except OSError as exc:
        raise CorpusError(f"corpus root is unreadable: {root}: {exc}") from exc
    for path in candidates:
        if not path.is_file():
            continue
        if _excluded(path.relative_to(root).as_posix(), exclude):
            continue
        yield path


def read_text(path: Path, rel: str) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise CorpusError(f"{rel}: not valid UTF-8 ({exc.reason} at byte {exc.start})") from exc
    except OSError as exc:
        raise CorpusError(f"{rel}: unreadable: {exc}") from exc


def read_sources(root: Path, exclude: tuple[str, ...] = ()) -> dict[str, SourceFile]:
    sources: dict[str, SourceFile] = {}
    for path in iter_markdown_files(root, exclude):
        rel = path.relative_to(root).as_posix()
        sources[rel] = SourceFile(rel, path, read_text(path, rel))
    return sources


def infer_category(rel: str, overrides: tuple[tuple[str, Category], ...] = ()) -> Category:
    for pattern, category in overrides:
        if fnmatch.fnmatch(rel, pattern) or PurePosixPath(rel).match(pattern):
            return category
    pure = PurePosixPath(rel.lower())
    name = pure.name
    dirs = set(pure.parts[:-1])
    if name == "readme.md":
        return Category.README
    if name.startswith("changelog") or name.startswith("history"):
        return Category.CHANGELOG
    if _ADR_NAME_RE.match(name) or dirs & _ADR_DIRS:
        return Category.ADR
    if "openapi" in name or "swagger" in name or "api" in dirs or name.startswith("api"):
        return Category.API_SPEC
    if "architecture" in name or "architecture" in dirs:
        return Category.ARCHITECTURE
    if "comment" in name or "conventions" in name:
        return Category.COMMENT_CONVENTION
    return Category.GUIDE


def _as_date(value: Any, rel: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as exc:
        raise CorpusError(f"{rel}: last_reviewed must be an ISO date (YYYY-MM-DD), got `{value}`") from exc


def _as_paths(value: Any, rel: str, key: str) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise CorpusError(f"{rel}: `{key}` must be a path or list of paths")
    return tuple(normalize_ref(rel, v) for v in value)


def normalize_ref(source_rel: str, ref: str) -> str:
    """Corpus-relative path for a frontmatter reference written relative to its file.

    A leading ``/`` anchors the reference at the corpus root.
    """
    ref = ref.strip()
    if ref.startswith("/"):
        parts = PurePosixPath(ref.lstrip("/")).parts
    else:
        parts = PurePosixPath(source_rel).parent.joinpath(ref).parts
    stack: list[str] = []
    for part in parts:
        if part in ("", "."):
            continue
        if part == "..":
            if stack:
                stack.pop()
            continue
        stack.append(part)
    return "/".join(stack)


def parse_frontmatter(raw: str | None, rel: str) -> dict[str, Any]:
    if raw is None:
        return {}
    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        raise CorpusError(f"{rel}: invalid frontmatter YAML: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise CorpusError(f"{rel}: frontmatter must be a mapping")
    return {str(k).replace("-", "_").lower(): v for k, v in data.items()}


def build_unit(source: SourceFile, config: DocsConfig) -> DocumentUnit:
    rel = source.rel_path
    raw_meta, body, offset = split_frontmatter(source.text)
    meta = parse_frontmatter(raw_meta, rel)
    if "category" in meta and meta["category"] is not None:
        try:
            category = Category.parse(str(meta["category"]))
        except ValueError as exc:
            raise CorpusError(f"{rel}: unknown category `{meta['category']}`") from exc
    else:
        category = infer_category(rel, config.categories)
    status_raw = str(meta.get("status") or Status.ACTIVE.value).strip().lower()
    try:
        status = Status(status_raw)
    except ValueError as exc:
        allowed = ", ".join(s.value for s in Status)
        raise CorpusError(f"{rel}: unknown status `{status_raw}` (allowed: {allowed})") from exc
    version_tag = meta.get("version_tag", meta.get("version"))
    replaced_by = meta.get("replaced_by")
    return DocumentUnit(
        path=rel,
        category=category,
        owner=str(meta.get("owner") or "unowned"),
        last_reviewed=_as_date(meta.get("last_reviewed"), rel),
        version_tag=str(version_tag).strip() if version_tag not in (None, "") else None,
        links=tuple(link.target for link in extract_links(body, offset)),
        status=status,
        supersedes=_as_paths(meta.get("supersedes"), rel, "supersedes"),
        replaced_by=normalize_ref(rel, str(replaced_by)) if replaced_by else None,
        title=title_of(body),
    )


def load_corpus(root: Path, config: DocsConfig | None = None) -> Corpus:
    config = config or DocsConfig()
    root = root.resolve()
    corpus = Corpus(root=root, files=read_sources(root, config.exclude))
    for rel, source in corpus.files.items():
        unit = build_unit(source, config)
        if unit.last_reviewed is None and config.infer_review_dates:
            inferred = last_commit_date(root, source.path)
            if inferred is not None:
                unit = replace(unit, last_reviewed=inferred)
        if unit.path in corpus.units:
            raise CorpusError(f"duplicate document path: {unit.path}")
        corpus.units[unit.path] = unit
    return corpus
