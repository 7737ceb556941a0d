from __future__ import annotations

import os
import re
from pathlib import Path
from urllib.parse import unquote

from .config import DocsConfig
from .corpus import SourceFile, read_sources
from .errors import CorpusError
from .markdown import anchors, extract_links, split_frontmatter
from .model import Finding, FindingKind

ValidationReport = list[Finding]

_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.\-]*:")
_MARKDOWN_SUFFIXES = {".md", ".markdown"}


def is_external(target: str) -> bool:
    return bool(_SCHEME_RE.match(target)) or target.startswith("//")


def split_target(target: str) -> tuple[str, str]:
    path_part, _, fragment = target.partition("#")
    path_part = path_part.split("?", 1)[0]
    return unquote(path_part), unquote(fragment)


class AnchorCache:
    """Heading anchors per file, computed at most once per run."""

    def __init__(self, sources: dict[str, SourceFile]) -> None:
        self._by_path = {str(src.path.resolve()): src.text for src in sources.values()}
        self._cache: dict[str, set[str]] = {}

    def get(self, path: Path) -> set[str]:
        key = str(path.resolve())
        if key not in self._cache:
            text = self._by_path.get(key)
            if text is None:
                text = path.read_text(encoding="utf-8", errors="replace")
            _, body, _ = split_frontmatter(text)
            self._cache[key] = anchors(body)
        return self._cache[key]


def _resolve(root: Path, source: SourceFile, path_part: str) -> Path:
    if path_part.startswith("/"):
        return Path(os.path.normpath(root / path_part.lstrip("/")))
    return Path(os.path.normpath(source.path.parent / path_part))


def check_source(root: Path, source: SourceFile, cache: AnchorCache) -> list[Finding]:
    _, body, offset = split_frontmatter(source.text)
    findings: list[Finding] = []
    for link in extract_links(body, offset):
        if is_external(link.target):
            continue
        path_part, fragment = split_target(link.target)
        resolved = source.path if not path_part else _resolve(root, source, path_part)
        if not resolved.exists():
            findings.append(
                Finding(
                    source=source.rel_path,
                    kind=FindingKind.BROKEN_FILE,
                    detail=f"link target `{link.target}` does not exist",
                    line=link.line,
                    target=link.target,
                )
            )
            continue
        if not fragment or not resolved.is_file() or resolved.suffix.lower() not in _MARKDOWN_SUFFIXES:
            continue
        known = cache.get(resolved)
        if fragment in known or fragment.lower() in known:
            continue
        where = path_part or "this file"
        findings.append(
            Finding(
                source=source.rel_path,
                kind=FindingKind.BROKEN_ANCHOR,
                detail=f"no heading anchor `#{fragment}` in {where}",
                line=link.line,
                target=link.target,
            )
        )
    return findings


def validate_sources(root: Path, sources: dict[str, SourceFile]) -> ValidationReport:
    cache = AnchorCache(sources)
    findings: ValidationReport = []
    for rel in sorted(sources):
        findings.extend(check_source(root, sources[rel], cache))
    return findings


def validate(corpus_root: Path | str, config: DocsConfig | None = None) -> ValidationReport:
    """Check every internal link and anchor under ``corpus_root``.

    Broken links are returned as findings; only structural problems such as an
    unreadable root or a file that is not UTF-8 raise ``CorpusError``.
    """
    root = Path(corpus_root).resolve()
    exclude = (config or DocsConfig()).exclude
    try:
        sources = read_sources(root, exclude)
    except PermissionError as exc:
        raise CorpusError(f"corpus root is unreadable: {root}: {exc}") from exc
    return validate_sources(root, sources)
