from __future__ import annotations

import posixpath
from pathlib import Path
from typing import Iterable

from .model import CATEGORY_TITLES, Category, DocumentUnit, Finding, FindingKind, Status

GENERATED_MARKER = "<!-- Generated by docscheck. Do not edit; run `docscheck index --write`. -->"


def _escape_label(text: str) -> str:
    return text.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")


def _entry(unit: DocumentUnit, index_dir: str) -> str:
    href = posixpath.relpath(unit.path, index_dir or ".")
    label = _escape_label(unit.title or unit.path)
    notes = [f"owner: {unit.owner}"]
    if unit.version_tag:
        notes.append(f"version: {unit.version_tag}")
    if unit.status is not Status.ACTIVE:
        notes.append(f"status: {unit.status.value}")
    if unit.replaced_by:
        notes.append(f"replaced by: {posixpath.relpath(unit.replaced_by, index_dir or '.')}")
    return f"- [{label}]({href.replace(' ', '%20')}) ({'; '.join(notes)})"


def generate(
    units: Iterable[DocumentUnit],
    index_path: str = "README.md",
    title: str = "Documentation Index",
) -> str:
    """Markdown index grouped by category in enum order, paths sorted within each group.

    The index file itself is never listed. Output carries no timestamps, so the
    same units always render to the same bytes.
    """
    index_dir = posixpath.dirname(index_path)
    grouped: dict[Category, list[DocumentUnit]] = {}
    for unit in units:
        if unit.path == index_path:
            continue
        grouped.setdefault(unit.category, []).append(unit)
    lines = [f"# {title}", "", GENERATED_MARKER]
    for category in Category:
        members = sorted(grouped.get(category, []), key=lambda u: u.path)
        if not members:
            continue
        lines.extend(["", f"## {CATEGORY_TITLES[category]}", ""])
        lines.extend(_entry(unit, index_dir) for unit in members)
    return "\n".join(lines) + "\n"


def check_index(
    root: Path,
    units: Iterable[DocumentUnit],
    index_path: str = "README.md",
    title: str = "Documentation Index",
) -> list[Finding]:
    expected = generate(units, index_path, title)
    target = root / index_path
    if not target.is_file():
        return [
            Finding(
                source=index_path,
                kind=FindingKind.INDEX_DRIFT,
                detail="corpus index is missing; run `docscheck index --write`",
            )
        ]
    actual = target.read_text(encoding="utf-8").replace("\r\n", "\n")
    if actual != expected:
        return [
            Finding(
                source=index_path,
                kind=FindingKind.INDEX_DRIFT,
                detail="corpus index is out of date; run `docscheck index --write`",
            )
        ]
    return []


def write_index(
    root: Path,
    units: Iterable[DocumentUnit],
    index_path: str = "README.md",
    title: str = "Documentation Index",
) -> Path:
    target = root / index_path
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(generate(units, index_path, title), encoding="utf-8")
    return target
