"""Markdown scanning: link targets, ATX headings and anchor slugs.

Only the structure the checks need is recognised. Fenced code blocks and HTML
comments are skipped entirely and inline code spans are blanked before links
are matched, so example snippets and commented-out drafts never produce
findings.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

_FENCE_RE = re.compile(r"^ {0,3}(`{3,}|~{3,})")
_HEADING_RE = re.compile(r"^ {0,3}(#{1,6})(?:[ \t]+(.*?))?[ \t]*$")
_CLOSING_HASHES_RE = re.compile(r"[ \t]+#+[ \t]*$")
_CODE_SPAN_RE = re.compile(r"(`+)(.+?)\1")
_INLINE_LINK_RE = re.compile(r"!?\[(?:[^\[\]]|\[[^\[\]]*\])*\]\(\s*(<[^>]*>|(?:[^()\s]|\([^()\s]*\))+)(?:\s+(?:\"[^\"]*\"|'[^']*'|\([^)]*\)))?\s*\)")
_REF_DEF_RE = re.compile(r"^ {0,3}\[(?!\^)[^\]]+\]:\s*(<[^>]*>|\S+)")
_HTML_ANCHOR_RE = re.compile(r"<a\s+[^>]*?(?:id|name)\s*=\s*[\"']([^\"']+)[\"']", re.IGNORECASE)
_SLUG_STRIP_RE = re.compile(r"[^\w\- ]", re.UNICODE)
_FRONTMATTER_RE = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n(?:---|\.\.\.)[ \t]*(?:\r?\n|\Z)", re.DOTALL)


@dataclass(frozen=True)
class Link:
    target: str
    line: int


def split_frontmatter(text: str) -> tuple[str | None, str, int]:
    """Return ``(frontmatter, body, body_line_offset)``."""
    m = _FRONTMATTER_RE.match(text)
    if not m:
        return None, text, 0
    consumed = text[: m.end()]
    return m.group(1), text[m.end():], consumed.count("\n")


def _blank_code_spans(line: str) -> str:
    return _CODE_SPAN_RE.sub(lambda m: " " * len(m.group(0)), line)


def _strip_comments(line: str, in_comment: bool) -> tuple[str, bool]:
    """Drop ``<!-- ... -->`` regions; the flag carries an open comment across lines."""
    # Markers are located on the code-span-blanked copy, which keeps offsets.
    masked = _blank_code_spans(line)
    kept: list[str] = []
    pos = 0
    while pos < len(line):
        if in_comment:
            end = masked.find("-->", pos)
            if end == -1:
                break
            pos = end + 3
            in_comment = False
        else:
            start = masked.find("<!--", pos)
            if start == -1:
                kept.append(line[pos:])
                break
            kept.append(line[pos:start])
            pos = start + 4
            in_comment = True
    return "".join(kept), in_comment


def _content_lines(text: str) -> list[tuple[int, str]]:
    """Numbered lines outside fenced code blocks, with HTML comments removed."""
    rows: list[tuple[int, str]] = []
    fence: str | None = None
    in_comment = False
    for lineno, line in enumerate(text.splitlines(), start=1):
        m = _FENCE_RE.match(line)
        if fence is not None:
            if m and m.group(1)[0] == fence[0] and len(m.group(1)) >= len(fence) and not line.strip()[len(m.group(1)):].strip():
                fence = None
            continue
        if m and not in_comment:
            fence = m.group(1)
            continue
        content, in_comment = _strip_comments(line, in_comment)
        rows.append((lineno, content))
    return rows


def _clean_target(raw: str) -> str:
    target = raw.strip()
    if target.startswith("<") and target.endswith(">"):
        target = target[1:-1].strip()
    return target


def extract_links(text: str, line_offset: int = 0) -> list[Link]:
    links: list[Link] = []
    for lineno, line in _content_lines(text):
        scrubbed = _blank_code_spans(line)
        ref = _REF_DEF_RE.match(scrubbed)
        if ref:
            target = _clean_target(ref.group(1))
            if target:
                links.append(Link(target, lineno + line_offset))
            continue
        for m in _INLINE_LINK_RE.finditer(scrubbed):
            target = _clean_target(m.group(1))
            if target:
                links.append(Link(target, lineno + line_offset))
    return links


def extract_headings(text: str) -> list[str]:
    headings: list[str] = []
    for _, line in _content_lines(text):
        m = _HEADING_RE.match(line)
        if not m:
            continue
        content = _CLOSING_HASHES_RE.sub("", m.group(2) or "").strip()
        if content.strip("#") == "":
            content = ""
        headings.append(content)
    return headings


def title_of(text: str) -> str | None:
    for _, line in _content_lines(text):
        m = _HEADING_RE.match(line)
        if m and len(m.group(1)) == 1:
            title = _CLOSING_HASHES_RE.sub("", m.group(2) or "").strip()
            return title or None
    return None


def slugify(heading: str) -> str:
    text = heading.strip().lower()
    text = re.sub(r"\[([^\]]*)\]\([^)]*\)", r"\1", text)
    text = _SLUG_STRIP_RE.sub("", text)
    return text.replace(" ", "-")


def anchors(text: str) -> set[str]:
    """All fragment ids a renderer would expose for ``text``.

    The first heading with a given slug owns the bare slug; repeats get
    ``-1``, ``-2`` and so on.
    """
    seen: dict[str, int] = {}
    result: set[str] = set()
    for heading in extract_headings(text):
        slug = slugify(heading)
        if slug in seen:
            seen[slug] += 1
            result.add(f"{slug}-{seen[slug]}")
        else:
            seen[slug] = 0
            result.add(slug)
    for _, line in _content_lines(text):
        result.update(_HTML_ANCHOR_RE.findall(line))
    return result
