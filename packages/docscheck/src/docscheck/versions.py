"""Version ranges and the binder that keeps one ground-truth document per range.

Range syntax accepted by ``parse_range``::

    *            any version
    1.x  1.2.*   wildcard on the trailing components
    1.2.3        exactly that version
    1  1.2       partial versions behave like ``1.x`` / ``1.2.x``
    >=1.0,<2.0   comparator list, comma or space separated
    ^1.2  ~1.2   caret and tilde ranges
    1.0 - 1.4    inclusive hyphen range
    1.x || 3.x   union

Two units of the same category whose ranges overlap conflict unless one of
them supersedes the other, directly or through a chain of ``supersedes``
edges.
"""

from __future__ import annotations

import re
from collections import deque
from dataclasses import dataclass
from typing import Iterable

from packaging.version import InvalidVersion, Version

from .errors import ConfigError, CorpusError, VersionConflictError
from .model import DocumentUnit, Finding, FindingKind, Status

_WILDCARDS = {"x", "X", "*"}
_HYPHEN_RE = re.compile(r"^(\S+)\s+-\s+(\S+)$")
_OP_SPACE_RE = re.compile(r"(>=|<=|==|>|<|=|\^|~)\s+")
_COMPARATOR_RE = re.compile(r"^(>=|<=|==|>|<|=|\^|~)?(.+)$")


@dataclass(frozen=True)
class Interval:
    lower: Version | None = None
    lower_inclusive: bool = True
    upper: Version | None = None
    upper_inclusive: bool = False

    def is_empty(self) -> bool:
        if self.lower is None or self.upper is None:
            return False
        if self.lower < self.upper:
            return False
        if self.lower == self.upper:
            return not (self.lower_inclusive and self.upper_inclusive)
        return True

    def intersect(self, other: "Interval") -> "Interval":
        lower, lower_inc = self.lower, self.lower_inclusive
        if other.lower is not None and (lower is None or other.lower > lower):
            lower, lower_inc = other.lower, other.lower_inclusive
        elif other.lower is not None and other.lower == lower:
            lower_inc = lower_inc and other.lower_inclusive
        upper, upper_inc = self.upper, self.upper_inclusive
        if other.upper is not None and (upper is None or other.upper < upper):
            upper, upper_inc = other.upper, other.upper_inclusive
        elif other.upper is not None and other.upper == upper:
            upper_inc = upper_inc and other.upper_inclusive
        return Interval(lower, lower_inc, upper, upper_inc)


@dataclass(frozen=True)
class VersionRange:
    text: str
    intervals: tuple[Interval, ...]

    def overlaps(self, other: "VersionRange") -> bool:
        return any(not a.intersect(b).is_empty() for a in self.intervals for b in other.intervals)

    def __contains__(self, version: str | Version) -> bool:
        v = version if isinstance(version, Version) else _version(str(version), str(version))
        point = Interval(v, True, v, True)
        return any(not iv.intersect(point).is_empty() for iv in self.intervals)

    def __str__(self) -> str:
        return self.text


def _version(raw: str, context: str) -> Version:
    try:
        return Version(raw.lstrip("vV"))
    except InvalidVersion as exc:
        raise ConfigError(f"invalid version `{raw}` in range `{context}`") from exc


def _numeric_prefix(raw: str) -> tuple[list[int], bool]:
    """Leading numeric components and whether the text was partial or wildcarded."""
    parts = raw.lstrip("vV").split(".")
    nums: list[int] = []
    for part in parts:
        if part in _WILDCARDS:
            return nums, True
        if not part.isdigit():
            return [], False
        nums.append(int(part))
    return nums, len(nums) < 3


def _bump(nums: list[int]) -> Version:
    bumped = nums[:-1] + [nums[-1] + 1]
    return Version(".".join(str(n) for n in bumped))


def _from_nums(nums: list[int]) -> Version:
    return Version(".".join(str(n) for n in (nums or [0])))


def _caret(raw: str, context: str) -> Interval:
    lower = _version(raw, context)
    nums = list(lower.release) + [0] * (3 - len(lower.release))
    if nums[0] > 0:
        upper = _bump(nums[:1])
    elif nums[1] > 0:
        upper = _bump(nums[:2])
    else:
        upper = _bump(nums[:3])
    return Interval(lower, True, upper, False)


def _tilde(raw: str, context: str) -> Interval:
    lower = _version(raw, context)
    release = list(lower.release)
    upper = _bump(release[:2]) if len(release) >= 2 else _bump(release[:1])
    return Interval(lower, True, upper, False)


def _bare(raw: str, context: str) -> Interval:
    if raw in _WILDCARDS:
        return Interval()
    nums, partial = _numeric_prefix(raw)
    if partial:
        if not nums:
            return Interval()
        return Interval(_from_nums(nums), True, _bump(nums), False)
    v = _version(raw, context)
    return Interval(v, True, v, True)


def _comparator(token: str, context: str) -> Interval:
    m = _COMPARATOR_RE.match(token)
    if not m:
        raise ConfigError(f"invalid comparator `{token}` in range `{context}`")
    op, raw = m.group(1) or "", m.group(2)
    if op == "^":
        return _caret(raw, context)
    if op == "~":
        return _tilde(raw, context)
    if op in ("", "=", "=="):
        return _bare(raw, context)
    v = _version(raw, context)
    if op == ">=":
        return Interval(lower=v, lower_inclusive=True)
    if op == ">":
        return Interval(lower=v, lower_inclusive=False)
    if op == "<=":
        return Interval(upper=v, upper_inclusive=True)
    return Interval(upper=v, upper_inclusive=False)


def _hyphen(low: str, high: str, context: str) -> Interval:
    lower = _bare(low, context)
    nums, partial = _numeric_prefix(high)
    if partial and nums:
        return Interval(lower.lower, True, _bump(nums), False)
    return Interval(lower.lower, True, _version(high, context), True)


def _parse_clause(clause: str, context: str) -> Interval:
    clause = clause.strip()
    if not clause:
        return Interval()
    hyphen = _HYPHEN_RE.match(clause)
    if hyphen:
        return _hyphen(hyphen.group(1), hyphen.group(2), context)
    interval = Interval()
    for token in re.split(r"[,\s]+", _OP_SPACE_RE.sub(r"\1", clause)):
        if token:
            interval = interval.intersect(_comparator(token, context))
    return interval


def parse_range(text: str) -> VersionRange:
    text = str(text).strip()
    if not text:
        raise ConfigError("empty version range")
    clauses = text.split("||")
    if len(clauses) > 1 and any(not clause.strip() for clause in clauses):
        raise ConfigError(f"version range `{text}` has an empty `||` alternative")
    intervals = tuple(_parse_clause(clause, text) for clause in clauses)
    if all(iv.is_empty() for iv in intervals):
        raise ConfigError(f"version range `{text}` matches no version")
    return VersionRange(text, tuple(iv for iv in intervals if not iv.is_empty()))


class VersionBinder:
    """Tracks which document is the ground truth for which version range."""

    def __init__(self, units: Iterable[DocumentUnit]) -> None:
        self._units = {unit.path: unit for unit in units}
        self._bindings: dict[str, VersionRange] = {}

    @property
    def bindings(self) -> dict[str, VersionRange]:
        return dict(self._bindings)

    def supersedes(self, newer: str, older: str) -> bool:
        """True when ``newer`` reaches ``older`` through supersession edges."""
        seen = {newer}
        queue = deque([newer])
        while queue:
            current = queue.popleft()
            for nxt in self._successors(current):
                if nxt == older:
                    return True
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return False

    def _successors(self, path: str) -> list[str]:
        unit = self._units.get(path)
        out = list(unit.supersedes) if unit else []
        out.extend(p for p, other in self._units.items() if other.replaced_by == path)
        return out

    def _conflicts(self, unit: DocumentUnit, rng: VersionRange, other: DocumentUnit, other_rng: VersionRange) -> bool:
        if other.path == unit.path or other.category != unit.category:
            return False
        if unit.is_retired or other.is_retired:
            return False
        if not rng.overlaps(other_rng):
            return False
        return not (self.supersedes(unit.path, other.path) or self.supersedes(other.path, unit.path))

    def conflicts_for(self, unit_path: str, version_range: str | VersionRange) -> list[str]:
        unit = self._require(unit_path)
        rng = parse_range(version_range) if isinstance(version_range, str) else version_range
        return [
            path
            for path, other_rng in sorted(self._bindings.items())
            if self._conflicts(unit, rng, self._units[path], other_rng)
        ]

    def bind(self, unit_path: str, version_range: str | VersionRange) -> None:
        rng = parse_range(version_range) if isinstance(version_range, str) else version_range
        conflicts = self.conflicts_for(unit_path, rng)
        if conflicts:
            names = ", ".join(conflicts)
            raise VersionConflictError(
                f"{unit_path}: version range `{rng}` overlaps {names} and neither supersedes the other",
                unit_path=unit_path,
                conflicts=conflicts,
            )
        self._bindings[unit_path] = rng

    def _require(self, unit_path: str) -> DocumentUnit:
        unit = self._units.get(unit_path)
        if unit is None:
            raise CorpusError(f"unknown document unit: {unit_path}")
        return unit

    def check(self) -> list[Finding]:
        """Report every conflicting pair of version-tagged units once, without binding them."""
        findings: list[Finding] = []
        tagged: list[tuple[DocumentUnit, VersionRange]] = []
        for path in sorted(self._units):
            unit = self._units[path]
            if not unit.version_tag:
                continue
            try:
                tagged.append((unit, parse_range(unit.version_tag)))
            except ConfigError as exc:
                findings.append(Finding(source=path, kind=FindingKind.INVALID_VERSION, detail=str(exc)))
        for i, (unit, rng) in enumerate(tagged):
            for other, other_rng in tagged[:i]:
                if self._conflicts(unit, rng, other, other_rng):
                    findings.append(
                        Finding(
                            source=unit.path,
                            kind=FindingKind.VERSION_CONFLICT,
                            detail=(
                                f"version `{rng}` overlaps `{other_rng}` of {other.path}; "
                                "mark one as superseding the other"
                            ),
                            related=(other.path,),
                        )
                    )
        return findings


def check_lifecycle(units: Iterable[DocumentUnit]) -> list[Finding]:
    by_path = {unit.path: unit for unit in units}
    binder = VersionBinder(by_path.values())
    findings: list[Finding] = []

    def add(path: str, detail: str) -> None:
        findings.append(Finding(source=path, kind=FindingKind.LIFECYCLE, detail=detail))

    for path in sorted(by_path):
        unit = by_path[path]
        if unit.status is Status.REMOVED and not unit.replaced_by:
            add(path, "removed document must name its replacement in `replaced_by`")
        if unit.replaced_by and unit.replaced_by not in by_path:
            add(path, f"replaced_by points at unknown document `{unit.replaced_by}`")
        for target in unit.supersedes:
            if target == path:
                add(path, "document cannot supersede itself")
            elif target not in by_path:
                add(path, f"supersedes unknown document `{target}`")
        if path not in unit.supersedes and binder.supersedes(path, path):
            add(path, "supersession cycle")
    return findings
