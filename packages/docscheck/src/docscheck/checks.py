from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from .config import DocsConfig
from .core.context import RunContext
from .core.logging import log_event
from .corpus import Corpus
from .errors import ScriptError
from .exit_codes import ERR_USAGE
from .freshness import scan
from .index import check_index
from .links import validate_sources
from .model import Finding
from .versions import VersionBinder, check_lifecycle


@dataclass(frozen=True)
class CheckInput:
    corpus: Corpus
    config: DocsConfig
    as_of: date | None = None


CheckFunc = Callable[[CheckInput], list[Finding]]


@dataclass(frozen=True)
class CheckDef:
    check_id: str
    description: str
    fn: CheckFunc
    default: bool = True


@dataclass
class CheckReport:
    rows: list[dict[str, object]] = field(default_factory=list)
    findings: list[Finding] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.findings


def _links(inp: CheckInput) -> list[Finding]:
    return validate_sources(inp.corpus.root, inp.corpus.files)


def _freshness(inp: CheckInput) -> list[Finding]:
    return scan(
        inp.corpus.units.values(),
        inp.config.stale_threshold_days,
        inp.as_of,
        inp.config.required_freshness,
    )


def _versions(inp: CheckInput) -> list[Finding]:
    return VersionBinder(inp.corpus.units.values()).check()


def _lifecycle(inp: CheckInput) -> list[Finding]:
    return check_lifecycle(inp.corpus.units.values())


def _index(inp: CheckInput) -> list[Finding]:
    cfg = inp.config.index
    return check_index(inp.corpus.root, inp.corpus.units.values(), cfg.path, cfg.title)


CHECKS: tuple[CheckDef, ...] = (
    CheckDef("links", "internal links and heading anchors resolve", _links),
    CheckDef("freshness", "required-freshness documents were reviewed within the threshold", _freshness),
    CheckDef("versions", "no two active documents claim the same version range", _versions),
    CheckDef("lifecycle", "supersession and replacement pointers are consistent", _lifecycle),
    CheckDef("index", "corpus index matches the generated index", _index, default=False),
)


def check_ids() -> list[str]:
    return [c.check_id for c in CHECKS]


def select_checks(only: list[str] | None, config: DocsConfig) -> list[CheckDef]:
    if only:
        unknown = sorted(set(only) - set(check_ids()))
        if unknown:
            raise ScriptError(f"unknown check(s): {', '.join(unknown)} (known: {', '.join(check_ids())})", ERR_USAGE)
        return [c for c in CHECKS if c.check_id in only]
    return [c for c in CHECKS if c.default or (c.check_id == "index" and config.index.enforce)]


def run_checks(ctx: RunContext, inp: CheckInput, selected: list[CheckDef]) -> CheckReport:
    """Run every selected check to completion and collect all findings."""
    report = CheckReport()
    for chk in selected:
        start = time.perf_counter()
        findings = sorted(chk.fn(inp), key=Finding.sort_key)
        elapsed_ms = int((time.perf_counter() - start) * 1000)
        log_event(ctx, "debug", "checks", "ran", check=chk.check_id, findings=len(findings), duration_ms=elapsed_ms)
        report.rows.append(
            {
                "id": chk.check_id,
                "description": chk.description,
                "status": "pass" if not findings else "fail",
                "duration_ms": elapsed_ms,
                "finding_count": len(findings),
            }
        )
        report.findings.extend(findings)
    return report
