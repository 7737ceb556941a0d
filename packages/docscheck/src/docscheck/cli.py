from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

from . import __version__
from .checks import CheckInput, check_ids, run_checks, select_checks
from .config import DocsConfig, load_config
from .core.context import RunContext
from .core.logging import log_event
from .corpus import Corpus, load_corpus
from .errors import ConfigError, ScriptError, VersionConflictError
from .exit_codes import ERR_FINDINGS, ERR_INTERNAL, OK
from .index import check_index, generate, write_index
from .model import Finding, FindingKind
from .report import build_payload, render_json, render_text
from .versions import VersionBinder

SINGLE_CHECK_COMMANDS = ("links", "freshness", "versions", "lifecycle")
COMMANDS = ("check", *SINGLE_CHECK_COMMANDS, "bind", "index")
_GLOBAL_VALUE_OPTIONS = {"--config", "--run-id"}
_GLOBAL_FLAGS = {"--log-json", "--verbose", "--quiet", "--version", "-h", "--help"}
_SCOPED_VALUE_OPTIONS = {"--format", "--out-file", "--stale-threshold-days", "--as-of", "--only"}


def _positive_int(raw: str) -> int:
    try:
        value = int(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected an integer, got `{raw}`") from exc
    if value <= 0:
        raise argparse.ArgumentTypeError(f"expected a positive integer, got `{raw}`")
    return value


def _iso_date(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got `{raw}`") from exc


def _add_output_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--format", choices=["text", "json"], default=None, help="output format")
    p.add_argument("--out-file", help="also write the rendered report to this path")


def _add_scan_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("corpus_root", help="directory holding the Markdown corpus")
    p.add_argument("--stale-threshold-days", type=_positive_int, help="staleness threshold (default 180)")
    p.add_argument("--as-of", type=_iso_date, help="reference date for freshness (default today)")
    p.add_argument("--git-dates", action="store_true", help="infer missing last_reviewed dates from git history")
    _add_output_args(p)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="docscheck", description="Consistency checks for Markdown documentation corpora.")
    p.add_argument("--version", action="version", version=f"docscheck {__version__}")
    p.add_argument("--config", help="config file (default <corpus-root>/.docscheck.yml)")
    p.add_argument("--run-id", help="run identifier used in logs")
    p.add_argument("--log-json", action="store_true", help="emit log events as JSON lines on stderr")
    vg = p.add_mutually_exclusive_group()
    vg.add_argument("--verbose", action="store_true", help="enable debug log events")
    vg.add_argument("--quiet", action="store_true", help="only log errors")
    sub = p.add_subparsers(dest="cmd", required=True)

    check_p = sub.add_parser("check", help="run every check against a corpus")
    _add_scan_args(check_p)
    check_p.add_argument("--only", help=f"comma separated subset of checks ({', '.join(check_ids())})")

    for name in SINGLE_CHECK_COMMANDS:
        single = sub.add_parser(name, help=f"run only the `{name}` check")
        _add_scan_args(single)

    bind_p = sub.add_parser("bind", help="try binding a document to a version range")
    bind_p.add_argument("corpus_root")
    bind_p.add_argument("unit_path", help="corpus-relative path of the document")
    bind_p.add_argument("version_range", help="version range, for example `1.x` or `>=1.2,<2`")
    _add_output_args(bind_p)

    index_p = sub.add_parser("index", help="print, write or verify the corpus index")
    index_p.add_argument("corpus_root")
    mode = index_p.add_mutually_exclusive_group()
    mode.add_argument("--write", action="store_true", help="write the index into the corpus")
    mode.add_argument("--check", action="store_true", help="fail when the index on disk is out of date")
    index_p.add_argument("--index-path", help="corpus-relative index path (default README.md)")
    index_p.add_argument("--title", help="index heading")
    _add_output_args(index_p)
    return p


def normalize_argv(argv: list[str]) -> list[str]:
    """Treat ``docscheck <corpus-root> ...`` as ``docscheck check <corpus-root> ...``.

    Global options stay in front of the inserted command; ``check`` options
    given before the corpus root move behind it.
    """
    global_args: list[str] = []
    scoped: list[str] = []
    i = 0
    while i < len(argv):
        token = argv[i]
        if not token.startswith("-"):
            if token in COMMANDS:
                return argv
            return [*global_args, "check", *scoped, *argv[i:]]
        name = token.split("=", 1)[0]
        target = global_args if name in _GLOBAL_VALUE_OPTIONS or name in _GLOBAL_FLAGS else scoped
        if "=" not in token and (name in _GLOBAL_VALUE_OPTIONS or name in _SCOPED_VALUE_OPTIONS):
            target.extend(argv[i : i + 2])
            i += 2
            continue
        target.append(token)
        i += 1
    return argv


def _load(ctx: RunContext, ns: argparse.Namespace) -> tuple[Corpus, DocsConfig]:
    root = Path(ns.corpus_root)
    config = load_config(root, Path(ns.config) if ns.config else None).with_overrides(
        stale_threshold_days=getattr(ns, "stale_threshold_days", None),
        infer_review_dates=getattr(ns, "git_dates", False),
        index_path=getattr(ns, "index_path", None),
    )
    log_event(ctx, "info", "corpus", "load", root=root, config=config.source or "defaults")
    corpus = load_corpus(root, config)
    log_event(ctx, "debug", "corpus", "loaded", files=len(corpus.files))
    return corpus, config


def _emit(ctx: RunContext, ns: argparse.Namespace, corpus: Corpus, findings: list[Finding], rows: list[dict[str, object]]) -> int:
    if ctx.output_format == "json":
        rendered = render_json(build_payload(corpus.root, findings, rows, ctx.run_id))
    else:
        rendered = render_text(findings)
    print(rendered)
    if ns.out_file:
        out = Path(ns.out_file)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(rendered + "\n", encoding="utf-8")
    return OK if not findings else ERR_FINDINGS


def _run_scan(ctx: RunContext, ns: argparse.Namespace) -> int:
    corpus, config = _load(ctx, ns)
    if ns.cmd == "check":
        only = [s.strip() for s in ns.only.split(",") if s.strip()] if ns.only else None
    else:
        only = [ns.cmd]
    selected = select_checks(only, config)
    report = run_checks(ctx, CheckInput(corpus, config, ns.as_of), selected)
    log_event(ctx, "info", "checks", "done", checks=len(selected), findings=len(report.findings))
    return _emit(ctx, ns, corpus, report.findings, report.rows)


def _run_bind(ctx: RunContext, ns: argparse.Namespace) -> int:
    corpus, _ = _load(ctx, ns)
    binder = VersionBinder(corpus.units.values())
    for unit in corpus.sorted_units():
        if unit.path == ns.unit_path or not unit.version_tag:
            continue
        try:
            binder.bind(unit.path, unit.version_tag)
        except (VersionConflictError, ConfigError) as exc:
            log_event(ctx, "debug", "versions", "skip-existing", unit=unit.path, reason=str(exc))
    findings: list[Finding] = []
    try:
        binder.bind(ns.unit_path, ns.version_range)
    except VersionConflictError as exc:
        findings.append(
            Finding(
                source=exc.unit_path,
                kind=FindingKind.VERSION_CONFLICT,
                detail=exc.message,
                related=tuple(exc.conflicts),
            )
        )
    rows = [{"id": "bind", "status": "fail" if findings else "pass", "duration_ms": 0, "finding_count": len(findings)}]
    return _emit(ctx, ns, corpus, findings, rows)


def _run_index(ctx: RunContext, ns: argparse.Namespace) -> int:
    corpus, config = _load(ctx, ns)
    title = ns.title or config.index.title
    units = corpus.units.values()
    if ns.write:
        target = write_index(corpus.root, units, config.index.path, title)
        log_event(ctx, "info", "index", "write", path=target)
        print(target)
        return OK
    if ns.check:
        findings = check_index(corpus.root, units, config.index.path, title)
        rows = [{"id": "index", "status": "fail" if findings else "pass", "duration_ms": 0, "finding_count": len(findings)}]
        return _emit(ctx, ns, corpus, findings, rows)
    sys.stdout.write(generate(units, config.index.path, title))
    return OK


def main(argv: list[str] | None = None) -> int:
    p = build_parser()
    ns = p.parse_args(normalize_argv(list(sys.argv[1:] if argv is None else argv)))
    ctx = RunContext.from_args(ns.run_id, ns.format, ns.verbose, ns.quiet, ns.log_json)
    try:
        log_event(ctx, "debug", "cli", "start", cmd=ns.cmd, fmt=ctx.output_format)
        if ns.cmd == "bind":
            return _run_bind(ctx, ns)
        if ns.cmd == "index":
            return _run_index(ctx, ns)
        return _run_scan(ctx, ns)
    except ScriptError as exc:
        log_event(ctx, "error", "cli", "fail", kind=exc.kind, code=exc.code)
        if ctx.output_format == "json":
            print(
                json.dumps(
                    {
                        "schema_version": 1,
                        "tool": "docscheck",
                        "status": "fail",
                        "error": {"message": str(exc), "kind": exc.kind, "code": exc.code},
                    },
                    sort_keys=True,
                ),
                file=sys.stderr,
            )
        else:
            print(f"docscheck: {exc}", file=sys.stderr)
        return exc.code
    except Exception as exc:  # pragma: no cover
        print(f"docscheck: internal error: {exc}", file=sys.stderr)
        return ERR_INTERNAL


if __name__ == "__main__":
    raise SystemExit(main())
