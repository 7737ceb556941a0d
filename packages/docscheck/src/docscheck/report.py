from __future__ import annotations

import json
from collections import Counter
from pathlib import Path

from .core.schema import validate_payload
from .model import Finding
from .schemas import schemas_root

REPORT_SCHEMA = schemas_root() / "report.schema.json"


def build_payload(
    corpus_root: Path,
    findings: list[Finding],
    rows: list[dict[str, object]] | None = None,
    run_id: str | None = None,
) -> dict[str, object]:
    payload: dict[str, object] = {
        "schema_version": 1,
        "tool": "docscheck",
        "status": "pass" if not findings else "fail",
        "corpus_root": str(corpus_root),
        "checks": rows or [],
        "findings": [f.to_dict() for f in findings],
    }
    if run_id:
        payload["run_id"] = run_id
    return payload


def render_json(payload: dict[str, object]) -> str:
    validate_payload(payload, REPORT_SCHEMA)
    return json.dumps(payload, indent=2, sort_keys=True)


def render_text(findings: list[Finding]) -> str:
    if not findings:
        return "docscheck: no findings"
    lines = [f.render() for f in findings]
    counts = Counter(f.kind.value for f in findings)
    summary = ", ".join(f"{kind}={counts[kind]}" for kind in sorted(counts))
    lines.append(f"docscheck: {len(findings)} finding(s) ({summary})")
    return "\n".join(lines)
