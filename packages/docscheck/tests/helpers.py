from __future__ import annotations

import os
import subprocess
import sys
from datetime import date
from pathlib import Path

from docscheck.model import Category, DocumentUnit, Status

ROOT = Path(__file__).resolve().parents[3]


def run_docscheck(*args: str, cwd: Path | None = None) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    env["PYTHONPATH"] = str(ROOT / "packages/docscheck/src")
    env.setdefault("RUN_ID", "pytest-run")
    return subprocess.run(
        [sys.executable, "-m", "docscheck", *args],
        cwd=(cwd or ROOT),
        env=env,
        text=True,
        capture_output=True,
        check=False,
    )


def unit(
    path: str,
    category: Category = Category.GUIDE,
    last_reviewed: date | None = None,
    version_tag: str | None = None,
    status: Status = Status.ACTIVE,
    supersedes: tuple[str, ...] = (),
    replaced_by: str | None = None,
    owner: str = "docs-team",
    title: str | None = None,
) -> DocumentUnit:
    return DocumentUnit(
        path=path,
        category=category,
        owner=owner,
        last_reviewed=last_reviewed,
        version_tag=version_tag,
        status=status,
        supersedes=supersedes,
        replaced_by=replaced_by,
        title=title,
    )
