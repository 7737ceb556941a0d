from __future__ import annotations

from datetime import date
from pathlib import Path

from .process import run_command


def last_commit_date(repo_path: Path, file_path: Path) -> date | None:
    """Committer date of the last commit touching ``file_path``, if git knows it."""
    res = run_command(["git", "log", "-1", "--format=%cs", "--", str(file_path)], repo_path, timeout_seconds=30)
    if res.code != 0:
        return None
    raw = res.stdout.strip()
    if not raw:
        return None
    try:
        return date.fromisoformat(raw)
    except ValueError:
        return None
