from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal

OutputFormat = Literal["text", "json"]


@dataclass(frozen=True)
class RunContext:
    run_id: str
    output_format: OutputFormat
    verbose: bool
    quiet: bool
    log_json: bool

    @classmethod
    def from_args(
        cls,
        run_id: str | None = None,
        output_format: OutputFormat | None = None,
        verbose: bool = False,
        quiet: bool = False,
        log_json: bool = False,
    ) -> "RunContext":
        default_run = f"docscheck-{datetime.now(timezone.utc).strftime('%Y%m%d-%H%M%S')}"
        resolved_format = output_format or os.environ.get("DOCSCHECK_FORMAT", "text")
        if resolved_format not in ("text", "json"):
            resolved_format = "text"
        return cls(
            run_id=run_id or os.environ.get("RUN_ID", default_run),
            output_format=resolved_format,  # type: ignore[arg-type]
            verbose=verbose,
            quiet=quiet,
            log_json=log_json,
        )
