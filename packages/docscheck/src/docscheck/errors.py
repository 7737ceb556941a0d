from __future__ import annotations

from dataclasses import dataclass, field

from .exit_codes import ERR_CONFIG, ERR_CORPUS, ERR_FINDINGS, ERR_INTERNAL


@dataclass
class ScriptError(Exception):
    message: str
    code: int = ERR_INTERNAL
    kind: str = "generic_error"

    def __str__(self) -> str:
        return self.message


@dataclass
class CorpusError(ScriptError):
    """Structural problem with the corpus itself; aborts the run."""

    code: int = ERR_CORPUS
    kind: str = "corpus_error"


@dataclass
class ConfigError(ScriptError):
    code: int = ERR_CONFIG
    kind: str = "config_error"


@dataclass
class VersionConflictError(ScriptError):
    code: int = ERR_FINDINGS
    kind: str = "version_conflict"
    unit_path: str = ""
    conflicts: list[str] = field(default_factory=list)
