from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from .core.schema import schema_errors
from .errors import ConfigError
from .model import REQUIRED_FRESHNESS, Category
from .schemas import schemas_root

CONFIG_FILENAME = ".docscheck.yml"
DEFAULT_STALE_THRESHOLD_DAYS = 180
DEFAULT_EXCLUDE: tuple[str, ...] = ("_generated/**", "node_modules/**", ".git/**")


@dataclass(frozen=True)
class IndexConfig:
    path: str = "README.md"
    title: str = "Documentation Index"
    enforce: bool = False


@dataclass(frozen=True)
class DocsConfig:
    stale_threshold_days: int = DEFAULT_STALE_THRESHOLD_DAYS
    required_freshness: frozenset[Category] = REQUIRED_FRESHNESS
    exclude: tuple[str, ...] = DEFAULT_EXCLUDE
    categories: tuple[tuple[str, Category], ...] = ()
    index: IndexConfig = field(default_factory=IndexConfig)
    infer_review_dates: bool = False
    source: Path | None = None

    def with_overrides(
        self,
        stale_threshold_days: int | None = None,
        infer_review_dates: bool | None = None,
        index_path: str | None = None,
    ) -> "DocsConfig":
        updated = self
        if stale_threshold_days is not None:
            updated = replace(updated, stale_threshold_days=validate_threshold(stale_threshold_days))
        if infer_review_dates:
            updated = replace(updated, infer_review_dates=True)
        if index_path:
            updated = replace(updated, index=replace(updated.index, path=index_path))
        return updated


def validate_threshold(value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigError(f"stale threshold must be a positive integer, got {value!r}")
    return value


def _env_threshold() -> int:
    raw = os.environ.get("DOCSCHECK_STALE_THRESHOLD_DAYS")
    if raw is None or not raw.strip():
        return DEFAULT_STALE_THRESHOLD_DAYS
    try:
        return validate_threshold(int(raw))
    except ValueError as exc:
        raise ConfigError(f"DOCSCHECK_STALE_THRESHOLD_DAYS must be an integer, got `{raw}`") from exc


def _parse_category(raw: str, where: str) -> Category:
    try:
        return Category.parse(raw)
    except ValueError as exc:
        allowed = ", ".join(c.value for c in Category)
        raise ConfigError(f"{where}: unknown category `{raw}` (allowed: {allowed})") from exc


def config_from_mapping(data: dict[str, Any], source: Path | None = None) -> DocsConfig:
    where = str(source) if source else "config"
    errors = schema_errors(data, schemas_root() / "config.schema.json")
    if errors:
        raise ConfigError(f"{where}: invalid configuration at {errors[0]}")
    base = DocsConfig(stale_threshold_days=_env_threshold(), source=source)
    required = base.required_freshness
    if "required_freshness" in data:
        required = frozenset(_parse_category(str(raw), where) for raw in data["required_freshness"])
    categories = tuple(
        (str(pattern), _parse_category(str(raw), where))
        for pattern, raw in (data.get("categories") or {}).items()
    )
    index_data = data.get("index") or {}
    return replace(
        base,
        stale_threshold_days=int(data.get("stale_threshold_days", base.stale_threshold_days)),
        required_freshness=required,
        exclude=tuple(data.get("exclude", DEFAULT_EXCLUDE)),
        categories=categories,
        index=IndexConfig(
            path=str(index_data.get("path", IndexConfig.path)),
            title=str(index_data.get("title", IndexConfig.title)),
            enforce=bool(index_data.get("enforce", IndexConfig.enforce)),
        ),
        infer_review_dates=bool(data.get("infer_review_dates", False)),
    )


def load_config(corpus_root: Path, explicit: Path | None = None) -> DocsConfig:
    """Read ``.docscheck.yml`` from the corpus root, or ``explicit`` when given.

    A missing default file yields the built-in defaults; a missing explicit
    file is an error.
    """
    path = explicit if explicit is not None else corpus_root / CONFIG_FILENAME
    if not path.is_file():
        if explicit is not None:
            raise ConfigError(f"config file not found: {path}")
        return DocsConfig(stale_threshold_days=_env_threshold())
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigError(f"cannot read config {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"{path}: invalid YAML: {exc}") from exc
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: root must be mapping")
    return config_from_mapping(data, source=path)
