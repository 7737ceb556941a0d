from __future__ import annotations

import json
from pathlib import Path

import jsonschema

from ..errors import ScriptError
from ..exit_codes import ERR_INTERNAL


def load_json(path: Path) -> dict[str, object]:
    return json.loads(path.read_text(encoding="utf-8"))


def schema_errors(payload: object, schema_path: Path) -> list[str]:
    """Every violation of ``schema_path`` in ``payload``, as ``pointer: message`` strings."""
    schema = load_json(schema_path)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator = validator_cls(schema)
    errors: list[str] = []
    for err in sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.absolute_path]):
        pointer = "/".join(str(p) for p in err.absolute_path) or "<root>"
        errors.append(f"{pointer}: {err.message}")
    return errors


def validate_payload(payload: object, schema_path: Path, code: int = ERR_INTERNAL) -> None:
    errors = schema_errors(payload, schema_path)
    if errors:
        raise ScriptError(f"schema validation failed at {errors[0]}", code, "schema_error")
