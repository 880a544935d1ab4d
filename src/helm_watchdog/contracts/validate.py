from __future__ import annotations

import json
from functools import lru_cache
from typing import Any

import jsonschema

from ..errors import ScriptError
from ..exit_codes import ERR_VALIDATION
from .schemas import schemas_root

IMAGE_VALIDATION_SCHEMA = "helm_watchdog.image-validation.v1"


@lru_cache(maxsize=None)
def load_schema(schema_name: str) -> dict[str, Any]:
    path = schemas_root() / f"{schema_name}.schema.json"
    if not path.is_file():
        raise ScriptError(f"unknown schema: {schema_name}", ERR_VALIDATION)
    return json.loads(path.read_text(encoding="utf-8"))


def schema_errors(schema_name: str, payload: Any) -> list[str]:
    """Return `pointer: message` rows for every violation, sorted by location."""
    schema = load_schema(schema_name)
    validator = jsonschema.validators.validator_for(schema)(schema)
    rows = []
    for err in validator.iter_errors(payload):
        pointer = "/".join(str(p) for p in err.absolute_path) or "<root>"
        rows.append(f"{pointer}: {err.message}")
    return sorted(rows)
