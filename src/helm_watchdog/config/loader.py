from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from ..errors import ConfigError
from ..validation.status import VARIANT_NAMES

ENV_REGISTRY_HOST = "HELM_WATCHDOG_REGISTRY_HOST"
ENV_REGISTRY_NAMESPACE = "HELM_WATCHDOG_REGISTRY_NAMESPACE"
ENV_VARIANTS = "HELM_WATCHDOG_VARIANTS"


@dataclass(frozen=True)
class WatchdogSettings:
    registry_host: str
    registry_namespace: str
    variants: tuple[str, ...] = VARIANT_NAMES

    @classmethod
    def from_json(cls, payload: dict[str, Any]) -> "WatchdogSettings":
        variants = payload.get("variants", list(VARIANT_NAMES))
        if not isinstance(variants, list) or not variants:
            raise ConfigError("config key `variants` must be a non-empty list")
        return cls(
            registry_host=str(payload.get("registry_host", "")).rstrip("/"),
            registry_namespace=str(payload.get("registry_namespace", "")).strip("/"),
            variants=_check_variants(str(v) for v in variants),
        )


def default_config_path() -> Path:
    return Path(__file__).resolve().parent / "defaults.json"


def load_json_config(path: Path) -> dict[str, Any]:
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"unable to read config {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"config {path} is not valid JSON: {exc.msg} (line {exc.lineno}, col {exc.colno})") from exc
    if not isinstance(payload, dict):
        raise ConfigError(f"config {path}: root must be an object")
    return payload


def load_settings(path: str | Path | None = None, env: Mapping[str, str] | None = None) -> WatchdogSettings:
    """Load settings from a JSON file, then apply `HELM_WATCHDOG_*` overrides."""
    environ = os.environ if env is None else env
    payload = load_json_config(Path(path) if path else default_config_path())
    if environ.get(ENV_REGISTRY_HOST):
        payload["registry_host"] = environ[ENV_REGISTRY_HOST]
    if environ.get(ENV_REGISTRY_NAMESPACE):
        payload["registry_namespace"] = environ[ENV_REGISTRY_NAMESPACE]
    if environ.get(ENV_VARIANTS):
        payload["variants"] = [item.strip() for item in environ[ENV_VARIANTS].split(",") if item.strip()]
    return WatchdogSettings.from_json(payload)


def _check_variants(names: Any) -> tuple[str, ...]:
    out: list[str] = []
    for name in names:
        lowered = name.strip().lower()
        if lowered not in VARIANT_NAMES:
            raise ConfigError(f"unknown image variant `{name}`; expected one of {', '.join(VARIANT_NAMES)}")
        if lowered not in out:
            out.append(lowered)
    return tuple(out)
