from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from .errors import AdapterConfigurationError
from .settings import Settings, configuration_error

ENV_PREFIX = "TRADEPORT_"


def _deep_set(obj: dict[str, Any], path: list[str], value: Any) -> None:
    cur: dict[str, Any] = obj
    for key in path[:-1]:
        nxt = cur.get(key)
        if not isinstance(nxt, dict):
            nxt = {}
            cur[key] = nxt
        cur = nxt
    cur[path[-1]] = value


def _parse_env_value(raw: str) -> Any:
    try:
        value = yaml.safe_load(raw)
    except yaml.YAMLError:
        return raw
    # keep numbers as text so fees reach Decimal without a float round trip
    if isinstance(value, float):
        return raw
    return value


def _apply_env_overrides(data: dict[str, Any], *, prefix: str = ENV_PREFIX) -> dict[str, Any]:
    merged: dict[str, Any] = dict(data)

    for key, raw_value in os.environ.items():
        if not key.startswith(prefix):
            continue

        remainder = key[len(prefix) :]
        if remainder in {"CONFIG", "LOG_LEVEL"}:
            continue

        path = [p.lower() for p in remainder.split("__") if p]
        if not path:
            continue

        _deep_set(merged, path, _parse_env_value(raw_value))

    return merged


def load_settings(config_path: str | Path | None = None) -> Settings:
    """Load settings from YAML, apply environment overrides and validate.

    Raises:
        AdapterConfigurationError: If the file or any setting is invalid.
    """
    if config_path is None:
        config_path = os.environ.get(f"{ENV_PREFIX}CONFIG", "config.yml")

    path = Path(config_path)
    if path.exists():
        raw = path.read_text(encoding="utf-8")
        try:
            loaded = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise AdapterConfigurationError(f"Cannot parse config file {path}: {exc}") from exc
        if loaded is None:
            data: dict[str, Any] = {}
        elif isinstance(loaded, dict):
            data = loaded
        else:
            raise AdapterConfigurationError(f"Config root must be a mapping, got: {type(loaded)!r}")
    else:
        data = {}

    data = _apply_env_overrides(data)

    try:
        return Settings.model_validate(data)
    except ValidationError as exc:
        raise configuration_error(exc, prefix="Invalid configuration") from exc
