"""Configuration models for event sources."""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Dict, Literal, Mapping, MutableMapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .exceptions import ConfigurationError

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


class EventSourceSettings(BaseModel):
    """Settings that describe how an :class:`~event_source.EventSource` behaves."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    compaction: Literal["stable", "unstable", "swap-pop"] = Field(
        default="stable",
        description="Removal strategy applied before each dispatch",
    )
    filters: bool = Field(
        default=True,
        description="Whether listeners may be registered with filter predicates.",
    )
    name: str | None = Field(default=None, description="Label used in log records")
    track_metrics: bool = Field(
        default=False,
        description="If True a MetricsCollector is attached when none is supplied.",
    )


def build_settings_from_dict(raw: Mapping[str, Any]) -> EventSourceSettings:
    """Build :class:`EventSourceSettings` from a plain mapping."""

    try:
        return EventSourceSettings.model_validate(dict(raw))
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid event source settings: {exc}") from exc


def load_settings(path: Path) -> EventSourceSettings:
    """Load settings from a JSON or YAML file at ``path``."""

    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    with path.open("r", encoding="utf-8") as handle:
        try:
            if path.suffix.lower() in (".yaml", ".yml"):
                data = yaml.safe_load(handle)
            else:
                data = json.load(handle)
        except (yaml.YAMLError, json.JSONDecodeError) as exc:
            raise ConfigurationError(f"Unable to parse configuration file {path}") from exc

    if data is None:
        data = {}
    if not isinstance(data, MutableMapping):
        raise ConfigurationError("Configuration file must contain a mapping")
    return build_settings_from_dict(data)


def _parse_bool(key: str, value: str) -> bool:
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ConfigurationError(f"{key} must be a boolean flag, got {value!r}")


def settings_from_env(
    environ: Mapping[str, str] | None = None, prefix: str = "EVENT_SOURCE_"
) -> EventSourceSettings:
    """Build settings from ``EVENT_SOURCE_*`` environment variables."""

    environ = os.environ if environ is None else environ
    raw: Dict[str, Any] = {}

    compaction = environ.get(f"{prefix}COMPACTION")
    if compaction:
        raw["compaction"] = compaction.strip().lower()
    name = environ.get(f"{prefix}NAME")
    if name:
        raw["name"] = name
    for field_name in ("filters", "track_metrics"):
        key = f"{prefix}{field_name.upper()}"
        if environ.get(key):
            raw[field_name] = _parse_bool(key, environ[key])

    return build_settings_from_dict(raw)


__all__ = [
    "EventSourceSettings",
    "build_settings_from_dict",
    "load_settings",
    "settings_from_env",
]
