"""Exporter configuration."""

from __future__ import annotations

import dataclasses
import json
import logging
import os
from collections.abc import Mapping
from pathlib import Path
from types import MappingProxyType
from typing import Any

from rtl433_exporter.exceptions import ConfigError

#: Default freshness window for gauge export, in seconds.
DEFAULT_STALENESS_SECONDS: float = 300.0


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def parse_area_map(text: str) -> dict[str, str]:
    """Parse ``id=name`` pairs separated by commas.

    Blank entries are ignored. ``ConfigError`` is raised for entries that do
    not have a non-empty id and name.
    """
    areas: dict[str, str] = {}
    for entry in text.split(","):
        entry = entry.strip()
        if not entry:
            continue
        device_id, sep, name = entry.partition("=")
        device_id, name = device_id.strip(), name.strip()
        if not sep or not device_id or not name:
            raise ConfigError(f"Invalid area map entry {entry!r}, expected id=name")
        areas[device_id] = name
    return areas


def validate_area_map(areas: Mapping[Any, Any], *, source: str = "area map") -> dict[str, str]:
    """Check that every id and area name is a non-empty string."""
    validated: dict[str, str] = {}
    for device_id, name in areas.items():
        if not isinstance(device_id, str) or not device_id:
            raise ConfigError(f"Invalid device id {device_id!r} in {source}")
        if not isinstance(name, str) or not name:
            raise ConfigError(f"Invalid area name {name!r} for id {device_id!r} in {source}")
        validated[device_id] = name
    return validated


def load_area_map_file(path: str | Path) -> dict[str, str]:
    """Load an area map from a JSON object of ``{"id": "name"}``."""
    try:
        decoded = json.loads(Path(path).read_text(encoding="utf-8"))
    except OSError as exc:
        raise ConfigError(f"Cannot read area map file {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Area map file {path} is not valid JSON: {exc}") from exc

    if not isinstance(decoded, dict):
        raise ConfigError(f"Area map file {path} must contain a JSON object")
    # Device ids are numbers in some rtl_433 decoders; keys compare as strings.
    return validate_area_map({str(k): v for k, v in decoded.items()}, source=str(path))


@dataclasses.dataclass(frozen=True)
class ExporterConfig:
    """Exporter configuration.

    Parameters
    ----------
    host : str
        Interface the HTTP server binds to.
    port : int
        Port the HTTP server listens on. rtl_433 writes and Prometheus
        scrapes share this port.
    area_map : Mapping[str, str]
        Device id to area name. Unmapped ids are exported under their own id.
    area_map_file : str or None
        Optional JSON file with more area map entries. Inline entries
        win over file entries for the same id.
    staleness_seconds : float
        Gauges for an area are only exported while its latest sample is
        younger than this.
    namespace : str
        Metric name prefix (``rtl`` gives ``rtl_temperature`` etc).
    log_level : str
        Root logging level name.
    access_log : bool
        Enable the aiohttp access log.
    """

    host: str = "0.0.0.0"
    port: int = 9550
    area_map: Mapping[str, str] = dataclasses.field(default_factory=dict)
    area_map_file: str | None = None
    staleness_seconds: float = DEFAULT_STALENESS_SECONDS
    namespace: str = "rtl"
    log_level: str = "INFO"
    access_log: bool = False

    def __post_init__(self) -> None:
        if self.staleness_seconds <= 0:
            raise ConfigError("staleness_seconds must be positive")
        if not 0 < self.port < 65536:
            raise ConfigError(f"Invalid port {self.port}")
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ConfigError(f"Unknown log level {self.log_level!r}")
        validate_area_map(self.area_map)

    def resolved_area_map(self) -> Mapping[str, str]:
        """Return the effective, read-only area map."""
        merged: dict[str, str] = {}
        if self.area_map_file:
            merged.update(load_area_map_file(self.area_map_file))
        merged.update(self.area_map)
        return MappingProxyType(merged)

    @classmethod
    def from_env(cls, **overrides: Any) -> ExporterConfig:
        """Create configuration from ``RTL433_*`` environment variables.

        Explicit keyword arguments override environment values. ``None``
        overrides are ignored so CLI flags that were not given fall through
        to the environment.
        """
        env = os.environ
        overrides = {k: v for k, v in overrides.items() if v is not None}

        _ENV_CONFIG_MAP = {
            "RTL433_HOST": "host",
            "RTL433_AREA_MAP_FILE": "area_map_file",
            "RTL433_NAMESPACE": "namespace",
            "RTL433_LOG_LEVEL": "log_level",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        try:
            port_env = env.get("RTL433_PORT")
            if port_env is not None and "port" not in overrides:
                config_kwargs["port"] = int(port_env)

            staleness_env = env.get("RTL433_STALENESS_SECONDS")
            if staleness_env is not None and "staleness_seconds" not in overrides:
                config_kwargs["staleness_seconds"] = float(staleness_env)
        except ValueError as exc:
            raise ConfigError(f"Invalid numeric environment value: {exc}") from exc

        area_env = env.get("RTL433_AREA_MAP")
        if area_env is not None and "area_map" not in overrides:
            config_kwargs["area_map"] = parse_area_map(area_env)

        if "access_log" not in overrides:
            config_kwargs["access_log"] = _env_bool(env.get("RTL433_ACCESS_LOG"), False)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
