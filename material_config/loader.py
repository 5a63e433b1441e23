"""
Configuration Loader (``material_config.loader``).

Responsibility
--------------
Loads a YAML configuration file and parses it into the typed
``material_config.schema`` dataclasses.  Runtime callers go through
``material_config.get_active_config()``; this module is its implementation.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Invalid values  -> ``ValueError`` from the schema ``__post_init__`` checks.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from material_config.schema import (
    DatabaseConfig,
    DispoConfig,
    LoggingConfig,
    MaterialConfig,
    TraceConfig,
)


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """Deterministic SHA-256 over the canonical JSON form of *data*."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def _optional_int(value: Any) -> int | None:
    if value is None:
        return None
    return int(value)


def parse_database(data: dict[str, Any]) -> DatabaseConfig:
    """Parse a DatabaseConfig from a dict.  ``url`` is required."""
    return DatabaseConfig(
        url=data["url"],
        echo=bool(data.get("echo", False)),
        pool_size=int(data.get("pool_size", 20)),
        max_overflow=int(data.get("max_overflow", 10)),
        pool_timeout=int(data.get("pool_timeout", 30)),
        pool_recycle=int(data.get("pool_recycle", 1800)),
    )


def parse_logging(data: dict[str, Any]) -> LoggingConfig:
    return LoggingConfig(level=str(data.get("level", "INFO")).upper())


def parse_trace(data: dict[str, Any]) -> TraceConfig:
    defaults = TraceConfig()
    return TraceConfig(
        max_depth=_optional_int(data.get("max_depth", defaults.max_depth)),
        max_records=_optional_int(data.get("max_records", defaults.max_records)),
    )


def parse_dispo(data: dict[str, Any]) -> DispoConfig:
    return DispoConfig(
        picking_requests_enabled=bool(data.get("picking_requests_enabled", True)),
    )


def parse_config(data: dict[str, Any]) -> MaterialConfig:
    """
    Parse a complete ``MaterialConfig`` from a dict.

    Raises:
        KeyError: if ``config_id``, ``version`` or ``database`` is missing.
        ValueError: if a value fails schema validation.
    """
    return MaterialConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        database=parse_database(data["database"]),
        logging=parse_logging(data.get("logging") or {}),
        trace=parse_trace(data.get("trace") or {}),
        dispo=parse_dispo(data.get("dispo") or {}),
        checksum=compute_checksum(data),
    )


def load_config(path: Path) -> MaterialConfig:
    """Load and parse the configuration file at *path*."""
    return parse_config(load_yaml_file(path))
