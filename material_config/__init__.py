"""
material_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Failure modes:
    - ``FileNotFoundError`` -- the selected configuration file does not exist.
    - ``KeyError`` / ``ValueError`` -- schema violations.

Every successful ``get_active_config()`` call emits a
``MATERIAL_CONFIG_TRACE`` log entry with the config id, version and checksum.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from material_config.loader import load_config
from material_config.schema import (
    DatabaseConfig,
    DispoConfig,
    LoggingConfig,
    MaterialConfig,
    TraceConfig,
)

_logger = logging.getLogger("material_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV_VAR = "MATERIAL_CONFIG_PATH"


def get_active_config(config_path: Path | None = None) -> MaterialConfig:
    """The ONLY public configuration entrypoint.

    Resolution order: explicit ``config_path``, then the
    ``MATERIAL_CONFIG_PATH`` environment variable, then the bundled
    ``sets/default.yaml``.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        KeyError: If a required key is missing.
        ValueError: If a value fails validation.
    """
    path = config_path
    if path is None:
        env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
        path = Path(env_path) if env_path else _DEFAULT_CONFIG_PATH

    config = load_config(path)

    _logger.info(
        "MATERIAL_CONFIG_TRACE",
        extra={
            "trace_type": "MATERIAL_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "config_path": str(path),
        },
    )
    return config


__all__ = [
    "get_active_config",
    "CONFIG_PATH_ENV_VAR",
    "MaterialConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "TraceConfig",
    "DispoConfig",
]
