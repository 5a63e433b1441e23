"""
MaterialConfig schema.

Frozen dataclasses for the runtime configuration.  YAML files are parsed into
these types by the loader; nothing else in the system reads configuration
files.
"""

from __future__ import annotations

from dataclasses import dataclass, field

VALID_LOG_LEVELS = frozenset({"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"})


@dataclass(frozen=True)
class DatabaseConfig:
    """Connection settings passed to ``init_engine_from_url``."""

    url: str
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 1800

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("database.url is required")
        if self.pool_size < 1:
            raise ValueError(f"database.pool_size must be >= 1, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ValueError(
                f"database.max_overflow must be >= 0, got {self.max_overflow}"
            )


@dataclass(frozen=True)
class LoggingConfig:
    """Structured logging settings."""

    level: str = "INFO"

    def __post_init__(self) -> None:
        if self.level not in VALID_LOG_LEVELS:
            raise ValueError(
                f"logging.level must be one of {sorted(VALID_LOG_LEVELS)}, got '{self.level}'"
            )


@dataclass(frozen=True)
class TraceConfig:
    """
    Bounds for handling-unit lineage traversal.

    ``None`` disables a bound.  The lineage graph is expected to be finite and
    acyclic; these limits turn a corrupt graph into an error instead of an
    unbounded walk.
    """

    max_depth: int | None = 100
    max_records: int | None = 10_000

    def __post_init__(self) -> None:
        if self.max_depth is not None and self.max_depth < 0:
            raise ValueError(f"trace.max_depth must be >= 0, got {self.max_depth}")
        if self.max_records is not None and self.max_records < 1:
            raise ValueError(
                f"trace.max_records must be >= 1, got {self.max_records}"
            )


@dataclass(frozen=True)
class DispoConfig:
    """Material disposition settings."""

    # Post PickingRequestedEvents for production / distribution candidates
    picking_requests_enabled: bool = True


@dataclass(frozen=True)
class MaterialConfig:
    """Root configuration object returned by ``get_active_config()``."""

    config_id: str
    version: int
    database: DatabaseConfig
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    trace: TraceConfig = field(default_factory=TraceConfig)
    dispo: DispoConfig = field(default_factory=DispoConfig)
    checksum: str = ""
