"""
Runtime bootstrap (``material_modules.bootstrap``).

Turns a ``MaterialConfig`` into a running process: structured logging at the
configured level, the database engine, and (optionally) the schema.  Scripts
and entrypoints call ``bootstrap()`` once at startup.
"""

from __future__ import annotations

from material_config import MaterialConfig, get_active_config
from material_kernel.db.engine import create_tables, init_engine_from_url
from material_kernel.logging_config import configure_logging, get_logger

logger = get_logger("modules.bootstrap")


def bootstrap(
    config: MaterialConfig | None = None,
    *,
    create_schema: bool = False,
) -> MaterialConfig:
    """Configure logging and the engine from *config* (active config if None)."""
    config = config or get_active_config()

    configure_logging(level=config.logging.level)
    database = config.database
    init_engine_from_url(
        database.url,
        echo=database.echo,
        pool_size=database.pool_size,
        max_overflow=database.max_overflow,
        pool_timeout=database.pool_timeout,
        pool_recycle=database.pool_recycle,
    )
    if create_schema:
        create_tables()

    logger.info(
        "material_runtime_ready",
        extra={"config_id": config.config_id, "config_version": config.version},
    )
    return config
