"""
Engine and session lifecycle for the material database.

One engine per process, created by ``init_engine_from_url``.  PostgreSQL
runs on a pre-pinged ``QueuePool`` at READ COMMITTED; SQLite URLs are
accepted for local runs and tests and ignore the pool settings.

``session_scope()`` is the only place that commits.  Repositories and the
transaction handler flush inside it, and post-commit events go out when it
commits.

The kernel never imports module code at import time.  ``create_tables``
loads the module ORM registry lazily so every mapped table is known before
``create_all``.
"""

from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool

from material_kernel.db.base import Base
from material_kernel.logging_config import configure_logging, get_logger

logger = get_logger("db.engine")

_NOT_READY = "Engine not initialized. Call init_engine_from_url() first."


@dataclass
class _Database:
    engine: Engine
    sessions: sessionmaker[Session]


_db: _Database | None = None


def _require() -> _Database:
    if _db is None:
        raise RuntimeError(_NOT_READY)
    return _db


def init_engine_from_url(
    database_url: str,
    echo: bool = False,
    pool_size: int = 20,
    max_overflow: int = 10,
    pool_pre_ping: bool = True,
    pool_timeout: int = 30,
    pool_recycle: int = 1800,
) -> Engine:
    """
    Create the process engine for ``database_url``, replacing any earlier one.

    The pool arguments only apply to PostgreSQL.
    """
    global _db

    if _db is not None:
        _db.engine.dispose()

    options: dict = {"echo": echo}
    if not database_url.startswith("sqlite"):
        options.update(
            poolclass=QueuePool,
            pool_size=pool_size,
            max_overflow=max_overflow,
            pool_pre_ping=pool_pre_ping,
            pool_timeout=pool_timeout,
            pool_recycle=pool_recycle,
            isolation_level="READ COMMITTED",
        )

    engine = create_engine(database_url, **options)
    _db = _Database(engine=engine, sessions=sessionmaker(bind=engine, expire_on_commit=False))

    configure_logging()
    logger.info(
        "engine_initialized",
        extra={
            "dialect": engine.dialect.name,
            "pooled": "poolclass" in options,
            "echo": echo,
        },
    )
    return engine


def get_engine() -> Engine:
    return _require().engine


def get_session_factory() -> sessionmaker[Session]:
    return _require().sessions


def get_session() -> Session:
    """A new session from the process factory.  The caller closes it."""
    return _require().sessions()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Commit on normal exit, roll back and re-raise on error, always close.

        with session_scope() as session:
            TransactionEventHandler.from_session(session).handle_event(event)
    """
    session = get_session()
    try:
        yield session
    except Exception:
        session.rollback()
        logger.warning("transaction_rolled_back", exc_info=True)
        raise
    else:
        session.commit()
        logger.debug("transaction_committed")
    finally:
        session.close()


def create_tables() -> None:
    """Create every table mapped by the material modules."""
    from material_modules._orm_registry import import_all_orm_models

    engine = get_engine()
    import_all_orm_models()
    Base.metadata.create_all(engine)
    logger.info("tables_created", extra={"tables": sorted(Base.metadata.tables)})


def drop_tables() -> None:
    """Drop every mapped table.  Test and local use only."""
    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget it, so the next use must re-initialize."""
    global _db
    if _db is not None:
        _db.engine.dispose()
    _db = None


def is_postgres() -> bool:
    return _db is not None and _db.engine.dialect.name == "postgresql"
