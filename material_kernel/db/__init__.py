"""Database layer - engine, base classes and column types."""

from material_kernel.db.base import UUID, Base, TrackedBase, UTCDateTime, UUIDString
from material_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    reset_engine,
    session_scope,
)
from material_kernel.db.types import NO_REPO_ID, is_repo_id_set, to_qty

__all__ = [
    "init_engine_from_url",
    "get_engine",
    "get_session",
    "session_scope",
    "create_tables",
    "drop_tables",
    "reset_engine",
    "Base",
    "TrackedBase",
    "UUIDString",
    "UTCDateTime",
    "UUID",
    "NO_REPO_ID",
    "is_repo_id_set",
    "to_qty",
]
