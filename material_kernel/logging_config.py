"""
Structured JSON logging for the material kernel.

Every record is written as one JSON object per line::

    {"ts": "...", "level": "INFO", "logger": "material_kernel.modules.dispo.change_service",
     "message": "candidate_saved", "candidate_id": "...", "candidate_type": "DEMAND", ...}

Messages are snake_case event names; details travel in ``extra``.  Fields
that describe the unit of work being processed (the transaction, candidate or
VHU at hand) are carried by ``LogContext`` and stamped on every record
emitted while they are bound.
"""

__all__ = [
    "StructuredFormatter",
    "LogContext",
    "get_logger",
    "configure_logging",
    "reset_logging",
]

import json
import logging
import sys
import threading
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, date, datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType
from typing import Any
from uuid import UUID

LOGGER_NAMESPACE = "material_kernel"

# ---------------------------------------------------------------------------
# Unit-of-work context
# ---------------------------------------------------------------------------

CONTEXT_FIELDS: tuple[str, ...] = (
    "correlation_id",
    "event_id",
    "transaction_id",
    "candidate_id",
    "vhu_id",
    "trace_id",
)

_EMPTY: Mapping[str, str] = MappingProxyType({})
_context: ContextVar[Mapping[str, str]] = ContextVar("material_log_context", default=_EMPTY)


def _merged(values: Mapping[str, Any]) -> Mapping[str, str]:
    unknown = set(values) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context fields: {sorted(unknown)}")
    current = dict(_context.get())
    current.update({name: str(value) for name, value in values.items() if value is not None})
    return MappingProxyType(current)


class LogContext:
    """
    Context-local fields stamped on every log record.

    Values are stored as strings.  The context is a ``ContextVar`` so it
    follows threads and asyncio tasks independently.
    """

    @staticmethod
    def set(**fields: Any) -> None:
        """Set fields for the rest of the current context; None values are ignored."""
        _context.set(_merged(fields))

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_context.get())

    @staticmethod
    def clear() -> None:
        _context.set(_EMPTY)

    @staticmethod
    @contextmanager
    def bind(**fields: Any) -> Iterator[None]:
        """Set fields inside a ``with`` block and restore the previous context after it."""
        token = _context.set(_merged(fields))
        try:
            yield
        finally:
            _context.reset(token)


# ---------------------------------------------------------------------------
# JSON formatting
# ---------------------------------------------------------------------------

_RESERVED_RECORD_KEYS: frozenset[str] = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", (), None))
) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    """Fallback for values ``json`` cannot encode: quantities, ids, times, enums."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (Decimal, UUID)):
        return str(value)
    if isinstance(value, (set, frozenset)):
        return list(value)
    return repr(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "exc_type": type(exc).__name__,
        "exc_message": str(exc),
    }
    code = getattr(exc, "code", None)
    if code is not None:
        fields["exc_code"] = code
    # MaterialKernelError subclasses keep their structured data as attributes
    for name, value in vars(exc).items():
        if not name.startswith("_") and name not in ("args", "code"):
            fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    """Formats each log record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_context.get(),
        }

        for key, value in vars(record).items():
            if key not in _RESERVED_RECORD_KEYS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


# ---------------------------------------------------------------------------
# Setup
# ---------------------------------------------------------------------------


def get_logger(name: str) -> logging.Logger:
    """Logger ``material_kernel.<name>``."""
    return logging.getLogger(f"{LOGGER_NAMESPACE}.{name}")


_installed_handler: logging.Handler | None = None
_setup_lock = threading.Lock()


def configure_logging(
    *,
    level: int | str = logging.INFO,
    stream: Any = None,
    handler: logging.Handler | None = None,
) -> None:
    """
    Attach a JSON handler to the ``material_kernel`` logger.

    Only the first call has an effect until ``reset_logging()``.  ``level``
    accepts a number or a level name such as ``"DEBUG"``.
    """
    global _installed_handler
    with _setup_lock:
        if _installed_handler is not None:
            return
        _installed_handler = handler if handler is not None else logging.StreamHandler(stream or sys.stderr)

    _installed_handler.setFormatter(StructuredFormatter())
    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.setLevel(level.upper() if isinstance(level, str) else level)
    namespace_logger.propagate = False
    namespace_logger.addHandler(_installed_handler)


def reset_logging() -> None:
    """Detach all handlers and allow ``configure_logging`` again. For tests."""
    global _installed_handler
    with _setup_lock:
        _installed_handler = None
    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    namespace_logger.handlers.clear()
    namespace_logger.setLevel(logging.WARNING)
    namespace_logger.propagate = True
