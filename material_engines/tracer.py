"""
material_engines.tracer -- MATERIAL_ENGINE_TRACE records for engine calls.

``@traced_engine`` logs one record per engine call with the engine name and
version, a fingerprint of the limits and options it ran with, the size of
the input and of the result, and the elapsed time.  A call that raises logs
MATERIAL_ENGINE_FAILED instead and re-raises unchanged.

Engines are pure, so the tracer talks to the stdlib logger under the
``material_kernel`` namespace instead of importing kernel logging.
"""

from __future__ import annotations

import functools
import hashlib
import json
import logging
import time
from collections.abc import Callable, Sized
from enum import Enum
from typing import Any

_logger = logging.getLogger("material_kernel.engines.tracer")


def _fingerprint_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (set, frozenset)):
        return sorted(value, key=repr)
    return value


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """
    First 16 hex chars of the SHA-256 over the selected keyword arguments.

    Missing fields count as None.  Key order does not matter.
    """
    selected = {name: _fingerprint_value(kwargs.get(name)) for name in fingerprint_fields}
    canonical = json.dumps(selected, sort_keys=True, separators=(",", ":"), default=repr)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def _size(value: Any) -> int | None:
    return len(value) if isinstance(value, Sized) else None


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorator for engine functions whose first positional argument is their input collection."""

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            trace = {
                "engine_name": engine_name,
                "engine_version": engine_version,
                "input_fingerprint": compute_input_fingerprint(fingerprint_fields, kwargs),
                "input_size": _size(args[0]) if args else None,
                "function": func.__qualname__,
            }

            started = time.monotonic()
            try:
                result = func(*args, **kwargs)
            except Exception as exc:
                _logger.warning(
                    "MATERIAL_ENGINE_FAILED",
                    extra={
                        **trace,
                        "trace_type": "MATERIAL_ENGINE_FAILED",
                        "error": type(exc).__name__,
                        "duration_ms": round((time.monotonic() - started) * 1000, 2),
                    },
                )
                raise

            _logger.info(
                "MATERIAL_ENGINE_TRACE",
                extra={
                    **trace,
                    "trace_type": "MATERIAL_ENGINE_TRACE",
                    "result_size": _size(result),
                    "duration_ms": round((time.monotonic() - started) * 1000, 2),
                },
            )
            return result

        return wrapper

    return decorator
