"""
Material Event Bus -- subscriber registry and post-commit delivery.

Responsibility:
    Routes material events (transaction created/deleted, picking requested) to
    registered handlers.  Events can be delivered immediately or queued until
    the enclosing database transaction commits.

Post-commit semantics:
    ``post_event_after_next_commit`` parks the event on the bus.  An
    ``after_commit`` session listener dispatches the queue; ``after_rollback``
    discards it.  A rolled-back transaction therefore never announces work
    that did not happen.

Dispatch behavior:
    Subscribers for ``event.event_type`` run sequentially in registration
    order.

    ``post_event`` runs inside the caller's unit of work: a handler
    exception is logged and re-raised, so the caller rolls back instead of
    committing a half-applied event.

    After commit there is nothing left to roll back.  A failing handler is
    logged, counted in the ``DispatchResult`` and the remaining subscribers
    still run.

Each bus keeps its own queue, so several buses bound to the same session
only ever deliver the events that were posted to them.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from threading import Lock
from typing import Any

from sqlalchemy import event as sa_event
from sqlalchemy.orm import Session

from material_kernel.exceptions import DuplicateSubscriberError, EventBusError
from material_kernel.logging_config import get_logger

logger = get_logger("services.event_bus")

# Recent dispatches kept for inspection.
DELIVERED_HISTORY = 256


@dataclass(frozen=True)
class DispatchResult:
    """Outcome of dispatching one event."""

    event_type: str
    subscribers_notified: int = 0
    subscribers_failed: int = 0
    failures: tuple[str, ...] = field(default_factory=tuple)


class MaterialEventBus:
    """
    In-memory event bus bound to one session.

    Each entry maps an event_type to a list of handlers.  Registration is
    thread-safe; dispatch happens on the thread that commits.
    """

    def __init__(self, session: Session | None = None):
        self._subscribers: dict[str, list[Callable[[Any], None]]] = {}
        self._lock = Lock()
        self._session = session
        self._queued: list[Any] = []
        self._delivered: deque[Any] = deque(maxlen=DELIVERED_HISTORY)
        if session is not None:
            sa_event.listen(session, "after_commit", self._on_after_commit)
            sa_event.listen(session, "after_rollback", self._on_after_rollback)

    # =========================================================================
    # Registration
    # =========================================================================

    def register_subscriber(
        self,
        event_type: str,
        handler: Callable[[Any], None],
    ) -> None:
        """
        Register a handler for an event type.

        Raises:
            EventBusError: handler is not callable.
            DuplicateSubscriberError: handler already registered for event_type.
        """
        if not callable(handler):
            raise EventBusError(f"Handler must be callable, got {type(handler)}.")

        handler_name = getattr(handler, "__qualname__", str(handler))
        with self._lock:
            handlers = self._subscribers.setdefault(event_type, [])
            if any(existing == handler for existing in handlers):
                raise DuplicateSubscriberError(event_type, handler_name)
            handlers.append(handler)

        logger.info(
            "subscriber_registered",
            extra={"event_type": event_type, "handler": handler_name},
        )

    def get_subscribers(self, event_type: str) -> list[Callable[[Any], None]]:
        """Subscribers for an event type; empty list if none."""
        with self._lock:
            return list(self._subscribers.get(event_type, []))

    # =========================================================================
    # Posting
    # =========================================================================

    def post_event(self, event: Any) -> DispatchResult:
        """
        Dispatch *event* to its subscribers right away.

        The first handler exception propagates to the caller after it is
        logged; later subscribers do not run.
        """
        return self._dispatch(event, raise_errors=True)

    def post_event_after_next_commit(self, event: Any) -> None:
        """
        Queue *event* until the bound session commits.

        Without a bound session there is no transaction to wait for and the
        event is dispatched immediately.
        """
        if self._session is None:
            self._dispatch(event, raise_errors=True)
            return

        self._queued.append(event)
        logger.info(
            "event_queued_for_commit",
            extra={"event_type": event.event_type},
        )

    @property
    def pending_events(self) -> tuple[Any, ...]:
        """Events waiting for the next commit."""
        return tuple(self._queued)

    @property
    def delivered_events(self) -> tuple[Any, ...]:
        """The most recent dispatched events, oldest first."""
        return tuple(self._delivered)

    # =========================================================================
    # Internals
    # =========================================================================

    def _take_queued(self) -> list[Any]:
        queued, self._queued = self._queued, []
        return queued

    def _on_after_commit(self, session: Session) -> None:
        for queued in self._take_queued():
            self._dispatch(queued, raise_errors=False)

    def _on_after_rollback(self, session: Session) -> None:
        dropped = self._take_queued()
        if dropped:
            logger.info(
                "queued_events_discarded",
                extra={"count": len(dropped)},
            )

    def _dispatch(self, event: Any, *, raise_errors: bool) -> DispatchResult:
        event_type = event.event_type
        subscribers = self.get_subscribers(event_type)
        self._delivered.append(event)

        if not subscribers:
            logger.debug("no_subscribers", extra={"event_type": event_type})
            return DispatchResult(event_type=event_type)

        notified = 0
        failures: list[str] = []
        for handler in subscribers:
            handler_name = getattr(handler, "__qualname__", str(handler))
            try:
                handler(event)
                notified += 1
            except Exception:
                failures.append(handler_name)
                logger.error(
                    "event_handler_failed",
                    extra={"event_type": event_type, "handler": handler_name},
                    exc_info=True,
                )
                if raise_errors:
                    raise

        return DispatchResult(
            event_type=event_type,
            subscribers_notified=notified,
            subscribers_failed=len(failures),
            failures=tuple(failures),
        )
