"""
HUTraceRepository -- upsert and lineage-aware lookup of HU trace records.

Responsibility:
    Persists ``HUTraceEvent`` values keyed by (vhu_id, event_time) and
    resolves ``HUTraceQuery`` filters, optionally following VHU lineage
    backward (to source VHUs) or forward (to derived VHUs).

Architecture position:
    Modules > Handling units.  Owns the SQL; the lineage expansion itself is
    the pure ``material_engines.lineage.walk_lineage`` with lookups injected
    from here.

Invariants enforced:
    - Only active records are visible.
    - An empty query resolves to nothing without touching the database.
    - Base matches are ordered by event_time, then record id.
    - Results are duplicate-free by record identity.
    - At most one active record exists per (vhu_id, event_time); finding more
      during an upsert is a consistency fault.

Failure modes:
    - AmbiguousTraceRecordError: more than one record for an upsert key.
    - LineageLimitExceededError: lineage expansion exceeds trace.max_depth or
      adds more than trace.max_records records.  Literal (NONE) queries are
      not capped.

Transaction boundaries:
    Flushes, never commits.  The caller's ``session_scope()`` owns the
    transaction.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from material_config.schema import TraceConfig
from material_engines.lineage import LineageDirection, walk_lineage
from material_kernel.exceptions import AmbiguousTraceRecordError
from material_kernel.logging_config import LogContext, get_logger
from material_kernel.services.base import BaseService
from material_modules.handling_units.models import (
    HUTraceEvent,
    HUTraceQuery,
    RecursionMode,
)
from material_modules.handling_units.orm import HUTraceRecordModel

logger = get_logger("modules.handling_units.repository")

_DIRECTIONS = {
    RecursionMode.NONE: None,
    RecursionMode.BACKWARD: LineageDirection.BACKWARD,
    RecursionMode.FORWARD: LineageDirection.FORWARD,
}


class HUTraceRepository(BaseService):
    """
    Storage and lookup of HU trace records.

    Contract:
        ``add_event`` creates or overwrites the record for an event's
        (vhu_id, event_time).  ``query`` returns matching events, expanded
        along lineage when the query asks for it.

    Non-goals:
        Deleting trace records.
    """

    def __init__(self, session: Session, config: TraceConfig | None = None):
        super().__init__(session)
        self._config = config or TraceConfig()

    # =========================================================================
    # Upsert
    # =========================================================================

    def add_event(self, event: HUTraceEvent) -> bool:
        """
        Insert or update the record for ``(event.vhu_id, event.event_time)``.

        Returns:
            True if a new record was created, False if an existing one was
            overwritten.

        Raises:
            AmbiguousTraceRecordError: more than one record has this key.
        """
        query = HUTraceQuery.of_event(event)
        existing = self._query_records(query)

        with LogContext.bind(vhu_id=event.vhu_id):
            if len(existing) > 1:
                raise AmbiguousTraceRecordError(
                    query, [str(record.id) for record in existing]
                )

            if not existing:
                record = HUTraceRecordModel.from_dto(event)
                self.session.add(record)
                self.session.flush()
                logger.info(
                    "hu_trace_record_created",
                    extra={
                        "record_id": str(record.id),
                        "trace_type": event.type.name,
                        "event_time": event.event_time,
                    },
                )
                return True

            record = existing[0]
            record.apply_event(event)
            self.session.flush()
            logger.info(
                "hu_trace_record_updated",
                extra={
                    "record_id": str(record.id),
                    "trace_type": event.type.name,
                    "event_time": event.event_time,
                },
            )
            return False

    # =========================================================================
    # Lookup
    # =========================================================================

    def query(self, query: HUTraceQuery) -> list[HUTraceEvent]:
        """Resolve *query* and return the matching events."""
        return [record.to_dto() for record in self._query_records(query)]

    def _query_records(self, query: HUTraceQuery) -> list[HUTraceRecordModel]:
        if query.is_empty:
            logger.debug("hu_trace_query_empty")
            return []

        base = self._select_literal(query)
        return walk_lineage(
            base,
            direction=_DIRECTIONS[query.recursion_mode],
            fetch_by_vhu_id=self._fetch_by_vhu_id,
            fetch_by_vhu_source_id=self._fetch_by_vhu_source_id,
            max_depth=self._config.max_depth,
            max_records=self._config.max_records,
        )

    def _select_literal(self, query: HUTraceQuery) -> list[HUTraceRecordModel]:
        """Records matching the set filters of *query*, without recursion."""
        stmt = select(HUTraceRecordModel).where(HUTraceRecordModel.is_active.is_(True))
        if query.event_time is not None:
            stmt = stmt.where(HUTraceRecordModel.event_time == query.event_time)
        for column_name, value in query.id_filters().items():
            stmt = stmt.where(getattr(HUTraceRecordModel, column_name) == value)
        stmt = stmt.order_by(HUTraceRecordModel.event_time, HUTraceRecordModel.id)
        return list(self.session.execute(stmt).scalars().all())

    def _fetch_by_vhu_id(self, vhu_id: int) -> list[HUTraceRecordModel]:
        return self._select_literal(HUTraceQuery.of_vhu_id(vhu_id))

    def _fetch_by_vhu_source_id(self, vhu_source_id: int) -> list[HUTraceRecordModel]:
        return self._select_literal(HUTraceQuery(vhu_source_id=vhu_source_id))
