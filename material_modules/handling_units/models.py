"""
Handling-Unit Trace Models (``material_modules.handling_units.models``).

Responsibility
--------------
Frozen value objects for handling-unit (HU) trace records and the sparse
query used to look them up, including lineage recursion.

Architecture
------------
Layer: **Modules** -- pure domain data structures, no I/O.  The ORM
counterpart lives in ``handling_units.orm``.

Invariants
----------
- ``vhu_id`` is a positive integer and ``event_time`` is timezone-aware.
- Integer references use ``0`` for "not set".
- Upsert identity of a trace event is ``(vhu_id, event_time)``.
- A query field counts as a filter only when it is a positive integer (or,
  for ``event_time``, not None).  An empty query matches nothing.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import datetime
from enum import Enum
from uuid import UUID

from material_kernel.db.types import NO_REPO_ID, is_repo_id_set


class HUTraceType(Enum):
    """Kind of material movement a trace record describes.  Stored by name."""

    MATERIAL_SHIPMENT = "material_shipment"
    MATERIAL_RECEIPT = "material_receipt"
    MATERIAL_MOVEMENT = "material_movement"
    MATERIAL_INVENTORY = "material_inventory"
    PRODUCTION_ISSUE = "production_issue"
    PRODUCTION_RECEIPT = "production_receipt"
    TRANSFORM_LOAD = "transform_load"
    TRANSFORM_PARENT = "transform_parent"


class RecursionMode(Enum):
    """Whether and how a trace query follows VHU lineage."""

    NONE = "none"
    BACKWARD = "backward"
    FORWARD = "forward"


@dataclass(frozen=True)
class HUTraceEvent:
    """One traceable movement of a virtual handling unit (VHU)."""

    vhu_id: int
    event_time: datetime
    type: HUTraceType
    vhu_source_id: int = NO_REPO_ID
    top_level_hu_id: int = NO_REPO_ID
    doc_type_id: int = NO_REPO_ID
    doc_status: str | None = None
    in_out_id: int = NO_REPO_ID
    movement_id: int = NO_REPO_ID
    cost_collector_id: int = NO_REPO_ID
    shipment_schedule_id: int = NO_REPO_ID
    # Storage identity; None until persisted
    record_id: UUID | None = None

    def __post_init__(self) -> None:
        if not is_repo_id_set(self.vhu_id):
            raise ValueError(f"vhu_id must be positive, got {self.vhu_id}")
        if self.event_time is None:
            raise ValueError("event_time is required")
        if self.event_time.tzinfo is None:
            raise ValueError(f"event_time must be timezone-aware, got {self.event_time!r}")
        if not isinstance(self.type, HUTraceType):
            raise ValueError(f"type must be an HUTraceType, got {self.type!r}")


@dataclass(frozen=True)
class HUTraceQuery:
    """
    Sparse filter over trace records.

    Only fields that are set constrain the result; ``recursion_mode`` decides
    whether the matches are expanded along VHU lineage.
    """

    event_time: datetime | None = None
    vhu_id: int = NO_REPO_ID
    vhu_source_id: int = NO_REPO_ID
    top_level_hu_id: int = NO_REPO_ID
    in_out_id: int = NO_REPO_ID
    movement_id: int = NO_REPO_ID
    cost_collector_id: int = NO_REPO_ID
    shipment_schedule_id: int = NO_REPO_ID
    recursion_mode: RecursionMode = RecursionMode.NONE

    @classmethod
    def of_vhu_id(
        cls, vhu_id: int, recursion_mode: RecursionMode = RecursionMode.NONE
    ) -> HUTraceQuery:
        return cls(vhu_id=vhu_id, recursion_mode=recursion_mode)

    @classmethod
    def of_event(cls, event: HUTraceEvent) -> HUTraceQuery:
        """Identity query for *event*: same VHU and event time, no recursion."""
        return cls(vhu_id=event.vhu_id, event_time=event.event_time)

    def id_filters(self) -> dict[str, int]:
        """Integer filters that are set (positive)."""
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in ("event_time", "recursion_mode")
            and is_repo_id_set(getattr(self, f.name))
        }

    @property
    def is_empty(self) -> bool:
        return self.event_time is None and not self.id_filters()
