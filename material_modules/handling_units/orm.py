"""
Module: material_modules.handling_units.orm
Responsibility: SQLAlchemy persistence model for handling-unit trace records.

Architecture position: Modules > Handling units > ORM.  Inherits from
    TrackedBase (material_kernel.db.base).  ERP references (VHU, in/out,
    movement, cost collector, shipment schedule) are plain integer columns
    with NO foreign key constraints; 0 means "not set".

Invariants enforced:
    - type is stored by enum NAME.
    - event_time is timezone-aware and normalized to UTC.
    - Rows are never deleted here; is_active=False hides a row.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column

from material_kernel.db.base import TrackedBase
from material_kernel.db.types import DOC_STATUS_LENGTH, enum_name_column


class HUTraceRecordModel(TrackedBase):
    """
    ORM model for one HU trace record.

    Maps to: material_modules.handling_units.models.HUTraceEvent.
    """

    __tablename__ = "hu_trace_records"

    __table_args__ = (
        Index("idx_hu_trace_vhu_time", "vhu_id", "event_time"),
        Index("idx_hu_trace_vhu_source", "vhu_source_id"),
        Index("idx_hu_trace_top_level_hu", "top_level_hu_id"),
        Index("idx_hu_trace_in_out", "in_out_id"),
        Index("idx_hu_trace_shipment_schedule", "shipment_schedule_id"),
    )

    vhu_id: Mapped[int] = mapped_column(nullable=False)
    vhu_source_id: Mapped[int] = mapped_column(default=0, nullable=False)
    top_level_hu_id: Mapped[int] = mapped_column(default=0, nullable=False)
    event_time: Mapped[datetime] = mapped_column(nullable=False)
    type: Mapped[str] = mapped_column(enum_name_column(), nullable=False)

    # Document references
    doc_type_id: Mapped[int] = mapped_column(default=0, nullable=False)
    doc_status: Mapped[str | None] = mapped_column(String(DOC_STATUS_LENGTH), nullable=True)
    in_out_id: Mapped[int] = mapped_column(default=0, nullable=False)
    movement_id: Mapped[int] = mapped_column(default=0, nullable=False)
    cost_collector_id: Mapped[int] = mapped_column(default=0, nullable=False)
    shipment_schedule_id: Mapped[int] = mapped_column(default=0, nullable=False)

    @property
    def record_id(self):
        return self.id

    def apply_event(self, event) -> None:
        """Overwrite every event field with the values of *event*."""
        self.vhu_id = event.vhu_id
        self.vhu_source_id = event.vhu_source_id
        self.top_level_hu_id = event.top_level_hu_id
        self.event_time = event.event_time
        self.type = event.type.name
        self.doc_type_id = event.doc_type_id
        self.doc_status = event.doc_status
        self.in_out_id = event.in_out_id
        self.movement_id = event.movement_id
        self.cost_collector_id = event.cost_collector_id
        self.shipment_schedule_id = event.shipment_schedule_id

    def to_dto(self):
        """Convert ORM model to a frozen HUTraceEvent."""
        from material_modules.handling_units.models import HUTraceEvent, HUTraceType

        return HUTraceEvent(
            vhu_id=self.vhu_id,
            event_time=self.event_time,
            type=HUTraceType[self.type],
            vhu_source_id=self.vhu_source_id,
            top_level_hu_id=self.top_level_hu_id,
            doc_type_id=self.doc_type_id,
            doc_status=self.doc_status,
            in_out_id=self.in_out_id,
            movement_id=self.movement_id,
            cost_collector_id=self.cost_collector_id,
            shipment_schedule_id=self.shipment_schedule_id,
            record_id=self.id,
        )

    @classmethod
    def from_dto(cls, event) -> HUTraceRecordModel:
        """Create ORM model from a frozen HUTraceEvent."""
        model = cls()
        model.apply_event(event)
        return model

    def __repr__(self) -> str:
        return (
            f"<HUTraceRecordModel {self.id} vhu={self.vhu_id} "
            f"source={self.vhu_source_id} type={self.type} at={self.event_time}>"
        )
