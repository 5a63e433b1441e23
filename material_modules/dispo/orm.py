"""
Module: material_modules.dispo.orm
Responsibility: SQLAlchemy persistence models for dispo candidates and their
    transaction details.

Architecture position: Modules > Dispo > ORM.  Inherits from TrackedBase
    (material_kernel.db.base).  ERP references are plain integer columns with
    NO foreign key constraints.

Invariants enforced:
    - Quantities use Decimal (Numeric(38,9)) -- NEVER float.
    - Enums (candidate type, business case, flags) are stored by NAME.
    - seq increases with every inserted candidate; the highest seq is the
      latest candidate for a business key.
    - At most one transaction detail row per (candidate, transaction_id).
    - Business-case detail columns are nullable; which of them are populated
      depends on business_case.

Failure modes:
    - IntegrityError on a duplicate (candidate_id, transaction_id).
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from material_kernel.db.base import TrackedBase
from material_kernel.db.types import enum_name_column


# =============================================================================
# CandidateModel
# =============================================================================


class CandidateModel(TrackedBase):
    """
    ORM model for a dispo candidate.

    Maps to: material_modules.dispo.models.Candidate (frozen dataclass).
    """

    __tablename__ = "dispo_candidates"

    __table_args__ = (
        Index("idx_dispo_candidate_seq", "seq"),
        Index("idx_dispo_candidate_shipment_schedule", "shipment_schedule_id"),
        Index("idx_dispo_candidate_demand_shipment_schedule", "demand_shipment_schedule_id"),
        Index("idx_dispo_candidate_receipt_schedule", "receipt_schedule_id"),
        Index("idx_dispo_candidate_pp_order", "pp_order_id", "pp_order_line_id"),
        Index("idx_dispo_candidate_dd_order", "dd_order_id", "dd_order_line_id"),
    )

    seq: Mapped[int] = mapped_column(nullable=False, unique=True)
    candidate_type: Mapped[str] = mapped_column(enum_name_column(), nullable=False)
    business_case: Mapped[str | None] = mapped_column(enum_name_column(), nullable=True)

    # Event descriptor
    client_id: Mapped[int] = mapped_column(nullable=False)
    org_id: Mapped[int] = mapped_column(nullable=False)

    # Material descriptor
    product_id: Mapped[int] = mapped_column(nullable=False)
    warehouse_id: Mapped[int] = mapped_column(nullable=False)
    date_projected: Mapped[datetime] = mapped_column(nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    # Business-case detail (populated per business_case)
    planned_qty: Mapped[Decimal | None] = mapped_column(nullable=True)
    advised: Mapped[str | None] = mapped_column(enum_name_column(), nullable=True)
    pick_directly_if_feasible: Mapped[str | None] = mapped_column(enum_name_column(), nullable=True)
    shipment_schedule_id: Mapped[int | None] = mapped_column(nullable=True)
    order_line_id: Mapped[int | None] = mapped_column(nullable=True)
    subscription_progress_id: Mapped[int | None] = mapped_column(nullable=True)
    receipt_schedule_id: Mapped[int | None] = mapped_column(nullable=True)
    pp_order_id: Mapped[int | None] = mapped_column(nullable=True)
    pp_order_line_id: Mapped[int | None] = mapped_column(nullable=True)
    dd_order_id: Mapped[int | None] = mapped_column(nullable=True)
    dd_order_line_id: Mapped[int | None] = mapped_column(nullable=True)

    # Additional demand detail of production / distribution candidates
    demand_shipment_schedule_id: Mapped[int | None] = mapped_column(nullable=True)
    demand_order_line_id: Mapped[int | None] = mapped_column(nullable=True)
    demand_subscription_progress_id: Mapped[int | None] = mapped_column(nullable=True)
    demand_planned_qty: Mapped[Decimal | None] = mapped_column(nullable=True)

    transaction_details: Mapped[list[TransactionDetailModel]] = relationship(
        back_populates="candidate",
        cascade="all, delete-orphan",
        order_by="TransactionDetailModel.transaction_id",
    )

    _DETAIL_COLUMNS = (
        "planned_qty",
        "advised",
        "pick_directly_if_feasible",
        "shipment_schedule_id",
        "order_line_id",
        "subscription_progress_id",
        "receipt_schedule_id",
        "pp_order_id",
        "pp_order_line_id",
        "dd_order_id",
        "dd_order_line_id",
    )

    def apply_candidate(self, candidate) -> None:
        """Copy every candidate field except id, seq and transaction details."""
        from material_modules.dispo.models import (
            DemandDetail,
            DistributionDetail,
            ProductionDetail,
            PurchaseDetail,
        )

        self.candidate_type = candidate.type.name
        self.business_case = candidate.business_case.name if candidate.business_case else None
        self.client_id = candidate.event_descriptor.client_id
        self.org_id = candidate.event_descriptor.org_id
        self.product_id = candidate.material_descriptor.product_id
        self.warehouse_id = candidate.material_descriptor.warehouse_id
        self.date_projected = candidate.material_descriptor.date
        self.quantity = candidate.material_descriptor.quantity

        for column_name in self._DETAIL_COLUMNS:
            setattr(self, column_name, None)

        detail = candidate.business_case_detail
        match detail:
            case None:
                pass
            case ProductionDetail():
                self.pp_order_id = detail.pp_order_id
                self.pp_order_line_id = detail.pp_order_line_id
                self.planned_qty = detail.planned_qty
                self.advised = detail.advised.name
                self.pick_directly_if_feasible = detail.pick_directly_if_feasible.name
            case DistributionDetail():
                self.dd_order_id = detail.dd_order_id
                self.dd_order_line_id = detail.dd_order_line_id
                self.planned_qty = detail.planned_qty
                self.pick_directly_if_feasible = detail.pick_directly_if_feasible.name
            case DemandDetail():
                self.shipment_schedule_id = detail.shipment_schedule_id
                self.order_line_id = detail.order_line_id
                self.subscription_progress_id = detail.subscription_progress_id
                self.planned_qty = detail.planned_qty
            case PurchaseDetail():
                self.receipt_schedule_id = detail.receipt_schedule_id
                self.planned_qty = detail.planned_qty
                self.advised = detail.advised.name
            case _:
                raise TypeError(f"Unknown business case detail: {detail!r}")

        demand = candidate.demand_detail
        self.demand_shipment_schedule_id = demand.shipment_schedule_id if demand else None
        self.demand_order_line_id = demand.order_line_id if demand else None
        self.demand_subscription_progress_id = demand.subscription_progress_id if demand else None
        self.demand_planned_qty = demand.planned_qty if demand else None

    def _business_case_detail_to_dto(self):
        from material_modules.dispo.models import (
            CandidateBusinessCase,
            DemandDetail,
            DistributionDetail,
            Flag,
            ProductionDetail,
            PurchaseDetail,
        )

        if self.business_case is None:
            return None
        match CandidateBusinessCase[self.business_case]:
            case CandidateBusinessCase.PRODUCTION:
                return ProductionDetail(
                    pp_order_id=self.pp_order_id,
                    pp_order_line_id=self.pp_order_line_id,
                    planned_qty=self.planned_qty,
                    advised=Flag[self.advised],
                    pick_directly_if_feasible=Flag[self.pick_directly_if_feasible],
                )
            case CandidateBusinessCase.DISTRIBUTION:
                return DistributionDetail(
                    dd_order_id=self.dd_order_id,
                    dd_order_line_id=self.dd_order_line_id,
                    planned_qty=self.planned_qty,
                    pick_directly_if_feasible=Flag[self.pick_directly_if_feasible],
                )
            case CandidateBusinessCase.SHIPMENT:
                return DemandDetail(
                    shipment_schedule_id=self.shipment_schedule_id,
                    order_line_id=self.order_line_id,
                    subscription_progress_id=self.subscription_progress_id,
                    planned_qty=self.planned_qty,
                )
            case CandidateBusinessCase.PURCHASE:
                return PurchaseDetail(
                    receipt_schedule_id=self.receipt_schedule_id,
                    planned_qty=self.planned_qty,
                    advised=Flag[self.advised],
                )

    def to_dto(self):
        """Convert ORM model to a frozen Candidate."""
        from material_modules.dispo.models import (
            Candidate,
            CandidateType,
            DemandDetail,
            EventDescriptor,
            MaterialDescriptor,
        )

        demand_detail = None
        if self.demand_shipment_schedule_id is not None:
            demand_detail = DemandDetail(
                shipment_schedule_id=self.demand_shipment_schedule_id,
                order_line_id=self.demand_order_line_id,
                subscription_progress_id=self.demand_subscription_progress_id,
                planned_qty=self.demand_planned_qty,
            )

        return Candidate(
            id=self.id,
            type=CandidateType[self.candidate_type],
            event_descriptor=EventDescriptor(client_id=self.client_id, org_id=self.org_id),
            material_descriptor=MaterialDescriptor(
                product_id=self.product_id,
                warehouse_id=self.warehouse_id,
                date=self.date_projected,
                quantity=self.quantity,
            ),
            business_case_detail=self._business_case_detail_to_dto(),
            demand_detail=demand_detail,
            transaction_details=tuple(
                detail.to_dto()
                for detail in sorted(self.transaction_details, key=lambda d: d.transaction_id)
            ),
        )

    def __repr__(self) -> str:
        return (
            f"<CandidateModel {self.id} seq={self.seq} type={self.candidate_type} "
            f"case={self.business_case} qty={self.quantity}>"
        )


# =============================================================================
# TransactionDetailModel
# =============================================================================


class TransactionDetailModel(TrackedBase):
    """
    ORM model for one transaction booked against a candidate.

    Maps to: material_modules.dispo.models.TransactionDetail.
    """

    __tablename__ = "dispo_transaction_details"

    __table_args__ = (
        UniqueConstraint("candidate_id", "transaction_id", name="uq_dispo_tx_detail_candidate_tx"),
        Index("idx_dispo_tx_detail_transaction", "transaction_id"),
    )

    candidate_id: Mapped[UUID] = mapped_column(
        ForeignKey("dispo_candidates.id", ondelete="CASCADE"),
        nullable=False,
    )
    transaction_id: Mapped[int] = mapped_column(nullable=False)
    quantity: Mapped[Decimal] = mapped_column(nullable=False)

    candidate: Mapped[CandidateModel] = relationship(back_populates="transaction_details")

    def to_dto(self):
        from material_modules.dispo.models import TransactionDetail

        return TransactionDetail(transaction_id=self.transaction_id, quantity=self.quantity)

    @classmethod
    def from_dto(cls, detail) -> TransactionDetailModel:
        return cls(transaction_id=detail.transaction_id, quantity=detail.quantity)

    def __repr__(self) -> str:
        return f"<TransactionDetailModel tx={self.transaction_id} qty={self.quantity}>"
