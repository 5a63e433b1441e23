"""
Dispo Domain Models (``material_modules.dispo.models``).

Responsibility
--------------
Frozen value objects for material disposition: the ``Candidate`` aggregate
(a planned or actual stock change), its business-case details, the material
and event descriptors it carries and the transaction details that record
actual movements against it.

Architecture
------------
Layer: **Modules** -- pure domain data structures.  All dataclasses are
``frozen=True``; a changed candidate is a new copy produced with
``dataclasses.replace``.  No database identity beyond the optional ``id``
and no I/O.

Invariants
----------
- A candidate holds at most one ``TransactionDetail`` per transaction id.
- ``planned_qty`` of a candidate without business-case detail is 0.
- ``business_case`` is derived from the business-case detail variant.
- Quantities are ``Decimal`` -- never ``float``.

Failure Modes
-------------
- Constructing a ``Candidate`` with two details for one transaction id
  raises ``ValueError``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from material_kernel.db.types import to_qty

ZERO = Decimal("0")


class CandidateType(Enum):
    """What a candidate represents in the stock projection."""

    DEMAND = "demand"
    SUPPLY = "supply"
    STOCK = "stock"
    UNRELATED_INCREASE = "unrelated_increase"
    UNRELATED_DECREASE = "unrelated_decrease"


class CandidateBusinessCase(Enum):
    """Business process a candidate belongs to."""

    PRODUCTION = "production"
    DISTRIBUTION = "distribution"
    SHIPMENT = "shipment"
    PURCHASE = "purchase"


class Flag(Enum):
    """
    Tri-state-plus flag.

    The ``*_DONT_UPDATE`` variants carry a value that later planning runs must
    not overwrite.
    """

    TRUE = "true"
    FALSE = "false"
    FALSE_DONT_UPDATE = "false_dont_update"
    TRUE_DONT_UPDATE = "true_dont_update"

    def to_boolean(self) -> bool:
        return self in (Flag.TRUE, Flag.TRUE_DONT_UPDATE)


# =============================================================================
# Descriptors
# =============================================================================


@dataclass(frozen=True)
class EventDescriptor:
    """Tenant of an event: client and organization."""

    client_id: int
    org_id: int


@dataclass(frozen=True)
class MaterialDescriptor:
    """Which product, where, when and how much."""

    product_id: int
    warehouse_id: int
    date: datetime
    quantity: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_qty(self.quantity))

    def with_quantity(self, quantity: Decimal) -> MaterialDescriptor:
        return replace(self, quantity=quantity)


@dataclass(frozen=True)
class TransactionDetail:
    """Quantity actually moved by one inventory transaction."""

    transaction_id: int
    quantity: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_qty(self.quantity))


# =============================================================================
# Business-case details
# =============================================================================


@dataclass(frozen=True)
class ProductionDetail:
    """Manufacturing order header (line id -1) or line."""

    pp_order_id: int
    pp_order_line_id: int
    planned_qty: Decimal
    advised: Flag = Flag.FALSE
    pick_directly_if_feasible: Flag = Flag.FALSE

    def __post_init__(self) -> None:
        object.__setattr__(self, "planned_qty", to_qty(self.planned_qty))

    @property
    def business_case(self) -> CandidateBusinessCase:
        return CandidateBusinessCase.PRODUCTION


@dataclass(frozen=True)
class DistributionDetail:
    """Distribution order line."""

    dd_order_id: int
    dd_order_line_id: int
    planned_qty: Decimal
    pick_directly_if_feasible: Flag = Flag.FALSE

    def __post_init__(self) -> None:
        object.__setattr__(self, "planned_qty", to_qty(self.planned_qty))

    @property
    def business_case(self) -> CandidateBusinessCase:
        return CandidateBusinessCase.DISTRIBUTION


@dataclass(frozen=True)
class DemandDetail:
    """Demand from a shipment schedule, sales order line or subscription."""

    shipment_schedule_id: int
    order_line_id: int
    subscription_progress_id: int
    planned_qty: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "planned_qty", to_qty(self.planned_qty))

    @classmethod
    def for_shipment_schedule_id_and_order_line_id(
        cls,
        shipment_schedule_id: int,
        order_line_id: int,
        subscription_progress_id: int,
        planned_qty: Decimal,
    ) -> DemandDetail:
        return cls(
            shipment_schedule_id=shipment_schedule_id,
            order_line_id=order_line_id,
            subscription_progress_id=subscription_progress_id,
            planned_qty=planned_qty,
        )

    @property
    def business_case(self) -> CandidateBusinessCase:
        return CandidateBusinessCase.SHIPMENT


@dataclass(frozen=True)
class PurchaseDetail:
    """Expected receipt from a receipt schedule."""

    receipt_schedule_id: int
    planned_qty: Decimal
    advised: Flag = Flag.FALSE

    def __post_init__(self) -> None:
        object.__setattr__(self, "planned_qty", to_qty(self.planned_qty))

    @property
    def business_case(self) -> CandidateBusinessCase:
        return CandidateBusinessCase.PURCHASE


BusinessCaseDetail = ProductionDetail | DistributionDetail | DemandDetail | PurchaseDetail


# =============================================================================
# Candidate
# =============================================================================


@dataclass(frozen=True)
class Candidate:
    """
    A planned or actual change of stock for one product and warehouse.

    ``business_case_detail`` ties the candidate to its business process;
    ``demand_detail`` is an additional demand reference that production and
    distribution candidates may carry.  Shipment candidates hold their
    ``DemandDetail`` as the business-case detail and leave it None.  ``transaction_details`` record the
    actual inventory transactions booked against the candidate.
    """

    type: CandidateType
    event_descriptor: EventDescriptor
    material_descriptor: MaterialDescriptor
    business_case_detail: BusinessCaseDetail | None = None
    demand_detail: DemandDetail | None = None
    transaction_details: tuple[TransactionDetail, ...] = field(default_factory=tuple)
    id: UUID | None = None

    def __post_init__(self) -> None:
        details = tuple(self.transaction_details)
        object.__setattr__(self, "transaction_details", details)

        seen: set[int] = set()
        for detail in details:
            if detail.transaction_id in seen:
                raise ValueError(
                    f"Candidate has more than one transaction detail for "
                    f"transaction_id={detail.transaction_id}"
                )
            seen.add(detail.transaction_id)

    @property
    def business_case(self) -> CandidateBusinessCase | None:
        if self.business_case_detail is None:
            return None
        return self.business_case_detail.business_case

    @property
    def quantity(self) -> Decimal:
        return self.material_descriptor.quantity

    @property
    def planned_qty(self) -> Decimal:
        if self.business_case_detail is None:
            return ZERO
        return self.business_case_detail.planned_qty

    def compute_actual_qty(self) -> Decimal:
        """Sum of the quantities of all transaction details."""
        return sum((detail.quantity for detail in self.transaction_details), ZERO)

    def with_quantity(self, quantity: Decimal) -> Candidate:
        return replace(self, material_descriptor=self.material_descriptor.with_quantity(quantity))

    def with_transaction_details(self, details) -> Candidate:
        return replace(self, transaction_details=tuple(details))

    def with_id(self, candidate_id: UUID) -> Candidate:
        return replace(self, id=candidate_id)
