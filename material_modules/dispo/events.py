"""
Material events consumed and produced by the dispo module.

Inbound:
    ``TransactionCreatedEvent`` / ``TransactionDeletedEvent`` -- an inventory
    transaction was booked or reverted.

Outbound:
    ``PickingRequestedEvent`` -- HUs that can be picked directly for a
    shipment schedule.  Posted after the enclosing transaction commits.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from decimal import Decimal
from typing import ClassVar

from material_kernel.db.types import NO_REPO_ID, to_qty
from material_modules.dispo.models import EventDescriptor, MaterialDescriptor

TRANSACTION_CREATED = "material.transaction.created"
TRANSACTION_DELETED = "material.transaction.deleted"
PICKING_REQUESTED = "material.picking.requested"


@dataclass(frozen=True)
class HUDescriptor:
    """On-hand quantity change of one handling unit."""

    hu_id: int
    quantity: Decimal

    def __post_init__(self) -> None:
        object.__setattr__(self, "quantity", to_qty(self.quantity))


def _qty_map(values: Mapping[int, Decimal] | None) -> dict[int, Decimal]:
    return {int(key): to_qty(value) for key, value in (values or {}).items()}


@dataclass(frozen=True)
class AbstractTransactionEvent:
    """
    Common payload of transaction events.

    At most one of the business references is expected to be set; the
    handler dispatches on the first one present in the order shipment
    schedules, receipt schedules, production order, distribution order line.
    """

    EVENT_TYPE: ClassVar[str] = ""

    event_descriptor: EventDescriptor
    material_descriptor: MaterialDescriptor
    transaction_id: int
    shipment_schedule_ids_to_qtys: Mapping[int, Decimal] = field(default_factory=dict)
    receipt_schedule_ids_to_qtys: Mapping[int, Decimal] = field(default_factory=dict)
    pp_order_id: int = NO_REPO_ID
    pp_order_line_id: int = NO_REPO_ID
    dd_order_id: int = NO_REPO_ID
    dd_order_line_id: int = NO_REPO_ID
    hu_on_hand_qty_change_descriptors: tuple[HUDescriptor, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if type(self) is AbstractTransactionEvent:
            raise TypeError("AbstractTransactionEvent cannot be instantiated directly")
        object.__setattr__(
            self, "shipment_schedule_ids_to_qtys", _qty_map(self.shipment_schedule_ids_to_qtys)
        )
        object.__setattr__(
            self, "receipt_schedule_ids_to_qtys", _qty_map(self.receipt_schedule_ids_to_qtys)
        )
        object.__setattr__(
            self,
            "hu_on_hand_qty_change_descriptors",
            tuple(self.hu_on_hand_qty_change_descriptors or ()),
        )

    @property
    def event_type(self) -> str:
        return self.EVENT_TYPE

    @property
    def quantity(self) -> Decimal:
        return self.material_descriptor.quantity

    @property
    def quantity_delta(self) -> Decimal:
        raise NotImplementedError


@dataclass(frozen=True)
class TransactionCreatedEvent(AbstractTransactionEvent):
    """An inventory transaction was booked."""

    EVENT_TYPE: ClassVar[str] = TRANSACTION_CREATED

    @property
    def quantity_delta(self) -> Decimal:
        return self.quantity


@dataclass(frozen=True)
class TransactionDeletedEvent(AbstractTransactionEvent):
    """An inventory transaction was reverted; its quantity is taken back."""

    EVENT_TYPE: ClassVar[str] = TRANSACTION_DELETED

    @property
    def quantity_delta(self) -> Decimal:
        return -self.quantity


@dataclass(frozen=True)
class PickingRequestedEvent:
    """Request to pick the given top-level HUs for a shipment schedule."""

    EVENT_TYPE: ClassVar[str] = PICKING_REQUESTED

    event_descriptor: EventDescriptor
    shipment_schedule_id: int
    top_level_hu_ids_to_pick: tuple[int, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        object.__setattr__(self, "top_level_hu_ids_to_pick", tuple(self.top_level_hu_ids_to_pick))

    @property
    def event_type(self) -> str:
        return self.EVENT_TYPE
