"""
TransactionEventHandler -- reconciles inventory transactions with candidates.

Responsibility:
    For every transaction created/deleted event, finds the candidate the
    transaction belongs to (by shipment schedule, receipt schedule,
    production order, distribution order line, or transaction id), merges the
    transaction into it or creates a new unrelated candidate, and hands the
    result to ``CandidateChangeService``.  For production and distribution
    candidates it may request direct picking of the received HUs.

Architecture position:
    Modules > Dispo.  Reads through ``CandidateRepository``, writes through
    ``CandidateChangeService``, posts outbound events on ``MaterialEventBus``.

Dispatch (first match wins):
    1. shipment schedule quantities  -> one DEMAND-keyed candidate per entry
    2. receipt schedule quantities   -> one SUPPLY-keyed candidate per entry
    3. production order id           -> production candidate, then picking check
    4. distribution order line id    -> distribution candidate, then picking check
    5. otherwise                     -> candidate keyed by transaction id

Invariants enforced:
    - A merged candidate holds exactly one transaction detail per
      transaction id, sorted by transaction id, and its quantity is
      max(actual, planned).
    - Picking requests are delivered only after the enclosing transaction
      commits.

Failure modes:
    - UnexpectedTransactionEventError: a deletion event for a transaction
      that no candidate knows.
    - UnsupportedBusinessCaseError: picking check on a candidate that is
      neither production nor distribution.
"""

from __future__ import annotations

from decimal import Decimal

from sqlalchemy.orm import Session

from material_config.schema import DispoConfig
from material_kernel.exceptions import (
    UnexpectedTransactionEventError,
    UnsupportedBusinessCaseError,
)
from material_kernel.logging_config import LogContext, get_logger
from material_kernel.services.event_bus import MaterialEventBus
from material_modules.dispo.change_service import CandidateChangeService
from material_modules.dispo.events import (
    AbstractTransactionEvent,
    PickingRequestedEvent,
    TransactionCreatedEvent,
    TransactionDeletedEvent,
)
from material_modules.dispo.models import (
    Candidate,
    CandidateType,
    DemandDetail,
    DistributionDetail,
    Flag,
    ProductionDetail,
    PurchaseDetail,
    TransactionDetail,
)
from material_modules.dispo.queries import (
    CandidatesQuery,
    DemandDetailsQuery,
    DistributionDetailsQuery,
    ProductionDetailsQuery,
    PurchaseDetailsQuery,
)
from material_modules.dispo.repository import CandidateRepository

logger = get_logger("modules.dispo.transaction_handler")


def create_builder_for_new_unrelated_candidate(
    event: TransactionCreatedEvent,
    quantity: Decimal,
    **fields,
) -> Candidate:
    """
    New candidate for a transaction nothing planned.

    A non-positive *quantity* yields UNRELATED_DECREASE with the event's
    material descriptor carrying the negated quantity; otherwise
    UNRELATED_INCREASE with the event's material descriptor unchanged.
    """
    if quantity <= 0:
        return Candidate(
            type=CandidateType.UNRELATED_DECREASE,
            event_descriptor=event.event_descriptor,
            material_descriptor=event.material_descriptor.with_quantity(-quantity),
            **fields,
        )
    return Candidate(
        type=CandidateType.UNRELATED_INCREASE,
        event_descriptor=event.event_descriptor,
        material_descriptor=event.material_descriptor,
        **fields,
    )


def create_candidate_with_changed_transaction_detail_and_quantity(
    candidate: Candidate,
    changed_detail: TransactionDetail,
) -> Candidate:
    """Replace the detail for ``changed_detail.transaction_id`` and recompute quantity."""
    others = [
        detail
        for detail in candidate.transaction_details
        if detail.transaction_id != changed_detail.transaction_id
    ]
    details = sorted([changed_detail, *others], key=lambda d: d.transaction_id)

    with_details = candidate.with_transaction_details(details)
    actual_qty = with_details.compute_actual_qty()
    return with_details.with_quantity(max(actual_qty, candidate.planned_qty))


def create_transaction_detail(event: AbstractTransactionEvent) -> TransactionDetail:
    return TransactionDetail(transaction_id=event.transaction_id, quantity=event.quantity_delta)


class TransactionEventHandler:
    """
    Contract:
        ``handle_event`` turns one transaction event into zero or more saved
        candidates.  ``create_candidates_for_transaction_event`` computes the
        candidates without saving them (the picking check still runs).

    Guarantees:
        - Candidates are looked up and merged inside the caller's transaction.
        - Outbound picking requests wait for the commit.

    Non-goals:
        Committing, retrying, or re-planning candidates other than the one
        the transaction belongs to.
    """

    def __init__(
        self,
        candidate_change_service: CandidateChangeService,
        candidate_repository: CandidateRepository,
        event_bus: MaterialEventBus,
        config: DispoConfig | None = None,
    ):
        self._candidate_change_service = candidate_change_service
        self._candidate_repository = candidate_repository
        self._event_bus = event_bus
        self._config = config or DispoConfig()

    @classmethod
    def from_session(
        cls,
        session: Session,
        event_bus: MaterialEventBus | None = None,
        config: DispoConfig | None = None,
    ) -> TransactionEventHandler:
        """Wire a handler with repository, change service and bus for *session*."""
        repository = CandidateRepository(session)
        return cls(
            candidate_change_service=CandidateChangeService(repository),
            candidate_repository=repository,
            event_bus=event_bus or MaterialEventBus(session),
            config=config,
        )

    @property
    def handled_event_types(self) -> tuple[type[AbstractTransactionEvent], ...]:
        return (TransactionCreatedEvent, TransactionDeletedEvent)

    def subscribe(self, event_bus: MaterialEventBus) -> None:
        """Register ``handle_event`` for every handled event type on *event_bus*."""
        for event_class in self.handled_event_types:
            event_bus.register_subscriber(event_class.EVENT_TYPE, self.handle_event)

    # =========================================================================
    # Entry points
    # =========================================================================

    def handle_event(self, event: AbstractTransactionEvent) -> list[Candidate]:
        with LogContext.bind(transaction_id=event.transaction_id):
            logger.info(
                "transaction_event_received",
                extra={"event_type": event.event_type, "quantity": event.quantity},
            )
            candidates = self.create_candidates_for_transaction_event(event)
            return [
                self._candidate_change_service.on_candidate_new_or_change(candidate)
                for candidate in candidates
            ]

    def create_candidates_for_transaction_event(
        self, event: AbstractTransactionEvent
    ) -> list[Candidate]:
        if event.shipment_schedule_ids_to_qtys:
            return [
                self._candidate_for_shipment_schedule(event, ssid, qty)
                for ssid, qty in event.shipment_schedule_ids_to_qtys.items()
            ]

        if event.receipt_schedule_ids_to_qtys:
            return [
                self._candidate_for_receipt_schedule(event, rsid, qty)
                for rsid, qty in event.receipt_schedule_ids_to_qtys.items()
            ]

        if event.pp_order_id > 0:
            candidate = self._candidate_for_pp_order(event)
            self.fire_pick_required_event_if_feasible(candidate, event)
            return [candidate]

        if event.dd_order_line_id > 0:
            candidate = self._candidate_for_dd_order(event)
            self.fire_pick_required_event_if_feasible(candidate, event)
            return [candidate]

        return [self._unrelated_candidate(event)]

    # =========================================================================
    # Branches
    # =========================================================================

    def _merge_or_create(
        self,
        event: AbstractTransactionEvent,
        query: CandidatesQuery,
        new_quantity: Decimal,
        **new_fields,
    ) -> Candidate:
        transaction_detail = create_transaction_detail(event)
        existing = self._candidate_repository.retrieve_latest_match_or_none(query)

        if existing is not None:
            logger.debug(
                "candidate_matched",
                extra={"candidate_id": str(existing.id), "candidate_type": existing.type.name},
            )
            return create_candidate_with_changed_transaction_detail_and_quantity(
                existing, transaction_detail
            )

        if isinstance(event, TransactionCreatedEvent):
            return create_builder_for_new_unrelated_candidate(
                event,
                new_quantity,
                transaction_details=(transaction_detail,),
                **new_fields,
            )

        raise UnexpectedTransactionEventError(event)

    def _candidate_for_shipment_schedule(
        self, event: AbstractTransactionEvent, shipment_schedule_id: int, qty: Decimal
    ) -> Candidate:
        demand_detail = DemandDetail.for_shipment_schedule_id_and_order_line_id(
            shipment_schedule_id, -1, -1, qty
        )
        query = CandidatesQuery(
            type=CandidateType.DEMAND,
            demand_detail_query=DemandDetailsQuery(shipment_schedule_id=shipment_schedule_id),
        )
        return self._merge_or_create(event, query, qty, business_case_detail=demand_detail)

    def _candidate_for_receipt_schedule(
        self, event: AbstractTransactionEvent, receipt_schedule_id: int, qty: Decimal
    ) -> Candidate:
        query = CandidatesQuery(
            type=CandidateType.SUPPLY,
            purchase_detail_query=PurchaseDetailsQuery(receipt_schedule_id=receipt_schedule_id),
        )
        purchase_detail = PurchaseDetail(
            receipt_schedule_id=receipt_schedule_id,
            planned_qty=qty,
            advised=Flag.FALSE_DONT_UPDATE,
        )
        return self._merge_or_create(
            event, query, event.quantity, business_case_detail=purchase_detail
        )

    def _candidate_for_pp_order(self, event: AbstractTransactionEvent) -> Candidate:
        line_id = (
            event.pp_order_line_id
            if event.pp_order_line_id > 0
            else ProductionDetailsQuery.NO_PP_ORDER_LINE_ID
        )
        production_query = ProductionDetailsQuery(pp_order_id=event.pp_order_id, pp_order_line_id=line_id)
        production_detail = production_query.to_production_detail(
            planned_qty=event.quantity,
            advised=Flag.FALSE_DONT_UPDATE,
            pick_directly_if_feasible=Flag.FALSE_DONT_UPDATE,
        )
        return self._merge_or_create(
            event,
            CandidatesQuery(production_detail_query=production_query),
            event.quantity,
            business_case_detail=production_detail,
        )

    def _candidate_for_dd_order(self, event: AbstractTransactionEvent) -> Candidate:
        distribution_query = DistributionDetailsQuery(
            dd_order_id=event.dd_order_id,
            dd_order_line_id=event.dd_order_line_id,
        )
        distribution_detail = distribution_query.to_distribution_detail(
            planned_qty=event.quantity,
            pick_directly_if_feasible=Flag.FALSE_DONT_UPDATE,
        )
        return self._merge_or_create(
            event,
            CandidatesQuery(distribution_detail_query=distribution_query),
            event.quantity,
            business_case_detail=distribution_detail,
        )

    def _unrelated_candidate(self, event: AbstractTransactionEvent) -> Candidate:
        return self._merge_or_create(
            event,
            CandidatesQuery.for_transaction_id(event.transaction_id),
            event.quantity,
        )

    # =========================================================================
    # Picking
    # =========================================================================

    def fire_pick_required_event_if_feasible(
        self,
        candidate: Candidate,
        event: AbstractTransactionEvent,
    ) -> PickingRequestedEvent | None:
        """
        Post a PickingRequestedEvent after commit when the candidate asks for
        direct picking, has a shipment schedule to pick for and the event
        reports HUs.  Returns the queued event, or None when skipped.

        Raises:
            UnsupportedBusinessCaseError: candidate is neither production nor
                distribution.
        """
        if isinstance(event, TransactionDeletedEvent):
            return None

        pick_directly_if_feasible = self._extract_pick_directly_if_feasible(candidate)

        if not self._config.picking_requests_enabled:
            logger.info("picking_request_skipped", extra={"reason": "picking_requests_disabled"})
            return None

        if not pick_directly_if_feasible.to_boolean():
            logger.info(
                "picking_request_skipped",
                extra={
                    "reason": "pick_directly_if_feasible_false",
                    "pick_directly_if_feasible": pick_directly_if_feasible.name,
                    "candidate_id": str(candidate.id) if candidate.id else None,
                },
            )
            return None

        demand_detail = candidate.demand_detail
        if demand_detail is None or demand_detail.shipment_schedule_id <= 0:
            logger.info(
                "picking_request_skipped",
                extra={
                    "reason": "no_shipment_schedule",
                    "candidate_id": str(candidate.id) if candidate.id else None,
                },
            )
            return None

        if not event.hu_on_hand_qty_change_descriptors:
            logger.info("picking_request_skipped", extra={"reason": "no_hu_descriptors"})
            return None

        hu_ids_to_pick = tuple(
            hu.hu_id for hu in event.hu_on_hand_qty_change_descriptors if hu.quantity > 0
        )
        picking_event = PickingRequestedEvent(
            event_descriptor=event.event_descriptor,
            shipment_schedule_id=demand_detail.shipment_schedule_id,
            top_level_hu_ids_to_pick=hu_ids_to_pick,
        )
        self._event_bus.post_event_after_next_commit(picking_event)
        logger.info(
            "picking_request_posted",
            extra={
                "shipment_schedule_id": demand_detail.shipment_schedule_id,
                "hu_ids": list(hu_ids_to_pick),
            },
        )
        return picking_event

    @staticmethod
    def _extract_pick_directly_if_feasible(candidate: Candidate) -> Flag:
        match candidate.business_case_detail:
            case ProductionDetail(pick_directly_if_feasible=flag):
                return flag
            case DistributionDetail(pick_directly_if_feasible=flag):
                return flag
            case _:
                raise UnsupportedBusinessCaseError(candidate.business_case, candidate)
