"""Tests for the dispo value objects and the Candidate aggregate."""

from datetime import UTC, datetime
from decimal import Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from material_modules.dispo.events import (
    AbstractTransactionEvent,
    HUDescriptor,
    PickingRequestedEvent,
    TransactionCreatedEvent,
    TransactionDeletedEvent,
)
from material_modules.dispo.models import (
    Candidate,
    CandidateBusinessCase,
    CandidateType,
    DemandDetail,
    DistributionDetail,
    EventDescriptor,
    Flag,
    MaterialDescriptor,
    ProductionDetail,
    PurchaseDetail,
    TransactionDetail,
)
from material_modules.dispo.queries import (
    CandidatesQuery,
    DemandDetailsQuery,
    DistributionDetailsQuery,
    ProductionDetailsQuery,
)


class TestFlag:

    @pytest.mark.parametrize(
        "flag,expected",
        [
            (Flag.TRUE, True),
            (Flag.TRUE_DONT_UPDATE, True),
            (Flag.FALSE, False),
            (Flag.FALSE_DONT_UPDATE, False),
        ],
    )
    def test_to_boolean(self, flag, expected):
        assert flag.to_boolean() is expected


class TestBusinessCaseDetails:

    def test_business_case_per_variant(self):
        assert ProductionDetail(1, 2, Decimal("1")).business_case is CandidateBusinessCase.PRODUCTION
        assert DistributionDetail(1, 2, Decimal("1")).business_case is CandidateBusinessCase.DISTRIBUTION
        assert DemandDetail(1, -1, -1, Decimal("1")).business_case is CandidateBusinessCase.SHIPMENT
        assert PurchaseDetail(1, Decimal("1")).business_case is CandidateBusinessCase.PURCHASE

    def test_demand_detail_factory(self):
        detail = DemandDetail.for_shipment_schedule_id_and_order_line_id(7, -1, -1, Decimal("3"))
        assert detail == DemandDetail(
            shipment_schedule_id=7,
            order_line_id=-1,
            subscription_progress_id=-1,
            planned_qty=Decimal("3"),
        )

    def test_float_quantities_rejected(self):
        with pytest.raises(TypeError):
            PurchaseDetail(receipt_schedule_id=1, planned_qty=1.5)


class TestCandidate:

    def test_duplicate_transaction_id_rejected(self, event_descriptor, material_descriptor_factory):
        with pytest.raises(ValueError):
            Candidate(
                type=CandidateType.UNRELATED_INCREASE,
                event_descriptor=event_descriptor,
                material_descriptor=material_descriptor_factory(1),
                transaction_details=(
                    TransactionDetail(1, Decimal("1")),
                    TransactionDetail(1, Decimal("2")),
                ),
            )

    def test_planned_qty_zero_without_detail(self, event_descriptor, material_descriptor_factory):
        candidate = Candidate(
            type=CandidateType.UNRELATED_INCREASE,
            event_descriptor=event_descriptor,
            material_descriptor=material_descriptor_factory(4),
        )
        assert candidate.planned_qty == Decimal("0")
        assert candidate.business_case is None

    def test_planned_qty_from_detail(self, event_descriptor, material_descriptor_factory):
        candidate = Candidate(
            type=CandidateType.SUPPLY,
            event_descriptor=event_descriptor,
            material_descriptor=material_descriptor_factory(4),
            business_case_detail=PurchaseDetail(3, Decimal("12")),
        )
        assert candidate.planned_qty == Decimal("12")
        assert candidate.business_case is CandidateBusinessCase.PURCHASE

    def test_with_quantity_returns_copy(self, event_descriptor, material_descriptor_factory):
        candidate = Candidate(
            type=CandidateType.STOCK,
            event_descriptor=event_descriptor,
            material_descriptor=material_descriptor_factory(4),
        )
        changed = candidate.with_quantity(Decimal("9"))
        assert changed.quantity == Decimal("9")
        assert candidate.quantity == Decimal("4")

    @given(quantities=st.lists(st.integers(min_value=-1000, max_value=1000), max_size=10))
    def test_actual_qty_is_sum_of_details(self, quantities):
        candidate = Candidate(
            type=CandidateType.UNRELATED_INCREASE,
            event_descriptor=EventDescriptor(1, 1),
            material_descriptor=MaterialDescriptor(1, 1, datetime(2024, 1, 1, tzinfo=UTC), Decimal("0")),
            transaction_details=tuple(
                TransactionDetail(index, Decimal(q)) for index, q in enumerate(quantities)
            ),
        )
        assert candidate.compute_actual_qty() == sum(Decimal(q) for q in quantities)


class TestTransactionEvents:

    def test_created_delta_is_quantity(self, event_descriptor, material_descriptor_factory):
        event = TransactionCreatedEvent(event_descriptor, material_descriptor_factory(5), transaction_id=1)
        assert event.quantity_delta == Decimal("5")
        assert event.event_type == "material.transaction.created"

    def test_deleted_delta_is_negated(self, event_descriptor, material_descriptor_factory):
        event = TransactionDeletedEvent(event_descriptor, material_descriptor_factory(5), transaction_id=1)
        assert event.quantity_delta == Decimal("-5")
        assert event.event_type == "material.transaction.deleted"

    def test_schedule_maps_normalized(self, event_descriptor, material_descriptor_factory):
        event = TransactionCreatedEvent(
            event_descriptor,
            material_descriptor_factory(5),
            transaction_id=1,
            shipment_schedule_ids_to_qtys={"7": "2.5"},
            hu_on_hand_qty_change_descriptors=[HUDescriptor(1, "1")],
        )
        assert event.shipment_schedule_ids_to_qtys == {7: Decimal("2.5")}
        assert event.hu_on_hand_qty_change_descriptors == (HUDescriptor(1, Decimal("1")),)

    def test_abstract_event_not_instantiable(self, event_descriptor, material_descriptor_factory):
        with pytest.raises(TypeError):
            AbstractTransactionEvent(event_descriptor, material_descriptor_factory(1), transaction_id=1)

    def test_picking_requested_event_type(self, event_descriptor):
        event = PickingRequestedEvent(event_descriptor, 7, [1, 2])
        assert event.event_type == "material.picking.requested"
        assert event.top_level_hu_ids_to_pick == (1, 2)


class TestCandidatesQuery:

    def test_requires_exactly_one_key(self):
        with pytest.raises(ValueError):
            CandidatesQuery(type=CandidateType.DEMAND)
        with pytest.raises(ValueError):
            CandidatesQuery(
                demand_detail_query=DemandDetailsQuery(1),
                transaction_id=5,
            )

    def test_production_query_defaults_to_header(self):
        query = ProductionDetailsQuery(pp_order_id=3)
        assert query.pp_order_line_id == ProductionDetailsQuery.NO_PP_ORDER_LINE_ID == -1

    def test_production_query_to_detail(self):
        detail = ProductionDetailsQuery(3, 4).to_production_detail(
            Decimal("8"), advised=Flag.FALSE_DONT_UPDATE, pick_directly_if_feasible=Flag.TRUE
        )
        assert detail == ProductionDetail(3, 4, Decimal("8"), Flag.FALSE_DONT_UPDATE, Flag.TRUE)

    def test_distribution_query_to_detail(self):
        detail = DistributionDetailsQuery(5, 6).to_distribution_detail(Decimal("2"))
        assert detail == DistributionDetail(5, 6, Decimal("2"), Flag.FALSE)
