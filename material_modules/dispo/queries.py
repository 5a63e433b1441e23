"""
Candidate lookup queries.

``CandidatesQuery`` combines an optional candidate type with exactly one
business key: a demand, purchase, production or distribution detail query,
or a transaction id.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from material_modules.dispo.models import (
    CandidateType,
    DistributionDetail,
    Flag,
    ProductionDetail,
)


@dataclass(frozen=True)
class DemandDetailsQuery:
    shipment_schedule_id: int


@dataclass(frozen=True)
class PurchaseDetailsQuery:
    receipt_schedule_id: int


@dataclass(frozen=True)
class ProductionDetailsQuery:
    """Matches a production candidate by order and line.

    ``pp_order_line_id == NO_PP_ORDER_LINE_ID`` selects the header candidate.
    """

    NO_PP_ORDER_LINE_ID = -1

    pp_order_id: int
    pp_order_line_id: int = NO_PP_ORDER_LINE_ID

    def to_production_detail(
        self,
        planned_qty: Decimal,
        advised: Flag = Flag.FALSE,
        pick_directly_if_feasible: Flag = Flag.FALSE,
    ) -> ProductionDetail:
        return ProductionDetail(
            pp_order_id=self.pp_order_id,
            pp_order_line_id=self.pp_order_line_id,
            planned_qty=planned_qty,
            advised=advised,
            pick_directly_if_feasible=pick_directly_if_feasible,
        )


@dataclass(frozen=True)
class DistributionDetailsQuery:
    dd_order_id: int
    dd_order_line_id: int

    def to_distribution_detail(
        self,
        planned_qty: Decimal,
        pick_directly_if_feasible: Flag = Flag.FALSE,
    ) -> DistributionDetail:
        return DistributionDetail(
            dd_order_id=self.dd_order_id,
            dd_order_line_id=self.dd_order_line_id,
            planned_qty=planned_qty,
            pick_directly_if_feasible=pick_directly_if_feasible,
        )


@dataclass(frozen=True)
class CandidatesQuery:
    """
    Query for the latest candidate matching one business key.

    Raises:
        ValueError: not exactly one business key is set.
    """

    type: CandidateType | None = None
    demand_detail_query: DemandDetailsQuery | None = None
    purchase_detail_query: PurchaseDetailsQuery | None = None
    production_detail_query: ProductionDetailsQuery | None = None
    distribution_detail_query: DistributionDetailsQuery | None = None
    transaction_id: int | None = None

    def __post_init__(self) -> None:
        keys = [
            self.demand_detail_query,
            self.purchase_detail_query,
            self.production_detail_query,
            self.distribution_detail_query,
            self.transaction_id,
        ]
        set_keys = sum(1 for key in keys if key is not None)
        if set_keys != 1:
            raise ValueError(
                f"CandidatesQuery needs exactly one business key, got {set_keys}"
            )

    @classmethod
    def for_transaction_id(cls, transaction_id: int) -> CandidatesQuery:
        return cls(transaction_id=transaction_id)
