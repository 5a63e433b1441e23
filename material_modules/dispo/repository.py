"""
CandidateRepository -- persistence of the Candidate aggregate.

Responsibility:
    Loads the latest candidate matching a business key and saves candidates
    together with their transaction details.

Architecture position:
    Modules > Dispo.  The only component that touches the dispo tables.

Invariants enforced:
    - Only active candidates are visible.
    - "Latest" means highest seq; seq grows with every inserted candidate.
    - Saving replaces the stored transaction details with exactly the
      candidate's details (rows matched by transaction id are updated in
      place, missing ones removed, new ones inserted).

Transaction boundaries:
    Flushes, never commits.
"""

from __future__ import annotations

from uuid import UUID, uuid4

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from material_kernel.exceptions import CandidateNotFoundError
from material_kernel.logging_config import get_logger
from material_kernel.services.base import BaseService
from material_modules.dispo.models import Candidate, CandidateBusinessCase
from material_modules.dispo.orm import CandidateModel, TransactionDetailModel
from material_modules.dispo.queries import CandidatesQuery

logger = get_logger("modules.dispo.repository")


class CandidateRepository(BaseService):
    """
    Contract:
        ``retrieve_latest_match_or_none`` returns the newest active candidate
        matching a query, or None.  ``save`` inserts or updates a candidate
        and returns it with its id set.

    Non-goals:
        Hard deletion of candidates.
    """

    def __init__(self, session: Session):
        super().__init__(session)

    # =========================================================================
    # Reads
    # =========================================================================

    def retrieve_latest_match_or_none(self, query: CandidatesQuery) -> Candidate | None:
        stmt = (
            self._apply_query(select(CandidateModel), query)
            .options(selectinload(CandidateModel.transaction_details))
            .order_by(CandidateModel.seq.desc())
            .limit(1)
        )
        model = self.session.execute(stmt).scalars().first()
        return model.to_dto() if model is not None else None

    def retrieve_by_id(self, candidate_id: UUID) -> Candidate:
        """
        Raises:
            CandidateNotFoundError: no active candidate with this id.
        """
        model = self._get_model(candidate_id)
        if model is None:
            raise CandidateNotFoundError(str(candidate_id))
        return model.to_dto()

    def _get_model(self, candidate_id: UUID) -> CandidateModel | None:
        model = self.session.get(CandidateModel, candidate_id)
        if model is None or not model.is_active:
            return None
        return model

    def _apply_query(self, stmt, query: CandidatesQuery):
        stmt = stmt.where(CandidateModel.is_active.is_(True))
        if query.type is not None:
            stmt = stmt.where(CandidateModel.candidate_type == query.type.name)

        if query.demand_detail_query is not None:
            ssid = query.demand_detail_query.shipment_schedule_id
            stmt = stmt.where(
                or_(
                    (CandidateModel.business_case == CandidateBusinessCase.SHIPMENT.name)
                    & (CandidateModel.shipment_schedule_id == ssid),
                    CandidateModel.demand_shipment_schedule_id == ssid,
                )
            )
        elif query.purchase_detail_query is not None:
            stmt = stmt.where(
                CandidateModel.business_case == CandidateBusinessCase.PURCHASE.name,
                CandidateModel.receipt_schedule_id == query.purchase_detail_query.receipt_schedule_id,
            )
        elif query.production_detail_query is not None:
            production = query.production_detail_query
            stmt = stmt.where(
                CandidateModel.business_case == CandidateBusinessCase.PRODUCTION.name,
                CandidateModel.pp_order_id == production.pp_order_id,
                CandidateModel.pp_order_line_id == production.pp_order_line_id,
            )
        elif query.distribution_detail_query is not None:
            distribution = query.distribution_detail_query
            stmt = stmt.where(
                CandidateModel.business_case == CandidateBusinessCase.DISTRIBUTION.name,
                CandidateModel.dd_order_id == distribution.dd_order_id,
                CandidateModel.dd_order_line_id == distribution.dd_order_line_id,
            )
        else:
            stmt = stmt.where(
                CandidateModel.transaction_details.any(
                    TransactionDetailModel.transaction_id == query.transaction_id
                )
            )
        return stmt

    # =========================================================================
    # Writes
    # =========================================================================

    def save(self, candidate: Candidate) -> Candidate:
        """Insert or update *candidate*; returns it with ``id`` set."""
        model = self._get_model(candidate.id) if candidate.id is not None else None
        created = model is None

        if created:
            model = CandidateModel(id=candidate.id or uuid4(), seq=self._next_seq())
            self.session.add(model)

        model.apply_candidate(candidate)
        self._sync_transaction_details(model, candidate)
        self.session.flush()

        logger.debug(
            "candidate_persisted",
            extra={
                "candidate_id": str(model.id),
                "seq": model.seq,
                "inserted": created,
                "transaction_detail_count": len(candidate.transaction_details),
            },
        )
        return candidate.with_id(model.id)

    def _next_seq(self) -> int:
        current = self.session.execute(select(func.max(CandidateModel.seq))).scalar()
        return (current or 0) + 1

    @staticmethod
    def _sync_transaction_details(model: CandidateModel, candidate: Candidate) -> None:
        wanted = {detail.transaction_id: detail for detail in candidate.transaction_details}

        for row in list(model.transaction_details):
            detail = wanted.pop(row.transaction_id, None)
            if detail is None:
                model.transaction_details.remove(row)
            else:
                row.quantity = detail.quantity

        for detail in wanted.values():
            model.transaction_details.append(TransactionDetailModel.from_dto(detail))
