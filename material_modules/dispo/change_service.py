"""
CandidateChangeService -- entry point for new or changed candidates.

Persists the candidate and records the change in the structured log.
Flushes through the repository; never commits.
"""

from __future__ import annotations

from material_kernel.logging_config import LogContext, get_logger
from material_modules.dispo.models import Candidate
from material_modules.dispo.repository import CandidateRepository

logger = get_logger("modules.dispo.change_service")


class CandidateChangeService:
    """
    Contract:
        ``on_candidate_new_or_change`` saves the candidate and returns the
        stored copy (with id).

    Non-goals:
        Re-planning downstream supply or demand.
    """

    def __init__(self, candidate_repository: CandidateRepository):
        self._repository = candidate_repository

    def on_candidate_new_or_change(self, candidate: Candidate) -> Candidate:
        saved = self._repository.save(candidate)
        with LogContext.bind(candidate_id=saved.id):
            logger.info(
                "candidate_saved",
                extra={
                    "candidate_type": saved.type.name,
                    "business_case": saved.business_case.name if saved.business_case else None,
                    "quantity": saved.quantity,
                    "planned_qty": saved.planned_qty,
                    "actual_qty": saved.compute_actual_qty(),
                },
            )
        return saved
