"""
Dispo Module (material disposition).

Candidates are planned or actual stock changes.  Inventory transaction events
are reconciled with the candidates they belong to; transactions nothing
planned become unrelated increase/decrease candidates.
"""

from material_modules.dispo.change_service import CandidateChangeService
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
    PurchaseDetailsQuery,
)
from material_modules.dispo.repository import CandidateRepository
from material_modules.dispo.transaction_handler import TransactionEventHandler

__all__ = [
    "AbstractTransactionEvent",
    "Candidate",
    "CandidateBusinessCase",
    "CandidateChangeService",
    "CandidateRepository",
    "CandidateType",
    "CandidatesQuery",
    "DemandDetail",
    "DemandDetailsQuery",
    "DistributionDetail",
    "DistributionDetailsQuery",
    "EventDescriptor",
    "Flag",
    "HUDescriptor",
    "MaterialDescriptor",
    "PickingRequestedEvent",
    "ProductionDetail",
    "ProductionDetailsQuery",
    "PurchaseDetail",
    "PurchaseDetailsQuery",
    "TransactionCreatedEvent",
    "TransactionDeletedEvent",
    "TransactionDetail",
    "TransactionEventHandler",
]
