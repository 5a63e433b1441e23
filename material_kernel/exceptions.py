"""
Typed Exception Hierarchy for the Material Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers catch by type, never by message text. Every exception carries:
  1. a TYPED class
  2. a CODE attribute (machine-readable, log- and API-safe)
  3. structured DATA describing the offending query or event

Example:
    try:
        handler.handle_event(event)
    except UnexpectedTransactionEventError as e:
        log.error("transaction_rejected", extra={"code": e.code,
                                                 "transaction_id": e.transaction_id})

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    MaterialKernelError (base)
    |
    +-- TraceError
    |   +-- AmbiguousTraceRecordError
    |   +-- LineageLimitExceededError
    |
    +-- CandidateError
    |   +-- UnexpectedTransactionEventError
    |   +-- UnsupportedBusinessCaseError
    |   +-- CandidateNotFoundError
    |
    +-- EventBusError
        +-- DuplicateSubscriberError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                          | When Raised
-----------|-------------------------------|--------------------------------------
Trace      | AMBIGUOUS_TRACE_RECORD        | >1 record for (vhu_id, event_time)
           | LINEAGE_LIMIT_EXCEEDED        | Lineage walk deeper/larger than allowed
-----------|-------------------------------|--------------------------------------
Candidate  | UNEXPECTED_TRANSACTION_EVENT  | Deletion of a never-recorded transaction
           | UNSUPPORTED_BUSINESS_CASE     | No handler for candidate's business case
           | CANDIDATE_NOT_FOUND           | Candidate id does not exist
-----------|-------------------------------|--------------------------------------
Event bus  | DUPLICATE_SUBSCRIBER          | Same handler registered twice

All of these are consistency faults: fatal to the current operation and
never retried.
"""

from typing import Any


class MaterialKernelError(Exception):
    """
    Base exception for all material kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "MATERIAL_KERNEL_ERROR"


# Trace-related exceptions


class TraceError(MaterialKernelError):
    """Base exception for handling-unit trace errors."""

    code: str = "TRACE_ERROR"


class AmbiguousTraceRecordError(TraceError):
    """More than one trace record matches a key that must be unique."""

    code: str = "AMBIGUOUS_TRACE_RECORD"

    def __init__(self, query: Any, record_ids: list[str]):
        self.query = str(query)
        self.record_ids = record_ids
        super().__init__(
            f"Expected only one trace record for the given query, but found "
            f"{len(record_ids)}; query={query}, record_ids={record_ids}"
        )


class LineageLimitExceededError(TraceError):
    """Lineage traversal exceeded the configured depth or result size."""

    code: str = "LINEAGE_LIMIT_EXCEEDED"

    def __init__(self, limit_name: str, limit: int, vhu_id: int):
        self.limit_name = limit_name
        self.limit = limit
        self.vhu_id = vhu_id
        super().__init__(
            f"Lineage traversal exceeded {limit_name}={limit} "
            f"while expanding vhu_id={vhu_id}"
        )


# Candidate-related exceptions


class CandidateError(MaterialKernelError):
    """Base exception for dispo candidate errors."""

    code: str = "CANDIDATE_ERROR"


class UnexpectedTransactionEventError(CandidateError):
    """
    A transaction event refers to a candidate that does not exist and the
    event cannot create one (e.g. deleting a never-recorded transaction).
    """

    code: str = "UNEXPECTED_TRANSACTION_EVENT"

    def __init__(self, event: Any):
        self.event_type = type(event).__name__
        self.transaction_id = getattr(event, "transaction_id", None)
        self.event = repr(event)
        super().__init__(
            "Transaction event with unexpected type and not-yet-existing "
            f"candidate; event_type={self.event_type}, "
            f"transaction_id={self.transaction_id}"
        )


class UnsupportedBusinessCaseError(CandidateError):
    """The candidate's business case has no handler in this context."""

    code: str = "UNSUPPORTED_BUSINESS_CASE"

    def __init__(self, business_case: Any, candidate: Any):
        self.business_case = str(business_case)
        self.candidate = repr(candidate)
        super().__init__(
            f"Unsupported business case {business_case}; candidate={candidate!r}"
        )


class CandidateNotFoundError(CandidateError):
    """Candidate with given ID was not found."""

    code: str = "CANDIDATE_NOT_FOUND"

    def __init__(self, candidate_id: str):
        self.candidate_id = candidate_id
        super().__init__(f"Candidate not found: {candidate_id}")


# Event bus exceptions


class EventBusError(MaterialKernelError):
    """Base exception for event bus errors."""

    code: str = "EVENT_BUS_ERROR"


class DuplicateSubscriberError(EventBusError):
    """The same handler was registered twice for one event type."""

    code: str = "DUPLICATE_SUBSCRIBER"

    def __init__(self, event_type: str, handler_name: str):
        self.event_type = event_type
        self.handler_name = handler_name
        super().__init__(
            f"Handler {handler_name} already subscribed to {event_type}"
        )
