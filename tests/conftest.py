"""
Shared pytest fixtures for the material kernel test suite.

Every test that needs a database gets its own in-memory SQLite engine with
all module tables created.  Sessions commit for real so that post-commit
event delivery can be observed; the engine is disposed after the test.
"""

import json
import logging
from collections.abc import Iterator
from datetime import UTC, datetime
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from material_config.schema import DispoConfig, TraceConfig
from material_kernel.db.base import Base
from material_kernel.domain.clock import DeterministicClock
from material_kernel.logging_config import (
    LOGGER_NAMESPACE,
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from material_kernel.services.event_bus import MaterialEventBus
from material_modules._orm_registry import import_all_orm_models
from material_modules.dispo.change_service import CandidateChangeService
from material_modules.dispo.models import EventDescriptor, MaterialDescriptor
from material_modules.dispo.repository import CandidateRepository
from material_modules.dispo.transaction_handler import TransactionEventHandler
from material_modules.handling_units.repository import HUTraceRepository

EVENT_TIME = datetime(2024, 3, 1, 8, 0, tzinfo=UTC)


class JsonRecordCollector(logging.Handler):
    """Formats records with StructuredFormatter and keeps them parsed."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.setFormatter(StructuredFormatter())
        self.records: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(json.loads(self.format(record)))


# --- logging ----------------------------------------------------------------


@pytest.fixture(autouse=True, scope="session")
def _json_logging_for_session():
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _fresh_log_context():
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Call the fixture value to get every ``material_kernel`` record so far::

        records = captured_logs()
        assert any(r["message"] == "hu_trace_record_created" for r in records)
    """
    collector = JsonRecordCollector()
    namespace_logger = logging.getLogger(LOGGER_NAMESPACE)
    saved_level = namespace_logger.level
    namespace_logger.setLevel(logging.DEBUG)
    namespace_logger.addHandler(collector)
    yield lambda: list(collector.records)
    namespace_logger.removeHandler(collector)
    namespace_logger.setLevel(saved_level)


@pytest.fixture
def json_collector_cls():
    return JsonRecordCollector


# --- database ---------------------------------------------------------------


@pytest.fixture
def engine():
    """In-memory SQLite shared across threads, all module tables created."""
    import_all_orm_models()
    sqlite_engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(sqlite_engine)
    yield sqlite_engine
    sqlite_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, expire_on_commit=False)


@pytest.fixture
def session(session_factory) -> Iterator[Session]:
    with session_factory() as db_session:
        yield db_session


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(EVENT_TIME)


# --- services ---------------------------------------------------------------


@pytest.fixture
def trace_config() -> TraceConfig:
    return TraceConfig(max_depth=50, max_records=1000)


@pytest.fixture
def trace_repository(session, trace_config) -> HUTraceRepository:
    return HUTraceRepository(session, trace_config)


@pytest.fixture
def event_bus(session) -> MaterialEventBus:
    return MaterialEventBus(session)


@pytest.fixture
def candidate_repository(session) -> CandidateRepository:
    return CandidateRepository(session)


@pytest.fixture
def candidate_change_service(candidate_repository) -> CandidateChangeService:
    return CandidateChangeService(candidate_repository)


@pytest.fixture
def transaction_handler(
    candidate_change_service, candidate_repository, event_bus
) -> TransactionEventHandler:
    return TransactionEventHandler(
        candidate_change_service=candidate_change_service,
        candidate_repository=candidate_repository,
        event_bus=event_bus,
        config=DispoConfig(),
    )


# --- values -----------------------------------------------------------------


@pytest.fixture
def event_descriptor() -> EventDescriptor:
    return EventDescriptor(client_id=1000000, org_id=1000001)


@pytest.fixture
def material_descriptor_factory():
    """Build MaterialDescriptors that differ only in quantity."""

    def _make(quantity) -> MaterialDescriptor:
        return MaterialDescriptor(
            product_id=2001,
            warehouse_id=540008,
            date=EVENT_TIME,
            quantity=Decimal(str(quantity)),
        )

    return _make
