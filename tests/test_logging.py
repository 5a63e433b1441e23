"""Structured JSON logging and the unit-of-work log context."""

import logging
from datetime import UTC, datetime
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from material_kernel.exceptions import AmbiguousTraceRecordError, UnexpectedTransactionEventError
from material_kernel.logging_config import (
    LogContext,
    configure_logging,
    get_logger,
    reset_logging,
)
from material_modules.handling_units.models import HUTraceType


@pytest.fixture
def collector(json_collector_cls):
    """A fresh logging setup whose only handler is a JSON collector."""
    reset_logging()
    sink = json_collector_cls()
    configure_logging(handler=sink, level=logging.DEBUG)
    yield sink
    reset_logging()
    configure_logging(level=logging.DEBUG)


@pytest.fixture
def log():
    return get_logger("dispo.test")


class TestRecordShape:

    def test_one_json_object_per_record(self, collector, log):
        log.info("candidate_saved")

        [record] = collector.records
        assert record["message"] == "candidate_saved"
        assert record["level"] == "INFO"
        assert record["logger"] == "material_kernel.dispo.test"
        assert record["ts"].endswith("+00:00")

    def test_extra_becomes_top_level_field(self, collector, log):
        log.info("candidate_saved", extra={"candidate_type": "DEMAND", "seq_no": 3})

        assert collector.records[0]["candidate_type"] == "DEMAND"
        assert collector.records[0]["seq_no"] == 3

    def test_domain_values_are_rendered_as_text(self, collector, log):
        record_id = uuid4()
        log.info(
            "hu_trace_record_created",
            extra={
                "quantity": Decimal("1.500"),
                "record_id": record_id,
                "trace_type": HUTraceType.MATERIAL_RECEIPT,
                "event_time": datetime(2024, 3, 1, 8, 0, tzinfo=UTC),
            },
        )

        record = collector.records[0]
        assert record["quantity"] == "1.500"
        assert record["record_id"] == str(record_id)
        assert record["trace_type"] == "material_receipt"
        assert record["event_time"] == "2024-03-01T08:00:00+00:00"

    def test_records_stay_in_emission_order(self, collector, log):
        for i in range(4):
            log.debug("tick", extra={"i": i})

        assert [r["i"] for r in collector.records] == [0, 1, 2, 3]


class TestExceptionFields:

    def test_kernel_error_code_and_attributes(self, collector, log):
        try:
            raise AmbiguousTraceRecordError("vhu_id=1", ["a", "b"])
        except AmbiguousTraceRecordError:
            log.error("trace_upsert_failed", exc_info=True)

        record = collector.records[0]
        assert record["exc_type"] == "AmbiguousTraceRecordError"
        assert record["exc_code"] == "AMBIGUOUS_TRACE_RECORD"
        assert record["exc_record_ids"] == ["a", "b"]
        assert "Traceback" in record["traceback"]

    def test_rejected_transaction_id_is_logged(self, collector, log):
        class _Event:
            transaction_id = 99

        try:
            raise UnexpectedTransactionEventError(_Event())
        except UnexpectedTransactionEventError:
            log.error("transaction_event_rejected", exc_info=True)

        record = collector.records[0]
        assert record["exc_code"] == "UNEXPECTED_TRANSACTION_EVENT"
        assert record["exc_transaction_id"] == 99

    def test_plain_exception_has_no_code(self, collector, log):
        try:
            raise KeyError("missing")
        except KeyError:
            log.warning("lookup_failed", exc_info=True)

        record = collector.records[0]
        assert record["exc_type"] == "KeyError"
        assert "exc_code" not in record


class TestLogContext:

    def test_bound_fields_appear_on_records(self, collector, log):
        with LogContext.bind(transaction_id=42, vhu_id=4711):
            log.info("transaction_event_received")
        log.info("after")

        inside, after = collector.records
        assert inside["transaction_id"] == "42"
        assert inside["vhu_id"] == "4711"
        assert "transaction_id" not in after

    def test_set_merges_and_ignores_none(self):
        LogContext.set(correlation_id="abc")
        LogContext.set(trace_id="t1", candidate_id=None)

        assert LogContext.get_all() == {"correlation_id": "abc", "trace_id": "t1"}

    def test_clear(self):
        LogContext.set(event_id="e1")
        LogContext.clear()

        assert LogContext.get_all() == {}

    def test_nested_bind_restores_outer_value(self):
        LogContext.set(vhu_id="1")
        with LogContext.bind(vhu_id="2"):
            with LogContext.bind(candidate_id="c1"):
                assert LogContext.get_all() == {"vhu_id": "2", "candidate_id": "c1"}
            assert LogContext.get_all() == {"vhu_id": "2"}
        assert LogContext.get_all() == {"vhu_id": "1"}

    def test_unknown_field_rejected(self):
        with pytest.raises(ValueError, match="warehouse_id"):
            LogContext.set(warehouse_id=540008)


class TestConfigureLogging:

    def test_second_call_is_ignored(self, collector, json_collector_cls):
        ignored = json_collector_cls()
        configure_logging(handler=ignored)

        handlers = logging.getLogger("material_kernel").handlers
        assert collector in handlers
        assert ignored not in handlers

    def test_level_name_accepted(self, collector):
        reset_logging()
        stream = StringIO()
        configure_logging(level="warning", stream=stream)
        log = get_logger("dispo.test")
        log.info("hidden")
        log.warning("shown")

        lines = stream.getvalue().splitlines()
        assert len(lines) == 1
        assert '"message": "shown"' in lines[0]

    def test_get_logger_is_namespaced(self):
        assert get_logger("handling_units").name == "material_kernel.handling_units"

    def test_reset_restores_propagation(self, collector):
        reset_logging()

        namespace_logger = logging.getLogger("material_kernel")
        assert collector not in namespace_logger.handlers
        assert namespace_logger.propagate is True
