"""Structured JSON logging: formatter output, LogContext, one-time setup."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from revenue_config import RevenueConfig, apply_logging_policy
from revenue_config.schema import LoggingPolicy
from revenue_kernel.exceptions import InvalidQuarterError
from revenue_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
)


class JsonCapture:
    """A StringIO-backed handler whose output is read back as JSON lines."""

    def __init__(self):
        self.stream = StringIO()
        self.handler = logging.StreamHandler(self.stream)
        self.handler.setFormatter(StructuredFormatter())

    def lines(self) -> list[dict]:
        return [json.loads(raw) for raw in self.stream.getvalue().splitlines() if raw]

    def first(self) -> dict:
        return self.lines()[0]


@pytest.fixture
def capture() -> JsonCapture:
    return JsonCapture()


@pytest.fixture
def log(capture):
    configure_logging(handler=capture.handler)
    return get_logger("test")


class TestStructuredFormatter:

    def test_base_keys(self, capture, log):
        log.info("hello")
        line = capture.first()
        assert line["level"] == "INFO"
        assert line["message"] == "hello"
        assert line["logger"] == "revenue_kernel.test"
        assert "ts" in line

    def test_extra_is_merged(self, capture, log):
        log.info("prorated", extra={"month_count": 12, "status": "ok"})
        line = capture.first()
        assert (line["month_count"], line["status"]) == (12, "ok")

    def test_bound_context_is_merged(self, capture, log):
        LogContext.set(correlation_id="abc-123", contract_item_id="CI-9")
        log.info("with_context")
        line = capture.first()
        assert line["correlation_id"] == "abc-123"
        assert line["contract_item_id"] == "CI-9"

    def test_unbound_context_is_absent(self, capture, log):
        log.info("bare")
        line = capture.first()
        assert "correlation_id" not in line
        assert "contract_item_id" not in line

    def test_plain_exception(self, capture, log):
        try:
            raise ValueError("boom")
        except ValueError:
            log.error("failed", exc_info=True)
        line = capture.first()
        assert line["exc_type"] == "ValueError"
        assert line["exc_message"] == "boom"
        assert "traceback" in line
        assert "exc_code" not in line

    def test_coded_exception_attributes(self, capture, log):
        try:
            raise InvalidQuarterError(2024, 7)
        except InvalidQuarterError:
            log.error("report_error", exc_info=True)
        line = capture.first()
        assert line["exc_code"] == "INVALID_QUARTER"
        assert line["exc_type"] == "InvalidQuarterError"
        assert line["exc_fiscal_year"] == 2024
        assert line["exc_quarter"] == 7

    def test_non_json_values_are_rendered(self, capture, log):
        run_id = uuid4()
        log.info("typed", extra={
            "run_id": run_id,
            "amount": Decimal("12.50"),
            "as_of": date(2024, 2, 29),
        })
        line = capture.first()
        assert line["run_id"] == str(run_id)
        assert line["amount"] == "12.50"
        assert line["as_of"] == "2024-02-29"

    def test_below_level_is_dropped(self, capture, log):
        log.info("first")
        log.warning("second", extra={"k": "v"})
        log.debug("third")
        assert [line["message"] for line in capture.lines()] == ["first", "second"]


class TestLogContext:

    def test_get_all_returns_only_bound_fields(self):
        LogContext.set(correlation_id="x", report_id="y")
        assert LogContext.get_all() == {"correlation_id": "x", "report_id": "y"}

    def test_set_accumulates(self):
        LogContext.set(correlation_id="a")
        LogContext.set(trace_id="b")
        assert LogContext.get_all() == {"correlation_id": "a", "trace_id": "b"}

    def test_every_field_can_be_set(self):
        LogContext.set(
            correlation_id="c", contract_item_id="i", report_id="r",
            actor_id="a", trace_id="t",
        )
        assert len(LogContext.get_all()) == 5

    def test_unknown_field_rejected(self):
        with pytest.raises(TypeError):
            LogContext.set(tenant="acme")

    def test_clear(self):
        LogContext.set(correlation_id="x")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_value(self):
        LogContext.set(correlation_id="outer")
        with LogContext.bind(correlation_id="inner"):
            assert LogContext.get_all()["correlation_id"] == "inner"
        assert LogContext.get_all()["correlation_id"] == "outer"

    def test_bind_restores_unset(self):
        with LogContext.bind(contract_item_id="temp"):
            assert LogContext.get_all()["contract_item_id"] == "temp"
        assert "contract_item_id" not in LogContext.get_all()

    def test_bind_stores_strings(self):
        actor = uuid4()
        with LogContext.bind(actor_id=actor):
            assert LogContext.get_all()["actor_id"] == str(actor)


class TestConfigureLogging:

    def test_second_call_is_ignored(self, capture):
        configure_logging(handler=capture.handler)
        configure_logging(handler=JsonCapture().handler)
        assert len(logging.getLogger("revenue_kernel").handlers) == 1

    def test_get_logger_prefixes_namespace(self):
        assert get_logger("engines.proration").name == "revenue_kernel.engines.proration"

    def test_nested_logger_uses_root_handler(self, capture):
        configure_logging(handler=capture.handler, level=logging.DEBUG)
        get_logger("deep.nested.module").debug("hierarchy_test")
        line = capture.first()
        assert line["message"] == "hierarchy_test"
        assert line["logger"] == "revenue_kernel.deep.nested.module"

    def test_apply_logging_policy_sets_level(self, capture):
        config = RevenueConfig(logging=LoggingPolicy(level="WARNING"))
        apply_logging_policy(config, handler=capture.handler)

        log = get_logger("test")
        log.info("dropped")
        log.warning("kept")
        assert [line["message"] for line in capture.lines()] == ["kept"]
