"""
Tests for AllocationRecalculationService.

Verifies:
- A recalculated item's stored rows match its proration
- Recalculation replaces rows rather than appending
- Batch runs isolate per-item failures and record the error code
- Failure logs carry the correlation and contract item context
"""

import json
import logging
from datetime import UTC, date, datetime
from decimal import Decimal
from io import StringIO

import pytest

from revenue_config.schema import RevenueConfig, RoundingPolicy
from revenue_engines.proration import ProrationEngine
from revenue_kernel.exceptions import InvalidIntervalError
from revenue_kernel.logging_config import StructuredFormatter, configure_logging
from revenue_services.memory import InMemoryAllocationStore
from revenue_services.ports import ContractItem, SalesType
from revenue_services.recalculation import (
    AllocationRecalculationService,
    RecalculationStatus,
)


def _item(item_id, amount, start, end, sales_type=SalesType.LICENSE):
    return ContractItem(
        contract_item_id=item_id,
        amount=Decimal(amount),
        start_date=start,
        end_date=end,
        sales_type=sales_type,
    )


class _BrokenStore(InMemoryAllocationStore):
    """Store whose writes fail for one item."""

    def replace_allocations(self, contract_item_id, rows):
        if contract_item_id == "BROKEN":
            raise RuntimeError("disk full")
        super().replace_allocations(contract_item_id, rows)


class TestRecalculate:
    """Single-item recalculation."""

    def setup_method(self):
        self.store = InMemoryAllocationStore()
        self.service = AllocationRecalculationService(self.store)

    def test_rows_match_proration(self):
        item = _item("CI-1", "9100", date(2023, 12, 1), date(2024, 2, 29), SalesType.SERVICE)
        result = self.service.recalculate(item)

        rows = self.store.allocations_for("CI-1")
        assert len(rows) == result.month_count == 3
        assert [r.amount for r in rows] == [Decimal("3100.00"), Decimal("3100.00"), Decimal("2900.00")]
        assert all(r.daily_rate == Decimal("100.00") for r in rows)
        assert all(r.sales_type is SalesType.SERVICE for r in rows)
        assert [r.applicable_days for r in rows] == [31, 31, 29]

    def test_recalculate_replaces_rows(self):
        self.service.recalculate(_item("CI-1", "1000", date(2024, 1, 1), date(2024, 6, 30)))
        self.service.recalculate(_item("CI-1", "1000", date(2024, 1, 1), date(2024, 2, 29)))

        rows = self.store.allocations_for("CI-1")
        assert [(r.year, r.month) for r in rows] == [(2024, 1), (2024, 2)]

    def test_invalid_item_raises_and_keeps_rows(self):
        self.service.recalculate(_item("CI-1", "1000", date(2024, 1, 1), date(2024, 1, 31)))

        with pytest.raises(InvalidIntervalError):
            self.service.recalculate(_item("CI-1", "-5", date(2024, 1, 1), date(2024, 1, 31)))

        assert len(self.store.allocations_for("CI-1")) == 1

    def test_custom_engine_rounding(self):
        service = AllocationRecalculationService(
            self.store, engine=ProrationEngine(decimal_places=0),
        )
        service.recalculate(_item("CI-2", "100", date(2024, 1, 1), date(2024, 3, 31)))

        assert [r.amount for r in self.store.allocations_for("CI-2")] == [
            Decimal("34"), Decimal("32"), Decimal("34"),
        ]

    def test_rounding_follows_config(self):
        config = RevenueConfig(rounding=RoundingPolicy(decimal_places=0))
        service = AllocationRecalculationService(self.store, config=config)
        service.recalculate(_item("CI-3", "100", date(2024, 1, 1), date(2024, 3, 31)))

        rows = self.store.allocations_for("CI-3")
        assert [r.amount for r in rows] == [Decimal("34"), Decimal("32"), Decimal("34")]
        assert rows[0].daily_rate == Decimal("1")

    def test_explicit_engine_wins_over_config(self):
        service = AllocationRecalculationService(
            self.store,
            engine=ProrationEngine(),
            config=RevenueConfig(rounding=RoundingPolicy(decimal_places=0)),
        )
        service.recalculate(_item("CI-4", "100", date(2024, 1, 1), date(2024, 3, 31)))

        assert self.store.allocations_for("CI-4")[0].amount == Decimal("34.07")


class TestRecalculateAll:
    """Batch recalculation with per-item isolation."""

    def setup_method(self):
        self.store = InMemoryAllocationStore()

    def test_all_succeed(self, deterministic_clock):
        service = AllocationRecalculationService(self.store, clock=deterministic_clock)
        summary = service.recalculate_all(
            [
                _item("A", "1200", date(2024, 1, 1), date(2024, 12, 31)),
                _item("B", "31", date(2024, 1, 1), date(2024, 1, 31)),
            ],
            correlation_id="run-1",
        )

        assert summary.correlation_id == "run-1"
        assert (summary.total_items, summary.succeeded, summary.failed) == (2, 2, 0)
        assert summary.is_complete
        assert summary.started_at == datetime(2024, 6, 15, 9, 0, tzinfo=UTC)
        assert summary.outcomes[0].month_count == 12
        assert summary.outcomes[1].total_allocated == Decimal("31.00")
        assert self.store.contract_item_ids() == ("A", "B")

    def test_failure_isolated(self):
        service = AllocationRecalculationService(self.store)
        summary = service.recalculate_all([
            _item("A", "100", date(2024, 1, 1), date(2024, 1, 31)),
            _item("BAD", "100", date(2024, 3, 1), date(2024, 1, 1)),
            _item("C", "100", date(2024, 2, 1), date(2024, 2, 29)),
        ])

        assert (summary.succeeded, summary.failed) == (2, 1)
        assert not summary.is_complete
        (failure,) = summary.failures
        assert failure.contract_item_id == "BAD"
        assert failure.status is RecalculationStatus.FAILED
        assert failure.error_code == "INVALID_INTERVAL"
        assert "start_date is after end_date" in failure.error_message
        assert self.store.allocations_for("BAD") == ()
        assert len(self.store.allocations_for("C")) == 1

    def test_unexpected_store_error_recorded(self):
        service = AllocationRecalculationService(_BrokenStore())
        summary = service.recalculate_all([
            _item("BROKEN", "100", date(2024, 1, 1), date(2024, 1, 31)),
            _item("OK", "100", date(2024, 1, 1), date(2024, 1, 31)),
        ])

        assert [o.status for o in summary.outcomes] == [
            RecalculationStatus.FAILED, RecalculationStatus.SUCCEEDED,
        ]
        assert summary.outcomes[0].error_code == "UNHANDLED_EXCEPTION"
        assert summary.outcomes[0].error_message == "disk full"

    def test_correlation_id_generated(self):
        summary = AllocationRecalculationService(self.store).recalculate_all([])
        assert summary.correlation_id
        assert summary.total_items == 0
        assert summary.is_complete

    def test_rounding_drift_reported(self):
        summary = AllocationRecalculationService(self.store).recalculate_all([
            _item("Q1", "100", date(2024, 1, 1), date(2024, 3, 31)),
        ])
        assert summary.outcomes[0].rounding_drift == Decimal("0.01")


class TestRecalculationLogging:
    """Structured logs emitted by a batch run."""

    def test_failure_log_carries_context(self):
        stream = StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        configure_logging(handler=handler)

        AllocationRecalculationService(InMemoryAllocationStore()).recalculate_all(
            [_item("BAD", "0", date(2024, 1, 1), date(2024, 1, 31))],
            correlation_id="run-9",
        )

        records = [json.loads(line) for line in stream.getvalue().splitlines() if line]
        failed = [r for r in records if r["message"] == "recalculation_item_failed"]
        assert len(failed) == 1
        assert failed[0]["level"] == "WARNING"
        assert failed[0]["correlation_id"] == "run-9"
        assert failed[0]["contract_item_id"] == "BAD"
        assert failed[0]["error_code"] == "INVALID_INTERVAL"

        (done,) = [r for r in records if r["message"] == "recalculation_completed"]
        assert done["failed"] == 1
        assert "contract_item_id" not in done
