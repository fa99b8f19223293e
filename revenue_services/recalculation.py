"""
AllocationRecalculationService -- rebuild stored revenue schedules.

Contract:
    ``recalculate(item)`` prorates one contract item and replaces its
    stored monthly rows.  ``recalculate_all(items)`` does the same for a
    batch with per-item isolation and returns a summary of what happened.

Architecture: revenue_services.  Imports revenue_engines (proration) and
    the AllocationStore port; never a storage library directly.

Invariants enforced:
    - One item's failure never aborts the batch; the failure is recorded
      with its error code and the run continues.
    - A failed item keeps whatever rows it had before: rows are only
      replaced after proration succeeds.
    - All timestamps come from the injected Clock.
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import uuid4

from revenue_config.schema import RevenueConfig
from revenue_engines.proration import ProrationEngine, ProrationResult
from revenue_kernel.domain.clock import Clock, SystemClock
from revenue_kernel.exceptions import RevenueKernelError
from revenue_kernel.logging_config import LogContext, get_logger
from revenue_services.ports import AllocationRow, AllocationStore, ContractItem

logger = get_logger("services.recalculation")


class RecalculationStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class RecalculationOutcome:
    """Result of recalculating one contract item."""

    contract_item_id: str
    status: RecalculationStatus
    month_count: int = 0
    total_allocated: Decimal = Decimal("0")
    rounding_drift: Decimal = Decimal("0")
    error_code: str | None = None
    error_message: str | None = None
    duration_ms: int = 0


@dataclass(frozen=True)
class RecalculationSummary:
    """Aggregate result of a ``recalculate_all`` run."""

    correlation_id: str
    total_items: int
    succeeded: int
    failed: int
    outcomes: tuple[RecalculationOutcome, ...] = ()
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: int = 0

    @property
    def is_complete(self) -> bool:
        return self.failed == 0

    @property
    def failures(self) -> tuple[RecalculationOutcome, ...]:
        return tuple(
            o for o in self.outcomes if o.status == RecalculationStatus.FAILED
        )


class AllocationRecalculationService:
    """Prorate contract items and persist their monthly schedules.

    Contract:
        - ``recalculate()`` raises on invalid input; nothing is stored.
        - ``recalculate_all()`` never raises for a bad item.
        - Without an explicit ``engine`` the proration rounding follows
          ``config.rounding``.
    """

    def __init__(
        self,
        store: AllocationStore,
        engine: ProrationEngine | None = None,
        clock: Clock | None = None,
        config: RevenueConfig | None = None,
    ):
        self._store = store
        self._config = config or RevenueConfig()
        self._engine = engine or ProrationEngine.from_policy(self._config.rounding)
        self._clock = clock or SystemClock()

    def recalculate(self, item: ContractItem) -> ProrationResult:
        """Prorate one item and replace its stored rows.

        Raises:
            InvalidIntervalError: If the item's amount or dates are invalid.
        """
        result = self._engine.prorate(
            amount=item.amount,
            start_date=item.start_date,
            end_date=item.end_date,
            contract_item_id=item.contract_item_id,
        )
        self._store.replace_allocations(item.contract_item_id, self._rows_for(item, result))
        return result

    def recalculate_all(
        self,
        items: Iterable[ContractItem],
        correlation_id: str | None = None,
    ) -> RecalculationSummary:
        """Recalculate every item, isolating failures per item."""
        correlation_id = correlation_id or str(uuid4())
        start_time = time.monotonic()
        started_at = self._clock.now()

        outcomes: list[RecalculationOutcome] = []
        succeeded = 0
        failed = 0

        for item in items:
            item_start = time.monotonic()
            with LogContext.bind(
                correlation_id=correlation_id,
                contract_item_id=item.contract_item_id,
            ):
                try:
                    result = self.recalculate(item)
                except RevenueKernelError as exc:
                    outcome = self._failure(item, exc.code, str(exc), item_start)
                except Exception as exc:
                    outcome = self._failure(item, "UNHANDLED_EXCEPTION", str(exc), item_start)
                else:
                    outcome = RecalculationOutcome(
                        contract_item_id=item.contract_item_id,
                        status=RecalculationStatus.SUCCEEDED,
                        month_count=result.month_count,
                        total_allocated=result.total_allocated,
                        rounding_drift=result.rounding_drift,
                        duration_ms=_elapsed_ms(item_start),
                    )

            if outcome.status == RecalculationStatus.SUCCEEDED:
                succeeded += 1
            else:
                failed += 1
            outcomes.append(outcome)

        summary = RecalculationSummary(
            correlation_id=correlation_id,
            total_items=len(outcomes),
            succeeded=succeeded,
            failed=failed,
            outcomes=tuple(outcomes),
            started_at=started_at,
            completed_at=self._clock.now(),
            duration_ms=_elapsed_ms(start_time),
        )

        logger.info(
            "recalculation_completed",
            extra={
                "correlation_id": correlation_id,
                "total_items": summary.total_items,
                "succeeded": succeeded,
                "failed": failed,
                "duration_ms": summary.duration_ms,
            },
        )
        return summary

    @staticmethod
    def _failure(
        item: ContractItem, code: str, message: str, item_start: float,
    ) -> RecalculationOutcome:
        logger.warning(
            "recalculation_item_failed",
            extra={"error_code": code, "error_message": message},
        )
        return RecalculationOutcome(
            contract_item_id=item.contract_item_id,
            status=RecalculationStatus.FAILED,
            error_code=code,
            error_message=message,
            duration_ms=_elapsed_ms(item_start),
        )

    @staticmethod
    def _rows_for(item: ContractItem, result: ProrationResult) -> list[AllocationRow]:
        return [
            AllocationRow(
                contract_item_id=item.contract_item_id,
                year=m.year,
                month=m.month,
                total_days_in_month=m.total_days_in_month,
                applicable_days=m.applicable_days,
                daily_rate=result.daily_rate,
                amount=m.amount,
                sales_type=item.sales_type,
            )
            for m in result.monthly_breakdown
        ]


def _elapsed_ms(since: float) -> int:
    return int((time.monotonic() - since) * 1000)
