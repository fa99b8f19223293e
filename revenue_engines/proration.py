"""
revenue_engines.proration -- Day-accurate monthly revenue allocation.

Responsibility:
    Convert a contract amount and an inclusive service period into a daily
    rate and a month-by-month revenue schedule.  Each month receives
    ``daily_rate * applicable_days``, rounded on its own.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import revenue_kernel and sibling engine modules
    (calendar_math, tracer).

Invariants enforced:
    - Preconditions checked before any computation: amount > 0 and
      start_date <= end_date.  No partial result is ever produced.
    - Day coverage: sum(applicable_days) == total_days exactly.
    - 0 <= applicable_days <= total_days_in_month for every month.
    - Breakdown ordered by ascending (year, month).
    - Monthly amounts use the unrounded daily rate; only the reported
      ``daily_rate`` and each monthly amount are rounded (ROUND_HALF_UP,
      2 places by default).
    - Conservation within rounding:
      |sum(monthly amounts) - amount| < 0.01 * month_count.
      The residual is exposed as ``rounding_drift`` and NOT redistributed.

Failure modes:
    - InvalidIntervalError on amount <= 0, a non-numeric amount, or
      start_date > end_date.
    - DegenerateIntervalError if the day count is ever zero.

Usage:
    from revenue_engines.proration import ProrationEngine

    result = ProrationEngine().prorate(
        amount=Decimal("1100000"),
        start_date=date(2023, 1, 1),
        end_date=date(2023, 12, 31),
    )
    result.daily_rate          # Decimal("3013.70")
    result.monthly_breakdown   # 12 MonthlyAllocation entries
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Protocol

from revenue_engines.calendar_math import (
    days_in_month,
    inclusive_day_span,
    iter_months,
    overlap_days_in_month,
)
from revenue_engines.tracer import traced_engine
from revenue_kernel.domain.values import (
    DEFAULT_DECIMAL_PLACES,
    DEFAULT_ROUNDING,
    ContractInterval,
    round_money,
)
from revenue_kernel.exceptions import DegenerateIntervalError
from revenue_kernel.logging_config import get_logger

logger = get_logger("engines.proration")


class RoundingSettings(Protocol):
    """Anything carrying ``decimal_places`` and a ``decimal`` rounding ``mode``."""

    decimal_places: int
    mode: str


@dataclass(frozen=True)
class MonthlyAllocation:
    """
    Revenue recognised in one calendar month.

    Guarantees:
        - 0 <= applicable_days <= total_days_in_month.
    """

    year: int
    month: int
    total_days_in_month: int
    applicable_days: int
    amount: Decimal

    @property
    def is_full_month(self) -> bool:
        return self.applicable_days == self.total_days_in_month


@dataclass(frozen=True)
class ProrationResult:
    """
    Complete proration of one contract item.

    Contract:
        Frozen; the caller persists one row per MonthlyAllocation keyed by
        (contract_item_id, year, month).
    Guarantees:
        - ``monthly_breakdown`` is ordered by (year, month).
        - ``daily_rate`` is rounded; monthly amounts were computed from the
          unrounded rate.
    """

    contract_amount: Decimal
    start_date: date
    end_date: date
    total_days: int
    daily_rate: Decimal
    monthly_breakdown: tuple[MonthlyAllocation, ...]
    contract_item_id: str | None = None

    @property
    def month_count(self) -> int:
        return len(self.monthly_breakdown)

    @property
    def total_allocated(self) -> Decimal:
        return sum((m.amount for m in self.monthly_breakdown), Decimal("0"))

    @property
    def rounding_drift(self) -> Decimal:
        """total_allocated - contract_amount (positive when over-allocated)."""
        return self.total_allocated - self.contract_amount

    @property
    def total_applicable_days(self) -> int:
        return sum(m.applicable_days for m in self.monthly_breakdown)


class ProrationEngine:
    """
    Spread a contract amount evenly by day across the months it spans.

    Contract:
        Pure functions, no I/O, no internal state between calls; safe to
        share across threads.
    Guarantees:
        - Rounding Strategy:
            * The daily rate is kept at full precision for monthly amounts.
            * Each monthly amount is rounded independently to
              ``decimal_places`` using ``rounding``.
            * No remainder is pushed onto any month, so the monthly total
              may differ from the contract amount by less than one minor
              unit per month.
    Non-goals:
        - Does not persist allocations; callers own storage.
        - Does not validate business rules beyond amount > 0 and
          start_date <= end_date.
    """

    def __init__(
        self,
        decimal_places: int = DEFAULT_DECIMAL_PLACES,
        rounding: str = DEFAULT_ROUNDING,
    ):
        self.decimal_places = decimal_places
        self.rounding = rounding

    @classmethod
    def from_policy(cls, policy: RoundingSettings) -> ProrationEngine:
        """Build from a rounding policy such as ``RevenueConfig.rounding``."""
        return cls(decimal_places=policy.decimal_places, rounding=policy.mode)

    @traced_engine(
        "proration", "1.0",
        fingerprint_fields=("amount", "start_date", "end_date", "contract_item_id"),
    )
    def prorate(
        self,
        amount: Decimal | int | str,
        start_date: date,
        end_date: date,
        contract_item_id: str | None = None,
    ) -> ProrationResult:
        """
        Allocate ``amount`` over ``[start_date, end_date]`` month by month.

        Preconditions:
            amount > 0; start_date <= end_date.

        Postconditions:
            sum(applicable_days) == total_days; breakdown ascending.

        Raises:
            InvalidIntervalError: If a precondition fails.
        """
        interval = ContractInterval(
            amount=amount,
            start_date=start_date,
            end_date=end_date,
            contract_item_id=contract_item_id,
        )
        return self._prorate(interval)

    def prorate_interval(self, interval: ContractInterval) -> ProrationResult:
        """Prorate an already-constructed ContractInterval."""
        return self.prorate(
            amount=interval.amount,
            start_date=interval.start_date,
            end_date=interval.end_date,
            contract_item_id=interval.contract_item_id,
        )

    def _prorate(self, interval: ContractInterval) -> ProrationResult:
        start, end = interval.start_date, interval.end_date

        total_days = inclusive_day_span(start, end)
        if total_days <= 0:
            raise DegenerateIntervalError(start, end)

        raw_daily_rate = interval.amount / Decimal(total_days)

        breakdown: list[MonthlyAllocation] = []
        for ym in iter_months(start, end):
            applicable_days = overlap_days_in_month(ym.year, ym.month, start, end)
            breakdown.append(
                MonthlyAllocation(
                    year=ym.year,
                    month=ym.month,
                    total_days_in_month=days_in_month(ym.year, ym.month),
                    applicable_days=applicable_days,
                    amount=round_money(
                        raw_daily_rate * applicable_days,
                        self.decimal_places,
                        self.rounding,
                    ),
                )
            )

        # INVARIANT: every contract day lands in exactly one month
        assert sum(m.applicable_days for m in breakdown) == total_days, (
            f"Day coverage violated for {start}..{end}"
        )

        result = ProrationResult(
            contract_amount=interval.amount,
            start_date=start,
            end_date=end,
            total_days=total_days,
            daily_rate=round_money(raw_daily_rate, self.decimal_places, self.rounding),
            monthly_breakdown=tuple(breakdown),
            contract_item_id=interval.contract_item_id,
        )

        logger.debug("proration_completed", extra={
            "contract_item_id": interval.contract_item_id,
            "total_days": total_days,
            "month_count": result.month_count,
            "daily_rate": str(result.daily_rate),
            "rounding_drift": str(result.rounding_drift),
        })
        return result
