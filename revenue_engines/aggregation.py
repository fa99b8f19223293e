"""
revenue_engines.aggregation -- Fold per-month metrics over a fiscal period.

Responsibility:
    Every revenue, cost, and budget report asks the same question: "what
    are the totals over this fiscal year/quarter?"  PeriodAggregator expands
    a FiscalDateRange into its calendar months, calls an injected per-month
    fetcher for each, and sums the named numeric fields.  It is written once
    and parameterised by fetcher; it knows nothing about storage.

Architecture position:
    Engines -- calculation layer.  The engine itself performs no I/O; the
    injected fetcher may.

Invariants enforced:
    - Month expansion is identical to calendar_math.months_spanned.
    - Totals are Decimal; ints, strings and Decimals are accepted, floats
      are routed through ``str``.
    - Output is deterministic: results are folded in chronological month
      order even when fetches run concurrently.

Failure modes:
    - MetricFieldError when a summed field holds a non-numeric value.
    - Any exception raised by the fetcher propagates unchanged.

Usage:
    from revenue_engines.aggregation import PeriodAggregator
    from revenue_engines.fiscal_calendar import fiscal_quarter_range

    totals = PeriodAggregator().aggregate(
        fiscal_quarter_range(2024, 1),
        fetcher=lambda year, month: {"total_amount": revenue[(year, month)]},
    )
    totals["total_amount"]
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any

from revenue_engines.calendar_math import months_spanned
from revenue_engines.fiscal_calendar import fiscal_quarter_range, fiscal_year_range
from revenue_engines.tracer import traced_engine
from revenue_kernel.domain.values import FiscalDateRange, YearMonth, to_decimal
from revenue_kernel.exceptions import MetricFieldError
from revenue_kernel.logging_config import get_logger

logger = get_logger("engines.aggregation")

MonthlyFetcher = Callable[[int, int], Mapping[str, Any] | None]

# Identity keys that per-month records commonly echo back; never summed.
_IDENTITY_FIELDS = frozenset({"year", "month"})


@dataclass(frozen=True)
class PeriodTotals:
    """
    Summed metrics over a date range.

    ``totals[name]`` returns Decimal("0") for a field no month reported.
    """

    date_range: FiscalDateRange
    months: tuple[YearMonth, ...]
    totals: dict[str, Decimal] = field(default_factory=dict)

    def __getitem__(self, name: str) -> Decimal:
        return self.totals.get(name, Decimal("0"))

    def get(self, name: str, default: Decimal = Decimal("0")) -> Decimal:
        return self.totals.get(name, default)

    @property
    def month_count(self) -> int:
        return len(self.months)


def _to_metric(ym: YearMonth, name: str, value: Any) -> Decimal:
    if isinstance(value, bool):
        raise MetricFieldError(ym.year, ym.month, name, value)
    try:
        result = to_decimal(value)
    except (ValueError, TypeError) as e:
        raise MetricFieldError(ym.year, ym.month, name, value) from e
    if not result.is_finite():
        raise MetricFieldError(ym.year, ym.month, name, value)
    return result


def _normalise_fields(fields: Iterable[str] | None) -> tuple[str, ...] | None:
    """Materialise ``fields`` once; unordered collections are sorted."""
    if fields is None:
        return None
    if isinstance(fields, (set, frozenset)):
        return tuple(sorted(fields))
    return tuple(fields)


class PeriodAggregator:
    """
    Sum per-month metrics across a fiscal period.

    Contract:
        Stateless apart from the default worker count; safe to share.
    Guarantees:
        - Sequential by default.  With ``max_workers`` the fetches run on a
          thread pool and are folded in month order.
    Non-goals:
        - No timeouts or cancellation; those belong to the fetcher.
    """

    def __init__(self, max_workers: int | None = None):
        self.max_workers = max_workers

    @staticmethod
    def months_in_range(date_range: FiscalDateRange) -> tuple[YearMonth, ...]:
        """Calendar months touched by the range, ascending."""
        return months_spanned(date_range.start_date, date_range.end_date)

    def aggregate(
        self,
        date_range: FiscalDateRange,
        fetcher: MonthlyFetcher,
        fields: Iterable[str] | None = None,
        max_workers: int | None = None,
    ) -> PeriodTotals:
        """
        Fetch each month of ``date_range`` and sum its numeric fields.

        Args:
            date_range: Inclusive range, typically from the fiscal calendar.
            fetcher: ``(year, month) -> {field: number}``; ``None`` means no
                data for that month.
            fields: Restrict summation to these fields.  Requested fields
                that never appear total 0.  ``None`` sums every field except
                ``year``/``month``.
            max_workers: Overrides the aggregator default for this call.

        Raises:
            MetricFieldError: If a summed field is not numeric.
        """
        return self._sum_months(
            date_range,
            fetcher,
            _normalise_fields(fields),
            max_workers if max_workers is not None else self.max_workers,
        )

    @traced_engine("aggregation", "1.0", fingerprint_fields=("date_range", "wanted"))
    def _sum_months(
        self,
        date_range: FiscalDateRange,
        fetcher: MonthlyFetcher,
        wanted: tuple[str, ...] | None,
        workers: int | None,
    ) -> PeriodTotals:
        months = self.months_in_range(date_range)

        records = self._fetch_all(months, fetcher, workers)

        totals: dict[str, Decimal] = {}
        if wanted is not None:
            totals = {name: Decimal("0") for name in wanted}

        for ym, record in zip(months, records):
            if record is None:
                continue
            names = wanted if wanted is not None else [
                k for k in record if k not in _IDENTITY_FIELDS
            ]
            for name in names:
                value = record.get(name)
                if value is None:
                    continue
                totals[name] = totals.get(name, Decimal("0")) + _to_metric(ym, name, value)

        logger.debug("period_aggregated", extra={
            "start_date": date_range.start_date.isoformat(),
            "end_date": date_range.end_date.isoformat(),
            "month_count": len(months),
            "field_count": len(totals),
            "concurrent": bool(workers),
        })
        return PeriodTotals(date_range=date_range, months=months, totals=totals)

    def aggregate_fiscal_year(
        self,
        fiscal_year: int,
        fetcher: MonthlyFetcher,
        fields: Iterable[str] | None = None,
    ) -> PeriodTotals:
        return self.aggregate(fiscal_year_range(fiscal_year), fetcher, fields=fields)

    def aggregate_fiscal_quarter(
        self,
        fiscal_year: int,
        quarter: int,
        fetcher: MonthlyFetcher,
        fields: Iterable[str] | None = None,
    ) -> PeriodTotals:
        return self.aggregate(fiscal_quarter_range(fiscal_year, quarter), fetcher, fields=fields)

    @staticmethod
    def _fetch_all(
        months: tuple[YearMonth, ...],
        fetcher: MonthlyFetcher,
        workers: int | None,
    ) -> list[Mapping[str, Any] | None]:
        if not workers or len(months) <= 1:
            return [fetcher(ym.year, ym.month) for ym in months]
        # Executor.map yields in submission order regardless of completion order
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(lambda ym: fetcher(ym.year, ym.month), months))
