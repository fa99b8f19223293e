"""
Period Reporting Service (``revenue_services.reporting``).

Responsibility
--------------
Answers the dashboard questions: revenue, cost and budget totals for a
fiscal year or quarter, budget-versus-actual analysis per budget type, the
monthly summary with month-over-month change, revenue and cost composition,
and the trailing N-month performance trend.  Every total is produced by
``PeriodAggregator`` over a range from the fiscal calendar; this service
only chooses fetchers and fields.

Architecture position
---------------------
**Services layer** -- read-only.  Constructor takes the per-month fetchers
plus ``clock`` and ``config``.  No storage library is imported; fetchers
are plain callables (see ``revenue_services.ports``).

Invariants enforced
-------------------
* All amounts are ``Decimal``.
* Budget and actual for one analysis cover the identical date range.
* The trend ends at the clock's current month and is ordered oldest first.
* Report outputs carry ``config.reporting.currency``.

Failure modes
-------------
* ``InvalidQuarterError`` -- quarter outside 1-4.
* ``InvalidMonthError`` -- month outside 1-12.
* ``UnknownBudgetTypeError`` -- budget type not a ``BudgetType``.
* ``FetcherNotConfiguredError`` -- a report needs a fetcher that was not
  supplied (budget, deal acquisition).
* ``MetricFieldError`` or any fetcher exception -- propagates unchanged.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any

from revenue_config.schema import RevenueConfig
from revenue_engines.aggregation import PeriodAggregator, PeriodTotals
from revenue_engines.fiscal_calendar import fiscal_period_range, format_fiscal_period
from revenue_engines.variance import BudgetVarianceCalculator
from revenue_kernel.domain.clock import Clock, SystemClock
from revenue_kernel.domain.values import FiscalDateRange, YearMonth
from revenue_kernel.exceptions import (
    FetcherNotConfiguredError,
    UnknownBudgetTypeError,
)
from revenue_kernel.logging_config import get_logger
from revenue_services.ports import BudgetFetcher, BudgetType, MonthlyMetricFetcher

logger = get_logger("services.reporting")

REVENUE_FIELDS = ("license_amount", "service_amount", "total_amount")
REVENUE_COMPOSITION_FIELDS = ("license_amount", "service_amount")
COST_COMPOSITION_FIELDS = (
    "cogs_license",
    "cogs_service",
    "sga_personnel",
    "sga_office",
    "sga_marketing",
    "sga_other",
)


@dataclass(frozen=True)
class BudgetAnalysis:
    """Budget against actual for one budget type over one period."""

    period_label: str
    budget_type: BudgetType
    date_range: FiscalDateRange
    budget_amount: Decimal
    actual_amount: Decimal
    difference: Decimal
    achievement_rate: Decimal
    is_favorable: bool
    currency: str
    category: str | None = None


@dataclass(frozen=True)
class MetricChange:
    """A month's figure next to the previous month's."""

    current: Decimal
    previous: Decimal
    change_rate: Decimal


@dataclass(frozen=True)
class DashboardSummary:
    """
    Headline figures for one calendar month.

    ``deal_acquisition`` is ``None`` when no deal fetcher is configured.
    """

    year: int
    month: int
    currency: str
    revenue: MetricChange
    cost: MetricChange
    profit: MetricChange
    deal_acquisition: MetricChange | None = None

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True)
class CompositionShare:
    """One component of a monthly total and its percentage of that total."""

    name: str
    value: Decimal
    percentage: Decimal


@dataclass(frozen=True)
class TrendPoint:
    """One month of the performance trend."""

    year: int
    month: int
    revenue: Decimal
    cost: Decimal
    profit: Decimal
    profit_margin: Decimal

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


def parse_budget_type(value: BudgetType | str) -> BudgetType:
    """Accept a BudgetType or its string value."""
    if isinstance(value, BudgetType):
        return value
    try:
        return BudgetType(value)
    except ValueError:
        raise UnknownBudgetTypeError(value) from None


class PeriodReportingService:
    """
    Fiscal-period reports over injected per-month fetchers.

    Contract
    --------
    * ``revenue_fetcher(year, month)`` returns ``license_amount``,
      ``service_amount`` and ``total_amount``.
    * ``cost_fetcher(year, month)`` returns ``total_cogs``, ``total_sga``
      and ``total_cost``, plus the breakdown fields in
      ``COST_COMPOSITION_FIELDS`` when cost composition is wanted (other
      cost fields pass through untouched).
    * ``budget_fetcher(year, month, budget_type[, category=...])`` returns
      ``total_amount``.
    * ``deal_fetcher(year, month)`` returns the ``total_amount`` of deals
      acquired that month.

    Guarantees
    ----------
    * Read-only; the clock is only consulted by ``performance_trend``.
    """

    def __init__(
        self,
        revenue_fetcher: MonthlyMetricFetcher,
        cost_fetcher: MonthlyMetricFetcher,
        budget_fetcher: BudgetFetcher | None = None,
        deal_fetcher: MonthlyMetricFetcher | None = None,
        clock: Clock | None = None,
        config: RevenueConfig | None = None,
        aggregator: PeriodAggregator | None = None,
    ):
        self._revenue_fetcher = revenue_fetcher
        self._cost_fetcher = cost_fetcher
        self._budget_fetcher = budget_fetcher
        self._deal_fetcher = deal_fetcher
        self._clock = clock or SystemClock()
        self._config = config or RevenueConfig()
        self._aggregator = aggregator or PeriodAggregator(
            max_workers=self._config.aggregation.max_workers,
        )
        self._variance = BudgetVarianceCalculator(
            decimal_places=self._config.rounding.decimal_places,
            rounding=self._config.rounding.mode,
        )

    @property
    def currency(self) -> str:
        return self._config.reporting.currency

    # =========================================================================
    # Period totals
    # =========================================================================

    def revenue_for_period(
        self, fiscal_year: int, quarter: int | None = None,
    ) -> PeriodTotals:
        """License, service and total revenue over a fiscal year or quarter."""
        return self._aggregator.aggregate(
            fiscal_period_range(fiscal_year, quarter),
            self._revenue_fetcher,
            fields=REVENUE_FIELDS,
        )

    def cost_for_period(
        self, fiscal_year: int, quarter: int | None = None,
    ) -> PeriodTotals:
        """Every numeric cost field summed over a fiscal year or quarter."""
        return self._aggregator.aggregate(
            fiscal_period_range(fiscal_year, quarter),
            self._cost_fetcher,
        )

    def budget_for_period(
        self,
        fiscal_year: int,
        quarter: int | None,
        budget_type: BudgetType | str,
        category: str | None = None,
    ) -> Decimal:
        """Budgeted total of one type (optionally one category) over a fiscal year or quarter."""
        return self._budget_total(
            fiscal_period_range(fiscal_year, quarter),
            parse_budget_type(budget_type),
            category,
        )

    def actual_for_period(
        self,
        fiscal_year: int,
        quarter: int | None,
        budget_type: BudgetType | str,
    ) -> Decimal:
        """The actual figure a budget type is measured against."""
        return self._actual_total(
            fiscal_period_range(fiscal_year, quarter),
            parse_budget_type(budget_type),
        )

    # =========================================================================
    # Budget analysis
    # =========================================================================

    def budget_analysis(
        self,
        fiscal_year: int,
        quarter: int | None,
        budget_type: BudgetType | str,
        category: str | None = None,
    ) -> BudgetAnalysis:
        """Budget against actual over a fiscal year or quarter."""
        kind = parse_budget_type(budget_type)
        if quarter is None:
            label = f"FY{fiscal_year}"
        else:
            label = format_fiscal_period(fiscal_year, quarter)
        return self._analyse(
            fiscal_period_range(fiscal_year, quarter), kind, label, category,
        )

    def monthly_budget_analysis(
        self,
        year: int,
        month: int,
        budget_type: BudgetType | str,
        category: str | None = None,
    ) -> BudgetAnalysis:
        """Budget against actual for a single calendar month."""
        kind = parse_budget_type(budget_type)
        ym = YearMonth(year, month)
        return self._analyse(
            FiscalDateRange(ym.first_day, ym.last_day), kind, ym.label, category,
        )

    def budget_achievement_summary(
        self, fiscal_year: int, quarter: int | None = None,
    ) -> tuple[BudgetAnalysis, ...]:
        """Analysis for every budget type whose fetchers are configured."""
        kinds = [
            kind for kind in BudgetType
            if kind != BudgetType.DEAL_ACQUISITION or self._deal_fetcher is not None
        ]
        return tuple(self.budget_analysis(fiscal_year, quarter, kind) for kind in kinds)

    def _analyse(
        self,
        date_range: FiscalDateRange,
        kind: BudgetType,
        label: str,
        category: str | None,
    ) -> BudgetAnalysis:
        budget = self._budget_total(date_range, kind, category)
        actual = self._actual_total(date_range, kind)
        comparison = self._variance.compare(
            actual=actual, budget=budget, higher_is_better=kind.higher_is_better,
        )

        logger.info(
            "budget_analysis_generated",
            extra={
                "period": label,
                "budget_type": kind.value,
                "category": category,
                "budget_amount": str(budget),
                "actual_amount": str(actual),
                "currency": self.currency,
            },
        )

        return BudgetAnalysis(
            period_label=label,
            budget_type=kind,
            date_range=date_range,
            budget_amount=budget,
            actual_amount=actual,
            difference=comparison.difference,
            achievement_rate=comparison.achievement_rate,
            is_favorable=comparison.is_favorable,
            currency=self.currency,
            category=category,
        )

    def _budget_total(
        self,
        date_range: FiscalDateRange,
        kind: BudgetType,
        category: str | None = None,
    ) -> Decimal:
        if self._budget_fetcher is None:
            raise FetcherNotConfiguredError("budget")
        fetch = self._budget_fetcher

        def fetch_budget(year: int, month: int) -> Mapping[str, Any] | None:
            if category is None:
                return fetch(year, month, kind)
            return fetch(year, month, kind, category=category)

        totals = self._aggregator.aggregate(date_range, fetch_budget, fields=("total_amount",))
        return totals["total_amount"]

    def _actual_total(self, date_range: FiscalDateRange, kind: BudgetType) -> Decimal:
        match kind:
            case BudgetType.REVENUE:
                return self._sum(date_range, self._revenue_fetcher, "total_amount")
            case BudgetType.COGS:
                return self._sum(date_range, self._cost_fetcher, "total_cogs")
            case BudgetType.SGA:
                return self._sum(date_range, self._cost_fetcher, "total_sga")
            case BudgetType.PROFIT:
                revenue = self._sum(date_range, self._revenue_fetcher, "total_amount")
                cost = self._sum(date_range, self._cost_fetcher, "total_cost")
                return revenue - cost
            case BudgetType.DEAL_ACQUISITION:
                if self._deal_fetcher is None:
                    raise FetcherNotConfiguredError("deal acquisition")
                return self._sum(date_range, self._deal_fetcher, "total_amount")
            case _:
                raise UnknownBudgetTypeError(kind)

    def _sum(
        self,
        date_range: FiscalDateRange,
        fetcher: MonthlyMetricFetcher,
        name: str,
    ) -> Decimal:
        return self._aggregator.aggregate(date_range, fetcher, fields=(name,))[name]

    # =========================================================================
    # Monthly dashboard
    # =========================================================================

    def dashboard_summary(self, year: int, month: int) -> DashboardSummary:
        """Revenue, cost, profit and deals for one month, each against the month before."""
        current = YearMonth(year, month)
        previous = current.previous()

        def change(fetcher: MonthlyMetricFetcher, metric: str) -> MetricChange:
            now = self._sum(self._month_range(current), fetcher, metric)
            before = self._sum(self._month_range(previous), fetcher, metric)
            return MetricChange(now, before, self._variance.change_rate(now, before))

        revenue = change(self._revenue_fetcher, "total_amount")
        cost = change(self._cost_fetcher, "total_cost")
        profit_now = revenue.current - cost.current
        profit_before = revenue.previous - cost.previous
        profit = MetricChange(
            profit_now, profit_before, self._variance.change_rate(profit_now, profit_before),
        )
        deals = None
        if self._deal_fetcher is not None:
            deals = change(self._deal_fetcher, "total_amount")

        logger.info(
            "dashboard_summary_generated",
            extra={
                "period": current.label,
                "previous_period": previous.label,
                "revenue": str(revenue.current),
                "profit": str(profit_now),
                "currency": self.currency,
            },
        )
        return DashboardSummary(
            year=current.year,
            month=current.month,
            currency=self.currency,
            revenue=revenue,
            cost=cost,
            profit=profit,
            deal_acquisition=deals,
        )

    def revenue_composition(self, year: int, month: int) -> tuple[CompositionShare, ...]:
        """License and service revenue as shares of the month's total revenue."""
        return self._composition(
            YearMonth(year, month),
            self._revenue_fetcher,
            REVENUE_COMPOSITION_FIELDS,
            "total_amount",
        )

    def cost_composition(self, year: int, month: int) -> tuple[CompositionShare, ...]:
        """COGS and SG&A lines as shares of the month's total cost."""
        return self._composition(
            YearMonth(year, month),
            self._cost_fetcher,
            COST_COMPOSITION_FIELDS,
            "total_cost",
        )

    def _composition(
        self,
        ym: YearMonth,
        fetcher: MonthlyMetricFetcher,
        parts: tuple[str, ...],
        total_field: str,
    ) -> tuple[CompositionShare, ...]:
        # A month with no data or a zero total yields 0% shares.
        totals = self._aggregator.aggregate(
            self._month_range(ym), fetcher, fields=(*parts, total_field),
        )
        whole = totals[total_field]
        return tuple(
            CompositionShare(
                name=name,
                value=totals[name],
                percentage=self._variance.share(totals[name], whole),
            )
            for name in parts
        )

    @staticmethod
    def _month_range(ym: YearMonth) -> FiscalDateRange:
        return FiscalDateRange(ym.first_day, ym.last_day)

    # =========================================================================
    # Trend
    # =========================================================================

    def performance_trend(self, months: int | None = None) -> tuple[TrendPoint, ...]:
        """Revenue, cost, profit and margin for the trailing ``months``.

        The last point is the clock's current month.  Defaults to
        ``config.reporting.trend_months``.
        """
        count = months if months is not None else self._config.reporting.trend_months
        if count < 1:
            raise ValueError(f"months must be at least 1, got {count}")

        current = YearMonth.of(self._clock.today())
        window = [current]
        for _ in range(count - 1):
            window.append(window[-1].previous())
        window.reverse()

        points = []
        for ym in window:
            month_range = self._month_range(ym)
            revenue = self._sum(month_range, self._revenue_fetcher, "total_amount")
            cost = self._sum(month_range, self._cost_fetcher, "total_cost")
            profit = revenue - cost
            points.append(TrendPoint(
                year=ym.year,
                month=ym.month,
                revenue=revenue,
                cost=cost,
                profit=profit,
                profit_margin=self._variance.profit_margin(revenue, profit),
            ))

        logger.info(
            "performance_trend_generated",
            extra={
                "months": count,
                "first_month": window[0].label,
                "last_month": window[-1].label,
            },
        )
        return tuple(points)
