"""
Module: revenue_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for
    revenue_services and for upstream callers.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import revenue_kernel (and sibling engine modules).
    MUST NOT import revenue_services or revenue_config.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
    - Decimal-only arithmetic for money.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine invocations are traced via ``@traced_engine`` (see
    ``revenue_engines.tracer``), emitting REVENUE_ENGINE_TRACE records with
    engine name, version, input fingerprint and duration.

Usage:
    from revenue_engines.proration import ProrationEngine
    from revenue_engines.fiscal_calendar import fiscal_quarter_range
    from revenue_engines.aggregation import PeriodAggregator
"""

from revenue_engines.aggregation import (
    MonthlyFetcher,
    PeriodAggregator,
    PeriodTotals,
)
from revenue_engines.calendar_math import (
    days_in_month,
    inclusive_day_span,
    iter_months,
    month_bounds,
    months_spanned,
    overlap_days_in_month,
)
from revenue_engines.fiscal_calendar import (
    fiscal_label_of,
    fiscal_period_of,
    fiscal_period_range,
    fiscal_quarter_of,
    fiscal_quarter_range,
    fiscal_year_of,
    fiscal_year_range,
    format_fiscal_period,
)
from revenue_engines.proration import (
    MonthlyAllocation,
    ProrationEngine,
    ProrationResult,
)
from revenue_engines.variance import (
    BudgetVarianceCalculator,
    BudgetVarianceResult,
)

__all__ = [
    # Calendar math
    "days_in_month",
    "inclusive_day_span",
    "iter_months",
    "month_bounds",
    "months_spanned",
    "overlap_days_in_month",
    # Fiscal calendar
    "fiscal_year_of",
    "fiscal_quarter_of",
    "fiscal_period_of",
    "fiscal_quarter_range",
    "fiscal_year_range",
    "fiscal_period_range",
    "format_fiscal_period",
    "fiscal_label_of",
    # Proration
    "ProrationEngine",
    "ProrationResult",
    "MonthlyAllocation",
    # Aggregation
    "PeriodAggregator",
    "PeriodTotals",
    "MonthlyFetcher",
    # Variance
    "BudgetVarianceCalculator",
    "BudgetVarianceResult",
]
