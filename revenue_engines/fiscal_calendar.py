"""
revenue_engines.fiscal_calendar -- December-start fiscal year and quarters.

Responsibility:
    Translate between calendar dates and the organisation's fiscal calendar.
    The fiscal year runs December 1 through November 30 and is named after
    the calendar year in which it ends:

        Q1  Dec 1 (previous calendar year) - last day of February
        Q2  Mar 1 - May 31
        Q3  Jun 1 - Aug 31
        Q4  Sep 1 - Nov 30

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    Uses calendar_math for month lengths so the Q1 end date follows the
    Gregorian leap-year rule.

Invariants enforced:
    - Round trip: for every date d,
      ``fiscal_quarter_range(fiscal_year_of(d), fiscal_quarter_of(d))``
      contains d.
    - Ranges are inclusive on both ends and contiguous across quarters.

Failure modes:
    - InvalidQuarterError for a quarter outside 1..4.

Usage:
    from revenue_engines.fiscal_calendar import fiscal_period_of, fiscal_quarter_range

    period = fiscal_period_of(date(2023, 12, 1))     # FY2024 Q1
    rng = fiscal_quarter_range(2024, 1)              # 2023-12-01 .. 2024-02-29
"""

from __future__ import annotations

from datetime import date

from revenue_engines.calendar_math import days_in_month
from revenue_kernel.domain.values import (
    FiscalDateRange,
    FiscalPeriod,
    to_calendar_date,
)
from revenue_kernel.exceptions import InvalidQuarterError

FISCAL_YEAR_START_MONTH = 12

_QUARTER_OF_MONTH: dict[int, int] = {
    12: 1, 1: 1, 2: 1,
    3: 2, 4: 2, 5: 2,
    6: 3, 7: 3, 8: 3,
    9: 4, 10: 4, 11: 4,
}


def fiscal_year_of(d: date) -> int:
    """December belongs to the next fiscal year; every other month to its own."""
    d = to_calendar_date(d)
    return d.year + 1 if d.month == FISCAL_YEAR_START_MONTH else d.year


def fiscal_quarter_of(d: date) -> int:
    return _QUARTER_OF_MONTH[to_calendar_date(d).month]


def fiscal_period_of(d: date) -> FiscalPeriod:
    return FiscalPeriod(fiscal_year_of(d), fiscal_quarter_of(d))


def fiscal_quarter_range(fiscal_year: int, quarter: int) -> FiscalDateRange:
    """
    Inclusive date range of a fiscal quarter.

    Raises:
        InvalidQuarterError: If ``quarter`` is not 1, 2, 3 or 4.
    """
    match quarter:
        case 1:
            return FiscalDateRange(
                start_date=date(fiscal_year - 1, 12, 1),
                end_date=date(fiscal_year, 2, days_in_month(fiscal_year, 2)),
            )
        case 2:
            return FiscalDateRange(date(fiscal_year, 3, 1), date(fiscal_year, 5, 31))
        case 3:
            return FiscalDateRange(date(fiscal_year, 6, 1), date(fiscal_year, 8, 31))
        case 4:
            return FiscalDateRange(date(fiscal_year, 9, 1), date(fiscal_year, 11, 30))
        case _:
            raise InvalidQuarterError(fiscal_year, quarter)


def fiscal_year_range(fiscal_year: int) -> FiscalDateRange:
    """Dec 1 of ``fiscal_year - 1`` through Nov 30 of ``fiscal_year``."""
    return FiscalDateRange(date(fiscal_year - 1, 12, 1), date(fiscal_year, 11, 30))


def fiscal_period_range(fiscal_year: int, quarter: int | None = None) -> FiscalDateRange:
    """Whole fiscal year when ``quarter`` is None, otherwise that quarter."""
    if quarter is None:
        return fiscal_year_range(fiscal_year)
    return fiscal_quarter_range(fiscal_year, quarter)


def format_fiscal_period(fiscal_year: int, quarter: int) -> str:
    """``FY2024 Q1``"""
    return FiscalPeriod(fiscal_year, quarter).label


def fiscal_label_of(d: date) -> str:
    return fiscal_period_of(d).label
