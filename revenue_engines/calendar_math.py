"""
revenue_engines.calendar_math -- Day-counting primitives for proration.

Responsibility:
    Exact, timezone-independent day arithmetic: month lengths, inclusive
    day spans, the day overlap between an interval and a month, and the
    ordered list of months an interval touches.  Revenue proration is only
    as correct as these counts.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import revenue_kernel (domain values, exceptions).

Invariants enforced:
    - Every computation runs on date-only values; datetimes are reduced to
      their own calendar date first, so time-of-day and UTC offsets never
      shift a count.
    - Spans are inclusive: a one-day interval has span 1.
    - Overlap is never negative: disjoint ranges yield 0.
    - ``months_spanned`` is strictly ascending with no gaps or duplicates.

Failure modes:
    - InvalidMonthError for a month outside 1..12.
    - TypeError for inputs that are not dates.
"""

from __future__ import annotations

import calendar
from collections.abc import Iterator
from datetime import date

from revenue_kernel.domain.values import YearMonth, to_calendar_date
from revenue_kernel.exceptions import InvalidMonthError


def days_in_month(year: int, month: int) -> int:
    """Gregorian length of a month (28-31)."""
    if not 1 <= month <= 12:
        raise InvalidMonthError(year, month)
    return calendar.monthrange(year, month)[1]


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a month."""
    last = days_in_month(year, month)
    return date(year, month, 1), date(year, month, last)


def inclusive_day_span(a: date, b: date) -> int:
    """
    Number of calendar days from ``a`` to ``b`` inclusive.

    ``a == b`` yields 1.  A reversed pair yields the span of the same two
    days in order.
    """
    start = to_calendar_date(a)
    end = to_calendar_date(b)
    return abs((end - start).days) + 1


def iter_months(a: date, b: date) -> Iterator[YearMonth]:
    """
    Lazily yield every month touched by ``[a, b]`` in chronological order.

    Yields nothing when ``a > b``.  Each call returns a fresh, finite
    iterator.
    """
    start = to_calendar_date(a)
    end = to_calendar_date(b)
    if start > end:
        return
    current = YearMonth.of(start)
    last = YearMonth.of(end)
    while current <= last:
        yield current
        current = current.next()


def months_spanned(a: date, b: date) -> tuple[YearMonth, ...]:
    """
    Every month ``m`` with ``a <= last_day(m)`` and ``b >= first_day(m)``.

    Returned as a tuple so it can be iterated any number of times.
    """
    return tuple(iter_months(a, b))


def overlap_days_in_month(year: int, month: int, a: date, b: date) -> int:
    """
    Days of ``(year, month)`` that fall inside ``[a, b]``.

    Returns 0, never a negative number, when the ranges do not intersect
    (including when ``a > b``).
    """
    month_start, month_end = month_bounds(year, month)
    start = max(to_calendar_date(a), month_start)
    end = min(to_calendar_date(b), month_end)
    if start > end:
        return 0
    return (end - start).days + 1
