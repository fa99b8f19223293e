"""
Values -- Immutable, self-validating domain value objects.

Responsibility:
    Provides the value types that flow between the calendar, fiscal, and
    proration engines: YearMonth, ContractInterval, FiscalPeriod and
    FiscalDateRange, plus the Decimal coercion and rounding helpers every
    monetary computation goes through.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
    Imported by every engine. No outward dependencies except
    revenue_kernel.exceptions.

Invariants enforced:
    - Dates are date-only values; datetimes never reach arithmetic.
    - Monetary amounts are Decimal, never float.
    - ContractInterval: amount > 0 and start_date <= end_date.
    - YearMonth: month in 1..12.
    - FiscalPeriod: quarter in 1..4.

Failure modes:
    - InvalidIntervalError on an invalid contract interval.
    - InvalidMonthError on a month outside 1..12.
    - InvalidQuarterError on a quarter outside 1..4.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

from revenue_kernel.exceptions import (
    InvalidIntervalError,
    InvalidMonthError,
    InvalidQuarterError,
)

DEFAULT_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP


def to_decimal(value: Decimal | int | str | float) -> Decimal:
    """
    Coerce a numeric input to Decimal.

    Floats are routed through ``str`` so that ``0.1`` becomes
    ``Decimal("0.1")`` rather than its binary expansion.

    Raises:
        ValueError: If the value cannot be represented as a Decimal.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"Invalid amount: {value!r}") from e


def to_calendar_date(value: date) -> date:
    """
    Reduce a date or datetime to a date-only value.

    A datetime keeps its own calendar components; no timezone conversion is
    applied, so an aware datetime late in the evening stays on its own day.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise TypeError(f"Expected date or datetime, got {type(value).__name__}")


def round_money(
    value: Decimal,
    decimal_places: int = DEFAULT_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to the given number of decimal places.

    This is the only rounding function used for money in the revenue core.

    Preconditions: value is a Decimal; decimal_places >= 0.
    Postconditions: Returns value quantized with the given rounding mode.
    """
    return value.quantize(Decimal(10) ** -decimal_places, rounding=rounding)


@dataclass(frozen=True, slots=True, order=True)
class YearMonth:
    """
    A calendar month.

    Contract:
        Ordered chronologically by (year, month). Hashable.

    Guarantees:
        - month is always in 1..12.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidMonthError(self.year, self.month)

    @classmethod
    def of(cls, d: date) -> YearMonth:
        """Month containing the given date."""
        return cls(d.year, d.month)

    @property
    def days(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        return date(self.year, self.month, self.days)

    @property
    def label(self) -> str:
        """``YYYY-MM``"""
        return f"{self.year:04d}-{self.month:02d}"

    def next(self) -> YearMonth:
        if self.month == 12:
            return YearMonth(self.year + 1, 1)
        return YearMonth(self.year, self.month + 1)

    def previous(self) -> YearMonth:
        if self.month == 1:
            return YearMonth(self.year - 1, 12)
        return YearMonth(self.year, self.month - 1)

    def as_tuple(self) -> tuple[int, int]:
        return (self.year, self.month)

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True, slots=True)
class ContractInterval:
    """
    A contract line item's value and inclusive service period.

    Contract:
        Constructed by the caller per contract item. The optional
        ``contract_item_id`` is carried through to results untouched.

    Guarantees:
        - amount is a Decimal and strictly positive.
        - start_date <= end_date, both date-only values.
    """

    amount: Decimal
    start_date: date
    end_date: date
    contract_item_id: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "start_date", to_calendar_date(self.start_date))
        object.__setattr__(self, "end_date", to_calendar_date(self.end_date))
        try:
            amount = to_decimal(self.amount)
        except ValueError as e:
            raise InvalidIntervalError(
                "amount is not numeric", self.amount, self.start_date, self.end_date
            ) from e
        object.__setattr__(self, "amount", amount)

        if not amount.is_finite() or amount <= Decimal("0"):
            raise InvalidIntervalError(
                "amount must be positive", amount, self.start_date, self.end_date
            )
        if self.start_date > self.end_date:
            raise InvalidIntervalError(
                "start_date is after end_date", amount, self.start_date, self.end_date
            )


@dataclass(frozen=True, slots=True, order=True)
class FiscalPeriod:
    """
    A fiscal year/quarter pair.

    Derived from a calendar date or used to look up a date range; never
    stored on its own.
    """

    fiscal_year: int
    fiscal_quarter: int

    def __post_init__(self) -> None:
        if self.fiscal_quarter not in (1, 2, 3, 4):
            raise InvalidQuarterError(self.fiscal_year, self.fiscal_quarter)

    @property
    def label(self) -> str:
        """``FY2024 Q1``"""
        return f"FY{self.fiscal_year} Q{self.fiscal_quarter}"

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True, slots=True)
class FiscalDateRange:
    """Inclusive date range for a fiscal year or quarter."""

    start_date: date
    end_date: date

    def contains(self, d: date) -> bool:
        d = to_calendar_date(d)
        return self.start_date <= d <= self.end_date

    def __contains__(self, d: Any) -> bool:
        return isinstance(d, date) and self.contains(d)

    @property
    def days(self) -> int:
        """Inclusive day count."""
        return (self.end_date - self.start_date).days + 1

    def dates(self):
        """Yield every date in the range, in order."""
        current = self.start_date
        while current <= self.end_date:
            yield current
            current += timedelta(days=1)
