"""
Typed Exception Hierarchy for the Revenue Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Revenue schedules and fiscal reports feed financial statements. Callers must
be able to tell "the caller passed a bad interval" apart from "the fetcher
returned garbage" without parsing message strings.

Every exception here:
  1. Has a TYPED class (catch by type, not message)
  2. Has a CODE class attribute (machine-readable, API-safe)
  3. Carries structured DATA as attributes (not just a message string)

Example:
    try:
        result = engine.prorate(amount, start, end)
    except InvalidIntervalError as e:
        api_response(code=e.code, reason=e.reason)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    RevenueKernelError (base)
    |
    +-- IntervalError
    |   +-- InvalidIntervalError
    |   +-- DegenerateIntervalError
    |
    +-- CalendarError
    |   +-- InvalidMonthError
    |   +-- InvalidQuarterError
    |
    +-- AggregationError
    |   +-- MetricFieldError
    |
    +-- AllocationStoreError
    |   +-- DuplicateAllocationError
    |
    +-- ConfigurationError
    |
    +-- ReportingError
        +-- UnknownBudgetTypeError
        +-- FetcherNotConfiguredError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category      | Code                 | When Raised
--------------|----------------------|------------------------------------------
Interval      | INVALID_INTERVAL     | amount <= 0 or start_date > end_date
              | DIVISION_DEGENERATE  | total day count of zero (structurally
              |                      | impossible for a valid interval)
--------------|----------------------|------------------------------------------
Calendar      | INVALID_MONTH        | month outside 1-12
              | INVALID_QUARTER      | fiscal quarter outside 1-4
--------------|----------------------|------------------------------------------
Aggregation   | METRIC_FIELD_ERROR   | fetcher returned a non-numeric value
--------------|----------------------|------------------------------------------
Storage       | DUPLICATE_ALLOCATION | two rows for one (item, year, month)
--------------|----------------------|------------------------------------------
Configuration | CONFIGURATION_ERROR  | config file parsed but values invalid
--------------|----------------------|------------------------------------------
Reporting     | UNKNOWN_BUDGET_TYPE  | budget type not one of the known kinds
              | FETCHER_NOT_CONFIGURED | report needs a fetcher that was not
              |                      | injected

All of these indicate caller misuse, not transient failure. None of them are
retryable.
"""

from __future__ import annotations

from typing import Any


class RevenueKernelError(Exception):
    """
    Base exception for all revenue kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "REVENUE_KERNEL_ERROR"


# Interval-related exceptions


class IntervalError(RevenueKernelError):
    """Base exception for contract interval errors."""

    code: str = "INTERVAL_ERROR"


class InvalidIntervalError(IntervalError):
    """Contract amount or date range rejected before proration."""

    code: str = "INVALID_INTERVAL"

    def __init__(
        self,
        reason: str,
        amount: Any = None,
        start_date: Any = None,
        end_date: Any = None,
    ):
        self.reason = reason
        self.amount = str(amount) if amount is not None else None
        self.start_date = str(start_date) if start_date is not None else None
        self.end_date = str(end_date) if end_date is not None else None
        super().__init__(
            f"Invalid contract interval ({reason}): "
            f"amount={self.amount}, start_date={self.start_date}, "
            f"end_date={self.end_date}"
        )


class DegenerateIntervalError(IntervalError):
    """
    Total day count of zero reached the daily-rate division.

    An inclusive span is always at least one day, so this signals a broken
    day-count primitive rather than bad input.
    """

    code: str = "DIVISION_DEGENERATE"

    def __init__(self, start_date: Any, end_date: Any):
        self.start_date = str(start_date)
        self.end_date = str(end_date)
        super().__init__(
            f"Zero-day interval {self.start_date}..{self.end_date}: "
            f"daily rate is undefined"
        )


# Calendar-related exceptions


class CalendarError(RevenueKernelError):
    """Base exception for calendar and fiscal calendar errors."""

    code: str = "CALENDAR_ERROR"


class InvalidMonthError(CalendarError):
    """Month number outside 1-12."""

    code: str = "INVALID_MONTH"

    def __init__(self, year: int, month: int):
        self.year = year
        self.month = month
        super().__init__(f"Invalid month {month} for year {year}")


class InvalidQuarterError(CalendarError):
    """Fiscal quarter outside 1-4."""

    code: str = "INVALID_QUARTER"

    def __init__(self, fiscal_year: int, quarter: Any):
        self.fiscal_year = fiscal_year
        self.quarter = quarter
        super().__init__(
            f"Invalid fiscal quarter {quarter!r} for FY{fiscal_year}: "
            f"must be 1-4"
        )


# Aggregation-related exceptions


class AggregationError(RevenueKernelError):
    """Base exception for period aggregation errors."""

    code: str = "AGGREGATION_ERROR"


class MetricFieldError(AggregationError):
    """A per-month fetcher returned a value that cannot be summed."""

    code: str = "METRIC_FIELD_ERROR"

    def __init__(self, year: int, month: int, field: str, value: Any):
        self.year = year
        self.month = month
        self.field = field
        self.value = repr(value)
        super().__init__(
            f"Non-numeric value for field {field!r} in {year}-{month:02d}: "
            f"{self.value}"
        )


# Allocation storage exceptions


class AllocationStoreError(RevenueKernelError):
    """Base exception for allocation storage adapters."""

    code: str = "ALLOCATION_STORE_ERROR"


class DuplicateAllocationError(AllocationStoreError):
    """More than one allocation row for the same (item, year, month)."""

    code: str = "DUPLICATE_ALLOCATION"

    def __init__(self, contract_item_id: str, year: int, month: int):
        self.contract_item_id = contract_item_id
        self.year = year
        self.month = month
        super().__init__(
            f"Duplicate allocation for contract item {contract_item_id} "
            f"in {year}-{month:02d}"
        )


# Configuration exceptions


class ConfigurationError(RevenueKernelError):
    """Configuration parsed but failed validation."""

    code: str = "CONFIGURATION_ERROR"

    def __init__(self, reason: str, path: str | None = None):
        self.reason = reason
        self.path = path
        location = f" ({path})" if path else ""
        super().__init__(f"Invalid configuration{location}: {reason}")


# Reporting exceptions


class ReportingError(RevenueKernelError):
    """Base exception for reporting errors."""

    code: str = "REPORTING_ERROR"


class UnknownBudgetTypeError(ReportingError):
    """Budget type has no actual-value mapping."""

    code: str = "UNKNOWN_BUDGET_TYPE"

    def __init__(self, budget_type: Any):
        self.budget_type = str(budget_type)
        super().__init__(f"Unknown budget type: {self.budget_type}")


class FetcherNotConfiguredError(ReportingError):
    """A report needs a metric fetcher that was not injected."""

    code: str = "FETCHER_NOT_CONFIGURED"

    def __init__(self, fetcher_name: str):
        self.fetcher_name = fetcher_name
        super().__init__(f"No {fetcher_name} fetcher configured")
