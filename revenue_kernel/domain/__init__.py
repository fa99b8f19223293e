"""
Pure domain layer.

Immutable value objects and the injectable clock, with NO dependencies on:
- Persistence
- I/O
- Engines or services

All domain objects are immutable and deterministic.
"""

from revenue_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from revenue_kernel.domain.values import (
    DEFAULT_DECIMAL_PLACES,
    DEFAULT_ROUNDING,
    ContractInterval,
    FiscalDateRange,
    FiscalPeriod,
    YearMonth,
    round_money,
    to_calendar_date,
    to_decimal,
)

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "ContractInterval",
    "FiscalDateRange",
    "FiscalPeriod",
    "YearMonth",
    "DEFAULT_DECIMAL_PLACES",
    "DEFAULT_ROUNDING",
    "round_money",
    "to_calendar_date",
    "to_decimal",
]
