"""
revenue_services.ports -- Types and protocols shared by the service layer.

Responsibility:
    Names the data a service receives (contract items, budget kinds) and
    the narrow interfaces through which it reaches storage.  Services
    depend on these protocols only; the in-memory adapter in
    ``revenue_services.memory`` is one implementation, a database-backed
    repository is another.

Architecture position:
    Services -- imports revenue_kernel and revenue_engines value types.
    No storage library is imported here.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Protocol, runtime_checkable

from revenue_kernel.domain.values import to_calendar_date, to_decimal


class SalesType(str, Enum):
    """Product line a contract item is booked under."""

    LICENSE = "LICENSE"
    SERVICE = "SERVICE"


class BudgetType(str, Enum):
    """Kinds of budget a report can compare against actuals."""

    DEAL_ACQUISITION = "DEAL_ACQUISITION"
    REVENUE = "REVENUE"
    COGS = "COGS"
    SGA = "SGA"
    PROFIT = "PROFIT"

    @property
    def higher_is_better(self) -> bool:
        """Cost budgets are favourable when actuals come in under."""
        return self not in (BudgetType.COGS, BudgetType.SGA)


@dataclass(frozen=True)
class ContractItem:
    """
    One line of a contract that earns revenue over a service period.

    The amount and dates are not validated here; the proration engine
    rejects bad intervals so that batch callers can record the failure
    per item.
    """

    contract_item_id: str
    amount: Decimal
    start_date: date
    end_date: date
    sales_type: SalesType = SalesType.LICENSE

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> ContractItem:
        """Build from a plain dict such as a parsed request body."""
        return cls(
            contract_item_id=str(data["contract_item_id"]),
            amount=to_decimal(data["amount"]),
            start_date=to_calendar_date(data["start_date"]),
            end_date=to_calendar_date(data["end_date"]),
            sales_type=SalesType(data.get("sales_type", SalesType.LICENSE.value)),
        )


@dataclass(frozen=True)
class AllocationRow:
    """
    One stored month of a contract item's revenue schedule.

    Rows are unique on (contract_item_id, year, month).
    """

    contract_item_id: str
    year: int
    month: int
    total_days_in_month: int
    applicable_days: int
    daily_rate: Decimal
    amount: Decimal
    sales_type: SalesType = SalesType.LICENSE


@runtime_checkable
class MonthlyMetricFetcher(Protocol):
    """``(year, month) -> {field: number}``, or ``None`` for no data."""

    def __call__(self, year: int, month: int) -> Mapping[str, Any] | None:
        ...


@runtime_checkable
class BudgetFetcher(Protocol):
    """``(year, month, budget_type) -> {"total_amount": number}`` or ``None``.

    ``category`` narrows the budget to one line (e.g. a product or team).
    It is passed by keyword and only when a report asks for one, so
    fetchers without categories may omit the parameter.
    """

    def __call__(
        self,
        year: int,
        month: int,
        budget_type: BudgetType,
        category: str | None = None,
    ) -> Mapping[str, Any] | None:
        ...


@runtime_checkable
class AllocationStore(Protocol):
    """Persistence port for monthly revenue schedules."""

    def replace_allocations(
        self, contract_item_id: str, rows: Sequence[AllocationRow],
    ) -> None:
        """Atomically swap every stored row of one item for ``rows``."""
        ...

    def allocations_for(self, contract_item_id: str) -> tuple[AllocationRow, ...]:
        """Stored rows for one item, ordered by (year, month)."""
        ...
