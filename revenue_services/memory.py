"""
revenue_services.memory -- In-process allocation store.

Responsibility:
    Holds monthly revenue schedules in memory for tests, scripts and
    single-process tools.  Also serves as the revenue fetcher for the
    reporting service: ``monthly_revenue(year, month)`` sums stored rows by
    sales type.

Invariants enforced:
    - At most one row per (contract_item_id, year, month).
    - ``replace_allocations`` is all-or-nothing: a rejected batch leaves
      the previous rows in place.
    - All access is serialised with a lock so concurrent aggregation can
      read while recalculation writes.
"""

from __future__ import annotations

import threading
from collections.abc import Sequence
from decimal import Decimal

from revenue_kernel.exceptions import DuplicateAllocationError
from revenue_kernel.logging_config import get_logger
from revenue_services.ports import AllocationRow, SalesType

logger = get_logger("services.memory")


class InMemoryAllocationStore:
    """Dict-backed AllocationStore."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._rows: dict[str, dict[tuple[int, int], AllocationRow]] = {}

    def replace_allocations(
        self, contract_item_id: str, rows: Sequence[AllocationRow],
    ) -> None:
        staged: dict[tuple[int, int], AllocationRow] = {}
        for row in rows:
            if row.contract_item_id != contract_item_id:
                raise ValueError(
                    f"Row for {row.contract_item_id} passed while replacing "
                    f"{contract_item_id}"
                )
            key = (row.year, row.month)
            if key in staged:
                raise DuplicateAllocationError(contract_item_id, row.year, row.month)
            staged[key] = row

        with self._lock:
            self._rows[contract_item_id] = staged

        logger.debug("allocations_replaced", extra={
            "contract_item_id": contract_item_id,
            "row_count": len(staged),
        })

    def allocations_for(self, contract_item_id: str) -> tuple[AllocationRow, ...]:
        with self._lock:
            rows = self._rows.get(contract_item_id, {})
            return tuple(rows[key] for key in sorted(rows))

    def delete_allocations(self, contract_item_id: str) -> int:
        """Drop every row of one item; returns the number removed."""
        with self._lock:
            return len(self._rows.pop(contract_item_id, {}))

    def contract_item_ids(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(sorted(self._rows))

    def monthly_revenue(self, year: int, month: int) -> dict[str, Decimal]:
        """Revenue fetcher: stored amounts for one month split by sales type."""
        license_amount = Decimal("0")
        service_amount = Decimal("0")
        with self._lock:
            for rows in self._rows.values():
                row = rows.get((year, month))
                if row is None:
                    continue
                if row.sales_type == SalesType.SERVICE:
                    service_amount += row.amount
                else:
                    license_amount += row.amount
        return {
            "license_amount": license_amount,
            "service_amount": service_amount,
            "total_amount": license_amount + service_amount,
        }
