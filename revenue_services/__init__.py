"""
revenue_services -- orchestration over the revenue engines.

Recalculation writes prorated schedules through an AllocationStore;
reporting reads per-month metrics through injected fetchers.  Neither
imports a storage library.
"""

from revenue_services.memory import InMemoryAllocationStore
from revenue_services.ports import (
    AllocationRow,
    AllocationStore,
    BudgetFetcher,
    BudgetType,
    ContractItem,
    MonthlyMetricFetcher,
    SalesType,
)
from revenue_services.recalculation import (
    AllocationRecalculationService,
    RecalculationOutcome,
    RecalculationStatus,
    RecalculationSummary,
)
from revenue_services.reporting import (
    BudgetAnalysis,
    CompositionShare,
    DashboardSummary,
    MetricChange,
    PeriodReportingService,
    TrendPoint,
    parse_budget_type,
)

__all__ = [
    "AllocationRow",
    "AllocationStore",
    "BudgetFetcher",
    "BudgetType",
    "ContractItem",
    "MonthlyMetricFetcher",
    "SalesType",
    "InMemoryAllocationStore",
    "AllocationRecalculationService",
    "RecalculationOutcome",
    "RecalculationStatus",
    "RecalculationSummary",
    "BudgetAnalysis",
    "CompositionShare",
    "DashboardSummary",
    "MetricChange",
    "PeriodReportingService",
    "TrendPoint",
    "parse_budget_type",
]
