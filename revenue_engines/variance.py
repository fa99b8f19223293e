"""
revenue_engines.variance -- Budget vs. actual and period-over-period metrics.

Responsibility:
    The small ratio calculations every dashboard report shows next to a
    total: achievement rate against budget, budget difference, profit
    margin, month-over-month change rate, and composition shares.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Decimal-only arithmetic; results rounded with round_money
      (ROUND_HALF_UP, 2 places by default).
    - Division by zero is defined, not raised: a zero budget, revenue,
      previous value or composition total yields Decimal("0").

Failure modes:
    - ValueError from to_decimal on non-numeric input.

Usage:
    from revenue_engines.variance import BudgetVarianceCalculator

    calc = BudgetVarianceCalculator()
    result = calc.compare(actual=Decimal("1200"), budget=Decimal("1000"))
    result.achievement_rate   # Decimal("120.00")
    result.difference         # Decimal("200.00")
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from revenue_engines.tracer import traced_engine
from revenue_kernel.domain.values import (
    DEFAULT_DECIMAL_PLACES,
    DEFAULT_ROUNDING,
    round_money,
    to_decimal,
)

_HUNDRED = Decimal("100")
_ZERO = Decimal("0")


@dataclass(frozen=True)
class BudgetVarianceResult:
    """
    Budget against actual for one metric and period.

    ``is_favorable`` reads the difference through ``higher_is_better``:
    over budget is good for revenue, bad for cost.
    """

    budget: Decimal
    actual: Decimal
    difference: Decimal
    achievement_rate: Decimal
    is_favorable: bool

    @property
    def absolute_difference(self) -> Decimal:
        return abs(self.difference)


class BudgetVarianceCalculator:
    """
    Pure calculator for dashboard ratios.

    Contract:
        No I/O, fully deterministic.
    Guarantees:
        - ``achievement_rate`` = actual / budget * 100.
        - ``difference`` = actual - budget.
        - ``profit_margin`` = profit / revenue * 100.
        - ``change_rate`` = (current - previous) / previous * 100.
        - ``share`` = part / whole * 100.
    """

    def __init__(
        self,
        decimal_places: int = DEFAULT_DECIMAL_PLACES,
        rounding: str = DEFAULT_ROUNDING,
    ):
        self.decimal_places = decimal_places
        self.rounding = rounding

    def _round(self, value: Decimal) -> Decimal:
        return round_money(value, self.decimal_places, self.rounding)

    def achievement_rate(self, actual, budget) -> Decimal:
        """Percentage of budget achieved; 0 when budget is 0."""
        budget = to_decimal(budget)
        if budget == _ZERO:
            return self._round(_ZERO)
        return self._round(to_decimal(actual) / budget * _HUNDRED)

    def difference(self, actual, budget) -> Decimal:
        return self._round(to_decimal(actual) - to_decimal(budget))

    def profit_margin(self, revenue, profit) -> Decimal:
        """Profit as a percentage of revenue; 0 when revenue is 0."""
        revenue = to_decimal(revenue)
        if revenue == _ZERO:
            return self._round(_ZERO)
        return self._round(to_decimal(profit) / revenue * _HUNDRED)

    def change_rate(self, current, previous) -> Decimal:
        """Percentage change from previous to current; 0 when previous is 0."""
        previous = to_decimal(previous)
        if previous == _ZERO:
            return self._round(_ZERO)
        return self._round((to_decimal(current) - previous) / previous * _HUNDRED)

    def share(self, part, whole) -> Decimal:
        """``part`` as a percentage of ``whole``; 0 when ``whole`` is 0."""
        whole = to_decimal(whole)
        if whole == _ZERO:
            return self._round(_ZERO)
        return self._round(to_decimal(part) / whole * _HUNDRED)

    @traced_engine("budget_variance", "1.0", fingerprint_fields=("actual", "budget"))
    def compare(self, actual, budget, higher_is_better: bool = True) -> BudgetVarianceResult:
        """Full budget/actual comparison."""
        actual = to_decimal(actual)
        budget = to_decimal(budget)
        difference = self.difference(actual, budget)
        favorable = difference >= _ZERO if higher_is_better else difference <= _ZERO
        return BudgetVarianceResult(
            budget=budget,
            actual=actual,
            difference=difference,
            achievement_rate=self.achievement_rate(actual, budget),
            is_favorable=favorable,
        )
