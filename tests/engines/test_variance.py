"""Tests for budget variance and dashboard ratios."""

from decimal import Decimal

import pytest

from revenue_engines.variance import BudgetVarianceCalculator


class TestRatios:
    """Percentages are rounded half-up to two places; zero denominators give 0."""

    def setup_method(self):
        self.calc = BudgetVarianceCalculator()

    def test_achievement_rate(self):
        assert self.calc.achievement_rate(Decimal("1200"), Decimal("1000")) == Decimal("120.00")

    def test_achievement_rate_rounds_half_up(self):
        # 1 / 3 * 100 = 33.333...
        assert self.calc.achievement_rate(1, 3) == Decimal("33.33")
        # 2 / 3 * 100 = 66.666...
        assert self.calc.achievement_rate(2, 3) == Decimal("66.67")

    def test_achievement_rate_zero_budget(self):
        assert self.calc.achievement_rate(500, 0) == Decimal("0.00")

    def test_difference(self):
        assert self.calc.difference(Decimal("800"), Decimal("1000")) == Decimal("-200.00")

    def test_profit_margin(self):
        assert self.calc.profit_margin(revenue=Decimal("1000"), profit=Decimal("250")) == Decimal("25.00")

    def test_profit_margin_zero_revenue(self):
        assert self.calc.profit_margin(0, 100) == Decimal("0.00")

    def test_change_rate(self):
        assert self.calc.change_rate(current=110, previous=100) == Decimal("10.00")
        assert self.calc.change_rate(current=90, previous=100) == Decimal("-10.00")

    def test_change_rate_zero_previous(self):
        assert self.calc.change_rate(current=100, previous=0) == Decimal("0.00")

    def test_share(self):
        assert self.calc.share(part=9100, whole=12200) == Decimal("74.59")

    def test_share_of_zero_total(self):
        assert self.calc.share(part=0, whole=0) == Decimal("0.00")

    def test_non_numeric_rejected(self):
        with pytest.raises(ValueError):
            self.calc.difference("lots", 1)


class TestCompare:
    """Full budget/actual comparison."""

    def setup_method(self):
        self.calc = BudgetVarianceCalculator()

    def test_revenue_over_budget_is_favorable(self):
        result = self.calc.compare(actual=Decimal("1200"), budget=Decimal("1000"))

        assert result.difference == Decimal("200.00")
        assert result.achievement_rate == Decimal("120.00")
        assert result.is_favorable is True
        assert result.absolute_difference == Decimal("200.00")

    def test_cost_over_budget_is_unfavorable(self):
        result = self.calc.compare(
            actual=Decimal("1200"), budget=Decimal("1000"), higher_is_better=False,
        )
        assert result.is_favorable is False
        assert result.absolute_difference == Decimal("200.00")

    def test_exactly_on_budget_is_favorable_either_way(self):
        assert self.calc.compare(100, 100).is_favorable
        assert self.calc.compare(100, 100, higher_is_better=False).is_favorable

    def test_zero_decimal_places(self):
        calc = BudgetVarianceCalculator(decimal_places=0)
        assert calc.achievement_rate(2, 3) == Decimal("67")
