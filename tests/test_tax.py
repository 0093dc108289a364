"""Tests for tax calculation functions."""

import pytest
from housing_budget_jp.tax import (
    calc_bracket_tax_rate,
    calc_flat_income_tax,
    calc_income_tax,
    calc_progressive_income_tax,
    estimate_takehome,
)


class TestCalcBracketTaxRate:
    def test_lowest_bracket(self):
        assert calc_bracket_tax_rate(2_000_000) == 0.10

    def test_upper_bound_is_inclusive(self):
        assert calc_bracket_tax_rate(3_300_000) == 0.10
        assert calc_bracket_tax_rate(6_000_000) == 0.20
        assert calc_bracket_tax_rate(10_000_000) == 0.23

    def test_just_above_bound(self):
        assert calc_bracket_tax_rate(3_300_001) == 0.20
        assert calc_bracket_tax_rate(6_000_001) == 0.23
        assert calc_bracket_tax_rate(10_000_001) == 0.33

    def test_zero_income(self):
        assert calc_bracket_tax_rate(0) == 0.10


class TestCalcFlatIncomeTax:
    def test_whole_income_at_bracket_rate(self):
        assert calc_flat_income_tax(6_000_000) == pytest.approx(1_200_000)

    def test_high_income(self):
        assert calc_flat_income_tax(12_000_000) == pytest.approx(3_960_000)

    def test_zero_and_negative(self):
        assert calc_flat_income_tax(0) == 0
        assert calc_flat_income_tax(-5) == 0


class TestCalcProgressiveIncomeTax:
    def test_two_brackets(self):
        """330万×10% + 270万×20%"""
        assert calc_progressive_income_tax(6_000_000) == pytest.approx(870_000)

    def test_all_brackets(self):
        expected = 330_000 + 540_000 + 4_000_000 * 0.23 + 2_000_000 * 0.33
        assert calc_progressive_income_tax(12_000_000) == pytest.approx(expected)

    def test_first_bracket_matches_flat(self):
        assert calc_progressive_income_tax(3_000_000) == pytest.approx(calc_flat_income_tax(3_000_000))

    @pytest.mark.parametrize("income", [1_000_000, 4_000_000, 8_000_000, 20_000_000])
    def test_never_above_flat(self, income):
        assert calc_progressive_income_tax(income) <= calc_flat_income_tax(income) + 1e-6

    def test_zero_income(self):
        assert calc_progressive_income_tax(0) == 0


class TestCalcIncomeTax:
    def test_default_is_flat(self):
        assert calc_income_tax(6_000_000) == pytest.approx(1_200_000)

    def test_progressive_flag(self):
        assert calc_income_tax(6_000_000, progressive=True) == pytest.approx(870_000)


class TestEstimateTakehome:
    def test_takehome(self):
        assert estimate_takehome(6_000_000) == pytest.approx(4_800_000)

    def test_zero(self):
        assert estimate_takehome(0) == 0
