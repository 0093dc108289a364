"""Tests for the yearly investment step."""

import pytest
from housing_budget_jp.investment import future_value, step


class TestStep:
    def test_first_year_example(self):
        """初期100万円 + 月2万円積立、利回り2%"""
        s = step(0, 20_000, 2.0, 0, True, 1_000_000)
        assert s.contribution == pytest.approx(240_000)
        assert s.yield_amount == pytest.approx(24_800)
        assert s.balance == pytest.approx(1_264_800)
        assert s.shortfall == 0

    def test_lump_sum_only_in_first_year(self):
        s = step(100_000, 0, 0.0, 0, False, 1_000_000)
        assert s.balance == pytest.approx(100_000)

    def test_withdrawal_after_yield(self):
        s = step(1_000_000, 0, 10.0, 100_000, False, 0)
        assert s.yield_amount == pytest.approx(100_000)
        assert s.balance == pytest.approx(1_000_000)
        assert s.withdrawal == 100_000

    def test_shortfall_when_withdrawal_exceeds_balance(self):
        s = step(100_000, 0, 0.0, 250_000, False, 0)
        assert s.balance == 0
        assert s.shortfall == pytest.approx(150_000)


class TestFutureValue:
    def test_matches_repeated_steps(self):
        balance = 0.0
        for year in range(30):
            balance = step(balance, 20_000, 2.0, 0, year == 0, 1_000_000).balance
        assert future_value(1_000_000, 20_000, 2.0, 30) == pytest.approx(balance, rel=1e-9)

    def test_zero_years(self):
        assert future_value(1_000_000, 20_000, 2.0, 0) == 1_000_000

    def test_zero_yield(self):
        assert future_value(1_000_000, 10_000, 0.0, 10) == pytest.approx(2_200_000)
