"""Tests for HouseholdProfile, ProjectionAssumptions and payment helpers."""

import dataclasses

import pytest
from housing_budget_jp import DEFAULT_ASSUMPTIONS, HouseholdProfile, ProjectionAssumptions
from housing_budget_jp.params import _calc_equal_payment, _calc_principal_from_payment


class TestHouseholdProfile:
    def test_defaults(self):
        p = HouseholdProfile()
        assert p.age == 30
        assert p.retirement_age == 65
        assert p.pension_annual == 1_200_000
        assert p.investable_assets == 1_000_000
        assert p.monthly_contribution == 20_000
        assert p.education_policy == "public"

    def test_household_income_single(self):
        p = HouseholdProfile(annual_income=6_000_000, spouse_income=3_000_000)
        assert p.household_income == 6_000_000

    def test_household_income_with_spouse(self):
        p = HouseholdProfile(annual_income=6_000_000, has_spouse=True, spouse_income=3_000_000)
        assert p.household_income == 9_000_000

    def test_adults(self):
        assert HouseholdProfile().adults == 1
        assert HouseholdProfile(has_spouse=True).adults == 2

    def test_declared_monthly_expenses(self):
        assert HouseholdProfile().declared_monthly_expenses == 230_000

    def test_frozen(self):
        p = HouseholdProfile()
        with pytest.raises(dataclasses.FrozenInstanceError):
            p.age = 40


class TestProjectionAssumptions:
    def test_defaults(self):
        a = DEFAULT_ASSUMPTIONS
        assert a.horizon_age == 90
        assert a.start_year == 2025
        assert a.retirement_income_ratio == 0.60
        assert a.shortfall_policy == "clamp"
        assert a.progressive_tax is False

    def test_replace(self):
        a = dataclasses.replace(DEFAULT_ASSUMPTIONS, horizon_age=80)
        assert a.horizon_age == 80
        assert a.start_year == DEFAULT_ASSUMPTIONS.start_year
        assert ProjectionAssumptions().horizon_age == 90


class TestCalcEqualPayment:
    def test_zero_rate(self):
        assert _calc_equal_payment(1_200_000, 0, 120) == pytest.approx(10_000)

    def test_positive_rate(self):
        r = 0.01 / 12
        n = 360
        expected = 30_000_000 * r * (1 + r) ** n / ((1 + r) ** n - 1)
        assert _calc_equal_payment(30_000_000, r, n) == pytest.approx(expected)


class TestCalcPrincipalFromPayment:
    def test_inverse_of_equal_payment(self):
        r = 0.02 / 12
        payment = _calc_equal_payment(25_000_000, r, 420)
        assert _calc_principal_from_payment(payment, r, 420) == pytest.approx(25_000_000)

    def test_zero_rate(self):
        assert _calc_principal_from_payment(100_000, 0, 420) == pytest.approx(42_000_000)

    def test_no_payment_or_term(self):
        assert _calc_principal_from_payment(0, 0.001, 420) == 0
        assert _calc_principal_from_payment(100_000, 0.001, 0) == 0
