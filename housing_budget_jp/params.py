"""Household profile, projection assumptions and loan payment helpers."""

from dataclasses import dataclass

# 教育方針 → 教育費係数
EDUCATION_POLICY_FACTORS: dict[str, float] = {
    "public": 1.0,   # 公立中心
    "mixed": 1.2,    # 公立・私立の併用
    "private": 1.5,  # 私立中心
}
DEFAULT_EDUCATION_POLICY = "public"

SHORTFALL_POLICIES = ("clamp", "carry")


@dataclass(frozen=True)
class HouseholdProfile:
    """Normalized household input for one simulation run (all money in 円).

    Field defaults double as the documented fallbacks used by
    ``normalize_profile`` when an answer is missing or unparsable.
    """

    # Demographics
    age: int = 30
    retirement_age: int = 65
    has_spouse: bool = False
    dependent_ages: tuple[int, ...] = ()

    # Income (年額)
    annual_income: int = 0
    spouse_income: int = 0
    pension_annual: int = 1_200_000  # 公的年金（年120万円）

    # Existing debts
    mortgage_balance: int = 0
    monthly_mortgage_payment: int = 0
    other_debts: int = 0

    # Assets
    savings: int = 0
    investable_assets: int = 1_000_000  # 初期投資額
    monthly_contribution: int = 20_000  # 毎月の積立額
    investment_yield_percent: float = 2.0

    # Declared monthly expenses
    monthly_living_expense: int = 200_000
    monthly_insurance: int = 10_000
    monthly_hobby_expense: int = 20_000
    education_policy: str = DEFAULT_EDUCATION_POLICY

    # Purchase / loan
    down_payment: int = 0
    loan_years: int = 35
    loan_rate_percent: float = 1.0

    # Economy
    inflation_rate: float = 0.01
    raise_rate: float = 0.02

    @property
    def household_income(self) -> int:
        """Annual income of the household at year 0 (spouse included when present)."""
        return self.annual_income + (self.spouse_income if self.has_spouse else 0)

    @property
    def adults(self) -> int:
        return 2 if self.has_spouse else 1

    @property
    def declared_monthly_expenses(self) -> int:
        return self.monthly_living_expense + self.monthly_insurance + self.monthly_hobby_expense


@dataclass(frozen=True)
class ProjectionAssumptions:
    """Model constants of the yearly projection. Override per run via dataclasses.replace()."""

    horizon_age: int = 90
    start_year: int = 2025

    # Income rules
    retirement_income_ratio: float = 0.60  # 退職後は現役時の60%
    spouse_retirement_offset: int = 2      # 配偶者は2歳若いと仮定
    late_career_age: int = 50
    late_career_raise_factor: float = 0.5  # 50歳以上は昇給率半減

    # Expense rules
    working_living_rate: float = 0.50  # 現役: 収入の50%
    retired_living_rate: float = 0.70  # 退職後: 収入の70%
    household_member_weight: float = 0.30
    child_independence_age: int = 22
    other_expense_rate: float = 0.10
    progressive_tax: bool = False

    # Alerts
    retirement_reserve_per_year: int = 1_000_000  # 老後資金の目安（残り1年あたり）
    life_expectancy_age: int = 90

    # Cross-subsidy policy: "clamp" zeroes cash after drawing on investments,
    # "carry" keeps the part investments could not cover as negative cash.
    shortfall_policy: str = "clamp"


DEFAULT_ASSUMPTIONS = ProjectionAssumptions()


def _calc_equal_payment(principal: float, monthly_rate: float, months: int) -> float:
    """Calculate monthly loan payment (元利均等返済)"""
    if monthly_rate == 0:
        return principal / months
    r = monthly_rate
    n = months
    return principal * r * (1 + r) ** n / ((1 + r) ** n - 1)


def _calc_principal_from_payment(payment: float, monthly_rate: float, months: int) -> float:
    """Invert _calc_equal_payment: principal serviceable by a monthly payment."""
    if months <= 0 or payment <= 0:
        return 0.0
    if monthly_rate == 0:
        return payment * months
    return payment * (1 - (1 + monthly_rate) ** -months) / monthly_rate
