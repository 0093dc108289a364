"""Affordability solver: safe / reasonable / max housing budget lines."""

import math
from dataclasses import dataclass
from typing import Callable

from housing_budget_jp.events import EventMap
from housing_budget_jp.investment import future_value
from housing_budget_jp.loan import LoanTerms, principal_from_payment
from housing_budget_jp.params import DEFAULT_ASSUMPTIONS, HouseholdProfile, ProjectionAssumptions
from housing_budget_jp.simulation import YearlyBalance, project_lifetime
from housing_budget_jp.tax import estimate_takehome

# 返済負担率（年間返済額 / 世帯年収）
REPAYMENT_RATIOS: tuple[tuple[str, float], ...] = (
    ("safe", 0.20),
    ("reasonable", 0.25),
    ("max", 0.30),
)
LINE_NAMES = {
    "safe": "安全ライン",
    "reasonable": "妥当ライン",
    "max": "MAXライン",
}

CASH_CHECK_YEARS = 5  # 基準1: 購入後5年間は貯蓄残高がマイナスにならない
RETIREMENT_TARGET_PER_ADULT = 20_000_000  # 基準2: 老後資金 1人あたり2,000万円
SEARCH_TOLERANCE = 1_000  # 二分探索の収束幅（円/月）
DERIVED_LINE_MULTIPLIER = 1.10

BUDGET_CRITERIA = (
    f"基準1: 購入後{CASH_CHECK_YEARS}年間で貯蓄残高がマイナスにならないこと",
    f"基準2: 老後資金目標額は1人あたり{RETIREMENT_TARGET_PER_ADULT // 10_000:,}万円を確保",
)

# Line status
UNCONSTRAINED = "unconstrained"  # 目標返済額のまま両基準を満たす
SOLVED = "solved"                # 二分探索で返済額を引き下げた
DERIVED = "derived"              # 安全ライン × 1.10 から導出
INFEASIBLE = "infeasible"        # 返済額0でも基準を満たせない

# 簡易予算（年収倍率）
SIMPLE_LOWER_MULTIPLE = 3
SIMPLE_UPPER_MULTIPLE = 5
LARGE_FAMILY_SIZE = 4
LARGE_FAMILY_MULTIPLE = 3.5
MAX_PAYMENT_RATIO = 0.3  # 既存ローン返済負担率の上限
MAX_DEBT_RATIO = 0.4     # その他負債 / 年収 の上限
PENALTY_MIN = 5_000_000
PENALTY_MAX = 10_000_000
BUDGET_ROUNDING = 100_000


@dataclass(frozen=True)
class BudgetLine:
    label: str
    target_ratio: float
    monthly_payment: float | None
    loan_principal: int | None
    purchase_price: int | None
    status: str

    @property
    def name(self) -> str:
        return LINE_NAMES.get(self.label, self.label)

    @property
    def feasible(self) -> bool:
        return self.status != INFEASIBLE


@dataclass(frozen=True)
class BudgetResult:
    """Three budget lines plus a lifetime projection for every feasible line."""

    safe: BudgetLine
    reasonable: BudgetLine
    max: BudgetLine
    projections: dict[str, list[YearlyBalance]]

    @property
    def lines(self) -> tuple[BudgetLine, BudgetLine, BudgetLine]:
        return (self.safe, self.reasonable, self.max)


def _loan_for_payment(profile: HouseholdProfile, payment: float) -> LoanTerms:
    principal = principal_from_payment(payment, profile.loan_rate_percent, profile.loan_years)
    return LoanTerms(principal, profile.loan_rate_percent, profile.loan_years)


def project_retirement_fund(profile: HouseholdProfile, monthly_payment: float) -> float:
    """Closed-form fund at retirement age with a loan of ``monthly_payment``.

    savings + (take-home − declared spending) × years to retirement
    − loan payments made before retirement + investment future value.
    """
    years = max(0, profile.retirement_age - profile.age)
    takehome = estimate_takehome(profile.household_income)
    annual_spending = profile.declared_monthly_expenses * 12
    paying_years = min(years, profile.loan_years)

    fund = profile.savings + (takehome - annual_spending) * years
    fund -= monthly_payment * 12 * paying_years
    fund += future_value(
        profile.investable_assets,
        profile.monthly_contribution,
        profile.investment_yield_percent,
        years,
    )
    return fund


def retirement_target(profile: HouseholdProfile) -> int:
    return RETIREMENT_TARGET_PER_ADULT * profile.adults


def _cash_stays_positive(
    profile: HouseholdProfile, payment: float, assumptions: ProjectionAssumptions, events: EventMap | None,
) -> bool:
    projection = project_lifetime(
        profile,
        assumptions,
        loan=_loan_for_payment(profile, payment),
        events=events,
        horizon_age=profile.age + CASH_CHECK_YEARS,
    )
    # 投資からの補填後もなお残る不足はマイナスとみなす
    return all(r.pre_clamp_savings + r.drawn_from_investment >= 0 for r in projection)


def passes_checks(
    profile: HouseholdProfile,
    payment: float,
    assumptions: ProjectionAssumptions | None = None,
    events: EventMap | None = None,
) -> bool:
    """Both criteria: 5-year cash never negative and retirement fund target met."""
    if assumptions is None:
        assumptions = DEFAULT_ASSUMPTIONS
    if project_retirement_fund(profile, payment) < retirement_target(profile):
        return False
    return _cash_stays_positive(profile, payment, assumptions, events)


def _search_payment(check: Callable[[float], bool], upper: float) -> float | None:
    """Largest payment in [0, upper] passing ``check``; None when even 0 fails."""
    if not check(0):
        return None
    lo, hi = 0.0, float(upper)
    while hi - lo > SEARCH_TOLERANCE:
        mid = (lo + hi) / 2
        if check(mid):
            lo = mid
        else:
            hi = mid
    return lo


def _make_line(
    profile: HouseholdProfile, label: str, ratio: float, payment: float | None, status: str,
) -> BudgetLine:
    if payment is None:
        return BudgetLine(label, ratio, None, None, None, INFEASIBLE)
    principal = round(principal_from_payment(payment, profile.loan_rate_percent, profile.loan_years))
    return BudgetLine(label, ratio, payment, principal, principal + profile.down_payment, status)


def solve_budget_lines(
    profile: HouseholdProfile,
    assumptions: ProjectionAssumptions | None = None,
    *,
    events: EventMap | None = None,
) -> BudgetResult:
    """Solve the safe line first, then derive reasonable and max from it.

    Each line starts from household income × ratio / 12. The safe line is
    searched downward when it fails a check; the other two fall back to
    safe × 1.10 and never drop below the preceding line, so
    safe ≤ reasonable ≤ max always holds. A loan term of 0 years gives
    three infeasible lines.
    """
    if assumptions is None:
        assumptions = DEFAULT_ASSUMPTIONS
    if profile.loan_years <= 0:
        # 借入期間なし: 返済額から借入額を逆算できない
        lines = [_make_line(profile, label, ratio, None, INFEASIBLE) for label, ratio in REPAYMENT_RATIOS]
        return BudgetResult(*lines, projections={})

    def check(payment: float) -> bool:
        return passes_checks(profile, payment, assumptions, events)

    income = profile.household_income
    (safe_label, safe_ratio), *others = REPAYMENT_RATIOS

    target = income * safe_ratio / 12
    if check(target):
        safe = _make_line(profile, safe_label, safe_ratio, target, UNCONSTRAINED)
    else:
        safe = _make_line(profile, safe_label, safe_ratio, _search_payment(check, target), SOLVED)

    lines = [safe]
    for label, ratio in others:
        prev = lines[-1]
        target = income * ratio / 12
        if check(target):
            payment = max(target, prev.monthly_payment or 0.0)
            line = _make_line(profile, label, ratio, payment, UNCONSTRAINED)
        elif safe.monthly_payment is None:
            line = _make_line(profile, label, ratio, None, INFEASIBLE)
        else:
            payment = max(safe.monthly_payment * DERIVED_LINE_MULTIPLIER, prev.monthly_payment)
            line = _make_line(profile, label, ratio, payment, DERIVED)
        lines.append(line)

    projections = {
        line.label: project_lifetime(
            profile, assumptions, loan=_loan_for_payment(profile, line.monthly_payment), events=events,
        )
        for line in lines
        if line.feasible
    }
    return BudgetResult(*lines, projections=projections)


def _debt_penalty(excess_ratio: float, income: float) -> float:
    return min(max(excess_ratio * income, PENALTY_MIN), PENALTY_MAX)


def estimate_simple_max_budget(profile: HouseholdProfile) -> int:
    """Quick purchase budget from income multiples (年収の3〜5倍).

    Large families (4人以上) are capped at 3.5×. The existing mortgage
    balance is subtracted, and heavy existing repayments or debts reduce
    the cap by 500万〜1,000万円. Households with savings below one year of
    income get the midpoint of the lower multiple and the cap. Rounded down
    to 10万円 and never negative.
    """
    income = profile.household_income
    family_size = profile.adults + len(profile.dependent_ages)

    lower = income * SIMPLE_LOWER_MULTIPLE
    max_line = income * SIMPLE_UPPER_MULTIPLE
    if family_size >= LARGE_FAMILY_SIZE:
        max_line = income * LARGE_FAMILY_MULTIPLE
    max_line -= profile.mortgage_balance

    payment_ratio = profile.monthly_mortgage_payment * 12 / income if income > 0 else 0
    if payment_ratio > MAX_PAYMENT_RATIO:
        max_line -= _debt_penalty(payment_ratio - MAX_PAYMENT_RATIO, income)

    debt_ratio = profile.other_debts / income if income > 0 else 0
    if debt_ratio > MAX_DEBT_RATIO:
        max_line -= _debt_penalty(debt_ratio - MAX_DEBT_RATIO, income)

    budget = max_line if profile.savings >= income else (lower + max_line) / 2
    return max(0, math.floor(budget / BUDGET_ROUNDING) * BUDGET_ROUNDING)


def budget_recommendation(max_budget: float, annual_income: float) -> str:
    if max_budget > annual_income * 4.5:
        return (
            "予算の上限に近い設定です。ライフスタイルや将来の収入変動を考慮して"
            "慎重に計画を立てることをおすすめします。"
        )
    if max_budget < annual_income * 3:
        return (
            "堅実な予算設定です。この範囲内であれば、将来の収入変動にも対応しやすく、"
            "安定した返済が可能でしょう。"
        )
    return (
        "バランスの取れた予算設定です。この予算内で理想的な物件を探しながら、"
        "余裕資金も確保することをおすすめします。"
    )
