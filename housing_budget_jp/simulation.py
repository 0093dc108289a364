"""Core simulation engine: yearly lifetime projection of a household."""

import dataclasses
import math
from dataclasses import dataclass

from housing_budget_jp.events import EventMap, OneOffEvent, event_total
from housing_budget_jp.investment import InvestmentStep, step as investment_step
from housing_budget_jp.loan import AmortizationYear, LoanTerms, amortize
from housing_budget_jp.params import (
    DEFAULT_ASSUMPTIONS,
    EDUCATION_POLICY_FACTORS,
    SHORTFALL_POLICIES,
    HouseholdProfile,
    ProjectionAssumptions,
)
from housing_budget_jp.tax import calc_income_tax

MAN_YEN = 10_000

# 子供の年齢帯ごとの教育費（月額・円）: (年齢上限（未満）, 月額)
EDUCATION_MONTHLY_BANDS: tuple[tuple[int, int], ...] = (
    (6, 30_000),    # 未就学児
    (12, 50_000),   # 小学生
    (15, 80_000),   # 中学生
    (18, 120_000),  # 高校生
    (22, 150_000),  # 大学生
)


@dataclass(frozen=True)
class ExpenseBreakdown:
    """Annual expenses by category (円). One-off events are kept as a tuple."""

    housing: float = 0.0
    education: float = 0.0
    living: float = 0.0
    insurance: float = 0.0
    tax: float = 0.0
    other: float = 0.0
    events: tuple[OneOffEvent, ...] = ()

    @property
    def event_total(self) -> float:
        return event_total(self.events)

    @property
    def total(self) -> float:
        return (
            self.housing + self.education + self.living
            + self.insurance + self.tax + self.other
            + self.event_total
        )


@dataclass(frozen=True)
class ShortfallResolution:
    cash: float
    investment: float
    pre_clamp_cash: float
    drawn: float = 0.0
    uncovered: float = 0.0


@dataclass(frozen=True)
class ProjectionVariant:
    """Input variation for scenario runs.

    expense_factor scales living, education, insurance and other expenses.
    diverted_monthly is moved from cash into the investment account each
    month (until retirement when divert_until_retirement is set).
    """

    expense_factor: float = 1.0
    diverted_monthly: float = 0.0
    investment_yield_percent: float | None = None
    divert_until_retirement: bool = True


BASELINE = ProjectionVariant()


@dataclass(frozen=True)
class YearlyBalance:
    age: int
    year: int
    income: float  # 世帯の額面収入（年金込み）
    earner_income: float
    spouse_income: float
    pension: float
    expenses: ExpenseBreakdown
    total_expense: float
    investment_transfer: float
    balance: float  # 年間収支
    savings: float  # 預金残高（年末）
    pre_clamp_savings: float
    investment: InvestmentStep
    mortgage: AmortizationYear | None
    alerts: tuple[str, ...] = ()
    drawn_from_investment: float = 0.0

    @property
    def total_assets(self) -> float:
        return self.savings + self.investment.balance


@dataclass(frozen=True)
class _Context:
    profile: HouseholdProfile
    assumptions: ProjectionAssumptions
    schedule: list[AmortizationYear]
    events: EventMap
    withdrawals: dict[int, float]
    variant: ProjectionVariant


def resolve_shortfall(cash: float, investment_balance: float, policy: str = "clamp") -> ShortfallResolution:
    """Cover negative cash from the investment account.

    Only acts when cash < 0 and the investment balance is positive. "clamp"
    sets cash to 0 even if investments could not cover everything; "carry"
    leaves the uncovered part as negative cash. ``pre_clamp_cash`` always
    holds the input so the unclamped running total stays derivable.
    """
    if policy not in SHORTFALL_POLICIES:
        raise ValueError(f"未知の不足補填ポリシー: {policy!r}（{', '.join(SHORTFALL_POLICIES)}）")
    if cash >= 0 or investment_balance <= 0:
        return ShortfallResolution(cash, investment_balance, cash)
    needed = -cash
    drawn = min(needed, investment_balance)
    uncovered = needed - drawn
    new_cash = 0.0 if policy == "clamp" else -uncovered
    return ShortfallResolution(new_cash, investment_balance - drawn, cash, drawn, uncovered)


def _inflation(rate: float, i: int) -> float:
    return (1 + rate) ** i


def _calc_earner_income(prev: YearlyBalance | None, age: int, ctx: _Context) -> float:
    p, a = ctx.profile, ctx.assumptions
    if prev is None:
        return p.annual_income
    if age >= p.retirement_age:
        return math.floor(p.annual_income * a.retirement_income_ratio)
    if age >= a.late_career_age:
        return math.floor(prev.earner_income * (1 + p.raise_rate * a.late_career_raise_factor))
    return math.floor(prev.earner_income * (1 + p.raise_rate))


def _calc_spouse_income(age: int, ctx: _Context) -> float:
    p, a = ctx.profile, ctx.assumptions
    if not p.has_spouse:
        return 0
    if age >= p.retirement_age - a.spouse_retirement_offset:
        return math.floor(p.spouse_income * a.retirement_income_ratio)
    return p.spouse_income


def _education_annual_cost(child_age: int, policy: str) -> float:
    for upper, monthly in EDUCATION_MONTHLY_BANDS:
        if child_age < upper:
            return monthly * 12 * EDUCATION_POLICY_FACTORS.get(policy, 1.0)
    return 0.0


def _calc_expenses(i: int, age: int, gross: float, ctx: _Context) -> ExpenseBreakdown:
    p, a = ctx.profile, ctx.assumptions
    factor = ctx.variant.expense_factor
    inflation = _inflation(p.inflation_rate, i)
    retired = age >= p.retirement_age

    child_ages = [d + i for d in p.dependent_ages if d + i < a.child_independence_age]
    household = 1 + (1 if p.has_spouse else 0) + len(child_ages)
    living_rate = a.retired_living_rate if retired else a.working_living_rate
    living = gross * living_rate * inflation * (1 + a.household_member_weight * (household - 1))

    education = sum(_education_annual_cost(c, p.education_policy) for c in child_ages) * inflation

    housing = 0.0
    if i < len(ctx.schedule):
        housing = ctx.schedule[i].payment

    return ExpenseBreakdown(
        housing=housing,
        education=education * factor,
        living=living * factor,
        insurance=p.monthly_insurance * 12 * inflation * factor,
        tax=calc_income_tax(gross, a.progressive_tax),
        other=gross * a.other_expense_rate * factor,
        events=ctx.events.get(i, ()),
    )


def _to_man(amount: float) -> int:
    return round(amount / MAN_YEN)


def _collect_alerts(
    age: int, gross: float, expenses: ExpenseBreakdown, savings: float,
    inv: InvestmentStep, resolution: ShortfallResolution, ctx: _Context,
) -> tuple[str, ...]:
    p, a = ctx.profile, ctx.assumptions
    alerts = []
    if gross < expenses.living:
        alerts.append(
            f"収入が生活費を下回っています。収入：{_to_man(gross)}万円、"
            f"生活費：{_to_man(expenses.living)}万円"
        )
    if savings < 0:
        alerts.append(f"預金残高がマイナスになっています：{_to_man(savings)}万円")
    if age >= p.retirement_age:
        required = a.retirement_reserve_per_year * (a.life_expectancy_age - age)
        current = savings + inv.balance
        if current < required:
            alerts.append(
                f"老後資金が少なくなっています。必要額の目安：{_to_man(required)}万円、"
                f"現在額：{_to_man(current)}万円"
            )
    if inv.shortfall > 0:
        alerts.append(
            f"投資残高が不足しています。取り崩し{_to_man(inv.withdrawal)}万円のうち"
            f"{_to_man(inv.shortfall)}万円を賄えません"
        )
    if resolution.uncovered > 0:
        alerts.append(
            f"投資を取り崩しても資金が不足しています。不足額：{_to_man(resolution.uncovered)}万円"
        )
    return tuple(alerts)


def _project_year(prev: YearlyBalance | None, i: int, ctx: _Context) -> YearlyBalance:
    """Compute one simulated year from the previous record (None for year 0)."""
    p, a, v = ctx.profile, ctx.assumptions, ctx.variant
    age = p.age + i

    earner = _calc_earner_income(prev, age, ctx)
    spouse = _calc_spouse_income(age, ctx)
    pension = p.pension_annual if age >= p.retirement_age else 0
    gross = earner + spouse + pension

    expenses = _calc_expenses(i, age, gross, ctx)
    total_expense = expenses.total

    diverting = v.diverted_monthly > 0 and (not v.divert_until_retirement or age < p.retirement_age)
    transfer = v.diverted_monthly * 12 if diverting else 0.0
    balance = gross - total_expense - transfer

    yield_percent = p.investment_yield_percent
    if v.investment_yield_percent is not None:
        yield_percent = v.investment_yield_percent
    inv = investment_step(
        prev.investment.balance if prev else 0.0,
        p.monthly_contribution + (v.diverted_monthly if diverting else 0.0),
        yield_percent,
        ctx.withdrawals.get(i, 0.0),
        prev is None,
        p.investable_assets,
    )

    # 初年度は入力の貯蓄額をそのまま使う
    pre_clamp = p.savings if prev is None else prev.savings + balance
    resolution = resolve_shortfall(pre_clamp, inv.balance, a.shortfall_policy)
    if resolution.drawn > 0:
        inv = dataclasses.replace(inv, balance=resolution.investment)
    savings = resolution.cash

    return YearlyBalance(
        age=age,
        year=a.start_year + i,
        income=gross,
        earner_income=earner,
        spouse_income=spouse,
        pension=pension,
        expenses=expenses,
        total_expense=total_expense,
        investment_transfer=transfer,
        balance=balance,
        savings=savings,
        pre_clamp_savings=pre_clamp,
        investment=inv,
        mortgage=ctx.schedule[i] if i < len(ctx.schedule) else None,
        alerts=_collect_alerts(age, gross, expenses, savings, inv, resolution, ctx),
        drawn_from_investment=resolution.drawn,
    )


def project_lifetime(
    profile: HouseholdProfile,
    assumptions: ProjectionAssumptions | None = None,
    *,
    loan: LoanTerms | None = None,
    events: EventMap | None = None,
    withdrawals: dict[int, float] | None = None,
    horizon_age: int | None = None,
    variant: ProjectionVariant | None = None,
) -> list[YearlyBalance]:
    """Project the household year by year from profile.age to the horizon age.

    ``loan`` replaces the profile's existing mortgage (mortgage_balance at
    the profile's rate and term) when given. ``events`` and ``withdrawals``
    are keyed by year index. A horizon below the current age gives [].
    """
    if assumptions is None:
        assumptions = DEFAULT_ASSUMPTIONS
    if horizon_age is None:
        horizon_age = assumptions.horizon_age
    if loan is None:
        loan = LoanTerms(profile.mortgage_balance, profile.loan_rate_percent, profile.loan_years)

    ctx = _Context(
        profile=profile,
        assumptions=assumptions,
        schedule=amortize(loan.principal, loan.annual_rate_percent, loan.term_years),
        events=events or {},
        withdrawals=withdrawals or {},
        variant=variant or BASELINE,
    )

    projection: list[YearlyBalance] = []
    prev = None
    for i in range(horizon_age - profile.age + 1):
        prev = _project_year(prev, i, ctx)
        projection.append(prev)
    return projection


def get_year(projection: list[YearlyBalance], year: int) -> YearlyBalance | None:
    """Record for a calendar year, or None when outside the projection."""
    for record in projection:
        if record.year == year:
            return record
    return None


def peak_savings(projection: list[YearlyBalance]) -> YearlyBalance | None:
    """Record with the highest cash savings (earliest on ties)."""
    if not projection:
        return None
    return max(projection, key=lambda r: r.savings)


def has_alerts(projection: list[YearlyBalance]) -> bool:
    return any(r.alerts for r in projection)
