"""Scenario comparison: baseline / reduced spending / investing."""

import dataclasses
import math
from dataclasses import dataclass

from housing_budget_jp.events import EventMap
from housing_budget_jp.loan import LoanTerms
from housing_budget_jp.params import DEFAULT_ASSUMPTIONS, HouseholdProfile, ProjectionAssumptions
from housing_budget_jp.simulation import BASELINE, ProjectionVariant, YearlyBalance, project_lifetime
from housing_budget_jp.tax import estimate_takehome

EXPENSE_REDUCTION_FACTOR = 0.9       # 支出10%削減
INVESTMENT_DIVERSION_RATIO = 0.10    # 収入の10%を投資へ
INVESTMENT_SCENARIO_YIELD_PERCENT = 4.0
EMERGENCY_FUND_MONTHS = 6

SCENARIO_NAMES = {
    "baseline": "現状維持",
    "reduced": "支出10%削減",
    "investing": "投資",
}

RISK_SAFE = "safe"
RISK_CAUTION = "caution"
RISK_DANGER = "danger"
RISK_LABELS = {
    RISK_SAFE: "安全",
    RISK_CAUTION: "注意",
    RISK_DANGER: "危険",
}


@dataclass(frozen=True)
class ScenarioSet:
    baseline: list[YearlyBalance]
    reduced: list[YearlyBalance]
    investing: list[YearlyBalance]
    risk_level: str
    advice: tuple[str, ...]
    summary: str

    @property
    def risk_label(self) -> str:
        return RISK_LABELS[self.risk_level]

    def projections(self) -> dict[str, list[YearlyBalance]]:
        return {
            "baseline": self.baseline,
            "reduced": self.reduced,
            "investing": self.investing,
        }


def single_earner(profile: HouseholdProfile) -> HouseholdProfile:
    """Profile with the spouse's income removed (本人の収入のみ)."""
    if profile.spouse_income == 0:
        return profile
    return dataclasses.replace(profile, spouse_income=0)


def investing_variant(profile: HouseholdProfile) -> ProjectionVariant:
    """Divert 10% of the earner's year-0 income into investments at 4% until retirement."""
    return ProjectionVariant(
        diverted_monthly=profile.annual_income * INVESTMENT_DIVERSION_RATIO / 12,
        investment_yield_percent=INVESTMENT_SCENARIO_YIELD_PERCENT,
        divert_until_retirement=True,
    )


def classify_risk(baseline: list[YearlyBalance]) -> str:
    """danger: assets run out in some year / caution: final year in deficit / else safe."""
    if any(r.total_assets <= 0 for r in baseline):
        return RISK_DANGER
    if baseline and baseline[-1].balance < 0:
        return RISK_CAUTION
    return RISK_SAFE


def _final_assets(projection: list[YearlyBalance]) -> float:
    return projection[-1].total_assets if projection else 0.0


def generate_advice(
    profile: HouseholdProfile,
    baseline: list[YearlyBalance],
    reduced: list[YearlyBalance],
    investing: list[YearlyBalance],
) -> tuple[str, ...]:
    advice = []
    monthly_takehome = estimate_takehome(profile.annual_income) / 12
    monthly_spending = profile.declared_monthly_expenses + profile.monthly_mortgage_payment
    if monthly_takehome < monthly_spending:
        advice.append("毎月の収支がマイナスです。支出の見直しが必要です。")

    emergency_fund = profile.declared_monthly_expenses * EMERGENCY_FUND_MONTHS
    if profile.savings < emergency_fund:
        advice.append(
            f"緊急資金として最低でも生活費{EMERGENCY_FUND_MONTHS}ヶ月分"
            f"（{emergency_fund:,.0f}円）の貯蓄を目指しましょう。"
        )

    base_end = _final_assets(baseline)
    if profile.investable_assets == 0 and profile.monthly_contribution == 0:
        gain = _final_assets(investing) - base_end
        advice.append(
            "長期的な資産形成のために、投資の検討をおすすめします。"
            f"投資を行うことで、{gain:,.0f}円の資産増加が見込まれます。"
        )

    saving_effect = _final_assets(reduced) - base_end
    if saving_effect > 0:
        advice.append(f"月々の支出を10%削減すると、生涯で約{saving_effect:,.0f}円の資産増加が見込まれます。")
    return tuple(advice)


def generate_summary(
    baseline: list[YearlyBalance],
    reduced: list[YearlyBalance],
    investing: list[YearlyBalance],
) -> str:
    if not baseline:
        return ""
    base_end = _final_assets(baseline)
    parts = []
    if base_end <= 0:
        depleted = next(r for r in baseline if r.total_assets <= 0)
        parts.append(
            f"現在の収支状況が続いた場合、{depleted.age}歳（{depleted.year}年）頃に"
            "資産が底をつく可能性があります。"
        )
    else:
        parts.append(
            f"現在の収支状況が続いた場合、生涯にわたって約{math.floor(base_end / 10_000):,}万円の"
            "資産を確保できる見込みです。"
        )

    reduced_gain = _final_assets(reduced) - base_end
    parts.append(f"月々の支出を10%削減すると、約{math.floor(reduced_gain / 10_000):,}万円の資産増加が見込まれます。")

    investing_gain = _final_assets(investing) - base_end
    if investing_gain > 0:
        parts.append(
            f"毎月の収入の一部を投資に回すことで、生涯で約{math.floor(investing_gain / 10_000):,}万円の"
            "資産増加が期待できます。"
        )
    return "\n\n".join(parts)


def run_scenarios(
    profile: HouseholdProfile,
    assumptions: ProjectionAssumptions | None = None,
    *,
    loan: LoanTerms | None = None,
    events: EventMap | None = None,
) -> ScenarioSet:
    """Run the three projections on one profile and derive risk, advice and summary.

    Scenarios model a single-income household: the spouse stays in the
    household size but contributes no income.
    """
    if assumptions is None:
        assumptions = DEFAULT_ASSUMPTIONS
    profile = single_earner(profile)
    variants = {
        "baseline": BASELINE,
        "reduced": ProjectionVariant(expense_factor=EXPENSE_REDUCTION_FACTOR),
        "investing": investing_variant(profile),
    }
    runs = {
        name: project_lifetime(profile, assumptions, loan=loan, events=events, variant=variant)
        for name, variant in variants.items()
    }
    baseline, reduced, investing = runs["baseline"], runs["reduced"], runs["investing"]
    return ScenarioSet(
        baseline=baseline,
        reduced=reduced,
        investing=investing,
        risk_level=classify_risk(baseline),
        advice=generate_advice(profile, baseline, reduced, investing),
        summary=generate_summary(baseline, reduced, investing),
    )
