"""Housing Budget Diagnosis and Household Cash-flow Simulation Package."""

from housing_budget_jp.params import (
    HouseholdProfile,
    ProjectionAssumptions,
    DEFAULT_ASSUMPTIONS,
    EDUCATION_POLICY_FACTORS,
)
from housing_budget_jp.normalize import Normalized, NormalizedProfile, normalize, normalize_profile
from housing_budget_jp.loan import (
    AmortizationYear,
    LoanTerms,
    amortize,
    monthly_payment,
    principal_from_payment,
    remaining_balance,
)
from housing_budget_jp.investment import InvestmentStep, future_value
from housing_budget_jp.events import OneOffEvent, build_event_map, parse_events
from housing_budget_jp.simulation import (
    ExpenseBreakdown,
    ProjectionVariant,
    ShortfallResolution,
    YearlyBalance,
    get_year,
    peak_savings,
    project_lifetime,
    resolve_shortfall,
)
from housing_budget_jp.budget import (
    BudgetLine,
    BudgetResult,
    INFEASIBLE,
    budget_recommendation,
    estimate_simple_max_budget,
    solve_budget_lines,
)
from housing_budget_jp.scenarios import (
    ScenarioSet,
    classify_risk,
    run_scenarios,
)

__all__ = [
    "HouseholdProfile",
    "ProjectionAssumptions",
    "DEFAULT_ASSUMPTIONS",
    "EDUCATION_POLICY_FACTORS",
    "Normalized",
    "NormalizedProfile",
    "normalize",
    "normalize_profile",
    "AmortizationYear",
    "LoanTerms",
    "amortize",
    "monthly_payment",
    "principal_from_payment",
    "remaining_balance",
    "InvestmentStep",
    "future_value",
    "OneOffEvent",
    "build_event_map",
    "parse_events",
    "ExpenseBreakdown",
    "ProjectionVariant",
    "ShortfallResolution",
    "YearlyBalance",
    "get_year",
    "peak_savings",
    "project_lifetime",
    "resolve_shortfall",
    "BudgetLine",
    "BudgetResult",
    "INFEASIBLE",
    "budget_recommendation",
    "estimate_simple_max_budget",
    "solve_budget_lines",
    "ScenarioSet",
    "classify_risk",
    "run_scenarios",
]
