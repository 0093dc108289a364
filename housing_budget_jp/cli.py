"""CLI entry point: housing budget diagnosis (3 budget lines + scenario comparison)."""

import argparse
import dataclasses
import json
import sys

from housing_budget_jp.budget import (
    BUDGET_CRITERIA,
    BudgetResult,
    budget_recommendation,
    estimate_simple_max_budget,
    solve_budget_lines,
)
from housing_budget_jp.config import parse_args
from housing_budget_jp.params import HouseholdProfile
from housing_budget_jp.scenarios import SCENARIO_NAMES, ScenarioSet, run_scenarios
from housing_budget_jp.simulation import YearlyBalance

LOG_INTERVAL = 5

STATUS_NOTES = {
    "unconstrained": "",
    "solved": "（基準を満たすよう返済額を引き下げ）",
    "derived": "（安全ライン×1.1から算出）",
    "infeasible": "",
}


def _man(amount: float) -> str:
    return f"{amount / 10_000:,.0f}万円"


def _print_header(profile: HouseholdProfile, horizon_age: int):
    print("=" * 80)
    print(f"住宅予算診断・家計シミュレーション（{profile.age}歳-{horizon_age}歳）")
    family = "配偶者あり" if profile.has_spouse else "単身"
    children = f"子{len(profile.dependent_ages)}人" if profile.dependent_ages else "子なし"
    print(f"  世帯年収: {_man(profile.household_income)}（{family} / {children}）")
    print(f"  預貯金: {_man(profile.savings)} / 投資: {_man(profile.investable_assets)}"
          f"（積立{profile.monthly_contribution:,}円/月・利回り{profile.investment_yield_percent}%）")
    print(f"  月間支出: 生活費{profile.monthly_living_expense:,}円 / 保険{profile.monthly_insurance:,}円"
          f" / 趣味{profile.monthly_hobby_expense:,}円")
    print(f"  借入条件: {profile.loan_years}年・金利{profile.loan_rate_percent}% / 頭金{_man(profile.down_payment)}"
          f" / 退職{profile.retirement_age}歳")
    print("=" * 80)
    print()


def _print_budget_lines(result: BudgetResult):
    print("【住宅予算の目安】")
    print("-" * 80)
    for line in reversed(result.lines):
        ratio = f"返済負担率：年収の{line.target_ratio:.0%}"
        if not line.feasible:
            print(f"  {line.name}: 算出不可（返済額0円でも基準を満たせません）（{ratio}）")
            continue
        print(
            f"  {line.name}: {_man(line.purchase_price)}"
            f"（借入{_man(line.loan_principal)} / 月々{line.monthly_payment:,.0f}円 / {ratio}）"
            f"{STATUS_NOTES[line.status]}"
        )
    print("-" * 80)
    for criterion in BUDGET_CRITERIA:
        print(f"  {criterion}")
    print()


def _print_simple_budget(profile: HouseholdProfile):
    max_budget = estimate_simple_max_budget(profile)
    print(f"【簡易診断】年収倍率による予算上限: {_man(max_budget)}")
    print(f"  {budget_recommendation(max_budget, profile.household_income)}")
    print()


def _print_yearly_log(projection: list[YearlyBalance], title: str):
    print(f"【年次ログ（{LOG_INTERVAL}年ごと）- {title}】")
    print("-" * 100)
    print(
        f"{'年齢':<5} {'西暦':<6} {'収入(万)':<10} {'住居費(万)':<10} {'教育費(万)':<10}"
        f" {'生活費(万)':<10} {'収支(万)':<10} {'預金(万)':<10} {'投資(万)':<10}"
    )
    print("-" * 100)
    for i, r in enumerate(projection):
        if i % LOG_INTERVAL == 0 or i == len(projection) - 1:
            print(
                f"{r.age:<5} {r.year:<6} "
                f"{r.income / 10_000:<10.0f} "
                f"{r.expenses.housing / 10_000:<10.0f} "
                f"{r.expenses.education / 10_000:<10.0f} "
                f"{r.expenses.living / 10_000:<10.0f} "
                f"{r.balance / 10_000:<10.0f} "
                f"{r.savings / 10_000:<10.0f} "
                f"{r.investment.balance / 10_000:<10.0f}"
            )
    print("-" * 100)
    print()


def _print_alerts(projection: list[YearlyBalance], limit: int = 10):
    rows = [(r.age, r.year, alert) for r in projection for alert in r.alerts]
    if not rows:
        return
    print("【アラート】")
    for age, year, alert in rows[:limit]:
        print(f"  {age}歳（{year}年）: {alert}")
    if len(rows) > limit:
        print(f"  ...他{len(rows) - limit}件")
    print()


def _print_scenarios(scenarios: ScenarioSet):
    print("【シナリオ比較（最終年の総資産）】")
    for key, projection in scenarios.projections().items():
        final = projection[-1].total_assets if projection else 0.0
        print(f"  {SCENARIO_NAMES[key]:<10} {_man(final):>14}")
    print(f"\nリスク判定: {scenarios.risk_label}")
    if scenarios.advice:
        print("\nアドバイス:")
        for advice in scenarios.advice:
            print(f"  ・{advice}")
    if scenarios.summary:
        print()
        print(scenarios.summary)


def _add_cli_args(parser: argparse.ArgumentParser):
    parser.add_argument("--json", action="store_true", help="結果をJSONで出力")


def to_json(profile: HouseholdProfile, result: BudgetResult, scenarios: ScenarioSet) -> str:
    payload = {
        "profile": dataclasses.asdict(profile),
        "budget": dataclasses.asdict(result),
        "simple_max_budget": estimate_simple_max_budget(profile),
        "scenarios": dataclasses.asdict(scenarios),
    }
    return json.dumps(payload, ensure_ascii=False, indent=2)


def main():
    """Execute housing budget diagnosis"""
    profile, assumptions, events, args = parse_args("住宅予算診断", _add_cli_args)

    if assumptions.horizon_age < profile.age:
        print(f"終了年齢{assumptions.horizon_age}歳が現在の年齢{profile.age}歳より前です", file=sys.stderr)
        raise SystemExit(1)

    print("予算ラインを計算中...", file=sys.stderr)
    result = solve_budget_lines(profile, assumptions, events=events)
    scenarios = run_scenarios(profile, assumptions, events=events)

    if args.json:
        print(to_json(profile, result, scenarios))
        return

    _print_header(profile, assumptions.horizon_age)
    _print_budget_lines(result)
    _print_simple_budget(profile)
    _print_yearly_log(scenarios.baseline, "現在の住まい（現状維持）")
    _print_alerts(scenarios.baseline)
    if result.safe.feasible:
        _print_yearly_log(result.projections["safe"], f"{result.safe.name}で購入")
    _print_scenarios(scenarios)


if __name__ == "__main__":
    main()
