"""CLI entry point for chart generation."""

import sys
from pathlib import Path

from housing_budget_jp.budget import solve_budget_lines
from housing_budget_jp.charts import plot_cashflow_stack, plot_scenarios, plot_trajectory
from housing_budget_jp.config import parse_args
from housing_budget_jp.scenarios import run_scenarios


def _add_chart_args(parser):
    parser.add_argument(
        "--output", type=Path, default=Path("reports/charts"),
        help="出力ディレクトリ (default: reports/charts)",
    )
    parser.add_argument(
        "--name", type=str, default="",
        help="出力ファイル名のサフィックス（例: 35 → trajectory-35.png）",
    )


def main():
    profile, assumptions, events, args = parse_args("住宅予算診断 チャート生成", _add_chart_args)
    output_dir = args.output
    chart_name = args.name

    if assumptions.horizon_age < profile.age:
        print(f"終了年齢{assumptions.horizon_age}歳が現在の年齢{profile.age}歳より前です", file=sys.stderr)
        raise SystemExit(1)

    print(f"予算ライン計算（{profile.age}歳→{assumptions.horizon_age}歳）...", file=sys.stderr)
    result = solve_budget_lines(profile, assumptions, events=events)
    scenarios = run_scenarios(profile, assumptions, events=events)
    for line in result.lines:
        if not line.feasible:
            print(f"  {line.name}: 算出不可（スキップ）", file=sys.stderr)

    projections = {"current": scenarios.baseline, **result.projections}
    markers = sorted(
        (profile.age + year_index, event.amount, event.display_label)
        for year_index, year_events in events.items()
        for event in year_events
    )

    path = plot_trajectory(projections, output_dir, name=chart_name, event_markers=markers)
    print(f"  → {path}", file=sys.stderr)
    path = plot_cashflow_stack(projections, output_dir, name=chart_name)
    print(f"  → {path}", file=sys.stderr)
    path = plot_scenarios(scenarios, output_dir, name=chart_name)
    print(f"  → {path}", file=sys.stderr)

    print("完了", file=sys.stderr)


if __name__ == "__main__":
    main()
