"""Tests for the diagnosis CLI, JSON output and chart generation."""

import json
import sys

import pytest
from housing_budget_jp import HouseholdProfile, ProjectionAssumptions, run_scenarios, solve_budget_lines
from housing_budget_jp.charts import plot_cashflow_stack, plot_scenarios, plot_trajectory
from housing_budget_jp.cli import main, to_json


def _profile():
    return HouseholdProfile(
        age=35, annual_income=6_000_000, savings=3_000_000,
        loan_rate_percent=2.0, down_payment=5_000_000,
    )


SHORT = ProjectionAssumptions(horizon_age=50)


class TestToJson:
    def test_payload(self):
        profile = _profile()
        result = solve_budget_lines(profile, SHORT)
        payload = json.loads(to_json(profile, result, run_scenarios(profile, SHORT)))
        assert payload["profile"]["annual_income"] == 6_000_000
        assert payload["budget"]["safe"]["status"] == "unconstrained"
        assert payload["simple_max_budget"] == 24_000_000
        assert len(payload["scenarios"]["baseline"]) == 50 - 35 + 1

    def test_infeasible_lines_are_null(self):
        profile = HouseholdProfile(annual_income=4_000_000, investable_assets=0,
                                   monthly_contribution=0, monthly_living_expense=250_000)
        result = solve_budget_lines(profile, SHORT)
        payload = json.loads(to_json(profile, result, run_scenarios(profile, SHORT)))
        assert payload["budget"]["max"]["purchase_price"] is None
        assert payload["budget"]["projections"] == {}


class TestMain:
    def _run(self, monkeypatch, tmp_path, *extra):
        monkeypatch.setattr(sys, "argv", [
            "housing-budget", "--config", str(tmp_path / "missing.toml"),
            "--age", "35", "--annual-income", "600万円", "--savings", "300万円",
            "--horizon-age", "60", *extra,
        ])
        main()

    def test_text_report(self, monkeypatch, tmp_path, capsys):
        self._run(monkeypatch, tmp_path)
        out = capsys.readouterr().out
        assert "安全ライン" in out
        assert "リスク判定" in out

    def test_json_report(self, monkeypatch, tmp_path, capsys):
        self._run(monkeypatch, tmp_path, "--json")
        payload = json.loads(capsys.readouterr().out)
        assert payload["profile"]["age"] == 35

    def test_horizon_before_age(self, monkeypatch, tmp_path, capsys):
        with pytest.raises(SystemExit):
            self._run(monkeypatch, tmp_path, "--horizon-age", "30")
        assert "終了年齢" in capsys.readouterr().err


class TestCharts:
    def setup_method(self):
        profile = _profile()
        self.result = solve_budget_lines(profile, SHORT)
        self.scenarios = run_scenarios(profile, SHORT)

    def test_writes_png_files(self, tmp_path):
        projections = {"current": self.scenarios.baseline, **self.result.projections}
        paths = [
            plot_trajectory(projections, tmp_path, name="35", event_markers=[(40, 3_000_000, "車")]),
            plot_cashflow_stack(projections, tmp_path),
            plot_scenarios(self.scenarios, tmp_path),
        ]
        assert [p.name for p in paths] == ["trajectory-35.png", "cashflow.png", "scenarios.png"]
        assert all(p.exists() for p in paths)

    def test_nothing_to_plot(self, tmp_path):
        with pytest.raises(ValueError):
            plot_trajectory({"current": []}, tmp_path)
        with pytest.raises(ValueError):
            plot_cashflow_stack({}, tmp_path)
