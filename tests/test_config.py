"""Tests for config loading and CLI value resolution."""

import argparse
import sys

import pytest
from housing_budget_jp.config import (
    build_assumptions,
    build_events,
    build_profile,
    create_parser,
    load_config,
    parse_args,
    resolve,
    warn_fallbacks,
)
from housing_budget_jp.normalize import normalize_profile


class TestLoadConfig:
    def test_missing_file(self, tmp_path):
        assert load_config(tmp_path / "missing.toml") == {}

    def test_invalid_toml(self, tmp_path, capsys):
        path = tmp_path / "config.toml"
        path.write_text("age = = 3\n", encoding="utf-8")
        with pytest.raises(SystemExit) as exc:
            load_config(path)
        assert exc.value.code == 1
        assert "設定ファイルの読み込みに失敗" in capsys.readouterr().err

    def test_aliases_and_children_list(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('annualIncome = "600万円"\ndependent_ages = [3, 9]\n', encoding="utf-8")
        config = load_config(path)
        assert config["annual_income"] == "600万円"
        assert "annualIncome" not in config
        assert config["dependent_ages"] == "3,9"


class TestResolve:
    def test_cli_over_config_over_default(self):
        args = argparse.Namespace(annual_income="800万円")
        r = resolve(args, {"annual_income": "600万円", "savings": "300万円"})
        assert r["annual_income"] == "800万円"
        assert r["savings"] == "300万円"
        assert r["age"] == 30

    def test_children_answers_passed_through(self):
        r = resolve(argparse.Namespace(), {"childrenCount": "1人", "childrenAges": "未就学児"})
        assert "dependent_ages" not in r
        assert r["childrenCount"] == "1人"
        assert len(build_profile(r).profile.dependent_ages) == 1

    def test_build_profile(self):
        r = resolve(argparse.Namespace(annual_income="800万円", age="40代前半"), {"savings": "300万円"})
        profile = build_profile(r).profile
        assert profile.annual_income == 8_000_000
        assert profile.savings == 3_000_000
        assert profile.age == 40


class TestBuildAssumptions:
    def test_config_then_cli(self):
        args = argparse.Namespace(start_year=2030)
        a = build_assumptions(args, {"assumptions": {"horizon_age": 80, "start_year": 2026}})
        assert a.horizon_age == 80
        assert a.start_year == 2030

    def test_defaults(self):
        a = build_assumptions(argparse.Namespace(), {})
        assert a.horizon_age == 90
        assert a.shortfall_policy == "clamp"

    def test_unknown_key(self, capsys):
        with pytest.raises(SystemExit):
            build_assumptions(argparse.Namespace(), {"assumptions": {"horizon": 80}})
        assert "horizon" in capsys.readouterr().err

    def test_invalid_policy(self):
        with pytest.raises(SystemExit):
            build_assumptions(argparse.Namespace(), {"assumptions": {"shortfall_policy": "borrow"}})


class TestBuildEvents:
    def test_string(self):
        events = build_events({"events": "3:3000000:車"})
        assert events[3][0].label == "車"

    def test_tables(self):
        events = build_events({"events": [{"year": 1, "amount": 100_000, "category": "education"}]})
        assert events[1][0].category == "education"

    def test_empty(self):
        assert build_events({"events": ""}) == {}


class TestCreateParser:
    def test_flags(self):
        args = create_parser("test").parse_args([
            "--annual-income", "600万円", "--has-spouse", "--children", "3,9", "--horizon-age", "85",
        ])
        assert args.annual_income == "600万円"
        assert args.has_spouse is True
        assert args.dependent_ages == "3,9"
        assert args.horizon_age == 85
        assert args.savings is None
        assert args.progressive_tax is None

    def test_invalid_policy_rejected(self):
        with pytest.raises(SystemExit):
            create_parser("test").parse_args(["--shortfall-policy", "borrow"])


class TestWarnFallbacks:
    def test_degraded_field_reported(self, capsys):
        warn_fallbacks(normalize_profile({"age": "150"}))
        err = capsys.readouterr().err
        assert "age" in err
        assert "out_of_range" in err

    def test_missing_fields_silent(self, capsys):
        warn_fallbacks(normalize_profile({}))
        assert capsys.readouterr().err == ""


class TestParseArgs:
    def test_full_resolution(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text('savings = "300万円"\n[assumptions]\nhorizon_age = 85\n', encoding="utf-8")
        monkeypatch.setattr(sys, "argv", [
            "housing-budget", "--config", str(path), "--annual-income", "600万円", "--events", "2:1000000:車",
        ])
        profile, assumptions, events, _ = parse_args("test")
        assert profile.annual_income == 6_000_000
        assert profile.savings == 3_000_000
        assert assumptions.horizon_age == 85
        assert list(events) == [2]

    def test_invalid_events_exit(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setattr(sys, "argv", [
            "housing-budget", "--config", str(tmp_path / "missing.toml"), "--events", "bad",
        ])
        with pytest.raises(SystemExit):
            parse_args("test")
        assert "一時支出の指定が不正" in capsys.readouterr().err

    def test_children_answers_from_config(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text('childrenCount = "2人"\nchildrenAges = "小学生"\n', encoding="utf-8")
        monkeypatch.setattr(sys, "argv", ["housing-budget", "--config", str(path)])
        profile, _, _, _ = parse_args("test")
        assert profile.dependent_ages == (9, 9)

    def test_children_flag_over_children_answers(self, tmp_path, monkeypatch):
        path = tmp_path / "config.toml"
        path.write_text('childrenCount = "2人"\nchildrenAges = "小学生"\n', encoding="utf-8")
        monkeypatch.setattr(sys, "argv", ["housing-budget", "--config", str(path), "--children", "3"])
        profile, _, _, _ = parse_args("test")
        assert profile.dependent_ages == (3,)
