"""TOML config loader with CLI > config > default resolution."""

import argparse
import dataclasses
import sys
import tomllib
from pathlib import Path
from typing import Callable

from housing_budget_jp.events import EventMap, events_from_config, parse_events
from housing_budget_jp.normalize import FIELD_ALIASES, NormalizedProfile, normalize_profile
from housing_budget_jp.params import SHORTFALL_POLICIES, HouseholdProfile, ProjectionAssumptions

DEFAULT_CONFIG_PATH = Path("config.toml")

# Household inputs may be free text ("600万円", "30代前半"); they go through normalize_profile
DEFAULTS = {f.name: f.default for f in dataclasses.fields(HouseholdProfile)}
DEFAULTS["events"] = ""

# CLI-overridable projection assumptions (others only via [assumptions] in config.toml)
ASSUMPTION_FLAGS = ("horizon_age", "start_year", "shortfall_policy", "progressive_tax")

# Chat-style children answers (人数 + 年齢区分), expanded by normalize_profile
CHILDREN_ANSWER_KEYS = ("childrenCount", "childrenAges")


def load_config(path: Path | None = None) -> dict:
    """Load TOML config file. Returns empty dict if file doesn't exist."""
    if path is None:
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        return {}
    try:
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        print(f"設定ファイルの読み込みに失敗: {path}: {e}", file=sys.stderr)
        raise SystemExit(1)
    # Chat-answer keys (annualIncome, hasSpouse, ...) → profile field names
    for alias, name in FIELD_ALIASES.items():
        if alias in raw and name not in raw:
            raw[name] = raw.pop(alias)
    # Children: TOML list → "3,9" string (same form as --children)
    if isinstance(raw.get("dependent_ages"), list):
        raw["dependent_ages"] = ",".join(str(x) for x in raw["dependent_ages"])
    return raw


def create_parser(description: str) -> argparse.ArgumentParser:
    """Create argparse parser with shared household flags."""
    d = DEFAULTS
    parser = argparse.ArgumentParser(description=description)
    parser.add_argument("--config", type=Path, default=None, help="設定ファイルパス (default: config.toml)")
    parser.add_argument("--age", type=str, default=None, help=f"年齢（例: 35 / 30代前半）(default: {d['age']})")
    parser.add_argument("--retirement-age", type=str, default=None, help=f"退職年齢（例: 65 / 70歳以上）(default: {d['retirement_age']})")
    parser.add_argument("--annual-income", type=str, default=None, help="本人の額面年収（例: 600万円 / 6000000）")
    parser.add_argument("--has-spouse", action="store_true", default=None, help="配偶者あり")
    parser.add_argument("--spouse-income", type=str, default=None, help="配偶者の額面年収")
    parser.add_argument("--children", dest="dependent_ages", type=str, default=None, help="子供の現在年齢（カンマ区切り、例: 3,9）")
    parser.add_argument("--pension-annual", type=str, default=None, help=f"退職後の年金額・年 (default: {d['pension_annual']:,}円)")
    parser.add_argument("--mortgage-balance", type=str, default=None, help="既存住宅ローン残高")
    parser.add_argument("--monthly-mortgage-payment", type=str, default=None, help="既存住宅ローン月額返済")
    parser.add_argument("--other-debts", type=str, default=None, help="その他の負債残高")
    parser.add_argument("--savings", type=str, default=None, help="預貯金")
    parser.add_argument("--investable-assets", type=str, default=None, help=f"初期投資額 (default: {d['investable_assets']:,}円)")
    parser.add_argument("--monthly-contribution", type=str, default=None, help=f"毎月の積立額 (default: {d['monthly_contribution']:,}円)")
    parser.add_argument("--investment-yield-percent", type=str, default=None, help=f"想定利回り%% (default: {d['investment_yield_percent']})")
    parser.add_argument("--monthly-living-expense", type=str, default=None, help=f"月間生活費 (default: {d['monthly_living_expense']:,}円)")
    parser.add_argument("--monthly-insurance", type=str, default=None, help=f"月間保険料 (default: {d['monthly_insurance']:,}円)")
    parser.add_argument("--monthly-hobby-expense", type=str, default=None, help=f"月間趣味・娯楽費 (default: {d['monthly_hobby_expense']:,}円)")
    parser.add_argument("--education-policy", type=str, default=None, help="教育方針: public(公立中心), mixed, private(私立中心) (default: public)")
    parser.add_argument("--down-payment", type=str, default=None, help="頭金")
    parser.add_argument("--loan-years", type=str, default=None, help=f"借入期間・年 (default: {d['loan_years']})")
    parser.add_argument("--loan-rate-percent", type=str, default=None, help=f"借入金利%% (default: {d['loan_rate_percent']})")
    parser.add_argument("--inflation-rate", type=str, default=None, help=f"インフレ率（0.01 または 1%%）(default: {d['inflation_rate']})")
    parser.add_argument("--raise-rate", type=str, default=None, help=f"昇給率（0.02 または 2%%）(default: {d['raise_rate']})")
    parser.add_argument("--events", type=str, default=None, help="一時支出（年:金額[:ラベル]のカンマ区切り、例: 3:3000000:車,10:-500000）")
    parser.add_argument("--horizon-age", type=int, default=None, help="シミュレーション終了年齢 (default: 90)")
    parser.add_argument("--start-year", type=int, default=None, help="開始年（西暦）(default: 2025)")
    parser.add_argument("--shortfall-policy", type=str, default=None, choices=SHORTFALL_POLICIES, help="預金不足時の扱い: clamp(投資取崩し後0円に補正), carry(不足分を繰越)")
    parser.add_argument("--progressive-tax", action="store_true", default=None, help="累進課税で税額を計算")
    return parser


def resolve(args: argparse.Namespace, config: dict) -> dict:
    """Resolve values with priority: CLI flag > config.toml > hardcoded default.

    Children given only as childrenCount/childrenAges in config.toml are passed
    through without a dependent_ages default, so normalize_profile can expand them.
    """
    resolved = {}
    for key, default in DEFAULTS.items():
        cli_val = getattr(args, key, None)
        resolved[key] = cli_val if cli_val is not None else config.get(key, default)
    children_answers = {k: config[k] for k in CHILDREN_ANSWER_KEYS if k in config}
    if children_answers and getattr(args, "dependent_ages", None) is None and "dependent_ages" not in config:
        del resolved["dependent_ages"]
        resolved.update(children_answers)
    return resolved


def build_assumptions(args: argparse.Namespace, config: dict) -> ProjectionAssumptions:
    """ProjectionAssumptions from [assumptions] in config, then CLI flags."""
    overrides = dict(config.get("assumptions", {}))
    known = {f.name for f in dataclasses.fields(ProjectionAssumptions)}
    unknown = sorted(set(overrides) - known)
    if unknown:
        print(f"設定ファイルの[assumptions]に未知のキー: {', '.join(unknown)}", file=sys.stderr)
        raise SystemExit(1)
    for key in ASSUMPTION_FLAGS:
        cli_val = getattr(args, key, None)
        if cli_val is not None:
            overrides[key] = cli_val
    policy = overrides.get("shortfall_policy")
    if policy is not None and policy not in SHORTFALL_POLICIES:
        print(f"shortfall_policyは {' / '.join(SHORTFALL_POLICIES)} のいずれか: {policy!r}", file=sys.stderr)
        raise SystemExit(1)
    return ProjectionAssumptions(**overrides)


def build_events(r: dict) -> EventMap:
    """Events from --events / string ``events`` or from [[events]] tables."""
    value = r["events"]
    if isinstance(value, list):
        return events_from_config(value)
    return parse_events(str(value))


def build_profile(r: dict) -> NormalizedProfile:
    """Normalize resolved household values into a HouseholdProfile."""
    raw = {key: value for key, value in r.items() if key != "events"}
    return normalize_profile(raw)


def warn_fallbacks(normalized: NormalizedProfile) -> None:
    """Print one stderr line per field whose answer could not be used."""
    for name, reason in normalized.degraded_fields.items():
        value = getattr(normalized.profile, name)
        print(f"警告: {name} の入力を解釈できません（{reason}）→ 既定値 {value!r} を使用", file=sys.stderr)


def parse_args(
    description: str,
    add_args_fn: Callable[[argparse.ArgumentParser], None] | None = None,
) -> tuple[HouseholdProfile, ProjectionAssumptions, EventMap, argparse.Namespace]:
    """Parse CLI args, load config, resolve and normalize values.

    Returns (profile, assumptions, events, namespace). Degraded inputs are
    reported on stderr. Invalid events exit with status 1.
    namespace: raw argparse.Namespace (for extra CLI args added via add_args_fn).
    """
    parser = create_parser(description)
    if add_args_fn:
        add_args_fn(parser)
    args = parser.parse_args()
    config = load_config(args.config)
    r = resolve(args, config)
    normalized = build_profile(r)
    warn_fallbacks(normalized)
    assumptions = build_assumptions(args, config)
    try:
        events = build_events(r)
    except (ValueError, KeyError, TypeError) as e:
        print(f"一時支出の指定が不正です: {e}", file=sys.stderr)
        raise SystemExit(1)
    return normalized.profile, assumptions, events, args
