"""Normalization of free-text answers (「500万円」「30代前半」...) into numbers.

Every parser returns a ``Normalized`` result instead of raising. When the
input is missing, unparsable, negative or out of range the documented
default is substituted and the result carries ``used_fallback=True`` with a
reason, so callers can warn instead of silently computing on made-up data.
"""

import dataclasses
import math
import re
import unicodedata
from dataclasses import dataclass
from typing import Any, Mapping

from housing_budget_jp.params import DEFAULT_EDUCATION_POLICY, HouseholdProfile

# Input kinds
KIND_MONEY = "money"
KIND_AGE = "age"
KIND_RETIREMENT_AGE = "retirement_age"
KIND_PERCENT = "percent"
KIND_RATE = "rate"
KIND_YEARS = "years"
KIND_COUNT = "count"
KIND_NUMBER = "number"
KIND_FLAG = "flag"
KIND_EDUCATION_POLICY = "education_policy"
KIND_DEPENDENT_AGES = "dependent_ages"

# Fallback reasons
REASON_MISSING = "missing"
REASON_UNPARSABLE = "unparsable"
REASON_NEGATIVE = "negative"
REASON_OUT_OF_RANGE = "out_of_range"

KIND_DEFAULTS: dict[str, Any] = {
    KIND_MONEY: 0,
    KIND_AGE: 30,
    KIND_RETIREMENT_AGE: 65,
    KIND_PERCENT: 0.0,
    KIND_RATE: 0.0,
    KIND_YEARS: 0,
    KIND_COUNT: 0,
    KIND_NUMBER: 0.0,
    KIND_FLAG: False,
    KIND_EDUCATION_POLICY: DEFAULT_EDUCATION_POLICY,
    KIND_DEPENDENT_AGES: (),
}

MAN_YEN = 10_000

_NONE_WORDS = ("なし", "無し", "ない", "none")
_DECLINED_WORDS = ("希望なし", "想定なし", "わからない", "未定", "まだ決めていない")
_RANGE_SEPARATOR = re.compile(r"[〜~\-]")
_NUMBER = re.compile(r"-?\d+(?:\.\d+)?")

# 子供の年齢区分 → 代表年齢
CHILD_AGE_LABELS: dict[str, int] = {
    "未就学児": 3,
    "小学生": 9,
    "中学生": 13,
    "高校生": 16,
    "大学生": 20,
}
MIXED_AGES_LABEL = "複数の年齢層"
DEFAULT_CHILD_AGE = 5

UNDECIDED_RETIREMENT_AGE = 65  # 「まだ決めていない」


@dataclass(frozen=True)
class Normalized:
    value: Any
    used_fallback: bool = False
    reason: str | None = None


class _Declined(Exception):
    """The answer explicitly defers to the default (「希望なし」 etc.)."""


def _clean(raw: Any) -> str:
    return unicodedata.normalize("NFKC", str(raw)).strip()


def _to_float(s: str) -> float | None:
    try:
        return float(s)
    except ValueError:
        return None


def _first_number(s: str) -> float | None:
    m = _NUMBER.search(s.replace(",", ""))
    return float(m.group()) if m else None


def _range_mean(num_part: str) -> float | None:
    """"300〜500" → 400, "500" → 500, "-500" → -500."""
    negative = num_part.startswith("-")
    body = num_part[1:] if negative else num_part
    if not _RANGE_SEPARATOR.search(body):
        value = _to_float(body)
        if value is None:
            return None
        return -value if negative else value
    bounds = [_to_float(p) for p in _RANGE_SEPARATOR.split(body)]
    if len(bounds) != 2 or any(b is None for b in bounds):
        return None
    return (bounds[0] + bounds[1]) / 2


def _parse_money(raw: Any) -> float | None:
    if isinstance(raw, (int, float)):
        return float(raw)
    s = _clean(raw)
    if s.startswith(_DECLINED_WORDS):
        raise _Declined
    if s.lower().startswith(_NONE_WORDS):
        return 0.0
    if "万" in s:
        num_part = re.sub(r"[^0-9.〜~\-]", "", s)
        value = _range_mean(num_part)
        return None if value is None else value * MAN_YEN
    s = s.replace(",", "").replace("円", "").strip()
    value = _to_float(s)
    if value is not None:
        return value
    return _first_number(s)


def _parse_age(raw: Any) -> float | None:
    if isinstance(raw, (int, float)):
        return float(raw)
    s = _clean(raw)
    if "代" in s:
        base = _first_number(s)
        if base is None:
            return None
        return base + (5 if "後半" in s else 0)
    return _first_number(s)


def _parse_retirement_age(raw: Any) -> float | None:
    if isinstance(raw, (int, float)):
        return float(raw)
    s = _clean(raw)
    if s.startswith(_DECLINED_WORDS):
        return float(UNDECIDED_RETIREMENT_AGE)
    if "未満" in s and "60" in s:
        return 58.0
    if "以上" in s and "70" in s:
        return 75.0
    return _first_number(s)


def _parse_percent(raw: Any) -> float | None:
    if isinstance(raw, (int, float)):
        return float(raw)
    s = _clean(raw)
    if s.startswith(_DECLINED_WORDS) or s.lower().startswith(_NONE_WORDS):
        raise _Declined
    num_part = re.sub(r"[^0-9.〜~\-]", "", s)
    if not num_part:
        return None
    return _range_mean(num_part)


def _parse_rate(raw: Any) -> float | None:
    if isinstance(raw, (int, float)):
        return float(raw)
    s = _clean(raw)
    if "%" in s:
        value = _parse_percent(s)
        return None if value is None else value / 100
    return _to_float(s)


def _parse_integer(raw: Any) -> float | None:
    if isinstance(raw, (int, float)):
        return float(raw)
    s = _clean(raw)
    if s.startswith(_DECLINED_WORDS):
        raise _Declined
    if s.lower().startswith(_NONE_WORDS):
        return 0.0
    return _first_number(s)


def _parse_number(raw: Any) -> float | None:
    if isinstance(raw, (int, float)):
        return float(raw)
    return _to_float(_clean(raw).replace(",", ""))


def _parse_flag(raw: Any) -> bool | None:
    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw != 0
    s = _clean(raw).lower()
    if s in ("はい", "あり", "yes", "true", "1", "y"):
        return True
    if s in ("いいえ", "なし", "no", "false", "0", "n"):
        return False
    return None


def _parse_education_policy(raw: Any) -> str | None:
    s = _clean(raw)
    if s in ("public", "mixed", "private"):
        return s
    if "公立中心" in s:
        return "public"
    if "私立中心" in s:
        return "private"
    if ("公立" in s and "私立" in s) or any(w in s for w in ("混合", "併用", "バランス")):
        return "mixed"
    return None


def _parse_dependent_ages(raw: Any) -> tuple[int, ...] | None:
    if isinstance(raw, (list, tuple)):
        items = list(raw)
    else:
        s = _clean(raw)
        if not s or s.lower().startswith(_NONE_WORDS):
            return ()
        items = [p for p in re.split(r"[,、\s]+", s) if p]
    ages = []
    for item in items:
        value = _parse_age(item)
        if value is None:
            return None
        ages.append(value)
    return tuple(ages)


_PARSERS = {
    KIND_MONEY: _parse_money,
    KIND_AGE: _parse_age,
    KIND_RETIREMENT_AGE: _parse_retirement_age,
    KIND_PERCENT: _parse_percent,
    KIND_RATE: _parse_rate,
    KIND_YEARS: _parse_integer,
    KIND_COUNT: _parse_integer,
    KIND_NUMBER: _parse_number,
    KIND_FLAG: _parse_flag,
    KIND_EDUCATION_POLICY: _parse_education_policy,
    KIND_DEPENDENT_AGES: _parse_dependent_ages,
}

_INTEGER_KINDS = (KIND_MONEY, KIND_AGE, KIND_RETIREMENT_AGE, KIND_YEARS, KIND_COUNT)


def _is_missing(raw: Any) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def normalize(raw: Any, kind: str, default: Any = None) -> Normalized:
    """Parse ``raw`` as ``kind``. Never raises for any input value.

    Range answers ("300〜500万円") resolve to their mean; money with 万 is
    scaled ×10,000 and rounded to 円. Missing, unparsable and negative inputs
    fall back to ``default`` (or the kind's documented default).
    An unknown ``kind`` is a caller error and raises ValueError.
    """
    if kind not in _PARSERS:
        raise ValueError(f"unknown kind: {kind!r}")
    fallback = KIND_DEFAULTS[kind] if default is None else default

    if _is_missing(raw):
        return Normalized(fallback, True, REASON_MISSING)
    try:
        value = _PARSERS[kind](raw)
    except _Declined:
        return Normalized(fallback, True, REASON_MISSING)
    except (OverflowError, ValueError):
        return Normalized(fallback, True, REASON_UNPARSABLE)
    if value is None or (isinstance(value, float) and not math.isfinite(value)):
        return Normalized(fallback, True, REASON_UNPARSABLE)

    if kind == KIND_DEPENDENT_AGES:
        if not all(math.isfinite(a) for a in value):
            return Normalized(fallback, True, REASON_UNPARSABLE)
        if any(a < 0 for a in value):
            return Normalized(fallback, True, REASON_NEGATIVE)
        return Normalized(tuple(int(a) for a in value))
    if isinstance(value, (bool, str)):
        return Normalized(value)
    if value < 0:
        return Normalized(fallback, True, REASON_NEGATIVE)
    if kind in _INTEGER_KINDS:
        return Normalized(int(round(value)))
    return Normalized(value)


def dependent_ages_from_labels(count: int, label: str) -> Normalized:
    """Representative ages for 「2人」 children described by an age-band label."""
    if count <= 0:
        return Normalized(())
    s = _clean(label) if label else ""
    for key, age in CHILD_AGE_LABELS.items():
        if key in s:
            return Normalized((age,) * count)
    if MIXED_AGES_LABEL in s:
        # 3歳から5歳刻みで分散（18歳で折り返し）
        return Normalized(tuple(3 + (i * 5) % 18 for i in range(count)))
    reason = REASON_MISSING if not s else REASON_UNPARSABLE
    return Normalized((DEFAULT_CHILD_AGE,) * count, True, reason)


# HouseholdProfile field → input kind
FIELD_KINDS: dict[str, str] = {
    "age": KIND_AGE,
    "retirement_age": KIND_RETIREMENT_AGE,
    "has_spouse": KIND_FLAG,
    "dependent_ages": KIND_DEPENDENT_AGES,
    "annual_income": KIND_MONEY,
    "spouse_income": KIND_MONEY,
    "pension_annual": KIND_MONEY,
    "mortgage_balance": KIND_MONEY,
    "monthly_mortgage_payment": KIND_MONEY,
    "other_debts": KIND_MONEY,
    "savings": KIND_MONEY,
    "investable_assets": KIND_MONEY,
    "monthly_contribution": KIND_MONEY,
    "investment_yield_percent": KIND_PERCENT,
    "monthly_living_expense": KIND_MONEY,
    "monthly_insurance": KIND_MONEY,
    "monthly_hobby_expense": KIND_MONEY,
    "education_policy": KIND_EDUCATION_POLICY,
    "down_payment": KIND_MONEY,
    "loan_years": KIND_YEARS,
    "loan_rate_percent": KIND_PERCENT,
    "inflation_rate": KIND_RATE,
    "raise_rate": KIND_RATE,
}

# Plausible ranges (inclusive); values outside fall back to the default
FIELD_RANGES: dict[str, tuple[float, float]] = {
    "age": (18, 100),
    "retirement_age": (40, 90),
    "loan_years": (1, 50),
    "loan_rate_percent": (0, 20),
    "investment_yield_percent": (0, 20),
    "inflation_rate": (0, 0.2),
    "raise_rate": (0, 0.2),
}

# Chat-answer keys (camelCase) → HouseholdProfile field
FIELD_ALIASES: dict[str, str] = {
    "annualIncome": "annual_income",
    "userIncome": "annual_income",
    "hasSpouse": "has_spouse",
    "spouseIncome": "spouse_income",
    "retirementAge": "retirement_age",
    "pensionAmount": "pension_annual",
    "mortgageLoanBalance": "mortgage_balance",
    "monthlyMortgagePayment": "monthly_mortgage_payment",
    "otherDebts": "other_debts",
    "initialInvestment": "investable_assets",
    "monthlyContribution": "monthly_contribution",
    "investmentYield": "investment_yield_percent",
    "monthlyLivingExpenses": "monthly_living_expense",
    "currentInsurance": "monthly_insurance",
    "hobbyExpenses": "monthly_hobby_expense",
    "educationPolicy": "education_policy",
    "downPayment": "down_payment",
    "loanYears": "loan_years",
    "expectedInterestRate": "loan_rate_percent",
    "inflationRate": "inflation_rate",
    "raiseRate": "raise_rate",
}


@dataclass(frozen=True)
class NormalizedProfile:
    profile: HouseholdProfile
    fallbacks: dict[str, str]

    @property
    def degraded_fields(self) -> dict[str, str]:
        """Fields whose answer was present but could not be used."""
        return {k: v for k, v in self.fallbacks.items() if v != REASON_MISSING}


def normalize_profile(
    raw: Mapping[str, Any], defaults: HouseholdProfile | None = None,
) -> NormalizedProfile:
    """Build a HouseholdProfile from a flat answer record.

    Accepts profile field names and the chat-answer aliases in FIELD_ALIASES.
    Children may be given as ``dependent_ages`` or as ``childrenCount`` plus
    an age-band label in ``childrenAges``.
    """
    if defaults is None:
        defaults = HouseholdProfile()
    data: dict[str, Any] = {}
    for key, value in raw.items():
        data[FIELD_ALIASES.get(key, key)] = value

    values: dict[str, Any] = {}
    fallbacks: dict[str, str] = {}
    for name, kind in FIELD_KINDS.items():
        default = getattr(defaults, name)
        if name == "dependent_ages" and name not in data and "childrenCount" in data:
            count = normalize(data["childrenCount"], KIND_COUNT)
            result = dependent_ages_from_labels(count.value, data.get("childrenAges", ""))
            if count.used_fallback and count.reason != REASON_MISSING:
                result = Normalized(default, True, count.reason)
        else:
            result = normalize(data.get(name), kind, default)
        value = result.value
        if not result.used_fallback and name in FIELD_RANGES:
            lo, hi = FIELD_RANGES[name]
            if not lo <= value <= hi:
                result = Normalized(default, True, REASON_OUT_OF_RANGE)
                value = default
        if result.used_fallback:
            fallbacks[name] = result.reason
        values[name] = value

    profile = dataclasses.replace(defaults, **values)
    return NormalizedProfile(profile, fallbacks)
