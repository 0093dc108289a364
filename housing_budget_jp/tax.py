"""Coarse income tax lookup used by the yearly projection."""

# 簡易税率テーブル（額面年収ベース、円）
# (上限年収, 税率): 年収が上限以下ならその税率を全額に適用
_INCOME_TAX_BRACKETS: tuple[tuple[float, float], ...] = (
    (3_300_000, 0.10),
    (6_000_000, 0.20),
    (10_000_000, 0.23),
    (float("inf"), 0.33),
)


def calc_bracket_tax_rate(income: float) -> float:
    """Return the single bracket rate that applies to the whole income.

    Thresholds are inclusive on the upper side: 3,300,000円 is still 10%.
    """
    rate = _INCOME_TAX_BRACKETS[0][1]
    for upper, bracket_rate in _INCOME_TAX_BRACKETS:
        if income <= upper:
            rate = bracket_rate
            break
    return rate


def calc_flat_income_tax(income: float) -> float:
    """Tax = income × bracket rate (flat marginal lookup, not banded)."""
    if income <= 0:
        return 0.0
    return income * calc_bracket_tax_rate(income)


def calc_progressive_income_tax(income: float) -> float:
    """Tax with each bracket rate applied only to the slice inside that bracket."""
    if income <= 0:
        return 0.0
    tax = 0.0
    lower = 0.0
    for upper, rate in _INCOME_TAX_BRACKETS:
        if income <= lower:
            break
        tax += (min(income, upper) - lower) * rate
        lower = upper
    return tax


def calc_income_tax(income: float, progressive: bool = False) -> float:
    if progressive:
        return calc_progressive_income_tax(income)
    return calc_flat_income_tax(income)


def estimate_takehome(income: float) -> float:
    """Annual take-home pay after the flat bracket tax."""
    return income - calc_flat_income_tax(income)
