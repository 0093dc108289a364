"""Yearly investment account step (積立 + 運用 + 取り崩し)."""

from dataclasses import dataclass


@dataclass(frozen=True)
class InvestmentStep:
    """State of the investment account at the end of one simulated year (円)."""

    balance: float = 0.0
    yield_amount: float = 0.0
    contribution: float = 0.0
    withdrawal: float = 0.0
    shortfall: float = 0.0  # requested withdrawal that the balance could not cover


def step(
    prev_balance: float,
    monthly_contribution: float,
    annual_yield_percent: float,
    withdrawal: float,
    is_first_year: bool,
    initial_lump_sum: float,
) -> InvestmentStep:
    """Advance the account by one year.

    Contributions are added before the yield is applied, so a year's
    contributions earn a full year of yield. The withdrawal comes out after
    the yield; the balance never goes below 0 and the uncovered part is
    returned as ``shortfall``.
    """
    balance = prev_balance
    if is_first_year:
        balance += initial_lump_sum

    contribution = monthly_contribution * 12
    balance += contribution

    yield_amount = balance * annual_yield_percent / 100
    balance += yield_amount

    shortfall = 0.0
    balance -= withdrawal
    if balance < 0:
        shortfall = -balance
        balance = 0.0

    return InvestmentStep(
        balance=balance,
        yield_amount=yield_amount,
        contribution=contribution,
        withdrawal=withdrawal,
        shortfall=shortfall,
    )


def future_value(
    initial: float, monthly_contribution: float, annual_yield_percent: float, years: int,
) -> float:
    """Closed form of ``years`` consecutive step() calls without withdrawals."""
    if years <= 0:
        return float(initial)
    g = 1 + annual_yield_percent / 100
    annual = monthly_contribution * 12
    if g == 1:
        return initial + annual * years
    return initial * g ** years + annual * g * (g ** years - 1) / (g - 1)
