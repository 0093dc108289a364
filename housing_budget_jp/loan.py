"""Fixed-payment (元利均等返済) amortization schedule."""

from dataclasses import dataclass

from housing_budget_jp.params import _calc_equal_payment, _calc_principal_from_payment


@dataclass(frozen=True)
class LoanTerms:
    principal: float
    annual_rate_percent: float
    term_years: int


@dataclass(frozen=True)
class AmortizationYear:
    """One loan-year of the schedule (円)."""

    principal: float
    interest: float
    ending_balance: float

    @property
    def payment(self) -> float:
        return self.principal + self.interest


def _monthly_rate(annual_rate_percent: float) -> float:
    return annual_rate_percent / 12 / 100


def monthly_payment(principal: float, annual_rate_percent: float, term_years: int) -> float:
    """Monthly payment for a fully amortizing loan. 0 when there is nothing to repay."""
    if principal <= 0 or term_years <= 0:
        return 0.0
    return _calc_equal_payment(principal, _monthly_rate(annual_rate_percent), term_years * 12)


def principal_from_payment(payment: float, annual_rate_percent: float, term_years: int) -> float:
    """Loan principal serviceable by ``payment`` per month over ``term_years``."""
    return _calc_principal_from_payment(payment, _monthly_rate(annual_rate_percent), term_years * 12)


def remaining_balance(
    principal: float, annual_rate_percent: float, term_years: int, months_paid: int,
) -> float:
    """Closed-form remaining balance after ``months_paid`` payments.

    B_k = P * ((1+r)^n - (1+r)^k) / ((1+r)^n - 1), or P * (1 - k/n) at r = 0.
    """
    if principal <= 0 or term_years <= 0:
        return 0.0
    n = term_years * 12
    k = min(max(months_paid, 0), n)
    r = _monthly_rate(annual_rate_percent)
    if r == 0:
        return principal * (n - k) / n
    growth_n = (1 + r) ** n
    return principal * (growth_n - (1 + r) ** k) / (growth_n - 1)


def amortize(principal: float, annual_rate_percent: float, term_years: int) -> list[AmortizationYear]:
    """Build the yearly schedule by stepping 12 monthly payments per year.

    Returns [] when principal <= 0 or term_years <= 0 (no mortgage).
    The last month retires whatever balance is left, so the final
    ending_balance is exactly 0.
    """
    if principal <= 0 or term_years <= 0:
        return []

    r = _monthly_rate(annual_rate_percent)
    total_months = term_years * 12
    payment = _calc_equal_payment(principal, r, total_months)

    schedule: list[AmortizationYear] = []
    balance = float(principal)
    month = 0
    for _ in range(term_years):
        year_principal = 0.0
        year_interest = 0.0
        for _ in range(12):
            month += 1
            interest = balance * r
            paid = payment - interest
            if month == total_months or paid >= balance:
                paid = balance
            year_interest += interest
            year_principal += paid
            balance -= paid
            if balance < 0:
                balance = 0.0
            if balance == 0:
                break
        schedule.append(AmortizationYear(year_principal, year_interest, balance))
        if balance == 0:
            break
    return schedule
