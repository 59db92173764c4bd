"""
Credit Amortization Engine

Forward: the French (annuity) formula gives the fixed monthly quota

    quota = P * r * (1 + r)^n / ((1 + r)^n - 1),   r = annual% / 100 / 12

with a zero-rate short circuit (quota = P / n).

Inverse: `solve_interest_rate` recovers the annual rate from a known quota
by bisection. It runs a fixed number of steps over a fixed bracket (by
default 20 steps over [0, 1000] %), so its cost is bounded and its precision
is the bracket width divided by 2^iterations, about 0.001 % by default.

Status is recomputed from principal/rate/term on every call, so editing a
credit retroactively changes its status.
"""

from datetime import date
from typing import Optional

from vaultly.models.records import Credit, CreditStatus, Payment
from vaultly.models.reports import CreditStatusReport
from vaultly.utils.dates import DateLike, add_months, as_date, month_diff
from vaultly.utils.money import from_cents, percent_of, to_cents

DEFAULT_SOLVER_ITERATIONS = 20
DEFAULT_SOLVER_LOW = 0.0
DEFAULT_SOLVER_HIGH = 1000.0
DEFAULT_SOLVER_TOLERANCE = 0.01


def _annuity_quota(principal: float, annual_rate_pct: float, term_months: int) -> float:
    """Unrounded quota; continuous in the rate, which bisection relies on."""
    if term_months <= 0:
        return 0.0
    if annual_rate_pct == 0:
        return principal / term_months
    r = annual_rate_pct / 100 / 12
    factor = (1 + r) ** term_months
    denominator = factor - 1
    if denominator == 0:
        return principal / term_months
    return principal * r * factor / denominator


def calculate_quota(principal: float, annual_rate_pct: float, term_months: int) -> float:
    """Fixed monthly quota, rounded to the cent. A non-positive term gives 0."""
    return from_cents(to_cents(_annuity_quota(principal, annual_rate_pct, term_months)))


def solve_interest_rate(
    principal: float,
    quota: float,
    term_months: int,
    iterations: int = DEFAULT_SOLVER_ITERATIONS,
    low: float = DEFAULT_SOLVER_LOW,
    high: float = DEFAULT_SOLVER_HIGH,
    tolerance: float = DEFAULT_SOLVER_TOLERANCE,
) -> float:
    """
    Annual interest rate (percent) that makes `quota` repay `principal`.

    Returns 0 when quota * term does not exceed the principal, since no
    interest can be involved. Otherwise bisects [low, high] for at most
    `iterations` steps, stopping early once the quota error is below
    `tolerance`.
    """
    if term_months <= 0:
        return 0.0
    if to_cents(quota) * term_months <= to_cents(principal):
        return 0.0

    for _ in range(iterations):
        guess = (low + high) / 2
        guess_quota = _annuity_quota(principal, guess, term_months)
        if abs(guess_quota - quota) < tolerance:
            return guess
        if guess_quota < quota:
            low = guess
        else:
            high = guess
    return (low + high) / 2


def credit_totals_cents(credit: Credit) -> tuple[int, int]:
    """
    (quota_cents, total_to_pay_cents) for a credit.

    Zero-rate credits owe exactly the principal.
    """
    quota = to_cents(calculate_quota(credit.principal, credit.interest_rate, credit.term))
    if credit.interest_rate == 0:
        return quota, to_cents(credit.principal)
    return quota, quota * credit.term


def get_credit_status(credit: Credit) -> CreditStatusReport:
    """Totals, remaining balance, quota and progress. Never cached."""
    quota, total_to_pay = credit_totals_cents(credit)
    total_paid = credit.total_paid_cents
    return CreditStatusReport(
        total_paid=from_cents(total_paid),
        total_to_pay=from_cents(total_to_pay),
        remaining_balance=from_cents(max(0, total_to_pay - total_paid)),
        quota=from_cents(quota),
        progress=percent_of(from_cents(total_paid), from_cents(total_to_pay)),
    )


def is_fully_paid(credit: Credit, tolerance: float = 1.0) -> bool:
    _, total_to_pay = credit_totals_cents(credit)
    return credit.total_paid_cents >= total_to_pay - to_cents(tolerance)


def with_payment(
    credit: Credit,
    amount: float,
    today: DateLike,
    note: Optional[str] = None,
    tolerance: float = 1.0,
) -> Credit:
    """
    Append a payment and re-derive the status.

    active flips to paid once payments cover the total within `tolerance`;
    a paid credit stays paid.
    """
    payment = Payment(credit_id=credit.id, date=as_date(today), amount=amount, note=note or "")
    updated = credit.model_copy(update={"payments": [*credit.payments, payment]})
    if credit.status == CreditStatus.ACTIVE and is_fully_paid(updated, tolerance):
        updated = updated.model_copy(update={"status": CreditStatus.PAID})
    return updated


def next_payment_date(credit: Credit) -> date:
    """Start date plus one month per payment already made, plus one."""
    return add_months(credit.start_date, len(credit.payments) + 1)


def is_installment_month(credit: Credit, month: DateLike) -> bool:
    """True when `month` falls inside the credit's term window."""
    elapsed = month_diff(month, credit.start_date)
    return 0 <= elapsed < credit.term
