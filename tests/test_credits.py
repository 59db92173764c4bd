"""Tests for credit amortization, payments and the rate solver."""

from datetime import date

import pytest

from vaultly.engine.credits import (
    calculate_quota,
    credit_totals_cents,
    get_credit_status,
    is_fully_paid,
    is_installment_month,
    next_payment_date,
    solve_interest_rate,
    with_payment,
)
from vaultly.models.records import Credit, CreditStatus, Payment


def make_credit(principal=1200, rate=0.0, term=12, start=date(2025, 1, 15), payments=()):
    credit = Credit(name="Moto", principal=principal, interest_rate=rate, term=term, start_date=start)
    return credit.model_copy(update={"payments": [
        Payment(credit_id=credit.id, date=start, amount=amount) for amount in payments
    ]})


class TestQuota:
    """Tests for the annuity formula."""

    def test_zero_rate_is_principal_over_term(self):
        assert calculate_quota(1200, 0, 12) == 100.0

    def test_annuity_quota(self):
        """10 000 at 12% a year over 12 months."""
        assert calculate_quota(10_000, 12, 12) == 888.49

    def test_non_positive_term_gives_zero(self):
        assert calculate_quota(1200, 10, 0) == 0.0

    def test_zero_rate_total_is_principal(self):
        """Rounding the quota must not inflate a zero-rate total."""
        _, total = credit_totals_cents(make_credit(principal=1000, term=3))
        assert total == 100_000

    def test_interest_total_is_quota_times_term(self):
        quota, total = credit_totals_cents(make_credit(principal=10_000, rate=12, term=12))
        assert quota == 88_849
        assert total == 88_849 * 12


class TestCreditStatus:
    """Tests for the derived status report."""

    def test_fresh_credit(self):
        status = get_credit_status(make_credit())
        assert status.total_to_pay == 1200.0
        assert status.total_paid == 0.0
        assert status.remaining_balance == 1200.0
        assert status.quota == 100.0
        assert status.progress == 0.0

    def test_fully_paid(self):
        status = get_credit_status(make_credit(payments=[100] * 12))
        assert status.total_paid == 1200.0
        assert status.remaining_balance == 0.0
        assert status.progress == 100.0

    def test_overpayment_remaining_never_negative(self):
        status = get_credit_status(make_credit(payments=[1300]))
        assert status.remaining_balance == 0.0


class TestPayments:
    """Tests for with_payment and the active -> paid transition."""

    def test_payment_is_appended(self):
        credit = make_credit()
        updated = with_payment(credit, 100, date(2025, 2, 15), "febrero")
        assert len(updated.payments) == 1
        assert updated.payments[0].credit_id == credit.id
        assert updated.payments[0].note == "febrero"
        assert updated.status == CreditStatus.ACTIVE
        assert credit.payments == []

    def test_last_payment_flips_to_paid(self):
        credit = make_credit(payments=[100] * 11)
        assert with_payment(credit, 100, date(2025, 12, 15)).status == CreditStatus.PAID

    def test_payment_within_tolerance_flips_to_paid(self):
        credit = make_credit(payments=[100] * 11)
        assert with_payment(credit, 99.5, date(2025, 12, 15), tolerance=1.0).status == CreditStatus.PAID
        assert with_payment(credit, 99.5, date(2025, 12, 15), tolerance=0.0).status == CreditStatus.ACTIVE

    def test_paid_stays_paid(self):
        credit = make_credit(payments=[100] * 12).model_copy(update={"status": CreditStatus.PAID})
        assert with_payment(credit, 1, date(2026, 1, 15)).status == CreditStatus.PAID

    def test_is_fully_paid(self):
        assert not is_fully_paid(make_credit(payments=[100] * 5))
        assert is_fully_paid(make_credit(payments=[100] * 12))


class TestSchedule:
    """Tests for next payment date and installment months."""

    def test_next_payment_date_clamps_month_end(self):
        credit = make_credit(start=date(2025, 1, 31))
        assert next_payment_date(credit) == date(2025, 2, 28)

    def test_next_payment_date_advances_with_payments(self):
        credit = make_credit(start=date(2025, 1, 31), payments=[100])
        assert next_payment_date(credit) == date(2025, 3, 31)

    @pytest.mark.parametrize("month,expected", [
        (date(2024, 12, 1), False),
        (date(2025, 1, 1), True),
        (date(2025, 12, 31), True),
        (date(2026, 1, 1), False),
    ])
    def test_installment_window(self, month, expected):
        assert is_installment_month(make_credit(), month) is expected


class TestRateSolver:
    """Tests for the bisection inverse of the quota formula."""

    def test_no_interest_possible_returns_zero(self):
        assert solve_interest_rate(1200, 100, 12) == 0.0
        assert solve_interest_rate(1200, 90, 12) == 0.0

    def test_non_positive_term_returns_zero(self):
        assert solve_interest_rate(1200, 100, 0) == 0.0

    @pytest.mark.parametrize("rate", [0, 1, 5, 12, 24.5, 60, 100])
    def test_inverse_of_quota(self, rate):
        """solve(quota(r)) lands within half a point of r."""
        quota = calculate_quota(10_000, rate, 24)
        assert abs(solve_interest_rate(10_000, quota, 24) - rate) < 0.5

    def test_iteration_count_bounds_precision(self):
        """A single step can only return the bracket midpoint."""
        quota = calculate_quota(10_000, 12, 24)
        assert solve_interest_rate(10_000, quota, 24, iterations=1) == 250.0

    def test_engine_uses_configured_solver(self, engine):
        quota = engine.calculate_quota(5000, 18, 36)
        assert abs(engine.solve_interest_rate(5000, quota, 36) - 18) < 0.5
