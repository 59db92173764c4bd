"""Tests for goal quotas and fund movements."""

from datetime import date

import pytest

from vaultly.engine.funds import auto_save_amount, with_movement
from vaultly.engine.goals import (
    get_monthly_quota,
    get_months_remaining,
    get_total_savings_at_date,
    goal_progress,
    is_goal_active_in_month,
    is_goal_paid_this_month,
    with_contribution,
    with_withdrawal,
)
from vaultly.models.records import (
    AutoSaveConfig,
    AutoSaveType,
    Fund,
    FundMovementType,
    Goal,
    GoalHistoryItem,
    GoalMovementType,
    RecoveryStrategy,
)

TODAY = date(2025, 3, 15)


def make_goal(target=1200, current=0.0, deadline=date(2026, 3, 15), **kwargs):
    return Goal(
        name="Viaje",
        target_amount=target,
        current_amount=current,
        start_date=kwargs.pop("start_date", date(2025, 1, 1)),
        deadline=deadline,
        **kwargs,
    )


class TestGoalQuota:
    """Tests for the dynamic monthly quota."""

    def test_even_spread(self):
        """1200 over 12 months is 100 a month."""
        assert get_monthly_quota(make_goal(), TODAY) == 100.0

    def test_quota_redistributes_after_deposit(self):
        """After 500 saved with 11 months left, (1200 - 500) / 11 = 63.64."""
        goal = make_goal(current=500, deadline=date(2026, 2, 15))
        assert get_monthly_quota(goal, TODAY) == 63.64

    def test_no_deadline_gives_zero(self):
        assert get_monthly_quota(make_goal(deadline=None), TODAY) == 0.0

    def test_reached_goal_gives_zero(self):
        assert get_monthly_quota(make_goal(current=1200), TODAY) == 0.0
        assert get_monthly_quota(make_goal(current=1500), TODAY) == 0.0

    def test_past_deadline_whole_remainder_due(self):
        goal = make_goal(current=200, deadline=date(2024, 12, 1))
        assert get_monthly_quota(goal, TODAY) == 1000.0

    def test_deadline_this_month_whole_remainder_due(self):
        goal = make_goal(current=200, deadline=date(2025, 3, 31))
        assert get_monthly_quota(goal, TODAY) == 1000.0

    def test_months_remaining(self):
        assert get_months_remaining(make_goal(), TODAY) == 12
        assert get_months_remaining(make_goal(deadline=date(2024, 1, 1)), TODAY) == 0
        assert get_months_remaining(make_goal(deadline=None), TODAY) == 0


class TestGoalPaidThisMonth:
    """Tests for the monthly paid check."""

    def test_contribution_this_month_marks_paid(self):
        goal = with_contribution(make_goal(), 100, TODAY)
        assert is_goal_paid_this_month(goal, TODAY)

    def test_no_contribution_is_not_paid(self):
        assert not is_goal_paid_this_month(make_goal(), TODAY)

    def test_last_month_contribution_does_not_count(self):
        goal = with_contribution(make_goal(), 100, date(2025, 2, 20))
        assert not is_goal_paid_this_month(goal, TODAY)

    def test_within_tolerance(self):
        """A contribution short by less than one unit still counts."""
        history = [GoalHistoryItem(date=TODAY, amount=99.5, type=GoalMovementType.DEPOSIT)]
        goal = make_goal(history=history)
        assert is_goal_paid_this_month(goal, TODAY, tolerance=1.0)
        assert not is_goal_paid_this_month(goal, TODAY, tolerance=0.0)

    def test_goal_without_quota_is_paid(self):
        assert is_goal_paid_this_month(make_goal(deadline=None), TODAY)


class TestGoalMovements:
    """Tests for contribution and withdrawal helpers."""

    def test_contribution_updates_cache_and_history(self):
        goal = make_goal(current=100)
        updated = with_contribution(goal, 50.5, TODAY)

        assert updated.current_amount == 150.5
        assert updated.last_contribution_date == TODAY
        assert len(updated.history) == 1
        assert updated.history[0].type == GoalMovementType.DEPOSIT
        assert updated.history[0].note == "Contribución manual"
        # Original untouched
        assert goal.current_amount == 100
        assert goal.history == []

    def test_withdrawal_floors_at_zero(self):
        goal = make_goal(current=50)
        updated = with_withdrawal(goal, 80, TODAY, recovery_strategy=RecoveryStrategy.CATCH_UP)

        assert updated.current_amount == 0.0
        assert updated.history[-1].type == GoalMovementType.WITHDRAWAL
        assert updated.history[-1].amount == 80
        assert updated.recovery_strategy == RecoveryStrategy.CATCH_UP

    def test_total_savings_uses_month_end(self):
        goals = [
            with_contribution(make_goal(), 100, date(2025, 3, 1)),
            with_contribution(make_goal(), 50, date(2025, 3, 30)),
            with_contribution(make_goal(), 70, date(2025, 4, 1)),
        ]
        assert get_total_savings_at_date(goals, date(2025, 3, 2)) == 150.0

    def test_progress(self):
        assert goal_progress(make_goal(current=300)) == 25.0
        assert goal_progress(make_goal(current=5000)) == 100.0

    @pytest.mark.parametrize("start,deadline,expected", [
        (date(2025, 1, 1), date(2026, 1, 1), True),
        (date(2025, 4, 1), date(2026, 1, 1), False),
        (date(2024, 1, 1), date(2025, 2, 28), False),
        (date(2024, 1, 1), None, True),
    ])
    def test_active_in_month(self, start, deadline, expected):
        goal = make_goal(start_date=start, deadline=deadline)
        assert is_goal_active_in_month(goal, date(2025, 3, 1), date(2025, 3, 31)) is expected


class TestFunds:
    """Tests for fund movements and auto-save."""

    def test_deposit_and_withdraw(self):
        fund = Fund(name="Emergencias")
        fund = with_movement(fund, 200, FundMovementType.DEPOSIT, TODAY, "inicio")
        fund = with_movement(fund, 50.25, FundMovementType.WITHDRAW, TODAY)

        assert fund.current_amount == 149.75
        assert [item.type for item in fund.history] == [
            FundMovementType.DEPOSIT,
            FundMovementType.WITHDRAW,
        ]
        assert fund.history[0].fund_id == fund.id

    def test_over_withdraw_floors_at_zero(self):
        fund = Fund(name="Emergencias", current_amount=10)
        assert with_movement(fund, 40, FundMovementType.WITHDRAW, TODAY).current_amount == 0.0

    def test_auto_save_fixed(self):
        fund = Fund(name="F", auto_save_config=AutoSaveConfig(enabled=True, amount=50))
        assert auto_save_amount(fund, 10_000) == 50

    def test_auto_save_percentage(self):
        config = AutoSaveConfig(enabled=True, type=AutoSaveType.PERCENTAGE, amount=10)
        fund = Fund(name="F", auto_save_config=config)
        assert auto_save_amount(fund, 1234.56) == 123.46

    def test_auto_save_disabled_or_missing(self):
        assert auto_save_amount(Fund(name="F"), 1000) == 0.0
        disabled = Fund(name="F", auto_save_config=AutoSaveConfig(enabled=False, amount=50))
        assert auto_save_amount(disabled, 1000) == 0.0
