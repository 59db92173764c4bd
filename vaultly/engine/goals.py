"""
Goal Quota Engine

The monthly quota of a goal is recalculated from scratch on every call:

    quota = (target - current) / max(1, months until deadline)

so a missed month or an extra contribution is redistributed over the
remaining months automatically. No catch-up state is stored anywhere.

Contribution and withdrawal helpers return a new Goal; persisting it is the
caller's job.
"""

from datetime import date
from typing import Iterable, Optional

from vaultly.models.records import Goal, GoalHistoryItem, GoalMovementType, RecoveryStrategy
from vaultly.utils.dates import DateLike, as_date, end_of_month, month_diff, month_key
from vaultly.utils.money import from_cents, safe_div, to_cents

DEFAULT_CONTRIBUTION_NOTE = "Contribución manual"
DEFAULT_WITHDRAWAL_NOTE = "Retiro de fondos"
MONTHLY_QUOTA_NOTE = "Cuota Mensual"


def remaining_cents(goal: Goal) -> int:
    """Target minus the cached current amount, in cents (may be negative)."""
    return to_cents(goal.target_amount) - to_cents(goal.current_total())


def get_months_remaining(goal: Goal, today: DateLike) -> int:
    """Whole calendar months between today and the deadline, never negative."""
    if goal.deadline is None:
        return 0
    return max(0, month_diff(goal.deadline, today))


def get_monthly_quota(goal: Goal, today: DateLike) -> float:
    """
    Required contribution for the month containing `today`.

    Returns 0 when the goal has no deadline or is already reached. Past the
    deadline the whole remainder is due in a single month.
    """
    if goal.deadline is None:
        return 0.0
    remaining = remaining_cents(goal)
    if remaining <= 0:
        return 0.0
    months = max(1, month_diff(goal.deadline, today))
    return safe_div(from_cents(remaining), months)


def contributions_in_month_cents(goal: Goal, month: DateLike) -> int:
    """Deposits minus withdrawals dated in the calendar month of `month`."""
    key = month_key(month)
    return sum(
        (item.signed_cents for item in goal.history if month_key(item.date) == key),
        0,
    )


def is_goal_paid_this_month(goal: Goal, today: DateLike, tolerance: float = 1.0) -> bool:
    """True when this month's net contributions cover the quota, within `tolerance`."""
    contributed = contributions_in_month_cents(goal, today)
    required = to_cents(get_monthly_quota(goal, today))
    return contributed >= required - to_cents(tolerance)


def get_total_savings_at_date(goals: Iterable[Goal], when: DateLike) -> float:
    """Replayed savings of every goal up to the end of `when`'s month."""
    limit = end_of_month(when)
    return from_cents(sum((goal.saved_cents_as_of(limit) for goal in goals), 0))


def with_contribution(
    goal: Goal,
    amount: float,
    today: DateLike,
    note: Optional[str] = None,
) -> Goal:
    """Append a deposit, raise the cached total and stamp the contribution date."""
    day = as_date(today)
    item = GoalHistoryItem(
        date=day,
        amount=amount,
        type=GoalMovementType.DEPOSIT,
        note=note or DEFAULT_CONTRIBUTION_NOTE,
    )
    return goal.model_copy(update={
        "current_amount": from_cents(to_cents(goal.current_total()) + to_cents(amount)),
        "last_contribution_date": day,
        "history": [*goal.history, item],
    })


def with_withdrawal(
    goal: Goal,
    amount: float,
    today: DateLike,
    note: Optional[str] = None,
    recovery_strategy: Optional[RecoveryStrategy] = None,
) -> Goal:
    """Append a withdrawal and lower the cached total, floored at zero."""
    item = GoalHistoryItem(
        date=as_date(today),
        amount=amount,
        type=GoalMovementType.WITHDRAWAL,
        note=note or DEFAULT_WITHDRAWAL_NOTE,
    )
    return goal.model_copy(update={
        "current_amount": from_cents(max(0, to_cents(goal.current_total()) - to_cents(amount))),
        "recovery_strategy": recovery_strategy or goal.recovery_strategy,
        "history": [*goal.history, item],
    })


def goal_progress(goal: Goal) -> float:
    """Percent of the target reached, from the cached total."""
    target = to_cents(goal.target_amount)
    if target == 0:
        return 0.0
    return min(100.0, to_cents(goal.current_total()) / target * 100)


def is_goal_active_in_month(goal: Goal, month_start: date, month_end: date) -> bool:
    """A goal participates in a month between its start date and deadline."""
    if month_end < goal.start_date:
        return False
    if goal.deadline is not None and month_start > goal.deadline:
        return False
    return True
