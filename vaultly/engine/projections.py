"""
Monthly Cash-Flow Projection

Lays out every expected movement of one calendar month on a timeline:

- scheduled transactions on their day of month
- goal quotas on the goal's start day (expense)
- credit quotas on the credit's start day, only inside the term window
- fund auto-save transfers on their configured day (expense)
- simulated what-if transactions dated inside the month

Items are sorted by date and a running balance is applied. Excluded items
stay on the timeline, flagged, but do not move the balance. All running
sums are kept in cents.

DESIGN DECISION: quota sources are injectable callables so a caller can
project with the live engine rules or with fixed what-if quotas.
"""

from datetime import date
from typing import Callable, Iterable, Optional

from vaultly.engine.credits import get_credit_status, is_installment_month
from vaultly.engine.funds import auto_save_amount
from vaultly.engine.goals import get_monthly_quota, is_goal_active_in_month
from vaultly.models.records import (
    Credit,
    Fund,
    Goal,
    ScheduledTransaction,
    TransactionType,
)
from vaultly.models.reports import (
    MonthlyProjection,
    ProjectionItem,
    ProjectionSource,
    SimulatedTransaction,
)
from vaultly.utils.dates import DateLike, as_date, day_in_month, end_of_month, month_key, start_of_month
from vaultly.utils.money import from_cents, safe_div, to_cents

GOAL_FALLBACK_MONTHS = 12


def _scheduled_items(
    scheduled: Iterable[ScheduledTransaction],
    month_start: date,
    month_end: date,
) -> list[dict]:
    items = []
    for item in scheduled:
        if not item.active:
            continue
        if month_end < item.created_at.date():
            continue
        items.append({
            "id": item.id,
            "source": ProjectionSource.SCHEDULED,
            "date": day_in_month(month_start, item.day_of_month),
            "name": item.description,
            "amount": item.amount,
            "type": item.type,
        })
    return items


def _goal_items(
    goals: Iterable[Goal],
    month_start: date,
    month_end: date,
    goal_quota: Callable[[Goal], float],
) -> list[dict]:
    items = []
    for goal in goals:
        if not is_goal_active_in_month(goal, month_start, month_end):
            continue
        quota = goal_quota(goal)
        if quota <= 0 and goal.current_total() < goal.target_amount:
            quota = safe_div(goal.target_amount - goal.current_total(), GOAL_FALLBACK_MONTHS)
        items.append({
            "id": goal.id,
            "source": ProjectionSource.GOAL,
            "date": day_in_month(month_start, goal.start_date.day),
            "name": f"Meta: {goal.name}",
            "amount": max(0.0, quota),
            "type": TransactionType.EXPENSE,
        })
    return items


def _credit_items(
    credits: Iterable[Credit],
    month_start: date,
    credit_quota: Callable[[Credit], float],
) -> list[dict]:
    items = []
    for credit in credits:
        if not is_installment_month(credit, month_start):
            continue
        quota = credit_quota(credit)
        if quota <= 0:
            quota = safe_div(credit.principal, credit.term)
        items.append({
            "id": credit.id,
            "source": ProjectionSource.CREDIT,
            "date": day_in_month(month_start, credit.start_date.day),
            "name": f"Crédito: {credit.name}",
            "amount": max(0.0, quota),
            "type": TransactionType.EXPENSE,
        })
    return items


def _fund_items(funds: Iterable[Fund], month_start: date, initial_balance: float) -> list[dict]:
    items = []
    for fund in funds:
        config = fund.auto_save_config
        if config is None or not config.enabled:
            continue
        items.append({
            "id": fund.id,
            "source": ProjectionSource.FUND,
            "date": day_in_month(month_start, config.day_of_month),
            "name": f"Fondo: {fund.name}",
            "amount": auto_save_amount(fund, initial_balance),
            "type": TransactionType.EXPENSE,
        })
    return items


def _simulated_items(simulated: Iterable[SimulatedTransaction], month_start: date) -> list[dict]:
    key = month_key(month_start)
    return [
        {
            "id": sim.id,
            "source": ProjectionSource.SIMULATED,
            "date": sim.date,
            "name": sim.description,
            "amount": sim.amount,
            "type": sim.type,
        }
        for sim in simulated
        if month_key(sim.date) == key
    ]


def calculate_monthly_projection(
    target_month: DateLike,
    today: DateLike,
    scheduled: Iterable[ScheduledTransaction] = (),
    goals: Iterable[Goal] = (),
    credits: Iterable[Credit] = (),
    funds: Iterable[Fund] = (),
    simulated: Iterable[SimulatedTransaction] = (),
    initial_balance: float = 0.0,
    excluded_ids: Optional[set[str]] = None,
    include_balance: bool = True,
    goal_quota: Optional[Callable[[Goal], float]] = None,
    credit_quota: Optional[Callable[[Credit], float]] = None,
) -> MonthlyProjection:
    """
    Project one month of expected movements.

    Args:
        target_month: Any date inside the month to project
        today: Reference date for the default goal quota rule
        initial_balance: Balance the month starts from; also the base for
            percentage auto-save transfers
        excluded_ids: Item ids kept on the timeline but not applied
        include_balance: Seed the running balance with initial_balance
            (otherwise the timeline starts at 0)
        goal_quota: Quota rule for goals, defaults to the dynamic quota
        credit_quota: Quota rule for credits, defaults to the annuity quota

    Returns:
        MonthlyProjection with the timeline, totals and lowest point
    """
    month_start = start_of_month(target_month)
    month_end = end_of_month(target_month)
    excluded = excluded_ids or set()
    goal_quota = goal_quota or (lambda goal: get_monthly_quota(goal, as_date(today)))
    credit_quota = credit_quota or (lambda credit: get_credit_status(credit).quota)

    raw = [
        *_scheduled_items(scheduled, month_start, month_end),
        *_goal_items(goals, month_start, month_end, goal_quota),
        *_credit_items(credits, month_start, credit_quota),
        *_fund_items(funds, month_start, initial_balance),
        *_simulated_items(simulated, month_start),
    ]
    raw.sort(key=lambda item: item["date"])

    running = to_cents(initial_balance) if include_balance else 0
    income = expense = 0
    lowest = running
    timeline = []
    for item in raw:
        is_excluded = item["id"] in excluded
        if not is_excluded:
            cents = to_cents(item["amount"])
            if item["type"] == TransactionType.INCOME:
                running += cents
                income += cents
            else:
                running -= cents
                expense += cents
        lowest = min(lowest, running)
        timeline.append(ProjectionItem(
            **item,
            balance_after=from_cents(running),
            is_excluded=is_excluded,
        ))

    return MonthlyProjection(
        month=month_start,
        timeline=timeline,
        initial_balance=initial_balance,
        final_balance=from_cents(running),
        total_income=from_cents(income),
        total_expense=from_cents(expense),
        lowest_point=from_cents(lowest),
    )
