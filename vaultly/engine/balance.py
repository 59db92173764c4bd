"""
Balance Engine

Aggregates every collection into a single "available balance":

    available = (income - expense) - (goals saved + funds saved)

evaluated at the end of an arbitrary query day. Goal and fund totals are
always replayed from their history, never read from the cached
`current_amount`, so past and future query dates are both correct.

DESIGN DECISION: Every term is accumulated in integer cents and converted
back exactly once.
"""

from typing import Iterable, Union

from vaultly.engine.transactions import cash_flow_cents
from vaultly.models.records import Fund, Goal, Transaction
from vaultly.models.reports import BalanceBreakdown
from vaultly.utils.dates import DateLike, as_date, end_of_day, end_of_month
from vaultly.utils.money import from_cents


def earmarked_cents(records: Iterable[Union[Goal, Fund]], until: DateLike) -> int:
    """Sum of every goal's or fund's replayed total, each clamped at zero."""
    return sum((record.saved_cents_as_of(until) for record in records), 0)


def balance_breakdown(
    transactions: Iterable[Transaction],
    goals: Iterable[Goal],
    funds: Iterable[Fund],
    query_date: DateLike,
) -> BalanceBreakdown:
    """
    All components of the available balance at the end of `query_date`.

    Entries dated exactly on the query day are included.
    """
    day = end_of_day(query_date).date()

    income, expense = cash_flow_cents(transactions, day)
    goals_saved = earmarked_cents(goals, day)
    funds_saved = earmarked_cents(funds, day)
    available = (income - expense) - (goals_saved + funds_saved)

    return BalanceBreakdown(
        as_of=day,
        total_income=from_cents(income),
        total_expense=from_cents(expense),
        net_cash_flow=from_cents(income - expense),
        goals_saved=from_cents(goals_saved),
        funds_saved=from_cents(funds_saved),
        available=from_cents(available),
    )


def get_balance_at_date(
    transactions: Iterable[Transaction],
    goals: Iterable[Goal],
    funds: Iterable[Fund],
    query_date: DateLike,
) -> float:
    """Available balance at the end of `query_date`. Empty stores give 0."""
    return balance_breakdown(transactions, goals, funds, query_date).available


def available_balance(
    transactions: Iterable[Transaction],
    goals: Iterable[Goal],
    funds: Iterable[Fund],
    selected_period: DateLike,
) -> float:
    """Reporting balance of a selected period, evaluated at its month end."""
    return get_balance_at_date(transactions, goals, funds, end_of_month(selected_period))


def current_balance(
    transactions: Iterable[Transaction],
    goals: Iterable[Goal],
    funds: Iterable[Fund],
    today: DateLike,
) -> float:
    """Spendable balance right now; used for every affordability check."""
    return get_balance_at_date(transactions, goals, funds, as_date(today))
