"""Recurring (scheduled) transactions that fall due during the month."""

from typing import Iterable

from vaultly.models.records import ScheduledTransaction, Transaction
from vaultly.utils.dates import DateLike, as_date, same_month

RECURRING_PREFIX = "(Recurrente)"


def is_due(item: ScheduledTransaction, today: DateLike) -> bool:
    """
    Active, its day of month reached, and not processed yet this month.
    """
    day = as_date(today)
    if not item.active:
        return False
    if day.day < item.day_of_month:
        return False
    if item.last_processed_date is not None and same_month(item.last_processed_date, day):
        return False
    return True


def due_scheduled(
    scheduled: Iterable[ScheduledTransaction],
    today: DateLike,
) -> list[ScheduledTransaction]:
    return [item for item in scheduled if is_due(item, today)]


def to_transaction(item: ScheduledTransaction, today: DateLike) -> Transaction:
    """The wallet transaction a scheduled item produces when processed."""
    return Transaction(
        amount=item.amount,
        type=item.type,
        category=item.category,
        description=f"{RECURRING_PREFIX} {item.description}",
        date=as_date(today),
        is_recurring=True,
    )


def mark_processed(item: ScheduledTransaction, today: DateLike) -> ScheduledTransaction:
    return item.model_copy(update={"last_processed_date": as_date(today)})
