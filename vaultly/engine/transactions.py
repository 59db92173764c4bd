"""
Wallet Transaction Aggregations

Net cash flow, per-category totals and monthly summaries over the
transactions collection. All sums are accumulated in cents.
"""

from typing import Iterable, Optional

from vaultly.models.records import Transaction, TransactionType
from vaultly.models.reports import CategoryTotal, MonthlySummary
from vaultly.utils.dates import DateLike, as_date, month_key
from vaultly.utils.money import from_cents

UNCATEGORIZED = "Sin Categoría"


def cash_flow_cents(
    transactions: Iterable[Transaction],
    until: Optional[DateLike] = None,
) -> tuple[int, int]:
    """
    (income_cents, expense_cents) for transactions dated on or before `until`.

    With no `until`, every transaction counts.
    """
    limit = as_date(until) if until is not None else None
    income = expense = 0
    for tx in transactions:
        if limit is not None and tx.date > limit:
            continue
        if tx.type == TransactionType.INCOME:
            income += tx.amount_cents
        else:
            expense += tx.amount_cents
    return income, expense


def net_cash_flow(
    transactions: Iterable[Transaction],
    until: Optional[DateLike] = None,
) -> float:
    income, expense = cash_flow_cents(transactions, until)
    return from_cents(income - expense)


def totals_by_category(
    transactions: Iterable[Transaction],
    transaction_type: Optional[TransactionType] = None,
) -> list[CategoryTotal]:
    """Sum amounts per category, in first-seen order."""
    grouped: dict[str, int] = {}
    for tx in transactions:
        if transaction_type is not None and tx.type != transaction_type:
            continue
        name = tx.category or UNCATEGORIZED
        grouped[name] = grouped.get(name, 0) + tx.amount_cents
    return [CategoryTotal(name=name, value=from_cents(cents)) for name, cents in grouped.items()]


def monthly_summary(transactions: Iterable[Transaction], year: int) -> list[MonthlySummary]:
    """Income, expense and net for each of the twelve months of `year`."""
    income = [0] * 12
    expense = [0] * 12
    for tx in transactions:
        if tx.date.year != year:
            continue
        bucket = income if tx.type == TransactionType.INCOME else expense
        bucket[tx.date.month - 1] += tx.amount_cents

    return [
        MonthlySummary(
            month=f"{year:04d}-{month + 1:02d}",
            income=from_cents(income[month]),
            expense=from_cents(expense[month]),
            net=from_cents(income[month] - expense[month]),
        )
        for month in range(12)
    ]


def transactions_in_month(
    transactions: Iterable[Transaction],
    month: DateLike,
) -> list[Transaction]:
    key = month_key(month)
    return [tx for tx in transactions if month_key(tx.date) == key]


def with_renamed_category(
    transactions: Iterable[Transaction],
    old_category: str,
    new_category: str,
) -> list[Transaction]:
    """The transactions whose category changes, already renamed."""
    return [
        tx.model_copy(update={"category": new_category})
        for tx in transactions
        if tx.category == old_category
    ]
