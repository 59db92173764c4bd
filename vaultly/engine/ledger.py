"""
Unified Ledger Aggregator

Merges transactions, fund history, credit payments and project transactions
into one chronological feed, newest first.

Fund movements are booked from the wallet's point of view: a deposit into a
fund is money leaving the liquid wallet and shows as an EXPENSE, a withdraw
from a fund shows as INCOME. UI labels should say "transfer to fund" /
"transfer from fund" to keep this readable.

The ledger is materialized in full on every call; filtering and grouping
are pure post-processing over the sorted list.
"""

from datetime import date
from typing import Iterable, Optional

from vaultly.models.records import (
    Credit,
    Fund,
    FundMovementType,
    Project,
    Transaction,
    TransactionType,
)
from vaultly.models.reports import LedgerDayGroup, LedgerEntry, LedgerSource
from vaultly.utils.dates import month_key
from vaultly.utils.money import from_cents, to_cents

FUND_CATEGORY = "Ahorro / Fondos"
CREDIT_CATEGORY = "Deudas / Créditos"
PROJECT_CATEGORY = "Proyecto"


def _transaction_entries(transactions: Iterable[Transaction]) -> list[LedgerEntry]:
    return [
        LedgerEntry(
            id=f"tx-{tx.id}",
            original_id=tx.id,
            date=tx.date,
            description=tx.description,
            amount=tx.amount,
            type=tx.type,
            source=LedgerSource.TRANSACTION,
            category=tx.category,
        )
        for tx in transactions
    ]


def _fund_entries(funds: Iterable[Fund]) -> list[LedgerEntry]:
    entries = []
    for fund in funds:
        for item in fund.history:
            is_deposit = item.type == FundMovementType.DEPOSIT
            entries.append(LedgerEntry(
                id=f"fund-{item.id}",
                original_id=item.id,
                date=item.date,
                description=(
                    f"Ingreso a Fondo: {fund.name}" if is_deposit
                    else f"Retiro de Fondo: {fund.name}"
                ),
                amount=item.amount,
                type=TransactionType.EXPENSE if is_deposit else TransactionType.INCOME,
                source=LedgerSource.FUND,
                category=FUND_CATEGORY,
                fund_name=fund.name,
                icon=fund.icon,
            ))
    return entries


def _credit_entries(credits: Iterable[Credit]) -> list[LedgerEntry]:
    return [
        LedgerEntry(
            id=f"credit-{payment.id}",
            original_id=payment.id,
            date=payment.date,
            description=f"Pago Crédito: {credit.name}",
            amount=payment.amount,
            type=TransactionType.EXPENSE,
            source=LedgerSource.CREDIT,
            category=CREDIT_CATEGORY,
            credit_name=credit.name,
        )
        for credit in credits
        for payment in credit.payments
    ]


def _project_entries(projects: Iterable[Project]) -> list[LedgerEntry]:
    return [
        LedgerEntry(
            id=f"proj-{tx.id}",
            original_id=tx.id,
            date=tx.date,
            description=f"Proyecto [{project.name}]: {tx.description}",
            amount=tx.amount,
            type=tx.type,
            source=LedgerSource.PROJECT,
            category=tx.category or PROJECT_CATEGORY,
            project_name=project.name,
        )
        for project in projects
        for tx in project.transactions
    ]


def build_ledger(
    transactions: Iterable[Transaction],
    funds: Iterable[Fund],
    credits: Iterable[Credit],
    projects: Iterable[Project],
) -> list[LedgerEntry]:
    """
    One entry per source item, sorted by date descending.

    Entries sharing a date keep source order: transactions, funds, credits,
    projects.
    """
    entries = [
        *_transaction_entries(transactions),
        *_fund_entries(funds),
        *_credit_entries(credits),
        *_project_entries(projects),
    ]
    return sorted(entries, key=lambda e: e.date, reverse=True)


def _matches_search(entry: LedgerEntry, needle: str) -> bool:
    haystack = (
        entry.description,
        entry.category,
        entry.fund_name or "",
        entry.credit_name or "",
        entry.project_name or "",
    )
    return any(needle in field.lower() for field in haystack)


def filter_ledger(
    entries: Iterable[LedgerEntry],
    source: Optional[LedgerSource] = None,
    search: Optional[str] = None,
    entry_type: Optional[TransactionType] = None,
    date_from: Optional[date] = None,
    date_to: Optional[date] = None,
    month: Optional[str] = None,
) -> list[LedgerEntry]:
    """
    Filter a ledger, preserving its order.

    `search` is a case-insensitive substring match over description,
    category and fund/credit/project name. `month` is YYYY-MM.
    """
    needle = search.strip().lower() if search else ""
    result = []
    for entry in entries:
        if source is not None and entry.source != source:
            continue
        if entry_type is not None and entry.type != entry_type:
            continue
        if date_from is not None and entry.date < date_from:
            continue
        if date_to is not None and entry.date > date_to:
            continue
        if month is not None and month_key(entry.date) != month:
            continue
        if needle and not _matches_search(entry, needle):
            continue
        result.append(entry)
    return result


def group_by_date(entries: Iterable[LedgerEntry]) -> list[LedgerDayGroup]:
    """Group consecutive-date entries, keeping the incoming order of dates."""
    groups: dict[date, list[LedgerEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.date, []).append(entry)

    result = []
    for day, day_entries in groups.items():
        income, expense = ledger_totals_cents(day_entries)
        result.append(LedgerDayGroup(
            date=day,
            entries=day_entries,
            income=from_cents(income),
            expense=from_cents(expense),
        ))
    return result


def ledger_totals_cents(entries: Iterable[LedgerEntry]) -> tuple[int, int]:
    """(income_cents, expense_cents) over ledger entries."""
    income = expense = 0
    for entry in entries:
        if entry.type == TransactionType.INCOME:
            income += to_cents(entry.amount)
        else:
            expense += to_cents(entry.amount)
    return income, expense
