"""
Project Ledger & Stats Engine

Per-project totals and budget lines. A budget line's spent amount is always
recomputed from the expense transactions tagged with it; the stored
`spent_amount` field is ignored on read.
"""

from typing import Optional

from vaultly.models.records import (
    BudgetLine,
    FundingSource,
    Project,
    ProjectStatus,
    ProjectTransaction,
    TransactionType,
)
from vaultly.models.reports import BudgetLineUsage, ProjectStats
from vaultly.utils.money import from_cents, percent_of, to_cents

# Status cycle used by the status toggle
NEXT_STATUS = {
    ProjectStatus.PLANNING: ProjectStatus.ACTIVE,
    ProjectStatus.ACTIVE: ProjectStatus.COMPLETED,
    ProjectStatus.COMPLETED: ProjectStatus.PLANNING,
    ProjectStatus.PAUSED: ProjectStatus.ACTIVE,
    ProjectStatus.CANCELLED: ProjectStatus.PLANNING,
}


def project_totals_cents(project: Project) -> tuple[int, int]:
    """(income_cents, expense_cents) of a project's own ledger."""
    income = expense = 0
    for tx in project.transactions:
        if tx.type == TransactionType.INCOME:
            income += to_cents(tx.amount)
        else:
            expense += to_cents(tx.amount)
    return income, expense


def get_project_stats(project: Project) -> ProjectStats:
    """Income, expenses, budget consumption and project-local liquidity."""
    income, expense = project_totals_cents(project)
    balance = income - expense
    budget = to_cents(project.target_budget)
    return ProjectStats(
        total_income=from_cents(income),
        total_expenses=from_cents(expense),
        budget_remaining=from_cents(budget - expense),
        percent_consumed=percent_of(from_cents(expense), project.target_budget),
        percent_funded=percent_of(from_cents(balance), project.target_budget),
        current_balance=from_cents(balance),
    )


def budget_line_spent_cents(project: Project, line_id: str) -> int:
    return sum(
        (
            to_cents(tx.amount)
            for tx in project.transactions
            if tx.type == TransactionType.EXPENSE and tx.budget_line_id == line_id
        ),
        0,
    )


def budget_line_usage(project: Project) -> list[BudgetLineUsage]:
    """Every budget line with spent/remaining recomputed from transactions."""
    usage = []
    for line in project.budget_lines:
        spent = budget_line_spent_cents(project, line.id)
        allocated = to_cents(line.allocated_amount)
        usage.append(BudgetLineUsage(
            id=line.id,
            name=line.name,
            allocated_amount=line.allocated_amount,
            spent_amount=from_cents(spent),
            remaining_amount=from_cents(allocated - spent),
            percent_used=percent_of(from_cents(spent), line.allocated_amount),
        ))
    return usage


def allocated_cents(project: Project, excluding: Optional[str] = None) -> int:
    """Sum of budget line allocations, optionally skipping one line."""
    return sum(
        (to_cents(line.allocated_amount) for line in project.budget_lines if line.id != excluding),
        0,
    )


def unallocated_funds(project: Project, excluding: Optional[str] = None) -> float:
    """Income actually received that no budget line has claimed yet."""
    income, _ = project_totals_cents(project)
    return from_cents(income - allocated_cents(project, excluding))


def with_recomputed_spent(project: Project) -> Project:
    """Project whose budget lines carry freshly recomputed spent amounts."""
    lines = [
        line.model_copy(update={"spent_amount": from_cents(budget_line_spent_cents(project, line.id))})
        for line in project.budget_lines
    ]
    return project.model_copy(update={"budget_lines": lines})


def with_transaction(project: Project, transaction: ProjectTransaction) -> Project:
    """Prepend a transaction (newest first) and refresh budget line spending."""
    tx = transaction.model_copy(update={"project_id": project.id})
    updated = project.model_copy(update={"transactions": [tx, *project.transactions]})
    return with_recomputed_spent(updated)


def without_transaction(project: Project, transaction_id: str) -> Project:
    remaining = [tx for tx in project.transactions if tx.id != transaction_id]
    return with_recomputed_spent(project.model_copy(update={"transactions": remaining}))


def with_budget_line(project: Project, line: BudgetLine) -> Project:
    return project.model_copy(update={"budget_lines": [*project.budget_lines, line]})


def requires_wallet_transfer(transaction: ProjectTransaction) -> bool:
    """Income funded from the user's own wallet must leave the wallet."""
    return (
        transaction.type == TransactionType.INCOME
        and transaction.funding_source == FundingSource.INTERNAL
    )


def task_progress(project: Project) -> float:
    """Percent of completed tasks, 0 for a project without tasks."""
    if not project.tasks:
        return 0.0
    done = sum(1 for task in project.tasks if task.completed)
    return done / len(project.tasks) * 100
