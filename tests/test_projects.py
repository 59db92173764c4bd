"""Tests for project stats and budget lines."""

from datetime import date

from vaultly.engine.projects import (
    NEXT_STATUS,
    budget_line_usage,
    get_project_stats,
    requires_wallet_transfer,
    task_progress,
    unallocated_funds,
    with_budget_line,
    with_transaction,
    without_transaction,
)
from vaultly.models.records import (
    BudgetLine,
    FundingSource,
    Project,
    ProjectStatus,
    ProjectTransaction,
    Task,
    TransactionType,
)

DAY = date(2025, 3, 10)


def project_income(amount, source=FundingSource.INTERNAL):
    return ProjectTransaction(amount=amount, type=TransactionType.INCOME, funding_source=source, date=DAY)


def project_expense(amount, line_id=None):
    return ProjectTransaction(amount=amount, type=TransactionType.EXPENSE, budget_line_id=line_id, date=DAY)


def funded_project():
    line = BudgetLine(id="line-1", name="Materiales", allocated_amount=400, spent_amount=999)
    return Project(
        name="Casa",
        target_budget=1000,
        budget_lines=[line],
        transactions=[
            project_income(600),
            project_income(200, FundingSource.EXTERNAL),
            project_expense(150, "line-1"),
            project_expense(150),
        ],
    )


class TestProjectStats:
    """Tests for project totals and percentages."""

    def test_stats(self):
        stats = get_project_stats(funded_project())
        assert stats.total_income == 800.0
        assert stats.total_expenses == 300.0
        assert stats.budget_remaining == 700.0
        assert stats.percent_consumed == 30.0
        assert stats.percent_funded == 50.0
        assert stats.current_balance == 500.0

    def test_zero_budget_percentages(self):
        stats = get_project_stats(Project(name="Sin presupuesto", transactions=[project_income(10)]))
        assert stats.percent_consumed == 0.0
        assert stats.percent_funded == 0.0
        assert stats.current_balance == 10.0

    def test_task_progress(self):
        project = Project(name="Casa", tasks=[
            Task(title="Planos", completed=True),
            Task(title="Permisos"),
            Task(title="Obra"),
            Task(title="Mudanza", completed=True),
        ])
        assert task_progress(project) == 50.0
        assert task_progress(Project(name="Vacío")) == 0.0


class TestBudgetLines:
    """Tests for budget line usage and allocation."""

    def test_usage_is_recomputed_from_transactions(self):
        """The stored spent_amount is ignored."""
        usage = budget_line_usage(funded_project())
        assert len(usage) == 1
        assert usage[0].spent_amount == 150.0
        assert usage[0].remaining_amount == 250.0
        assert usage[0].percent_used == 37.5

    def test_unallocated_funds(self):
        project = funded_project()
        assert unallocated_funds(project) == 400.0
        assert unallocated_funds(project, excluding="line-1") == 800.0

    def test_with_budget_line(self):
        project = with_budget_line(funded_project(), BudgetLine(name="Mano de obra", allocated_amount=100))
        assert [line.name for line in project.budget_lines] == ["Materiales", "Mano de obra"]


class TestProjectTransactions:
    """Tests for adding and removing project transactions."""

    def test_with_transaction_prepends_and_recomputes(self):
        project = funded_project()
        updated = with_transaction(project, project_expense(50, "line-1"))

        assert updated.transactions[0].amount == 50
        assert updated.transactions[0].project_id == project.id
        assert updated.budget_lines[0].spent_amount == 200.0
        assert len(project.transactions) == 4

    def test_without_transaction(self):
        project = funded_project()
        tagged = project.transactions[2]
        updated = without_transaction(project, tagged.id)

        assert len(updated.transactions) == 3
        assert updated.budget_lines[0].spent_amount == 0.0

    def test_requires_wallet_transfer(self):
        assert requires_wallet_transfer(project_income(10))
        assert not requires_wallet_transfer(project_income(10, FundingSource.EXTERNAL))
        assert not requires_wallet_transfer(project_income(10, None))
        assert not requires_wallet_transfer(project_expense(10))


class TestStatusCycle:
    """Tests for the status toggle."""

    def test_cycle(self):
        status = ProjectStatus.PLANNING
        seen = []
        for _ in range(3):
            status = NEXT_STATUS[status]
            seen.append(status)
        assert seen == [ProjectStatus.ACTIVE, ProjectStatus.COMPLETED, ProjectStatus.PLANNING]

    def test_every_status_has_a_successor(self):
        assert set(NEXT_STATUS) == set(ProjectStatus)
