"""
FinanceEngine - read facade over the live record stores

Binds the pure engine functions to one user's repositories and a clock.

DESIGN DECISION: Nothing is cached. Every call takes a fresh snapshot of the
stores, so a result can never be staler than the last snapshot replace.
"""

from datetime import date, datetime
from typing import Callable, Iterable, Optional

from vaultly.config.settings import EngineSettings
from vaultly.engine import balance, credits, goals, ledger, projects, projections, transactions
from vaultly.engine.scheduled import due_scheduled
from vaultly.models.records import (
    Credit,
    Goal,
    Project,
    ScheduledTransaction,
    TransactionType,
)
from vaultly.models.reports import (
    BalanceBreakdown,
    BudgetLineUsage,
    CategoryTotal,
    CreditStatusReport,
    LedgerDayGroup,
    LedgerEntry,
    LedgerSource,
    MonthlyProjection,
    MonthlySummary,
    ProjectStats,
    SimulatedTransaction,
)
from vaultly.services.storage.repositories import FinanceRepositories
from vaultly.utils.dates import DateLike

Clock = Callable[[], datetime]


class FinanceEngine:
    """
    All derived figures for one user.

    Args:
        repositories: The user's record stores
        clock: Returns "now"; injected so tests can freeze time
        settings: Tolerances and solver parameters
    """

    def __init__(
        self,
        repositories: FinanceRepositories,
        clock: Clock = datetime.now,
        settings: Optional[EngineSettings] = None,
    ):
        self.repositories = repositories
        self.clock = clock
        self.settings = settings or EngineSettings()

    def today(self) -> date:
        return self.clock().date()

    # Balance

    def balance_breakdown(self, query_date: DateLike) -> BalanceBreakdown:
        snap = self.repositories.snapshot()
        return balance.balance_breakdown(snap.transactions, snap.goals, snap.funds, query_date)

    def get_balance_at_date(self, query_date: DateLike) -> float:
        snap = self.repositories.snapshot()
        return balance.get_balance_at_date(snap.transactions, snap.goals, snap.funds, query_date)

    def available_balance(self, selected_period: Optional[DateLike] = None) -> float:
        """Balance at the end of the selected month (defaults to this month)."""
        snap = self.repositories.snapshot()
        return balance.available_balance(
            snap.transactions, snap.goals, snap.funds, selected_period or self.today()
        )

    def current_balance(self) -> float:
        snap = self.repositories.snapshot()
        return balance.current_balance(snap.transactions, snap.goals, snap.funds, self.today())

    # Goals

    def get_monthly_quota(self, goal: Goal) -> float:
        return goals.get_monthly_quota(goal, self.today())

    def is_goal_paid_this_month(self, goal: Goal) -> bool:
        return goals.is_goal_paid_this_month(goal, self.today(), self.settings.goal_paid_tolerance)

    def get_total_savings_at_date(self, when: DateLike) -> float:
        return goals.get_total_savings_at_date(self.repositories.goals.list(), when)

    def get_months_remaining(self, goal: Goal) -> int:
        return goals.get_months_remaining(goal, self.today())

    # Credits

    def calculate_quota(self, principal: float, annual_rate_pct: float, term_months: int) -> float:
        return credits.calculate_quota(principal, annual_rate_pct, term_months)

    def solve_interest_rate(self, principal: float, quota: float, term_months: int) -> float:
        return credits.solve_interest_rate(
            principal,
            quota,
            term_months,
            iterations=self.settings.rate_solver_iterations,
            low=self.settings.rate_solver_low,
            high=self.settings.rate_solver_high,
            tolerance=self.settings.rate_solver_tolerance,
        )

    def get_credit_status(self, credit: Credit) -> CreditStatusReport:
        return credits.get_credit_status(credit)

    def next_payment_date(self, credit: Credit) -> date:
        return credits.next_payment_date(credit)

    # Projects

    def get_project_stats(self, project: Project) -> ProjectStats:
        return projects.get_project_stats(project)

    def budget_line_usage(self, project: Project) -> list[BudgetLineUsage]:
        return projects.budget_line_usage(project)

    # Ledger

    def build_ledger(self) -> list[LedgerEntry]:
        snap = self.repositories.snapshot()
        return ledger.build_ledger(snap.transactions, snap.funds, snap.credits, snap.projects)

    def filter_ledger(
        self,
        source: Optional[LedgerSource] = None,
        search: Optional[str] = None,
        entry_type: Optional[TransactionType] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        month: Optional[str] = None,
    ) -> list[LedgerEntry]:
        return ledger.filter_ledger(
            self.build_ledger(),
            source=source,
            search=search,
            entry_type=entry_type,
            date_from=date_from,
            date_to=date_to,
            month=month,
        )

    def ledger_by_date(self) -> list[LedgerDayGroup]:
        return ledger.group_by_date(self.build_ledger())

    # Transactions

    def totals_by_category(
        self,
        transaction_type: Optional[TransactionType] = None,
        month: Optional[DateLike] = None,
    ) -> list[CategoryTotal]:
        txs = self.repositories.transactions.list()
        if month is not None:
            txs = transactions.transactions_in_month(txs, month)
        return transactions.totals_by_category(txs, transaction_type)

    def monthly_summary(self, year: Optional[int] = None) -> list[MonthlySummary]:
        return transactions.monthly_summary(
            self.repositories.transactions.list(), year or self.today().year
        )

    def due_scheduled(self) -> list[ScheduledTransaction]:
        return due_scheduled(self.repositories.scheduled.list(), self.today())

    # Projection

    def monthly_projection(
        self,
        target_month: DateLike,
        simulated: Iterable[SimulatedTransaction] = (),
        excluded_ids: Optional[set[str]] = None,
        include_balance: bool = True,
    ) -> MonthlyProjection:
        """Projection of `target_month`, seeded with the current balance."""
        snap = self.repositories.snapshot()
        return projections.calculate_monthly_projection(
            target_month,
            self.today(),
            scheduled=snap.scheduled,
            goals=snap.goals,
            credits=snap.credits,
            funds=snap.funds,
            simulated=simulated,
            initial_balance=balance.current_balance(
                snap.transactions, snap.goals, snap.funds, self.today()
            ),
            excluded_ids=excluded_ids,
            include_balance=include_balance,
            goal_quota=self.get_monthly_quota,
            credit_quota=lambda credit: self.get_credit_status(credit).quota,
        )
