"""
Main Orchestrator for Vaultly

This module ties the engine, validator, stores and audit log together and
defines every mutation flow:
1. Transactions (add, remove, bulk category rename, scheduled processing)
2. Savings (goal contributions/withdrawals, fund deposits/withdrawals)
3. Credits (creation, payments mirrored into the wallet)
4. Projects (capital injection, expenses, budget lines, status)

DESIGN DECISION: The orchestrator enforces the boundaries:
- Nothing is written before validation passes
- Money leaving the wallet is checked against the CURRENT balance
- Every write is audited

Cross-store flows (credit payment, internal capital injection, scheduled
processing) are two sequential writes to two collections. There is no
multi-document transaction in the backing store, so they run as a saga:

    validate -> write A -> write B -> audit

If write B fails, write A is NOT rolled back. The flow raises
ConsistencyGapError naming the orphaned record and logs a CONSISTENCY_GAP
audit event so the gap can be repaired by hand.
"""

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from vaultly.audit import AuditLogger, configure_logging, create_correlation_id
from vaultly.config import get_settings
from vaultly.engine import credits as credit_engine
from vaultly.engine import funds as fund_engine
from vaultly.engine import goals as goal_engine
from vaultly.engine import projects as project_engine
from vaultly.engine.finance import FinanceEngine
from vaultly.engine.scheduled import mark_processed, to_transaction
from vaultly.engine.transactions import with_renamed_category
from vaultly.models.audit import AuditEventBuilder, AuditEventType
from vaultly.models.records import (
    AutoSaveConfig,
    BudgetLine,
    Credit,
    CreditStatus,
    Fund,
    FundingSource,
    FundMovementType,
    Goal,
    Project,
    ProjectStatus,
    ProjectTransaction,
    RecoveryStrategy,
    ScheduledTransaction,
    Transaction,
    TransactionType,
)
from vaultly.models.validation import ValidationIssue, ValidationResult
from vaultly.queries import LedgerQueryExecutor
from vaultly.services.storage import (
    FinanceRepositories,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    InMemoryAuditStorage,
    RecordStore,
    StorageError,
)
from vaultly.validation import FinanceValidator, InsufficientFundsError, ValidationFailedError

logger = structlog.get_logger(__name__)


class ConsistencyGapError(StorageError):
    """
    The first write of a two-store flow landed and the second did not.

    The orphaned record is left in place for manual repair.
    """

    def __init__(
        self,
        flow: str,
        orphan_collection: str,
        orphan_id: str,
        failed_step: str,
        cause: Exception,
    ):
        self.flow = flow
        self.orphan_collection = orphan_collection
        self.orphan_id = orphan_id
        self.failed_step = failed_step
        self.cause = cause
        super().__init__(
            f"{flow}: '{failed_step}' failed after {orphan_collection} record "
            f"{orphan_id} was written ({cause})"
        )


class _BaseFlow:
    """Shared plumbing: validation, affordability, audited writes."""

    def __init__(
        self,
        repositories: FinanceRepositories,
        engine: Optional[FinanceEngine] = None,
        validator: Optional[FinanceValidator] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._repos = repositories
        self._engine = engine or FinanceEngine(repositories)
        self._validator = validator or FinanceValidator()
        self._audit_logger = audit_logger

    @property
    def settings(self):
        return self._engine.settings

    def _today(self) -> date:
        return self._engine.today()

    async def _check(self, result: ValidationResult, correlation_id: UUID) -> None:
        """Audit and raise if the validation result has errors."""
        if result.has_errors:
            if self._audit_logger:
                await self._audit_logger.log_validation_failed(
                    action=result.action,
                    issues=[issue.model_dump() for issue in result.issues],
                    correlation_id=correlation_id,
                )
            raise ValidationFailedError(result)

    async def _ensure_affordable(self, action: str, amount: float, correlation_id: UUID) -> None:
        """Reject `amount` if it exceeds the current balance."""
        available = self._engine.current_balance()
        try:
            self._validator.ensure_affordable(action, amount, available)
        except InsufficientFundsError:
            if self._audit_logger:
                await self._audit_logger.log_insufficient_funds(
                    action=action,
                    available=available,
                    needed=amount,
                    correlation_id=correlation_id,
                )
            raise

    async def _write(
        self,
        store: RecordStore,
        operation: str,
        call: Callable[[], Awaitable[Any]],
        correlation_id: UUID,
    ) -> Any:
        """Run a single store write, auditing a failure before re-raising."""
        try:
            return await call()
        except StorageError as e:
            if self._audit_logger:
                await self._audit_logger.log_store_write_failed(
                    collection=store.collection,
                    operation=operation,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

    async def _second_write(
        self,
        flow: str,
        orphan_collection: str,
        orphan_id: str,
        failed_step: str,
        call: Callable[[], Awaitable[Any]],
        correlation_id: UUID,
    ) -> Any:
        """Second write of a saga; failure becomes a ConsistencyGapError."""
        try:
            return await call()
        except StorageError as e:
            logger.error(
                "consistency_gap",
                flow=flow,
                orphan_collection=orphan_collection,
                orphan_id=orphan_id,
                failed_step=failed_step,
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_consistency_gap(
                    flow=flow,
                    orphan_collection=orphan_collection,
                    orphan_id=orphan_id,
                    failed_step=failed_step,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise ConsistencyGapError(flow, orphan_collection, orphan_id, failed_step, e) from e

    async def _audit(self, event) -> None:
        if self._audit_logger:
            await self._audit_logger.log(event)


class TransactionFlow(_BaseFlow):
    """Wallet transactions and recurring (scheduled) transactions."""

    async def add_transaction(
        self,
        amount: float,
        transaction_type: TransactionType,
        category: str = "",
        description: str = "",
        when: Optional[date] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Transaction:
        """
        Record an income or expense in the wallet.

        Expenses are not checked against the balance; the wallet may go
        negative.
        """
        correlation_id = correlation_id or create_correlation_id()
        await self._check(
            self._validator.validate_transaction(amount, category, description),
            correlation_id,
        )

        tx = Transaction(
            amount=amount,
            type=transaction_type,
            category=category,
            description=description,
            date=when or self._today(),
        )
        store = self._repos.transactions
        await self._write(store, "add transaction", lambda: store.add(tx), correlation_id)

        if self._audit_logger:
            await self._audit_logger.log_transaction_added(
                transaction_id=tx.id,
                transaction_type=tx.type.value,
                amount=tx.amount,
                category=tx.category,
                correlation_id=correlation_id,
            )
        return tx

    async def remove_transaction(
        self,
        transaction_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        correlation_id = correlation_id or create_correlation_id()
        store = self._repos.transactions
        await self._write(
            store, "remove transaction", lambda: store.remove(transaction_id), correlation_id
        )
        await self._audit(AuditEventBuilder.transaction_removed(transaction_id, correlation_id))

    async def rename_category(
        self,
        old_category: str,
        new_category: str,
        correlation_id: Optional[UUID] = None,
    ) -> int:
        """
        Rename a category on every transaction that uses it.

        Returns:
            Number of transactions changed
        """
        correlation_id = correlation_id or create_correlation_id()
        if not new_category or not new_category.strip():
            await self._check(ValidationResult(action="rename_category", issues=[ValidationIssue(
                field="category",
                issue_type="missing",
                message="New category name is required",
                severity="error",
            )]), correlation_id)

        store = self._repos.transactions
        renamed = with_renamed_category(store.list(), old_category, new_category.strip())
        for tx in renamed:
            await self._write(
                store,
                "rename category",
                lambda tx=tx: store.update(tx.id, {"category": tx.category}),
                correlation_id,
            )

        await self._audit(AuditEventBuilder.category_renamed(
            old_category, new_category, len(renamed), correlation_id
        ))
        return len(renamed)

    async def add_scheduled(
        self,
        amount: float,
        transaction_type: TransactionType,
        day_of_month: int,
        category: str = "",
        description: str = "",
    ) -> ScheduledTransaction:
        correlation_id = create_correlation_id()
        await self._check(self._validator.validate_amount("add_scheduled", amount), correlation_id)
        item = ScheduledTransaction(
            amount=amount,
            type=transaction_type,
            category=category,
            description=description,
            day_of_month=day_of_month,
            created_at=datetime.combine(self._today(), datetime.min.time()),
        )
        store = self._repos.scheduled
        await self._write(store, "add scheduled", lambda: store.add(item), correlation_id)
        return item

    async def set_scheduled_active(self, scheduled_id: str, active: bool) -> None:
        store = self._repos.scheduled
        await self._write(
            store,
            "toggle scheduled",
            lambda: store.update(scheduled_id, {"active": active}),
            create_correlation_id(),
        )

    async def remove_scheduled(self, scheduled_id: str) -> None:
        store = self._repos.scheduled
        await self._write(
            store, "remove scheduled", lambda: store.remove(scheduled_id), create_correlation_id()
        )

    async def process_scheduled(
        self,
        correlation_id: Optional[UUID] = None,
    ) -> list[Transaction]:
        """
        Create this month's transaction for every due scheduled item.

        Each item is a two-step saga: the transaction is added, then the
        item is stamped as processed. A failed stamp leaves the transaction
        in place and raises ConsistencyGapError (the item would otherwise be
        processed twice).
        """
        correlation_id = correlation_id or create_correlation_id()
        today = self._today()
        created: list[Transaction] = []

        for item in self._engine.due_scheduled():
            tx = to_transaction(item, today)
            await self._write(
                self._repos.transactions,
                "add recurring transaction",
                lambda tx=tx: self._repos.transactions.add(tx),
                correlation_id,
            )
            stamped = mark_processed(item, today)
            await self._second_write(
                flow="process_scheduled",
                orphan_collection="transactions",
                orphan_id=tx.id,
                failed_step="mark scheduled item processed",
                call=lambda item=item, stamped=stamped: self._repos.scheduled.update(
                    item.id, {"last_processed_date": stamped.last_processed_date}
                ),
                correlation_id=correlation_id,
            )
            created.append(tx)

        if created:
            await self._audit(AuditEventBuilder.scheduled_processed(
                [tx.id for tx in created], correlation_id
            ))
        return created


class SavingsFlow(_BaseFlow):
    """
    Goal contributions/withdrawals and fund deposits/withdrawals.

    Deposits earmark money: they do not create a wallet transaction, they
    lower the available balance through the goal/fund history.
    """

    async def create_goal(
        self,
        name: str,
        target_amount: float,
        deadline: Optional[date] = None,
        icon: Optional[str] = None,
        start_date: Optional[date] = None,
    ) -> Goal:
        correlation_id = create_correlation_id()
        await self._check(
            self._validator.validate_amount("create_goal", target_amount), correlation_id
        )
        goal = Goal(
            name=name,
            target_amount=target_amount,
            deadline=deadline,
            icon=icon,
            start_date=start_date or self._today(),
        )
        store = self._repos.goals
        await self._write(store, "create goal", lambda: store.add(goal), correlation_id)
        return goal

    async def contribute_to_goal(
        self,
        goal_id: str,
        amount: float,
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Goal:
        """Earmark `amount` for a goal. Rejected if it exceeds the current balance."""
        correlation_id = correlation_id or create_correlation_id()
        store = self._repos.goals
        goal = store.require(goal_id)
        await self._check(
            self._validator.validate_amount("goal_contribution", amount), correlation_id
        )
        await self._ensure_affordable("goal_contribution", amount, correlation_id)

        updated = goal_engine.with_contribution(goal, amount, self._today(), note)
        await self._write(
            store,
            "contribute to goal",
            lambda: store.update(goal_id, {
                "current_amount": updated.current_amount,
                "last_contribution_date": updated.last_contribution_date,
                "history": updated.history,
            }),
            correlation_id,
        )
        if self._audit_logger:
            await self._audit_logger.log_savings_movement(
                AuditEventType.GOAL_CONTRIBUTION, "goals", goal_id, amount, correlation_id
            )
        return updated

    async def pay_goal_quota(self, goal_id: str) -> Goal:
        """Contribute exactly this month's quota."""
        goal = self._repos.goals.require(goal_id)
        quota = self._engine.get_monthly_quota(goal)
        return await self.contribute_to_goal(goal_id, quota, goal_engine.MONTHLY_QUOTA_NOTE)

    async def withdraw_from_goal(
        self,
        goal_id: str,
        amount: float,
        note: Optional[str] = None,
        recovery_strategy: Optional[RecoveryStrategy] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Goal:
        """Release earmarked money back to the wallet. The saved total floors at 0."""
        correlation_id = correlation_id or create_correlation_id()
        store = self._repos.goals
        goal = store.require(goal_id)
        await self._check(
            self._validator.validate_withdrawal("goal_withdrawal", amount, goal.current_total()),
            correlation_id,
        )

        updated = goal_engine.with_withdrawal(goal, amount, self._today(), note, recovery_strategy)
        await self._write(
            store,
            "withdraw from goal",
            lambda: store.update(goal_id, {
                "current_amount": updated.current_amount,
                "recovery_strategy": updated.recovery_strategy,
                "history": updated.history,
            }),
            correlation_id,
        )
        if self._audit_logger:
            await self._audit_logger.log_savings_movement(
                AuditEventType.GOAL_WITHDRAWAL, "goals", goal_id, amount, correlation_id
            )
        return updated

    async def create_fund(
        self,
        name: str,
        icon: str = "piggy-bank",
        color: Optional[str] = None,
        description: Optional[str] = None,
        auto_save_config: Optional[AutoSaveConfig] = None,
    ) -> Fund:
        fund = Fund(
            name=name,
            icon=icon,
            color=color,
            description=description,
            auto_save_config=auto_save_config,
        )
        store = self._repos.funds
        await self._write(store, "create fund", lambda: store.add(fund), create_correlation_id())
        return fund

    async def deposit_to_fund(
        self,
        fund_id: str,
        amount: float,
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Fund:
        correlation_id = correlation_id or create_correlation_id()
        fund = self._repos.funds.require(fund_id)
        await self._check(self._validator.validate_amount("fund_deposit", amount), correlation_id)
        await self._ensure_affordable("fund_deposit", amount, correlation_id)
        return await self._move_fund(
            fund, amount, FundMovementType.DEPOSIT, note, AuditEventType.FUND_DEPOSIT, correlation_id
        )

    async def withdraw_from_fund(
        self,
        fund_id: str,
        amount: float,
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Fund:
        correlation_id = correlation_id or create_correlation_id()
        fund = self._repos.funds.require(fund_id)
        await self._check(
            self._validator.validate_withdrawal("fund_withdrawal", amount, fund.current_total()),
            correlation_id,
        )
        return await self._move_fund(
            fund, amount, FundMovementType.WITHDRAW, note, AuditEventType.FUND_WITHDRAWAL, correlation_id
        )

    async def _move_fund(
        self,
        fund: Fund,
        amount: float,
        movement: FundMovementType,
        note: Optional[str],
        event_type: AuditEventType,
        correlation_id: UUID,
    ) -> Fund:
        store = self._repos.funds
        updated = fund_engine.with_movement(fund, amount, movement, self._today(), note)
        await self._write(
            store,
            f"{movement.value} fund",
            lambda: store.update(fund.id, {
                "current_amount": updated.current_amount,
                "history": updated.history,
            }),
            correlation_id,
        )
        if self._audit_logger:
            await self._audit_logger.log_savings_movement(
                event_type, "funds", fund.id, amount, correlation_id
            )
        return updated


class CreditFlow(_BaseFlow):
    """Installment credits and their payments."""

    async def create_credit(
        self,
        name: str,
        principal: float,
        term: int,
        interest_rate: Optional[float] = None,
        quota: Optional[float] = None,
        start_date: Optional[date] = None,
    ) -> Credit:
        """
        Register a credit.

        Either the annual `interest_rate` or the known monthly `quota` must
        be given; a quota is turned into a rate with the bisection solver.
        """
        correlation_id = create_correlation_id()
        if interest_rate is None:
            if quota is None:
                raise ValueError("Either interest_rate or quota is required")
            interest_rate = self._engine.solve_interest_rate(principal, quota, term)

        await self._check(
            self._validator.validate_credit(name, principal, interest_rate, term), correlation_id
        )
        credit = Credit(
            name=name,
            principal=principal,
            interest_rate=interest_rate,
            term=term,
            start_date=start_date or self._today(),
        )
        store = self._repos.credits
        await self._write(store, "create credit", lambda: store.add(credit), correlation_id)
        return credit

    async def pay_credit(
        self,
        credit_id: str,
        amount: Optional[float] = None,
        note: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Credit, Transaction]:
        """
        Pay a credit installment.

        Saga:
        1. Append the payment to the credit (status may flip to paid)
        2. Mirror the payment as a wallet expense

        Args:
            amount: Defaults to the credit's quota

        Returns:
            (updated credit, mirrored wallet transaction)

        Raises:
            InsufficientFundsError: amount exceeds the current balance
            ConsistencyGapError: the payment landed but the wallet expense did not
        """
        correlation_id = correlation_id or create_correlation_id()
        store = self._repos.credits
        credit = store.require(credit_id)
        if amount is None:
            amount = self._engine.get_credit_status(credit).quota

        await self._check(self._validator.validate_credit_payment(credit, amount), correlation_id)
        await self._ensure_affordable("credit_payment", amount, correlation_id)

        today = self._today()
        updated = credit_engine.with_payment(
            credit, amount, today, note, self.settings.payment_tolerance
        )
        payment = updated.payments[-1]
        await self._write(
            store,
            "add credit payment",
            lambda: store.update(credit_id, {
                "payments": updated.payments,
                "status": updated.status,
            }),
            correlation_id,
        )

        mirror = Transaction(
            amount=amount,
            type=TransactionType.EXPENSE,
            category=self.settings.credit_payment_category,
            description=f"Pago Crédito: {credit.name}",
            date=today,
        )
        await self._second_write(
            flow="credit_payment",
            orphan_collection="credits",
            orphan_id=payment.id,
            failed_step="mirror wallet expense",
            call=lambda: self._repos.transactions.add(mirror),
            correlation_id=correlation_id,
        )

        status = self._engine.get_credit_status(updated)
        await self._audit(AuditEventBuilder.credit_payment(
            credit_id, amount, status.total_paid, correlation_id
        ))
        if credit.status == CreditStatus.ACTIVE and updated.status == CreditStatus.PAID:
            await self._audit(AuditEventBuilder.credit_paid_off(
                credit_id, status.total_paid, status.total_to_pay, correlation_id
            ))
        return updated, mirror


class ProjectFlow(_BaseFlow):
    """Projects: capital, expenses, budget lines and status."""

    async def create_project(
        self,
        name: str,
        target_budget: float = 0.0,
        description: Optional[str] = None,
        deadline: Optional[date] = None,
    ) -> Project:
        project = Project(
            name=name,
            target_budget=target_budget,
            description=description,
            deadline=deadline,
            status=ProjectStatus.PLANNING,
            start_date=self._today(),
        )
        store = self._repos.projects
        await self._write(store, "create project", lambda: store.add(project), create_correlation_id())
        return project

    async def add_transaction(
        self,
        project_id: str,
        amount: float,
        transaction_type: TransactionType,
        description: str = "",
        funding_source: Optional[FundingSource] = None,
        budget_line_id: Optional[str] = None,
        category: Optional[str] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Project:
        """
        Record a project transaction.

        Income funded internally is a capital injection and runs as a saga:
        1. Check the amount against the current wallet balance
        2. Add the mirrored wallet expense (category "Inversión")
        3. Add the income to the project

        External income and expenses touch the project only.

        Raises:
            InsufficientFundsError: internal injection exceeds the balance
            ConsistencyGapError: the wallet expense landed but the project
                income did not
        """
        correlation_id = correlation_id or create_correlation_id()
        store = self._repos.projects
        project = store.require(project_id)
        await self._check(
            self._validator.validate_amount("project_transaction", amount), correlation_id
        )

        try:
            tx = ProjectTransaction(
                project_id=project_id,
                amount=amount,
                type=transaction_type,
                funding_source=funding_source,
                budget_line_id=budget_line_id,
                date=self._today(),
                description=description,
                category=category,
            )
        except ValidationError as e:
            raise ValueError(f"Invalid project transaction: {e}") from e

        await self._check(
            self._validator.validate_project_transaction(project, tx), correlation_id
        )
        updated = project_engine.with_transaction(project, tx)

        async def write_project() -> None:
            await store.update(project_id, {
                "transactions": updated.transactions,
                "budget_lines": updated.budget_lines,
            })

        if not project_engine.requires_wallet_transfer(tx):
            await self._write(store, "add project transaction", write_project, correlation_id)
            await self._audit(AuditEventBuilder.project_transaction_added(
                project_id, tx.id, tx.type.value, amount, correlation_id
            ))
            return updated

        await self._ensure_affordable("capital_injection", amount, correlation_id)
        wallet_tx = Transaction(
            amount=amount,
            type=TransactionType.EXPENSE,
            category=self.settings.investment_category,
            description=f"Inversión Proyecto: {project.name}",
            date=self._today(),
        )
        wallet = self._repos.transactions
        await self._write(wallet, "add investment expense", lambda: wallet.add(wallet_tx), correlation_id)
        await self._second_write(
            flow="capital_injection",
            orphan_collection="transactions",
            orphan_id=wallet_tx.id,
            failed_step="add project income",
            call=write_project,
            correlation_id=correlation_id,
        )
        await self._audit(AuditEventBuilder.capital_injected(
            project_id, amount, wallet_tx.id, correlation_id
        ))
        return updated

    async def remove_transaction(self, project_id: str, transaction_id: str) -> Project:
        """
        Remove a project transaction.

        A mirrored wallet expense of an internal injection is left alone.
        """
        store = self._repos.projects
        updated = project_engine.without_transaction(store.require(project_id), transaction_id)
        await self._write(
            store,
            "remove project transaction",
            lambda: store.update(project_id, {
                "transactions": updated.transactions,
                "budget_lines": updated.budget_lines,
            }),
            create_correlation_id(),
        )
        return updated

    async def create_budget_line(
        self,
        project_id: str,
        name: str,
        allocated_amount: float,
        correlation_id: Optional[UUID] = None,
    ) -> BudgetLine:
        """Allocate part of the received funds. Over-allocation is rejected."""
        correlation_id = correlation_id or create_correlation_id()
        store = self._repos.projects
        project = store.require(project_id)
        await self._check(
            self._validator.validate_budget_line(project, name, allocated_amount), correlation_id
        )

        line = BudgetLine(name=name, allocated_amount=allocated_amount)
        updated = project_engine.with_budget_line(project, line)
        await self._write(
            store,
            "create budget line",
            lambda: store.update(project_id, {"budget_lines": updated.budget_lines}),
            correlation_id,
        )
        await self._audit(AuditEventBuilder.budget_line_created(
            project_id, line.id, allocated_amount, correlation_id
        ))
        return line

    async def cycle_status(self, project_id: str) -> ProjectStatus:
        """Advance the project to its next status."""
        store = self._repos.projects
        project = store.require(project_id)
        status = project_engine.NEXT_STATUS[project.status]
        await self._write(
            store,
            "change project status",
            lambda: store.update(project_id, {"status": status}),
            create_correlation_id(),
        )
        return status


@dataclass
class AppComponents:
    """Everything a front end needs for one user."""

    repositories: FinanceRepositories
    engine: FinanceEngine
    transactions: TransactionFlow
    savings: SavingsFlow
    credits: CreditFlow
    projects: ProjectFlow
    queries: LedgerQueryExecutor
    audit_logger: AuditLogger
    sheets_client: Optional[GoogleSheetsClient] = None


def create_app_components(
    user_id: Optional[str] = None,
    use_storage: bool = True,
    repositories: Optional[FinanceRepositories] = None,
    clock: Callable[[], datetime] = datetime.now,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        user_id: Identity whose collections are loaded. Falls back to the
                configured default user; with no identity at all the stores
                are empty and read-only.
        use_storage: Whether to use Google Sheets storage.
                    Set to False for in-memory stores.
        repositories: Pre-built stores (tests); overrides use_storage.
        clock: Source of "now" for every date-sensitive computation.

    Google Sheets stores start in the loading state; await
    `components.repositories.refresh_all()` before reading.
    """
    settings = get_settings()
    app_settings = settings.app
    configure_logging(app_settings.log_level)
    user_id = user_id or app_settings.default_user_id
    sheets_client = None
    audit_logger = None

    if repositories is None:
        if user_id is None:
            repositories = FinanceRepositories.anonymous()
            audit_logger = AuditLogger()
        elif use_storage:
            try:
                sheets_client = GoogleSheetsClient()
                repositories = FinanceRepositories.google_sheets(user_id, sheets_client)
                audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
            except ValidationError as e:
                # Storage not configured - continue in memory
                logger.warning("storage_not_configured", error=str(e))
                sheets_client = None
                repositories = FinanceRepositories.in_memory(user_id)
                audit_logger = AuditLogger(InMemoryAuditStorage())
        else:
            repositories = FinanceRepositories.in_memory(user_id)

    audit_logger = audit_logger or AuditLogger(InMemoryAuditStorage())
    engine = FinanceEngine(repositories, clock=clock, settings=settings.engine)
    validator = FinanceValidator()
    flow_args = dict(
        repositories=repositories,
        engine=engine,
        validator=validator,
        audit_logger=audit_logger,
    )

    return AppComponents(
        repositories=repositories,
        engine=engine,
        transactions=TransactionFlow(**flow_args),
        savings=SavingsFlow(**flow_args),
        credits=CreditFlow(**flow_args),
        projects=ProjectFlow(**flow_args),
        queries=LedgerQueryExecutor(engine),
        audit_logger=audit_logger,
        sheets_client=sheets_client,
    )
