"""
Data Models Package

This package contains all Pydantic models used in Vaultly: persisted
records, derived report views, validation results and audit events.
"""

from vaultly.models.records import (
    AutoSaveConfig,
    AutoSaveType,
    BudgetLine,
    Credit,
    CreditStatus,
    Fund,
    FundingSource,
    FundMovementType,
    FundTransaction,
    Goal,
    GoalHistoryItem,
    GoalMovementType,
    Milestone,
    Payment,
    Project,
    ProjectMember,
    ProjectStatus,
    ProjectTransaction,
    Record,
    RecoveryStrategy,
    ScheduledTransaction,
    Task,
    Transaction,
    TransactionType,
    new_id,
)
from vaultly.models.reports import (
    BalanceBreakdown,
    BudgetLineUsage,
    CategoryTotal,
    CreditStatusReport,
    LedgerDayGroup,
    LedgerEntry,
    LedgerQuery,
    LedgerQueryResult,
    LedgerSource,
    MonthlyProjection,
    MonthlySummary,
    ProjectionItem,
    ProjectionSource,
    ProjectStats,
    SimulatedTransaction,
)
from vaultly.models.validation import ValidationIssue, ValidationResult
from vaultly.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Records
    "AutoSaveConfig",
    "AutoSaveType",
    "BudgetLine",
    "Credit",
    "CreditStatus",
    "Fund",
    "FundingSource",
    "FundMovementType",
    "FundTransaction",
    "Goal",
    "GoalHistoryItem",
    "GoalMovementType",
    "Milestone",
    "Payment",
    "Project",
    "ProjectMember",
    "ProjectStatus",
    "ProjectTransaction",
    "Record",
    "RecoveryStrategy",
    "ScheduledTransaction",
    "Task",
    "Transaction",
    "TransactionType",
    "new_id",
    # Derived views
    "BalanceBreakdown",
    "BudgetLineUsage",
    "CategoryTotal",
    "CreditStatusReport",
    "LedgerDayGroup",
    "LedgerEntry",
    "LedgerQuery",
    "LedgerQueryResult",
    "LedgerSource",
    "MonthlyProjection",
    "MonthlySummary",
    "ProjectionItem",
    "ProjectionSource",
    "ProjectStats",
    "SimulatedTransaction",
    # Validation
    "ValidationIssue",
    "ValidationResult",
    # Audit
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
