"""
Persisted Record Models for Vaultly

These models define the exact document shapes stored in the external
document store, one collection per record type:

- transactions
- goals (with deposit/withdrawal history)
- funds (with deposit/withdraw history)
- credits (with payment history)
- projects (with their own transactions, budget lines, milestones, tasks)
- scheduled (recurring transaction templates)

DESIGN DECISION: Python attributes are snake_case, documents are camelCase.
`to_document()` and `model_validate()` round-trip a stored document exactly.

Goal and Fund keep a cached `current_amount` next to an append-only history.
The cache is what `current_total()` returns; anything asking "as of a date"
must call `total_as_of()`, which replays the history.
"""

from datetime import date, datetime
from enum import Enum
from typing import Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from vaultly.utils.dates import DateLike, as_date
from vaultly.utils.money import from_cents, to_cents


def new_id() -> str:
    """Generate a record identifier."""
    return str(uuid4())


# =============================================================================
# ENUMS
# =============================================================================

class TransactionType(str, Enum):
    """Direction of money relative to the user's wallet."""
    INCOME = "income"
    EXPENSE = "expense"


class GoalMovementType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAWAL = "withdrawal"


class FundMovementType(str, Enum):
    DEPOSIT = "deposit"
    WITHDRAW = "withdraw"


class RecoveryStrategy(str, Enum):
    """Stored with the goal; the quota rule itself is always the dynamic spread."""
    SPREAD = "spread"
    CATCH_UP = "catch_up"


class CreditStatus(str, Enum):
    """
    Credit lifecycle.

    active -> paid happens when payments cover the total to pay.
    paid never reverts to active automatically.
    """
    ACTIVE = "active"
    PAID = "paid"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class FundingSource(str, Enum):
    """
    Where project income capital came from.

    INTERNAL capital leaves the user's wallet, EXTERNAL does not.
    """
    INTERNAL = "internal"
    EXTERNAL = "external"


class AutoSaveType(str, Enum):
    FIXED = "fixed"
    PERCENTAGE = "percentage"


# =============================================================================
# BASE
# =============================================================================

class Record(BaseModel):
    """Base for every persisted document."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_document(self) -> dict:
        """Serialize to the camelCase JSON document stored remotely."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# TRANSACTIONS
# =============================================================================

class Transaction(Record):
    """A wallet income or expense."""

    id: str = Field(default_factory=new_id)
    amount: float = Field(..., ge=0, description="Major units, always positive")
    type: TransactionType
    category: str = Field(default="")
    description: str = Field(default="")
    date: date
    is_recurring: Optional[bool] = None

    @property
    def amount_cents(self) -> int:
        return to_cents(self.amount)

    @property
    def signed_cents(self) -> int:
        """Cents with income positive and expense negative."""
        return self.amount_cents if self.type == TransactionType.INCOME else -self.amount_cents


# =============================================================================
# GOALS AND FUNDS
# =============================================================================

class GoalHistoryItem(Record):
    id: str = Field(default_factory=new_id)
    date: date
    amount: float = Field(..., ge=0)
    type: GoalMovementType
    note: Optional[str] = None

    @property
    def signed_cents(self) -> int:
        cents = to_cents(self.amount)
        return cents if self.type == GoalMovementType.DEPOSIT else -cents


class FundTransaction(Record):
    id: str = Field(default_factory=new_id)
    fund_id: Optional[str] = None
    date: date
    amount: float = Field(..., ge=0)
    type: FundMovementType
    note: Optional[str] = None

    @property
    def signed_cents(self) -> int:
        cents = to_cents(self.amount)
        return cents if self.type == FundMovementType.DEPOSIT else -cents


class _EarmarkedRecord(Record):
    """
    Shared cache/replay behaviour of goals and funds.

    Subclasses provide `current_amount` and `history`.
    """

    def current_total(self) -> float:
        """The cached running total. Not valid for historical queries."""
        return self.current_amount

    def saved_cents_as_of(self, until: Optional[DateLike] = None) -> int:
        """
        Replay history up to and including `until`, clamped at zero.

        A goal or fund can never earmark a negative amount.
        """
        limit = as_date(until) if until is not None else None
        total = 0
        for item in self.history:
            if limit is None or item.date <= limit:
                total += item.signed_cents
        return max(0, total)

    def total_as_of(self, until: Optional[DateLike] = None) -> float:
        """Replayed total as of a date, in major units."""
        return from_cents(self.saved_cents_as_of(until))


class Goal(_EarmarkedRecord):
    """
    A savings goal.

    Created with current_amount=0 and an empty history. Never expires,
    even past its deadline.
    """

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    target_amount: float = Field(..., gt=0)
    current_amount: float = Field(default=0.0, ge=0)
    start_date: date
    deadline: Optional[date] = None
    icon: Optional[str] = None
    last_contribution_date: Optional[date] = None
    recovery_strategy: RecoveryStrategy = RecoveryStrategy.SPREAD
    history: list[GoalHistoryItem] = Field(default_factory=list)


class AutoSaveConfig(Record):
    """Monthly automatic transfer into a fund."""

    enabled: bool = False
    type: AutoSaveType = AutoSaveType.FIXED
    amount: float = Field(default=0.0, ge=0, description="Fixed amount or percent of balance")
    day_of_month: int = Field(default=1, ge=1, le=31)


class Fund(_EarmarkedRecord):
    """An earmarked pot of money with no target or deadline."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    icon: str = Field(default="piggy-bank")
    color: Optional[str] = None
    description: Optional[str] = None
    current_amount: float = Field(default=0.0, ge=0)
    history: list[FundTransaction] = Field(default_factory=list)
    auto_save_config: Optional[AutoSaveConfig] = None


# =============================================================================
# CREDITS
# =============================================================================

class Payment(Record):
    id: str = Field(default_factory=new_id)
    credit_id: str
    date: date
    amount: float = Field(..., gt=0)
    note: Optional[str] = None


class Credit(Record):
    """An installment loan amortized with a fixed monthly quota."""

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    principal: float = Field(..., gt=0)
    interest_rate: float = Field(default=0.0, ge=0, description="Annual percent")
    term: int = Field(..., ge=1, description="Months")
    start_date: date
    status: CreditStatus = CreditStatus.ACTIVE
    payments: list[Payment] = Field(default_factory=list)

    @property
    def total_paid_cents(self) -> int:
        return sum((to_cents(p.amount) for p in self.payments), 0)


# =============================================================================
# PROJECTS
# =============================================================================

class ProjectTransaction(Record):
    """
    A movement inside a project's own ledger.

    funding_source only applies to income, budget_line_id only to expenses.
    """

    id: str = Field(default_factory=new_id)
    project_id: Optional[str] = None
    amount: float = Field(..., gt=0)
    type: TransactionType
    funding_source: Optional[FundingSource] = None
    budget_line_id: Optional[str] = None
    date: date
    description: str = Field(default="")
    category: Optional[str] = None

    @model_validator(mode='after')
    def validate_type_specific_fields(self) -> 'ProjectTransaction':
        if self.type == TransactionType.EXPENSE and self.funding_source is not None:
            raise ValueError("Funding source only applies to income transactions")
        if self.type == TransactionType.INCOME and self.budget_line_id is not None:
            raise ValueError("Budget lines only apply to expense transactions")
        return self


class BudgetLine(Record):
    """
    A slice of the project budget.

    spent_amount is stored for round-tripping only; the engine recomputes it
    from the expense transactions tagged with this line.
    """

    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    allocated_amount: float = Field(..., ge=0)
    spent_amount: float = Field(default=0.0, ge=0)


class Milestone(Record):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    due_date: Optional[date] = None
    completed: bool = False


class Task(Record):
    id: str = Field(default_factory=new_id)
    title: str = Field(..., min_length=1)
    completed: bool = False
    milestone_id: Optional[str] = None
    assignee_id: Optional[str] = None


class ProjectMember(Record):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1)
    role: str = Field(default="member")


class Project(Record):
    id: str = Field(default_factory=new_id)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None
    target_budget: float = Field(default=0.0, ge=0)
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: Optional[date] = None
    deadline: Optional[date] = None
    transactions: list[ProjectTransaction] = Field(default_factory=list)
    budget_lines: list[BudgetLine] = Field(default_factory=list)
    milestones: list[Milestone] = Field(default_factory=list)
    tasks: list[Task] = Field(default_factory=list)
    members: list[ProjectMember] = Field(default_factory=list)

    def find_budget_line(self, line_id: str) -> Optional[BudgetLine]:
        return next((line for line in self.budget_lines if line.id == line_id), None)


# =============================================================================
# SCHEDULED TRANSACTIONS
# =============================================================================

class ScheduledTransaction(Record):
    """A monthly recurring transaction template."""

    id: str = Field(default_factory=new_id)
    type: TransactionType
    amount: float = Field(..., gt=0)
    category: str = Field(default="")
    description: str = Field(default="")
    day_of_month: int = Field(..., ge=1, le=31)
    last_processed_date: Optional[date] = None
    active: bool = True
    created_at: datetime = Field(default_factory=datetime.now)
