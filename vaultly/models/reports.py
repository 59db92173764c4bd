"""
Derived View Models

Everything here is computed from the record stores on every read and is
never persisted: ledger entries, balance breakdowns, credit and project
status, projections and ledger query results.
"""

from datetime import date
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from vaultly.models.records import TransactionType


class LedgerSource(str, Enum):
    """Which collection a ledger entry was derived from."""
    TRANSACTION = "transaction"
    FUND = "fund"
    CREDIT = "credit"
    PROJECT = "project"


class LedgerEntry(BaseModel):
    """
    A display-ready event from any of the four source collections.

    `type` is always from the wallet's point of view.
    """

    id: str = Field(..., description="Source-prefixed unique id, e.g. 'fund-<id>'")
    original_id: str
    date: date
    description: str
    amount: float
    type: TransactionType
    source: LedgerSource
    category: str
    fund_name: Optional[str] = None
    credit_name: Optional[str] = None
    project_name: Optional[str] = None
    icon: Optional[str] = None


class LedgerDayGroup(BaseModel):
    """Ledger entries sharing one date, with that day's totals."""

    date: date
    entries: list[LedgerEntry] = Field(default_factory=list)
    income: float = 0.0
    expense: float = 0.0


class BalanceBreakdown(BaseModel):
    """
    The components of the available balance at one instant.

    available == net_cash_flow - (goals_saved + funds_saved)
    """

    as_of: date
    total_income: float
    total_expense: float
    net_cash_flow: float
    goals_saved: float
    funds_saved: float
    available: float

    @property
    def earmarked(self) -> float:
        return round(self.goals_saved + self.funds_saved, 2)


class CreditStatusReport(BaseModel):
    """Amortization status of a credit, recomputed on every call."""

    total_paid: float
    total_to_pay: float
    remaining_balance: float
    quota: float
    progress: float = Field(..., description="Percent of total_to_pay already paid")


class BudgetLineUsage(BaseModel):
    """A budget line with its spent amount recomputed from transactions."""

    id: str
    name: str
    allocated_amount: float
    spent_amount: float
    remaining_amount: float
    percent_used: float


class ProjectStats(BaseModel):
    total_income: float
    total_expenses: float
    budget_remaining: float
    percent_consumed: float
    percent_funded: float
    current_balance: float = Field(..., description="Project-local liquidity")


class ProjectionSource(str, Enum):
    SCHEDULED = "scheduled"
    SIMULATED = "simulated"
    GOAL = "goal"
    CREDIT = "credit"
    FUND = "fund"


class SimulatedTransaction(BaseModel):
    """A what-if movement fed into a projection."""

    id: str
    description: str
    amount: float = Field(..., ge=0)
    type: TransactionType
    date: date


class ProjectionItem(BaseModel):
    id: str
    source: ProjectionSource
    date: date
    name: str
    amount: float
    type: TransactionType
    balance_after: float
    is_excluded: bool = False


class MonthlyProjection(BaseModel):
    """Timeline of expected movements for one month."""

    month: date = Field(..., description="First day of the projected month")
    timeline: list[ProjectionItem] = Field(default_factory=list)
    initial_balance: float
    final_balance: float
    total_income: float
    total_expense: float
    lowest_point: float


class CategoryTotal(BaseModel):
    name: str
    value: float


class MonthlySummary(BaseModel):
    month: str = Field(..., description="YYYY-MM")
    income: float
    expense: float
    net: float


class LedgerQuery(BaseModel):
    """Filters applied to the unified ledger for a report."""

    source: Optional[LedgerSource] = None
    type: Optional[TransactionType] = None
    search: Optional[str] = Field(default=None, max_length=200)
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    month: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}$")
    limit: Optional[int] = Field(default=None, ge=1)


class LedgerQueryResult(BaseModel):
    query: LedgerQuery
    success: bool = True
    error_message: Optional[str] = None
    result_count: int = Field(..., ge=0)
    entries: list[LedgerEntry] = Field(default_factory=list)
    groups: list[LedgerDayGroup] = Field(default_factory=list)
    total_income: float = 0.0
    total_expense: float = 0.0
    net: float = 0.0
    description: str = Field(..., description="Human-readable summary of the filters")
