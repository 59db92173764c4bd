"""
Financial Computation Engine

Pure functions over record snapshots (balance, goal quotas, credit
amortization, project stats, unified ledger, projections) plus the
FinanceEngine facade that binds them to a user's live stores and a clock.
"""

from vaultly.engine.balance import (
    available_balance,
    balance_breakdown,
    current_balance,
    get_balance_at_date,
)
from vaultly.engine.credits import (
    calculate_quota,
    get_credit_status,
    next_payment_date,
    solve_interest_rate,
    with_payment,
)
from vaultly.engine.funds import auto_save_amount, with_movement
from vaultly.engine.goals import (
    get_monthly_quota,
    get_months_remaining,
    get_total_savings_at_date,
    is_goal_paid_this_month,
    with_contribution,
    with_withdrawal,
)
from vaultly.engine.ledger import build_ledger, filter_ledger, group_by_date
from vaultly.engine.projections import calculate_monthly_projection
from vaultly.engine.projects import budget_line_usage, get_project_stats
from vaultly.engine.scheduled import due_scheduled
from vaultly.engine.transactions import monthly_summary, net_cash_flow, totals_by_category
from vaultly.engine.finance import FinanceEngine

__all__ = [
    "FinanceEngine",
    # Balance
    "available_balance",
    "balance_breakdown",
    "current_balance",
    "get_balance_at_date",
    # Goals
    "get_monthly_quota",
    "get_months_remaining",
    "get_total_savings_at_date",
    "is_goal_paid_this_month",
    "with_contribution",
    "with_withdrawal",
    # Funds
    "auto_save_amount",
    "with_movement",
    # Credits
    "calculate_quota",
    "get_credit_status",
    "next_payment_date",
    "solve_interest_rate",
    "with_payment",
    # Projects
    "budget_line_usage",
    "get_project_stats",
    # Ledger
    "build_ledger",
    "filter_ledger",
    "group_by_date",
    # Transactions
    "monthly_summary",
    "net_cash_flow",
    "totals_by_category",
    "due_scheduled",
    "calculate_monthly_projection",
]
