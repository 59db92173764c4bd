"""
Ledger Query Execution

DESIGN DECISION: Reports never read the stores directly. A LedgerQuery is
executed over a freshly built unified ledger, so a report always reflects
the latest snapshots and uses the exact same entry mapping (sign
convention included) as every other ledger view.
"""

from datetime import date
from typing import Optional

from vaultly.engine.finance import FinanceEngine
from vaultly.engine.ledger import filter_ledger, group_by_date, ledger_totals_cents
from vaultly.models.reports import LedgerQuery, LedgerQueryResult
from vaultly.utils.money import from_cents


class QueryExecutionError(Exception):
    """Error during query execution."""
    pass


class LedgerQueryExecutor:
    """
    Executes ledger queries against one user's engine.

    GUARANTEES:
    - Only returns entries derived from stored records
    - Totals are accumulated in cents over the filtered entries
    - An empty result is a successful query with zero entries
    """

    def __init__(self, engine: FinanceEngine):
        self._engine = engine

    async def execute(self, query: LedgerQuery) -> LedgerQueryResult:
        """Run a query and return the matching entries, groups and totals."""
        try:
            if query.date_from and query.date_to and query.date_from > query.date_to:
                raise QueryExecutionError("date_from is after date_to")

            entries = filter_ledger(
                self._engine.build_ledger(),
                source=query.source,
                search=query.search,
                entry_type=query.type,
                date_from=query.date_from,
                date_to=query.date_to,
                month=query.month,
            )
            if query.limit is not None:
                entries = entries[:query.limit]

            income, expense = ledger_totals_cents(entries)
            return LedgerQueryResult(
                query=query,
                success=True,
                result_count=len(entries),
                entries=entries,
                groups=group_by_date(entries),
                total_income=from_cents(income),
                total_expense=from_cents(expense),
                net=from_cents(income - expense),
                description=self._describe(query),
            )
        except Exception as e:
            return LedgerQueryResult(
                query=query,
                success=False,
                error_message=str(e),
                result_count=0,
                description=f"Query failed: {e}",
            )

    def _describe(self, query: LedgerQuery) -> str:
        """Human-readable summary of the filters."""
        desc_parts = ["Ledger entries"]
        if query.source:
            desc_parts.append(f"source: {query.source.value}")
        if query.type:
            desc_parts.append(f"type: {query.type.value}")
        if query.search:
            desc_parts.append(f"matching '{query.search}'")
        if query.month:
            desc_parts.append(f"month: {query.month}")
        if query.date_from or query.date_to:
            desc_parts.append(self._date_range_str(query.date_from, query.date_to))
        if query.limit:
            desc_parts.append(f"first {query.limit}")
        return " | ".join(desc_parts)

    def _date_range_str(
        self,
        date_from: Optional[date],
        date_to: Optional[date],
    ) -> str:
        """Format date range for description."""
        if date_from and date_to:
            if date_from == date_to:
                return f"on {date_from.strftime('%d %b %Y')}"
            elif date_from.month == date_to.month and date_from.year == date_to.year:
                return f"in {date_from.strftime('%B %Y')}"
            elif date_from.year == date_to.year:
                return f"from {date_from.strftime('%b')} to {date_to.strftime('%b %Y')}"
            else:
                return f"from {date_from.strftime('%b %Y')} to {date_to.strftime('%b %Y')}"
        elif date_from:
            return f"from {date_from.strftime('%d %b %Y')}"
        elif date_to:
            return f"until {date_to.strftime('%d %b %Y')}"
        return ""
