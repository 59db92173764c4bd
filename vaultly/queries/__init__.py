"""Query execution package."""

from vaultly.queries.executor import LedgerQueryExecutor, QueryExecutionError

__all__ = ["LedgerQueryExecutor", "QueryExecutionError"]
