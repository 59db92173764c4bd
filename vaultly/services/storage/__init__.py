"""
Storage Services Package

Record stores (in-memory and Google Sheets) behind one abstract interface,
plus the audit log storage.
"""

from vaultly.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    NotFoundError,
    PermissionDeniedError,
    RecordStore,
    StorageError,
    StoreUnavailableError,
)
from vaultly.services.storage.memory import InMemoryAuditStorage, InMemoryRecordStore
from vaultly.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
)
from vaultly.services.storage.repositories import (
    COLLECTIONS,
    FinanceRepositories,
    FinanceSnapshot,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "RecordStore",
    # Exceptions
    "DuplicateError",
    "NotFoundError",
    "PermissionDeniedError",
    "StorageError",
    "StoreUnavailableError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    # Bundle
    "COLLECTIONS",
    "FinanceRepositories",
    "FinanceSnapshot",
]
