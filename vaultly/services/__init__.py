"""Services package."""

from vaultly.services.storage import (
    AuditStorageInterface,
    DuplicateError,
    FinanceRepositories,
    FinanceSnapshot,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsRecordStore,
    InMemoryAuditStorage,
    InMemoryRecordStore,
    NotFoundError,
    PermissionDeniedError,
    RecordStore,
    StorageError,
    StoreUnavailableError,
)

__all__ = [
    "AuditStorageInterface",
    "DuplicateError",
    "FinanceRepositories",
    "FinanceSnapshot",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsRecordStore",
    "InMemoryAuditStorage",
    "InMemoryRecordStore",
    "NotFoundError",
    "PermissionDeniedError",
    "RecordStore",
    "StorageError",
    "StoreUnavailableError",
]
