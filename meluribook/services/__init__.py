"""Services package."""

from meluribook.services.storage import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    GoogleSheetsTransactionStorage,
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    InMemoryTransactionStorage,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)

__all__ = [
    "AuditStorageInterface",
    "ConnectionError",
    "DuplicateError",
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "GoogleSheetsTransactionStorage",
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    "InMemoryTransactionStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "StorageError",
    "TransactionStorageInterface",
]
