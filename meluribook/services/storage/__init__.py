"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Implements an in-memory backend (tests, local use) and Google Sheets;
business logic only ever sees the interfaces.
"""

from meluribook.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)
from meluribook.services.storage.memory import (
    InMemoryAuditStorage,
    InMemoryLedgerStorage,
    InMemoryTransactionStorage,
)
from meluribook.services.storage.google_sheets import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    GoogleSheetsTransactionStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    "TransactionStorageInterface",
    # Exceptions
    "ConnectionError",
    "DuplicateError",
    "NotFoundError",
    "StorageError",
    # In-memory implementation
    "InMemoryAuditStorage",
    "InMemoryLedgerStorage",
    "InMemoryTransactionStorage",
    # Google Sheets implementation
    "GoogleSheetsAuditStorage",
    "GoogleSheetsClient",
    "GoogleSheetsLedgerStorage",
    "GoogleSheetsTransactionStorage",
]
