"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap Google Sheets for a real database later
2. Use in-memory storage for testing
3. Keep ledger logic decoupled from storage implementation

The interface is intentionally small - we're not building a full ORM.
What the ledger needs from a store is:
- bulk lookup of accounts by a set of codes, scoped to a business
- atomic multi-record batch writes (accounts; an entry with its lines)
- aggregation of debit/credit totals by account
"""

from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from meluribook.models.audit import AuditEvent
from meluribook.models.ledger import Account, JournalEntry
from meluribook.models.transaction import PostingStatus, Transaction


class LedgerStorageInterface(ABC):
    """
    Abstract interface for chart-of-accounts and journal storage.

    Only the ledger service writes through this interface.
    Accounts are append-only and journal entries are write-once.
    """

    @abstractmethod
    async def find_accounts_by_codes(
        self,
        business_id: str,
        codes: Iterable[str],
    ) -> list[Account]:
        """
        Bulk-resolve account codes for a business in a single lookup.

        Codes with no matching account are simply absent from the result.
        """
        pass

    @abstractmethod
    async def find_account_by_code(
        self,
        business_id: str,
        code: str,
    ) -> Optional[Account]:
        """Resolve one account code, or None if the business has no such account."""
        pass

    @abstractmethod
    async def list_accounts(self, business_id: str) -> list[Account]:
        """List a business's accounts ordered by code."""
        pass

    @abstractmethod
    async def create_accounts(self, accounts: list[Account]) -> list[Account]:
        """
        Create several accounts as one all-or-nothing batch.

        Raises:
            DuplicateError: If any (business_id, code) already exists;
                            nothing is written in that case.
            StorageError: If the write fails
        """
        pass

    @abstractmethod
    async def save_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        """
        Persist a journal entry together with all of its lines.

        CRITICAL: Must be atomic. Readers may never observe the entry
        without its full line set, or lines without their entry.

        Raises:
            StorageError: If the write fails (nothing is visible afterwards)
        """
        pass

    @abstractmethod
    async def sum_lines_for_account(
        self,
        account_id: UUID,
    ) -> tuple[Decimal, Decimal]:
        """
        Aggregate every posted line against an account.

        Returns:
            (total_debit, total_credit); (0, 0) if nothing was posted
        """
        pass

    @abstractmethod
    async def list_journal_entries(
        self,
        business_id: str,
        limit: int = 50,
    ) -> list[JournalEntry]:
        """List a business's journal entries with lines, newest first."""
        pass

    @abstractmethod
    async def get_journal_entry_by_transaction(
        self,
        business_id: str,
        transaction_id: UUID,
    ) -> Optional[JournalEntry]:
        """Find the journal entry posted for a transaction, if any."""
        pass


class TransactionStorageInterface(ABC):
    """Abstract interface for transaction storage."""

    @abstractmethod
    async def save_transaction(self, transaction: Transaction) -> bool:
        """
        Save a new transaction.

        Raises:
            StorageError: If save fails
        """
        pass

    @abstractmethod
    async def get_transaction(
        self,
        business_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        """Retrieve a transaction by ID, or None if not found."""
        pass

    @abstractmethod
    async def update_transaction(self, transaction: Transaction) -> bool:
        """
        Update an existing transaction.

        Raises:
            NotFoundError: If the transaction doesn't exist
            StorageError: If update fails
        """
        pass

    @abstractmethod
    async def list_transactions(
        self,
        business_id: str,
        posting_status: Optional[PostingStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Transaction]:
        """
        List a business's transactions, newest first by transaction date.

        Args:
            business_id: Owning business
            posting_status: Filter by posting status
            date_from: Filter transactions on or after this date
            date_to: Filter transactions on or before this date
            limit: Maximum number of results
            offset: Number of results to skip
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """Append an audit event to the log. Returns True if logged."""
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Get all events for a correlation ID, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """Get the most recent audit events (newest first)."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class DuplicateError(StorageError):
    """Attempted to insert a duplicate entity."""
    pass


class ConnectionError(StorageError):
    """Could not connect to storage backend."""
    pass
