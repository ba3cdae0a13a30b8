"""
In-Memory Storage Implementation

Used by the test suite and as the default backend when no external store
is configured. Everything lives in process memory and is lost on exit.

Batch writes are staged on copies and published with a single reference
swap while holding the lock, so a failure part-way through a batch leaves
the visible state untouched.
"""

import asyncio
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

from meluribook.models.audit import AuditEvent
from meluribook.models.ledger import Account, JournalEntry, JournalLine
from meluribook.models.transaction import PostingStatus, Transaction
from meluribook.services.storage.interface import (
    AuditStorageInterface,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    TransactionStorageInterface,
)


class InMemoryLedgerStorage(LedgerStorageInterface):
    """Chart of accounts and journal held in dictionaries."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._accounts: dict[tuple[str, str], Account] = {}
        self._entries: dict[UUID, JournalEntry] = {}
        # (entry_id, line) in posting order
        self._lines: list[tuple[UUID, JournalLine]] = []

    async def find_accounts_by_codes(
        self,
        business_id: str,
        codes: Iterable[str],
    ) -> list[Account]:
        accounts = self._accounts
        found = []
        for code in set(codes):
            account = accounts.get((business_id, code))
            if account is not None:
                found.append(account.model_copy())
        return found

    async def find_account_by_code(
        self,
        business_id: str,
        code: str,
    ) -> Optional[Account]:
        account = self._accounts.get((business_id, code))
        return account.model_copy() if account else None

    async def list_accounts(self, business_id: str) -> list[Account]:
        accounts = [
            account.model_copy()
            for (owner, _), account in self._accounts.items()
            if owner == business_id
        ]
        accounts.sort(key=lambda a: a.code)
        return accounts

    async def create_accounts(self, accounts: list[Account]) -> list[Account]:
        async with self._lock:
            staged = dict(self._accounts)
            for account in accounts:
                key = (account.business_id, account.code)
                if key in staged:
                    raise DuplicateError(
                        f"Account {account.code} already exists for business "
                        f"{account.business_id}"
                    )
                staged[key] = account.model_copy()
            self._accounts = staged
        return [account.model_copy() for account in accounts]

    async def save_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        async with self._lock:
            staged_entries = dict(self._entries)
            staged_lines = list(self._lines)

            staged_entries[entry.id] = entry.model_copy(deep=True)
            for line in entry.lines:
                self._stage_line(staged_lines, entry, line)

            self._entries = staged_entries
            self._lines = staged_lines
        return entry.model_copy(deep=True)

    def _stage_line(
        self,
        staged_lines: list[tuple[UUID, JournalLine]],
        entry: JournalEntry,
        line: JournalLine,
    ) -> None:
        staged_lines.append((entry.id, line.model_copy()))

    async def sum_lines_for_account(
        self,
        account_id: UUID,
    ) -> tuple[Decimal, Decimal]:
        total_debit = Decimal("0")
        total_credit = Decimal("0")
        for _, line in self._lines:
            if line.account_id == account_id:
                total_debit += line.debit
                total_credit += line.credit
        return total_debit, total_credit

    async def list_journal_entries(
        self,
        business_id: str,
        limit: int = 50,
    ) -> list[JournalEntry]:
        entries = [
            entry.model_copy(deep=True)
            for entry in self._entries.values()
            if entry.business_id == business_id
        ]
        entries.sort(key=lambda e: (e.entry_date, e.created_at), reverse=True)
        return entries[:limit]

    async def get_journal_entry_by_transaction(
        self,
        business_id: str,
        transaction_id: UUID,
    ) -> Optional[JournalEntry]:
        for entry in self._entries.values():
            if entry.business_id == business_id and entry.transaction_id == transaction_id:
                return entry.model_copy(deep=True)
        return None


class InMemoryTransactionStorage(TransactionStorageInterface):
    """Transactions held in a dictionary keyed by ID."""

    def __init__(self):
        self._lock = asyncio.Lock()
        self._transactions: dict[UUID, Transaction] = {}

    async def save_transaction(self, transaction: Transaction) -> bool:
        async with self._lock:
            if transaction.id in self._transactions:
                raise DuplicateError(f"Transaction already exists: {transaction.id}")
            self._transactions[transaction.id] = transaction.model_copy()
        return True

    async def get_transaction(
        self,
        business_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        transaction = self._transactions.get(transaction_id)
        if transaction is None or transaction.business_id != business_id:
            return None
        return transaction.model_copy()

    async def update_transaction(self, transaction: Transaction) -> bool:
        async with self._lock:
            if transaction.id not in self._transactions:
                raise NotFoundError(f"Transaction not found: {transaction.id}")
            self._transactions[transaction.id] = transaction.model_copy()
        return True

    async def list_transactions(
        self,
        business_id: str,
        posting_status: Optional[PostingStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Transaction]:
        transactions = []
        for transaction in self._transactions.values():
            if transaction.business_id != business_id:
                continue
            if posting_status and transaction.posting_status != posting_status:
                continue
            if date_from and transaction.transaction_date < date_from:
                continue
            if date_to and transaction.transaction_date > date_to:
                continue
            transactions.append(transaction.model_copy())

        transactions.sort(
            key=lambda t: (t.transaction_date, t.created_at),
            reverse=True,
        )
        return transactions[offset:offset + limit]


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only audit log held in a list."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    async def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._events if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = sorted(self._events, key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
