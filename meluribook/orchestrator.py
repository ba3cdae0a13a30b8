"""
Main Orchestrator for Meluribook

This module ties together the ledger, transaction storage and tax
registry, and defines the end-to-end flows for:
1. Business setup (seed chart of accounts)
2. Recording a transaction (save -> map -> post -> estimate tax)
3. Reconciling transactions whose posting failed

DESIGN DECISION: Saving a transaction and posting it are two steps that
are not atomic with each other. The flow makes the gap explicit:
- The transaction is saved as PENDING
- A successful post marks it POSTED with its journal entry ID
- A failed post marks it POSTING_FAILED (the compensating action) and the
  error is re-raised, so the user action fails visibly
- If the POSTED mark itself cannot be stored, the entry stands and the
  transaction stays PENDING; it is logged and audited
- PENDING and POSTING_FAILED transactions can be listed and re-posted
- Posting and re-posting the same transaction are serialized in-process,
  so a transaction gets at most one journal entry

Tax estimation runs only after a successful post and can never fail it.
"""

import asyncio
import weakref
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any, NamedTuple, Optional
from uuid import UUID

import structlog

from meluribook.audit import AuditLogger, create_correlation_id
from meluribook.config import get_settings
from meluribook.ledger import LedgerService, TransactionNotFoundError, lines_for_transaction
from meluribook.models.ledger import Account, JournalEntry
from meluribook.models.tax import TaxContext, TaxResult
from meluribook.models.transaction import PostingStatus, Transaction, TransactionType
from meluribook.reports import ReportService
from meluribook.services.storage import (
    GoogleSheetsAuditStorage,
    GoogleSheetsClient,
    GoogleSheetsLedgerStorage,
    GoogleSheetsTransactionStorage,
    InMemoryLedgerStorage,
    InMemoryTransactionStorage,
    StorageError,
    TransactionStorageInterface,
)
from meluribook.tax import TaxStrategyRegistry, create_default_registry


logger = structlog.get_logger(__name__)


class BusinessSetupFlow:
    """
    Prepares a newly created business for bookkeeping.

    Must run before the business's first transaction is recorded.
    """

    def __init__(
        self,
        ledger: LedgerService,
    ):
        self._ledger = ledger

    async def provision_business(
        self,
        business_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[Account]:
        """
        Seed the default chart of accounts.

        Returns:
            The accounts created; empty if the business was already set up
        """
        correlation_id = correlation_id or create_correlation_id()
        return await self._ledger.setup_chart_of_accounts(
            business_id, correlation_id=correlation_id
        )


class TransactionFlow:
    """
    Orchestrates recording a transaction.

    Flow:
    1. Save    -> transaction stored as PENDING
    2. Map     -> fixed two-line debit/credit mapping
    3. Post    -> ledger validates and commits the entry atomically
    4. Mark    -> POSTED (or POSTING_FAILED, then re-raise)
    5. Tax     -> optional estimate for the business's jurisdiction
    """

    def __init__(
        self,
        ledger: LedgerService,
        transaction_storage: TransactionStorageInterface,
        tax_registry: Optional[TaxStrategyRegistry] = None,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self._ledger = ledger
        self._transaction_storage = transaction_storage
        self._tax_registry = tax_registry
        self._audit_logger = audit_logger
        self._posting_locks: weakref.WeakValueDictionary = weakref.WeakValueDictionary()

    def _posting_lock(self, transaction_id: UUID) -> asyncio.Lock:
        lock = self._posting_locks.get(transaction_id)
        if lock is None:
            lock = asyncio.Lock()
            self._posting_locks[transaction_id] = lock
        return lock

    async def create_transaction(
        self,
        business_id: str,
        amount: Decimal,
        transaction_type: TransactionType,
        transaction_date: date,
        currency: Optional[str] = None,
        category: Optional[str] = None,
        description: Optional[str] = None,
        payee: Optional[str] = None,
        is_tax_deductible: bool = False,
        country_code: Optional[str] = None,
        business_config: Optional[dict[str, Any]] = None,
        correlation_id: Optional[UUID] = None,
    ) -> tuple[Transaction, JournalEntry, list[TaxResult]]:
        """
        Record a transaction and post it to the ledger.

        Args:
            country_code: Business jurisdiction. If given, taxes are
                          estimated after the post succeeds.
            business_config: Per-business tax configuration passed to the
                             jurisdiction strategy

        Returns:
            (transaction, journal_entry, tax_estimates)

        Raises:
            pydantic.ValidationError: If the transaction fields are invalid
                                      (nothing is saved)
            LedgerError / StorageError: If posting fails; the transaction
                                        is left POSTING_FAILED

        A failure to store the POSTED mark does not raise: the entry is
        committed and the transaction stays PENDING for retry_posting.
        """
        correlation_id = correlation_id or create_correlation_id()

        transaction = Transaction(
            business_id=business_id,
            type=transaction_type,
            amount=amount,
            currency=currency or get_settings().ledger.default_currency,
            transaction_date=transaction_date,
            category=category,
            description=description,
            payee=payee,
            is_tax_deductible=is_tax_deductible,
        )

        async with self._posting_lock(transaction.id):
            await self._transaction_storage.save_transaction(transaction)

            if self._audit_logger:
                await self._audit_logger.log_transaction_recorded(
                    business_id=business_id,
                    transaction_id=transaction.id,
                    transaction_type=transaction.type.value,
                    amount=str(transaction.amount),
                    currency=transaction.currency,
                    correlation_id=correlation_id,
                )

            transaction, entry = await self._post(transaction, correlation_id)

        taxes = []
        if country_code:
            taxes = await self._estimate_without_blocking(
                transaction, country_code, business_config, correlation_id
            )

        return transaction, entry, taxes

    async def _post(
        self,
        transaction: Transaction,
        correlation_id: UUID,
    ) -> tuple[Transaction, JournalEntry]:
        try:
            entry = await self._ledger.record_journal_entry(
                transaction.business_id,
                transaction.id,
                transaction.transaction_date,
                transaction.posting_description,
                lines_for_transaction(transaction),
                correlation_id=correlation_id,
            )
        except Exception as e:
            await self._mark_posting_failed(transaction, e, correlation_id)
            raise

        posted = transaction.model_copy(update={
            "posting_status": PostingStatus.POSTED,
            "journal_entry_id": entry.id,
            "posting_error": None,
            "updated_at": datetime.now(timezone.utc),
        })
        try:
            await self._transaction_storage.update_transaction(posted)
        except StorageError as e:
            # Entry is committed; the stored record stays PENDING until re-posted
            logger.error(
                "posting_not_marked",
                transaction_id=str(transaction.id),
                entry_id=str(entry.id),
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="posting_not_marked",
                    error_message=str(e),
                    details={
                        "transaction_id": str(transaction.id),
                        "journal_entry_id": str(entry.id),
                    },
                    correlation_id=correlation_id,
                )

        if self._audit_logger:
            await self._audit_logger.log_transaction_posted(
                business_id=posted.business_id,
                transaction_id=posted.id,
                entry_id=entry.id,
                correlation_id=correlation_id,
            )

        return posted, entry

    async def _mark_posting_failed(
        self,
        transaction: Transaction,
        error: Exception,
        correlation_id: UUID,
    ) -> None:
        error_code = getattr(error, "error_code", type(error).__name__)
        logger.error(
            "transaction_posting_failed",
            business_id=transaction.business_id,
            transaction_id=str(transaction.id),
            error_code=error_code,
            error=str(error),
        )

        failed = transaction.model_copy(update={
            "posting_status": PostingStatus.POSTING_FAILED,
            "posting_error": str(error)[:500],
            "updated_at": datetime.now(timezone.utc),
        })
        try:
            await self._transaction_storage.update_transaction(failed)
        except StorageError as update_error:
            # The posting error is what the caller sees; this one is only recorded
            logger.error(
                "posting_failure_not_recorded",
                transaction_id=str(transaction.id),
                error=str(update_error),
            )
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="posting_failure_not_recorded",
                    error_message=str(update_error),
                    details={"transaction_id": str(transaction.id)},
                    correlation_id=correlation_id,
                )

        if self._audit_logger:
            await self._audit_logger.log_transaction_posting_failed(
                business_id=transaction.business_id,
                transaction_id=transaction.id,
                error_code=error_code,
                error_message=str(error),
                correlation_id=correlation_id,
            )

    async def estimate_tax(
        self,
        transaction: Transaction,
        country_code: str,
        business_config: Optional[dict[str, Any]] = None,
    ) -> list[TaxResult]:
        """
        Estimate taxes for a transaction.

        Reads the transaction only, never the ledger. Returns [] when no
        tax registry is configured or the country is unknown.
        """
        if self._tax_registry is None:
            return []
        context = TaxContext(
            amount=transaction.amount,
            currency=transaction.currency,
            transaction_date=transaction.transaction_date,
            category=transaction.category,
            business_config=business_config or {},
        )
        return await self._tax_registry.calculate_tax(country_code, context)

    async def _estimate_without_blocking(
        self,
        transaction: Transaction,
        country_code: str,
        business_config: Optional[dict[str, Any]],
        correlation_id: UUID,
    ) -> list[TaxResult]:
        try:
            taxes = await self.estimate_tax(transaction, country_code, business_config)
        except Exception as e:
            logger.error(
                "tax_estimate_failed",
                transaction_id=str(transaction.id),
                country_code=country_code,
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_tax_estimate_failed(
                    business_id=transaction.business_id,
                    transaction_id=transaction.id,
                    country_code=country_code,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            return []

        if self._audit_logger and taxes:
            await self._audit_logger.log_tax_estimated(
                business_id=transaction.business_id,
                transaction_id=transaction.id,
                country_code=country_code,
                results=[tax.model_dump(mode="json") for tax in taxes],
                correlation_id=correlation_id,
            )
        return taxes

    async def list_transactions(
        self,
        business_id: str,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Transaction]:
        """A business's transactions, newest first."""
        return await self._transaction_storage.list_transactions(
            business_id, limit=limit, offset=offset
        )

    async def list_unposted_transactions(self, business_id: str) -> list[Transaction]:
        """
        Transactions not yet marked POSTED, newest first.

        Covers POSTING_FAILED transactions and PENDING ones whose post was
        interrupted or whose POSTED mark was lost. A transaction still being
        posted is also PENDING; retry_posting is safe to call on it.
        """
        unposted = []
        for status in (PostingStatus.POSTING_FAILED, PostingStatus.PENDING):
            unposted.extend(await self._transaction_storage.list_transactions(
                business_id,
                posting_status=status,
                limit=1000,
            ))
        unposted.sort(key=lambda t: (t.transaction_date, t.created_at), reverse=True)
        return unposted

    async def retry_posting(
        self,
        business_id: str,
        transaction_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> JournalEntry:
        """
        Post a transaction that is not yet in the ledger.

        If the transaction already has a journal entry, that entry is
        returned and nothing new is posted.

        Raises:
            TransactionNotFoundError: If the transaction doesn't exist
            LedgerError / StorageError: If posting fails again
        """
        correlation_id = correlation_id or create_correlation_id()

        async with self._posting_lock(transaction_id):
            return await self._retry_posting(business_id, transaction_id, correlation_id)

    async def _retry_posting(
        self,
        business_id: str,
        transaction_id: UUID,
        correlation_id: UUID,
    ) -> JournalEntry:
        transaction = await self._transaction_storage.get_transaction(
            business_id, transaction_id
        )
        if transaction is None:
            raise TransactionNotFoundError(transaction_id, business_id)

        existing = await self._ledger.get_entry_for_transaction(business_id, transaction_id)
        if existing is not None:
            if transaction.posting_status != PostingStatus.POSTED:
                # Entry committed but the status update was lost
                await self._transaction_storage.update_transaction(
                    transaction.model_copy(update={
                        "posting_status": PostingStatus.POSTED,
                        "journal_entry_id": existing.id,
                        "posting_error": None,
                        "updated_at": datetime.now(timezone.utc),
                    })
                )
            return existing

        _, entry = await self._post(transaction, correlation_id)
        return entry


class AppComponents(NamedTuple):
    ledger: LedgerService
    business_setup: BusinessSetupFlow
    transactions: TransactionFlow
    reports: ReportService
    tax_registry: TaxStrategyRegistry


def create_app_components(
    storage_backend: Optional[str] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage_backend: "memory" or "google_sheets". Defaults to the
                         configured APP storage_backend.

    Raises:
        ValueError: For an unknown backend name
        ConnectionError: If Google Sheets is selected but unreachable
    """
    backend = storage_backend or get_settings().app.storage_backend

    if backend == "memory":
        ledger_storage = InMemoryLedgerStorage()
        transaction_storage = InMemoryTransactionStorage()
        audit_logger = AuditLogger()  # Local-only logging
    elif backend == "google_sheets":
        sheets_client = GoogleSheetsClient()
        sheets_client.connect()
        ledger_storage = GoogleSheetsLedgerStorage(sheets_client)
        transaction_storage = GoogleSheetsTransactionStorage(sheets_client)
        audit_logger = AuditLogger(GoogleSheetsAuditStorage(sheets_client))
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    tax_registry = create_default_registry()
    ledger = LedgerService(ledger_storage, audit_logger=audit_logger)

    return AppComponents(
        ledger=ledger,
        business_setup=BusinessSetupFlow(ledger),
        transactions=TransactionFlow(
            ledger,
            transaction_storage,
            tax_registry=tax_registry,
            audit_logger=audit_logger,
        ),
        reports=ReportService(ledger_storage, transaction_storage),
        tax_registry=tax_registry,
    )
