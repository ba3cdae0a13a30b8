"""
Ledger Posting Engine

The only component that writes accounts and journal entries.

GUARANTEES:
- An entry whose debits and credits differ by more than the tolerance
  is rejected before anything is written
- An entry referencing an account the business doesn't have is rejected
  before anything is written
- An accepted entry is committed with all of its lines in one atomic write
- Balances are derived on read from posted lines; nothing is cached

Failures are raised to the caller as-is. The engine never retries.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional, Sequence, Union
from uuid import UUID

import structlog

from meluribook.audit import AuditLogger
from meluribook.config import get_settings
from meluribook.ledger.chart import ChartOfAccountsProvisioner
from meluribook.ledger.exceptions import LedgerError
from meluribook.ledger.validator import PostingValidator
from meluribook.models.ledger import Account, JournalEntry, JournalLine, PostingLine
from meluribook.services.storage import LedgerStorageInterface


logger = structlog.get_logger(__name__)

LineInput = Union[PostingLine, dict[str, Any]]


class LedgerService:
    """
    Double-entry ledger over a LedgerStorageInterface.

    Usage:
        ledger = LedgerService(InMemoryLedgerStorage())
        await ledger.setup_chart_of_accounts("biz-1")
        entry = await ledger.record_journal_entry(
            "biz-1", None, date.today(), "Owner contribution",
            [
                {"account_code": "1000", "debit": 500},
                {"account_code": "3000", "credit": 500},
            ],
        )
        cash = await ledger.get_balance("biz-1", "1000")
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        validator: Optional[PostingValidator] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._validator = validator or PostingValidator(storage)
        self._provisioner = ChartOfAccountsProvisioner(storage)

    async def setup_chart_of_accounts(
        self,
        business_id: str,
        correlation_id: Optional[UUID] = None,
    ) -> list[Account]:
        """
        Seed the default chart of accounts for a business.

        Must run before the business's first posting. Safe to call again.
        """
        created = await self._provisioner.setup_chart_of_accounts(business_id)

        if self._audit_logger:
            await self._audit_logger.log_chart_seeded(
                business_id=business_id,
                created_codes=[account.code for account in created],
                correlation_id=correlation_id,
            )

        return created

    async def record_journal_entry(
        self,
        business_id: str,
        transaction_id: Optional[UUID],
        entry_date: date,
        description: str,
        lines: Sequence[LineInput],
        correlation_id: Optional[UUID] = None,
    ) -> JournalEntry:
        """
        Validate and post a balanced journal entry.

        Args:
            business_id: Business whose chart of accounts the lines address
            transaction_id: Originating transaction, if any
            entry_date: Posting date
            description: Free text stored on the entry and on each line
                         that has no description of its own
            lines: Ordered PostingLine objects (or dicts of the same shape)

        Returns:
            The committed entry with generated ID and resolved account IDs

        Raises:
            pydantic.ValidationError: If a line is malformed
            InvalidJournalEntryError: If there are no lines
            UnbalancedEntryError: If debits != credits beyond the tolerance
            UnknownAccountError: If a code is not in the chart
            StorageError: If the commit fails (nothing is visible)
        """
        posting_lines = [
            line if isinstance(line, PostingLine) else PostingLine.model_validate(line)
            for line in lines
        ]

        try:
            accounts = await self._validator.validate(business_id, posting_lines)
        except LedgerError as e:
            logger.warning(
                "journal_entry_rejected",
                business_id=business_id,
                error_code=e.error_code,
                error=str(e),
            )
            if self._audit_logger:
                await self._audit_logger.log_journal_entry_rejected(
                    business_id=business_id,
                    error_code=e.error_code,
                    error_message=str(e),
                    correlation_id=correlation_id,
                )
            raise

        entry = JournalEntry(
            business_id=business_id,
            transaction_id=transaction_id,
            entry_date=entry_date,
            description=description,
            lines=[
                JournalLine(
                    account_id=accounts[line.account_code].id,
                    account_code=line.account_code,
                    debit=line.debit,
                    credit=line.credit,
                    description=line.description or description,
                    line_number=position,
                )
                for position, line in enumerate(posting_lines)
            ],
        )

        saved = await self._storage.save_journal_entry(entry)

        logger.info(
            "journal_entry_posted",
            business_id=business_id,
            entry_id=str(saved.id),
            transaction_id=str(transaction_id) if transaction_id else None,
            line_count=len(saved.lines),
        )
        if self._audit_logger:
            await self._audit_logger.log_journal_entry_posted(
                business_id=business_id,
                entry_id=saved.id,
                total=str(saved.total_debit),
                line_count=len(saved.lines),
                correlation_id=correlation_id,
            )

        return saved

    async def get_balance(self, business_id: str, account_code: str) -> Decimal:
        """
        Current balance of an account in its normal polarity.

        ASSET and EXPENSE: debits - credits.
        LIABILITY, EQUITY and REVENUE: credits - debits.

        An unknown account code has no activity and returns 0.
        """
        account = await self._storage.find_account_by_code(business_id, account_code)
        if account is None:
            return Decimal("0")

        total_debit, total_credit = await self._storage.sum_lines_for_account(account.id)
        return account.type.signed_balance(total_debit, total_credit)

    async def list_accounts(self, business_id: str) -> list[Account]:
        return await self._storage.list_accounts(business_id)

    async def list_journal_entries(
        self,
        business_id: str,
        limit: Optional[int] = None,
    ) -> list[JournalEntry]:
        """Journal entries with their lines, newest first."""
        if limit is None:
            limit = get_settings().ledger.journal_list_limit
        return await self._storage.list_journal_entries(business_id, limit=limit)

    async def get_entry_for_transaction(
        self,
        business_id: str,
        transaction_id: UUID,
    ) -> Optional[JournalEntry]:
        return await self._storage.get_journal_entry_by_transaction(
            business_id, transaction_id
        )
