"""
Report Queries

DESIGN DECISION: Reports are computed DETERMINISTICALLY from what is
actually stored - posted journal lines for the trial balance, recorded
transactions for the period summary. Nothing is cached or estimated
beyond the documented flat-rate tax figure.

The trial balance doubles as a reconciliation check: across all accounts
of a business, total debits must equal total credits within the
posting tolerance.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

from meluribook.config import get_settings
from meluribook.models.report import PeriodSummary, TrialBalance, TrialBalanceRow
from meluribook.models.transaction import PostingStatus, Transaction, TransactionType
from meluribook.services.storage import (
    LedgerStorageInterface,
    TransactionStorageInterface,
)


class ReportQueryError(Exception):
    """A report could not be produced from the given parameters."""
    pass


class ReportService:
    """
    Read-only reports over ledger and transaction storage.

    GUARANTEES:
    - Only reads; never writes
    - Figures come from stored data only
    """

    _PAGE_SIZE = 500

    def __init__(
        self,
        ledger_storage: LedgerStorageInterface,
        transaction_storage: Optional[TransactionStorageInterface] = None,
        estimate_rate: Optional[Decimal] = None,
        tolerance: Optional[Decimal] = None,
    ):
        self._ledger_storage = ledger_storage
        self._transaction_storage = transaction_storage
        if estimate_rate is None:
            estimate_rate = get_settings().tax.period_estimate_rate
        self._estimate_rate = estimate_rate
        if tolerance is None:
            tolerance = get_settings().ledger.balance_tolerance
        self._tolerance = tolerance

    async def trial_balance(self, business_id: str) -> TrialBalance:
        """Debit and credit totals for every account of the business."""
        rows = []
        total_debit = Decimal("0")
        total_credit = Decimal("0")

        for account in await self._ledger_storage.list_accounts(business_id):
            debit, credit = await self._ledger_storage.sum_lines_for_account(account.id)
            total_debit += debit
            total_credit += credit
            rows.append(TrialBalanceRow(
                account_id=account.id,
                code=account.code,
                name=account.name,
                type=account.type,
                total_debit=debit,
                total_credit=credit,
                balance=account.type.signed_balance(debit, credit),
            ))

        return TrialBalance(
            business_id=business_id,
            rows=rows,
            total_debit=total_debit,
            total_credit=total_credit,
            tolerance=self._tolerance,
        )

    async def _transactions_in_range(
        self,
        business_id: str,
        date_from: date,
        date_to: date,
    ) -> list[Transaction]:
        transactions = []
        offset = 0
        while True:
            page = await self._transaction_storage.list_transactions(
                business_id,
                date_from=date_from,
                date_to=date_to,
                limit=self._PAGE_SIZE,
                offset=offset,
            )
            transactions.extend(page)
            if len(page) < self._PAGE_SIZE:
                return transactions
            offset += self._PAGE_SIZE

    async def period_summary(
        self,
        business_id: str,
        date_from: date,
        date_to: date,
        include_unposted: bool = False,
    ) -> PeriodSummary:
        """
        Income, expenses and a flat-rate tax estimate for a date range.

        Both ends of the range are inclusive. Only POSTED transactions are
        counted unless include_unposted is True, so the summary agrees with
        the books; PENDING and POSTING_FAILED ones are not in the ledger.

        Raises:
            ReportQueryError: If the range is inverted or no transaction
                              storage is configured
        """
        if date_to < date_from:
            raise ReportQueryError(f"Period end {date_to} is before start {date_from}")
        if self._transaction_storage is None:
            raise ReportQueryError("Transaction storage is not configured")

        total_income = Decimal("0")
        total_expenses = Decimal("0")
        deductible = Decimal("0")
        count = 0

        for transaction in await self._transactions_in_range(business_id, date_from, date_to):
            if (
                transaction.posting_status != PostingStatus.POSTED
                and not include_unposted
            ):
                continue
            count += 1
            if transaction.type == TransactionType.INCOME:
                total_income += transaction.amount
            else:
                total_expenses += transaction.amount
                if transaction.is_tax_deductible:
                    deductible += transaction.amount

        taxable_income = total_income - deductible

        return PeriodSummary(
            business_id=business_id,
            date_from=date_from,
            date_to=date_to,
            total_income=total_income,
            total_expenses=total_expenses,
            tax_deductible_expenses=deductible,
            net_profit=total_income - total_expenses,
            taxable_income=taxable_income,
            tax_rate=self._estimate_rate,
            estimated_tax=taxable_income * self._estimate_rate,
            transaction_count=count,
        )
