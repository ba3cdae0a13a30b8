"""
Two-Stage Posting Validation

DESIGN DECISION: A journal entry is validated in two distinct stages,
failing fast on the first problem:

STAGE 1 - STRUCTURAL VALIDATION (no storage access):
- The entry has at least one line
- Sum of debits equals sum of credits within the tolerance

STAGE 2 - ACCOUNT RESOLUTION (one bulk storage read):
- Every distinct account code resolves to an account of the business

WHY TWO STAGES:
1. An unbalanced entry is rejected without touching storage
2. Better error messages (know exactly what kind of issue)
3. Stage 2 needs storage; stage 1 does not

Line shape (non-negative, one-sided) is already guaranteed by the
PostingLine model before lines get here.

IMPORTANT: Validation NEVER adjusts amounts to make an entry balance.
"""

from decimal import Decimal
from typing import Optional, Sequence

from meluribook.config import get_settings
from meluribook.ledger.exceptions import (
    InvalidJournalEntryError,
    UnbalancedEntryError,
    UnknownAccountError,
)
from meluribook.models.ledger import Account, PostingLine
from meluribook.services.storage import LedgerStorageInterface


class PostingValidator:
    """
    Validates journal lines before they are committed.

    Stage 1: Structural validation (can run without storage)
    Stage 2: Account resolution (needs storage)
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        tolerance: Optional[Decimal] = None,
    ):
        """
        Initialize validator.

        Args:
            storage: Ledger storage used to resolve account codes.
            tolerance: Allowed |debits - credits|. Defaults to the
                       configured ledger balance tolerance.
        """
        self._storage = storage
        if tolerance is None:
            tolerance = get_settings().ledger.balance_tolerance
        self._tolerance = tolerance

    @property
    def tolerance(self) -> Decimal:
        return self._tolerance

    def check_balance(
        self,
        lines: Sequence[PostingLine],
    ) -> tuple[Decimal, Decimal]:
        """
        Stage 1: Structural validation.

        Returns: (total_debit, total_credit)

        Raises:
            InvalidJournalEntryError: If there are no lines
            UnbalancedEntryError: If the totals differ by more than the tolerance
        """
        if not lines:
            raise InvalidJournalEntryError("A journal entry needs at least one line")

        total_debit = sum((line.debit for line in lines), Decimal("0"))
        total_credit = sum((line.credit for line in lines), Decimal("0"))

        if abs(total_debit - total_credit) > self._tolerance:
            raise UnbalancedEntryError(total_debit, total_credit)

        return total_debit, total_credit

    async def resolve_accounts(
        self,
        business_id: str,
        lines: Sequence[PostingLine],
    ) -> dict[str, Account]:
        """
        Stage 2: Resolve every referenced code in one bulk lookup.

        Returns: {account_code: Account}

        Raises:
            UnknownAccountError: Naming the first unresolved code in line order
        """
        codes = list(dict.fromkeys(line.account_code for line in lines))
        accounts = await self._storage.find_accounts_by_codes(business_id, codes)
        by_code = {account.code: account for account in accounts}

        for code in codes:
            if code not in by_code:
                raise UnknownAccountError(code, business_id)

        return by_code

    async def validate(
        self,
        business_id: str,
        lines: Sequence[PostingLine],
    ) -> dict[str, Account]:
        """
        Run both stages. Stage 2 only runs if stage 1 passes.

        Returns the resolved accounts keyed by code.
        """
        self.check_balance(lines)
        return await self.resolve_accounts(business_id, lines)
