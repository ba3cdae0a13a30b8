"""
Ledger Errors

Posting failures are raised synchronously, before anything is written,
and are never retried by the ledger: identical input cannot succeed.
"""

from decimal import Decimal
from uuid import UUID


class LedgerError(Exception):
    """Base exception for ledger operations."""
    error_code = "ledger_error"


class InvalidJournalEntryError(LedgerError):
    """The journal entry is structurally unusable (e.g. it has no lines)."""
    error_code = "invalid_entry"


class UnbalancedEntryError(LedgerError):
    """Total debits and total credits differ by more than the tolerance."""
    error_code = "unbalanced_entry"

    def __init__(self, total_debit: Decimal, total_credit: Decimal):
        self.total_debit = total_debit
        self.total_credit = total_credit
        super().__init__(
            f"Unbalanced journal: debit {total_debit} != credit {total_credit}"
        )


class UnknownAccountError(LedgerError):
    """A line references an account code the business does not have."""
    error_code = "unknown_account"

    def __init__(self, account_code: str, business_id: str):
        self.account_code = account_code
        self.business_id = business_id
        super().__init__(
            f"Account code {account_code} not found for business {business_id}"
        )


class TransactionNotFoundError(LedgerError):
    """A transaction to (re)post does not exist."""
    error_code = "transaction_not_found"

    def __init__(self, transaction_id: UUID, business_id: str):
        self.transaction_id = transaction_id
        self.business_id = business_id
        super().__init__(
            f"Transaction {transaction_id} not found for business {business_id}"
        )
