"""Double-entry ledger package."""

from meluribook.ledger.chart import (
    DEFAULT_ACCOUNTS,
    ChartOfAccountsProvisioner,
    account_id_for,
    default_accounts_for,
)
from meluribook.ledger.engine import LedgerService
from meluribook.ledger.exceptions import (
    InvalidJournalEntryError,
    LedgerError,
    TransactionNotFoundError,
    UnbalancedEntryError,
    UnknownAccountError,
)
from meluribook.ledger.mapper import lines_for_transaction, map_transaction_to_lines
from meluribook.ledger.validator import PostingValidator

__all__ = [
    "DEFAULT_ACCOUNTS",
    "ChartOfAccountsProvisioner",
    "InvalidJournalEntryError",
    "LedgerError",
    "LedgerService",
    "PostingValidator",
    "TransactionNotFoundError",
    "UnbalancedEntryError",
    "UnknownAccountError",
    "account_id_for",
    "default_accounts_for",
    "lines_for_transaction",
    "map_transaction_to_lines",
]
