"""
Data Models Package

This package contains all Pydantic models used in Meluribook.
All data flowing through the ledger must conform to these schemas.
"""

from meluribook.models.ledger import (
    Account,
    AccountType,
    JournalEntry,
    JournalLine,
    PostingLine,
)
from meluribook.models.transaction import (
    PostingStatus,
    Transaction,
    TransactionType,
)
from meluribook.models.tax import TaxContext, TaxResult
from meluribook.models.report import PeriodSummary, TrialBalance, TrialBalanceRow
from meluribook.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "Account",
    "AccountType",
    "JournalEntry",
    "JournalLine",
    "PostingLine",
    # Transaction models
    "PostingStatus",
    "Transaction",
    "TransactionType",
    # Tax models
    "TaxContext",
    "TaxResult",
    # Report models
    "PeriodSummary",
    "TrialBalance",
    "TrialBalanceRow",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
