"""
Ledger Data Models

These models define the chart of accounts and the journal:
1. Account - a named, typed bucket for monetary activity
2. PostingLine - a debit/credit line as supplied by a caller
3. JournalLine - a persisted line with its account resolved
4. JournalEntry - a dated, balanced group of journal lines

DESIGN DECISION: All amounts are Decimal. Binary floats cannot represent
most currency values exactly and the balance check must not drift.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AccountType(str, Enum):
    """
    The five account classes of double-entry bookkeeping.

    ASSET and EXPENSE accounts grow with debits; the other three grow
    with credits. See `is_debit_normal`.
    """
    ASSET = "ASSET"
    LIABILITY = "LIABILITY"
    EQUITY = "EQUITY"
    REVENUE = "REVENUE"
    EXPENSE = "EXPENSE"

    @property
    def is_debit_normal(self) -> bool:
        return self in (AccountType.ASSET, AccountType.EXPENSE)

    def signed_balance(self, debit: Decimal, credit: Decimal) -> Decimal:
        """Apply this account type's normal-balance polarity to raw totals."""
        if self.is_debit_normal:
            return debit - credit
        return credit - debit


class Account(BaseModel):
    """
    An account in a business's chart of accounts.

    (business_id, code) is unique. Accounts are append-only: the ledger
    never updates or deletes them.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique account ID"
    )
    business_id: str = Field(
        ...,
        min_length=1,
        description="Owning business"
    )
    code: str = Field(
        ...,
        min_length=1,
        max_length=20,
        description="Short account code, unique per business (e.g. '1000')"
    )
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    type: AccountType
    created_at: datetime = Field(default_factory=_utcnow)


class PostingLine(BaseModel):
    """
    A journal line as requested by a caller, addressed by account code.

    Amounts are non-negative. A line carries a debit or a credit, never
    both; a zero line is tolerated.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    account_code: str = Field(
        ...,
        min_length=1,
        description="Code of the account to post against"
    )
    debit: Decimal = Field(default=Decimal("0"), ge=0)
    credit: Decimal = Field(default=Decimal("0"), ge=0)
    description: Optional[str] = Field(
        default=None,
        max_length=500,
    )

    @model_validator(mode='after')
    def validate_one_sided(self) -> 'PostingLine':
        """Reject lines that carry both a debit and a credit."""
        if self.debit > 0 and self.credit > 0:
            raise ValueError(
                f"Line for account {self.account_code} carries both a debit "
                f"and a credit; split it into two lines"
            )
        return self


class JournalLine(BaseModel):
    """A persisted journal line, bound to a resolved account."""

    id: UUID = Field(default_factory=uuid4)
    account_id: UUID = Field(
        ...,
        description="Resolved account reference"
    )
    account_code: str
    debit: Decimal = Field(default=Decimal("0"), ge=0)
    credit: Decimal = Field(default=Decimal("0"), ge=0)
    description: Optional[str] = None
    line_number: int = Field(
        ...,
        ge=0,
        description="Position of this line within its entry"
    )


class JournalEntry(BaseModel):
    """
    A balanced journal entry and all of its lines.

    CRITICAL: An entry is only ever constructed after the balance check
    and account resolution have passed, and it is persisted together with
    its lines in one atomic write. Entries are immutable once stored.
    """

    id: UUID = Field(
        default_factory=uuid4,
        description="Unique journal entry ID"
    )
    business_id: str = Field(..., min_length=1)
    transaction_id: Optional[UUID] = Field(
        default=None,
        description="Originating transaction, if any"
    )
    entry_date: date = Field(
        ...,
        description="Posting date"
    )
    description: str = Field(default="", max_length=500)
    lines: list[JournalLine] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=_utcnow)

    @property
    def total_debit(self) -> Decimal:
        return sum((line.debit for line in self.lines), Decimal("0"))

    @property
    def total_credit(self) -> Decimal:
        return sum((line.credit for line in self.lines), Decimal("0"))
