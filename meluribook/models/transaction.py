"""
Transaction Models

A Transaction is the user-facing view of money moving: "I was paid 500"
or "I spent 40 on supplies". Each one is posted to the ledger as exactly
one journal entry.

DESIGN DECISION: The transaction carries its own posting status. Saving
the transaction and posting it are two steps, so a failed post leaves a
visible POSTING_FAILED record for reconciliation instead of a silently
unposted transaction.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TransactionType(str, Enum):
    """Direction of a transaction."""
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class PostingStatus(str, Enum):
    """
    Where a transaction is in the save-then-post flow.

    PENDING          saved, ledger post not attempted or in flight
    POSTED           journal entry committed
    POSTING_FAILED   ledger post failed; needs reconciliation
    """
    PENDING = "pending"
    POSTED = "posted"
    POSTING_FAILED = "posting_failed"


class Transaction(BaseModel):
    """An income or expense event recorded by a business."""
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique transaction ID"
    )
    business_id: str = Field(..., min_length=1)

    # REQUIRED fields
    type: TransactionType
    amount: Annotated[
        Decimal,
        Field(gt=0, decimal_places=2, description="Transaction amount (required, positive)")
    ]
    currency: str = Field(
        ...,
        min_length=3,
        max_length=3,
        description="ISO 4217 currency code"
    )
    transaction_date: date

    # Optional descriptive fields
    category: Optional[str] = Field(default=None, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    payee: Optional[str] = Field(default=None, max_length=200)
    is_tax_deductible: bool = False

    # Ledger linkage
    posting_status: PostingStatus = PostingStatus.PENDING
    journal_entry_id: Optional[UUID] = None
    posting_error: Optional[str] = Field(
        default=None,
        description="Why the last posting attempt failed"
    )

    # Timestamps
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()

    @property
    def posting_description(self) -> str:
        """Description used for the journal entry created from this transaction."""
        return self.description or f"Auto-generated for {self.type.value}"
