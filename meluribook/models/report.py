"""
Report Models

Read-only views computed from the ledger and from transactions.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from meluribook.models.ledger import AccountType


class TrialBalanceRow(BaseModel):
    """Totals for one account."""

    account_id: UUID
    code: str
    name: str
    type: AccountType
    total_debit: Decimal
    total_credit: Decimal
    balance: Decimal = Field(
        ...,
        description="Balance in the account type's normal polarity"
    )


class TrialBalance(BaseModel):
    """All accounts of a business with aggregate debits and credits."""

    business_id: str
    rows: list[TrialBalanceRow] = Field(default_factory=list)
    total_debit: Decimal
    total_credit: Decimal
    tolerance: Decimal = Field(
        default=Decimal("0"),
        ge=0,
        description="Allowed |debits - credits|, the posting tolerance"
    )

    @property
    def is_balanced(self) -> bool:
        return abs(self.total_debit - self.total_credit) <= self.tolerance


class PeriodSummary(BaseModel):
    """
    Income, expenses and a flat-rate tax estimate over a date range.

    taxable_income is income minus tax-deductible expenses; the estimate
    is a simplification, not a filing figure.
    """

    business_id: str
    date_from: date
    date_to: date
    total_income: Decimal
    total_expenses: Decimal
    tax_deductible_expenses: Decimal
    net_profit: Decimal
    taxable_income: Decimal
    tax_rate: Decimal
    estimated_tax: Decimal
    transaction_count: int = Field(ge=0)
