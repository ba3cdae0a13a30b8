"""
Transaction-to-Posting Mapper

Turns an income or expense into its two balanced journal lines:

    INCOME   Dr 1000 Cash on Hand       Cr 4000 Sales Revenue
    EXPENSE  Dr 5000 General Expenses   Cr 1000 Cash on Hand

The mapping is fixed and ignores the transaction category; choosing
accounts by category is a known simplification not yet made. Pure
functions only - nothing here touches storage.
"""

from decimal import Decimal
from typing import Optional

from meluribook.ledger.chart import CASH_ON_HAND, GENERAL_EXPENSES, SALES_REVENUE
from meluribook.models.ledger import PostingLine
from meluribook.models.transaction import Transaction, TransactionType


def map_transaction_to_lines(
    transaction_type: TransactionType,
    amount: Decimal,
    category: Optional[str] = None,
) -> list[PostingLine]:
    """
    Build the debit and credit line for a transaction.

    Args:
        transaction_type: INCOME or EXPENSE
        amount: Full transaction amount, posted on both lines
        category: Only used to label the expense line

    Raises:
        ValueError: For an unsupported transaction type
    """
    if transaction_type == TransactionType.INCOME:
        return [
            PostingLine(account_code=CASH_ON_HAND, debit=amount, description="Cash/Bank"),
            PostingLine(account_code=SALES_REVENUE, credit=amount, description="Sales Revenue"),
        ]
    if transaction_type == TransactionType.EXPENSE:
        return [
            PostingLine(
                account_code=GENERAL_EXPENSES,
                debit=amount,
                description=category or "Expense",
            ),
            PostingLine(account_code=CASH_ON_HAND, credit=amount, description="Cash/Bank"),
        ]
    raise ValueError(f"Unsupported transaction type: {transaction_type}")


def lines_for_transaction(transaction: Transaction) -> list[PostingLine]:
    """Journal lines for a stored transaction."""
    return map_transaction_to_lines(
        transaction.type,
        transaction.amount,
        category=transaction.category,
    )
