"""
Chart-of-Accounts Provisioner

Every business starts with the same fixed set of seven accounts. They are
created as one all-or-nothing batch before any transaction can be posted.

Seeding is idempotent: codes the business already has are skipped, so a
second call is a no-op. Account IDs are derived from (business_id, code),
so the same account always gets the same ID.
"""

from uuid import NAMESPACE_URL, UUID, uuid5

import structlog

from meluribook.models.ledger import Account, AccountType
from meluribook.services.storage import DuplicateError, LedgerStorageInterface


logger = structlog.get_logger(__name__)

CASH_ON_HAND = "1000"
ACCOUNTS_RECEIVABLE = "1200"
ACCOUNTS_PAYABLE = "2000"
SALES_TAX_PAYABLE = "2100"
OWNER_EQUITY = "3000"
SALES_REVENUE = "4000"
GENERAL_EXPENSES = "5000"

# (code, name, type) - standard accounts every business gets
DEFAULT_ACCOUNTS: tuple[tuple[str, str, AccountType], ...] = (
    (CASH_ON_HAND, "Cash on Hand", AccountType.ASSET),
    (ACCOUNTS_RECEIVABLE, "Accounts Receivable", AccountType.ASSET),
    (ACCOUNTS_PAYABLE, "Accounts Payable", AccountType.LIABILITY),
    (SALES_TAX_PAYABLE, "Sales Tax Payable", AccountType.LIABILITY),
    (OWNER_EQUITY, "Owner Equity", AccountType.EQUITY),
    (SALES_REVENUE, "Sales Revenue", AccountType.REVENUE),
    (GENERAL_EXPENSES, "General Expenses", AccountType.EXPENSE),
)

_ACCOUNT_NAMESPACE = uuid5(NAMESPACE_URL, "meluribook:account")


def account_id_for(business_id: str, code: str) -> UUID:
    """Deterministic account ID for a business's account code."""
    return uuid5(_ACCOUNT_NAMESPACE, f"{business_id}:{code}")


def default_accounts_for(business_id: str) -> list[Account]:
    """Build (but don't persist) the default chart for a business."""
    return [
        Account(
            id=account_id_for(business_id, code),
            business_id=business_id,
            code=code,
            name=name,
            type=account_type,
        )
        for code, name, account_type in DEFAULT_ACCOUNTS
    ]


class ChartOfAccountsProvisioner:
    """Seeds the default chart of accounts for new businesses."""

    def __init__(self, storage: LedgerStorageInterface):
        self._storage = storage

    async def setup_chart_of_accounts(self, business_id: str) -> list[Account]:
        """
        Create whichever default accounts the business is missing.

        Returns:
            The accounts created by this call; empty if the chart was
            already complete.
        """
        wanted = default_accounts_for(business_id)
        existing = await self._storage.find_accounts_by_codes(
            business_id, [account.code for account in wanted]
        )
        existing_codes = {account.code for account in existing}
        missing = [account for account in wanted if account.code not in existing_codes]

        if not missing:
            logger.info("chart_of_accounts_present", business_id=business_id)
            return []

        try:
            created = await self._storage.create_accounts(missing)
        except DuplicateError:
            # A concurrent call seeded the chart between our read and write;
            # its batch was all-or-nothing, so the chart is complete.
            logger.warning("chart_of_accounts_seed_race", business_id=business_id)
            return []

        logger.info(
            "chart_of_accounts_seeded",
            business_id=business_id,
            codes=[account.code for account in created],
        )
        return created
