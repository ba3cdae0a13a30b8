"""
United States Tax Strategy

1. Sales tax at a state rate (NY 8.875%, CA 7.25%, otherwise a 6%
   national-average placeholder). Transfers are exempt.
2. A 15.3% self-employment tax set-aside on every transaction.

The set-aside is computed on the gross transaction amount. Properly it is
a net-income figure; this is a documented approximation.
"""

from decimal import Decimal
from typing import Optional

from meluribook.config import get_settings
from meluribook.models.tax import TaxContext, TaxResult
from meluribook.tax.strategies.base import TaxCalculatorStrategy


STATE_SALES_TAX_RATES = {
    "NY": Decimal("0.08875"),
    "CA": Decimal("0.0725"),
}
DEFAULT_SALES_TAX_RATE = Decimal("0.06")
SELF_EMPLOYMENT_TAX_RATE = Decimal("0.153")
EXEMPT_CATEGORY = "Transfer"


class USTaxStrategy(TaxCalculatorStrategy):
    country_code = "US"

    def __init__(self, default_state: Optional[str] = None):
        """
        Args:
            default_state: State assumed when the business config has none.
                           Defaults to the configured TAX_DEFAULT_US_STATE.
        """
        self._default_state = default_state or get_settings().tax.default_us_state

    def sales_tax_rate(self, state: str) -> Decimal:
        return STATE_SALES_TAX_RATES.get(state, DEFAULT_SALES_TAX_RATE)

    async def calculate_tax(self, context: TaxContext) -> list[TaxResult]:
        results = []
        state = context.business_config.get("state") or self._default_state

        if context.category != EXEMPT_CATEGORY:
            rate = self.sales_tax_rate(state)
            results.append(TaxResult(
                tax_name=f"Sales Tax ({state})",
                amount=context.amount * rate,
                rate=rate,
                is_deductible=False,
                metadata={"state": state},
            ))

        results.append(TaxResult(
            tax_name="Set-Aside: Self-Employment Tax",
            amount=context.amount * SELF_EMPLOYMENT_TAX_RATE,
            rate=SELF_EMPLOYMENT_TAX_RATE,
            is_deductible=False,
            metadata={"basis": "gross_transaction_amount"},
        ))

        return results
