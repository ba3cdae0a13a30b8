"""
Nigeria Tax Strategy

VAT at the flat 7.5% standard rate on the transaction amount.

Company Income Tax is not estimated here: its bracket (0% / 20% / 30%)
depends on annual turnover and it applies to profit, neither of which is
known at transaction level.
"""

from decimal import Decimal

from meluribook.models.tax import TaxContext, TaxResult
from meluribook.tax.strategies.base import TaxCalculatorStrategy


VAT_RATE = Decimal("0.075")


class NigeriaTaxStrategy(TaxCalculatorStrategy):
    country_code = "NG"

    async def calculate_tax(self, context: TaxContext) -> list[TaxResult]:
        # Standard rate for every category; exempt categories are not modelled
        return [
            TaxResult(
                tax_name="VAT",
                amount=context.amount * VAT_RATE,
                rate=VAT_RATE,
                is_deductible=True,
            )
        ]
