"""
Tax Calculator Strategy Interface

A strategy estimates the taxes one transaction attracts in one
jurisdiction. New jurisdictions are added by subclassing and registering
under their ISO country code; the registry itself never changes.
"""

from abc import ABC, abstractmethod

from meluribook.models.tax import TaxContext, TaxResult


class TaxCalculatorStrategy(ABC):
    """Jurisdiction-specific tax estimation."""

    #: ISO 3166-1 alpha-2 code the strategy is registered under
    country_code: str

    @abstractmethod
    async def calculate_tax(self, context: TaxContext) -> list[TaxResult]:
        """
        Estimate tax lines for a transaction.

        Returns:
            Zero or more estimated tax lines
        """
        pass
