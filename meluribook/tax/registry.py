"""
Tax Strategy Registry

Maps an ISO country code to the strategy that estimates its taxes.

DESIGN DECISION: The registry is an ordinary object built once at
startup (see create_default_registry) and passed to whoever needs tax
estimates. There is no module-level strategy table.

An unknown jurisdiction is not an error: the registry logs a warning and
returns no tax lines, so tax estimation can never block posting.
"""

from typing import Iterable, Optional

import structlog

from meluribook.models.tax import TaxContext, TaxResult
from meluribook.tax.strategies import (
    NigeriaTaxStrategy,
    TaxCalculatorStrategy,
    USTaxStrategy,
)


logger = structlog.get_logger(__name__)


class TaxStrategyRegistry:
    """Dispatches tax estimation to per-country strategies."""

    def __init__(self, strategies: Optional[Iterable[TaxCalculatorStrategy]] = None):
        self._strategies: dict[str, TaxCalculatorStrategy] = {}
        for strategy in strategies or ():
            self.register_strategy(strategy)

    def register_strategy(self, strategy: TaxCalculatorStrategy) -> None:
        """Add a strategy, replacing any already registered for its country."""
        self._strategies[strategy.country_code.upper()] = strategy

    def get_strategy(self, country_code: str) -> Optional[TaxCalculatorStrategy]:
        return self._strategies.get(country_code.upper())

    @property
    def supported_countries(self) -> list[str]:
        return sorted(self._strategies)

    async def calculate_tax(
        self,
        country_code: str,
        context: TaxContext,
    ) -> list[TaxResult]:
        """
        Estimate taxes for a transaction in a jurisdiction.

        Returns:
            The strategy's result list unchanged, or [] if no strategy is
            registered for the country
        """
        strategy = self.get_strategy(country_code)
        if strategy is None:
            logger.warning("tax_strategy_not_found", country_code=country_code)
            return []
        return await strategy.calculate_tax(context)


def create_default_registry() -> TaxStrategyRegistry:
    """Registry with the built-in strategies (NG, US)."""
    return TaxStrategyRegistry([NigeriaTaxStrategy(), USTaxStrategy()])
