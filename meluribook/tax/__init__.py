"""Tax estimation package."""

from meluribook.tax.registry import TaxStrategyRegistry, create_default_registry
from meluribook.tax.strategies import (
    NigeriaTaxStrategy,
    TaxCalculatorStrategy,
    USTaxStrategy,
)

__all__ = [
    "NigeriaTaxStrategy",
    "TaxCalculatorStrategy",
    "TaxStrategyRegistry",
    "USTaxStrategy",
    "create_default_registry",
]
