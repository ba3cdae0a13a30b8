"""Built-in jurisdiction tax strategies."""

from meluribook.tax.strategies.base import TaxCalculatorStrategy
from meluribook.tax.strategies.nigeria import NigeriaTaxStrategy
from meluribook.tax.strategies.united_states import USTaxStrategy

__all__ = ["NigeriaTaxStrategy", "TaxCalculatorStrategy", "USTaxStrategy"]
