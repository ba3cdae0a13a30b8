"""
Tax Estimation Models

TaxContext is what a jurisdiction strategy is given; TaxResult is one
estimated tax line it returns. Results are computed on demand and never
persisted by the core.
"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field


class TaxContext(BaseModel):
    """The transaction facts a tax strategy estimates from."""

    amount: Decimal = Field(..., ge=0)
    currency: str = Field(..., min_length=3, max_length=3)
    transaction_date: date
    category: Optional[str] = None
    business_config: dict[str, Any] = Field(
        default_factory=dict,
        description="Per-business tax configuration (e.g. {'state': 'NY'})"
    )


class TaxResult(BaseModel):
    """A single estimated tax line."""

    tax_name: str = Field(..., min_length=1)
    amount: Decimal
    rate: Decimal = Field(..., ge=0)
    is_deductible: bool
    metadata: Optional[dict[str, Any]] = None
