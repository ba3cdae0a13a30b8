"""
Tests for jurisdiction tax strategies and the strategy registry.
"""

import pytest
from datetime import date
from decimal import Decimal

from meluribook.models.tax import TaxContext, TaxResult
from meluribook.tax import (
    NigeriaTaxStrategy,
    TaxCalculatorStrategy,
    TaxStrategyRegistry,
    USTaxStrategy,
    create_default_registry,
)


def _context(amount="1000", category=None, **business_config):
    return TaxContext(
        amount=Decimal(amount),
        currency="USD",
        transaction_date=date(2024, 6, 1),
        category=category,
        business_config=business_config,
    )


class FlatStrategy(TaxCalculatorStrategy):
    country_code = "NG"

    async def calculate_tax(self, context):
        return [TaxResult(tax_name="Flat", amount=Decimal("1"), rate=Decimal("0"),
                          is_deductible=False)]


class TestNigeriaTaxStrategy:
    """Tests for Nigerian VAT."""

    @pytest.mark.asyncio
    async def test_vat_at_standard_rate(self):
        """Test VAT of 7.5% on the transaction amount."""
        results = await NigeriaTaxStrategy().calculate_tax(_context("1000"))

        assert len(results) == 1
        assert results[0].tax_name == "VAT"
        assert results[0].amount == 75
        assert results[0].rate == Decimal("0.075")
        assert results[0].is_deductible is True


class TestUSTaxStrategy:
    """Tests for US sales tax and the self-employment set-aside."""

    @pytest.mark.asyncio
    async def test_california(self):
        """Test CA sales tax plus the set-aside."""
        results = await USTaxStrategy().calculate_tax(_context("1000", state="CA"))

        assert [r.tax_name for r in results] == [
            "Sales Tax (CA)",
            "Set-Aside: Self-Employment Tax",
        ]
        assert results[0].amount == Decimal("72.5")
        assert results[1].amount == 153
        assert results[1].is_deductible is False

    @pytest.mark.asyncio
    async def test_new_york(self):
        """Test the NY sales tax rate."""
        results = await USTaxStrategy().calculate_tax(_context("1000", state="NY"))
        assert results[0].amount == Decimal("88.75")

    @pytest.mark.asyncio
    async def test_default_state_rate(self):
        """Test the fallback rate for a state without its own entry."""
        results = await USTaxStrategy(default_state="DE").calculate_tax(_context("1000"))

        assert results[0].tax_name == "Sales Tax (DE)"
        assert results[0].amount == 60

    @pytest.mark.asyncio
    async def test_transfers_have_no_sales_tax(self):
        """Test that transfers only get the set-aside line."""
        results = await USTaxStrategy().calculate_tax(
            _context("1000", category="Transfer", state="NY")
        )

        assert len(results) == 1
        assert results[0].tax_name == "Set-Aside: Self-Employment Tax"

    @pytest.mark.asyncio
    async def test_sales_tax_not_deductible(self):
        """Test the deductibility flag on sales tax."""
        results = await USTaxStrategy().calculate_tax(_context("200", state="CA"))
        assert results[0].is_deductible is False
        assert results[0].metadata == {"state": "CA"}


class TestTaxStrategyRegistry:
    """Tests for strategy lookup and dispatch."""

    def test_default_registry_countries(self):
        """Test the built-in jurisdictions."""
        assert create_default_registry().supported_countries == ["NG", "US"]

    def test_registries_are_independent(self):
        """Test that registering on one registry does not affect another."""
        first = TaxStrategyRegistry()
        second = TaxStrategyRegistry()
        first.register_strategy(NigeriaTaxStrategy())

        assert first.supported_countries == ["NG"]
        assert second.supported_countries == []

    @pytest.mark.asyncio
    async def test_dispatch_is_case_insensitive(self):
        """Test lookup by lower-case country code."""
        results = await create_default_registry().calculate_tax("ng", _context("1000"))
        assert results[0].amount == 75

    @pytest.mark.asyncio
    async def test_unknown_country_returns_nothing(self):
        """Test that an unsupported jurisdiction yields no tax lines."""
        registry = create_default_registry()
        assert await registry.calculate_tax("XX", _context()) == []
        assert registry.get_strategy("XX") is None

    @pytest.mark.asyncio
    async def test_register_replaces_existing(self):
        """Test that a later strategy for a country wins."""
        registry = create_default_registry()
        registry.register_strategy(FlatStrategy())

        results = await registry.calculate_tax("NG", _context())

        assert [r.tax_name for r in results] == ["Flat"]
        assert registry.supported_countries == ["NG", "US"]
