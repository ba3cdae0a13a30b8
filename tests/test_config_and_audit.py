"""
Tests for configuration loading and the audit logger.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from meluribook.audit import AuditLogger
from meluribook.config import (
    AppSettings,
    LedgerSettings,
    TaxSettings,
    validate_all_settings,
)
from meluribook.models.audit import AuditEventBuilder, AuditEventType
from meluribook.services.storage import InMemoryAuditStorage, StorageError


class BrokenAuditStorage(InMemoryAuditStorage):
    async def append_event(self, event):
        raise StorageError("sheet locked")


class TestSettings:
    """Tests for environment-driven settings."""

    def test_ledger_defaults(self, monkeypatch):
        """Test the built-in ledger defaults."""
        monkeypatch.delenv("LEDGER_BALANCE_TOLERANCE", raising=False)
        settings = LedgerSettings()
        assert settings.balance_tolerance == Decimal("0.01")
        assert settings.default_currency == "USD"
        assert settings.journal_list_limit == 50

    def test_ledger_env_override(self, monkeypatch):
        """Test that LEDGER_ variables override defaults."""
        monkeypatch.setenv("LEDGER_BALANCE_TOLERANCE", "0.05")
        assert LedgerSettings().balance_tolerance == Decimal("0.05")

    def test_tax_rate_bounds(self, monkeypatch):
        """Test that the period estimate rate must be a fraction."""
        monkeypatch.setenv("TAX_PERIOD_ESTIMATE_RATE", "1.5")
        with pytest.raises(ValidationError):
            TaxSettings()

    def test_storage_backend_choices(self, monkeypatch):
        """Test that only known backends are accepted."""
        monkeypatch.setenv("STORAGE_BACKEND", "postgres")
        with pytest.raises(ValidationError):
            AppSettings()

    def test_validate_all_settings_reports_missing(self, monkeypatch):
        """Test that missing Google Sheets config is reported, not raised."""
        monkeypatch.delenv("GOOGLE_SHEETS_CREDENTIALS_PATH", raising=False)
        monkeypatch.delenv("GOOGLE_SHEETS_SPREADSHEET_ID", raising=False)

        results = validate_all_settings()

        assert results["ledger"] is True
        assert results["tax"] is True
        assert results["google_sheets"] is False
        assert "google_sheets_error" in results


class TestAuditLogger:
    """Tests for the audit logger."""

    @pytest.mark.asyncio
    async def test_persists_events(self):
        """Test that events reach audit storage."""
        storage = InMemoryAuditStorage()
        correlation_id = uuid4()

        await AuditLogger(storage).log_journal_entry_posted(
            business_id="biz-1",
            entry_id=uuid4(),
            total="10.00",
            line_count=2,
            correlation_id=correlation_id,
        )

        [event] = await storage.get_events_by_correlation_id(correlation_id)
        assert event.event_type == AuditEventType.JOURNAL_ENTRY_POSTED
        assert event.details == {"total": "10.00", "line_count": 2}

    @pytest.mark.asyncio
    async def test_storage_failure_not_raised(self):
        """Test that a failing audit store never breaks the caller."""
        logger = AuditLogger(BrokenAuditStorage())
        event = AuditEventBuilder.system_error("boom", "details")

        assert await logger.log(event) is False

    @pytest.mark.asyncio
    async def test_local_only(self):
        """Test logging without storage."""
        assert await AuditLogger().log(AuditEventBuilder.chart_seeded("biz-1", [])) is True
