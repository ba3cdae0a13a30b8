"""
Tests for the double-entry ledger: chart seeding, posting validation,
atomic commits and derived balances.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from pydantic import ValidationError

from meluribook.ledger import (
    DEFAULT_ACCOUNTS,
    InvalidJournalEntryError,
    LedgerService,
    PostingValidator,
    UnbalancedEntryError,
    UnknownAccountError,
    account_id_for,
    default_accounts_for,
)
from meluribook.models.audit import AuditEventType
from meluribook.models.ledger import AccountType, PostingLine
from meluribook.services.storage import InMemoryLedgerStorage, StorageError


OTHER_BUSINESS_ID = "biz-globex"
ENTRY_DATE = date(2024, 2, 10)


def _lines(*specs):
    """(code, debit, credit) tuples to PostingLines."""
    return [
        PostingLine(account_code=code, debit=Decimal(debit), credit=Decimal(credit))
        for code, debit, credit in specs
    ]


class FailingLedgerStorage(InMemoryLedgerStorage):
    """Fails while staging the Nth line of a journal entry."""

    def __init__(self, fail_on_line: int = 1):
        super().__init__()
        self._fail_on_line = fail_on_line

    def _stage_line(self, staged_lines, entry, line):
        if line.line_number == self._fail_on_line:
            raise StorageError("disk full")
        super()._stage_line(staged_lines, entry, line)


class TestChartOfAccounts:
    """Tests for chart-of-accounts provisioning."""

    @pytest.mark.asyncio
    async def test_seeds_seven_default_accounts(self, ledger, business_id):
        """Test that a new business gets the standard chart."""
        created = await ledger.setup_chart_of_accounts(business_id)

        assert [a.code for a in created] == [code for code, _, _ in DEFAULT_ACCOUNTS]
        accounts = await ledger.list_accounts(business_id)
        assert len(accounts) == 7
        by_code = {a.code: a for a in accounts}
        assert by_code["1000"].type == AccountType.ASSET
        assert by_code["2100"].name == "Sales Tax Payable"
        assert by_code["3000"].type == AccountType.EQUITY
        assert by_code["5000"].type == AccountType.EXPENSE

    @pytest.mark.asyncio
    async def test_seeding_is_idempotent(self, ledger, business_id, audit_storage):
        """Test that a second setup creates nothing and keeps IDs stable."""
        await ledger.setup_chart_of_accounts(business_id)
        second = await ledger.setup_chart_of_accounts(business_id)

        assert second == []
        accounts = await ledger.list_accounts(business_id)
        assert len(accounts) == 7
        assert all(a.id == account_id_for(business_id, a.code) for a in accounts)

        event_types = [e.event_type for e in await audit_storage.get_recent_events()]
        assert AuditEventType.CHART_OF_ACCOUNTS_SEEDED in event_types
        assert AuditEventType.CHART_OF_ACCOUNTS_ALREADY_PRESENT in event_types

    @pytest.mark.asyncio
    async def test_fills_in_missing_accounts(self, ledger_storage, ledger, business_id):
        """Test that a partial chart is completed without duplicating."""
        await ledger_storage.create_accounts([
            account for account in default_accounts_for(business_id)
            if account.code == "1000"
        ])

        created = await ledger.setup_chart_of_accounts(business_id)

        assert len(created) == 6
        assert "1000" not in {a.code for a in created}

    @pytest.mark.asyncio
    async def test_businesses_have_separate_charts(self, ledger, business_id):
        """Test that the same code resolves to a different account per business."""
        await ledger.setup_chart_of_accounts(business_id)
        await ledger.setup_chart_of_accounts(OTHER_BUSINESS_ID)

        mine = {a.code: a.id for a in await ledger.list_accounts(business_id)}
        theirs = {a.code: a.id for a in await ledger.list_accounts(OTHER_BUSINESS_ID)}
        assert mine["1000"] != theirs["1000"]


class TestPostingValidator:
    """Tests for the two validation stages."""

    def test_empty_entry_rejected(self):
        """Test that an entry needs at least one line."""
        validator = PostingValidator(InMemoryLedgerStorage())
        with pytest.raises(InvalidJournalEntryError):
            validator.check_balance([])

    def test_within_tolerance_accepted(self):
        """Test that a sub-cent difference passes."""
        validator = PostingValidator(InMemoryLedgerStorage())
        debit, credit = validator.check_balance(
            _lines(("1000", "100.005", "0"), ("4000", "0", "100"))
        )
        assert debit == Decimal("100.005")
        assert credit == 100

    def test_over_tolerance_rejected(self):
        """Test that a two-cent difference is rejected."""
        validator = PostingValidator(InMemoryLedgerStorage())
        with pytest.raises(UnbalancedEntryError) as exc_info:
            validator.check_balance(_lines(("1000", "100.02", "0"), ("4000", "0", "100")))
        assert exc_info.value.total_debit == Decimal("100.02")
        assert exc_info.value.total_credit == 100

    def test_custom_tolerance(self):
        """Test that an explicit zero tolerance demands an exact match."""
        validator = PostingValidator(InMemoryLedgerStorage(), tolerance=Decimal("0"))
        assert validator.tolerance == 0
        with pytest.raises(UnbalancedEntryError):
            validator.check_balance(_lines(("1000", "100.001", "0"), ("4000", "0", "100")))

    @pytest.mark.asyncio
    async def test_resolve_names_first_missing_code(self, business_id):
        """Test that the first unknown code in line order is reported."""
        validator = PostingValidator(InMemoryLedgerStorage())

        with pytest.raises(UnknownAccountError) as exc_info:
            await validator.resolve_accounts(
                business_id, _lines(("8000", "5", "0"), ("9000", "0", "5"))
            )
        assert exc_info.value.account_code == "8000"


class TestRecordJournalEntry:
    """Tests for posting journal entries."""

    @pytest.mark.asyncio
    async def test_balanced_entry_updates_balances(self, ledger, business_id):
        """Test that a balanced entry moves both accounts."""
        await ledger.setup_chart_of_accounts(business_id)

        entry = await ledger.record_journal_entry(
            business_id, None, ENTRY_DATE, "Sale",
            _lines(("1000", "500", "0"), ("4000", "0", "500")),
        )

        assert entry.total_debit == entry.total_credit == 500
        assert [line.line_number for line in entry.lines] == [0, 1]
        assert entry.lines[0].account_id == account_id_for(business_id, "1000")
        assert await ledger.get_balance(business_id, "1000") == 500
        assert await ledger.get_balance(business_id, "4000") == 500

    @pytest.mark.asyncio
    async def test_accepts_dict_lines(self, ledger, business_id):
        """Test that plain dicts are accepted as lines."""
        await ledger.setup_chart_of_accounts(business_id)

        entry = await ledger.record_journal_entry(
            business_id, None, ENTRY_DATE, "Owner contribution",
            [
                {"account_code": "1000", "debit": "250"},
                {"account_code": "3000", "credit": "250", "description": "Capital"},
            ],
        )

        assert entry.lines[0].description == "Owner contribution"
        assert entry.lines[1].description == "Capital"
        assert await ledger.get_balance(business_id, "3000") == 250

    @pytest.mark.asyncio
    async def test_unbalanced_entry_writes_nothing(self, ledger, business_id, audit_storage):
        """Test that an unbalanced entry is rejected before any write."""
        await ledger.setup_chart_of_accounts(business_id)

        with pytest.raises(UnbalancedEntryError):
            await ledger.record_journal_entry(
                business_id, None, ENTRY_DATE, "Bad",
                _lines(("1000", "100", "0"), ("4000", "0", "90")),
            )

        assert await ledger.list_journal_entries(business_id) == []
        assert await ledger.get_balance(business_id, "1000") == 0
        rejected = [
            e for e in await audit_storage.get_recent_events()
            if e.event_type == AuditEventType.JOURNAL_ENTRY_REJECTED
        ]
        assert len(rejected) == 1
        assert rejected[0].error_code == "unbalanced_entry"

    @pytest.mark.asyncio
    async def test_empty_entry_rejected(self, ledger, business_id):
        """Test that an entry without lines is rejected."""
        await ledger.setup_chart_of_accounts(business_id)
        with pytest.raises(InvalidJournalEntryError):
            await ledger.record_journal_entry(business_id, None, ENTRY_DATE, "Empty", [])

    @pytest.mark.asyncio
    async def test_unknown_account_writes_nothing(self, ledger, business_id):
        """Test that a line for a missing code rejects the whole entry."""
        await ledger.setup_chart_of_accounts(business_id)

        with pytest.raises(UnknownAccountError) as exc_info:
            await ledger.record_journal_entry(
                business_id, None, ENTRY_DATE, "Typo",
                _lines(("1000", "100", "0"), ("9999", "0", "100")),
            )

        assert exc_info.value.account_code == "9999"
        assert await ledger.get_balance(business_id, "1000") == 0

    @pytest.mark.asyncio
    async def test_balance_checked_before_accounts(self, ledger, business_id):
        """Test that an unbalanced entry with unknown codes reports the imbalance."""
        with pytest.raises(UnbalancedEntryError):
            await ledger.record_journal_entry(
                business_id, None, ENTRY_DATE, "Both wrong",
                _lines(("8888", "100", "0"), ("9999", "0", "1")),
            )

    @pytest.mark.asyncio
    async def test_other_business_chart_not_visible(self, ledger, business_id):
        """Test that one business cannot post to another's accounts."""
        await ledger.setup_chart_of_accounts(OTHER_BUSINESS_ID)

        with pytest.raises(UnknownAccountError):
            await ledger.record_journal_entry(
                business_id, None, ENTRY_DATE, "Wrong books",
                _lines(("1000", "10", "0"), ("4000", "0", "10")),
            )

    @pytest.mark.asyncio
    async def test_dual_sided_line_rejected(self, ledger, business_id):
        """Test that a line with both sides fails validation."""
        await ledger.setup_chart_of_accounts(business_id)
        with pytest.raises(ValidationError):
            await ledger.record_journal_entry(
                business_id, None, ENTRY_DATE, "Odd",
                [{"account_code": "1000", "debit": "5", "credit": "5"}],
            )

    @pytest.mark.asyncio
    async def test_failed_commit_leaves_no_partial_entry(self, business_id):
        """Test that a storage failure mid-entry leaves nothing visible."""
        ledger = LedgerService(FailingLedgerStorage(fail_on_line=1))
        await ledger.setup_chart_of_accounts(business_id)

        with pytest.raises(StorageError):
            await ledger.record_journal_entry(
                business_id, None, ENTRY_DATE, "Interrupted",
                _lines(("1000", "75", "0"), ("4000", "0", "75")),
            )

        assert await ledger.get_balance(business_id, "1000") == 0
        assert await ledger.get_balance(business_id, "4000") == 0
        assert await ledger.list_journal_entries(business_id) == []


class TestBalancesAndQueries:
    """Tests for derived balances and journal queries."""

    @pytest.mark.asyncio
    async def test_unknown_account_balance_is_zero(self, ledger, business_id):
        """Test that a code with no account has a zero balance."""
        assert await ledger.get_balance(business_id, "7777") == 0

    @pytest.mark.asyncio
    async def test_balances_accumulate(self, ledger, business_id):
        """Test balances across several entries and account types."""
        await ledger.setup_chart_of_accounts(business_id)
        await ledger.record_journal_entry(
            business_id, None, ENTRY_DATE, "Sale",
            _lines(("1000", "500", "0"), ("4000", "0", "500")),
        )
        await ledger.record_journal_entry(
            business_id, None, ENTRY_DATE, "Rent",
            _lines(("5000", "120", "0"), ("1000", "0", "120")),
        )
        await ledger.record_journal_entry(
            business_id, None, ENTRY_DATE, "Supplier bill",
            _lines(("5000", "30", "0"), ("2000", "0", "30")),
        )

        assert await ledger.get_balance(business_id, "1000") == 380
        assert await ledger.get_balance(business_id, "4000") == 500
        assert await ledger.get_balance(business_id, "5000") == 150
        assert await ledger.get_balance(business_id, "2000") == 30

    @pytest.mark.asyncio
    async def test_list_journal_entries_newest_first(self, ledger, business_id):
        """Test journal listing order and limit."""
        await ledger.setup_chart_of_accounts(business_id)
        for day in (1, 3, 2):
            await ledger.record_journal_entry(
                business_id, None, date(2024, 5, day), f"Day {day}",
                _lines(("1000", "1", "0"), ("4000", "0", "1")),
            )

        entries = await ledger.list_journal_entries(business_id)
        assert [e.entry_date.day for e in entries] == [3, 2, 1]
        assert all(len(e.lines) == 2 for e in entries)

        limited = await ledger.list_journal_entries(business_id, limit=1)
        assert len(limited) == 1

    @pytest.mark.asyncio
    async def test_entry_lookup_by_transaction(self, ledger, business_id):
        """Test finding the entry posted for a transaction."""
        await ledger.setup_chart_of_accounts(business_id)
        transaction_id = uuid4()
        posted = await ledger.record_journal_entry(
            business_id, transaction_id, ENTRY_DATE, "Linked",
            _lines(("1000", "9", "0"), ("4000", "0", "9")),
        )

        found = await ledger.get_entry_for_transaction(business_id, transaction_id)
        assert found.id == posted.id
        assert await ledger.get_entry_for_transaction(business_id, uuid4()) is None
