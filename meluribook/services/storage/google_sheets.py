"""
Google Sheets Storage Implementation

DESIGN DECISION: Google Sheets is offered as a storage backend because:
1. Small-business owners can view their books directly in Sheets
2. No database setup required
3. Built-in backup (Google's infrastructure)
4. Easy to export/migrate later

TRADEOFFS:
- Not suitable for high-volume data (fine for a small-business ledger)
- No cross-sheet transactions. A journal entry is therefore stored
  denormalized: one row per line, each row carrying the entry columns.
  The whole entry is appended with a single append_rows call, which is
  a single API request, so the entry and its lines land together.
- Limited query capabilities (we filter and aggregate in Python)

Reads and connection setup are retried with backoff; appends are not,
since a retried append could post a line twice.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, Optional
from uuid import UUID

import gspread
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from meluribook.config import get_settings
from meluribook.models.audit import AuditEvent, AuditEventType, AuditSeverity
from meluribook.models.ledger import Account, AccountType, JournalEntry, JournalLine
from meluribook.models.transaction import PostingStatus, Transaction, TransactionType
from meluribook.services.storage.interface import (
    AuditStorageInterface,
    ConnectionError,
    DuplicateError,
    LedgerStorageInterface,
    NotFoundError,
    StorageError,
    TransactionStorageInterface,
)


ACCOUNT_COLUMNS = [
    "id",
    "business_id",
    "code",
    "name",
    "type",
    "created_at",
]

# One row per journal line; entry columns repeat on every line of the entry
JOURNAL_COLUMNS = [
    "entry_id",
    "business_id",
    "transaction_id",
    "entry_date",
    "entry_description",
    "entry_created_at",
    "line_id",
    "line_number",
    "account_id",
    "account_code",
    "debit",
    "credit",
    "line_description",
]

TRANSACTION_COLUMNS = [
    "id",
    "business_id",
    "type",
    "amount",
    "currency",
    "transaction_date",
    "category",
    "description",
    "payee",
    "is_tax_deductible",
    "posting_status",
    "journal_entry_id",
    "posting_error",
    "created_at",
    "updated_at",
]

AUDIT_COLUMNS = [
    "event_id",
    "timestamp",
    "event_type",
    "severity",
    "business_id",
    "entity_type",
    "entity_id",
    "correlation_id",
    "description",
    "details_json",
    "error_code",
    "error_message",
]


def _cell_getter(row: list):
    """Return a safe accessor for a possibly short spreadsheet row."""
    def safe_get(index: int, default: str = "") -> str:
        try:
            return row[index] if row[index] else default
        except IndexError:
            return default
    return safe_get


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication, worksheet creation and retried reads.
    """

    def __init__(self):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = get_settings().google_sheets

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def connect(self) -> gspread.Client:
        """
        Establish connection to Google Sheets.

        Uses service account credentials for authentication.
        """
        if self._client is None:
            try:
                scopes = [
                    "https://www.googleapis.com/auth/spreadsheets",
                    "https://www.googleapis.com/auth/drive",
                ]
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=scopes,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError as e:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                ) from e
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}") from e

        return self._client

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet."""
        if self._spreadsheet is None:
            client = self.connect()
            try:
                self._spreadsheet = client.open_by_key(
                    self._settings.spreadsheet_id
                )
            except gspread.SpreadsheetNotFound as e:
                raise ConnectionError(
                    f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                ) from e
        return self._spreadsheet

    def _get_or_create_sheet(
        self,
        title: str,
        columns: list[str],
        rows: int = 1000,
    ) -> gspread.Worksheet:
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=title,
                rows=rows,
                cols=len(columns),
            )
            sheet.append_row(columns)
        return sheet

    def get_accounts_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.accounts_sheet_name, ACCOUNT_COLUMNS
        )

    def get_journal_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.journal_sheet_name, JOURNAL_COLUMNS, rows=5000
        )

    def get_transactions_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.transactions_sheet_name, TRANSACTION_COLUMNS
        )

    def get_audit_sheet(self) -> gspread.Worksheet:
        return self._get_or_create_sheet(
            self._settings.audit_sheet_name, AUDIT_COLUMNS, rows=5000
        )

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    def read_rows(self, sheet: gspread.Worksheet) -> list[list[str]]:
        """All non-empty data rows of a sheet, header excluded."""
        return [row for row in sheet.get_all_values()[1:] if row and row[0]]


class GoogleSheetsLedgerStorage(LedgerStorageInterface):
    """
    Google Sheets implementation of chart-of-accounts and journal storage.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _account_to_row(self, account: Account) -> list:
        return [
            str(account.id),
            account.business_id,
            account.code,
            account.name,
            account.type.value,
            account.created_at.isoformat(),
        ]

    def _row_to_account(self, row: list) -> Account:
        safe_get = _cell_getter(row)
        return Account(
            id=UUID(safe_get(0)),
            business_id=safe_get(1),
            code=safe_get(2),
            name=safe_get(3),
            type=AccountType(safe_get(4)),
            created_at=datetime.fromisoformat(safe_get(5)),
        )

    def _entry_to_rows(self, entry: JournalEntry) -> list[list]:
        return [
            [
                str(entry.id),
                entry.business_id,
                str(entry.transaction_id) if entry.transaction_id else "",
                entry.entry_date.isoformat(),
                entry.description,
                entry.created_at.isoformat(),
                str(line.id),
                str(line.line_number),
                str(line.account_id),
                line.account_code,
                str(line.debit),
                str(line.credit),
                line.description or "",
            ]
            for line in entry.lines
        ]

    def _rows_to_entries(self, rows: list[list]) -> list[JournalEntry]:
        """Regroup denormalized line rows into entries, keeping first-seen order."""
        entries: dict[str, JournalEntry] = {}
        for row in rows:
            safe_get = _cell_getter(row)
            entry_id = safe_get(0)
            entry = entries.get(entry_id)
            if entry is None:
                entry = JournalEntry(
                    id=UUID(entry_id),
                    business_id=safe_get(1),
                    transaction_id=UUID(safe_get(2)) if safe_get(2) else None,
                    entry_date=date.fromisoformat(safe_get(3)),
                    description=safe_get(4),
                    created_at=datetime.fromisoformat(safe_get(5)),
                )
                entries[entry_id] = entry
            entry.lines.append(JournalLine(
                id=UUID(safe_get(6)),
                line_number=int(safe_get(7, "0")),
                account_id=UUID(safe_get(8)),
                account_code=safe_get(9),
                debit=Decimal(safe_get(10, "0")),
                credit=Decimal(safe_get(11, "0")),
                description=safe_get(12) or None,
            ))
        for entry in entries.values():
            entry.lines.sort(key=lambda line: line.line_number)
        return list(entries.values())

    async def _read_accounts(self, business_id: str) -> list[Account]:
        try:
            sheet = self._client.get_accounts_sheet()
            rows = self._client.read_rows(sheet)
            return [
                self._row_to_account(row)
                for row in rows
                if len(row) > 1 and row[1] == business_id
            ]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read accounts: {e}") from e

    async def find_accounts_by_codes(
        self,
        business_id: str,
        codes: Iterable[str],
    ) -> list[Account]:
        wanted = set(codes)
        accounts = await self._read_accounts(business_id)
        return [account for account in accounts if account.code in wanted]

    async def find_account_by_code(
        self,
        business_id: str,
        code: str,
    ) -> Optional[Account]:
        matches = await self.find_accounts_by_codes(business_id, [code])
        return matches[0] if matches else None

    async def list_accounts(self, business_id: str) -> list[Account]:
        accounts = await self._read_accounts(business_id)
        accounts.sort(key=lambda a: a.code)
        return accounts

    async def create_accounts(self, accounts: list[Account]) -> list[Account]:
        try:
            sheet = self._client.get_accounts_sheet()
            existing = {
                (row[1], row[2])
                for row in self._client.read_rows(sheet)
                if len(row) > 2
            }
            for account in accounts:
                if (account.business_id, account.code) in existing:
                    raise DuplicateError(
                        f"Account {account.code} already exists for business "
                        f"{account.business_id}"
                    )
            sheet.append_rows(
                [self._account_to_row(account) for account in accounts],
                value_input_option="RAW",
            )
            return accounts
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to create accounts: {e}") from e

    async def save_journal_entry(self, entry: JournalEntry) -> JournalEntry:
        try:
            sheet = self._client.get_journal_sheet()
            sheet.append_rows(self._entry_to_rows(entry), value_input_option="RAW")
            return entry
        except Exception as e:
            raise StorageError(f"Failed to save journal entry: {e}") from e

    async def _read_journal_rows(self) -> list[list]:
        try:
            sheet = self._client.get_journal_sheet()
            return self._client.read_rows(sheet)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read journal: {e}") from e

    async def sum_lines_for_account(
        self,
        account_id: UUID,
    ) -> tuple[Decimal, Decimal]:
        total_debit = Decimal("0")
        total_credit = Decimal("0")
        wanted = str(account_id)
        for row in await self._read_journal_rows():
            safe_get = _cell_getter(row)
            if safe_get(8) == wanted:
                total_debit += Decimal(safe_get(10, "0"))
                total_credit += Decimal(safe_get(11, "0"))
        return total_debit, total_credit

    async def list_journal_entries(
        self,
        business_id: str,
        limit: int = 50,
    ) -> list[JournalEntry]:
        rows = [
            row for row in await self._read_journal_rows()
            if len(row) > 1 and row[1] == business_id
        ]
        entries = self._rows_to_entries(rows)
        entries.sort(key=lambda e: (e.entry_date, e.created_at), reverse=True)
        return entries[:limit]

    async def get_journal_entry_by_transaction(
        self,
        business_id: str,
        transaction_id: UUID,
    ) -> Optional[JournalEntry]:
        wanted = str(transaction_id)
        rows = [
            row for row in await self._read_journal_rows()
            if len(row) > 2 and row[1] == business_id and row[2] == wanted
        ]
        entries = self._rows_to_entries(rows)
        return entries[0] if entries else None


class GoogleSheetsTransactionStorage(TransactionStorageInterface):
    """Google Sheets implementation of transaction storage, one row per transaction."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _transaction_to_row(self, transaction: Transaction) -> list:
        return [
            str(transaction.id),
            transaction.business_id,
            transaction.type.value,
            str(transaction.amount),
            transaction.currency,
            transaction.transaction_date.isoformat(),
            transaction.category or "",
            transaction.description or "",
            transaction.payee or "",
            str(transaction.is_tax_deductible),
            transaction.posting_status.value,
            str(transaction.journal_entry_id) if transaction.journal_entry_id else "",
            transaction.posting_error or "",
            transaction.created_at.isoformat(),
            transaction.updated_at.isoformat(),
        ]

    def _row_to_transaction(self, row: list) -> Transaction:
        safe_get = _cell_getter(row)
        return Transaction(
            id=UUID(safe_get(0)),
            business_id=safe_get(1),
            type=TransactionType(safe_get(2)),
            amount=Decimal(safe_get(3)),
            currency=safe_get(4),
            transaction_date=date.fromisoformat(safe_get(5)),
            category=safe_get(6) or None,
            description=safe_get(7) or None,
            payee=safe_get(8) or None,
            is_tax_deductible=safe_get(9).lower() == "true",
            posting_status=PostingStatus(safe_get(10, PostingStatus.PENDING.value)),
            journal_entry_id=UUID(safe_get(11)) if safe_get(11) else None,
            posting_error=safe_get(12) or None,
            created_at=datetime.fromisoformat(safe_get(13)),
            updated_at=datetime.fromisoformat(safe_get(14)),
        )

    async def save_transaction(self, transaction: Transaction) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            sheet.append_row(self._transaction_to_row(transaction), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to save transaction: {e}") from e

    async def get_transaction(
        self,
        business_id: str,
        transaction_id: UUID,
    ) -> Optional[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            for row in self._client.read_rows(sheet):
                if row[0] == str(transaction_id) and len(row) > 1 and row[1] == business_id:
                    return self._row_to_transaction(row)
            return None
        except Exception as e:
            raise StorageError(f"Failed to get transaction: {e}") from e

    async def update_transaction(self, transaction: Transaction) -> bool:
        try:
            sheet = self._client.get_transactions_sheet()
            all_rows = sheet.get_all_values()

            # Row 1 is the header
            for idx, row in enumerate(all_rows[1:], start=2):
                if row and row[0] == str(transaction.id):
                    sheet.update(
                        range_name=f"A{idx}",
                        values=[self._transaction_to_row(transaction)],
                    )
                    return True

            raise NotFoundError(f"Transaction not found: {transaction.id}")
        except NotFoundError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to update transaction: {e}") from e

    async def list_transactions(
        self,
        business_id: str,
        posting_status: Optional[PostingStatus] = None,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Transaction]:
        try:
            sheet = self._client.get_transactions_sheet()
            rows = self._client.read_rows(sheet)
        except Exception as e:
            raise StorageError(f"Failed to list transactions: {e}") from e

        transactions = []
        for row in rows:
            if len(row) < 2 or row[1] != business_id:
                continue
            transaction = self._row_to_transaction(row)

            if posting_status and transaction.posting_status != posting_status:
                continue
            if date_from and transaction.transaction_date < date_from:
                continue
            if date_to and transaction.transaction_date > date_to:
                continue

            transactions.append(transaction)

        # Newest first
        transactions.sort(key=lambda t: (t.transaction_date, t.created_at), reverse=True)
        return transactions[offset:offset + limit]


class GoogleSheetsAuditStorage(AuditStorageInterface):
    """
    Google Sheets implementation of audit log storage.

    Audit events are append-only.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def _row_to_event(self, row: list) -> AuditEvent:
        safe_get = _cell_getter(row)
        return AuditEvent(
            event_id=UUID(safe_get(0)),
            timestamp=datetime.fromisoformat(safe_get(1)),
            event_type=AuditEventType(safe_get(2)),
            severity=AuditSeverity(safe_get(3)),
            business_id=safe_get(4) or None,
            entity_type=safe_get(5) or None,
            entity_id=safe_get(6) or None,
            correlation_id=UUID(safe_get(7)) if safe_get(7) else None,
            description=safe_get(8),
            details=json.loads(safe_get(9)) if safe_get(9) else {},
            error_code=safe_get(10) or None,
            error_message=safe_get(11) or None,
        )

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            sheet = self._client.get_audit_sheet()
            sheet.append_row(event.to_sheets_row(), value_input_option="RAW")
            return True
        except Exception as e:
            raise StorageError(f"Failed to write audit event: {e}") from e

    async def _read_events(self) -> list[AuditEvent]:
        try:
            sheet = self._client.get_audit_sheet()
            return [self._row_to_event(row) for row in self._client.read_rows(sheet)]
        except Exception as e:
            raise StorageError(f"Failed to get audit events: {e}") from e

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [
            event for event in await self._read_events()
            if event.correlation_id == correlation_id
        ]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        events = await self._read_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
