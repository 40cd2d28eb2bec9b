"""
Google Sheets Backup Store

DESIGN DECISION: Google Sheets is used as the remote backup because:
1. Users can view and edit their expenses directly in Sheets
2. No server or database setup required
3. The same sheet can seed a new device

TRADEOFFS:
- Rows carry no ids, so merging relies on the fuzzy dedup key
- Values come back display-formatted, so parsing must be tolerant
- No transactions (we only ever append and read in full)

The implementation follows RemoteExpenseStoreInterface, so the sync engine
never imports gspread.
"""

import re
from datetime import datetime
from decimal import Decimal, InvalidOperation
from typing import Optional

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from snapspend.config import GoogleSheetsSettings, get_settings
from snapspend.models.expense import (
    DEFAULT_CATEGORY,
    CaptureSource,
    RemoteExpense,
    parse_timestamp,
)
from snapspend.services.storage.interface import (
    REMOTE_COLUMNS,
    ConnectionError,
    RemoteExpenseStoreInterface,
    StorageError,
)


logger = structlog.get_logger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
]

# Display formats Sheets may hand back for a date cell
SHEET_DATE_FORMATS = [
    "%Y-%m-%d",
    "%Y/%m/%d",
    "%m/%d/%Y",
    "%d.%m.%Y",
]

_NON_NUMERIC = re.compile(r"[^0-9.\-]+")


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication, finds (or creates) the backup spreadsheet,
    and provides retry logic for connecting.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._settings = settings or get_settings().google_sheets

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
                credentials = Credentials.from_service_account_file(
                    self._settings.credentials_path,
                    scopes=SCOPES,
                )
                self._client = gspread.authorize(credentials)
            except FileNotFoundError:
                raise ConnectionError(
                    f"Google credentials file not found: {self._settings.credentials_path}"
                )
            except Exception as e:
                raise ConnectionError(f"Failed to connect to Google Sheets: {e}")

        return self._client

    def close(self) -> None:
        """Forget the authorized client and cached spreadsheet."""
        self._client = None
        self._spreadsheet = None

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    def get_spreadsheet(self) -> gspread.Spreadsheet:
        """Get the configured spreadsheet, creating it by title if needed."""
        if self._spreadsheet is None:
            client = self.connect()
            if self._settings.spreadsheet_id:
                try:
                    self._spreadsheet = client.open_by_key(
                        self._settings.spreadsheet_id
                    )
                except gspread.SpreadsheetNotFound:
                    raise ConnectionError(
                        f"Spreadsheet not found: {self._settings.spreadsheet_id}"
                    )
            else:
                try:
                    self._spreadsheet = client.open(self._settings.spreadsheet_title)
                except gspread.SpreadsheetNotFound:
                    logger.info(
                        "spreadsheet_created",
                        title=self._settings.spreadsheet_title,
                    )
                    self._spreadsheet = client.create(self._settings.spreadsheet_title)
        return self._spreadsheet

    def get_expenses_sheet(self) -> gspread.Worksheet:
        """Get or create the Expenses worksheet."""
        spreadsheet = self.get_spreadsheet()
        try:
            sheet = spreadsheet.worksheet(self._settings.expenses_sheet_name)
        except gspread.WorksheetNotFound:
            # Create the sheet with headers
            sheet = spreadsheet.add_worksheet(
                title=self._settings.expenses_sheet_name,
                rows=1000,
                cols=len(REMOTE_COLUMNS),
            )
            sheet.append_row(REMOTE_COLUMNS)
        return sheet


def parse_sheet_amount(raw) -> Optional[Decimal]:
    """
    Parse a display-formatted amount ("৳1,250.00", "12.5 USD").

    Everything but digits, '.' and '-' is stripped first.
    Returns None when nothing numeric remains.
    """
    if raw is None:
        return None
    cleaned = _NON_NUMERIC.sub("", str(raw))
    if not cleaned:
        return None
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    return value if value.is_finite() else None


def parse_sheet_date(raw) -> Optional[str]:
    """Parse a date cell into an ISO calendar day, or None."""
    if raw is None:
        return None
    text = str(raw).strip()
    if not text:
        return None

    parsed = parse_timestamp(text)
    if parsed is not None:
        return parsed.date().isoformat()

    for fmt in SHEET_DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date().isoformat()
        except ValueError:
            continue
    return None


class GoogleSheetsExpenseStore(RemoteExpenseStoreInterface):
    """
    Google Sheets implementation of the remote expense store.

    One expense per row, in REMOTE_COLUMNS order, under a header row.
    """

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    def close(self) -> None:
        self._client.close()

    def _row_to_remote(self, row: list) -> Optional[RemoteExpense]:
        """Convert a spreadsheet row to a RemoteExpense, or None if unusable."""
        def safe_get(index: int, default: str = "") -> str:
            try:
                return str(row[index]).strip() if row[index] is not None else default
            except IndexError:
                return default

        day = parse_sheet_date(safe_get(0))
        amount = parse_sheet_amount(safe_get(3))
        if day is None or amount is None or amount <= 0:
            return None

        return RemoteExpense(
            date=day,
            category=safe_get(1) or DEFAULT_CATEGORY,
            description=safe_get(2) or CaptureSource.SYNC.placeholder_description,
            amount=amount,
            currency=safe_get(4) or None,
            wallet_name=safe_get(5) or None,
        )

    async def read_rows(self) -> list[RemoteExpense]:
        """Read every usable row (header skipped)."""
        try:
            sheet = self._client.get_expenses_sheet()
            all_rows = sheet.get_all_values()[1:]
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read expense rows: {e}")

        expenses = []
        skipped = 0
        for row in all_rows:
            if not row or not any(str(cell).strip() for cell in row):
                continue
            remote = self._row_to_remote(row)
            if remote is None:
                skipped += 1
                continue
            expenses.append(remote)

        if skipped:
            logger.warning("remote_rows_skipped", count=skipped)
        return expenses

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=1, min=2, max=10),
        reraise=True,
    )
    async def append_rows(self, rows: list[list]) -> int:
        """Append rows to the Expenses worksheet."""
        if not rows:
            return 0
        try:
            sheet = self._client.get_expenses_sheet()
            sheet.append_rows(rows, value_input_option="USER_ENTERED")
            return len(rows)
        except StorageError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to append expense rows: {e}")
