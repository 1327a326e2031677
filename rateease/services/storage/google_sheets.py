"""
Google Sheets Integration

Each assembly can connect one spreadsheet for property rates and one for
BOPs (Settings > Integrations). Records can be pushed to a worksheet of
the connected spreadsheet, or pulled back from it as an import.

TRADEOFFS:
- A push replaces the worksheet contents; edits made in Sheets since the
  last pull are overwritten
- No transactions (we handle this with careful ordering: clear, then write)
- Not suitable for high-volume data
"""

from typing import Any, Optional, Sequence

import gspread
import structlog
from google.oauth2.service_account import Credentials
from tenacity import retry, stop_after_attempt, wait_exponential

from rateease.config import GoogleSheetsSettings, get_settings
from rateease.models.preferences import extract_sheet_id
from rateease.models.records import RateRecord
from rateease.services.spreadsheet import ImportedSheet, export_columns, rows_to_records
from rateease.services.storage.interface import ConnectionError, StorageError

logger = structlog.get_logger(__name__)

SCOPES = [
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive",
]


class GoogleSheetsClient:
    """
    Low-level Google Sheets client wrapper.

    Handles authentication and provides retry logic for API calls.
    """

    def __init__(self, settings: Optional[GoogleSheetsSettings] = None):
        self._client: Optional[gspread.Client] = None
        self._settings = settings or get_settings().google_sheets

    @property
    def settings(self) -> GoogleSheetsSettings:
        return self._settings

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

    def get_spreadsheet(self, sheet_url: str) -> gspread.Spreadsheet:
        """Open the spreadsheet a Google Sheets URL points at."""
        sheet_id = extract_sheet_id(sheet_url)
        if not sheet_id:
            raise ConnectionError(f"Not a Google Sheets URL: {sheet_url}")
        client = self.connect()
        try:
            return client.open_by_key(sheet_id)
        except gspread.SpreadsheetNotFound:
            raise ConnectionError(f"Spreadsheet not found: {sheet_id}")

    def get_worksheet(
        self,
        sheet_url: str,
        title: str,
        cols: int = 26,
    ) -> gspread.Worksheet:
        """Get or create a worksheet in the connected spreadsheet."""
        spreadsheet = self.get_spreadsheet(sheet_url)
        try:
            return spreadsheet.worksheet(title)
        except gspread.WorksheetNotFound:
            return spreadsheet.add_worksheet(title=title, rows=1000, cols=max(cols, 1))


def _sheet_cell(value: Any) -> Any:
    if value is None:
        return ""
    if isinstance(value, (str, int, float, bool)):
        return value
    return str(value)


class GoogleSheetsSync:
    """Push records to, and pull records from, a connected spreadsheet."""

    def __init__(self, client: Optional[GoogleSheetsClient] = None):
        self._client = client or GoogleSheetsClient()

    async def push_records(
        self,
        sheet_url: str,
        worksheet_title: str,
        headers: Sequence[str],
        records: Sequence[RateRecord],
    ) -> int:
        """
        Replace the worksheet contents with the given records.

        Returns the number of data rows written.
        """
        columns = export_columns(headers, records)
        values = [columns]
        for record in records:
            row = record.as_row()
            values.append([_sheet_cell(row.get(column)) for column in columns])

        try:
            sheet = self._client.get_worksheet(sheet_url, worksheet_title, cols=len(columns))
            sheet.clear()
            sheet.update(values=values, range_name="A1", value_input_option="RAW")
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to write to Google Sheets: {e}")

        logger.info(
            "google_sheet_pushed",
            worksheet=worksheet_title,
            rows=len(records),
        )
        return len(records)

    async def pull_records(
        self,
        sheet_url: str,
        worksheet_title: str,
        id_prefix: str = "imported",
    ) -> ImportedSheet:
        """Read a worksheet back as an import (first row is the header)."""
        try:
            sheet = self._client.get_worksheet(sheet_url, worksheet_title)
            rows = sheet.get_all_values()
        except ConnectionError:
            raise
        except Exception as e:
            raise StorageError(f"Failed to read from Google Sheets: {e}")

        return rows_to_records(rows, filename=worksheet_title, id_prefix=id_prefix)
