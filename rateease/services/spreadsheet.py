"""
Spreadsheet Import / Export

Import reads the first worksheet of an ``.xlsx`` workbook, treats the first
row as headers and maps every following non-blank row 1:1 to a record.
Export reverses this.

DESIGN DECISION: Headers are kept exactly as typed in the workbook. Reading
a value later goes through the header-alias resolver, so "Name of Owner"
and "Owner Name" both work without an import-time mapping step.
"""

import time
import zipfile
from datetime import datetime
from io import BytesIO
from typing import Any, Iterable, Optional, Sequence, TypeVar

import structlog
from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException
from pydantic import BaseModel, Field, ValidationError

from rateease.models.records import RateRecord

logger = structlog.get_logger(__name__)

SUPPORTED_EXTENSIONS = (".xlsx",)
LEGACY_EXTENSIONS = (".xls",)

# Columns owned by the application, never exported
EXPORT_EXCLUDED_COLUMNS = frozenset({"id", "status"})

# Sheet columns that would clash with record fields the application owns
RENAMED_HEADERS = frozenset(RateRecord.model_fields) - {"id"}

RecordT = TypeVar("RecordT", bound=RateRecord)


class SpreadsheetError(Exception):
    """Base exception for spreadsheet import/export."""
    pass


class InvalidFileTypeError(SpreadsheetError):
    """The upload is not an Excel workbook we can read."""
    pass


class EmptySpreadsheetError(SpreadsheetError):
    """The workbook has no header row or no data rows."""
    pass


class ImportedSheet(BaseModel):
    """Result of reading a workbook."""

    filename: str
    headers: list[str] = Field(default_factory=list)
    rows: list[dict[str, Any]] = Field(default_factory=list)

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def to_records(self, model: type[RecordT]) -> list[RecordT]:
        """
        Raises:
            SpreadsheetError: If a row cannot be turned into a record
        """
        try:
            return [model.model_validate(row) for row in self.rows]
        except ValidationError as e:
            raise SpreadsheetError(f"Failed to read the rows of {self.filename}: {e}")


def _column_name(header: str) -> str:
    return f"{header} (imported)" if header in RENAMED_HEADERS else header


def check_file_type(filename: str) -> None:
    lowered = (filename or "").lower()
    if lowered.endswith(LEGACY_EXTENSIONS):
        raise InvalidFileTypeError(
            "Legacy .xls workbooks are not supported. "
            "Please re-save the file as .xlsx and upload it again."
        )
    if not lowered.endswith(SUPPORTED_EXTENSIONS):
        raise InvalidFileTypeError("Please upload an Excel file (.xlsx).")


def _is_blank_cell(cell: Any) -> bool:
    return cell is None or cell == ""


def rows_to_records(
    rows: Sequence[Sequence[Any]],
    filename: str,
    id_prefix: str = "imported",
) -> ImportedSheet:
    """
    Turn a header row plus data rows into record dictionaries.

    A filled-in "id" column becomes the record id (as text). Headers named
    like the other record fields ("payments", "created_at") get an
    " (imported)" suffix so the sheet's values are kept as plain columns.

    Raises:
        EmptySpreadsheetError: Fewer than two rows, or only blank data rows
    """
    if not rows or len(rows) < 2:
        raise EmptySpreadsheetError("Spreadsheet is empty or has only headers.")

    headers = ["" if h is None else str(h) for h in rows[0]]

    data_rows = [
        row for row in rows[1:]
        if any(not _is_blank_cell(cell) for cell in row)
    ]
    if not data_rows:
        raise EmptySpreadsheetError("No data rows found in the spreadsheet.")

    renamed = [h for h in headers if h in RENAMED_HEADERS]
    if renamed:
        logger.warning("spreadsheet_headers_renamed", filename=filename, headers=renamed)
    headers = [_column_name(h) for h in headers]

    stamp = int(time.time() * 1000)
    seen_ids: set[str] = set()
    records = []
    for index, row in enumerate(data_rows):
        record: dict[str, Any] = {}
        for col, header in enumerate(headers):
            value = row[col] if col < len(row) else ""
            record[header] = "" if value is None else value

        # An "id" column is kept when it is filled in and unique
        sheet_id = str(record.get("id", "")).strip()
        if not sheet_id or sheet_id in seen_ids:
            sheet_id = f"{id_prefix}-{stamp}-{index}"
        record["id"] = sheet_id
        seen_ids.add(sheet_id)
        records.append(record)

    return ImportedSheet(filename=filename, headers=headers, rows=records)


def import_workbook(
    data: bytes,
    filename: str,
    max_size_bytes: Optional[int] = None,
) -> ImportedSheet:
    """
    Read the first worksheet of an uploaded workbook.

    Raises:
        InvalidFileTypeError: Wrong extension, too large, or unreadable
        EmptySpreadsheetError: No header or no data rows
    """
    check_file_type(filename)
    if max_size_bytes is not None and len(data) > max_size_bytes:
        raise InvalidFileTypeError(
            f"File is too large ({len(data) / (1024 * 1024):.1f} MB)."
        )

    try:
        workbook = load_workbook(BytesIO(data), read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError, ValueError) as e:
        raise InvalidFileTypeError(f"Failed to parse the Excel file: {e}")

    try:
        worksheet = workbook.worksheets[0]
        rows = [list(row) for row in worksheet.iter_rows(values_only=True)]
    finally:
        workbook.close()

    sheet = rows_to_records(rows, filename)
    logger.info(
        "spreadsheet_imported",
        filename=filename,
        headers=len(sheet.headers),
        rows=sheet.row_count,
    )
    return sheet


def export_columns(headers: Sequence[str], records: Iterable[RateRecord]) -> list[str]:
    """
    Header order for an export: the known headers first, then any extra
    columns found on records, never the application's own columns.
    """
    columns = [h for h in headers if h not in EXPORT_EXCLUDED_COLUMNS]
    for record in records:
        for column in record.columns:
            if column not in columns and column not in EXPORT_EXCLUDED_COLUMNS:
                columns.append(column)
    return columns


def _cell(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool, datetime)):
        return value
    return str(value)


def export_workbook(
    records: Sequence[RateRecord],
    headers: Sequence[str] = (),
    sheet_title: str = "Sheet1",
) -> bytes:
    """Write records to a single-sheet ``.xlsx`` workbook and return its bytes."""
    columns = export_columns(headers, records)

    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet_title[:31]
    worksheet.append(columns)
    for record in records:
        row = record.as_row()
        worksheet.append([_cell(row.get(column)) for column in columns])

    output = BytesIO()
    workbook.save(output)
    return output.getvalue()
