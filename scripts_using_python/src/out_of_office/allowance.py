"""
Travel Allowance Workbook Module

Fills the business-trip allowance template with one row per trip day.

Template sheets:
    "日帰り One-Day"  - always filled
    "宿泊 Overnight"  - also filled when the trip spans more than one day

The column layout is discovered from the header row (the first row within
the top 50 that contains the date header), and data goes into the first
blank rows below it. A missing sheet or header row is skipped; running out
of blank rows is an error.

@author: Generated for outlook_automation repository (Python Graph implementation)
"""

import io
import logging
import requests
from datetime import date, datetime, time
from pathlib import Path
from typing import Dict, List, Optional

from openpyxl import load_workbook
from openpyxl.workbook.workbook import Workbook
from openpyxl.worksheet.worksheet import Worksheet

from .drive import DriveClient, XLSX_CONTENT_TYPE
from .exceptions import AllowanceSheetError
from .leave import is_multi_day


logger = logging.getLogger("outlook_automation")

SINGLE_DAY_SHEET = "日帰り One-Day"
OVERNIGHT_SHEET = "宿泊 Overnight"

# Header text patterns (partial match, case-insensitive)
HEADER_DATE = "日にち"
HEADER_DESTINATION = "出張先"
HEADER_DEPART = "出発"
HEADER_START = "始業"
HEADER_FINISH = "終業"
HEADER_RETURN = "帰着"

TIME_DEPART = time(7, 0)
TIME_START = time(9, 0)
TIME_FINISH = time(18, 0)
TIME_RETURN = time(21, 0)

HEADER_SEARCH_ROWS = 50
BLANK_ROW_SEARCH_LIMIT = 10000

DRIVE_PREFIX = "onedrive:"


def contains_text(value, pattern: str) -> bool:
    """Case-insensitive substring match on a cell value."""
    return value is not None and pattern.lower() in str(value).lower()


def find_header_row(ws: Worksheet, marker: str = HEADER_DATE, max_rows: int = HEADER_SEARCH_ROWS) -> Optional[int]:
    """
    Find the header row by looking for the date column marker.

    Args:
        ws: Worksheet
        marker: Text the date header contains
        max_rows: Number of rows searched from the top

    Returns:
        1-based row number, or None if not found
    """
    for row in ws.iter_rows(min_row=1, max_row=max_rows):
        for cell in row:
            if contains_text(cell.value, marker):
                return cell.row
    return None


def find_column(ws: Worksheet, header_row: int, header_text: str) -> Optional[int]:
    """
    Find the column whose header contains header_text.

    Returns:
        1-based column number, or None if not found
    """
    for cell in ws[header_row]:
        if contains_text(cell.value, header_text):
            return cell.column
    return None


def find_first_blank_row(ws: Worksheet, start_row: int, column: int,
                         max_rows: int = BLANK_ROW_SEARCH_LIMIT) -> Optional[int]:
    """
    Find the first row at or below start_row whose cell in column is empty.

    Args:
        ws: Worksheet
        start_row: First row to check
        column: Column to check
        max_rows: Number of rows searched

    Returns:
        1-based row number, or None if every searched row is filled
    """
    for row in range(start_row, start_row + max_rows):
        value = ws.cell(row=row, column=column).value
        if value is None or (isinstance(value, str) and not value.strip()):
            return row
    return None


def find_columns(ws: Worksheet, header_row: int) -> Dict[str, Optional[int]]:
    """Locate all six allowance columns in the header row."""
    return {
        "date": find_column(ws, header_row, HEADER_DATE),
        "destination": find_column(ws, header_row, HEADER_DESTINATION),
        "depart": find_column(ws, header_row, HEADER_DEPART),
        "start": find_column(ws, header_row, HEADER_START),
        "finish": find_column(ws, header_row, HEADER_FINISH),
        "return": find_column(ws, header_row, HEADER_RETURN),
    }


def row_values(day: date, destination: str) -> Dict[str, object]:
    """Cell values for one trip day, keyed like find_columns()."""
    return {
        "date": datetime.combine(day, time(0, 0)),
        "destination": destination,
        "depart": datetime.combine(day, TIME_DEPART),
        "start": datetime.combine(day, TIME_START),
        "finish": datetime.combine(day, TIME_FINISH),
        "return": datetime.combine(day, TIME_RETURN),
    }


def fill_sheet(wb: Workbook, sheet_name: str, dates: List[date], destination: str) -> int:
    """
    Write one row per date into a template sheet.

    Columns that are not found are left out; a missing sheet or header row
    skips the sheet.

    Args:
        wb: Workbook
        sheet_name: Name of the sheet to fill
        dates: Trip days
        destination: Destination text

    Returns:
        Number of rows written

    Raises:
        AllowanceSheetError: If no blank row is found below the header
    """
    if sheet_name not in wb.sheetnames:
        logger.warning(f"Sheet '{sheet_name}' not found in template, skipped")
        return 0

    ws = wb[sheet_name]
    header_row = find_header_row(ws)
    if header_row is None:
        logger.warning(f"No '{HEADER_DATE}' header in the first {HEADER_SEARCH_ROWS} rows of '{sheet_name}', skipped")
        return 0

    columns = find_columns(ws, header_row)
    missing = [name for name, col in columns.items() if col is None]
    if missing:
        logger.warning(f"Sheet '{sheet_name}': columns not found: {', '.join(missing)}")

    search_column = columns["date"] or 1
    data_row = find_first_blank_row(ws, header_row + 1, search_column)
    if data_row is None:
        raise AllowanceSheetError(
            f"Could not find a blank row in column {search_column} of '{sheet_name}' "
            f"within {BLANK_ROW_SEARCH_LIMIT} rows of row {header_row + 1}"
        )

    for day in dates:
        values = row_values(day, destination)
        for key, column in columns.items():
            if column is not None:
                ws.cell(row=data_row, column=column).value = values[key]
        data_row += 1

    logger.info(f"Sheet '{sheet_name}': wrote {len(dates)} row(s) starting at row {data_row - len(dates)}")
    return len(dates)


def fill_workbook(wb: Workbook, dates: List[date], destination: str) -> Dict[str, int]:
    """
    Fill the one-day sheet, and the overnight sheet for multi-day trips.

    Returns:
        Rows written per sheet name
    """
    written = {SINGLE_DAY_SHEET: fill_sheet(wb, SINGLE_DAY_SHEET, dates, destination)}
    if is_multi_day(dates):
        written[OVERNIGHT_SHEET] = fill_sheet(wb, OVERNIGHT_SHEET, dates, destination)
    return written


def allowance_file_name(family_name: str, first_day: date) -> str:
    """e.g. BT-Allowance-Yamada-20240603.xlsx"""
    return f"BT-Allowance-{family_name}-{first_day.strftime('%Y%m%d')}.xlsx"


def is_drive_location(target_location: str) -> bool:
    """True for "onedrive" / "onedrive:..." targets."""
    target = (target_location or "").strip().lower()
    return target == DRIVE_PREFIX.rstrip(":") or target.startswith(DRIVE_PREFIX)


class AllowanceSheetService:
    """
    Creates a filled copy of the allowance template.

    The template source is a local path, an http(s) URL, or
    "onedrive:<file name>" for a template kept in the OneDrive app folder.
    The result is saved to a local folder, or to the app folder when the
    target location is "onedrive".
    """

    def __init__(self, template_source: Optional[str], drive_client: Optional[DriveClient] = None,
                 download_timeout: float = 30):
        """
        Args:
            template_source: Where the template comes from
            drive_client: Needed for OneDrive templates and targets
            download_timeout: Seconds allowed for downloading a URL template
        """
        self.template_source = template_source
        self.drive_client = drive_client
        self.download_timeout = download_timeout

    def fill_template(self, dates: List[date], destination: str, family_name: str, target_location: str) -> str:
        """
        Fill the template for a trip and save the result.

        Args:
            dates: Trip days (at least one)
            destination: Destination text written on every row
            family_name: Used in the file name
            target_location: Local folder, or "onedrive"

        Returns:
            Path of the saved file, or its OneDrive web URL
        """
        if not dates:
            raise AllowanceSheetError("No trip dates given")

        file_name = allowance_file_name(family_name, dates[0])
        to_drive = is_drive_location(target_location)

        content = self._template_bytes(file_name, to_drive)
        wb = load_workbook(io.BytesIO(content))
        fill_workbook(wb, dates, destination)

        if to_drive:
            buffer = io.BytesIO()
            wb.save(buffer)
            item = self._require_drive().upload(file_name, buffer.getvalue(), content_type=XLSX_CONTENT_TYPE)
            return item.get("webUrl") or file_name

        folder = Path(target_location).expanduser()
        folder.mkdir(parents=True, exist_ok=True)
        save_path = folder / file_name
        wb.save(save_path)
        logger.info(f"Saved allowance workbook: {save_path}")
        return str(save_path)

    def _require_drive(self) -> DriveClient:
        if self.drive_client is None:
            raise AllowanceSheetError("OneDrive is not available (no Graph drive client configured)")
        return self.drive_client

    def _template_bytes(self, file_name: str, to_drive: bool) -> bytes:
        """Get the template content; a OneDrive template is copied first when the result stays there."""
        source = self.template_source
        if not source:
            raise AllowanceSheetError("No allowance template configured (template_source)")

        if source.lower().startswith(DRIVE_PREFIX):
            drive = self._require_drive()
            template_name = source[len(DRIVE_PREFIX):]
            if to_drive:
                item = drive.get_item(template_name)
                if item is None:
                    raise AllowanceSheetError(f"Template '{template_name}' not found in OneDrive app folder")
                drive.copy_item(item["id"], file_name)
                content = drive.download(file_name)
            else:
                content = drive.download(template_name)
            if content is None:
                raise AllowanceSheetError(f"Template '{template_name}' could not be downloaded")
            return content

        if source.lower().startswith(("http://", "https://")):
            logger.info(f"Downloading allowance template from {source}")
            response = requests.get(source, timeout=self.download_timeout)
            if response.status_code >= 400:
                raise AllowanceSheetError(f"Template download failed: {response.status_code}")
            return response.content

        path = Path(source).expanduser()
        if not path.exists():
            raise AllowanceSheetError(f"Template not found: {path}")
        return path.read_bytes()
