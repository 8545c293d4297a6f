"""
Excel reading and writing for the student records office.

Sheets are read with openpyxl (``.xlsx``) or the csv module (``.csv``); the
first row of every sheet holds the column headers. Written workbooks are
right-to-left with a styled header row so they open ready for Hebrew data.
"""

from __future__ import annotations

import csv
import io
import logging
from typing import Any, Dict, Iterable, List, Optional, Sequence

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter
from openpyxl.worksheet.worksheet import Worksheet

from .errors import ValidationError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

# Column headers of the student sheet, in template order.
STUDENT_COLUMNS: List[str] = [
    "מספר ת.ז",
    "שם פרטי",
    "שם משפחה",
    "מין",
    "כיתה",
    "מקבילה",
    "מגמה",
    "מחזור",
    "תאריך לידה",
    "דואר אלקטרוני",
    "תאריך עליה",
    "יישוב",
    "כתובת",
    "יישוב 2",
    "כתובת 2",
    "טלפון",
    "טלפון נייד",
    "ת.ז הורים 1",
    "שם פרטי הורים 1",
    "שם משפחה הורים 1",
    "סוג הורים 1",
    "טלפון נייד הורים 1",
    "דואר אלקטרוני הורים 1",
    "ת.ז הורים 2",
    "שם פרטי הורים 2",
    "שם משפחה הורים 2",
    "סוג הורים 2",
    "טלפון נייד הורים 2",
    "דואר אלקטרוני הורים 2",
]

# Short header accepted in place of "מספר ת.ז".
ID_NUMBER_ALIAS = "ת.ז"

HEADER_FILL = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF", size=12)
ALIGN_RIGHT = Alignment(horizontal="right", vertical="center", wrap_text=True)
ALIGN_CENTER = Alignment(horizontal="center", vertical="center", wrap_text=True)
THIN_BORDER = Border(
    left=Side(style="thin", color="000000"),
    right=Side(style="thin", color="000000"),
    top=Side(style="thin", color="000000"),
    bottom=Side(style="thin", color="000000"),
)


def _clean_cell(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _rows_from_values(values: Iterable[Sequence[Any]]) -> List[Row]:
    iterator = iter(values)
    try:
        header_row = next(iterator)
    except StopIteration:
        return []

    headers = [str(h).strip() if h is not None and str(h).strip() else None for h in header_row]
    rows: List[Row] = []
    for raw in iterator:
        cells = [_clean_cell(v) for v in raw]
        if all(v is None for v in cells):
            continue
        row = {header: (cells[i] if i < len(cells) else None) for i, header in enumerate(headers) if header}
        rows.append(row)
    return rows


def parse_spreadsheet(content: bytes, filename: Optional[str] = None) -> List[Row]:
    """Read every sheet of a workbook into one list of ``{header: value}`` rows.

    Blank cells become None and fully blank rows are dropped.

    Raises:
        ValidationError: when the content cannot be read as a spreadsheet
    """
    if filename and filename.lower().endswith(".csv"):
        try:
            text = content.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            logger.warning(f"CSV upload is not valid UTF-8: {e}")
            raise ValidationError("Failed to parse Excel file", details=str(e))
        return _rows_from_values(csv.reader(io.StringIO(text)))

    try:
        workbook = load_workbook(io.BytesIO(content), read_only=True, data_only=True)
    except Exception as e:
        logger.warning(f"Could not open workbook {filename or ''}: {e}")
        raise ValidationError("Failed to parse Excel file", details=str(e))

    try:
        rows: List[Row] = []
        for worksheet in workbook.worksheets:
            rows.extend(_rows_from_values(worksheet.iter_rows(values_only=True)))
        return rows
    finally:
        workbook.close()


def style_sheet(worksheet: Worksheet, column_widths: Optional[Sequence[int]] = None) -> None:
    """Right-to-left layout, bordered cells and a blue header row."""
    worksheet.sheet_view.rightToLeft = True

    for index, row in enumerate(worksheet.iter_rows(min_row=1), start=1):
        for cell in row:
            cell.border = THIN_BORDER
            if index == 1:
                cell.fill = HEADER_FILL
                cell.font = HEADER_FONT
                cell.alignment = ALIGN_CENTER
            else:
                cell.alignment = ALIGN_RIGHT

    for index in range(1, worksheet.max_column + 1):
        letter = get_column_letter(index)
        if column_widths and index <= len(column_widths):
            width = column_widths[index - 1]
        else:
            longest = max((len(str(c.value)) for c in worksheet[letter] if c.value is not None), default=0)
            width = min(max(longest + 2, 12), 50)
        worksheet.column_dimensions[letter].width = width


def build_workbook(
    sheet_title: str,
    headers: Sequence[str],
    rows: Iterable[Sequence[Any]],
    column_widths: Optional[Sequence[int]] = None,
) -> bytes:
    """Single-sheet styled workbook serialized to ``.xlsx`` bytes."""
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = sheet_title
    worksheet.append(list(headers))
    for row in rows:
        worksheet.append(list(row))
    style_sheet(worksheet, column_widths)

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
