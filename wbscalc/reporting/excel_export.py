"""Excel output of the 3-column P6 import table."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from io import BytesIO
from pathlib import Path

from openpyxl import Workbook
from openpyxl.styles import Font, PatternFill
from openpyxl.utils import get_column_letter

from wbscalc.reporting.export import EXPORT_COLUMNS, ExportRow

logger = logging.getLogger(__name__)

SHEET_TITLE = "WBS"
COLUMN_WIDTHS = (16, 16, 60)


def build_workbook(rows: Iterable[ExportRow]) -> Workbook:
    """Create a single-sheet workbook with a styled header row."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    header_fill = PatternFill(start_color="366092", end_color="366092", fill_type="solid")
    header_font = Font(color="FFFFFF", bold=True)

    for col, header in enumerate(EXPORT_COLUMNS, 1):
        cell = ws.cell(row=1, column=col, value=header)
        cell.fill = header_fill
        cell.font = header_font

    for row_index, row in enumerate(rows, 2):
        for col, value in enumerate(row.as_tuple(), 1):
            # Codes stay text so "1.10" is not read back as 1.1
            ws.cell(row=row_index, column=col, value=value).number_format = "@"

    for col, width in enumerate(COLUMN_WIDTHS, 1):
        ws.column_dimensions[get_column_letter(col)].width = width
    ws.freeze_panes = "A2"

    return wb


def write_xlsx(rows: Iterable[ExportRow], path: Path) -> int:
    """Write rows to an .xlsx file.

    Returns:
        Number of data rows written
    """
    rows = list(rows)
    wb = build_workbook(rows)
    wb.save(path)
    logger.info(f"Wrote {len(rows)} rows to {path}")
    return len(rows)


def xlsx_bytes(rows: Iterable[ExportRow]) -> BytesIO:
    """Workbook as an in-memory stream."""
    output = BytesIO()
    build_workbook(rows).save(output)
    output.seek(0)
    return output
