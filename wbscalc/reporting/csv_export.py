"""CSV output of the 3-column P6 import table."""

from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from io import StringIO
from pathlib import Path
from typing import TextIO

from wbscalc.reporting.export import EXPORT_COLUMNS, ExportRow

logger = logging.getLogger(__name__)


def _write_rows(handle: TextIO, rows: Iterable[ExportRow]) -> int:
    writer = csv.writer(handle, lineterminator="\n")
    writer.writerow(EXPORT_COLUMNS)
    count = 0
    for row in rows:
        writer.writerow(row.as_tuple())
        count += 1
    return count


def rows_to_csv(rows: Iterable[ExportRow]) -> str:
    """Render rows as CSV text with the wbs_code,parent_wbs_code,wbs_name header."""
    output = StringIO()
    _write_rows(output, rows)
    return output.getvalue()


def write_csv(rows: Iterable[ExportRow], target: Path | TextIO) -> int:
    """Write rows to a path or an open text stream.

    Returns:
        Number of data rows written
    """
    if isinstance(target, (str, Path)):
        path = Path(target)
        with path.open("w", encoding="utf-8", newline="") as handle:
            count = _write_rows(handle, rows)
        logger.info(f"Wrote {count} rows to {path}")
        return count
    return _write_rows(target, rows)
