"""P6 export assembly and writers."""

from wbscalc.reporting.csv_export import rows_to_csv, write_csv
from wbscalc.reporting.excel_export import write_xlsx
from wbscalc.reporting.export import (
    EXPORT_COLUMNS,
    ExportMode,
    ExportRow,
    assemble_export,
    export_filename,
    flatten_hierarchy,
)

__all__ = [
    "EXPORT_COLUMNS",
    "ExportMode",
    "ExportRow",
    "assemble_export",
    "export_filename",
    "flatten_hierarchy",
    "rows_to_csv",
    "write_csv",
    "write_xlsx",
]
