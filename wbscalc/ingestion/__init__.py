"""Importers for P6 hierarchies and equipment lists."""

from wbscalc.ingestion.detection import ImportFormat, detect_import_format, load_existing_project
from wbscalc.ingestion.enrichment import infer_node_kind
from wbscalc.ingestion.equipment import (
    equipment_items_from_rows,
    normalize_column_name,
    read_equipment_file,
)
from wbscalc.ingestion.paste import parse_paste
from wbscalc.ingestion.types import EquipmentTable, ImportFormatError, ParseResult
from wbscalc.ingestion.wbs_csv import parse_wbs_csv
from wbscalc.ingestion.xer import parse_xer, split_record_line

__all__ = [
    "EquipmentTable",
    "ImportFormat",
    "ImportFormatError",
    "ParseResult",
    "detect_import_format",
    "equipment_items_from_rows",
    "infer_node_kind",
    "load_existing_project",
    "normalize_column_name",
    "parse_paste",
    "parse_wbs_csv",
    "parse_xer",
    "read_equipment_file",
    "split_record_line",
]
