"""Input format detection and loading of existing P6 projects."""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from wbscalc.hierarchy.codes import is_valid_code
from wbscalc.ingestion.paste import COLUMN_SPLIT, parse_paste
from wbscalc.ingestion.types import ImportFormatError, ParseResult
from wbscalc.ingestion.wbs_csv import parse_wbs_csv
from wbscalc.ingestion.xer import parse_xer

logger = logging.getLogger(__name__)

ZIP_MAGIC = b"PK\x03\x04"


class ImportFormat(str, Enum):
    """Kinds of input file the importers understand."""

    EXCEL_EQUIPMENT_LIST = "excel_equipment_list"
    EQUIPMENT_LIST = "equipment_list"
    EXISTING_PROJECT = "existing_project"
    XER = "xer"
    P6_PASTE = "p6_paste"
    UNKNOWN = "unknown"


def is_xer_content(content: str) -> bool:
    """True if content carries a PROJWBS table with field and record lines."""
    has_table = any(
        line.strip().split()[:2] == ["%T", "PROJWBS"]
        for line in content.splitlines()
        if line.startswith("%T")
    )
    return has_table and "%F" in content and "%R" in content


def looks_like_paste(content: str) -> bool:
    """True if most non-blank lines are "<code><tab or spaces><name>"."""
    lines = [line.strip() for line in content.splitlines() if line.strip()]
    if not lines:
        return False
    matches = 0
    for line in lines:
        columns = COLUMN_SPLIT.split(line)
        if len(columns) >= 2 and is_valid_code(columns[0]):
            matches += 1
    return matches * 2 > len(lines)


def detect_import_format(
    filename: str,
    content: str = "",
    head_bytes: bytes | None = None,
) -> ImportFormat:
    """Work out what kind of file this is from its name and content.

    Args:
        filename: Original file name (only the extension is used)
        content: Decoded text content, if already read
        head_bytes: First bytes of the raw file, used to spot XLSX saved as .csv
    """
    extension = Path(filename).suffix.lower().lstrip(".")

    if extension in ("xlsx", "xls"):
        return ImportFormat.EXCEL_EQUIPMENT_LIST
    if extension == "csv" and head_bytes is not None and head_bytes[:4] == ZIP_MAGIC:
        return ImportFormat.EXCEL_EQUIPMENT_LIST
    if extension == "xer":
        return ImportFormat.XER

    if content:
        if is_xer_content(content):
            return ImportFormat.XER

        if extension == "csv":
            lines = content.lstrip("\ufeff").splitlines()
            header = lines[0].lower() if lines else ""
            if "wbs_code" in header and "parent_wbs_code" in header:
                return ImportFormat.EXISTING_PROJECT
            if "equipment" in header or "description" in header:
                return ImportFormat.EQUIPMENT_LIST

        if looks_like_paste(content):
            return ImportFormat.P6_PASTE

    return ImportFormat.UNKNOWN


def load_existing_project(file_path: Path) -> ParseResult:
    """Parse an existing P6 hierarchy from an XER, 3-column CSV or pasted text file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ImportFormatError: If the file is not a recognised hierarchy format
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Project file not found: {file_path}")

    head = file_path.read_bytes()[:4]
    if head == ZIP_MAGIC:
        raise ImportFormatError(
            f"{file_path.name} is a spreadsheet; expected an XER, WBS CSV or P6 paste file"
        )

    content = file_path.read_text(encoding="utf-8", errors="replace")
    file_format = detect_import_format(file_path.name, content, head)
    logger.info(f"Detected {file_path.name} as {file_format.value}")

    if file_format == ImportFormat.XER:
        return parse_xer(content)
    if file_format == ImportFormat.EXISTING_PROJECT:
        return parse_wbs_csv(content)
    if file_format == ImportFormat.P6_PASTE:
        return parse_paste(content)

    raise ImportFormatError(
        f"{file_path.name} is not an existing project export (detected {file_format.value})"
    )
