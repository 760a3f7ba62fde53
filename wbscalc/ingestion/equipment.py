"""Equipment list ingestion for WBSCalc.

Parses CSV/XLSX equipment lists and creates EquipmentItem records.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import pandas as pd
from pydantic import ValidationError

from wbscalc.config import get_config
from wbscalc.ingestion.types import EquipmentTable, ImportFormatError
from wbscalc.models import EquipmentItem

logger = logging.getLogger(__name__)

CSV_SUFFIXES = (".csv",)
EXCEL_SUFFIXES = (".xlsx", ".xls")

# Canonical column -> accepted header spellings (after normalize_column_name)
COLUMN_SYNONYMS: dict[str, tuple[str, ...]] = {
    "equipment_number": (
        "equipment_number",
        "equipment_no",
        "equipment_code",
        "equipment",
        "code",
        "tag",
        "id",
    ),
    "description": ("description", "equipment_description", "desc", "name"),
    "commissioning_status": (
        "commissioning_status",
        "commissioning_yn",
        "commissioning_y_n",
        "commissioning",
        "status",
    ),
    "subsystem": ("subsystem", "sub_system", "system"),
    "parent_equipment_number": (
        "parent_equipment_number",
        "parent_equipment_code",
        "parent_equipment",
        "parent_code",
        "parent",
    ),
}

REQUIRED_COLUMNS = ("equipment_number", "description")


def normalize_column_name(name: Any) -> str:
    """Lower-case a header, turn whitespace into "_" and drop other punctuation.

    Example:
        >>> normalize_column_name(" Commissioning (Y/N) ")
        'commissioning_yn'
    """
    if name is None:
        return ""
    text = re.sub(r"\s+", "_", str(name).strip().lower())
    return re.sub(r"[^a-z0-9_]", "", text)


def map_columns(headers: Iterable[Any]) -> dict[str, str]:
    """Map canonical column names to the original headers that supply them.

    The first header matching a synonym wins; earlier synonyms in the list
    take precedence over later ones.
    """
    normalized = {}
    for header in headers:
        normalized.setdefault(normalize_column_name(header), header)

    mapping: dict[str, str] = {}
    for canonical, synonyms in COLUMN_SYNONYMS.items():
        for synonym in synonyms:
            header = normalized.get(synonym)
            if header is not None and header not in mapping.values():
                mapping[canonical] = header
                break
    return mapping


def _get_str(row: Mapping[str, Any], column: str | None) -> str:
    """Get string value from row, treating missing and NaN as empty."""
    if column is None:
        return ""
    value = row.get(column)
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value).strip()


def equipment_items_from_rows(
    rows: Iterable[Mapping[str, Any]],
    headers: Iterable[Any] | None = None,
) -> EquipmentTable:
    """Build EquipmentItems from raw row mappings.

    Args:
        rows: One mapping per row, keyed by the original headers
        headers: Column headers (defaults to the keys of the first row)

    Returns:
        EquipmentTable with true duplicates removed

    Raises:
        ImportFormatError: If the equipment number or description column is missing
    """
    rows = list(rows)
    if headers is None:
        headers = list(rows[0].keys()) if rows else []

    mapping = map_columns(headers)
    missing = [column for column in REQUIRED_COLUMNS if column not in mapping]
    if missing:
        raise ImportFormatError(f"Missing required columns: {', '.join(missing)}")

    items: list[EquipmentItem] = []
    warnings: list[str] = []

    # Header is row 1 in the user's spreadsheet
    for row_number, row in enumerate(rows, start=2):
        values = {canonical: _get_str(row, header) for canonical, header in mapping.items()}

        if not any(_get_str(row, header) for header in row):
            continue

        equipment_number = values.get("equipment_number", "")
        if not equipment_number or equipment_number == "-":
            message = f"Row {row_number}: skipped, missing equipment number"
            logger.warning(message)
            warnings.append(message)
            continue

        try:
            item = EquipmentItem(
                equipment_number=equipment_number,
                description=values.get("description", ""),
                commissioning_status=values.get("commissioning_status", ""),
                subsystem=values.get("subsystem", ""),
                parent_equipment_number=values.get("parent_equipment_number"),
            )
        except ValidationError as e:
            field_errors = ", ".join(
                f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            message = f"Row {row_number}: skipped {equipment_number}, {field_errors}"
            logger.warning(message)
            warnings.append(message)
            continue

        items.append(item)

    unique, duplicate_warnings = deduplicate_equipment(items)
    warnings.extend(duplicate_warnings)

    logger.info(f"Read {len(unique)} equipment items ({len(warnings)} warnings)")
    return EquipmentTable(items=unique, warnings=warnings)


def deduplicate_equipment(
    items: Iterable[EquipmentItem],
) -> tuple[list[EquipmentItem], list[str]]:
    """Remove true duplicates, keeping the first occurrence.

    Two rows are duplicates only when number, parent, description and
    subsystem all agree; the same number under a different parent is kept.
    """
    seen: set[tuple[str, str, str, str]] = set()
    unique: list[EquipmentItem] = []
    warnings: list[str] = []
    for item in items:
        key = (
            item.equipment_number,
            item.parent_equipment_number or "",
            item.description,
            item.subsystem,
        )
        if key in seen:
            message = f"Duplicate equipment row removed: {item.equipment_number}"
            logger.warning(message)
            warnings.append(message)
            continue
        seen.add(key)
        unique.append(item)
    return unique, warnings


def read_equipment_dataframe(file_path: Path) -> pd.DataFrame:
    """Load an equipment CSV/XLSX into a string DataFrame.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ImportFormatError: If the file is too large, too long or not CSV/XLSX
    """
    if not file_path.exists():
        raise FileNotFoundError(f"Equipment file not found: {file_path}")

    settings = get_config().imports

    file_size_mb = file_path.stat().st_size / (1024 * 1024)
    if file_size_mb > settings.max_file_size_mb:
        raise ImportFormatError(
            f"File too large ({file_size_mb:.1f}MB). "
            f"Maximum allowed: {settings.max_file_size_mb}MB"
        )

    suffix = file_path.suffix.lower()
    if suffix in CSV_SUFFIXES:
        df = pd.read_csv(file_path, dtype=str, keep_default_na=False)
    elif suffix in EXCEL_SUFFIXES:
        df = pd.read_excel(file_path, dtype=str, keep_default_na=False)
    else:
        raise ImportFormatError(f"Unsupported file format: {file_path.suffix}. Use CSV or XLSX.")

    if len(df) > settings.max_equipment_rows:
        raise ImportFormatError(
            f"Too many rows ({len(df):,}). Maximum allowed: {settings.max_equipment_rows:,}"
        )

    return df


def read_equipment_file(file_path: Path) -> EquipmentTable:
    """Ingest an equipment list from CSV or XLSX.

    Expected columns (any listed synonym is accepted):
    - Equipment Number (required)
    - Description (required)
    - Commissioning (Y/N) (optional, blank means N)
    - Subsystem (optional, e.g. "33kV Switchroom 2 - +Z02")
    - Parent Equipment Number (optional, "-" means none)

    Args:
        file_path: Path to CSV or XLSX file

    Returns:
        EquipmentTable of items and row-level warnings

    Raises:
        FileNotFoundError: If file doesn't exist
        ImportFormatError: If file format is invalid
    """
    df = read_equipment_dataframe(file_path)
    table = equipment_items_from_rows(df.to_dict(orient="records"), headers=list(df.columns))
    table.source_file = str(file_path)
    return table
