"""Primavera P6 XER export parser.

Extracts the WBS hierarchy from the PROJWBS table of an XER file:

    %T  PROJWBS
    %F  wbs_id  proj_id  ...  wbs_short_name  wbs_name  parent_wbs_id
    %R  1001    500      ...  1.3             S1 | ...  1000

Parent references are surrogate ids (wbs_id); they are resolved to
hierarchical codes (wbs_short_name) through a lookup built from all records.
"""

from __future__ import annotations

import logging
import re

from pydantic import ValidationError

from wbscalc.config import get_config
from wbscalc.hierarchy.codes import is_valid_code
from wbscalc.ingestion.enrichment import build_parse_result
from wbscalc.ingestion.types import ImportFormatError, ParseResult
from wbscalc.models import WBSNode

logger = logging.getLogger(__name__)

TABLE_MARKER = "%T"
FIELD_MARKER = "%F"
RECORD_MARKER = "%R"
END_MARKER = "%E"

WBS_TABLE = "PROJWBS"
PROJECT_TABLE = "PROJECT"

REQUIRED_FIELDS = ("wbs_id", "wbs_short_name", "wbs_name", "parent_wbs_id")
PROJECT_NAME_FIELDS = ("proj_short_name", "proj_name")

_TABLE_LINE = re.compile(r"^%T\s+(\S+)\s*$")


def split_record_line(line: str) -> list[str]:
    """Tokenize a tab-delimited record line honouring double quotes.

    Quoted fields may contain tabs; a doubled quote inside a quoted field is
    one literal quote. Values are stripped of surrounding whitespace.

    Example:
        >>> split_record_line('1001\\t"A\\tB"\\tC')
        ['1001', 'A\\tB', 'C']
    """
    values: list[str] = []
    current: list[str] = []
    in_quotes = False
    i = 0
    while i < len(line):
        char = line[i]
        if char == '"':
            if in_quotes and i + 1 < len(line) and line[i + 1] == '"':
                current.append('"')
                i += 1
            else:
                in_quotes = not in_quotes
        elif char == "\t" and not in_quotes:
            values.append("".join(current).strip())
            current = []
        else:
            current.append(char)
        i += 1

    values.append("".join(current).strip())
    return values


def _split_field_line(line: str) -> list[str]:
    body = line[len(FIELD_MARKER):]
    if "\t" in body.strip("\t"):
        return [field.strip() for field in body.strip("\t").split("\t")]
    return body.split()


def _strip_marker(line: str, marker: str) -> str:
    body = line[len(marker):]
    # The marker is followed by exactly one tab in real exports
    return body[1:] if body.startswith("\t") else body.lstrip(" ")


def _table_name(line: str) -> str | None:
    match = _TABLE_LINE.match(line.strip())
    return match.group(1) if match else None


def _read_table(lines: list[str], table: str) -> tuple[list[str], list[list[str]]] | None:
    """Return (fields, records) for a table, or None if the table is absent.

    Raises:
        ImportFormatError: If the table has no %F line directly after %T
    """
    start = next(
        (i for i, line in enumerate(lines) if _table_name(line) == table),
        None,
    )
    if start is None:
        return None

    field_index = start + 1
    if field_index >= len(lines) or not lines[field_index].startswith(FIELD_MARKER):
        raise ImportFormatError(f"{table} field definition (%F) not found")

    fields = _split_field_line(lines[field_index])
    records: list[list[str]] = []
    for line in lines[field_index + 1:]:
        if line.startswith(TABLE_MARKER) or line.startswith(END_MARKER):
            break
        if line.startswith(RECORD_MARKER):
            records.append(split_record_line(_strip_marker(line, RECORD_MARKER)))
    return fields, records


def extract_project_name(lines: list[str]) -> str | None:
    """Project name from the PROJECT table, if present."""
    try:
        table = _read_table(lines, PROJECT_TABLE)
    except ImportFormatError:
        logger.warning("PROJECT table has no field definition")
        return None
    if table is None or not table[1]:
        return None

    fields, records = table
    for field_name in PROJECT_NAME_FIELDS:
        if field_name in fields:
            index = fields.index(field_name)
            record = records[0]
            if index < len(record) and record[index]:
                return record[index]
    return None


def parse_xer(content: str, strict_parents: bool | None = None) -> ParseResult:
    """Parse XER text into a WBS hierarchy.

    Args:
        content: Raw XER file content
        strict_parents: Skip records whose parent id cannot be resolved
                        instead of promoting them to roots
                        (defaults to IMPORT_STRICT_PARENTS)

    Returns:
        ParseResult with source "xer"

    Raises:
        ImportFormatError: If the PROJWBS table, its %F line, a required
                           field or all %R records are missing, or no
                           record survives validation
    """
    if strict_parents is None:
        strict_parents = get_config().imports.strict_parents

    if not content or not content.strip():
        raise ImportFormatError("XER content is empty")

    lines = [line.rstrip("\r\n") for line in content.splitlines()]
    table = _read_table(lines, WBS_TABLE)
    if table is None:
        raise ImportFormatError(
            "Missing PROJWBS table (%T PROJWBS) - this may not be a valid P6 export"
        )

    fields, raw_records = table
    field_map = {name: index for index, name in enumerate(fields)}
    missing = [name for name in REQUIRED_FIELDS if name not in field_map]
    if missing:
        raise ImportFormatError(f"Missing required PROJWBS fields: {', '.join(missing)}")
    if not raw_records:
        raise ImportFormatError("No PROJWBS data records (%R) found")

    warnings: list[str] = []
    min_length = max(field_map[name] for name in REQUIRED_FIELDS) + 1

    rows: list[list[str]] = []
    for index, values in enumerate(raw_records):
        if len(values) < min_length:
            message = (
                f"Record {index}: skipped malformed PROJWBS record "
                f"({len(values)} values, {len(fields)} fields)"
            )
            logger.warning(message)
            warnings.append(message)
            continue
        rows.append(values)

    def value(row: list[str], name: str) -> str:
        return row[field_map[name]].strip()

    lookup: dict[str, str] = {}
    for row in rows:
        wbs_id = value(row, "wbs_id")
        short_name = value(row, "wbs_short_name")
        if wbs_id and short_name:
            lookup[wbs_id] = short_name

    nodes: list[WBSNode] = []
    seen_codes: set[str] = set()
    for index, row in enumerate(rows):
        wbs_id = value(row, "wbs_id")
        code = value(row, "wbs_short_name")
        name = value(row, "wbs_name")
        parent_id = value(row, "parent_wbs_id")

        if not code or not name:
            message = f"Record {index}: skipped, missing wbs_short_name or wbs_name"
            logger.warning(message)
            warnings.append(message)
            continue
        if not is_valid_code(code):
            message = f"Record {index}: skipped, invalid WBS code '{code}'"
            logger.warning(message)
            warnings.append(message)
            continue

        parent_code = None
        if parent_id and parent_id != wbs_id:
            parent_code = lookup.get(parent_id)
            if parent_code is None:
                if strict_parents:
                    message = (
                        f"Orphaned record {code}: parent id {parent_id} not found, "
                        f"record quarantined"
                    )
                    logger.warning(message)
                    warnings.append(message)
                    continue
                message = (
                    f"Orphaned record {code}: parent id {parent_id} not found, "
                    f"treated as a root"
                )
                logger.warning(message)
                warnings.append(message)

        if code in seen_codes:
            message = f"Duplicate WBS code {code} removed"
            logger.warning(message)
            warnings.append(message)
            continue

        try:
            node = WBSNode(code=code, parent_code=parent_code, name=name)
        except ValidationError as e:
            message = f"Record {index}: skipped, {e.errors()[0]['msg']}"
            logger.warning(message)
            warnings.append(message)
            continue

        seen_codes.add(code)
        nodes.append(node)

    if not nodes:
        raise ImportFormatError(
            f"No valid PROJWBS records found ({len(raw_records)} %R lines read)"
        )

    return build_parse_result(
        nodes,
        warnings,
        source="xer",
        project_name=extract_project_name(lines),
    )
