"""Reader for previously exported 3-column WBS CSV files."""

from __future__ import annotations

import csv
import io
import logging

from pydantic import ValidationError

from wbscalc.ingestion.enrichment import build_parse_result
from wbscalc.ingestion.types import ImportFormatError, ParseResult
from wbscalc.models import WBSNode

logger = logging.getLogger(__name__)

WBS_COLUMNS = ("wbs_code", "parent_wbs_code", "wbs_name")


def parse_wbs_csv(content: str) -> ParseResult:
    """Parse a "wbs_code,parent_wbs_code,wbs_name" CSV.

    Rows with an invalid code, a blank name or a repeated code are skipped
    with a warning. Parent codes are taken as written; orphans are reported.

    Raises:
        ImportFormatError: If the content is empty or a column is missing
    """
    if not content or not content.strip():
        raise ImportFormatError("WBS CSV content is empty")

    reader = csv.DictReader(io.StringIO(content.lstrip("\ufeff")))
    header = [name.strip().lower() for name in reader.fieldnames or []]
    missing = [column for column in WBS_COLUMNS if column not in header]
    if missing:
        raise ImportFormatError(f"Missing required WBS columns: {', '.join(missing)}")
    reader.fieldnames = header

    warnings: list[str] = []
    nodes: list[WBSNode] = []
    seen_codes: set[str] = set()

    # Header is line 1
    for line_number, row in enumerate(reader, start=2):
        code = (row.get("wbs_code") or "").strip()
        parent_code = (row.get("parent_wbs_code") or "").strip()
        name = (row.get("wbs_name") or "").strip()

        if not code and not name:
            continue
        if not name:
            message = f"Row {line_number}: skipped, missing wbs_name"
            logger.warning(message)
            warnings.append(message)
            continue
        if code in seen_codes:
            message = f"Row {line_number}: duplicate WBS code {code} removed"
            logger.warning(message)
            warnings.append(message)
            continue

        try:
            node = WBSNode(code=code, parent_code=parent_code or None, name=name)
        except ValidationError as e:
            message = f"Row {line_number}: skipped, {e.errors()[0]['msg']}"
            logger.warning(message)
            warnings.append(message)
            continue

        seen_codes.add(code)
        nodes.append(node)

    if not nodes:
        raise ImportFormatError("No WBS rows found in CSV content")

    return build_parse_result(nodes, warnings, source="wbs_csv")
