"""Parser for WBS data pasted straight from the P6 grid.

Users copy the "WBS Code" and "WBS Name" columns out of P6; the clipboard
holds one row per line with the columns separated by tabs (or, after some
editors, by runs of spaces).
"""

from __future__ import annotations

import logging
import re

from wbscalc.config import get_config
from wbscalc.hierarchy.codes import is_valid_code, parent_of
from wbscalc.ingestion.enrichment import build_parse_result
from wbscalc.ingestion.types import ImportFormatError, ParseResult
from wbscalc.models import WBSNode

logger = logging.getLogger(__name__)

COLUMN_SPLIT = re.compile(r"\t+|\s{2,}")

HEADER_CODE = "WBS Code"
HEADER_NAME = "WBS Name"


def parse_paste(content: str) -> ParseResult:
    """Parse two-column pasted P6 data.

    Args:
        content: Clipboard text

    Returns:
        ParseResult with source "p6_paste"

    Raises:
        ImportFormatError: If the content is too short or holds no WBS rows
    """
    settings = get_config().imports

    if not content or len(content) < settings.paste_min_chars:
        raise ImportFormatError(
            f"Content too short to be a P6 export (minimum {settings.paste_min_chars} characters)"
        )

    lines = content.splitlines()
    non_blank = [line for line in lines if line.strip()]
    if len(non_blank) < settings.paste_min_lines:
        raise ImportFormatError(
            f"Too few lines for a P6 export ({len(non_blank)}, "
            f"minimum {settings.paste_min_lines})"
        )

    warnings: list[str] = []
    rows: list[tuple[int, str, str]] = []

    for line_number, line in enumerate(lines, start=1):
        stripped = line.strip()
        if not stripped:
            continue

        columns = COLUMN_SPLIT.split(stripped)
        if len(columns) < 2:
            continue

        code = columns[0].strip()
        name = columns[1].strip()
        if code == HEADER_CODE or name == HEADER_NAME:
            continue
        if not code or not name:
            continue
        if not is_valid_code(code):
            message = f"Line {line_number}: skipped, invalid WBS code '{code}'"
            logger.warning(message)
            warnings.append(message)
            continue

        rows.append((line_number, code, name))

    if not rows:
        raise ImportFormatError("No valid WBS data found in paste content")

    nodes: list[WBSNode] = []
    seen_pairs: set[tuple[str, str]] = set()
    names_by_code: dict[str, str] = {}
    for line_number, code, name in rows:
        if (code, name) in seen_pairs:
            continue
        seen_pairs.add((code, name))

        if code in names_by_code:
            message = (
                f"Line {line_number}: duplicate WBS code {code} "
                f"('{name}' vs '{names_by_code[code]}'), keeping the first"
            )
            logger.warning(message)
            warnings.append(message)
            continue

        names_by_code[code] = name
        nodes.append(WBSNode(code=code, parent_code=parent_of(code), name=name))

    project_name = None
    for line_number, code, name in rows:
        if line_number > settings.project_scan_lines:
            break
        if code.isdigit():
            project_name = name
            break

    return build_parse_result(
        nodes,
        warnings,
        source="p6_paste",
        project_name=project_name or get_config().build.default_project_name,
    )
