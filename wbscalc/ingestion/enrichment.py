"""Import-boundary enrichment shared by all hierarchy parsers.

Parsers only know (code, parent_code, name). This module tags each node with
its NodeKind from the naming conventions, pulls out equipment numbers and
subsystem records, and assembles the final ParseResult.
"""

from __future__ import annotations

import logging
import re

from wbscalc.classification import normalize_equipment_number
from wbscalc.config import get_config
from wbscalc.hierarchy.codes import describe_orphan, sort_nodes, validate_hierarchy
from wbscalc.ingestion.types import ImportSource, ParseResult
from wbscalc.models import CATEGORIES, NodeKind, Subsystem, WBSNode

logger = logging.getLogger(__name__)

SUBSYSTEM_NAME = re.compile(r"^S(\d+)\s*\|\s*([+-][A-Z]\d{2,})\s*-\s*(.*)$")


def left_token(name: str) -> str | None:
    """Trimmed text before the first "|" ("+UH101 | Panel" -> "+UH101")."""
    if "|" not in name:
        return None
    return name.split("|", 1)[0].strip()


def infer_node_kind(name: str, parent_code: str | None) -> NodeKind:
    """Classify an imported node from its name.

    Sub-devices cannot be told apart from equipment by name alone; they are
    re-tagged once the parent's kind is known (see enrich_records).
    """
    if parent_code is None:
        return NodeKind.ROOT

    token = left_token(name)
    if token is None:
        return NodeKind.GROUP

    upper = token.upper()
    if upper == "M":
        return NodeKind.MILESTONE
    if upper == "P":
        return NodeKind.PREREQUISITE
    if upper == "TBC":
        return NodeKind.TBC
    if re.fullmatch(r"S\d+", upper):
        return NodeKind.SUBSYSTEM
    if token.isdigit():
        return NodeKind.CATEGORY if token in CATEGORIES else NodeKind.GROUP
    if token:
        return NodeKind.EQUIPMENT
    return NodeKind.GROUP


def enrich_records(records: list[WBSNode]) -> list[WBSNode]:
    """Return copies of records tagged with kind, equipment number and category.

    Records must already be sorted so parents come before children.
    """
    by_code: dict[str, WBSNode] = {}
    enriched: list[WBSNode] = []

    for node in records:
        kind = infer_node_kind(node.name, node.parent_code)
        parent = by_code.get(node.parent_code) if node.parent_code else None
        update: dict = {"kind": kind}

        if kind == NodeKind.EQUIPMENT:
            if parent is not None and parent.kind in (NodeKind.EQUIPMENT, NodeKind.SUB_DEVICE):
                update["kind"] = NodeKind.SUB_DEVICE
            update["equipment_number"] = left_token(node.name)
            if parent is not None:
                update["category_id"] = parent.category_id
        elif kind == NodeKind.CATEGORY:
            update["category_id"] = left_token(node.name)

        tagged = node.model_copy(update=update)
        by_code[tagged.code] = tagged
        enriched.append(tagged)

    return enriched


def extract_subsystems(records: list[WBSNode]) -> list[Subsystem]:
    """Subsystem records for every "S<n> | <code> - <name>" node."""
    subsystems = []
    for node in records:
        if node.kind != NodeKind.SUBSYSTEM:
            continue
        match = SUBSYSTEM_NAME.match(node.name.strip())
        if not match:
            continue
        subsystems.append(
            Subsystem(
                number=int(match.group(1)),
                code=match.group(2),
                name=match.group(3).strip(),
                wbs_code=node.code,
            )
        )
    return subsystems


def build_equipment_index(records: list[WBSNode]) -> dict[str, WBSNode]:
    """Normalized equipment number -> node (first occurrence wins)."""
    index: dict[str, WBSNode] = {}
    for node in records:
        if node.equipment_number:
            index.setdefault(normalize_equipment_number(node.equipment_number), node)
    return index


def build_parse_result(
    records: list[WBSNode],
    warnings: list[str],
    source: ImportSource,
    project_name: str | None = None,
) -> ParseResult:
    """Sort, validate, enrich and package parsed records.

    Orphans are reported as warnings; they stay in the record list.
    """
    ordered = sort_nodes(records)

    for orphan in validate_hierarchy(ordered):
        message = describe_orphan(orphan)
        logger.warning(message)
        warnings.append(message)

    enriched = enrich_records(ordered)

    if not project_name:
        root = next((node for node in enriched if node.parent_code is None), None)
        project_name = root.name if root else get_config().build.default_project_name

    result = ParseResult(
        records=enriched,
        subsystems=extract_subsystems(enriched),
        equipment_index=build_equipment_index(enriched),
        project_name=project_name,
        warnings=warnings,
        source=source,
    )
    logger.info(
        f"Parsed {len(result.records)} WBS records from {source} "
        f"({len(result.subsystems)} subsystems, {len(result.equipment_index)} equipment, "
        f"{len(result.warnings)} warnings)"
    )
    return result
