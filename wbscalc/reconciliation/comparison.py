"""Equipment list comparison against an existing hierarchy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from wbscalc.classification import normalize_equipment_number
from wbscalc.ingestion.types import ParseResult
from wbscalc.models import EquipmentItem
from wbscalc.reconciliation.engine import ReconciliationEngine, ReconciliationResult

logger = logging.getLogger(__name__)


@dataclass
class EquipmentComparison:
    """Split of an updated equipment list against an existing hierarchy.

    Attributes:
        new: Items whose number is not in the hierarchy
        existing: Items already present in the hierarchy
        removed: Equipment numbers in the hierarchy but missing from the list
        excluded: Items skipped because their status is N
    """

    new: list[EquipmentItem] = field(default_factory=list)
    existing: list[EquipmentItem] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    excluded: list[EquipmentItem] = field(default_factory=list)


def compare_equipment(existing: ParseResult, items: list[EquipmentItem]) -> EquipmentComparison:
    """Compare an updated equipment list with the equipment already in P6.

    Numbers are matched with the polarity marker stripped and case ignored.
    Status N items take no part in the comparison.
    """
    comparison = EquipmentComparison()
    listed: set[str] = set()

    for item in items:
        if item.commissioning_status == "N":
            comparison.excluded.append(item)
            continue
        key = normalize_equipment_number(item.equipment_number)
        listed.add(key)
        if key in existing.equipment_index:
            comparison.existing.append(item)
        else:
            comparison.new.append(item)

    for key, node in existing.equipment_index.items():
        if key not in listed:
            comparison.removed.append(node.equipment_number or key)

    logger.info(
        f"Equipment comparison: {len(comparison.new)} new, "
        f"{len(comparison.existing)} existing, {len(comparison.removed)} removed, "
        f"{len(comparison.excluded)} excluded"
    )
    return comparison


def find_missing_equipment(
    existing: ParseResult,
    items: list[EquipmentItem],
    engine: ReconciliationEngine | None = None,
) -> tuple[EquipmentComparison, ReconciliationResult]:
    """Compare, then reconcile only the equipment P6 does not have yet."""
    comparison = compare_equipment(existing, items)
    engine = engine or ReconciliationEngine()
    return comparison, engine.reconcile(existing, comparison.new)
