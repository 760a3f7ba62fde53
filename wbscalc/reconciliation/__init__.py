"""Reconciliation of new equipment against existing P6 projects."""

from wbscalc.reconciliation.comparison import (
    EquipmentComparison,
    compare_equipment,
    find_missing_equipment,
)
from wbscalc.reconciliation.engine import (
    Assignment,
    AssignmentTier,
    ReconciliationEngine,
    ReconciliationError,
    ReconciliationResult,
)

__all__ = [
    "Assignment",
    "AssignmentTier",
    "EquipmentComparison",
    "ReconciliationEngine",
    "ReconciliationError",
    "ReconciliationResult",
    "compare_equipment",
    "find_missing_equipment",
]
