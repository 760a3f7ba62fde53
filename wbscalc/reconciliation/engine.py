"""Placement of new equipment into an existing P6 hierarchy.

Each new item is placed by the first tier that succeeds:

1. Explicit parent: the item names a parent equipment number that already
   exists (or was placed earlier in the same batch); it becomes a sub-device
   of that node.
2. Existing subsystem: the item's subsystem token matches a subsystem in the
   hierarchy and that subsystem has the item's category node.
3. New subsystem: a subsystem node and all 11 category nodes are created
   once per subsystem code per batch, then reused by later items.

Items with no subsystem token go to the project-level 99 bucket instead.
Existing node codes are never changed.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from enum import Enum

from wbscalc.classification import EquipmentClassifier, get_classifier, normalize_equipment_number
from wbscalc.config import get_config
from wbscalc.hierarchy.codes import describe_orphan, next_child_code, sort_nodes, validate_hierarchy
from wbscalc.ingestion.types import ParseResult
from wbscalc.models import (
    CATEGORIES,
    UNRECOGNISED_CATEGORY,
    EquipmentItem,
    NodeKind,
    Subsystem,
    WBSNode,
    category_node_name,
    equipment_node_name,
)

logger = logging.getLogger(__name__)

SUBSYSTEM_NUMBER = re.compile(r"^\s*S(\d+)\s*\|")


class ReconciliationError(Exception):
    """Existing hierarchy cannot be used for reconciliation."""

    pass


class AssignmentTier(str, Enum):
    """Which rule placed an item."""

    EXPLICIT_PARENT = "explicit_parent"
    EXISTING_SUBSYSTEM = "existing_subsystem"
    NEW_SUBSYSTEM = "new_subsystem"


@dataclass(frozen=True)
class Assignment:
    equipment_number: str
    tier: AssignmentTier
    wbs_code: str


@dataclass
class ReconciliationResult:
    """Outcome of one reconciliation run.

    Attributes:
        hierarchy: Existing nodes (is_new=False) merged with new ones, sorted
        new_items: Nodes created by this run, sorted, all is_new=True
        warnings: Recoverable problems and notable placements
        assignments: One entry per input item, in input order
        subsystems: Subsystems created by this run
    """

    hierarchy: list[WBSNode]
    new_items: list[WBSNode]
    warnings: list[str] = field(default_factory=list)
    assignments: list[Assignment] = field(default_factory=list)
    subsystems: list[Subsystem] = field(default_factory=list)

    @property
    def has_changes(self) -> bool:
        return bool(self.new_items)

    def tier_counts(self) -> dict[AssignmentTier, int]:
        counts = {tier: 0 for tier in AssignmentTier}
        for assignment in self.assignments:
            counts[assignment.tier] += 1
        return counts


def _token_pattern(token: str) -> re.Pattern[str]:
    # Token must not be glued to other alphanumerics ("+Z02" must not match "+Z021")
    return re.compile(rf"(?<![A-Za-z0-9]){re.escape(token)}(?![A-Za-z0-9])", re.IGNORECASE)


class _Run:
    """Mutable bookkeeping for a single reconcile() call."""

    def __init__(self, existing: ParseResult, classifier: EquipmentClassifier):
        self.existing = existing
        self.classifier = classifier

        root = existing.root
        if root is None:
            raise ReconciliationError("Existing hierarchy has no root node")
        self.root = root

        self.children: dict[str, list[str]] = {}
        self.category_nodes: dict[tuple[str, str], str] = {}
        self.nodes_by_code: dict[str, WBSNode] = {}
        self.subsystem_numbers: list[int] = []

        for node in existing.records:
            self._register(node)

        self.equipment_index: dict[str, WBSNode] = dict(existing.equipment_index)
        self.new_nodes: list[WBSNode] = []
        self.new_subsystems: dict[str, str] = {}
        self.created_subsystems: list[Subsystem] = []
        self.unrecognised_bucket: str | None = self.category_nodes.get(
            (self.root.code, UNRECOGNISED_CATEGORY)
        )
        self.warnings: list[str] = []

    def _register(self, node: WBSNode) -> None:
        self.nodes_by_code[node.code] = node
        if node.parent_code is not None:
            self.children.setdefault(node.parent_code, []).append(node.code)
        if node.kind == NodeKind.CATEGORY and node.category_id and node.parent_code:
            self.category_nodes.setdefault((node.parent_code, node.category_id), node.code)
        if node.kind == NodeKind.SUBSYSTEM and node.parent_code == self.root.code:
            match = SUBSYSTEM_NUMBER.match(node.name)
            if match:
                self.subsystem_numbers.append(int(match.group(1)))

    def add(self, node: WBSNode) -> WBSNode:
        self._register(node)
        self.new_nodes.append(node)
        if node.equipment_number:
            self.equipment_index.setdefault(normalize_equipment_number(node.equipment_number), node)
        return node

    def next_code(self, parent_code: str) -> str:
        return next_child_code(parent_code, self.children.get(parent_code, []))

    def attach(
        self,
        item: EquipmentItem,
        parent_code: str,
        kind: NodeKind,
        category_id: str | None,
    ) -> WBSNode:
        return self.add(
            WBSNode(
                code=self.next_code(parent_code),
                parent_code=parent_code,
                name=equipment_node_name(item.equipment_number, item.description),
                kind=kind,
                is_new=True,
                equipment_number=item.equipment_number,
                category_id=category_id,
            )
        )

    # Tier 1

    def place_under_parent(self, item: EquipmentItem) -> WBSNode | None:
        if not item.has_parent:
            return None
        parent = self.equipment_index.get(normalize_equipment_number(item.parent_equipment_number))
        if parent is None:
            logger.debug(
                f"Tier 1 miss for {item.equipment_number}: "
                f"parent {item.parent_equipment_number} not found"
            )
            return None
        return self.attach(item, parent.code, NodeKind.SUB_DEVICE, parent.category_id)

    # Tier 2

    def find_subsystem(self, token: str) -> str | None:
        for subsystem in self.existing.subsystems:
            if subsystem.wbs_code and subsystem.code.upper() == token.upper():
                return subsystem.wbs_code

        pattern = _token_pattern(token)
        for node in self.existing.records:
            if node.kind == NodeKind.SUBSYSTEM and pattern.search(node.name):
                return node.code
        return None

    def unrecognised_bucket_code(self) -> str:
        if self.unrecognised_bucket is None:
            node = self.add(
                WBSNode(
                    code=self.next_code(self.root.code),
                    parent_code=self.root.code,
                    name=category_node_name(UNRECOGNISED_CATEGORY),
                    kind=NodeKind.CATEGORY,
                    is_new=True,
                    category_id=UNRECOGNISED_CATEGORY,
                )
            )
            self.unrecognised_bucket = node.code
        return self.unrecognised_bucket

    def place_in_existing_subsystem(self, item: EquipmentItem) -> WBSNode | None:
        token = item.subsystem_code
        if not token:
            message = (
                f"{item.equipment_number} has no subsystem code, "
                f"placed under {category_node_name(UNRECOGNISED_CATEGORY)}"
            )
            logger.warning(message)
            self.warnings.append(message)
            return self.attach(
                item, self.unrecognised_bucket_code(), NodeKind.EQUIPMENT, UNRECOGNISED_CATEGORY
            )

        subsystem_code = self.find_subsystem(token)
        if subsystem_code is None:
            logger.debug(f"Tier 2 miss for {item.equipment_number}: subsystem {token} not found")
            return None

        category_id = self.classifier.classify(item.equipment_number)
        category_code = self.category_nodes.get((subsystem_code, category_id))
        if category_code is None:
            logger.debug(
                f"Tier 2 miss for {item.equipment_number}: "
                f"no category {category_id} under {subsystem_code}"
            )
            return None
        return self.attach(item, category_code, NodeKind.EQUIPMENT, category_id)

    # Tier 3

    def create_subsystem(self, item: EquipmentItem) -> str:
        token = item.subsystem_code
        key = token.upper()
        if key in self.new_subsystems:
            return self.new_subsystems[key]

        number = max(self.subsystem_numbers, default=0) + 1
        code = self.next_code(self.root.code)
        subsystem = Subsystem(
            number=number,
            code=token,
            name=item.subsystem_name or get_config().build.default_subsystem_name,
            wbs_code=code,
        )
        self.add(
            WBSNode(
                code=code,
                parent_code=self.root.code,
                name=subsystem.node_name,
                kind=NodeKind.SUBSYSTEM,
                is_new=True,
            )
        )
        for category_id in CATEGORIES:
            self.add(
                WBSNode(
                    code=self.next_code(code),
                    parent_code=code,
                    name=category_node_name(category_id),
                    kind=NodeKind.CATEGORY,
                    is_new=True,
                    category_id=category_id,
                )
            )

        self.new_subsystems[key] = code
        self.created_subsystems.append(subsystem)
        logger.info(f"Created subsystem {subsystem.node_name} at {code}")
        return code

    def place_in_new_subsystem(self, item: EquipmentItem) -> WBSNode:
        subsystem_code = self.create_subsystem(item)
        category_id = self.classifier.classify(item.equipment_number)
        return self.attach(
            item, self.category_nodes[(subsystem_code, category_id)], NodeKind.EQUIPMENT, category_id
        )


class ReconciliationEngine:
    """Three-tier placement of new equipment into an existing hierarchy."""

    def __init__(self, classifier: EquipmentClassifier | None = None):
        self.classifier = classifier or get_classifier()

    def reconcile(
        self,
        existing: ParseResult,
        new_items: list[EquipmentItem],
    ) -> ReconciliationResult:
        """Place every new item and merge the result with the existing hierarchy.

        Args:
            existing: Parsed existing hierarchy (not modified)
            new_items: Equipment to add, processed in order

        Returns:
            ReconciliationResult; an empty new_items list gives has_changes False

        Raises:
            ReconciliationError: If the existing hierarchy has no root
        """
        run = _Run(existing, self.classifier)
        assignments: list[Assignment] = []

        for item in new_items:
            node = run.place_under_parent(item)
            tier = AssignmentTier.EXPLICIT_PARENT
            if node is None:
                node = run.place_in_existing_subsystem(item)
                tier = AssignmentTier.EXISTING_SUBSYSTEM
            if node is None:
                node = run.place_in_new_subsystem(item)
                tier = AssignmentTier.NEW_SUBSYSTEM

            logger.debug(f"Placed {item.equipment_number} at {node.code} ({tier.value})")
            assignments.append(Assignment(item.equipment_number, tier, node.code))

        created = sort_nodes(run.new_nodes)
        kept = [
            node.model_copy(update={"is_new": False}) if node.is_new else node
            for node in existing.records
        ]
        hierarchy = sort_nodes(kept + created)

        warnings = list(run.warnings)
        new_codes = {node.code for node in created}
        for orphan in validate_hierarchy(hierarchy):
            if orphan.code in new_codes:
                message = describe_orphan(orphan)
                logger.warning(message)
                warnings.append(message)

        result = ReconciliationResult(
            hierarchy=hierarchy,
            new_items=created,
            warnings=warnings,
            assignments=assignments,
            subsystems=run.created_subsystems,
        )
        counts = result.tier_counts()
        logger.info(
            f"Reconciled {len(new_items)} items into '{existing.project_name}': "
            f"{len(created)} new nodes "
            f"(parent={counts[AssignmentTier.EXPLICIT_PARENT]}, "
            f"subsystem={counts[AssignmentTier.EXISTING_SUBSYSTEM]}, "
            f"new subsystem={counts[AssignmentTier.NEW_SUBSYSTEM]})"
        )
        return result
