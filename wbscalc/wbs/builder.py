"""Fresh-project WBS generation.

Layout produced for root code "1":

    1          <project name>
    1.1        M | Milestones
    1.2        P | Pre-requisites
    1.3        S1 | +Z01 - <subsystem name>
    1.3.1      01 | Preparations and set-up
    ...
    1.3.11     99 | Unrecognised Equipment
    1.3.2.1    +UH101 | Protection Panel
    1.3.2.1.1  +UH101-F | Protection Relay
    1.4        TBC | To Be Confirmed      (only when TBC items exist)

Every subsystem carries all 11 category nodes, populated or not, so that
later reconciliation always finds a slot for any category.
"""

from __future__ import annotations

import logging
from collections import OrderedDict
from dataclasses import dataclass, field

from wbscalc.classification import (
    EquipmentClassifier,
    get_classifier,
    normalize_equipment_number,
    split_base_and_sub_device,
)
from wbscalc.config import get_config
from wbscalc.hierarchy.codes import sort_nodes
from wbscalc.models import (
    CATEGORIES,
    MILESTONE_NAME,
    PREREQUISITE_NAME,
    TBC_NAME,
    EquipmentItem,
    NodeKind,
    Subsystem,
    WBSNode,
    category_node_name,
    equipment_node_name,
)

logger = logging.getLogger(__name__)


@dataclass
class BuildResult:
    """Output of WBSBuilder.build.

    Attributes:
        hierarchy: All nodes sorted by code
        subsystems: Subsystems created, in number order
        category_counts: Placed equipment items per category id (all 11 keys)
        excluded_count: Items dropped because their status is N
        tbc_count: Items placed under the TBC node
        warnings: Skipped rows and other recoverable problems
        project_name: Name given to the root node
    """

    hierarchy: list[WBSNode]
    subsystems: list[Subsystem]
    category_counts: dict[str, int]
    excluded_count: int = 0
    tbc_count: int = 0
    warnings: list[str] = field(default_factory=list)
    project_name: str = ""

    @property
    def equipment_count(self) -> int:
        return sum(self.category_counts.values())


@dataclass
class _EquipmentGroup:
    """Items sharing one base code inside one category."""

    base: str
    members: list[EquipmentItem] = field(default_factory=list)

    def head(self) -> EquipmentItem | None:
        base_key = normalize_equipment_number(self.base)
        for item in self.members:
            if normalize_equipment_number(item.equipment_number) == base_key:
                return item
        return None


class WBSBuilder:
    """Build a complete P6 hierarchy from a classified equipment list."""

    def __init__(
        self,
        classifier: EquipmentClassifier | None = None,
        root_code: str | None = None,
    ):
        self.classifier = classifier or get_classifier()
        self.root_code = root_code or get_config().build.root_code

    def build(
        self,
        items: list[EquipmentItem],
        project_name: str | None = None,
        split_subsystems: bool = False,
    ) -> BuildResult:
        """Generate the hierarchy.

        Args:
            items: Equipment rows in file order
            project_name: Root node name (defaults to DEFAULT_PROJECT_NAME)
            split_subsystems: One subsystem per distinct subsystem code instead
                              of a single subsystem for the whole list

        Returns:
            BuildResult
        """
        settings = get_config().build
        project_name = " ".join((project_name or "").split()) or settings.default_project_name
        warnings: list[str] = []

        included: list[EquipmentItem] = []
        tbc_items: list[EquipmentItem] = []
        excluded_count = 0
        seen_numbers: set[str] = set()

        for item in items:
            if item.commissioning_status == "N":
                excluded_count += 1
                continue
            key = normalize_equipment_number(item.equipment_number)
            if key in seen_numbers:
                message = f"Repeated equipment number {item.equipment_number} skipped"
                logger.warning(message)
                warnings.append(message)
                continue
            seen_numbers.add(key)
            if item.commissioning_status == "TBC":
                tbc_items.append(item)
            else:
                included.append(item)

        root = self.root_code
        nodes: list[WBSNode] = [
            WBSNode(code=root, name=project_name, kind=NodeKind.ROOT),
            WBSNode(
                code=f"{root}.1", parent_code=root, name=MILESTONE_NAME, kind=NodeKind.MILESTONE
            ),
            WBSNode(
                code=f"{root}.2",
                parent_code=root,
                name=PREREQUISITE_NAME,
                kind=NodeKind.PREREQUISITE,
            ),
        ]

        category_counts = {category_id: 0 for category_id in CATEGORIES}
        subsystems: list[Subsystem] = []
        buckets = self._subsystem_buckets(included, split_subsystems)

        for number, ((code, name), members) in enumerate(buckets.items(), start=1):
            subsystem_code = f"{root}.{number + 2}"
            subsystem = Subsystem(number=number, code=code, name=name, wbs_code=subsystem_code)
            subsystems.append(subsystem)
            nodes.append(
                WBSNode(
                    code=subsystem_code,
                    parent_code=root,
                    name=subsystem.node_name,
                    kind=NodeKind.SUBSYSTEM,
                )
            )

            by_category = self._group_by_category(members)
            for index, category_id in enumerate(CATEGORIES, start=1):
                category_code = f"{subsystem_code}.{index}"
                nodes.append(
                    WBSNode(
                        code=category_code,
                        parent_code=subsystem_code,
                        name=category_node_name(category_id),
                        kind=NodeKind.CATEGORY,
                        category_id=category_id,
                    )
                )
                groups = by_category.get(category_id, {})
                nodes.extend(self._equipment_nodes(category_code, category_id, groups))
                category_counts[category_id] += sum(len(g.members) for g in groups.values())

        if tbc_items:
            tbc_code = f"{root}.{len(buckets) + 3}"
            nodes.append(WBSNode(code=tbc_code, parent_code=root, name=TBC_NAME, kind=NodeKind.TBC))
            known = {normalize_equipment_number(item.equipment_number) for item in tbc_items}
            groups = self._group_items(tbc_items, known)
            nodes.extend(self._equipment_nodes(tbc_code, None, groups))

        hierarchy = sort_nodes(nodes)
        logger.info(
            f"Built WBS for '{project_name}': {len(hierarchy)} nodes, "
            f"{len(subsystems)} subsystems, {sum(category_counts.values())} equipment, "
            f"{len(tbc_items)} TBC, {excluded_count} excluded"
        )

        return BuildResult(
            hierarchy=hierarchy,
            subsystems=subsystems,
            category_counts=category_counts,
            excluded_count=excluded_count,
            tbc_count=len(tbc_items),
            warnings=warnings,
            project_name=project_name,
        )

    def _subsystem_buckets(
        self,
        items: list[EquipmentItem],
        split_subsystems: bool,
    ) -> OrderedDict[tuple[str, str], list[EquipmentItem]]:
        """(subsystem code, name) -> items, in encounter order."""
        settings = get_config().build
        default = (settings.default_subsystem_code, settings.default_subsystem_name)

        if not split_subsystems:
            first = next((item for item in items if item.subsystem_code), None)
            key = (first.subsystem_code, first.subsystem_name or default[1]) if first else default
            return OrderedDict([(key, list(items))])

        buckets: OrderedDict[tuple[str, str], list[EquipmentItem]] = OrderedDict()
        names: dict[str, tuple[str, str]] = {}
        for item in items:
            code = item.subsystem_code
            if not code:
                key = names.setdefault(default[0], default)
            else:
                key = names.setdefault(code, (code, item.subsystem_name or default[1]))
            buckets.setdefault(key, []).append(item)

        if not buckets:
            buckets[default] = []
        return buckets

    def _group_by_category(
        self,
        items: list[EquipmentItem],
    ) -> dict[str, OrderedDict[str, _EquipmentGroup]]:
        """category id -> base code -> group.

        A sub-device whose declared parent is in the same list joins the
        parent's group and category; otherwise it is grouped by its own base.
        """
        categories = {
            normalize_equipment_number(item.equipment_number): self.classifier.classify(
                item.equipment_number
            )
            for item in items
        }

        by_category: dict[str, list[EquipmentItem]] = {}
        for item in items:
            category_id = categories[normalize_equipment_number(item.equipment_number)]
            if item.has_parent:
                parent_key = normalize_equipment_number(item.parent_equipment_number)
                category_id = categories.get(parent_key, category_id)
            by_category.setdefault(category_id, []).append(item)

        known = set(categories)
        return {
            category_id: self._group_items(members, known)
            for category_id, members in by_category.items()
        }

    @staticmethod
    def _group_items(
        items: list[EquipmentItem],
        known_numbers: set[str],
    ) -> OrderedDict[str, _EquipmentGroup]:
        groups: OrderedDict[str, _EquipmentGroup] = OrderedDict()
        for item in items:
            base, _ = split_base_and_sub_device(item.equipment_number)
            if item.has_parent:
                parent_key = normalize_equipment_number(item.parent_equipment_number)
                if parent_key in known_numbers:
                    base, _ = split_base_and_sub_device(item.parent_equipment_number)
            key = normalize_equipment_number(base)
            group = groups.get(key)
            if group is None:
                group = groups[key] = _EquipmentGroup(base=base)
            group.members.append(item)
        return groups

    def _equipment_nodes(
        self,
        parent_code: str,
        category_id: str | None,
        groups: OrderedDict[str, _EquipmentGroup],
    ) -> list[WBSNode]:
        nodes: list[WBSNode] = []
        for group_index, group in enumerate(groups.values(), start=1):
            group_code = f"{parent_code}.{group_index}"
            head = group.head()
            item_category = category_id or self.classifier.classify(group.base)

            if head is not None:
                nodes.append(
                    WBSNode(
                        code=group_code,
                        parent_code=parent_code,
                        name=equipment_node_name(head.equipment_number, head.description),
                        kind=NodeKind.EQUIPMENT,
                        equipment_number=head.equipment_number,
                        category_id=item_category,
                    )
                )
            else:
                nodes.append(
                    WBSNode(
                        code=group_code,
                        parent_code=parent_code,
                        name=equipment_node_name(
                            group.base, self.classifier.describe_equipment_type(group.base)
                        ),
                        kind=NodeKind.EQUIPMENT,
                        equipment_number=group.base,
                        category_id=item_category,
                    )
                )

            sub_index = 0
            for member in group.members:
                if member is head:
                    continue
                sub_index += 1
                nodes.append(
                    WBSNode(
                        code=f"{group_code}.{sub_index}",
                        parent_code=group_code,
                        name=equipment_node_name(member.equipment_number, member.description),
                        kind=NodeKind.SUB_DEVICE,
                        equipment_number=member.equipment_number,
                        category_id=item_category,
                    )
                )
        return nodes
