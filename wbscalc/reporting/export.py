"""Assembly of the 3-column P6 import table.

P6 accepts exactly three columns: wbs_code, parent_wbs_code, wbs_name. Every
other node attribute is dropped here.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from enum import Enum

from wbscalc.config import get_config
from wbscalc.hierarchy.codes import children_index, sort_nodes
from wbscalc.models import WBSNode

EXPORT_COLUMNS = ("wbs_code", "parent_wbs_code", "wbs_name")


class ExportMode(str, Enum):
    FULL = "full"
    NEW_ONLY = "new_only"


@dataclass(frozen=True)
class ExportRow:
    wbs_code: str
    parent_wbs_code: str
    wbs_name: str

    def as_tuple(self) -> tuple[str, str, str]:
        return (self.wbs_code, self.parent_wbs_code, self.wbs_name)


def flatten_hierarchy(nodes: Iterable[WBSNode]) -> list[WBSNode]:
    """Depth-first pre-order walk, children in code order.

    Roots are nodes without a parent plus orphans whose parent is missing, so
    every input node appears exactly once.
    """
    nodes = list(nodes)
    codes = {node.code for node in nodes}
    index = children_index(nodes)

    roots = sort_nodes(
        node for node in nodes if node.parent_code is None or node.parent_code not in codes
    )

    ordered: list[WBSNode] = []
    visited: set[str] = set()
    stack = list(reversed(roots))
    while stack:
        node = stack.pop()
        if node.code in visited:
            continue
        visited.add(node.code)
        ordered.append(node)
        stack.extend(reversed(index.get(node.code, [])))

    # Nodes only reachable through a cycle or a duplicate code
    for node in sort_nodes(nodes):
        if node.code not in visited:
            visited.add(node.code)
            ordered.append(node)

    return ordered


def assemble_export(
    nodes: Iterable[WBSNode],
    mode: ExportMode = ExportMode.FULL,
) -> list[ExportRow]:
    """Flatten a hierarchy into export rows.

    Args:
        nodes: Hierarchy nodes in any order
        mode: FULL for every node, NEW_ONLY for nodes flagged is_new

    Returns:
        Rows in depth-first order; roots carry an empty parent_wbs_code
    """
    rows = []
    for node in flatten_hierarchy(nodes):
        if mode == ExportMode.NEW_ONLY and not node.is_new:
            continue
        rows.append(
            ExportRow(
                wbs_code=node.code,
                parent_wbs_code=node.parent_code or "",
                wbs_name=node.name,
            )
        )
    return rows


def export_filename(new_only: bool = False, today: date | None = None, suffix: str = ".csv") -> str:
    """Dated export file name ("WBS_Export_2024-05-01.csv")."""
    settings = get_config().export
    today = today or date.today()
    prefix = settings.new_items_prefix if new_only else settings.filename_prefix
    return f"{prefix}{today.strftime(settings.date_format)}{suffix}"
