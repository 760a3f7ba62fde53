"""Shared result types for the WBS and equipment importers."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal

from wbscalc.models import EquipmentItem, Subsystem, WBSNode

ImportSource = Literal["xer", "p6_paste", "wbs_csv"]


class ImportFormatError(ValueError):
    """Input is not in the expected format (missing marker, field or column)."""

    pass


@dataclass
class ParseResult:
    """Canonical output of every hierarchy importer.

    Attributes:
        records: Nodes sorted by code
        subsystems: Subsystems recognised from "S<n> | <code> - <name>" nodes
        equipment_index: Normalized equipment number -> equipment node
        project_name: Name taken from the source, or the configured default
        warnings: Recoverable problems found while parsing
        source: Importer that produced the result
    """

    records: list[WBSNode]
    subsystems: list[Subsystem] = field(default_factory=list)
    equipment_index: dict[str, WBSNode] = field(default_factory=dict)
    project_name: str = ""
    warnings: list[str] = field(default_factory=list)
    source: ImportSource = "xer"

    @property
    def root(self) -> WBSNode | None:
        """First root node in code order, or None."""
        for node in self.records:
            if node.parent_code is None:
                return node
        return None

    def find(self, code: str) -> WBSNode | None:
        for node in self.records:
            if node.code == code:
                return node
        return None


@dataclass
class EquipmentTable:
    """Equipment rows read from an uploaded CSV/XLSX list."""

    items: list[EquipmentItem]
    warnings: list[str] = field(default_factory=list)
    source_file: str | None = None

    def __len__(self) -> int:
        return len(self.items)
