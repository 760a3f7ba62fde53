"""WBSCalc Pydantic models for type-safe data validation.

All models are frozen: equipment rows and hierarchy nodes are created once by
an importer or builder and never mutated afterwards. Reconciliation produces
new nodes instead of editing existing ones.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Hierarchical code: dot-separated positive integers ("1", "1.3.2.5")
CODE_PATTERN = re.compile(r"^[1-9]\d*(\.[1-9]\d*)*$")

# Subsystem marker embedded in free text ("33kV Switchroom 2 - +Z02")
SUBSYSTEM_CODE_PATTERN = re.compile(r"[+-][A-Z]\d{2,}")

# Fixed equipment categories, in numeric order
CATEGORIES: dict[str, str] = {
    "01": "Preparations and set-up",
    "02": "Protection Panels",
    "03": "HV Switchboards",
    "04": "LV Switchboards",
    "05": "Transformers",
    "06": "Battery Systems",
    "07": "Earthing",
    "08": "Building Services",
    "09": "Interface Testing",
    "10": "Ancillary Systems",
    "99": "Unrecognised Equipment",
}

UNRECOGNISED_CATEGORY = "99"

MILESTONE_NAME = "M | Milestones"
PREREQUISITE_NAME = "P | Pre-requisites"
TBC_NAME = "TBC | To Be Confirmed"


class NodeKind(str, Enum):
    """Role of a node within the WBS hierarchy."""

    ROOT = "root"
    MILESTONE = "milestone"
    PREREQUISITE = "prerequisite"
    SUBSYSTEM = "subsystem"
    CATEGORY = "category"
    EQUIPMENT = "equipment"
    SUB_DEVICE = "sub_device"
    TBC = "tbc"
    GROUP = "group"  # imported structural node with no recognised convention


def category_node_name(category_id: str) -> str:
    """Display name of a category node ("02 | Protection Panels")."""
    return f"{category_id} | {CATEGORIES[category_id]}"


def equipment_node_name(equipment_number: str, description: str) -> str:
    """Display name of an equipment node ("+UH101 | Protection Panel").

    Runs of whitespace in the description collapse to one space so the name
    survives a round trip through space-aligned paste text.
    """
    description = " ".join(description.split())
    if not description:
        return f"{equipment_number} |"
    return f"{equipment_number} | {description}"


def extract_subsystem_code(text: str | None) -> str:
    """Return the first subsystem marker token in text, or "" when absent."""
    if not text:
        return ""
    match = SUBSYSTEM_CODE_PATTERN.search(text)
    return match.group(0) if match else ""


class WBSNode(BaseModel):
    """One node of a P6 work breakdown structure."""

    model_config = ConfigDict(frozen=True)

    code: str
    parent_code: str | None = None
    name: str
    kind: NodeKind = NodeKind.GROUP
    is_new: bool = False

    # Set for equipment and sub-device nodes
    equipment_number: str | None = None
    # Set for category nodes and for equipment placed by the builder/engine
    category_id: str | None = None

    @field_validator("code")
    @classmethod
    def validate_code(cls, v: str) -> str:
        v = v.strip()
        if not CODE_PATTERN.match(v):
            raise ValueError(f"invalid WBS code '{v}'")
        return v

    @field_validator("parent_code")
    @classmethod
    def validate_parent_code(cls, v: str | None) -> str | None:
        if v is None:
            return None
        v = v.strip()
        if not v:
            return None
        if not CODE_PATTERN.match(v):
            raise ValueError(f"invalid parent WBS code '{v}'")
        return v

    @property
    def level(self) -> int:
        """Depth of the node, equal to the number of code segments."""
        return len(self.code.split("."))

    @property
    def is_root(self) -> bool:
        return self.parent_code is None


class EquipmentItem(BaseModel):
    """Row from an uploaded equipment list, after column normalization."""

    model_config = ConfigDict(frozen=True)

    equipment_number: str
    description: str = ""
    commissioning_status: Literal["Y", "N", "TBC"] = "N"
    subsystem: str = ""
    parent_equipment_number: str | None = None

    @field_validator("equipment_number")
    @classmethod
    def validate_equipment_number(cls, v: str) -> str:
        v = v.strip()
        if not v or v == "-":
            raise ValueError("equipment_number is required")
        return v

    @field_validator("description", "subsystem", mode="before")
    @classmethod
    def clean_text(cls, v: object) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("commissioning_status", mode="before")
    @classmethod
    def normalize_status(cls, v: object) -> str:
        # Blank status means "not commissioned", never an implicit "Y"
        if v is None:
            return "N"
        status = str(v).strip().upper()
        return status or "N"

    @field_validator("parent_equipment_number", mode="before")
    @classmethod
    def normalize_parent(cls, v: object) -> str | None:
        if v is None:
            return None
        parent = str(v).strip()
        if parent in ("", "-"):
            return None
        return parent

    @property
    def has_parent(self) -> bool:
        return self.parent_equipment_number is not None

    @property
    def subsystem_code(self) -> str:
        """Subsystem marker token ("+Z02"), or "" when the column has none."""
        return extract_subsystem_code(self.subsystem)

    @property
    def subsystem_name(self) -> str:
        """Human part of the subsystem column ("33kV Switchroom 2")."""
        parts = self.subsystem.split(" - ")
        if len(parts) >= 2:
            return " - ".join(parts[:-1]).strip()
        code = self.subsystem_code
        return self.subsystem.replace(code, "").strip(" -") if code else self.subsystem


class Subsystem(BaseModel):
    """Top-level functional grouping of equipment (e.g. a switchroom)."""

    model_config = ConfigDict(frozen=True)

    number: int = Field(ge=1)
    code: str
    name: str
    wbs_code: str | None = None

    @property
    def label(self) -> str:
        return f"S{self.number}"

    @property
    def node_name(self) -> str:
        """Display name of the subsystem node ("S2 | +Z02 - 33kV Switchroom 2")."""
        return f"{self.label} | {self.code} - {' '.join(self.name.split())}"


class Category(BaseModel):
    """One of the fixed equipment buckets materialized under every subsystem."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str

    @field_validator("id")
    @classmethod
    def validate_id(cls, v: str) -> str:
        if v not in CATEGORIES:
            raise ValueError(f"unknown category id '{v}'")
        return v

    @property
    def node_name(self) -> str:
        return category_node_name(self.id)


def all_categories() -> list[Category]:
    """All categories in fixed numeric order."""
    return [Category(id=category_id, name=name) for category_id, name in CATEGORIES.items()]
