"""Unit tests for WBSCalc Pydantic models."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from wbscalc.models import (
    CATEGORIES,
    Category,
    EquipmentItem,
    NodeKind,
    Subsystem,
    WBSNode,
    all_categories,
    category_node_name,
    equipment_node_name,
    extract_subsystem_code,
)


class TestWBSNode:
    """Test WBSNode validation."""

    def test_minimal_node(self):
        node = WBSNode(code="1.3.2", parent_code="1.3", name="02 | Protection Panels")

        assert node.level == 3
        assert node.kind == NodeKind.GROUP
        assert node.is_new is False
        assert not node.is_root

    def test_blank_parent_is_root(self):
        node = WBSNode(code="1", parent_code="  ", name="Project")

        assert node.parent_code is None
        assert node.is_root

    @pytest.mark.parametrize("code", ["0", "1.0", "A", "1.", ""])
    def test_invalid_code_rejected(self, code):
        with pytest.raises(ValidationError):
            WBSNode(code=code, name="x")

    def test_invalid_parent_rejected(self):
        with pytest.raises(ValidationError):
            WBSNode(code="1.1", parent_code="x.1", name="x")

    def test_frozen(self):
        node = WBSNode(code="1", name="Project")

        with pytest.raises(ValidationError):
            node.name = "Other"


class TestEquipmentItem:
    """Test EquipmentItem normalization."""

    def test_status_normalized(self):
        item = EquipmentItem(equipment_number="T1", commissioning_status=" tbc ")
        assert item.commissioning_status == "TBC"

    @pytest.mark.parametrize("status", ["", None, "  "])
    def test_blank_status_means_no(self, status):
        item = EquipmentItem(equipment_number="T1", commissioning_status=status)
        assert item.commissioning_status == "N"

    def test_invalid_status_rejected(self):
        with pytest.raises(ValidationError):
            EquipmentItem(equipment_number="T1", commissioning_status="MAYBE")

    @pytest.mark.parametrize("parent", ["-", "", "  ", None])
    def test_no_parent_values(self, parent):
        item = EquipmentItem(equipment_number="T1", parent_equipment_number=parent)

        assert item.parent_equipment_number is None
        assert not item.has_parent

    @pytest.mark.parametrize("number", ["", "  ", "-"])
    def test_equipment_number_required(self, number):
        with pytest.raises(ValidationError):
            EquipmentItem(equipment_number=number)

    def test_subsystem_parts(self):
        item = EquipmentItem(equipment_number="T1", subsystem="33kV Switchroom 2 - +Z02")

        assert item.subsystem_code == "+Z02"
        assert item.subsystem_name == "33kV Switchroom 2"

    def test_subsystem_without_code(self):
        item = EquipmentItem(equipment_number="T1", subsystem="Main building")

        assert item.subsystem_code == ""
        assert item.subsystem_name == "Main building"

    def test_subsystem_code_only(self):
        item = EquipmentItem(equipment_number="T1", subsystem="+Z03")

        assert item.subsystem_code == "+Z03"
        assert item.subsystem_name == ""


class TestNamingHelpers:
    """Test node name conventions."""

    def test_category_node_name(self):
        assert category_node_name("02") == "02 | Protection Panels"

    def test_equipment_node_name(self):
        assert equipment_node_name("+UH101", "Panel ") == "+UH101 | Panel"
        assert equipment_node_name("+UH101", "") == "+UH101 |"

    def test_node_names_collapse_whitespace(self):
        assert equipment_node_name("T1", "Power  Transformer") == "T1 | Power Transformer"
        assert equipment_node_name("T1", "Power\tTransformer ") == "T1 | Power Transformer"
        subsystem = Subsystem(number=1, code="+Z01", name="33kV  Switchroom")
        assert subsystem.node_name == "S1 | +Z01 - 33kV Switchroom"

    @pytest.mark.parametrize(
        "text,expected",
        [("Room - +Z02", "+Z02"), ("-A123 block", "-A123"), ("+Z1", ""), ("", ""), (None, "")],
    )
    def test_extract_subsystem_code(self, text, expected):
        assert extract_subsystem_code(text) == expected

    def test_subsystem_labels(self):
        subsystem = Subsystem(number=2, code="+Z02", name="33kV Switchroom 2")

        assert subsystem.label == "S2"
        assert subsystem.node_name == "S2 | +Z02 - 33kV Switchroom 2"

    def test_subsystem_number_positive(self):
        with pytest.raises(ValidationError):
            Subsystem(number=0, code="+Z01", name="x")


class TestCategories:
    """Test the fixed category set."""

    def test_eleven_categories_in_order(self):
        assert list(CATEGORIES) == [
            "01", "02", "03", "04", "05", "06", "07", "08", "09", "10", "99",
        ]
        assert [c.id for c in all_categories()] == list(CATEGORIES)

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError):
            Category(id="11", name="Nope")

    def test_category_node_name_property(self):
        assert Category(id="99", name="Unrecognised Equipment").node_name == (
            "99 | Unrecognised Equipment"
        )
