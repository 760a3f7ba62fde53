"""Pytest configuration and fixtures for WBSCalc tests.

Provides common fixtures for testing.
"""

from __future__ import annotations

import logging

import pytest

from wbscalc.classification import EquipmentClassifier
from wbscalc.config import reset_config
from wbscalc.ingestion import ParseResult, parse_paste
from wbscalc.models import EquipmentItem

EXISTING_PASTE = """WBS Code\tWBS Name
1\tSummerfield Substation
1.1\tM | Milestones
1.2\tP | Pre-requisites
1.3\tS1 | +Z01 - 33kV Switchroom 1
1.3.1\t01 | Preparations and set-up
1.3.2\t02 | Protection Panels
1.3.2.1\t+UH101 | Feeder Protection Panel
1.3.2.1.1\t+UH101-F | Protection Relay
1.3.2.2\t+UH102 | Transformer Protection Panel
1.3.3\t03 | HV Switchboards
1.3.4\t04 | LV Switchboards
1.3.5\t05 | Transformers
1.3.5.1\tT1 | Power Transformer 1
1.3.6\t06 | Battery Systems
1.3.7\t07 | Earthing
1.3.8\t08 | Building Services
1.3.9\t09 | Interface Testing
1.3.10\t10 | Ancillary Systems
1.3.11\t99 | Unrecognised Equipment
"""

SAMPLE_XER = (
    "ERMHDR\t19.12\t2024-05-01\tProject\tadmin\n"
    "%T\tPROJECT\n"
    "%F\tproj_id\tproj_short_name\tproj_name\n"
    "%R\t500\tSUMMERFIELD\tSummerfield Substation\n"
    "%T\tPROJWBS\n"
    "%F\twbs_id\tproj_id\tobs_id\tseq_num\twbs_short_name\twbs_name\tparent_wbs_id\n"
    "%R\t1000\t500\t1\t1\t1\tSummerfield Substation\t\n"
    "%R\t1001\t500\t1\t1\t1.1\tM | Milestones\t1000\n"
    "%R\t1002\t500\t1\t2\t1.2\tP | Pre-requisites\t1000\n"
    "%R\t1003\t500\t1\t3\t1.3\tS1 | +Z01 - 33kV Switchroom 1\t1000\n"
    "%R\t1004\t500\t1\t1\t1.3.2\t02 | Protection Panels\t1003\n"
    "%R\t1005\t500\t1\t1\t1.3.2.1\t\"+UH101 | Feeder Protection Panel\"\t1004\n"
    "%T\tTASK\n"
    "%F\ttask_id\ttask_name\n"
    "%R\t1\tEnergise\n"
    "%E\n"
)


@pytest.fixture(autouse=True)
def fresh_config(monkeypatch):
    """Each test reads configuration from its own environment."""
    for name in ("IMPORT_STRICT_PARENTS", "CLASSIFICATION_RULES_PATH", "WBS_ROOT_CODE"):
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture(autouse=True)
def restore_log_handlers():
    """Undo handlers installed by configure_logging (CLI tests install one)."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


@pytest.fixture(scope="session")
def classifier() -> EquipmentClassifier:
    """Classifier loaded from the packaged rule file."""
    return EquipmentClassifier()


@pytest.fixture
def existing_paste() -> str:
    """Two-column P6 paste of a small existing project."""
    return EXISTING_PASTE


@pytest.fixture
def existing_project(existing_paste: str) -> ParseResult:
    """Parsed existing project with one subsystem (+Z01)."""
    return parse_paste(existing_paste)


@pytest.fixture
def sample_xer() -> str:
    """Minimal XER export with PROJECT, PROJWBS and TASK tables."""
    return SAMPLE_XER


@pytest.fixture
def sample_equipment() -> list[EquipmentItem]:
    """Equipment list covering Y, N and TBC statuses and a sub-device."""
    return [
        EquipmentItem(
            equipment_number="+UH101",
            description="Feeder Protection Panel",
            commissioning_status="Y",
            subsystem="33kV Switchroom 1 - +Z01",
        ),
        EquipmentItem(
            equipment_number="+UH101-F",
            description="Protection Relay",
            commissioning_status="Y",
            subsystem="33kV Switchroom 1 - +Z01",
            parent_equipment_number="+UH101",
        ),
        EquipmentItem(
            equipment_number="T1",
            description="Power Transformer 1",
            commissioning_status="Y",
            subsystem="33kV Switchroom 1 - +Z01",
        ),
        EquipmentItem(
            equipment_number="GB01",
            description="Battery System",
            commissioning_status="TBC",
            subsystem="33kV Switchroom 1 - +Z01",
        ),
        EquipmentItem(
            equipment_number="ZZZ999",
            description="Mystery Box",
            commissioning_status="Y",
            subsystem="33kV Switchroom 1 - +Z01",
        ),
        EquipmentItem(
            equipment_number="WC01",
            description="Distribution Board (spare)",
            commissioning_status="N",
            subsystem="33kV Switchroom 1 - +Z01",
        ),
    ]
