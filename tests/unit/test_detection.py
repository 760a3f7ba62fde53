"""Unit tests for import format detection."""

from __future__ import annotations

import pytest

from wbscalc.ingestion import (
    ImportFormat,
    ImportFormatError,
    detect_import_format,
    load_existing_project,
)


class TestDetectImportFormat:
    """Test filename and content sniffing."""

    @pytest.mark.parametrize(
        "filename,expected",
        [
            ("equipment.xlsx", ImportFormat.EXCEL_EQUIPMENT_LIST),
            ("EQUIPMENT.XLS", ImportFormat.EXCEL_EQUIPMENT_LIST),
            ("project.xer", ImportFormat.XER),
            ("notes.txt", ImportFormat.UNKNOWN),
        ],
    )
    def test_by_extension(self, filename, expected):
        assert detect_import_format(filename) == expected

    def test_spreadsheet_saved_as_csv(self):
        assert (
            detect_import_format("list.csv", head_bytes=b"PK\x03\x04rest")
            == ImportFormat.EXCEL_EQUIPMENT_LIST
        )

    def test_xer_content_with_other_extension(self, sample_xer):
        assert detect_import_format("export.txt", sample_xer) == ImportFormat.XER

    def test_wbs_csv(self):
        content = "wbs_code,parent_wbs_code,wbs_name\n1,,Project\n"
        assert detect_import_format("export.csv", content) == ImportFormat.EXISTING_PROJECT

    def test_equipment_csv(self):
        content = "Equipment Number,Description\nT1,Transformer\n"
        assert detect_import_format("list.csv", content) == ImportFormat.EQUIPMENT_LIST

    def test_paste(self, existing_paste):
        assert detect_import_format("clipboard.txt", existing_paste) == ImportFormat.P6_PASTE

    def test_prose_is_unknown(self):
        content = "Dear team,\nplease find the list attached.\nThanks\n"
        assert detect_import_format("mail.txt", content) == ImportFormat.UNKNOWN


class TestLoadExistingProject:
    """Test dispatching project files to the right parser."""

    def test_xer(self, tmp_path, sample_xer):
        path = tmp_path / "project.xer"
        path.write_text(sample_xer)

        assert load_existing_project(path).source == "xer"

    def test_wbs_csv(self, tmp_path):
        path = tmp_path / "project.csv"
        path.write_text("wbs_code,parent_wbs_code,wbs_name\n1,,Project\n1.1,1,M | Milestones\n")

        result = load_existing_project(path)

        assert result.source == "wbs_csv"
        assert len(result.records) == 2

    def test_paste(self, tmp_path, existing_paste):
        path = tmp_path / "paste.txt"
        path.write_text(existing_paste)

        result = load_existing_project(path)

        assert result.source == "p6_paste"
        assert result.project_name == "Summerfield Substation"

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_existing_project(tmp_path / "missing.xer")

    def test_equipment_list_rejected(self, tmp_path):
        path = tmp_path / "list.csv"
        path.write_text("Equipment Number,Description\nT1,Transformer\n")

        with pytest.raises(ImportFormatError) as exc_info:
            load_existing_project(path)

        assert "equipment_list" in str(exc_info.value)

    def test_spreadsheet_rejected(self, tmp_path):
        path = tmp_path / "project.xlsx"
        path.write_bytes(b"PK\x03\x04" + b"\x00" * 16)

        with pytest.raises(ImportFormatError):
            load_existing_project(path)
