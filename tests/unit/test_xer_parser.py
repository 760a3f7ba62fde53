"""Unit tests for the P6 XER parser."""

from __future__ import annotations

import pytest

from wbscalc.ingestion import ImportFormatError, parse_xer, split_record_line
from wbscalc.models import NodeKind

FIELDS = "%F\twbs_id\twbs_short_name\twbs_name\tparent_wbs_id\n"


def _xer(*records: str, fields: str = FIELDS, table: str = "%T\tPROJWBS\n") -> str:
    return table + fields + "".join(f"%R\t{r}\n" for r in records) + "%E\n"


class TestSplitRecordLine:
    """Test the quote-aware tab tokenizer."""

    def test_plain_fields(self):
        assert split_record_line("1\t1.1\tName\t") == ["1", "1.1", "Name", ""]

    def test_quoted_field_keeps_tabs(self):
        assert split_record_line('1\t"A\tB"\t2') == ["1", "A\tB", "2"]

    def test_doubled_quote_is_literal(self):
        assert split_record_line('1\t"say ""hi"""') == ["1", 'say "hi"']

    def test_values_trimmed(self):
        assert split_record_line(" 1 \t  x ") == ["1", "x"]


class TestParseXer:
    """Test PROJWBS extraction."""

    def test_sample_export(self, sample_xer):
        result = parse_xer(sample_xer)

        assert result.source == "xer"
        assert result.project_name == "SUMMERFIELD"
        assert [n.code for n in result.records] == ["1", "1.1", "1.2", "1.3", "1.3.2", "1.3.2.1"]
        assert result.warnings == []

    def test_parents_resolved_through_ids(self, sample_xer):
        result = parse_xer(sample_xer)
        by_code = {n.code: n for n in result.records}

        assert by_code["1"].parent_code is None
        assert by_code["1.3.2.1"].parent_code == "1.3.2"
        assert by_code["1.3"].parent_code == "1"

    def test_enrichment(self, sample_xer):
        result = parse_xer(sample_xer)
        by_code = {n.code: n for n in result.records}

        assert by_code["1"].kind == NodeKind.ROOT
        assert by_code["1.1"].kind == NodeKind.MILESTONE
        assert by_code["1.3"].kind == NodeKind.SUBSYSTEM
        assert by_code["1.3.2"].kind == NodeKind.CATEGORY
        assert by_code["1.3.2.1"].kind == NodeKind.EQUIPMENT
        assert by_code["1.3.2.1"].name == "+UH101 | Feeder Protection Panel"
        assert by_code["1.3.2.1"].category_id == "02"
        assert set(result.equipment_index) == {"UH101"}
        assert [(s.number, s.code, s.name) for s in result.subsystems] == [
            (1, "+Z01", "33kV Switchroom 1")
        ]

    def test_space_delimited_markers(self):
        content = (
            "%T PROJWBS\n"
            "%F wbs_id wbs_short_name wbs_name parent_wbs_id\n"
            "%R\t1\t1\tProject\t\n"
            "%R\t2\t1.1\tM | Milestones\t1\n"
        )
        result = parse_xer(content)

        assert [n.code for n in result.records] == ["1", "1.1"]
        assert result.project_name == "Project"

    def test_orphan_record_kept_with_warning(self):
        """Test an unresolvable parent id is a warning and the record survives."""
        content = _xer(
            "A\t1\tProject\t",
            "B\t1.1\tM | Milestones\tA",
            "C\t1.2\tP | Pre-requisites\tZZZ",
        )
        result = parse_xer(content)

        assert len(result.records) == 3
        assert any("1.2" in w and "ZZZ" in w for w in result.warnings)
        assert {n.code: n for n in result.records}["1.2"].parent_code is None

    def test_strict_mode_quarantines_orphans(self):
        content = _xer(
            "A\t1\tProject\t",
            "C\t1.2\tP | Pre-requisites\tZZZ",
        )
        result = parse_xer(content, strict_parents=True)

        assert [n.code for n in result.records] == ["1"]
        assert any("quarantined" in w for w in result.warnings)

    def test_strict_mode_from_config(self, monkeypatch):
        monkeypatch.setenv("IMPORT_STRICT_PARENTS", "true")
        content = _xer("A\t1\tProject\t", "C\t1.2\tP | Pre-requisites\tZZZ")

        assert [n.code for n in parse_xer(content).records] == ["1"]

    def test_self_reference_is_root(self):
        result = parse_xer(_xer("A\t1\tProject\tA"))

        assert result.records[0].parent_code is None
        assert result.warnings == []

    def test_duplicate_codes_keep_first(self):
        result = parse_xer(_xer("A\t1\tProject\t", "B\t1.1\tFirst\tA", "C\t1.1\tSecond\tA"))

        assert [n.name for n in result.records] == ["Project", "First"]
        assert any("Duplicate WBS code 1.1" in w for w in result.warnings)

    def test_records_sorted_numerically(self):
        result = parse_xer(
            _xer("A\t1\tProject\t", "B\t1.10\tTen\tA", "C\t1.9\tNine\tA", "D\t1.2\tTwo\tA")
        )

        assert [n.code for n in result.records] == ["1", "1.2", "1.9", "1.10"]

    def test_short_record_skipped(self):
        result = parse_xer(_xer("A\t1\tProject\t", "B\t1.1"))

        assert [n.code for n in result.records] == ["1"]
        assert any("malformed" in w for w in result.warnings)

    def test_missing_name_or_invalid_code_skipped(self):
        result = parse_xer(_xer("A\t1\tProject\t", "B\t1.1\t\tA", "C\tX.1\tBad\tA"))

        assert [n.code for n in result.records] == ["1"]
        assert len(result.warnings) == 2

    def test_records_stop_at_next_table(self):
        content = _xer("A\t1\tProject\t").replace(
            "%E\n", "%T\tTASK\n%F\ttask_id\n%R\t99\t1.5\tTask\tA\n%E\n"
        )
        result = parse_xer(content)

        assert [n.code for n in result.records] == ["1"]

    def test_project_name_falls_back_to_root(self):
        assert parse_xer(_xer("A\t1\tMy Project\t")).project_name == "My Project"

    def test_literal_quotes_in_name_kept(self):
        result = parse_xer(_xer('A\t1\tProject\t', 'B\t1.1\t"Cable 6"""\tA', "C\t1.2\tBay 'B'\tA"))

        assert result.find("1.1").name == 'Cable 6"'
        assert result.find("1.2").name == "Bay 'B'"


class TestParseXerErrors:
    """Test fatal format problems."""

    def test_missing_table(self):
        with pytest.raises(ImportFormatError) as exc_info:
            parse_xer("%T\tTASK\n%F\ttask_id\n%R\t1\n")

        assert "PROJWBS" in str(exc_info.value)

    def test_missing_field_line(self):
        with pytest.raises(ImportFormatError) as exc_info:
            parse_xer("%T\tPROJWBS\n%R\t1\t1\tProject\t\n")

        assert "%F" in str(exc_info.value)

    def test_missing_required_field(self):
        content = _xer("A\t1\tProject", fields="%F\twbs_id\twbs_short_name\twbs_name\n")

        with pytest.raises(ImportFormatError) as exc_info:
            parse_xer(content)

        assert "parent_wbs_id" in str(exc_info.value)

    def test_no_records(self):
        with pytest.raises(ImportFormatError) as exc_info:
            parse_xer(_xer())

        assert "%R" in str(exc_info.value)

    def test_no_valid_records(self):
        """Test records that are all skipped leave nothing to import."""
        content = _xer("A\tA\tFirst\t", "B\tB\tSecond\tA", "C\t1.1")

        with pytest.raises(ImportFormatError) as exc_info:
            parse_xer(content)

        assert "No valid PROJWBS records" in str(exc_info.value)

    def test_all_orphans_quarantined(self):
        content = _xer("C\t1.2\tP | Pre-requisites\tZZZ")

        with pytest.raises(ImportFormatError):
            parse_xer(content, strict_parents=True)

    def test_empty_content(self):
        with pytest.raises(ImportFormatError):
            parse_xer("   ")

    def test_import_format_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_xer("")
