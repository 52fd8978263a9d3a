import math

import pytest

from checklist.ingest.mapper import (COLUMN_ALIASES, NormalizedRow, clean_text, find_column, locate_columns,
                                     missing_columns, normalize_row, normalize_rows, sheet_language)

COLUMNS = {"area": 0, "activity": 1, "criteria": 2}


@pytest.mark.parametrize("name,expected", [
    ("Eng", "EN"),
    ("ENGLISH version", "EN"),
    ("Checklist_eng", "EN"),
    ("Bahasa", "ID"),
    ("INDONESIA", "ID"),
    ("Checklist ID", "ID"),
    ("Sheet1", None),
    ("Summary", None),
])
def test_sheet_language(name, expected):
    assert sheet_language(name) == expected


def test_sheet_language_checks_english_first():
    # contains both "eng" and "id"
    assert sheet_language("English Guide") == "EN"


class TestFindColumn:

    def test_case_and_whitespace_insensitive(self):
        headers = ["  No ", "  AREA OF EVALUATION ", "Aktivitas / Fitur yang Dievaluasi", "Kriteria Sukses"]
        assert find_column(headers, COLUMN_ALIASES["area"]) == 1
        assert find_column(headers, COLUMN_ALIASES["activity"]) == 2
        assert find_column(headers, COLUMN_ALIASES["criteria"]) == 3

    def test_first_matching_header_wins(self):
        headers = ["Category", "Area", "Activity"]
        assert find_column(headers, COLUMN_ALIASES["area"]) == 0

    def test_not_found(self):
        assert find_column(["Foo", "Bar"], COLUMN_ALIASES["criteria"]) == -1

    def test_empty_or_missing_headers(self):
        assert find_column([], ["area"]) == -1
        assert find_column(None, ["area"]) == -1

    def test_blank_header_cells_are_ignored(self):
        assert find_column([None, float("nan"), "Area"], ["area"]) == 2

    def test_locate_and_missing(self):
        columns = locate_columns(["Area", "Something", "Criteria"])
        assert columns == {"area": 0, "activity": -1, "criteria": 2}
        assert missing_columns(columns) == ["activity"]
        assert missing_columns(locate_columns(["Area", "Activity", "Criteria"])) == []


class TestCleanText:

    def test_collapses_whitespace(self):
        assert clean_text("a   b\tc") == "a b c"
        assert clean_text("  line one\n line two  ") == "line one line two"

    @pytest.mark.parametrize("value", ["a   b\tc", "  x  ", "", None, 12, "\n\n"])
    def test_idempotent(self, value):
        assert clean_text(clean_text(value)) == clean_text(value)

    def test_blank_values(self):
        assert clean_text(None) == ""
        assert clean_text(math.nan) == ""
        assert clean_text("   ") == ""

    def test_non_strings(self):
        assert clean_text(3) == "3"


class TestNormalizeRow:

    def test_area_is_carried_forward(self):
        area, row = normalize_row(["Modeling", "Create", "Saved"], COLUMNS, "")
        assert row == NormalizedRow("Modeling", "Create", "Saved")

        area, row = normalize_row([None, "Edit", "Updated"], COLUMNS, area)
        assert area == "Modeling"
        assert row == NormalizedRow("Modeling", "Edit", "Updated")

    def test_new_area_replaces_carried_one(self):
        area, row = normalize_row(["Drafting", "Dimension", "Placed"], COLUMNS, "Modeling")
        assert area == "Drafting"
        assert row.area == "Drafting"

    def test_missing_activity_skips_row(self):
        area, row = normalize_row(["Modeling", "  ", "Saved"], COLUMNS, "")
        assert row is None
        # the area still becomes current
        assert area == "Modeling"

    def test_missing_criteria_skips_row(self):
        assert normalize_row(["Modeling", "Create", None], COLUMNS, "")[1] is None

    def test_no_area_yet_skips_row(self):
        assert normalize_row([None, "Create", "Saved"], COLUMNS, "") == ("", None)

    def test_zero_cells(self):
        assert normalize_row([], COLUMNS, "Modeling") == ("Modeling", None)
        assert normalize_row(None, COLUMNS, "Modeling") == ("Modeling", None)

    def test_sparse_row(self):
        # trailing cells omitted -> criteria is empty
        assert normalize_row(["Modeling", "Create"], COLUMNS, "")[1] is None

    def test_cells_are_cleaned(self):
        _, row = normalize_row(["  Modeling\n", "Create   part", "Saved\twithout errors"], COLUMNS, "")
        assert row == NormalizedRow("Modeling", "Create part", "Saved without errors")


class TestNormalizeRows:

    def test_positions_count_skipped_rows(self):
        rows = [
            ["Modeling", "Create", "Saved"],
            [],
            [None, "", "Criteria without activity"],
            [None, "Edit", "Updated"],
        ]
        assert list(normalize_rows(rows, COLUMNS)) == [
            (1, NormalizedRow("Modeling", "Create", "Saved")),
            (4, NormalizedRow("Modeling", "Edit", "Updated")),
        ]

    def test_area_does_not_leak_between_calls(self):
        list(normalize_rows([["Modeling", "Create", "Saved"]], COLUMNS))
        assert list(normalize_rows([[None, "Edit", "Updated"]], COLUMNS)) == []

    def test_columns_in_any_order(self):
        columns = {"area": 2, "activity": 0, "criteria": 1}
        assert list(normalize_rows([["Create", "Saved", "Modeling"]], columns)) == [
            (1, NormalizedRow("Modeling", "Create", "Saved")),
        ]
