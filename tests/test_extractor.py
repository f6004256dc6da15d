"""Tests for record extraction from sheet grids."""

import pytest

from sheetxml.utils.exceptions import EmptyDataError
from sheetxml.utils.extractor import extract_records
from sheetxml.utils.workbook import load_workbook

from conftest import make_grid


class TestExtractRecords:
    """Test cases for extract_records."""

    def test_blank_header_gets_column_placeholder(self):
        grid = make_grid([["Name", "", "Age"], ["Ann", "x", "30"]])

        columns, records = extract_records(grid)

        assert columns == ["Name", "COL_2", "Age"]
        assert records == [{"Name": "Ann", "COL_2": "x", "Age": "30"}]

    def test_missing_header_cell_gets_column_placeholder(self):
        grid = make_grid([["Name", None], ["Ann", "x"]])
        columns, _ = extract_records(grid)
        assert columns == ["Name", "COL_2"]

    def test_placeholder_uses_sheet_column_number(self):
        grid = make_grid([["ID", None], ["1", "a"]], first_column=3)
        columns, _ = extract_records(grid)
        assert columns == ["ID", "COL_4"]

    def test_header_names_are_trimmed(self):
        grid = make_grid([["  ID ", " Amount"], ["1", "2"]])
        columns, records = extract_records(grid)
        assert columns == ["ID", "Amount"]
        assert list(records[0]) == ["ID", "Amount"]

    def test_blank_rows_are_dropped(self):
        grid = make_grid([
            ["A", "B"],
            ["1", None],
            [None, None],
            ["", ""],
            [None, "z"],
        ])

        _, records = extract_records(grid)

        assert records == [{"A": "1", "B": ""}, {"A": "", "B": "z"}]

    def test_records_share_column_order(self):
        grid = make_grid([["C", "A", "B"], ["3", "1", "2"], [None, None, "x"]])
        columns, records = extract_records(grid)
        for record in records:
            assert list(record) == columns

    def test_display_text_wins_over_raw_value(self):
        grid = make_grid(
            [["Code", "Amount"], ["007", "1,000.00"]],
            raw_rows=[["Code", "Amount"], [7, 1000]],
        )
        _, records = extract_records(grid)
        assert records == [{"Code": "007", "Amount": "1,000.00"}]

    def test_raw_value_used_without_display_text(self):
        grid = make_grid(
            [["Code", "Flag"], [None, ""]],
            raw_rows=[["Code", "Flag"], [7, True]],
        )
        _, records = extract_records(grid)
        assert records == [{"Code": "7", "Flag": "True"}]

    def test_duplicate_headers_collapse(self):
        grid = make_grid([["Name", "Name", "Age"], ["first", "second", "30"]])

        columns, records = extract_records(grid)

        assert columns == ["Name", "Age"]
        assert records == [{"Name": "second", "Age": "30"}]

    def test_header_only_sheet_is_empty(self):
        with pytest.raises(EmptyDataError):
            extract_records(make_grid([["ID", "Amount"]]))

    def test_blank_data_rows_only_is_empty(self):
        with pytest.raises(EmptyDataError):
            extract_records(make_grid([["ID", "Amount"], [None, None], ["", ""]]))

    def test_grid_without_cells_is_empty(self):
        with pytest.raises(EmptyDataError):
            extract_records(make_grid([]))


class TestExtractFromWorkbook:
    """Extraction over workbooks written with openpyxl."""

    def test_leading_zeros_survive(self, write_workbook):
        path = write_workbook(
            [["Account", "Amount"], [7, 1234.5]],
            formats={"A2": "0000000000", "B2": "#,##0.00"},
        )

        _, records = extract_records(load_workbook(path).get_sheet())

        assert records == [{"Account": "0000000007", "Amount": "1,234.50"}]

    def test_text_cells_keep_their_content(self, write_workbook):
        path = write_workbook([["BVN", "Name"], ["00123", "Ann"]])
        _, records = extract_records(load_workbook(path).get_sheet())
        assert records[0]["BVN"] == "00123"

    def test_data_not_starting_at_a1(self, write_workbook):
        path = write_workbook([
            [None, None, None],
            [None, "ID", "Name"],
            [None, 1, "Ann"],
        ])

        columns, records = extract_records(load_workbook(path).get_sheet())

        assert columns == ["ID", "Name"]
        assert records == [{"ID": "1", "Name": "Ann"}]

    def test_blank_sheet_is_empty(self, write_workbook):
        path = write_workbook([])
        with pytest.raises(EmptyDataError):
            extract_records(load_workbook(path).get_sheet())
