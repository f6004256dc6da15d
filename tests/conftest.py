"""Shared fixtures for converter tests."""

import os
import tempfile

# Point logging and default output at a scratch directory and provide a key
# before the package reads its configuration.
_LOG_DIR = tempfile.mkdtemp(prefix="sheetxml-logs-")
os.environ["LOG_DIR"] = _LOG_DIR
os.environ["LOG_FILE_PATH"] = os.path.join(_LOG_DIR, "audit.log")
os.environ["OUTPUT_DIR"] = os.path.join(_LOG_DIR, "output")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key")

from unittest.mock import Mock

import pandas as pd
import pytest
from openpyxl import Workbook
import xlwt

from sheetxml.utils.encryption import AESEncryption
from sheetxml.utils.workbook import SheetGrid


@pytest.fixture
def audit():
    """Audit collaborator that records calls instead of writing a log."""
    return Mock()


@pytest.fixture
def cipher(audit):
    return AESEncryption("unit-test-secret", audit=audit)


@pytest.fixture
def write_workbook(tmp_path):
    """Factory writing rows to an .xlsx file.

    ``formats`` maps cell coordinates to number formats, ``sheets`` adds
    further named sheets as {title: rows}.
    """

    def _write(rows, name="data.xlsx", title="Sheet1", formats=None, sheets=None):
        workbook = Workbook()
        worksheet = workbook.active
        worksheet.title = title
        for row in rows:
            worksheet.append(row)
        for coordinate, number_format in (formats or {}).items():
            worksheet[coordinate].number_format = number_format
        for sheet_title, sheet_rows in (sheets or {}).items():
            extra = workbook.create_sheet(sheet_title)
            for row in sheet_rows:
                extra.append(row)

        path = tmp_path / name
        workbook.save(path)
        workbook.close()
        return path

    return _write


@pytest.fixture
def write_xls(tmp_path):
    """Factory writing rows to a legacy .xls file."""

    def _write(rows, name="legacy.xls", title="Sheet1", sheets=None):
        book = xlwt.Workbook()
        for sheet_title, sheet_rows in [(title, rows)] + list((sheets or {}).items()):
            sheet = book.add_sheet(sheet_title)
            for row_index, row in enumerate(sheet_rows):
                for column_index, value in enumerate(row):
                    if value is not None:
                        sheet.write(row_index, column_index, value)
        path = tmp_path / name
        book.save(str(path))
        return path

    return _write


def make_grid(display_rows, raw_rows=None, first_row=1, first_column=1, name="Sheet1"):
    """Build a SheetGrid directly from lists of display and raw values."""
    if raw_rows is None:
        raw_rows = display_rows
    width = max((len(row) for row in display_rows), default=0)
    rows = list(range(first_row, first_row + len(display_rows)))
    columns = list(range(first_column, first_column + width))

    def frame(values):
        padded = [list(row) + [None] * (width - len(row)) for row in values]
        return pd.DataFrame(padded, index=rows, columns=columns, dtype=object)

    return SheetGrid(name=name, display=frame(display_rows), raw=frame(raw_rows))
