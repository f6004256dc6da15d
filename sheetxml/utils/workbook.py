"""Workbook loading.

A loaded workbook exposes its sheets as ``SheetGrid`` objects: two pandas
frames over the sheet's declared extent, one holding the display text of each
cell and one holding the raw stored value. Both frames are indexed by the
1-based sheet row and column numbers so positions survive sheets whose data
does not start at A1.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Optional, Union
import logging

import pandas as pd
from openpyxl import load_workbook as openpyxl_load_workbook

from .display import format_cell_value
from .exceptions import SheetNotFoundError, WorkbookReadError

log = logging.getLogger(__name__)

LEGACY_EXTENSIONS = {".xls"}


@dataclass(frozen=True, eq=False)
class SheetGrid:
    """Display and raw values of one sheet, bounded by its declared extent."""

    name: str
    display: pd.DataFrame
    raw: pd.DataFrame

    @property
    def is_empty(self) -> bool:
        return self.display.empty

    @property
    def row_numbers(self) -> List[int]:
        return list(self.display.index)

    @property
    def column_numbers(self) -> List[int]:
        return list(self.display.columns)


class Workbook:
    """An ordered, read-only set of named sheets."""

    def __init__(self, path: Path, sheet_names: List[str],
                 grid_loader: Callable[[str], SheetGrid]):
        self.path = path
        self._sheet_names = list(sheet_names)
        self._grid_loader = grid_loader
        self._grids: Dict[str, SheetGrid] = {}

    @property
    def sheet_names(self) -> List[str]:
        return list(self._sheet_names)

    def get_sheet(self, name: Optional[str] = None) -> SheetGrid:
        """Return a sheet by name, or the first sheet when no name is given."""
        if not self._sheet_names:
            raise WorkbookReadError(f"Workbook has no sheets: {self.path}")
        sheet_name = name or self._sheet_names[0]
        if sheet_name not in self._sheet_names:
            raise SheetNotFoundError(sheet_name, self._sheet_names)
        if sheet_name not in self._grids:
            try:
                self._grids[sheet_name] = self._grid_loader(sheet_name)
            except Exception as e:
                raise WorkbookReadError(f"Failed to read sheet {sheet_name}: {str(e)}") from e
        return self._grids[sheet_name]


def _empty_grid(name: str) -> SheetGrid:
    return SheetGrid(name=name, display=pd.DataFrame(dtype=object),
                     raw=pd.DataFrame(dtype=object))


def _grid_from_rows(name: str, display_rows: list, raw_rows: list,
                    row_numbers: List[int], column_numbers: List[int]) -> SheetGrid:
    return SheetGrid(
        name=name,
        display=pd.DataFrame(display_rows, index=row_numbers, columns=column_numbers, dtype=object),
        raw=pd.DataFrame(raw_rows, index=row_numbers, columns=column_numbers, dtype=object),
    )


def _load_openpyxl(path: Path) -> Workbook:
    # data_only returns the cached result of formula cells instead of the formula
    wb = openpyxl_load_workbook(filename=path, data_only=True)

    def load_grid(sheet_name: str) -> SheetGrid:
        ws = wb[sheet_name]
        min_row, max_row = ws.min_row, ws.max_row
        min_col, max_col = ws.min_column, ws.max_column

        # A sheet without content still reports the single cell A1 as its extent
        if max_row == min_row and max_col == min_col and ws.cell(min_row, min_col).value is None:
            return _empty_grid(sheet_name)

        display_rows, raw_rows = [], []
        for row in ws.iter_rows(min_row=min_row, max_row=max_row,
                                min_col=min_col, max_col=max_col):
            display_rows.append([format_cell_value(cell.value, cell.number_format) for cell in row])
            raw_rows.append([cell.value for cell in row])

        log.debug(f"Loaded sheet {sheet_name}: rows {min_row}-{max_row}, columns {min_col}-{max_col}")
        return _grid_from_rows(
            sheet_name, display_rows, raw_rows,
            list(range(min_row, max_row + 1)), list(range(min_col, max_col + 1))
        )

    return Workbook(path, wb.sheetnames, load_grid)


def _load_legacy(path: Path) -> Workbook:
    # Legacy .xls carries no usable number formats, so display text is the
    # General rendering of each stored value.
    frames = pd.read_excel(path, sheet_name=None, header=None, dtype=object, engine="xlrd")

    def load_grid(sheet_name: str) -> SheetGrid:
        df = frames[sheet_name]
        if df.empty:
            return _empty_grid(sheet_name)

        raw = df.astype(object).where(pd.notna(df), None)
        display = raw.apply(lambda column: column.map(format_cell_value))
        row_numbers = [index + 1 for index in raw.index]
        column_numbers = [index + 1 for index in raw.columns]
        return _grid_from_rows(
            sheet_name, display.values.tolist(), raw.values.tolist(), row_numbers, column_numbers
        )

    return Workbook(path, list(frames.keys()), load_grid)


def load_workbook(path: Union[str, Path]) -> Workbook:
    """Load a spreadsheet file.

    Raises:
        FileNotFoundError: the path does not exist.
        WorkbookReadError: the file cannot be parsed as a spreadsheet.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")

    try:
        if path.suffix.lower() in LEGACY_EXTENSIONS:
            return _load_legacy(path)
        return _load_openpyxl(path)
    except Exception as e:
        raise WorkbookReadError(f"Failed to read Excel file: {str(e)}") from e
