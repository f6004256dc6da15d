from typing import Any, Dict, List, Tuple
import logging

import pandas as pd

from .exceptions import EmptyDataError
from .workbook import SheetGrid

log = logging.getLogger(__name__)

Record = Dict[str, str]


def _cell_text(display: Any, raw: Any) -> str:
    """Display text when present, else the raw value as a string, else ''."""
    if display is not None and not pd.isna(display) and display != "":
        return str(display)
    if raw is not None and not pd.isna(raw):
        return str(raw)
    return ""


def _build_header_map(grid: SheetGrid) -> Dict[int, str]:
    """Map each column number to its name from the first row of the grid."""
    header_row = grid.row_numbers[0]
    header_map = {}
    for column in grid.column_numbers:
        name = _cell_text(grid.display.at[header_row, column], grid.raw.at[header_row, column]).strip()
        header_map[column] = name or f"COL_{column}"
    return header_map


def extract_records(grid: SheetGrid) -> Tuple[List[str], List[Record]]:
    """Extract column names and data records from a sheet grid.

    The first row of the grid supplies the column names. Every following row
    with at least one non-empty cell becomes a record mapping column name to
    the cell's display text. Columns sharing a name collapse into one field.

    Raises:
        EmptyDataError: the sheet has no content or no data rows.
    """
    if grid.is_empty:
        raise EmptyDataError("Excel file is empty")

    header_map = _build_header_map(grid)
    columns = list(dict.fromkeys(header_map.values()))

    records: List[Record] = []
    for row in grid.row_numbers[1:]:
        record: Record = {}
        has_data = False
        for column, name in header_map.items():
            text = _cell_text(grid.display.at[row, column], grid.raw.at[row, column])
            record[name] = text
            if text != "":
                has_data = True
        if has_data:
            records.append(record)

    if not records:
        raise EmptyDataError("Excel file is empty")

    log.debug(f"Extracted {len(records)} records with columns {columns} from sheet {grid.name}")
    return columns, records
