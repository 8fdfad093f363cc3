"""
Workbook collaborator: reads an .xlsx budget workbook into raw grids.

The import engine never touches openpyxl objects directly. Each sheet is
handed over as a row-major tuple of row tuples holding cached cell values
(formulas already evaluated by Excel), 0-indexed, with trailing blanks
trimmed from every row and from the end of the sheet.
"""

import logging
from pathlib import Path
from types import MappingProxyType
from typing import Any, BinaryIO, Iterable, Mapping, Tuple, Union
from zipfile import BadZipFile

import openpyxl
from openpyxl.utils.exceptions import InvalidFileException

logger = logging.getLogger(__name__)

Row = Tuple[Any, ...]
Grid = Tuple[Row, ...]
Workbook = Mapping[str, Grid]


class WorkbookLoadError(ValueError):
    """Raised when a workbook file cannot be opened or read."""


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _trim_row(values: Iterable[Any]) -> Row:
    row = list(values)
    while row and _is_blank(row[-1]):
        row.pop()
    return tuple(row)


def to_grid(rows: Iterable[Iterable[Any]]) -> Grid:
    """Normalize any iterable of rows into a trimmed, immutable grid."""
    grid = [_trim_row(row) for row in rows]
    while grid and not grid[-1]:
        grid.pop()
    return tuple(grid)


def worksheet_grid(ws) -> Grid:
    """Read every cached cell value of an openpyxl worksheet, from A1."""
    return to_grid(ws.iter_rows(min_row=1, min_col=1, values_only=True))


def workbook_from_grids(sheets: Mapping[str, Iterable[Iterable[Any]]]) -> Workbook:
    """Build an in-memory workbook from {sheet name: rows}."""
    return MappingProxyType({name: to_grid(rows) for name, rows in sheets.items()})


def load_workbook(source: Union[str, Path, BinaryIO]) -> Workbook:
    """
    Load a budget workbook.

    Args:
        source: Path to an .xlsx file, or a binary file-like object

    Returns:
        Read-only mapping of sheet name -> grid, in workbook sheet order

    Raises:
        WorkbookLoadError: file missing, not an .xlsx workbook, or corrupt
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise WorkbookLoadError(f"Workbook not found: {path}")
        label = str(path)
    else:
        label = getattr(source, "name", "<stream>")

    try:
        wb = openpyxl.load_workbook(source, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError, OSError, ValueError) as e:
        raise WorkbookLoadError(f"Could not read workbook {label}: {e}") from e

    try:
        sheets = {ws.title: worksheet_grid(ws) for ws in wb.worksheets}
    finally:
        wb.close()

    logger.info(f"Loaded workbook {label}: {len(sheets)} sheets ({', '.join(sheets)})")
    return MappingProxyType(sheets)
