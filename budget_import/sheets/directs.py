"""
DIRECTS sheet parser: direct labor manhours, disciplines side by side.

The sheet repeats a 10-column section per discipline:
    row 0, section col +0   "Discipline N" (or "Discipline N,NAME")
    row 0, section col +1   discipline name
    row 1, section col +1   discipline total manhours
    rows 5+, col 0          labor category names (shared by all sections)
    rows 5+, section col +1 manhours of that category for the discipline
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from ..numeric import cell, cell_text, parse_numeric
from ..vocabulary import direct_labor_code
from ..workbook import Grid

logger = logging.getLogger(__name__)

SHEET_NAME = "DIRECTS"

SECTION_WIDTH = 10
HEADER_ROW = 0
MANHOURS_ROW = 1
FIRST_CATEGORY_ROW = 5
COL_CATEGORY = 0

SKIPPED_LABELS = ("MAN HOURS", "S.T. HOURS", "O.T. HOURS")

_DISCIPLINE_NUMBER = re.compile(r"Discipline\s*(\d+)", re.IGNORECASE)
_DISCIPLINE_PREFIX = re.compile(r"^Discipline", re.IGNORECASE)


@dataclass(frozen=True)
class DirectLaborCategory:
    category_name: str
    labor_category_code: Optional[str]
    manhours: float
    source_row: int


@dataclass(frozen=True)
class DirectsDiscipline:
    discipline_number: str
    discipline_name: str
    total_manhours: float
    section_start: int
    labor_categories: Tuple[DirectLaborCategory, ...] = ()

    @property
    def category_manhours(self) -> float:
        return sum(c.manhours for c in self.labor_categories)


@dataclass(frozen=True)
class DirectsSheetResult:
    disciplines: Tuple[DirectsDiscipline, ...] = ()
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def total_manhours(self) -> float:
        return sum(d.total_manhours for d in self.disciplines)


def _section_header(number_text: str, name_text: str) -> Tuple[str, str]:
    """Extract (discipline number, discipline name) from a section header."""
    number = ""
    name = ""

    match = _DISCIPLINE_NUMBER.search(number_text)
    if match:
        number = match.group(1)
    elif number_text.isdigit():
        number = number_text

    if name_text and not _DISCIPLINE_PREFIX.match(name_text):
        name = name_text
    elif "," in number_text:
        # "Discipline 1,FABRICATION"
        head, tail = number_text.split(",", 1)
        name = tail.split(",")[0].strip()
        if not number:
            match = _DISCIPLINE_NUMBER.search(head)
            if match:
                number = match.group(1)

    return number, name


def _is_skipped_label(label: str) -> bool:
    upper = label.upper()
    return "TOTAL" in upper or upper in SKIPPED_LABELS


def parse_directs_sheet(grid: Grid) -> DirectsSheetResult:
    """
    Parse the DIRECTS sheet.

    Args:
        grid: Raw DIRECTS sheet grid

    Returns:
        DirectsSheetResult with one entry per discipline section
    """
    if len(grid) < FIRST_CATEGORY_ROW + 1:
        return DirectsSheetResult(errors=("DIRECTS sheet is empty or has insufficient data",))

    header = grid[HEADER_ROW]
    if not header:
        return DirectsSheetResult(errors=("No header row found in DIRECTS sheet",))

    warnings = []
    disciplines = []

    for section_start in range(0, len(header), SECTION_WIDTH):
        number_text = cell_text(header, section_start)
        name_text = cell_text(header, section_start + 1)
        if not number_text and not name_text:
            continue

        number, name = _section_header(number_text, name_text)
        if not name:
            continue

        value_col = section_start + 1
        categories = []
        for row_index in range(FIRST_CATEGORY_ROW, len(grid)):
            row = grid[row_index]
            label = cell_text(row, COL_CATEGORY)
            if not label or _is_skipped_label(label):
                continue

            manhours = parse_numeric(cell(row, value_col))
            if manhours <= 0:
                continue

            code = direct_labor_code(label)
            if code is None:
                warnings.append(f"Unknown labor category in {name}: {label}")

            categories.append(DirectLaborCategory(
                category_name=label,
                labor_category_code=code,
                manhours=manhours,
                source_row=row_index + 1,
            ))

        disciplines.append(DirectsDiscipline(
            discipline_number=number or str(section_start // SECTION_WIDTH + 1),
            discipline_name=name,
            total_manhours=parse_numeric(cell(grid[MANHOURS_ROW], value_col)),
            section_start=section_start,
            labor_categories=tuple(categories),
        ))

    errors = () if disciplines else ("No disciplines found in DIRECTS sheet",)
    result = DirectsSheetResult(
        disciplines=tuple(disciplines),
        errors=errors,
        warnings=tuple(warnings),
    )
    logger.info(
        f"DIRECTS: {len(result.disciplines)} disciplines, "
        f"{result.total_manhours:,.1f} manhours"
    )
    return result
