"""
BUDGETS sheet parser (the source of truth).

Layout (0-indexed columns):
    A (0)  discipline number, on the DIRECT LABOR row only
    B (1)  discipline name, on the DIRECT LABOR row only
    D (3)  category label
    E (4)  manhours
    F (5)  value

Each discipline is a block of exactly 12 consecutive rows, one per category,
starting at the DIRECT LABOR row.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from ..models import BudgetDiscipline, CategoryAmount, CategoryTotals
from ..numeric import cell, cell_text, parse_numeric
from ..vocabulary import BUDGET_CATEGORY_KEYS, budget_category_key
from ..workbook import Grid

logger = logging.getLogger(__name__)

SHEET_NAME = "BUDGETS"

BLOCK_SIZE = 12

COL_NUMBER = 0
COL_NAME = 1
COL_CATEGORY = 3
COL_MANHOURS = 4
COL_VALUE = 5


@dataclass(frozen=True)
class ValidationTarget:
    """Per-discipline figures detail sheets are reconciled against."""
    direct_labor_hours: float
    indirect_labor_value: float
    materials_value: float
    equipment_value: float
    subcontractors_value: float


@dataclass(frozen=True)
class BudgetsSheetResult:
    disciplines: Tuple[BudgetDiscipline, ...] = ()
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    def discipline(self, name: str) -> Optional[BudgetDiscipline]:
        for disc in self.disciplines:
            if disc.discipline_name == name:
                return disc
        return None

    def validation_targets(self) -> Mapping[str, ValidationTarget]:
        return MappingProxyType({
            disc.discipline_name: ValidationTarget(
                direct_labor_hours=disc.categories.direct_labor.manhours,
                indirect_labor_value=disc.categories.indirect_labor.value,
                materials_value=disc.categories.materials.value,
                equipment_value=disc.categories.equipment.value,
                subcontractors_value=disc.categories.subcontracts.value,
            )
            for disc in self.disciplines
        })

    def add_ons_by_discipline(self) -> Mapping[str, float]:
        return MappingProxyType({
            disc.discipline_name: disc.categories.add_ons.value
            for disc in self.disciplines
        })

    def discipline_names_by_number(self) -> Mapping[int, str]:
        """Numeric discipline number -> name (first block wins)."""
        names = {}
        for disc in self.disciplines:
            number = disc.discipline_number
            if isinstance(number, (int, float)) and float(number).is_integer():
                names.setdefault(int(number), disc.discipline_name)
        return MappingProxyType(names)


def _is_numeric(value) -> bool:
    if value is None or isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return value == value  # NaN check
    try:
        parsed = float(str(value).strip())
    except ValueError:
        return False
    return parsed == parsed


def _normalize_number(value):
    number = float(value) if not isinstance(value, (int, float)) else value
    if isinstance(number, float) and number.is_integer():
        return int(number)
    return number


def is_block_start(grid: Grid, row_index: int) -> bool:
    """True when row_index starts a complete 12-row discipline block."""
    if row_index + BLOCK_SIZE - 1 >= len(grid):
        return False
    row = grid[row_index]
    return (
        _is_numeric(cell(row, COL_NUMBER))
        and bool(cell_text(row, COL_NAME))
        and cell_text(row, COL_CATEGORY).upper() == "DIRECT LABOR"
    )


def parse_discipline_block(grid: Grid, start_row: int) -> BudgetDiscipline:
    """Read the 12 rows at start_row positionally into a BudgetDiscipline."""
    header = grid[start_row]
    amounts = {}

    for row in grid[start_row:start_row + BLOCK_SIZE]:
        key = budget_category_key(cell(row, COL_CATEGORY))
        if key is None:
            continue
        amounts[key] = CategoryAmount(
            manhours=parse_numeric(cell(row, COL_MANHOURS)),
            value=parse_numeric(cell(row, COL_VALUE)),
        )

    discipline = BudgetDiscipline(
        discipline_number=_normalize_number(cell(header, COL_NUMBER)),
        discipline_name=cell_text(header, COL_NAME),
        categories=CategoryTotals.from_mapping(amounts),
        source_row=start_row + 1,
    )

    found = sum(
        1 for _, amount in discipline.categories.items()
        if amount.value != 0 or amount.manhours != 0
    )
    if found < len(BUDGET_CATEGORY_KEYS):
        logger.debug(
            f"{discipline.discipline_name}: found {found} of {len(BUDGET_CATEGORY_KEYS)} categories"
        )
    return discipline


def parse_budgets_sheet(grid: Grid) -> BudgetsSheetResult:
    """
    Parse the BUDGETS sheet into discipline blocks.

    Args:
        grid: Raw BUDGETS sheet grid

    Returns:
        BudgetsSheetResult; errors when the sheet is empty or has no blocks
    """
    if not grid:
        return BudgetsSheetResult(errors=("BUDGETS sheet is empty",))

    disciplines = []
    row_index = 0
    while row_index < len(grid):
        if is_block_start(grid, row_index):
            disciplines.append(parse_discipline_block(grid, row_index))
            row_index += BLOCK_SIZE
        else:
            row_index += 1

    if not disciplines:
        return BudgetsSheetResult(errors=("No discipline blocks found in BUDGETS sheet",))

    logger.info(
        f"BUDGETS: {len(disciplines)} disciplines, "
        f"grand total ${sum(d.total_value for d in disciplines):,.2f}"
    )
    return BudgetsSheetResult(disciplines=tuple(disciplines))
