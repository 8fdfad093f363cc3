"""
Equipment sheet parsers.

GENERAL EQUIPMENT and DISC. EQUIPMENT share one row layout (data from row
index 1; a row counts when any of Q-S is non-zero):
    B (1)   discipline; blank or GENERAL = project-wide
    C (2)   type
    D (3)   description
    E (4)   quantity
    F (5)   duration
    G (6)   duration type
    Q (16)  equipment cost
    R (17)  fuel / oil / grease cost
    S (18)  maintenance cost

Sheets named "DISC EQUIPMENT NN" use the same columns for a single
discipline; column B is ignored there.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from ..numeric import cell, cell_text, parse_numeric
from ..workbook import Grid

logger = logging.getLogger(__name__)

GENERAL_SHEET_NAME = "GENERAL EQUIPMENT"
DISC_SHEET_NAMES = ("DISC. EQUIPMENT", "DISC.EQUIPMENT")
GENERAL_DISCIPLINE = "GENERAL"

NUMBERED_SHEET_PATTERN = re.compile(r"DISC\s+EQUIPMENT\s+(\d+)", re.IGNORECASE)

FIRST_DATA_ROW = 1
COL_DISCIPLINE = 1
COL_TYPE = 2
COL_DESCRIPTION = 3
COL_QUANTITY = 4
COL_DURATION = 5
COL_DURATION_TYPE = 6
COL_EQUIPMENT = 16
COL_FOG = 17
COL_MAINTENANCE = 18


@dataclass(frozen=True)
class EquipmentItem:
    discipline: str
    equipment_type: str
    description: str
    quantity: float
    duration: float
    duration_type: str
    equipment_cost: float
    fog_cost: float
    maintenance_cost: float
    source_row: int

    @property
    def total_cost(self) -> float:
        return self.equipment_cost + self.fog_cost + self.maintenance_cost

    @property
    def cost_notes(self) -> str:
        return (
            f"Equipment: ${self.equipment_cost:,.2f}, FOG: ${self.fog_cost:,.2f}, "
            f"Maintenance: ${self.maintenance_cost:,.2f}"
        )


@dataclass(frozen=True)
class EquipmentDiscipline:
    discipline_name: str
    items: Tuple[EquipmentItem, ...] = ()

    @property
    def equipment_cost(self) -> float:
        return sum(i.equipment_cost for i in self.items)

    @property
    def fog_cost(self) -> float:
        return sum(i.fog_cost for i in self.items)

    @property
    def maintenance_cost(self) -> float:
        return sum(i.maintenance_cost for i in self.items)

    @property
    def total_cost(self) -> float:
        return sum(i.total_cost for i in self.items)


@dataclass(frozen=True)
class EquipmentSheetResult:
    sheet_name: str
    disciplines: Tuple[EquipmentDiscipline, ...] = ()
    project_wide_items: Tuple[EquipmentItem, ...] = ()
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def items(self) -> Tuple[EquipmentItem, ...]:
        return tuple(i for d in self.disciplines for i in d.items) + self.project_wide_items

    @property
    def grand_total(self) -> float:
        return sum(i.total_cost for i in self.items)


@dataclass(frozen=True)
class NumberedEquipmentResult:
    """One "DISC EQUIPMENT NN" sheet, attributed to a single discipline."""
    sheet_name: str
    discipline_number: int
    discipline_name: str
    items: Tuple[EquipmentItem, ...] = ()
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def total_cost(self) -> float:
        return sum(i.total_cost for i in self.items)


def _read_item(row, index: int, discipline: str) -> Optional[EquipmentItem]:
    equipment = parse_numeric(cell(row, COL_EQUIPMENT))
    fog = parse_numeric(cell(row, COL_FOG))
    maintenance = parse_numeric(cell(row, COL_MAINTENANCE))
    if equipment == 0 and fog == 0 and maintenance == 0:
        return None

    return EquipmentItem(
        discipline=discipline,
        equipment_type=cell_text(row, COL_TYPE),
        description=cell_text(row, COL_DESCRIPTION),
        quantity=parse_numeric(cell(row, COL_QUANTITY)),
        duration=parse_numeric(cell(row, COL_DURATION)),
        duration_type=cell_text(row, COL_DURATION_TYPE),
        equipment_cost=equipment,
        fog_cost=fog,
        maintenance_cost=maintenance,
        source_row=index + 1,
    )


def parse_equipment_sheet(grid: Grid, sheet_name: str = GENERAL_SHEET_NAME) -> EquipmentSheetResult:
    """
    Parse GENERAL EQUIPMENT (or the combined DISC. EQUIPMENT sheet).

    Args:
        grid: Raw sheet grid
        sheet_name: Name used in messages and on the result

    Returns:
        EquipmentSheetResult grouped by discipline, first-seen order
    """
    if len(grid) < 2:
        return EquipmentSheetResult(
            sheet_name=sheet_name,
            errors=(f"{sheet_name} sheet is empty or has insufficient data",),
        )

    by_discipline = {}
    project_wide = []
    for index in range(FIRST_DATA_ROW, len(grid)):
        row = grid[index]
        discipline = cell_text(row, COL_DISCIPLINE)
        item = _read_item(row, index, discipline or GENERAL_DISCIPLINE)
        if item is None:
            continue

        if not discipline or discipline == GENERAL_DISCIPLINE:
            project_wide.append(item)
        else:
            by_discipline.setdefault(discipline, []).append(item)

    disciplines = tuple(
        EquipmentDiscipline(discipline_name=name, items=tuple(items))
        for name, items in by_discipline.items()
    )

    errors = ()
    if not disciplines and not project_wide:
        errors = (f"No equipment items found in {sheet_name} sheet",)

    result = EquipmentSheetResult(
        sheet_name=sheet_name,
        disciplines=disciplines,
        project_wide_items=tuple(project_wide),
        errors=errors,
    )
    logger.info(
        f"{sheet_name}: {len(disciplines)} disciplines, "
        f"{len(project_wide)} project-wide items, total ${result.grand_total:,.2f}"
    )
    return result


def numbered_sheet_number(sheet_name: str) -> Optional[int]:
    """Return NN for a "DISC EQUIPMENT NN" sheet name, else None."""
    match = NUMBERED_SHEET_PATTERN.fullmatch(sheet_name.strip())
    return int(match.group(1)) if match else None


def parse_numbered_equipment_sheet(
    grid: Grid,
    sheet_name: str,
    discipline_name: Optional[str] = None,
) -> NumberedEquipmentResult:
    """
    Parse a "DISC EQUIPMENT NN" sheet.

    Args:
        grid: Raw sheet grid
        sheet_name: Sheet name, carrying the discipline number
        discipline_name: Summary discipline with that number, if known

    Returns:
        NumberedEquipmentResult; an empty sheet yields a warning
    """
    match = NUMBERED_SHEET_PATTERN.fullmatch(sheet_name.strip())
    digits = match.group(1) if match else "0"
    number = int(digits)
    name = discipline_name or f"DISCIPLINE {digits}"

    items = []
    for index in range(FIRST_DATA_ROW, len(grid)):
        item = _read_item(grid[index], index, name)
        if item is not None:
            items.append(item)

    warnings = () if items else (f"No equipment items found in {sheet_name}",)
    result = NumberedEquipmentResult(
        sheet_name=sheet_name,
        discipline_number=number,
        discipline_name=name,
        items=tuple(items),
        warnings=warnings,
    )
    logger.info(f"{sheet_name} ({name}): {len(items)} items, total ${result.total_cost:,.2f}")
    return result
