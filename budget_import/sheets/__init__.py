"""
Sheet layouts, selected by sheet name.

Each supported sheet name maps to a (kind, parser) entry. Parsers are plain
functions of a raw grid plus a read-only ParseContext carrying what the
BUDGETS parse produced; they share no state and may run in any order.
"""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, List, Mapping, Optional, Tuple

from ..config import ImportConfig
from ..workbook import Grid, Workbook
from .budgets import SHEET_NAME as BUDGETS_SHEET, BudgetsSheetResult, parse_budgets_sheet
from .constructability import ConstructabilitySheetResult, parse_constructability_sheet
from .directs import DirectsSheetResult, parse_directs_sheet
from .equipment import (
    DISC_SHEET_NAMES,
    GENERAL_SHEET_NAME,
    EquipmentSheetResult,
    NumberedEquipmentResult,
    numbered_sheet_number,
    parse_equipment_sheet,
    parse_numbered_equipment_sheet,
)
from .indirects import IndirectsSheetResult, parse_indirects_sheet
from .materials import MaterialsSheetResult, parse_materials_sheet
from .staff import StaffSheetResult, parse_staff_sheet


class SheetKind(Enum):
    """Layout family of a worksheet."""
    BUDGETS = "budgets"
    STAFF = "staff"
    DIRECTS = "directs"
    MATERIALS = "materials"
    GENERAL_EQUIPMENT = "general_equipment"
    DISC_EQUIPMENT = "disc_equipment"
    NUMBERED_EQUIPMENT = "numbered_equipment"
    CONSTRUCTABILITY = "constructability"
    INDIRECTS = "indirects"


def _empty_mapping() -> Mapping:
    return MappingProxyType({})


@dataclass(frozen=True)
class ParseContext:
    """Read-only inputs every detail parser may draw on."""
    config: ImportConfig = field(default_factory=ImportConfig)
    add_ons_by_discipline: Mapping[str, float] = field(default_factory=_empty_mapping)
    discipline_names_by_number: Mapping[int, str] = field(default_factory=_empty_mapping)

    @classmethod
    def from_budgets(cls, budgets: BudgetsSheetResult, config: ImportConfig) -> "ParseContext":
        return cls(
            config=config,
            add_ons_by_discipline=budgets.add_ons_by_discipline(),
            discipline_names_by_number=budgets.discipline_names_by_number(),
        )


@dataclass(frozen=True)
class ParsedSheet:
    """A parser result tagged with its sheet name and layout kind."""
    sheet_name: str
    kind: SheetKind
    result: Any

    @property
    def errors(self) -> Tuple[str, ...]:
        return self.result.errors

    @property
    def warnings(self) -> Tuple[str, ...]:
        return self.result.warnings


Parser = Callable[[Grid, str, ParseContext], Any]


def _staff(grid: Grid, sheet_name: str, context: ParseContext) -> StaffSheetResult:
    add_ons = context.add_ons_by_discipline.get(context.config.staff_discipline, 0.0)
    return parse_staff_sheet(grid, add_ons, config=context.config)


def _directs(grid: Grid, sheet_name: str, context: ParseContext) -> DirectsSheetResult:
    return parse_directs_sheet(grid)


def _materials(grid: Grid, sheet_name: str, context: ParseContext) -> MaterialsSheetResult:
    return parse_materials_sheet(grid, config=context.config)


def _equipment(grid: Grid, sheet_name: str, context: ParseContext) -> EquipmentSheetResult:
    return parse_equipment_sheet(grid, sheet_name)


def _numbered_equipment(grid: Grid, sheet_name: str, context: ParseContext) -> NumberedEquipmentResult:
    number = numbered_sheet_number(sheet_name)
    return parse_numbered_equipment_sheet(
        grid, sheet_name, context.discipline_names_by_number.get(number)
    )


def _constructability(grid: Grid, sheet_name: str, context: ParseContext) -> ConstructabilitySheetResult:
    return parse_constructability_sheet(grid, config=context.config)


def _indirects(grid: Grid, sheet_name: str, context: ParseContext) -> IndirectsSheetResult:
    return parse_indirects_sheet(grid, config=context.config)


# Detail sheets in parse/report order
DETAIL_LAYOUTS: Mapping[str, Tuple[SheetKind, Parser]] = MappingProxyType({
    "STAFF": (SheetKind.STAFF, _staff),
    "INDIRECTS": (SheetKind.INDIRECTS, _indirects),
    "DIRECTS": (SheetKind.DIRECTS, _directs),
    "MATERIALS": (SheetKind.MATERIALS, _materials),
    GENERAL_SHEET_NAME: (SheetKind.GENERAL_EQUIPMENT, _equipment),
    "CONSTRUCTABILITY": (SheetKind.CONSTRUCTABILITY, _constructability),
    DISC_SHEET_NAMES[0]: (SheetKind.DISC_EQUIPMENT, _equipment),
    DISC_SHEET_NAMES[1]: (SheetKind.DISC_EQUIPMENT, _equipment),
})

NUMBERED_EQUIPMENT_LAYOUT: Tuple[SheetKind, Parser] = (SheetKind.NUMBERED_EQUIPMENT, _numbered_equipment)


def resolve_layout(sheet_name: str) -> Optional[Tuple[SheetKind, Parser]]:
    """Return the (kind, parser) entry for a detail sheet name, if supported."""
    if sheet_name in DETAIL_LAYOUTS:
        return DETAIL_LAYOUTS[sheet_name]
    if numbered_sheet_number(sheet_name) is not None:
        return NUMBERED_EQUIPMENT_LAYOUT
    return None


def detail_sheet_names(workbook: Workbook) -> List[str]:
    """
    Supported detail sheets present in the workbook, in parse order.

    Only one combined discipline-equipment sheet is read; "DISC. EQUIPMENT"
    wins over "DISC.EQUIPMENT". Numbered equipment sheets follow in
    workbook order.
    """
    names = []
    for name in DETAIL_LAYOUTS:
        if name not in workbook:
            continue
        if name == DISC_SHEET_NAMES[1] and DISC_SHEET_NAMES[0] in workbook:
            continue
        names.append(name)

    names.extend(name for name in workbook if numbered_sheet_number(name) is not None)
    return names


def parse_detail_sheet(sheet_name: str, grid: Grid, context: ParseContext) -> ParsedSheet:
    """Dispatch one detail sheet to its layout parser."""
    entry = resolve_layout(sheet_name)
    if entry is None:
        raise KeyError(f"No layout registered for sheet {sheet_name!r}")
    kind, parser = entry
    return ParsedSheet(sheet_name=sheet_name, kind=kind, result=parser(grid, sheet_name, context))


__all__ = [
    "BUDGETS_SHEET",
    "BudgetsSheetResult",
    "ConstructabilitySheetResult",
    "DirectsSheetResult",
    "EquipmentSheetResult",
    "IndirectsSheetResult",
    "MaterialsSheetResult",
    "NumberedEquipmentResult",
    "StaffSheetResult",
    "ParseContext",
    "ParsedSheet",
    "SheetKind",
    "DETAIL_LAYOUTS",
    "detail_sheet_names",
    "parse_budgets_sheet",
    "parse_detail_sheet",
    "resolve_layout",
]
