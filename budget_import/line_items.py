"""
Flatten parser results into BudgetLineItems.

Every builder is a pure function of one parser result plus the WBS lookup;
each line item carries its whole cost in exactly one bucket.
"""

import logging
from types import MappingProxyType
from typing import Callable, Mapping, Optional, Sequence, Tuple

from .config import ImportConfig
from .models import BudgetDiscipline, BudgetLineItem
from .sheets import ParsedSheet, SheetKind
from .sheets.budgets import SHEET_NAME as BUDGETS_SHEET
from .vocabulary import BUDGET_CATEGORY_KEYS, MATERIAL_COST_TYPES
from .wbs import WBSStructure

logger = logging.getLogger(__name__)

# Summary subtotals that would double count
SKIPPED_BUDGET_CATEGORIES = ("ALL_LABOR", "DISCIPLINE_TOTALS")

# Summary category -> (cost bucket, WBS cost type)
BUDGET_CATEGORY_CLASSIFICATION = MappingProxyType({
    "DIRECT_LABOR": ("labor", "DL"),
    "INDIRECT_LABOR": ("labor", "IL"),
    "TAXES_INSURANCE": ("labor", "OTH"),
    "PERDIEM": ("labor", "OTH"),
    "ADD_ONS": ("labor", "IL"),
    "SMALL_TOOLS_CONSUMABLES": ("other", "OTH"),
    "MATERIALS": ("material", "MAT"),
    "EQUIPMENT": ("equipment", "EQ"),
    "SUBCONTRACTS": ("subcontract", "SUB"),
    "RISK": ("other", "OTH"),
})


def budget_line_items(
    disciplines: Sequence[BudgetDiscipline],
    wbs: Optional[WBSStructure] = None,
) -> Tuple[BudgetLineItem, ...]:
    """One line item per non-zero Summary category of every discipline."""
    items = []
    for disc in disciplines:
        for offset, key in enumerate(BUDGET_CATEGORY_KEYS):
            if key in SKIPPED_BUDGET_CATEGORIES:
                continue
            amount = disc.categories[key]
            if amount.value <= 0:
                continue

            bucket, cost_type = BUDGET_CATEGORY_CLASSIFICATION[key]
            category_name = key.replace("_", " ")
            items.append(BudgetLineItem.create(
                bucket=bucket,
                total_cost=amount.value,
                source_sheet=BUDGETS_SHEET,
                source_row=disc.source_row + offset,
                discipline=disc.discipline_name,
                cost_type=category_name,
                description=f"{disc.discipline_name} - {category_name}",
                manhours=amount.manhours,
                wbs_code=wbs.code_for_item(disc.discipline_name, cost_type) if wbs else None,
            ))
    return tuple(items)


def _code(wbs: Optional[WBSStructure], discipline: str, cost_type: str, phase: Optional[str] = None):
    return wbs.code_for_item(discipline, cost_type, phase) if wbs else None


def _staff_items(sheet: ParsedSheet, wbs, config: ImportConfig) -> Tuple[BudgetLineItem, ...]:
    staff = sheet.result
    items = []
    for phase in staff.phases:
        for role in phase.roles:
            if role.total_labor <= 0:
                continue
            items.append(BudgetLineItem.create(
                bucket="labor",
                total_cost=role.total_labor,
                source_sheet=sheet.sheet_name,
                source_row=role.source_row,
                discipline=staff.discipline_mapping,
                cost_type="Indirect Labor",
                description=f"{phase.phase} - {role.canonical_role or role.classification}",
                wbs_code=_code(wbs, staff.discipline_mapping, "IL", phase.phase),
                notes=f"Qty: {role.quantity:g}, Weeks: {role.weeks:g}, Per diem: ${role.per_diem:,.2f}",
            ))
    return tuple(items)


def _indirects_items(sheet: ParsedSheet, wbs, config: ImportConfig) -> Tuple[BudgetLineItem, ...]:
    discipline = config.staff_discipline
    return tuple(
        BudgetLineItem.create(
            bucket="labor",
            total_cost=role.total_cost,
            source_sheet=sheet.sheet_name,
            source_row=role.source_row,
            discipline=discipline,
            cost_type="Supervision",
            description=f"Supervision - {role.canonical_role or role.role}",
            wbs_code=_code(wbs, discipline, "IL"),
        )
        for role in sheet.result.roles
    )


def _materials_items(sheet: ParsedSheet, wbs, config: ImportConfig) -> Tuple[BudgetLineItem, ...]:
    items = []
    for disc in sheet.result.disciplines:
        for line in disc.lines:
            if line.amount <= 0:
                continue
            items.append(BudgetLineItem.create(
                bucket="material",
                total_cost=line.amount,
                source_sheet=sheet.sheet_name,
                source_row=line.source_row,
                discipline=disc.discipline_name,
                cost_type=MATERIAL_COST_TYPES[line.line_type],
                description=f"{disc.discipline_name} - {line.description}",
                wbs_code=_code(wbs, disc.discipline_name, "MAT"),
            ))
    return tuple(items)


def _equipment_item(sheet_name: str, item, discipline: str, wbs) -> BudgetLineItem:
    return BudgetLineItem.create(
        bucket="equipment",
        total_cost=item.total_cost,
        source_sheet=sheet_name,
        source_row=item.source_row,
        discipline=discipline,
        cost_type="Equipment",
        description=item.description or item.equipment_type,
        wbs_code=_code(wbs, discipline, "EQ"),
        notes=item.cost_notes,
    )


def _equipment_items(sheet: ParsedSheet, wbs, config: ImportConfig) -> Tuple[BudgetLineItem, ...]:
    result = sheet.result
    items = [
        _equipment_item(sheet.sheet_name, item, disc.discipline_name, wbs)
        for disc in result.disciplines
        for item in disc.items
    ]
    items.extend(
        _equipment_item(sheet.sheet_name, item, item.discipline, wbs)
        for item in result.project_wide_items
    )
    return tuple(i for i in items if i.total_cost != 0)


def _numbered_equipment_items(sheet: ParsedSheet, wbs, config: ImportConfig) -> Tuple[BudgetLineItem, ...]:
    result = sheet.result
    return tuple(
        _equipment_item(sheet.sheet_name, item, result.discipline_name, wbs)
        for item in result.items
        if item.total_cost != 0
    )


def _constructability_items(sheet: ParsedSheet, wbs, config: ImportConfig) -> Tuple[BudgetLineItem, ...]:
    result = sheet.result
    discipline = result.discipline_mapping
    return tuple(
        BudgetLineItem.create(
            bucket="other",
            total_cost=item.cost,
            source_sheet=sheet.sheet_name,
            source_row=item.source_row,
            discipline=discipline,
            cost_type=f"Constructability - {category.wbs_mapped_name}",
            description=f"{category.category_name} - {item.description}",
            wbs_code=_code(wbs, discipline, "OTH"),
        )
        for category in result.categories
        for item in category.items
    )


LineItemBuilder = Callable[[ParsedSheet, Optional[WBSStructure], ImportConfig], Tuple[BudgetLineItem, ...]]

# DIRECTS carries manhours only; it feeds allocations, not line items.
LINE_ITEM_BUILDERS: Mapping[SheetKind, LineItemBuilder] = MappingProxyType({
    SheetKind.STAFF: _staff_items,
    SheetKind.INDIRECTS: _indirects_items,
    SheetKind.MATERIALS: _materials_items,
    SheetKind.GENERAL_EQUIPMENT: _equipment_items,
    SheetKind.DISC_EQUIPMENT: _equipment_items,
    SheetKind.NUMBERED_EQUIPMENT: _numbered_equipment_items,
    SheetKind.CONSTRUCTABILITY: _constructability_items,
})


def detail_line_items(
    sheet: ParsedSheet,
    wbs: Optional[WBSStructure] = None,
    config: Optional[ImportConfig] = None,
) -> Tuple[BudgetLineItem, ...]:
    """Line items for one parsed detail sheet (empty for sheets without costs)."""
    builder = LINE_ITEM_BUILDERS.get(sheet.kind)
    if builder is None:
        return ()
    items = builder(sheet, wbs, config or ImportConfig())
    logger.debug(f"{sheet.sheet_name}: {len(items)} line items")
    return items
