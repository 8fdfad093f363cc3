"""
Allocation projections handed to the storage collaborator.

Phase allocations spread each STAFF role over whole months; direct labor
allocations list DIRECTS manhours per discipline and labor category.
Both are only produced when the import runs for a project id.
"""

import math
from typing import Optional, Tuple

from .config import ImportConfig
from .models import DirectLaborAllocation, PhaseAllocation
from .sheets.directs import SHEET_NAME as DIRECTS_SHEET, DirectsSheetResult
from .sheets.staff import StaffSheetResult
from .wbs import WBSStructure, group_code_for


def staffing_wbs_code(wbs: Optional[WBSStructure], config: ImportConfig) -> Optional[str]:
    """Level-3 code of the staffing discipline's WBS group."""
    if wbs is not None:
        code = wbs.group_code(config.staff_discipline)
        if code:
            return code
    group = group_code_for(config.staff_discipline)
    return f"1.1.{group}" if group else None


def phase_allocations(
    staff: StaffSheetResult,
    project_id: str,
    wbs_code: Optional[str],
    config: Optional[ImportConfig] = None,
) -> Tuple[PhaseAllocation, ...]:
    """
    One allocation per STAFF role with a positive quantity and duration.

    duration_months = ceil(weeks / weeks_per_month);
    monthly_rate = total_labor / (quantity * duration_months).
    """
    config = config or ImportConfig()
    allocations = []
    for phase in staff.phases:
        for role in phase.roles:
            if role.quantity <= 0 or role.weeks <= 0:
                continue
            months = math.ceil(role.weeks / config.weeks_per_month)
            allocations.append(PhaseAllocation(
                project_id=project_id,
                phase=phase.phase,
                role=role.classification,
                role_code=role.labor_category_code,
                fte=role.quantity,
                duration_months=months,
                monthly_rate=role.total_labor / (role.quantity * months),
                total_cost=role.total_labor,
                perdiem=role.per_diem,
                wbs_code=wbs_code,
            ))
    return tuple(allocations)


def direct_labor_allocations(
    directs: DirectsSheetResult,
    project_id: str,
    wbs: Optional[WBSStructure] = None,
    sheet_name: str = DIRECTS_SHEET,
) -> Tuple[DirectLaborAllocation, ...]:
    """One allocation per DIRECTS labor category with positive manhours."""
    allocations = []
    for disc in directs.disciplines:
        wbs_code = wbs.code_for_item(disc.discipline_name, "DL") if wbs else None
        for category in disc.labor_categories:
            if category.manhours <= 0:
                continue
            allocations.append(DirectLaborAllocation(
                project_id=project_id,
                discipline=disc.discipline_name,
                labor_category=category.category_name,
                labor_category_code=category.labor_category_code,
                manhours=category.manhours,
                wbs_code=wbs_code,
                source_sheet=sheet_name,
                source_row=category.source_row,
            ))
    return tuple(allocations)
