"""
STAFF sheet parser: indirect labor by phase.

Layout (0-indexed, data from row index 1):
    A (0)   role classification
    B (1)   description; phase marker rows are detected here
    C (2)   quantity
    D (3)   weeks
    W (22)  per diem
    Y (24)  total labor

Rows after a phase marker belong to that phase until the next marker.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import ImportConfig
from ..numeric import cell, cell_text, parse_numeric
from ..vocabulary import detect_staff_phase, indirect_role
from ..workbook import Grid

logger = logging.getLogger(__name__)

SHEET_NAME = "STAFF"

FIRST_DATA_ROW = 1
COL_CLASSIFICATION = 0
COL_DESCRIPTION = 1
COL_QUANTITY = 2
COL_WEEKS = 3
COL_PER_DIEM = 22
COL_TOTAL_LABOR = 24


@dataclass(frozen=True)
class StaffRole:
    classification: str
    quantity: float
    weeks: float
    per_diem: float
    total_labor: float
    labor_category_code: Optional[str]
    canonical_role: Optional[str]
    source_row: int


@dataclass(frozen=True)
class StaffPhase:
    phase: str
    phase_description: str
    roles: Tuple[StaffRole, ...] = ()

    @property
    def total_labor(self) -> float:
        return sum(role.total_labor for role in self.roles)

    @property
    def total_per_diem(self) -> float:
        return sum(role.per_diem for role in self.roles)


@dataclass(frozen=True)
class StaffSheetResult:
    phases: Tuple[StaffPhase, ...] = ()
    add_ons: float = 0.0
    discipline_mapping: str = "GENERAL STAFFING"
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def roles(self) -> Tuple[StaffRole, ...]:
        return tuple(role for phase in self.phases for role in phase.roles)

    @property
    def phase_labor(self) -> float:
        return sum(phase.total_labor for phase in self.phases)

    @property
    def total_indirect_labor(self) -> float:
        """Phase labor plus the discipline's ADD ONS (when positive)."""
        return self.phase_labor + (self.add_ons if self.add_ons > 0 else 0.0)

    @property
    def total_per_diem(self) -> float:
        return sum(phase.total_per_diem for phase in self.phases)


def parse_staff_sheet(
    grid: Grid,
    add_ons: float = 0.0,
    config: Optional[ImportConfig] = None,
) -> StaffSheetResult:
    """
    Parse the STAFF sheet.

    Args:
        grid: Raw STAFF sheet grid
        add_ons: BUDGETS ADD ONS value of the staffing discipline
        config: Import configuration (expected phase count, discipline)

    Returns:
        StaffSheetResult with phases, roles and messages
    """
    config = config or ImportConfig()
    discipline = config.staff_discipline

    if len(grid) < 2:
        return StaffSheetResult(
            add_ons=add_ons,
            discipline_mapping=discipline,
            errors=("STAFF sheet is empty or has no data rows",),
        )

    warnings = []
    phases = []
    current = None  # (phase, description, roles)
    rows_processed = 0

    for index in range(FIRST_DATA_ROW, len(grid)):
        row = grid[index]
        if not row:
            continue

        classification = cell_text(row, COL_CLASSIFICATION)
        description = cell_text(row, COL_DESCRIPTION)

        phase = detect_staff_phase(description)
        if phase:
            if current:
                phases.append(StaffPhase(current[0], current[1], tuple(current[2])))
            current = (phase, description, [])
            continue

        if current is None or not classification:
            continue

        quantity = parse_numeric(cell(row, COL_QUANTITY))
        weeks = parse_numeric(cell(row, COL_WEEKS))
        per_diem = parse_numeric(cell(row, COL_PER_DIEM))
        total_labor = parse_numeric(cell(row, COL_TOTAL_LABOR))

        if not (quantity > 0 or weeks > 0 or total_labor > 0):
            continue

        resolved = indirect_role(classification)
        if resolved is None:
            warnings.append(f"Unknown role: {classification}")
        code, canonical = resolved if resolved else (None, None)

        current[2].append(StaffRole(
            classification=classification,
            quantity=quantity,
            weeks=weeks,
            per_diem=per_diem,
            total_labor=total_labor,
            labor_category_code=code,
            canonical_role=canonical,
            source_row=index + 1,
        ))
        rows_processed += 1

    if current:
        phases.append(StaffPhase(current[0], current[1], tuple(current[2])))

    errors = []
    if not phases:
        errors.append("No phases found in STAFF sheet")
    elif len(phases) != config.staff_expected_phases:
        warnings.append(f"Expected {config.staff_expected_phases} phases, found {len(phases)}")

    if rows_processed == 0:
        errors.append("No role data found in STAFF sheet")

    result = StaffSheetResult(
        phases=tuple(phases),
        add_ons=add_ons,
        discipline_mapping=discipline,
        errors=tuple(errors),
        warnings=tuple(warnings),
    )
    logger.info(
        f"STAFF: {len(result.phases)} phases, {rows_processed} roles, "
        f"indirect labor ${result.total_indirect_labor:,.2f}"
    )
    return result
