"""
INDIRECTS sheet parser: supervision labor.

Rows 2-42 (1-based) list supervision roles:
    A (0)  role, when column B is blank
    B (1)  role
    C (2)  quantity
    D (3)  duration
    E (4)  rate
    F (5)  total cost

Supervision cost is additive to the STAFF sheet's indirect labor; both
feed the BUDGETS INDIRECT LABOR reconciliation.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import ImportConfig
from ..numeric import cell, cell_text, parse_numeric
from ..vocabulary import indirect_role
from ..workbook import Grid

logger = logging.getLogger(__name__)

SHEET_NAME = "INDIRECTS"

COL_ROLE_FALLBACK = 0
COL_ROLE = 1
COL_QUANTITY = 2
COL_DURATION = 3
COL_RATE = 4
COL_TOTAL = 5


@dataclass(frozen=True)
class SupervisionRole:
    role: str
    labor_category_code: Optional[str]
    canonical_role: Optional[str]
    quantity: float
    duration: float
    rate: float
    total_cost: float
    source_row: int


@dataclass(frozen=True)
class IndirectsSheetResult:
    roles: Tuple[SupervisionRole, ...] = ()
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def total_supervision_labor(self) -> float:
        return sum(r.total_cost for r in self.roles)


def parse_indirects_sheet(grid: Grid, config: Optional[ImportConfig] = None) -> IndirectsSheetResult:
    """
    Parse the INDIRECTS supervision rows.

    Args:
        grid: Raw INDIRECTS sheet grid
        config: Import configuration (row range)

    Returns:
        IndirectsSheetResult; unknown roles still count toward the total
    """
    config = config or ImportConfig()
    first = max(config.indirects_first_row - 1, 0)
    last = min(config.indirects_last_row, len(grid))

    roles = []
    warnings = []
    for index in range(first, last):
        row = grid[index]
        label = cell_text(row, COL_ROLE) or cell_text(row, COL_ROLE_FALLBACK)
        if not label or "TOTAL" in label.upper():
            continue

        total = parse_numeric(cell(row, COL_TOTAL))
        if total == 0:
            continue

        resolved = indirect_role(label)
        if resolved is None:
            warnings.append(f"Unknown role: {label}")
        code, canonical = resolved if resolved else (None, None)

        roles.append(SupervisionRole(
            role=label,
            labor_category_code=code,
            canonical_role=canonical,
            quantity=parse_numeric(cell(row, COL_QUANTITY)),
            duration=parse_numeric(cell(row, COL_DURATION)),
            rate=parse_numeric(cell(row, COL_RATE)),
            total_cost=total,
            source_row=index + 1,
        ))

    if not roles:
        warnings.append("No supervision roles found in INDIRECTS sheet")

    result = IndirectsSheetResult(roles=tuple(roles), warnings=tuple(warnings))
    logger.info(
        f"INDIRECTS: {len(result.roles)} roles, "
        f"supervision ${result.total_supervision_labor:,.2f}"
    )
    return result
