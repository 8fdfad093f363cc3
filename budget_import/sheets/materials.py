"""
MATERIALS sheet parser.

A discipline name sits in column B every 8 rows (rows 2, 10, 18, ...);
below it, column D carries the three material line labels and column G
their amounts: taxed materials, taxes on those materials, non-taxed
materials.
"""

import logging
import re
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import ImportConfig
from ..numeric import cell, cell_text, parse_numeric
from ..vocabulary import material_line_type
from ..workbook import Grid

logger = logging.getLogger(__name__)

SHEET_NAME = "MATERIALS"

COL_DISCIPLINE = 1
COL_LABEL = 3
COL_AMOUNT = 6

_HAS_LETTER = re.compile(r"[A-Za-z]")


@dataclass(frozen=True)
class MaterialLine:
    line_type: str  # TAXED / TAXES / NON_TAXED
    description: str
    amount: float
    source_row: int


@dataclass(frozen=True)
class MaterialsDiscipline:
    discipline_name: str
    source_row: int
    lines: Tuple[MaterialLine, ...] = ()

    def _sum(self, line_type: str) -> float:
        return sum(line.amount for line in self.lines if line.line_type == line_type)

    @property
    def taxed(self) -> float:
        return self._sum("TAXED")

    @property
    def taxes(self) -> float:
        return self._sum("TAXES")

    @property
    def non_taxed(self) -> float:
        return self._sum("NON_TAXED")

    @property
    def total(self) -> float:
        return self.taxed + self.taxes + self.non_taxed


@dataclass(frozen=True)
class MaterialsSheetResult:
    disciplines: Tuple[MaterialsDiscipline, ...] = ()
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def grand_total(self) -> float:
        return sum(d.total for d in self.disciplines)


def _is_discipline_row(text: str, row_index: int, config: ImportConfig) -> bool:
    first = config.materials_first_block_row
    if row_index < first or row_index >= config.materials_last_block_row:
        return False
    if (row_index - first) % config.materials_block_stride != 0:
        return False
    if material_line_type(text) is not None:
        return False
    return not text.isdigit() and bool(_HAS_LETTER.search(text))


def parse_materials_sheet(grid: Grid, config: Optional[ImportConfig] = None) -> MaterialsSheetResult:
    """
    Parse the MATERIALS sheet.

    Args:
        grid: Raw MATERIALS sheet grid
        config: Import configuration (block stride and row range)

    Returns:
        MaterialsSheetResult with the three material lines per discipline
    """
    config = config or ImportConfig()

    if len(grid) < 2:
        return MaterialsSheetResult(errors=("MATERIALS sheet is empty or has insufficient data",))

    sections = []  # [name, source_row, lines]
    for index, row in enumerate(grid):
        if not row:
            continue

        name = cell_text(row, COL_DISCIPLINE)
        if name and _is_discipline_row(name, index, config):
            sections.append((name, index + 1, []))
            continue

        label = cell_text(row, COL_LABEL)
        if not label or not sections:
            continue

        line_type = material_line_type(label)
        if line_type:
            sections[-1][2].append(MaterialLine(
                line_type=line_type,
                description=label,
                amount=parse_numeric(cell(row, COL_AMOUNT)),
                source_row=index + 1,
            ))

    disciplines = tuple(
        MaterialsDiscipline(discipline_name=name, source_row=source_row, lines=tuple(lines))
        for name, source_row, lines in sections
    )

    errors = () if disciplines else ("No disciplines found in MATERIALS sheet",)
    warnings = tuple(
        f"{disc.discipline_name} has no materials"
        for disc in disciplines
        if disc.taxed == 0 and disc.non_taxed == 0
    )

    result = MaterialsSheetResult(disciplines=disciplines, errors=errors, warnings=warnings)
    logger.info(
        f"MATERIALS: {len(disciplines)} disciplines, total ${result.grand_total:,.2f}"
    )
    return result
