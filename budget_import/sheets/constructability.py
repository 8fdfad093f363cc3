"""
CONSTRUCTABILITY sheet parser.

Category headers (NEW HIRES, SAFETY, PRE-JOB, PROJECT, RESTROOMS, WELDING,
MISC) may appear in any of columns A-D. Item rows carry their description
in the right-most non-blank of columns A-D and their cost in the first
positive cell from column E on.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from ..config import ImportConfig
from ..numeric import cell_text, parse_numeric
from ..vocabulary import CONSTRUCTABILITY_CATEGORIES, constructability_category
from ..workbook import Grid

logger = logging.getLogger(__name__)

SHEET_NAME = "CONSTRUCTABILITY"

TEXT_COLUMNS = (0, 1, 2, 3)
FIRST_COST_COL = 4


@dataclass(frozen=True)
class ConstructabilityItem:
    description: str
    cost: float
    source_row: int


@dataclass(frozen=True)
class ConstructabilityCategory:
    category_name: str
    wbs_mapped_name: str
    items: Tuple[ConstructabilityItem, ...] = ()

    @property
    def total_cost(self) -> float:
        return sum(i.cost for i in self.items)


@dataclass(frozen=True)
class ConstructabilitySheetResult:
    categories: Tuple[ConstructabilityCategory, ...] = ()
    discipline_mapping: str = "CONSTRUCTABILITY"
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()

    @property
    def total_cost(self) -> float:
        return sum(c.total_cost for c in self.categories)

    @property
    def labor_cost(self) -> float:
        # TODO: extract the labor share once the sheet has a labor column to read.
        return 0.0


def _row_cost(row) -> float:
    for value in row[FIRST_COST_COL:]:
        amount = parse_numeric(value)
        if amount > 0:
            return amount
    return 0.0


def parse_constructability_sheet(
    grid: Grid,
    config: Optional[ImportConfig] = None,
) -> ConstructabilitySheetResult:
    """
    Parse the CONSTRUCTABILITY sheet into its cost categories.

    Args:
        grid: Raw CONSTRUCTABILITY sheet grid
        config: Import configuration (expected category count, discipline)

    Returns:
        ConstructabilitySheetResult, categories in first-seen order
    """
    config = config or ImportConfig()
    discipline = config.constructability_discipline

    if len(grid) < 2:
        return ConstructabilitySheetResult(
            discipline_mapping=discipline,
            errors=("CONSTRUCTABILITY sheet is empty or has insufficient data",),
        )

    items_by_category = {}
    current: Optional[str] = None

    for index, row in enumerate(grid):
        if not row:
            continue

        texts = [cell_text(row, col) for col in TEXT_COLUMNS]
        for text in texts:
            category = constructability_category(text)
            if category:
                current = category
                items_by_category.setdefault(current, [])
                break

        cost = _row_cost(row)
        if current is None or cost <= 0:
            continue

        description = next((text for text in reversed(texts) if text), "")
        if description and constructability_category(description) is None:
            items_by_category[current].append(
                ConstructabilityItem(description=description, cost=cost, source_row=index + 1)
            )

    categories = tuple(
        ConstructabilityCategory(
            category_name=name,
            wbs_mapped_name=CONSTRUCTABILITY_CATEGORIES.get(name, name),
            items=tuple(items),
        )
        for name, items in items_by_category.items()
    )

    errors = ()
    warnings = ()
    expected = config.constructability_expected_categories
    if not categories:
        errors = ("No categories found in CONSTRUCTABILITY sheet",)
    elif len(categories) != expected:
        warnings = (f"Expected {expected} categories, found {len(categories)}",)

    result = ConstructabilitySheetResult(
        categories=categories,
        discipline_mapping=discipline,
        errors=errors,
        warnings=warnings,
    )
    for category in categories:
        logger.debug(
            f"CONSTRUCTABILITY {category.category_name}: {len(category.items)} items, "
            f"${category.total_cost:,.2f}"
        )
    logger.info(
        f"CONSTRUCTABILITY: {len(categories)} categories, total ${result.total_cost:,.2f}"
    )
    return result
