"""
Discipline grouping.

Maps Summary discipline names to reporting parents (PIPING -> Mechanical,
ELECTRICAL -> I&E, ...). Disciplines without a rule become standalone
groups named after themselves. The table is independent of the WBS group
table in wbs.py; the two classify the same names for different consumers.

Also reads the list of included disciplines from an INPUT sheet
(column AG = included flag, column AH = discipline name).
"""

import logging
import re
from types import MappingProxyType
from typing import Dict, List, Optional, Sequence, Tuple

from .models import DisciplineGroup
from .numeric import cell
from .workbook import Grid

logger = logging.getLogger(__name__)

INPUT_SHEET_NAME = "INPUT"
INPUT_INCLUDED_COL = 32   # AG
INPUT_DISCIPLINE_COL = 33  # AH
INPUT_LIST_MARKER = "FABRICATION"

DISCIPLINE_RULES = MappingProxyType({
    # Mechanical
    "PIPING": "Mechanical",
    "STEEL": "Mechanical",
    "EQUIPMENT": "Mechanical",
    "PIPING DEMO": "Mechanical",
    "STEEL DEMO": "Mechanical",
    "EQUIPMENT DEMO": "Mechanical",
    # I&E
    "INSTRUMENTATION": "I&E",
    "ELECTRICAL": "I&E",
    "INSTRUMENTATION DEMO": "I&E",
    "ELECTRICAL DEMO": "I&E",
    "I&E DEMO": "I&E",
    "HYDRO-TESTING": "I&E",
    # Civil
    "CIVIL": "Civil",
    "CIVIL DEMO": "Civil",
    "CONCRETE": "Civil",
    "CONCRETE DEMO": "Civil",
    "GROUNDING": "Civil",
    "GROUTING": "Civil",
    "BUILDING-REMODELING": "Civil",
    "BUILDING REMODELING": "Civil",
    "CIVIL - GROUNDING": "Civil",
    # Standalone
    "FABRICATION": "Fabrication",
    "MOBILIZATION": "Mobilization",
    "CLEAN UP": "Clean Up",
})

_WORD_START = re.compile(r"\b\w")


def format_discipline_name(discipline: str) -> str:
    """Title-case a discipline name, keeping I&E upper case."""
    formatted = _WORD_START.sub(lambda m: m.group(0).upper(), discipline.lower())
    return formatted.replace("I&e", "I&E")


def is_demo(discipline: str) -> bool:
    return "DEMO" in discipline.upper()


class DisciplineMapper:
    """
    Discipline -> parent grouping.

    Usage:
        mapper = DisciplineMapper()
        groups = mapper.group(["PIPING", "STEEL", "PAINTING"])
    """

    def __init__(self, rules: Optional[Dict[str, str]] = None):
        self.rules = MappingProxyType(dict(rules)) if rules is not None else DISCIPLINE_RULES

    def parent_of(self, discipline: str) -> Optional[str]:
        return self.rules.get(discipline.strip().upper())

    def is_known(self, discipline: str) -> bool:
        return discipline.strip().upper() in self.rules

    def group(self, disciplines: Sequence[str]) -> Tuple[DisciplineGroup, ...]:
        """
        Group disciplines by parent, in first-seen order.

        A discipline with no rule forms a standalone group whose display
        name is the formatted discipline name.
        """
        order: List[str] = []
        members: Dict[str, List[str]] = {}
        standalone: Dict[str, bool] = {}

        for disc in disciplines:
            name = disc.strip().upper()
            if not name:
                continue
            parent = self.rules.get(name)
            is_standalone = parent is None
            if is_standalone:
                parent = format_discipline_name(name)
            if parent not in members:
                order.append(parent)
                members[parent] = []
                standalone[parent] = is_standalone
            if name not in members[parent]:
                members[parent].append(name)

        groups = tuple(
            DisciplineGroup(
                parent=parent.upper(),
                display_name=parent,
                disciplines=tuple(members[parent]),
                is_standalone=standalone[parent],
            )
            for parent in order
        )
        logger.debug(f"Grouped {len(disciplines)} disciplines into {len(groups)} groups")
        return groups

    @staticmethod
    def summary(groups: Sequence[DisciplineGroup]) -> List[str]:
        """One "Parent: Child, Child" line per group."""
        return [
            f"{g.display_name}: " + ", ".join(format_discipline_name(d) for d in g.disciplines)
            for g in groups
        ]

    @staticmethod
    def includes_demos(group: DisciplineGroup) -> bool:
        return any(is_demo(d) for d in group.disciplines)


def extract_input_disciplines(grid: Grid) -> List[str]:
    """
    Included disciplines listed on the INPUT sheet.

    The list starts at the first row whose AH cell contains FABRICATION and
    ends at the first blank AH cell. A row is included when its AG flag is 1.
    """
    start = None
    for i, row in enumerate(grid):
        value = cell(row, INPUT_DISCIPLINE_COL)
        if value is not None and INPUT_LIST_MARKER in str(value).upper():
            start = i
            break

    if start is None:
        logger.warning("Could not find discipline list in INPUT sheet columns AG/AH")
        return []

    disciplines = []
    for row in grid[start:]:
        name = cell(row, INPUT_DISCIPLINE_COL)
        if name is None or str(name).strip() == "":
            break
        flag = cell(row, INPUT_INCLUDED_COL)
        if flag == 1 or str(flag).strip() == "1":
            disciplines.append(str(name).strip().upper())

    logger.info(f"INPUT sheet lists {len(disciplines)} included disciplines")
    return disciplines
