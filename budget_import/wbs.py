"""
WBS Generator - 5-level cost-code tree from the BUDGETS disciplines.

Levels:
    1  1                 PROJECT TOTAL
    2  1.1               CONSTRUCTION PHASE
    3  1.1.GG            WBS group (GENERAL STAFFING ... PAINTING)
    4  1.1.GG.CC         cost type (DL, IL, MAT, EQ, SUB, OTH)
    5  1.1.GG.CC.NN      one leaf per discipline of the group

Only leaves carry source values; every other budget_total is the sum of
its children. A 3-level projection (levels 1-3) is kept for consumers of
the older, shallower structure.
"""

import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Iterable, Iterator, List, Mapping, Optional, Sequence, Tuple

from .models import BudgetDiscipline, WBSNode, walk_nodes

logger = logging.getLogger(__name__)

CONSTRUCTION_PHASE = "PROJECT_EXECUTION"

WBS_GROUPS = (
    ("01", "GENERAL STAFFING"),
    ("02", "SCAFFOLDING"),
    ("03", "CONSTRUCTABILITY"),
    ("04", "FABRICATION"),
    ("05", "MOBILIZATION"),
    ("06", "CLEAN UP"),
    ("07", "BUILDING-REMODELING"),
    ("08", "CIVIL"),
    ("09", "MECHANICAL"),
    ("10", "I&E"),
    ("11", "DEMOLITION"),
    ("12", "MILLWRIGHT"),
    ("13", "INSULATION"),
    ("14", "PAINTING"),
)

UNASSIGNED_GROUP = ("99", "UNASSIGNED")

# Upper-cased Summary discipline name -> WBS group code
DISCIPLINE_TO_GROUP = MappingProxyType({
    **{name: code for code, name in WBS_GROUPS},
    "BUILDING REMODELING": "07",
    "CIVIL - GROUNDING": "08",
    "CONCRETE": "08",
    "GROUNDING": "08",
    "GROUTING": "08",
    "PIPING": "09",
    "STEEL": "09",
    "EQUIPMENT": "09",
    "CRANE SUPPORT": "09",
    "INSTRUMENTATION": "10",
    "ELECTRICAL": "10",
    "HYDRO-TESTING": "10",
})

# (code, cost type, description)
COST_TYPES = (
    ("01", "DL", "Direct Labor"),
    ("02", "IL", "Indirect Labor"),
    ("03", "MAT", "Materials"),
    ("04", "EQ", "Equipment"),
    ("05", "SUB", "Subcontracts"),
    ("06", "OTH", "Other"),
)

COST_TYPE_CODES = MappingProxyType({cost_type: code for code, cost_type, _ in COST_TYPES})


def group_code_for(discipline_name: str) -> Optional[str]:
    """WBS group code of a Summary discipline name, or None when unmapped."""
    return DISCIPLINE_TO_GROUP.get((discipline_name or "").strip().upper())


def leaf_value(discipline: BudgetDiscipline, cost_type: str) -> float:
    """Summary value a discipline contributes to one cost type."""
    c = discipline.categories
    if cost_type == "DL":
        return c.direct_labor.value
    if cost_type == "IL":
        return c.indirect_labor.value + c.add_ons.value
    if cost_type == "MAT":
        return c.materials.value
    if cost_type == "EQ":
        return c.equipment.value
    if cost_type == "SUB":
        return c.subcontracts.value
    if cost_type == "OTH":
        return (
            c.taxes_insurance.value + c.perdiem.value
            + c.small_tools_consumables.value + c.risk.value
        )
    raise ValueError(f"Unknown cost type: {cost_type}")


@dataclass(frozen=True)
class WBSStructure:
    """The generated tree plus lookups from (discipline, cost type) to codes."""
    roots: Tuple[WBSNode, ...] = ()
    leaf_codes: Mapping[Tuple[str, str], str] = field(default_factory=lambda: MappingProxyType({}))
    group_codes: Mapping[str, str] = field(default_factory=lambda: MappingProxyType({}))

    def nodes(self) -> Iterator[WBSNode]:
        return walk_nodes(self.roots)

    def find(self, code: str) -> Optional[WBSNode]:
        for node in self.nodes():
            if node.code == code:
                return node
        return None

    def code_for_item(
        self,
        discipline: str,
        cost_type: str,
        phase: Optional[str] = None,
    ) -> Optional[str]:
        """
        WBS code for a line item.

        Returns the discipline's leaf for the cost type. Outside the
        construction phase only the level-4 cost-type code is returned,
        since leaves carry construction-phase budgets. Unknown disciplines
        or cost types return None.
        """
        key = (discipline or "").strip().upper()
        group = self.group_codes.get(key)
        if group is None or cost_type not in COST_TYPE_CODES:
            return None
        if phase is not None and phase != CONSTRUCTION_PHASE:
            return f"1.1.{group}.{COST_TYPE_CODES[cost_type]}"
        return self.leaf_codes.get((key, cost_type))

    def group_code(self, discipline: str) -> Optional[str]:
        """Level-3 code of the group a discipline was placed in."""
        group = self.group_codes.get((discipline or "").strip().upper())
        return f"1.1.{group}" if group else None

    def simplified(self) -> Tuple[WBSNode, ...]:
        return simplify_to_3_level(self.roots)


def simplify_to_3_level(nodes: Sequence[WBSNode]) -> Tuple[WBSNode, ...]:
    """Keep only nodes at level <= 3, recursively; codes and totals unchanged."""
    return tuple(
        replace(node, children=simplify_to_3_level(node.children))
        for node in nodes
        if node.level <= 3
    )


def _sum_children(children: Iterable[WBSNode]) -> float:
    return sum(child.budget_total for child in children)


def _number(node: WBSNode, counter: List[int]) -> WBSNode:
    """Assign pre-order sort_order values."""
    order = counter[0]
    counter[0] += 1
    children = tuple(_number(child, counter) for child in node.children)
    return replace(node, sort_order=order, children=children)


def _group_members(disciplines: Sequence[BudgetDiscipline]) -> Dict[str, List[BudgetDiscipline]]:
    members: Dict[str, List[BudgetDiscipline]] = {}
    for disc in disciplines:
        group = group_code_for(disc.discipline_name) or UNASSIGNED_GROUP[0]
        members.setdefault(group, []).append(disc)
    return members


def _group_node(code: str, name: str, members: Sequence[BudgetDiscipline]) -> WBSNode:
    group_code = f"1.1.{code}"
    cost_nodes = []
    if members:
        for type_code, cost_type, description in COST_TYPES:
            category_code = f"{group_code}.{type_code}"
            leaves = tuple(
                WBSNode(
                    code=f"{category_code}.{index:02d}",
                    parent_code=category_code,
                    level=5,
                    description=disc.discipline_name,
                    phase=CONSTRUCTION_PHASE,
                    cost_type=cost_type,
                    budget_total=leaf_value(disc, cost_type),
                )
                for index, disc in enumerate(members, start=1)
            )
            cost_nodes.append(WBSNode(
                code=category_code,
                parent_code=group_code,
                level=4,
                description=description,
                cost_type=cost_type,
                budget_total=_sum_children(leaves),
                children=leaves,
            ))

    return WBSNode(
        code=group_code,
        parent_code="1.1",
        level=3,
        description=name,
        budget_total=_sum_children(cost_nodes),
        children=tuple(cost_nodes),
    )


def generate_wbs_structure(disciplines: Sequence[BudgetDiscipline]) -> WBSStructure:
    """
    Build the 5-level WBS tree.

    Args:
        disciplines: BUDGETS disciplines, in sheet order

    Returns:
        WBSStructure with a single PROJECT TOTAL root
    """
    members = _group_members(disciplines)

    groups = list(WBS_GROUPS)
    if UNASSIGNED_GROUP[0] in members:
        groups.append(UNASSIGNED_GROUP)
        logger.warning(
            "Disciplines without a WBS group: "
            + ", ".join(d.discipline_name for d in members[UNASSIGNED_GROUP[0]])
        )

    group_nodes = tuple(_group_node(code, name, members.get(code, ())) for code, name in groups)
    phase = WBSNode(
        code="1.1",
        parent_code="1",
        level=2,
        description="CONSTRUCTION PHASE",
        phase=CONSTRUCTION_PHASE,
        budget_total=_sum_children(group_nodes),
        children=group_nodes,
    )
    root = WBSNode(
        code="1",
        level=1,
        description="PROJECT TOTAL",
        budget_total=phase.budget_total,
        children=(phase,),
    )
    root = _number(root, [0])

    leaf_codes = {}
    group_codes = {}
    for code, group_disciplines in members.items():
        for index, disc in enumerate(group_disciplines, start=1):
            key = disc.discipline_name.strip().upper()
            if key in group_codes:
                continue
            group_codes[key] = code
            for type_code, cost_type, _ in COST_TYPES:
                leaf_codes[(key, cost_type)] = f"1.1.{code}.{type_code}.{index:02d}"

    structure = WBSStructure(
        roots=(root,),
        leaf_codes=MappingProxyType(leaf_codes),
        group_codes=MappingProxyType(group_codes),
    )
    logger.info(
        f"Generated WBS: {sum(1 for _ in structure.nodes())} nodes, "
        f"total ${root.budget_total:,.2f}"
    )
    return structure
