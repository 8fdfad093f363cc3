"""
Shared records produced by a budget import.

Provides:
- CategoryTotals: the fixed twelve-category record per Summary discipline
- BudgetDiscipline: one discipline block from the BUDGETS sheet
- BudgetLineItem: flattened, one-hot classified cost entry
- WBSNode: cost-code tree node
- Phase / direct labor allocation projections
- Validation report records and the ImportResult envelope

Every record is frozen; collections are tuples or read-only mappings so a
finished result can be handed to exporters and stores without copying.
"""

from dataclasses import dataclass, field, replace, asdict
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional, Tuple, Union

from .vocabulary import BUDGET_CATEGORY_KEYS, LABOR_CATEGORY_KEYS


# Cost buckets of a line item, in column order
COST_BUCKETS = ("labor", "material", "equipment", "subcontract", "other")


def _empty_mapping() -> Mapping:
    return MappingProxyType({})


def _plain(value: Any) -> Any:
    """Read-only mappings -> plain dicts, recursively."""
    if isinstance(value, Mapping):
        return {k: _plain(v) for k, v in value.items()}
    return value


# =============================================================================
# BUDGETS DISCIPLINES
# =============================================================================

@dataclass(frozen=True)
class CategoryAmount:
    """Manhours and dollar value of one Summary category row."""
    manhours: float = 0.0
    value: float = 0.0

    def to_dict(self) -> dict:
        return {"manhours": self.manhours, "value": self.value}


@dataclass(frozen=True)
class CategoryTotals:
    """All twelve Summary categories for a discipline; absent rows are zero."""
    direct_labor: CategoryAmount = field(default_factory=CategoryAmount)
    indirect_labor: CategoryAmount = field(default_factory=CategoryAmount)
    all_labor: CategoryAmount = field(default_factory=CategoryAmount)
    taxes_insurance: CategoryAmount = field(default_factory=CategoryAmount)
    perdiem: CategoryAmount = field(default_factory=CategoryAmount)
    add_ons: CategoryAmount = field(default_factory=CategoryAmount)
    small_tools_consumables: CategoryAmount = field(default_factory=CategoryAmount)
    materials: CategoryAmount = field(default_factory=CategoryAmount)
    equipment: CategoryAmount = field(default_factory=CategoryAmount)
    subcontracts: CategoryAmount = field(default_factory=CategoryAmount)
    risk: CategoryAmount = field(default_factory=CategoryAmount)
    discipline_totals: CategoryAmount = field(default_factory=CategoryAmount)

    @classmethod
    def from_mapping(cls, amounts: Mapping[str, CategoryAmount]) -> "CategoryTotals":
        """Build from {CATEGORY_KEY: CategoryAmount}; unknown keys are ignored."""
        return cls(**{
            key.lower(): amount
            for key, amount in amounts.items()
            if key in BUDGET_CATEGORY_KEYS
        })

    def __getitem__(self, key: str) -> CategoryAmount:
        if key not in BUDGET_CATEGORY_KEYS:
            raise KeyError(key)
        return getattr(self, key.lower())

    def keys(self) -> Tuple[str, ...]:
        return BUDGET_CATEGORY_KEYS

    def items(self) -> Iterator[Tuple[str, CategoryAmount]]:
        for key in BUDGET_CATEGORY_KEYS:
            yield key, self[key]

    def to_dict(self) -> dict:
        return {key: amount.to_dict() for key, amount in self.items()}


@dataclass(frozen=True)
class BudgetDiscipline:
    """One 12-row discipline block of the BUDGETS sheet."""
    discipline_number: Union[int, float, str]
    discipline_name: str
    categories: CategoryTotals
    source_row: int = 0  # 1-based row of the DIRECT LABOR line

    @property
    def labor_total(self) -> float:
        """Direct + indirect labor + taxes & insurance + per diem + add-ons."""
        return sum(self.categories[key].value for key in LABOR_CATEGORY_KEYS)

    @property
    def total_value(self) -> float:
        return self.categories.discipline_totals.value

    @property
    def direct_labor_manhours(self) -> float:
        return self.categories.direct_labor.manhours

    @property
    def indirect_labor_manhours(self) -> float:
        return self.categories.indirect_labor.manhours

    def to_dict(self) -> dict:
        return {
            "discipline_number": self.discipline_number,
            "discipline_name": self.discipline_name,
            "source_row": self.source_row,
            "labor_total": self.labor_total,
            "total_value": self.total_value,
            "categories": self.categories.to_dict(),
        }


# =============================================================================
# LINE ITEMS
# =============================================================================

@dataclass(frozen=True)
class BudgetLineItem:
    """
    A flattened cost entry.

    Exactly one of the five bucket costs equals total_cost and the others are
    zero. Use BudgetLineItem.create() to build one from a bucket name.
    """
    source_sheet: str
    source_row: int
    discipline: str
    category: str
    cost_type: str
    description: str
    total_cost: float
    labor_cost: float = 0.0
    material_cost: float = 0.0
    equipment_cost: float = 0.0
    subcontract_cost: float = 0.0
    other_cost: float = 0.0
    manhours: Optional[float] = None
    wbs_code: Optional[str] = None
    notes: Optional[str] = None

    def __post_init__(self):
        costs = [getattr(self, f"{bucket}_cost") for bucket in COST_BUCKETS]
        carrying = [cost for cost in costs if cost != 0]
        if self.total_cost == 0:
            if carrying:
                raise ValueError("zero-cost line item cannot carry a bucket amount")
        elif len(carrying) != 1 or carrying[0] != self.total_cost:
            raise ValueError(
                f"line item '{self.description}' must carry total_cost in exactly one bucket"
            )

    @classmethod
    def create(
        cls,
        bucket: str,
        total_cost: float,
        source_sheet: str,
        source_row: int,
        discipline: str,
        cost_type: str,
        description: str,
        manhours: Optional[float] = None,
        wbs_code: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> "BudgetLineItem":
        """Build a line item with total_cost placed in the named bucket."""
        if bucket not in COST_BUCKETS:
            raise ValueError(f"Unknown cost bucket: {bucket}")
        costs = {f"{name}_cost": (total_cost if name == bucket else 0.0) for name in COST_BUCKETS}
        return cls(
            source_sheet=source_sheet,
            source_row=source_row,
            discipline=discipline,
            category=bucket.upper(),
            cost_type=cost_type,
            description=description,
            total_cost=total_cost,
            manhours=manhours,
            wbs_code=wbs_code,
            notes=notes,
            **costs,
        )

    @property
    def bucket(self) -> Optional[str]:
        for name in COST_BUCKETS:
            if getattr(self, f"{name}_cost") != 0:
                return name
        return None

    def with_wbs_code(self, wbs_code: Optional[str]) -> "BudgetLineItem":
        return replace(self, wbs_code=wbs_code)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# =============================================================================
# WBS
# =============================================================================

@dataclass(frozen=True)
class WBSNode:
    """Cost-code tree node. Children are ordered."""
    code: str
    level: int
    description: str
    parent_code: Optional[str] = None
    phase: Optional[str] = None
    cost_type: Optional[str] = None
    labor_category_id: Optional[str] = None
    budget_total: float = 0.0
    sort_order: int = 0
    children: Tuple["WBSNode", ...] = ()

    @property
    def path(self) -> Tuple[str, ...]:
        """Codes from the root down to this node ('1', '1.1', '1.1.04', ...)."""
        parts = self.code.split(".")
        return tuple(".".join(parts[:i]) for i in range(1, len(parts) + 1))

    @property
    def children_count(self) -> int:
        return len(self.children)

    def walk(self) -> Iterator["WBSNode"]:
        """Depth-first, pre-order traversal including this node."""
        yield self
        for child in self.children:
            yield from child.walk()

    def to_dict(self, include_children: bool = True) -> dict:
        data = {
            "code": self.code,
            "parent_code": self.parent_code,
            "level": self.level,
            "description": self.description,
            "phase": self.phase,
            "cost_type": self.cost_type,
            "labor_category_id": self.labor_category_id,
            "path": list(self.path),
            "sort_order": self.sort_order,
            "children_count": self.children_count,
            "budget_total": self.budget_total,
        }
        if include_children:
            data["children"] = [child.to_dict() for child in self.children]
        return data


def walk_nodes(roots) -> Iterator[WBSNode]:
    """Depth-first traversal over a forest of WBS roots."""
    for root in roots:
        yield from root.walk()


# =============================================================================
# ALLOCATIONS
# =============================================================================

@dataclass(frozen=True)
class PhaseAllocation:
    """Monthly staffing allocation of one STAFF role within a phase."""
    project_id: str
    phase: str
    role: str
    role_code: Optional[str]
    fte: float
    duration_months: int
    monthly_rate: float
    total_cost: float
    perdiem: float = 0.0
    wbs_code: Optional[str] = None

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DirectLaborAllocation:
    """Manhours of one DIRECTS labor category for one discipline."""
    project_id: str
    discipline: str
    labor_category: str
    labor_category_code: Optional[str]
    manhours: float
    wbs_code: Optional[str]
    source_sheet: str
    source_row: int

    def to_dict(self) -> dict:
        return asdict(self)


# =============================================================================
# VALIDATION
# =============================================================================

@dataclass(frozen=True)
class BudgetComparison:
    """Summary target vs. detail-sheet total."""
    budget_value: float
    sheet_value: float

    @property
    def difference(self) -> float:
        return abs(self.sheet_value - self.budget_value)

    @property
    def percent_difference(self) -> float:
        if self.budget_value <= 0:
            return 0.0
        return self.difference / self.budget_value * 100

    def to_dict(self) -> dict:
        return {
            "budget_value": self.budget_value,
            "sheet_value": self.sheet_value,
            "difference": self.difference,
            "percent_difference": self.percent_difference,
        }


@dataclass(frozen=True)
class SheetValidation:
    """Validation outcome for one detail sheet."""
    sheet_name: str
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    budget_comparison: Optional[BudgetComparison] = None

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "sheet_name": self.sheet_name,
            "is_valid": self.is_valid,
            "errors": list(self.errors),
            "warnings": list(self.warnings),
            "budget_comparison": (
                self.budget_comparison.to_dict() if self.budget_comparison else None
            ),
        }


@dataclass(frozen=True)
class CrossSheetRule:
    """Outcome of one workbook-level consistency rule."""
    rule: str
    is_valid: bool
    message: str
    details: Mapping[str, Any] = field(default_factory=_empty_mapping)

    def to_dict(self) -> dict:
        return {
            "rule": self.rule,
            "is_valid": self.is_valid,
            "message": self.message,
            "details": _plain(self.details),
        }


@dataclass(frozen=True)
class ValidationResult:
    """Workbook-level validation: per-sheet results plus cross-sheet rules."""
    sheets: Tuple[SheetValidation, ...] = ()
    cross_sheet: Tuple[CrossSheetRule, ...] = ()

    @property
    def is_valid(self) -> bool:
        return all(s.is_valid for s in self.sheets) and all(r.is_valid for r in self.cross_sheet)

    @property
    def error_count(self) -> int:
        return sum(len(s.errors) for s in self.sheets) + sum(
            1 for r in self.cross_sheet if not r.is_valid
        )

    @property
    def warning_count(self) -> int:
        return sum(len(s.warnings) for s in self.sheets)

    def sheet(self, sheet_name: str) -> Optional[SheetValidation]:
        for result in self.sheets:
            if result.sheet_name == sheet_name:
                return result
        return None

    def to_dict(self) -> dict:
        return {
            "is_valid": self.is_valid,
            "error_count": self.error_count,
            "warning_count": self.warning_count,
            "sheets": {s.sheet_name: s.to_dict() for s in self.sheets},
            "cross_sheet": [r.to_dict() for r in self.cross_sheet],
        }


# =============================================================================
# IMPORT RESULT
# =============================================================================

@dataclass(frozen=True)
class ImportTotals:
    """Workbook totals, all taken from the BUDGETS sheet."""
    labor: float = 0.0
    material: float = 0.0
    equipment: float = 0.0
    subcontract: float = 0.0
    other: float = 0.0
    grand_total: float = 0.0
    direct_labor_manhours: float = 0.0
    indirect_labor_manhours: float = 0.0
    total_manhours: float = 0.0

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DisciplineGroup:
    """A reporting group of Summary disciplines (e.g. Mechanical)."""
    parent: str
    display_name: str
    disciplines: Tuple[str, ...]
    is_standalone: bool

    def to_dict(self) -> dict:
        return {
            "parent": self.parent,
            "display_name": self.display_name,
            "disciplines": list(self.disciplines),
            "is_standalone": self.is_standalone,
        }


@dataclass(frozen=True)
class ImportResult:
    """Everything one workbook import produces."""
    project_id: Optional[str] = None
    disciplines: Tuple[BudgetDiscipline, ...] = ()
    discipline_budgets: Tuple[Mapping[str, Any], ...] = ()
    discipline_groups: Tuple[DisciplineGroup, ...] = ()
    totals: ImportTotals = field(default_factory=ImportTotals)
    details: Mapping[str, Tuple[BudgetLineItem, ...]] = field(default_factory=_empty_mapping)
    wbs_structure: Tuple[WBSNode, ...] = ()
    wbs_structure_5_level: Tuple[WBSNode, ...] = ()
    phase_allocations: Tuple[PhaseAllocation, ...] = ()
    direct_labor_allocations: Tuple[DirectLaborAllocation, ...] = ()
    validation_result: Optional[ValidationResult] = None
    errors: Tuple[str, ...] = ()
    warnings: Tuple[str, ...] = ()
    sheets_parsed: Tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        if self.errors:
            return False
        return self.validation_result.is_valid if self.validation_result else True

    @property
    def line_items(self) -> List[BudgetLineItem]:
        return [item for items in self.details.values() for item in items]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "project_id": self.project_id,
            "is_valid": self.is_valid,
            "sheets_parsed": list(self.sheets_parsed),
            "totals": self.totals.to_dict(),
            "disciplines": [d.to_dict() for d in self.disciplines],
            "discipline_budgets": [_plain(b) for b in self.discipline_budgets],
            "discipline_groups": [g.to_dict() for g in self.discipline_groups],
            "details": {
                sheet: [item.to_dict() for item in items]
                for sheet, items in self.details.items()
            },
            "wbs_structure": [n.to_dict() for n in self.wbs_structure],
            "wbs_structure_5_level": [n.to_dict() for n in self.wbs_structure_5_level],
            "phase_allocations": [a.to_dict() for a in self.phase_allocations],
            "direct_labor_allocations": [a.to_dict() for a in self.direct_labor_allocations],
            "validation_result": (
                self.validation_result.to_dict() if self.validation_result else None
            ),
            "validation": {
                "errors": list(self.errors),
                "warnings": list(self.warnings),
            },
        }
