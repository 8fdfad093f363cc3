"""
Controlled vocabularies for the budget workbook template.

Provides:
- The 12 BUDGETS cost categories (label order = block row order)
- The 39 direct labor classifications (DL001-DL039)
- The 23 indirect labor roles (IL001-IL023) and their spelling variants
- STAFF phase markers, MATERIALS line types, CONSTRUCTABILITY categories

All tables are process-wide constants: tuples, or read-only mappings.
Codes are positional, so the order of every tuple is part of the template
contract and must not change.
"""

import re
from types import MappingProxyType
from typing import Optional, Tuple


# =============================================================================
# BUDGETS CATEGORIES
# =============================================================================

BUDGET_CATEGORY_NAMES = (
    "DIRECT LABOR",
    "INDIRECT LABOR",
    "ALL LABOR",
    "TAXES & INSURANCE",
    "PERDIEM",
    "ADD ONS",
    "SMALL TOOLS & CONSUMABLES",
    "MATERIALS",
    "EQUIPMENT",
    "SUBCONTRACTS",
    "RISK",
    "DISCIPLINE TOTALS",
)

BUDGET_CATEGORY_KEYS = (
    "DIRECT_LABOR",
    "INDIRECT_LABOR",
    "ALL_LABOR",
    "TAXES_INSURANCE",
    "PERDIEM",
    "ADD_ONS",
    "SMALL_TOOLS_CONSUMABLES",
    "MATERIALS",
    "EQUIPMENT",
    "SUBCONTRACTS",
    "RISK",
    "DISCIPLINE_TOTALS",
)

# Categories that make up a discipline's labor total. ALL LABOR is an
# informational subtotal and is deliberately absent.
LABOR_CATEGORY_KEYS = (
    "DIRECT_LABOR",
    "INDIRECT_LABOR",
    "TAXES_INSURANCE",
    "PERDIEM",
    "ADD_ONS",
)

_CATEGORY_BY_LABEL = MappingProxyType(dict(zip(BUDGET_CATEGORY_NAMES, BUDGET_CATEGORY_KEYS)))


def budget_category_key(label) -> Optional[str]:
    """Map a BUDGETS category label (any case) to its category key."""
    if label is None:
        return None
    return _CATEGORY_BY_LABEL.get(str(label).strip().upper())


# =============================================================================
# DIRECT LABOR CLASSIFICATIONS
# =============================================================================

DIRECT_LABOR_CATEGORIES = (
    "Boiler Maker - Class A",
    "Boiler Maker - Class B",
    "Carpenter - Class A",
    "Carpenter - Class B",
    "Crane Operator A",
    "Crane Operator B",
    "Electrician - Class A",
    "Electrician - Class B",
    "Electrician - Class C",
    "Equipment Operator - Class A",
    "Equipment Operator - Class B",
    "Equipment Operator - Class C",
    "Field Engineer A",
    "Field Engineer B",
    "Fitter - Class A",
    "Fitter - Class B",
    "General Foreman",
    "Helper",
    "Instrument Tech - Class A",
    "Instrument Tech - Class B",
    "Instrument Tech - Class C",
    "Ironworker - Class A",
    "Ironworker - Class B",
    "Laborer - Class A",
    "Laborer - Class B",
    "Millwright A",
    "Millwright B",
    "Operating Engineer A",
    "Operating Engineer B",
    "Operator A",
    "Operator B",
    "Painter",
    "Piping Foreman",
    "Supervisor",
    "Surveyor A",
    "Surveyor B",
    "Warehouse",
    "Welder - Class A",
    "Welder - Class B",
)


def direct_labor_code(name: str) -> Optional[str]:
    """
    Resolve a DIRECTS row label to its DL code.

    Exact (case-insensitive) match first, then the first classification
    that contains the label or is contained by it.
    """
    normalized = (name or "").strip().upper()
    if not normalized:
        return None

    for index, category in enumerate(DIRECT_LABOR_CATEGORIES):
        if category.upper() == normalized:
            return f"DL{index + 1:03d}"

    for index, category in enumerate(DIRECT_LABOR_CATEGORIES):
        upper = category.upper()
        if upper in normalized or normalized in upper:
            return f"DL{index + 1:03d}"

    return None


# =============================================================================
# INDIRECT LABOR ROLES
# =============================================================================

INDIRECT_ROLES = (
    "Area Superintendent",
    "Clerk",
    "Cost Engineer",
    "Field Engineer",
    "Field Exchanger General Foreman",
    "General Foreman",
    "Lead Planner",
    "Lead Scheduler",
    "Planner A",
    "Planner B",
    "Procurement Coordinator",
    "Project Controls Lead",
    "Project Manager",
    "QA/QC Inspector A",
    "QA/QC Inspector B",
    "QA/QC Supervisor",
    "Safety Supervisor",
    "Safety Technician A",
    "Safety Technician B",
    "Scheduler",
    "Senior Project Manager",
    "Superintendent",
    "Timekeeper",
)

# Spelling variants seen in real workbooks (lowercase) -> canonical role
ROLE_VARIATIONS = MappingProxyType({
    "qa/qc inspector mech": "QA/QC Inspector A",
    "qa/qc inspector i&e": "QA/QC Inspector B",
    "safety observer/technician": "Safety Technician A",
})


def indirect_role(name: str) -> Optional[Tuple[str, str]]:
    """
    Resolve a staff classification to (IL code, canonical role name).

    Known variants are checked before the canonical list; both matches
    are case-insensitive.
    """
    normalized = (name or "").strip().lower()
    if not normalized:
        return None

    candidate = ROLE_VARIATIONS.get(normalized, normalized)
    for index, role in enumerate(INDIRECT_ROLES):
        if role.lower() == candidate.lower():
            return f"IL{index + 1:03d}", role

    return None


# =============================================================================
# STAFF PHASES
# =============================================================================

STAFF_PHASES = (
    ("JOB_SET_UP", re.compile(r"JOB\s*SET\s*UP", re.IGNORECASE)),
    ("PRE_WORK", re.compile(r"PRE[\s-]*WORK", re.IGNORECASE)),
    ("PROJECT_EXECUTION", re.compile(r"PROJECT(?!\s*CLOSE)", re.IGNORECASE)),
    ("JOB_CLOSE_OUT", re.compile(r"JOB\s*CLOSE\s*OUT", re.IGNORECASE)),
)

PHASE_CODES = tuple(phase for phase, _ in STAFF_PHASES)


def detect_staff_phase(text: str) -> Optional[str]:
    """Return the phase code whose marker appears in text, if any."""
    if not text:
        return None
    for phase, pattern in STAFF_PHASES:
        if pattern.search(text):
            return phase
    return None


# =============================================================================
# MATERIALS LINE TYPES
# =============================================================================

MATERIAL_LINE_TYPES = (
    ("TAXED", "MATERIALS FROM TAKE OFF SHEET - TAXED"),
    ("TAXES", "TAXES ON MATERIALS LISTED ABOVE"),
    ("NON_TAXED", "MATERIALS FROM TAKE OFF SHEET - NON-TAXED"),
)

MATERIAL_COST_TYPES = MappingProxyType({
    "TAXED": "Materials - Taxed",
    "TAXES": "Materials - Taxes",
    "NON_TAXED": "Materials - Non-Taxed",
})

_MATERIAL_TYPE_BY_LABEL = MappingProxyType({label: kind for kind, label in MATERIAL_LINE_TYPES})


def material_line_type(label: str) -> Optional[str]:
    """Map a MATERIALS column D label to TAXED / TAXES / NON_TAXED."""
    return _MATERIAL_TYPE_BY_LABEL.get((label or "").strip().upper())


# =============================================================================
# CONSTRUCTABILITY CATEGORIES
# =============================================================================

# Header text -> WBS category name. Order matters: the first key found in
# a header wins, so "MISC." resolves to MISC.
CONSTRUCTABILITY_CATEGORIES = MappingProxyType({
    "NEW HIRES": "NEW HIRES",
    "SAFETY": "SAFETY",
    "PRE-JOB": "TEMPORARY FACILITIES",
    "PROJECT": "PROJECT",
    "RESTROOMS": "RESTROOMS",
    "WELDING": "WELDING",
    "MISC": "MISC",
    "MISC.": "MISC",
})


def constructability_category(text: str) -> Optional[str]:
    """Return the category key a CONSTRUCTABILITY header text names."""
    upper = (text or "").strip().upper()
    if not upper:
        return None
    for key in CONSTRUCTABILITY_CATEGORIES:
        if upper == key or key in upper:
            return key
    return None
