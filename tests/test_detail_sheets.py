import pytest

from conftest import (
    FABRICATION,
    budgets_block,
    budgets_grid,
    constructability_grid,
    directs_grid,
    equipment_grid,
    equipment_row,
    make_row,
    materials_grid,
    staff_grid,
)

from budget_import.config import ImportConfig
from budget_import.sheets import (
    ParseContext,
    SheetKind,
    detail_sheet_names,
    parse_budgets_sheet,
    parse_detail_sheet,
    resolve_layout,
)
from budget_import.sheets.constructability import parse_constructability_sheet
from budget_import.sheets.directs import parse_directs_sheet
from budget_import.sheets.equipment import (
    numbered_sheet_number,
    parse_equipment_sheet,
    parse_numbered_equipment_sheet,
)
from budget_import.sheets.indirects import parse_indirects_sheet
from budget_import.sheets.materials import parse_materials_sheet
from budget_import.sheets.staff import parse_staff_sheet
from budget_import.workbook import workbook_from_grids


# =============================================================================
# STAFF
# =============================================================================

def test_staff_rows_follow_their_phase_marker():
    grid = staff_grid([
        ("JOB SET UP", [("Superintendent", 1, 2, 0, 8000)]),
        ("PRE-WORK", [("Clerk", 1, 1, 0, 1500)]),
        ("PROJECT EXECUTION", [("Project Manager", 1, 20, 4000, 60000)]),
        ("JOB CLOSE OUT", [("Timekeeper", 1, 1, 0, 900)]),
    ])
    result = parse_staff_sheet(grid, add_ons=5000)

    assert not result.errors
    assert [p.phase for p in result.phases] == [
        "JOB_SET_UP", "PRE_WORK", "PROJECT_EXECUTION", "JOB_CLOSE_OUT",
    ]
    assert result.phases[2].roles[0].labor_category_code == "IL013"
    assert result.phase_labor == 70400
    assert result.total_indirect_labor == 75400
    assert result.total_per_diem == 4000


def test_staff_unknown_role_still_counts():
    grid = staff_grid([("PROJECT EXECUTION", [("Drone Pilot", 1, 4, 0, 7000)])])
    result = parse_staff_sheet(grid)

    assert "Unknown role: Drone Pilot" in result.warnings
    assert result.phase_labor == 7000
    assert result.roles[0].labor_category_code is None


def test_staff_role_variant_resolves():
    grid = staff_grid([("PROJECT EXECUTION", [("qa/qc inspector mech", 1, 4, 0, 7000)])])
    role = parse_staff_sheet(grid).roles[0]
    assert role.canonical_role == "QA/QC Inspector A"
    assert role.labor_category_code == "IL014"


def test_staff_phase_count_mismatch_is_a_warning():
    grid = staff_grid([("PROJECT EXECUTION", [("Clerk", 1, 4, 0, 7000)])])
    result = parse_staff_sheet(grid)
    assert not result.errors
    assert "Expected 4 phases, found 1" in result.warnings


def test_staff_without_phases_is_an_error():
    grid = [make_row({0: "CLASSIFICATION"}), make_row({0: "Clerk", 2: 1, 3: 4, 24: 7000})]
    result = parse_staff_sheet(grid)
    assert "No phases found in STAFF sheet" in result.errors


# =============================================================================
# DIRECTS
# =============================================================================

def test_directs_reads_side_by_side_sections():
    grid = directs_grid(
        [("Discipline 1", "FABRICATION", 1000), ("Discipline 2", "PIPING", 300)],
        [
            ("Welder - Class A", [600, 0]),
            ("Fitter - Class A", [400, 300]),
            ("TOTAL HOURS", [1000, 300]),
        ],
    )
    result = parse_directs_sheet(grid)

    assert not result.errors
    fab, piping = result.disciplines
    assert (fab.discipline_number, fab.discipline_name, fab.total_manhours) == ("1", "FABRICATION", 1000)
    assert [(c.labor_category_code, c.manhours) for c in fab.labor_categories] == [
        ("DL038", 600), ("DL015", 400),
    ]
    assert piping.section_start == 10
    assert [c.manhours for c in piping.labor_categories] == [300]
    assert result.total_manhours == 1300


def test_directs_header_with_comma_separated_name():
    grid = directs_grid([("Discipline 3,PIPING", None, 50)], [("Helper", [50])])
    disc = parse_directs_sheet(grid).disciplines[0]
    assert (disc.discipline_number, disc.discipline_name) == ("3", "PIPING")


def test_directs_too_short():
    assert parse_directs_sheet([["Discipline 1", "FABRICATION"]]).errors


# =============================================================================
# MATERIALS
# =============================================================================

def test_materials_three_lines_per_discipline():
    grid = materials_grid([
        ("FABRICATION", 18000, 1000, 1000),
        ("PIPING", "$2,000.00", 100, 0),
        ("CIVIL", 0, 0, 0),
    ])
    result = parse_materials_sheet(grid)

    fab, piping, civil = result.disciplines
    assert [line.line_type for line in fab.lines] == ["TAXED", "TAXES", "NON_TAXED"]
    assert fab.total == 20000
    assert piping.taxed == 2000
    assert civil.total == 0
    assert result.warnings == ("CIVIL has no materials",)
    assert result.grand_total == 22100


# =============================================================================
# EQUIPMENT
# =============================================================================

def test_equipment_blank_discipline_is_project_wide():
    grid = equipment_grid([
        equipment_row("FABRICATION", "50T crane", 4000, 500, 500),
        equipment_row("FABRICATION", "Welding machine", 1000),
        equipment_row(None, "Site trailer", 1200),
        equipment_row("GENERAL", "Generator", 800, 100),
        equipment_row("PIPING", "Zero cost", 0),
    ])
    result = parse_equipment_sheet(grid)

    assert [d.discipline_name for d in result.disciplines] == ["FABRICATION"]
    assert result.disciplines[0].total_cost == 6000
    assert [i.description for i in result.project_wide_items] == ["Site trailer", "Generator"]
    assert all(i.discipline == "GENERAL" for i in result.project_wide_items)
    assert result.grand_total == 8100


def test_equipment_row_with_only_equipment_cost_counts():
    row = make_row({1: "FABRICATION", 3: "Forklift", 16: 2500})
    result = parse_equipment_sheet(equipment_grid([row]))
    assert result.grand_total == 2500


def test_equipment_without_items_is_an_error():
    result = parse_equipment_sheet(equipment_grid([make_row({1: "FABRICATION"})]))
    assert result.errors == ("No equipment items found in GENERAL EQUIPMENT sheet",)


def test_numbered_equipment_sheet():
    assert numbered_sheet_number("DISC EQUIPMENT 07") == 7
    assert numbered_sheet_number("DISC. EQUIPMENT") is None

    grid = equipment_grid([equipment_row(None, "Pipe bender", 900, 50, 50)])
    named = parse_numbered_equipment_sheet(grid, "DISC EQUIPMENT 07", "PIPING")
    assert (named.discipline_number, named.discipline_name, named.total_cost) == (7, "PIPING", 1000)

    unnamed = parse_numbered_equipment_sheet(equipment_grid([]), "DISC EQUIPMENT 07")
    assert unnamed.discipline_name == "DISCIPLINE 07"
    assert unnamed.warnings == ("No equipment items found in DISC EQUIPMENT 07",)


# =============================================================================
# CONSTRUCTABILITY / INDIRECTS
# =============================================================================

def test_constructability_categories_and_wbs_mapping():
    grid = constructability_grid([
        ("NEW HIRES", [("Orientation", 2500), ("Drug screens", 500)]),
        ("PRE-JOB", [("Office trailer", 12000)]),
        ("MISC.", [("Radios", 300), ("Unpriced", 0)]),
    ])
    result = parse_constructability_sheet(grid)

    assert [c.category_name for c in result.categories] == ["NEW HIRES", "PRE-JOB", "MISC"]
    assert result.categories[1].wbs_mapped_name == "TEMPORARY FACILITIES"
    assert result.total_cost == 15300
    assert result.labor_cost == 0
    assert "Expected 7 categories, found 3" in result.warnings


def test_indirects_fixed_row_range():
    grid = [make_row({1: "ROLE", 5: "TOTAL COST"})]
    grid.append(make_row({1: "General Foreman", 2: 1, 3: 10, 4: 2000, 5: 20000}))
    grid.append(make_row({0: "Safety Supervisor", 5: "$5,000"}))
    grid.append(make_row({1: "Crane Whisperer", 5: 1000}))
    grid.append(make_row({1: "TOTAL SUPERVISION", 5: 26000}))
    grid.extend([] for _ in range(40))
    grid.append(make_row({1: "Superintendent", 5: 99999}))  # row 46, outside 2-42

    result = parse_indirects_sheet(grid)

    assert [r.role for r in result.roles] == ["General Foreman", "Safety Supervisor", "Crane Whisperer"]
    assert result.roles[0].labor_category_code == "IL006"
    assert result.total_supervision_labor == 26000
    assert result.warnings == ("Unknown role: Crane Whisperer",)


# =============================================================================
# DISPATCH
# =============================================================================

def test_layouts_are_selected_by_sheet_name():
    assert resolve_layout("STAFF")[0] == SheetKind.STAFF
    assert resolve_layout("DISC.EQUIPMENT")[0] == SheetKind.DISC_EQUIPMENT
    assert resolve_layout("DISC EQUIPMENT 12")[0] == SheetKind.NUMBERED_EQUIPMENT
    assert resolve_layout("Staff") is None
    with pytest.raises(KeyError):
        parse_detail_sheet("NOTES", [], ParseContext())


def test_detail_sheet_names_prefers_spaced_disc_equipment():
    workbook = workbook_from_grids({
        "BUDGETS": [[1]],
        "DISC.EQUIPMENT": [[1]],
        "DISC EQUIPMENT 02": [[1]],
        "NOTES": [[1]],
        "DISC. EQUIPMENT": [[1]],
        "MATERIALS": [[1]],
    })
    assert detail_sheet_names(workbook) == ["MATERIALS", "DISC. EQUIPMENT", "DISC EQUIPMENT 02"]


def test_numbered_sheet_takes_discipline_name_from_budgets():
    budgets = parse_budgets_sheet(budgets_grid(budgets_block(7, "PIPING", FABRICATION)))
    context = ParseContext.from_budgets(budgets, ImportConfig())
    grid = equipment_grid([equipment_row(None, "Pipe bender", 900)])

    parsed = parse_detail_sheet("DISC EQUIPMENT 07", grid, context)
    assert parsed.kind == SheetKind.NUMBERED_EQUIPMENT
    assert parsed.result.discipline_name == "PIPING"


def test_staff_layout_receives_add_ons(config):
    budgets = parse_budgets_sheet(budgets_grid(
        budgets_block(1, "GENERAL STAFFING", {"ADD ONS": (0, 2500)}),
    ))
    context = ParseContext.from_budgets(budgets, config)
    grid = staff_grid([("PROJECT EXECUTION", [("Clerk", 1, 4, 0, 7000)])])

    parsed = parse_detail_sheet("STAFF", grid, context)
    assert parsed.result.add_ons == 2500
    assert parsed.result.total_indirect_labor == 9500
