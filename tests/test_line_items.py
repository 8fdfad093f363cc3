import pytest

from conftest import FABRICATION, GENERAL_STAFFING, budgets_block, budgets_grid, staff_grid

from budget_import.allocations import phase_allocations, staffing_wbs_code
from budget_import.config import ImportConfig
from budget_import.line_items import budget_line_items, detail_line_items
from budget_import.models import COST_BUCKETS, BudgetLineItem
from budget_import.sheets import ParseContext, parse_budgets_sheet, parse_detail_sheet
from budget_import.wbs import generate_wbs_structure


def _assert_one_bucket(item):
    carrying = [b for b in COST_BUCKETS if getattr(item, f"{b}_cost") != 0]
    assert carrying == [item.bucket]
    assert getattr(item, f"{item.bucket}_cost") == item.total_cost


def test_create_places_cost_in_one_bucket():
    item = BudgetLineItem.create(
        bucket="material",
        total_cost=1200,
        source_sheet="MATERIALS",
        source_row=4,
        discipline="FABRICATION",
        cost_type="Materials - Taxed",
        description="Pipe",
    )
    assert (item.category, item.material_cost, item.labor_cost) == ("MATERIAL", 1200, 0)
    _assert_one_bucket(item)


def test_bad_bucket_and_split_costs_are_rejected():
    with pytest.raises(ValueError):
        BudgetLineItem.create("overhead", 10, "X", 1, "FAB", "t", "d")
    with pytest.raises(ValueError):
        BudgetLineItem(
            source_sheet="X", source_row=1, discipline="FAB", category="LABOR",
            cost_type="t", description="split", total_cost=10, labor_cost=5, other_cost=5,
        )


def test_budget_line_items_skip_subtotals_and_zeroes():
    disciplines = parse_budgets_sheet(budgets_grid(
        budgets_block(1, "FABRICATION", FABRICATION),
        budgets_block(2, "GENERAL STAFFING", GENERAL_STAFFING),
    )).disciplines
    wbs = generate_wbs_structure(disciplines)
    items = budget_line_items(disciplines, wbs)

    assert [(i.discipline, i.cost_type, i.bucket) for i in items] == [
        ("FABRICATION", "DIRECT LABOR", "labor"),
        ("FABRICATION", "MATERIALS", "material"),
        ("FABRICATION", "EQUIPMENT", "equipment"),
        ("GENERAL STAFFING", "INDIRECT LABOR", "labor"),
        ("GENERAL STAFFING", "ADD ONS", "labor"),
    ]
    assert [i.wbs_code for i in items] == [
        "1.1.04.01.01", "1.1.04.03.01", "1.1.04.04.01", "1.1.01.02.01", "1.1.01.02.01",
    ]
    assert items[0].manhours == 1000
    # MATERIALS is the 8th row of the FABRICATION block
    assert items[1].source_row == items[0].source_row + 7
    for item in items:
        _assert_one_bucket(item)


def test_every_detail_item_carries_one_bucket(project_sheets, config):
    budgets = parse_budgets_sheet(project_sheets.pop("BUDGETS"))
    context = ParseContext.from_budgets(budgets, config)
    wbs = generate_wbs_structure(budgets.disciplines)

    by_sheet = {
        name: detail_line_items(parse_detail_sheet(name, grid, context), wbs, config)
        for name, grid in project_sheets.items()
    }

    assert by_sheet["DIRECTS"] == ()
    assert [i.total_cost for i in by_sheet["MATERIALS"]] == [18000, 1000, 1000]
    assert [i.wbs_code for i in by_sheet["STAFF"]] == ["1.1.01.02.01", "1.1.01.02.01"]
    assert by_sheet["STAFF"][1].description == "PROJECT_EXECUTION - QA/QC Inspector A"

    crane, trailer = by_sheet["GENERAL EQUIPMENT"]
    assert (crane.wbs_code, crane.total_cost) == ("1.1.04.04.01", 5000)
    assert crane.notes == "Equipment: $4,000.00, FOG: $500.00, Maintenance: $500.00"
    assert (trailer.discipline, trailer.wbs_code) == ("GENERAL", None)

    for items in by_sheet.values():
        for item in items:
            _assert_one_bucket(item)


def test_staff_outside_execution_gets_cost_type_code(config):
    disciplines = parse_budgets_sheet(
        budgets_grid(budgets_block(1, "GENERAL STAFFING", GENERAL_STAFFING))
    ).disciplines
    wbs = generate_wbs_structure(disciplines)
    grid = staff_grid([("JOB SET UP", [("Clerk", 1, 2, 0, 3000)])])
    sheet = parse_detail_sheet("STAFF", grid, ParseContext(config=config))

    item, = detail_line_items(sheet, wbs, config)
    assert item.wbs_code == "1.1.01.02"


def test_phase_allocations(config):
    grid = staff_grid([
        ("PROJECT EXECUTION", [
            ("Project Manager", 1, 20, 0, 60000),
            ("QA/QC Inspector Mech", 2, 10, 5000, 30000),
            ("Clerk", 0, 0, 0, 500),
        ]),
    ])
    staff = parse_detail_sheet("STAFF", grid, ParseContext(config=config)).result
    pm, qa = phase_allocations(staff, "P-100", "1.1.01", config)

    assert (pm.duration_months, pm.monthly_rate, pm.role_code) == (5, 12000, "IL013")
    assert (qa.fte, qa.duration_months, qa.monthly_rate) == (2, 3, 5000)
    assert (qa.role_code, qa.perdiem, qa.wbs_code) == ("IL014", 5000, "1.1.01")


def test_staffing_wbs_code_without_structure():
    assert staffing_wbs_code(None, ImportConfig()) == "1.1.01"
    assert staffing_wbs_code(None, ImportConfig(staff_discipline="NOWHERE")) is None
