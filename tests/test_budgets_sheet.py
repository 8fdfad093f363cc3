from conftest import FABRICATION, GENERAL_STAFFING, budgets_block, budgets_grid, make_row

from budget_import.sheets.budgets import parse_budgets_sheet
from budget_import.vocabulary import BUDGET_CATEGORY_KEYS


def test_every_discipline_has_all_twelve_categories():
    grid = budgets_grid(budgets_block(1, "FABRICATION", {"DIRECT LABOR": (10, 500)}))
    result = parse_budgets_sheet(grid)

    assert not result.errors
    disc = result.disciplines[0]
    assert disc.categories.keys() == BUDGET_CATEGORY_KEYS
    for key in BUDGET_CATEGORY_KEYS:
        amount = disc.categories[key]
        if key == "DIRECT_LABOR":
            assert (amount.manhours, amount.value) == (10, 500)
        else:
            assert (amount.manhours, amount.value) == (0, 0)


def test_blocks_are_found_between_noise_rows():
    grid = budgets_grid(
        budgets_block(1, "FABRICATION", FABRICATION),
        [make_row({0: "Subtotal", 5: 75000}), []],
        budgets_block(2, "GENERAL STAFFING", GENERAL_STAFFING),
    )
    result = parse_budgets_sheet(grid)

    assert [d.discipline_name for d in result.disciplines] == ["FABRICATION", "GENERAL STAFFING"]
    assert [d.discipline_number for d in result.disciplines] == [1, 2]
    assert result.disciplines[0].source_row == 2
    assert result.disciplines[1].source_row == 16


def test_labor_total_excludes_all_labor_row():
    amounts = {
        "DIRECT LABOR": (100, 1000),
        "INDIRECT LABOR": (50, 500),
        "ALL LABOR": (150, 99999),
        "TAXES & INSURANCE": (0, 100),
        "PERDIEM": (0, 50),
        "ADD ONS": (0, 25),
    }
    disc = parse_budgets_sheet(budgets_grid(budgets_block(3, "PIPING", amounts))).disciplines[0]
    assert disc.labor_total == 1675


def test_currency_text_cells_are_coerced():
    grid = budgets_grid(budgets_block("4", "CIVIL", {"MATERIALS": (0, "$12,500.00")}))
    disc = parse_budgets_sheet(grid).disciplines[0]
    assert disc.discipline_number == 4
    assert disc.categories.materials.value == 12500


def test_block_requires_direct_labor_label():
    block = budgets_block(1, "FABRICATION", FABRICATION)
    block[0][3] = "DIRECT LABOUR"
    result = parse_budgets_sheet(budgets_grid(block))
    assert result.disciplines == ()
    assert result.errors == ("No discipline blocks found in BUDGETS sheet",)


def test_empty_sheet():
    assert parse_budgets_sheet([]).errors == ("BUDGETS sheet is empty",)


def test_derived_maps():
    result = parse_budgets_sheet(budgets_grid(
        budgets_block(1, "FABRICATION", FABRICATION),
        budgets_block(2, "GENERAL STAFFING", GENERAL_STAFFING),
    ))
    targets = result.validation_targets()
    assert targets["FABRICATION"].direct_labor_hours == 1000
    assert targets["FABRICATION"].materials_value == 20000
    assert targets["GENERAL STAFFING"].indirect_labor_value == 100000
    assert result.add_ons_by_discipline()["GENERAL STAFFING"] == 5000
    assert dict(result.discipline_names_by_number()) == {1: "FABRICATION", 2: "GENERAL STAFFING"}
