"""Synthetic budget workbook grids shared by the test modules."""

import pytest

from budget_import.config import ImportConfig
from budget_import.vocabulary import BUDGET_CATEGORY_NAMES
from budget_import.workbook import workbook_from_grids


def make_row(cells, width=None):
    """Row list with {column index: value} placed, blanks elsewhere."""
    size = max(list(cells) + [-1]) + 1
    if width:
        size = max(size, width)
    row = [None] * size
    for index, value in cells.items():
        row[index] = value
    return row


def budgets_block(number, name, amounts):
    """
    One 12-row BUDGETS block.

    amounts: {category label: (manhours, value)}; missing labels are zero.
    """
    rows = []
    for offset, label in enumerate(BUDGET_CATEGORY_NAMES):
        manhours, value = amounts.get(label, (0, 0))
        cells = {3: label, 4: manhours, 5: value}
        if offset == 0:
            cells.update({0: number, 1: name})
        rows.append(make_row(cells))
    return rows


def budgets_grid(*blocks):
    grid = [["No.", "Discipline", None, "Category", "Manhours", "Value"]]
    for block in blocks:
        grid.extend(block)
    return grid


def staff_grid(phases):
    """phases: [(marker text, [(classification, qty, weeks, per diem, total)])]"""
    grid = [make_row({0: "CLASSIFICATION", 1: "DESCRIPTION", 2: "QTY", 3: "WEEKS"})]
    for marker, roles in phases:
        grid.append(make_row({1: marker}))
        for classification, qty, weeks, per_diem, total in roles:
            grid.append(make_row({0: classification, 2: qty, 3: weeks, 22: per_diem, 24: total}))
    return grid


def directs_grid(sections, categories):
    """
    sections: [(header number text, name, section manhours)]
    categories: [(label, [manhours per section])]
    """
    header, manhours = {}, {}
    for i, (number_text, name, total) in enumerate(sections):
        header[i * 10] = number_text
        header[i * 10 + 1] = name
        manhours[i * 10 + 1] = total
    grid = [make_row(header), make_row({0: "MAN HOURS", **manhours})]
    grid.extend([make_row({0: "S.T. HOURS"}), make_row({0: "O.T. HOURS"}), []])
    for label, values in categories:
        cells = {0: label}
        for i, value in enumerate(values):
            cells[i * 10 + 1] = value
        grid.append(make_row(cells))
    return grid


def materials_grid(disciplines):
    """disciplines: [(name, taxed, taxes, non_taxed)] in 8-row blocks from row index 1."""
    grid = [make_row({1: "DISCIPLINE", 3: "DESCRIPTION", 6: "AMOUNT"})]
    for name, taxed, taxes, non_taxed in disciplines:
        block = [
            make_row({1: name}),
            make_row({3: "MATERIALS FROM TAKE OFF SHEET - TAXED", 6: taxed}),
            make_row({3: "TAXES ON MATERIALS LISTED ABOVE", 6: taxes}),
            make_row({3: "MATERIALS FROM TAKE OFF SHEET - NON-TAXED", 6: non_taxed}),
        ]
        block.extend([] for _ in range(8 - len(block)))
        grid.extend(block)
    return grid


def equipment_row(discipline, description, equipment, fog=0, maintenance=0):
    return make_row({
        1: discipline, 2: "CRANE", 3: description, 4: 1, 5: 4, 6: "WEEKS",
        16: equipment, 17: fog, 18: maintenance,
    })


def equipment_grid(rows):
    return [make_row({1: "DISCIPLINE", 2: "TYPE", 3: "DESCRIPTION"})] + list(rows)


def constructability_grid(categories):
    """categories: [(header, [(description, cost)])]"""
    grid = [make_row({0: "CONSTRUCTABILITY ESTIMATE"})]
    for header, items in categories:
        grid.append(make_row({0: header}))
        for description, cost in items:
            grid.append(make_row({1: description, 4: cost}))
    return grid


FABRICATION = {
    "DIRECT LABOR": (1000, 50000),
    "MATERIALS": (0, 20000),
    "EQUIPMENT": (0, 5000),
    "DISCIPLINE TOTALS": (0, 75000),
}

GENERAL_STAFFING = {
    "INDIRECT LABOR": (2000, 100000),
    "ADD ONS": (0, 5000),
    "DISCIPLINE TOTALS": (0, 105000),
}


@pytest.fixture
def config():
    return ImportConfig(max_workers=1)


@pytest.fixture
def fabrication_budgets():
    return budgets_grid(budgets_block(1, "FABRICATION", FABRICATION))


@pytest.fixture
def project_sheets():
    """A consistent workbook: every detail sheet reconciles with BUDGETS."""
    return {
        "BUDGETS": budgets_grid(
            budgets_block(1, "FABRICATION", FABRICATION),
            budgets_block(2, "GENERAL STAFFING", GENERAL_STAFFING),
        ),
        "STAFF": staff_grid([
            ("PROJECT EXECUTION", [
                ("Project Manager", 1, 20, 0, 60000),
                ("QA/QC Inspector Mech", 2, 10, 5000, 30000),
            ]),
        ]),
        "DIRECTS": directs_grid(
            [("Discipline 1", "FABRICATION", 1000)],
            [("Welder - Class A", [600]), ("Fitter - Class A", [400])],
        ),
        "MATERIALS": materials_grid([("FABRICATION", 18000, 1000, 1000)]),
        "GENERAL EQUIPMENT": equipment_grid([
            equipment_row("FABRICATION", "50T crane", 4000, 500, 500),
            equipment_row(None, "Site trailer", 1200),
        ]),
    }


@pytest.fixture
def project_workbook(project_sheets):
    return workbook_from_grids(project_sheets)
