from conftest import FABRICATION, GENERAL_STAFFING, budgets_block, budgets_grid

from budget_import.sheets import parse_budgets_sheet
from budget_import.wbs import (
    UNASSIGNED_GROUP,
    WBS_GROUPS,
    generate_wbs_structure,
    group_code_for,
    simplify_to_3_level,
)


def _structure(*blocks):
    return generate_wbs_structure(parse_budgets_sheet(budgets_grid(*blocks)).disciplines)


def test_tree_shape_and_totals():
    wbs = _structure(
        budgets_block(1, "FABRICATION", FABRICATION),
        budgets_block(2, "GENERAL STAFFING", GENERAL_STAFFING),
    )
    root, = wbs.roots

    assert (root.code, root.level, root.budget_total) == ("1", 1, 180000)
    phase, = root.children
    assert phase.code == "1.1"
    assert [g.code for g in phase.children] == [f"1.1.{code}" for code, _ in WBS_GROUPS]
    assert sum(1 for _ in wbs.nodes()) == 40

    assert wbs.find("1.1.04").budget_total == 75000
    assert wbs.find("1.1.01").budget_total == 105000
    # ADD ONS roll into indirect labor
    assert wbs.find("1.1.01.02.01").budget_total == 105000
    assert wbs.find("1.1.04.03.01").description == "FABRICATION"
    assert wbs.find("1.1.08").children == ()


def test_every_parent_sums_its_children():
    wbs = _structure(
        budgets_block(1, "FABRICATION", FABRICATION),
        budgets_block(2, "PIPING", {"DIRECT LABOR": (10, 700), "RISK": (0, 300)}),
        budgets_block(3, "STEEL", {"SUBCONTRACTS": (0, 1250)}),
    )
    for node in wbs.nodes():
        if node.children:
            assert node.budget_total == sum(c.budget_total for c in node.children)

    # PIPING and STEEL share the MECHANICAL group, one leaf each
    assert [leaf.description for leaf in wbs.find("1.1.09.01").children] == ["PIPING", "STEEL"]
    assert wbs.find("1.1.09.06.01").budget_total == 300


def test_sort_order_is_preorder():
    wbs = _structure(budgets_block(1, "FABRICATION", FABRICATION))
    orders = [node.sort_order for node in wbs.nodes()]
    assert orders == list(range(len(orders)))


def test_three_level_projection_keeps_codes_and_totals():
    wbs = _structure(
        budgets_block(1, "FABRICATION", FABRICATION),
        budgets_block(2, "GENERAL STAFFING", GENERAL_STAFFING),
    )
    simplified = wbs.simplified()
    nodes = [node for root in simplified for node in root.walk()]

    assert len(nodes) == 16
    assert max(node.level for node in nodes) == 3
    by_code = {node.code: node for node in nodes}
    for node in wbs.nodes():
        if node.level <= 3:
            assert by_code[node.code].budget_total == node.budget_total
    assert simplify_to_3_level(simplified) == simplified


def test_code_for_item():
    wbs = _structure(
        budgets_block(1, "FABRICATION", FABRICATION),
        budgets_block(2, "GENERAL STAFFING", GENERAL_STAFFING),
    )
    assert wbs.code_for_item("FABRICATION", "MAT") == "1.1.04.03.01"
    assert wbs.code_for_item("fabrication ", "EQ") == "1.1.04.04.01"
    assert wbs.code_for_item("GENERAL STAFFING", "IL", "PROJECT_EXECUTION") == "1.1.01.02.01"
    assert wbs.code_for_item("GENERAL STAFFING", "IL", "JOB_SET_UP") == "1.1.01.02"
    assert wbs.code_for_item("PAINTING", "MAT") is None
    assert wbs.code_for_item("FABRICATION", "XYZ") is None
    assert wbs.group_code("GENERAL STAFFING") == "1.1.01"


def test_unmapped_discipline_goes_to_unassigned_group():
    assert group_code_for("Underwater Basket Weaving") is None
    wbs = _structure(budgets_block(1, "UNDERWATER WELDING", {"MATERIALS": (0, 400)}))

    phase = wbs.roots[0].children[0]
    unassigned = phase.children[-1]
    assert (unassigned.code, unassigned.description) == (f"1.1.{UNASSIGNED_GROUP[0]}", "UNASSIGNED")
    assert unassigned.budget_total == 400
    assert wbs.code_for_item("UNDERWATER WELDING", "MAT") == "1.1.99.03.01"


def test_no_unassigned_group_when_everything_maps():
    wbs = _structure(budgets_block(1, "ELECTRICAL", {"MATERIALS": (0, 400)}))
    assert wbs.find("1.1.99") is None
    assert wbs.code_for_item("ELECTRICAL", "MAT") == "1.1.10.03.01"
