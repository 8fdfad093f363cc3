from conftest import make_row

from budget_import.disciplines import (
    DisciplineMapper,
    extract_input_disciplines,
    format_discipline_name,
    is_demo,
)


def test_format_discipline_name():
    assert format_discipline_name("GENERAL STAFFING") == "General Staffing"
    assert format_discipline_name("I&E DEMO") == "I&E Demo"
    assert format_discipline_name("civil - grounding") == "Civil - Grounding"


def test_group_by_parent_in_first_seen_order():
    mapper = DisciplineMapper()
    groups = mapper.group(["PIPING", "ELECTRICAL", "steel ", "PAINTING", "PIPING DEMO", "PIPING"])

    assert [(g.parent, g.display_name) for g in groups] == [
        ("MECHANICAL", "Mechanical"),
        ("I&E", "I&E"),
        ("PAINTING", "Painting"),
    ]
    mechanical, ie, painting = groups
    assert mechanical.disciplines == ("PIPING", "STEEL", "PIPING DEMO")
    assert not mechanical.is_standalone
    assert painting.is_standalone
    assert DisciplineMapper.includes_demos(mechanical)
    assert not DisciplineMapper.includes_demos(ie)


def test_lookup_and_summary():
    mapper = DisciplineMapper()
    assert mapper.parent_of("concrete") == "Civil"
    assert mapper.parent_of("PAINTING") is None
    assert mapper.is_known(" Fabrication ")
    assert is_demo("Concrete Demo")

    lines = DisciplineMapper.summary(mapper.group(["CIVIL", "GROUTING"]))
    assert lines == ["Civil: Civil, Grouting"]


def test_custom_rules():
    mapper = DisciplineMapper({"PAINTING": "Coatings"})
    group, = mapper.group(["PAINTING"])
    assert (group.parent, group.display_name, group.is_standalone) == ("COATINGS", "Coatings", False)
    assert mapper.parent_of("PIPING") is None


def test_extract_input_disciplines():
    grid = [
        make_row({0: "Project", 33: "Scope"}),
        make_row({32: 1, 33: "Fabrication"}),
        make_row({32: 0, 33: "MOBILIZATION"}),
        make_row({32: "1", 33: "PIPING"}),
        make_row({32: 1, 33: "   "}),
        make_row({32: 1, 33: "CIVIL"}),
    ]
    assert extract_input_disciplines(grid) == ["FABRICATION", "PIPING"]


def test_input_sheet_without_list():
    assert extract_input_disciplines([make_row({33: "PIPING"})]) == []
