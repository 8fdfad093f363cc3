import math

import pytest

from budget_import.numeric import cell, cell_text, parse_numeric


@pytest.mark.parametrize("value, expected", [
    (1250, 1250.0),
    (12.5, 12.5),
    ("$1,250.00", 1250.0),
    ("  3 400 ", 3400.0),
    ("(500)", -500.0),
    ("($1,234.50)", -1234.5),
    ("-75", -75.0),
    ("", 0.0),
    ("   ", 0.0),
    (None, 0.0),
    ("-", 0.0),
    ("N/A", 0.0),
    ("#REF!", 0.0),
])
def test_parse_numeric(value, expected):
    assert parse_numeric(value) == expected


def test_parse_numeric_rejects_non_finite():
    assert parse_numeric(float("nan")) == 0.0
    assert parse_numeric(math.inf) == 0.0
    assert parse_numeric("inf") == 0.0


def test_parse_numeric_ignores_booleans():
    assert parse_numeric(True) == 0.0


def test_cell_out_of_range():
    row = ("a", None, 3)
    assert cell(row, 2) == 3
    assert cell(row, 5) is None
    assert cell((), 0) is None
    assert cell_text(row, 1) == ""
    assert cell_text((" FABRICATION ",), 0) == "FABRICATION"
