"""
Numeric cell normalization shared by every sheet parser.

Budget workbooks mix real numbers with currency-formatted text such as
"$1,250.00", accounting negatives such as "(500)" and placeholder dashes.
Everything funnels through parse_numeric() so a malformed cell degrades to
zero instead of failing the import.
"""

import math
from typing import Any


def parse_numeric(value: Any) -> float:
    """
    Convert a raw cell value to a float.

    Args:
        value: Cell value as read from the worksheet (number, text, None)

    Returns:
        The numeric value, or 0.0 when the cell is blank or unparseable
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        return float(value) if math.isfinite(value) else 0.0

    text = str(value)
    for char in ("$", ","):
        text = text.replace(char, "")
    text = "".join(text.split())

    if not text:
        return 0.0

    # Accounting negatives: (1,234.00) -> -1234.00
    if text.startswith("(") and text.endswith(")"):
        text = "-" + text[1:-1]

    try:
        parsed = float(text)
    except ValueError:
        return 0.0

    return parsed if math.isfinite(parsed) else 0.0


def cell(row, index: int) -> Any:
    """Return row[index], or None when the row is too short or missing."""
    if not row or index >= len(row):
        return None
    return row[index]


def cell_text(row, index: int) -> str:
    """Return the stripped text of row[index] ('' for blanks)."""
    value = cell(row, index)
    if value is None:
        return ""
    return str(value).strip()
