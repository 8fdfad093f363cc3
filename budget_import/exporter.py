"""
Exporter Module
Exports an ImportResult to Excel and JSON formats.

Excel sheets:
- Totals
- Disciplines
- Line_Items
- WBS
- Validation
"""

import json
import logging
from io import BytesIO
from pathlib import Path
from typing import Optional

import pandas as pd

from .models import ImportResult, walk_nodes

logger = logging.getLogger(__name__)

LINE_ITEM_COLUMNS = [
    'Sheet', 'Row', 'Discipline', 'Category', 'Cost Type', 'Description',
    'Total', 'Labor', 'Material', 'Equipment', 'Subcontract', 'Other',
    'Manhours', 'WBS Code', 'Notes',
]


def build_totals_df(result: ImportResult) -> pd.DataFrame:
    """Build workbook totals DataFrame."""
    labels = {
        'labor': 'Labor',
        'material': 'Material',
        'equipment': 'Equipment',
        'subcontract': 'Subcontract',
        'other': 'Other',
        'grand_total': 'Grand Total',
        'direct_labor_manhours': 'Direct Labor Manhours',
        'indirect_labor_manhours': 'Indirect Labor Manhours',
        'total_manhours': 'Total Manhours',
    }
    totals = result.totals.to_dict()
    return pd.DataFrame([
        {'Field': label, 'Value': round(totals[key], 2)}
        for key, label in labels.items()
    ])


def build_disciplines_df(result: ImportResult) -> pd.DataFrame:
    """Build per-discipline category DataFrame (one row per discipline)."""
    if not result.disciplines:
        return pd.DataFrame(columns=['No.', 'Discipline', 'Labor Total'])

    data = []
    for disc in result.disciplines:
        row = {
            'No.': disc.discipline_number,
            'Discipline': disc.discipline_name,
            'Labor Total': round(disc.labor_total, 2),
        }
        for key, amount in disc.categories.items():
            row[key.replace('_', ' ').title()] = round(amount.value, 2)
        data.append(row)
    return pd.DataFrame(data)


def build_line_items_df(result: ImportResult) -> pd.DataFrame:
    """Build flattened line items DataFrame with a totals row."""
    if not result.line_items:
        return pd.DataFrame(columns=LINE_ITEM_COLUMNS)

    data = []
    for item in result.line_items:
        data.append({
            'Sheet': item.source_sheet,
            'Row': item.source_row,
            'Discipline': item.discipline,
            'Category': item.category,
            'Cost Type': item.cost_type,
            'Description': item.description,
            'Total': round(item.total_cost, 2),
            'Labor': round(item.labor_cost, 2),
            'Material': round(item.material_cost, 2),
            'Equipment': round(item.equipment_cost, 2),
            'Subcontract': round(item.subcontract_cost, 2),
            'Other': round(item.other_cost, 2),
            'Manhours': item.manhours if item.manhours is not None else '',
            'WBS Code': item.wbs_code or '-',
            'Notes': item.notes or '',
        })

    df = pd.DataFrame(data, columns=LINE_ITEM_COLUMNS)

    totals = {column: '' for column in LINE_ITEM_COLUMNS}
    totals['Sheet'] = 'TOTAL'
    for column in ('Total', 'Labor', 'Material', 'Equipment', 'Subcontract', 'Other'):
        totals[column] = round(df[column].sum(), 2)
    return pd.concat([df, pd.DataFrame([totals])], ignore_index=True)


def build_wbs_df(result: ImportResult) -> pd.DataFrame:
    """Build WBS DataFrame (5-level tree, depth-first)."""
    data = [
        {
            'Code': node.code,
            'Parent': node.parent_code or '',
            'Level': node.level,
            'Description': ('  ' * (node.level - 1)) + node.description,
            'Cost Type': node.cost_type or '',
            'Budget': round(node.budget_total, 2),
        }
        for node in walk_nodes(result.wbs_structure_5_level)
    ]
    return pd.DataFrame(data, columns=['Code', 'Parent', 'Level', 'Description', 'Cost Type', 'Budget'])


def build_validation_df(result: ImportResult) -> pd.DataFrame:
    """Build validation messages DataFrame."""
    data = []
    for message in result.errors:
        data.append({'Scope': 'IMPORT', 'Severity': 'ERROR', 'Message': message})
    for message in result.warnings:
        data.append({'Scope': 'IMPORT', 'Severity': 'WARNING', 'Message': message})

    validation = result.validation_result
    if validation is not None:
        for sheet in validation.sheets:
            for message in sheet.errors:
                data.append({'Scope': sheet.sheet_name, 'Severity': 'ERROR', 'Message': message})
            for message in sheet.warnings:
                data.append({'Scope': sheet.sheet_name, 'Severity': 'WARNING', 'Message': message})
        for rule in validation.cross_sheet:
            data.append({
                'Scope': rule.rule,
                'Severity': 'OK' if rule.is_valid else 'ERROR',
                'Message': rule.message,
            })

    return pd.DataFrame(data, columns=['Scope', 'Severity', 'Message'])


def export_to_excel(
    result: ImportResult,
    filepath: Optional[Path] = None
) -> BytesIO:
    """
    Export an import result to an Excel file with multiple sheets.

    Args:
        result: ImportResult to export
        filepath: Optional file path to save (if None, returns BytesIO)

    Returns:
        BytesIO buffer with Excel file
    """
    sheets = {
        'Totals': build_totals_df(result),
        'Disciplines': build_disciplines_df(result),
        'Line_Items': build_line_items_df(result),
        'WBS': build_wbs_df(result),
        'Validation': build_validation_df(result),
    }

    buffer = BytesIO()

    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for sheet_name, df in sheets.items():
            df.to_excel(writer, sheet_name=sheet_name, index=False)

        # Format columns width
        for sheet_name in writer.sheets:
            worksheet = writer.sheets[sheet_name]
            for column in worksheet.columns:
                max_length = max(len(str(cell.value)) if cell.value is not None else 0 for cell in column)
                worksheet.column_dimensions[column[0].column_letter].width = min(max_length + 2, 60)

    buffer.seek(0)

    if filepath:
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'wb') as f:
            f.write(buffer.getvalue())
        buffer.seek(0)
        logger.info(f"Excel exported to: {filepath}")

    return buffer


def export_to_json(
    result: ImportResult,
    filepath: Optional[Path] = None,
    indent: int = 2
) -> str:
    """
    Export an import result to JSON.

    Args:
        result: ImportResult to export
        filepath: Optional file path to save
        indent: JSON indentation

    Returns:
        JSON string
    """
    json_str = json.dumps(result.to_dict(), indent=indent, ensure_ascii=False)

    if filepath:
        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)
        with open(filepath, 'w', encoding='utf-8') as f:
            f.write(json_str)
        logger.info(f"JSON exported to: {filepath}")

    return json_str
