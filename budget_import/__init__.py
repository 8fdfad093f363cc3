"""
Budget Workbook Import
Ingests multi-sheet construction budget workbooks, reconciles every detail
sheet against the BUDGETS sheet and derives the project WBS.
"""

__version__ = "1.0.0"

from .config import ImportConfig, load_config
from .models import BudgetLineItem, ImportResult, ImportTotals, WBSNode
from .pipeline import BudgetImporter, run_budget_import
from .validation import BudgetValidator, generate_report
from .workbook import WorkbookLoadError, load_workbook

__all__ = [
    "BudgetImporter",
    "BudgetLineItem",
    "BudgetValidator",
    "ImportConfig",
    "ImportResult",
    "ImportTotals",
    "WBSNode",
    "WorkbookLoadError",
    "generate_report",
    "load_config",
    "load_workbook",
    "run_budget_import",
]
