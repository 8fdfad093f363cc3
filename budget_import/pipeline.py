"""
Budget Import Pipeline - BUDGETS first, then every detail sheet.

Flow:
1. Parse BUDGETS (required; abort when missing or when it yields no
   disciplines)
2. Parse each supported detail sheet, in parallel when configured
3. Validate every detail sheet against BUDGETS
4. Generate the 5-level WBS and its 3-level projection
5. Flatten parser results into line items and fold the totals
6. Build allocations when a project id is given

Parser failures never escape run(); they are recorded against the sheet
and the import carries on with whatever was parsed.
"""

import logging
import traceback
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import replace
from functools import partial, reduce
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .allocations import direct_labor_allocations, phase_allocations, staffing_wbs_code
from .config import ImportConfig, load_config
from .disciplines import INPUT_SHEET_NAME, DisciplineMapper, extract_input_disciplines
from .line_items import budget_line_items, detail_line_items
from .models import BudgetDiscipline, BudgetLineItem, ImportResult, ImportTotals
from .sheets import (
    BUDGETS_SHEET,
    ParseContext,
    ParsedSheet,
    SheetKind,
    detail_sheet_names,
    parse_budgets_sheet,
    parse_detail_sheet,
)
from .validation import BudgetValidator, generate_report
from .wbs import generate_wbs_structure
from .workbook import Workbook

logger = logging.getLogger(__name__)

MISSING_BUDGETS_ERROR = f"{BUDGETS_SHEET} sheet not found - this is required"
VALIDATION_FAILED_ERROR = "Validation failed - see validationResult for details"


# =============================================================================
# TOTALS
# =============================================================================

def _add_discipline(totals: ImportTotals, disc: BudgetDiscipline) -> ImportTotals:
    c = disc.categories
    return ImportTotals(
        labor=totals.labor + disc.labor_total,
        material=totals.material + c.materials.value,
        equipment=totals.equipment + c.equipment.value,
        subcontract=totals.subcontract + c.subcontracts.value,
        grand_total=totals.grand_total + disc.total_value,
        direct_labor_manhours=totals.direct_labor_manhours + disc.direct_labor_manhours,
        indirect_labor_manhours=totals.indirect_labor_manhours + disc.indirect_labor_manhours,
        total_manhours=(
            totals.total_manhours + disc.direct_labor_manhours + disc.indirect_labor_manhours
        ),
    )


def fold_totals(disciplines: Sequence[BudgetDiscipline]) -> ImportTotals:
    """
    Workbook totals from the BUDGETS disciplines.

    "other" is whatever part of the grand total the four main buckets
    do not explain.
    """
    totals = reduce(_add_discipline, disciplines, ImportTotals())
    other = (
        totals.grand_total - totals.labor - totals.material
        - totals.equipment - totals.subcontract
    )
    return replace(totals, other=other)


def discipline_budgets(disciplines: Sequence[BudgetDiscipline]) -> Tuple[Mapping[str, Any], ...]:
    """Per-discipline summary with each category's share of the discipline total."""
    budgets = []
    for disc in disciplines:
        total = disc.total_value
        categories = {
            key.replace("_", " "): {
                "manhours": amount.manhours,
                "value": amount.value,
                "percentage": (amount.value / total) * 100 if total > 0 and amount.value else 0.0,
            }
            for key, amount in disc.categories.items()
        }
        budgets.append(MappingProxyType({
            "discipline": disc.discipline_name,
            "discipline_number": disc.discipline_number,
            "direct_labor_hours": disc.direct_labor_manhours,
            "indirect_labor_hours": disc.indirect_labor_manhours,
            "manhours": disc.direct_labor_manhours + disc.indirect_labor_manhours,
            "value": total,
            "categories": MappingProxyType(categories),
        }))
    return tuple(budgets)


# =============================================================================
# IMPORTER
# =============================================================================

class BudgetImporter:
    """
    Runs one workbook through parse, validate, WBS and flatten.

    Usage:
        importer = BudgetImporter()
        result = importer.run(load_workbook("budget.xlsx"), project_id="P-100")
    """

    def __init__(self, config: Optional[ImportConfig] = None):
        self.config = config or load_config()
        self.validator = BudgetValidator(self.config)
        self.mapper = DisciplineMapper()

    def run(self, workbook: Workbook, project_id: Optional[str] = None) -> ImportResult:
        """
        Import a workbook.

        Args:
            workbook: Sheet name -> raw grid
            project_id: When given, allocations are produced for this project

        Returns:
            ImportResult (never raises for bad sheet contents)
        """
        logger.info(f"Parsing {BUDGETS_SHEET} sheet...")
        if BUDGETS_SHEET not in workbook:
            logger.error(MISSING_BUDGETS_ERROR)
            return ImportResult(project_id=project_id, errors=(MISSING_BUDGETS_ERROR,))

        budgets = parse_budgets_sheet(workbook[BUDGETS_SHEET])
        if budgets.errors:
            for error in budgets.errors:
                logger.error(error)
            return ImportResult(
                project_id=project_id,
                errors=budgets.errors,
                warnings=budgets.warnings,
                sheets_parsed=(BUDGETS_SHEET,),
            )

        errors: List[str] = []
        warnings: List[str] = list(budgets.warnings)

        # Detail sheets
        context = ParseContext.from_budgets(budgets, self.config)
        parsed, failures = self._parse_details(workbook, context)

        # Validation
        logger.info("Validating all sheets against BUDGETS...")
        validation = self.validator.validate_all(budgets, parsed, failures)
        if not validation.is_valid:
            errors.append(VALIDATION_FAILED_ERROR)
        logger.debug("\n" + generate_report(validation))

        # WBS
        logger.info("Generating 5-level WBS structure...")
        wbs = generate_wbs_structure(budgets.disciplines)

        # Line items
        details: Dict[str, Tuple[BudgetLineItem, ...]] = {}
        for sheet in parsed:
            items = detail_line_items(sheet, wbs, self.config)
            if items:
                details[sheet.sheet_name] = details.get(sheet.sheet_name, ()) + items
        details[BUDGETS_SHEET] = budget_line_items(budgets.disciplines, wbs)

        missing_codes = sum(1 for items in details.values() for item in items if not item.wbs_code)
        if missing_codes:
            warnings.append(f"{missing_codes} items do not have WBS codes assigned")

        # Allocations
        phase_allocs: Tuple = ()
        direct_allocs: Tuple = ()
        if project_id:
            for sheet in parsed:
                if sheet.kind == SheetKind.STAFF:
                    phase_allocs += phase_allocations(
                        sheet.result, project_id, staffing_wbs_code(wbs, self.config), self.config
                    )
                elif sheet.kind == SheetKind.DIRECTS:
                    direct_allocs += direct_labor_allocations(
                        sheet.result, project_id, wbs, sheet.sheet_name
                    )
            logger.info(
                f"Allocations: {len(phase_allocs)} phase, {len(direct_allocs)} direct labor"
            )

        # Discipline grouping
        names = [d.discipline_name for d in budgets.disciplines]
        groups = self.mapper.group(names)
        sheets_parsed = [BUDGETS_SHEET] + [s.sheet_name for s in parsed]
        if INPUT_SHEET_NAME in workbook:
            included = extract_input_disciplines(workbook[INPUT_SHEET_NAME])
            known = {n.strip().upper() for n in names}
            for discipline in included:
                if discipline not in known:
                    warnings.append(f"{INPUT_SHEET_NAME} discipline {discipline} has no {BUDGETS_SHEET} block")
            sheets_parsed.append(INPUT_SHEET_NAME)

        result = ImportResult(
            project_id=project_id,
            disciplines=budgets.disciplines,
            discipline_budgets=discipline_budgets(budgets.disciplines),
            discipline_groups=groups,
            totals=fold_totals(budgets.disciplines),
            details=MappingProxyType(details),
            wbs_structure=wbs.simplified(),
            wbs_structure_5_level=wbs.roots,
            phase_allocations=phase_allocs,
            direct_labor_allocations=direct_allocs,
            validation_result=validation,
            errors=tuple(errors),
            warnings=tuple(warnings),
            sheets_parsed=tuple(sheets_parsed),
        )
        logger.info(
            f"Import complete: {len(result.line_items)} line items, "
            f"grand total ${result.totals.grand_total:,.2f}, "
            f"{'valid' if result.is_valid else 'NOT valid'}"
        )
        return result

    # =========================================================================
    # DETAIL SHEETS
    # =========================================================================

    def _parse_details(
        self,
        workbook: Workbook,
        context: ParseContext,
    ) -> Tuple[List[ParsedSheet], Dict[str, str]]:
        """Parse every supported detail sheet; failures map sheet name -> error."""
        names = detail_sheet_names(workbook)
        results: Dict[str, ParsedSheet] = {}
        failures: Dict[str, str] = {}

        if len(names) <= 1 or self.config.max_workers <= 1:
            for name in names:
                produce = partial(self._parse_one, name, workbook[name], context)
                self._collect(name, produce, results, failures)
        else:
            logger.info(f"Parsing {len(names)} detail sheets with {self.config.max_workers} workers")
            with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
                futures = {
                    executor.submit(self._parse_one, name, workbook[name], context): name
                    for name in names
                }
                for future in as_completed(futures):
                    name = futures[future]
                    self._collect(name, future.result, results, failures)

        # Keep parse order stable regardless of completion order
        parsed = [results[name] for name in names if name in results]
        return parsed, failures

    @staticmethod
    def _parse_one(name: str, grid, context: ParseContext) -> ParsedSheet:
        logger.info(f"Parsing {name} sheet...")
        return parse_detail_sheet(name, grid, context)

    @staticmethod
    def _collect(name: str, produce, results: Dict[str, ParsedSheet], failures: Dict[str, str]):
        try:
            results[name] = produce()
        except Exception as e:
            logger.error(f"Failed to parse {name}: {e}")
            logger.debug(traceback.format_exc())
            failures[name] = f"Failed to parse {name}: {e}"


def run_budget_import(
    workbook: Workbook,
    project_id: Optional[str] = None,
    config: Optional[ImportConfig] = None,
) -> ImportResult:
    """
    Import a budget workbook.

    Args:
        workbook: Sheet name -> raw grid (see workbook.load_workbook)
        project_id: Optional project id for allocations
        config: Optional ImportConfig; defaults to the packaged rules

    Returns:
        ImportResult
    """
    return BudgetImporter(config).run(workbook, project_id)
