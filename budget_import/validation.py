"""
Cross-Sheet Validator - reconcile detail sheets against BUDGETS.

Provides:
- Strict per-discipline checks ($0.01) for DIRECTS manhours, MATERIALS and
  GENERAL EQUIPMENT totals; a mismatch is a hard error
- Aggregated STAFF + INDIRECTS reconciliation against BUDGETS INDIRECT
  LABOR with a 1% tolerance; a mismatch is a warning
- Lenient CONSTRUCTABILITY comparison (the sheet is expected to be 10-40x
  its BUDGETS allocation)
- Workbook rules: orphan disciplines, equipment breakdown
- Plain-text report rendering
"""

import logging
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Sequence, Set

from .config import ImportConfig
from .models import BudgetComparison, CrossSheetRule, SheetValidation, ValidationResult
from .sheets import BudgetsSheetResult, ParsedSheet, SheetKind

logger = logging.getLogger(__name__)


class BudgetValidator:
    """Validate parsed detail sheets against the BUDGETS source of truth."""

    def __init__(self, config: Optional[ImportConfig] = None):
        self.config = config or ImportConfig()
        self._validators = {
            SheetKind.STAFF: self._validate_staff,
            SheetKind.INDIRECTS: self._validate_indirects,
            SheetKind.DIRECTS: self._validate_directs,
            SheetKind.MATERIALS: self._validate_materials,
            SheetKind.GENERAL_EQUIPMENT: self._validate_equipment,
            SheetKind.CONSTRUCTABILITY: self._validate_constructability,
            SheetKind.DISC_EQUIPMENT: self._validate_disc_equipment,
            SheetKind.NUMBERED_EQUIPMENT: self._validate_numbered_equipment,
        }

    def validate_all(
        self,
        budgets: BudgetsSheetResult,
        parsed: Sequence[ParsedSheet],
        failures: Optional[Mapping[str, str]] = None,
    ) -> ValidationResult:
        """
        Validate every parsed detail sheet and run the workbook rules.

        Args:
            budgets: BUDGETS parse result
            parsed: Detail sheet results, in parse order
            failures: Sheet name -> error for sheets whose parser raised

        Returns:
            ValidationResult
        """
        by_kind = self._index(parsed)
        sheets: List[SheetValidation] = []

        for sheet in parsed:
            validator = self._validators.get(sheet.kind)
            if validator is None:
                continue
            sheets.extend(validator(sheet, budgets, by_kind))

        for sheet_name, message in (failures or {}).items():
            sheets.append(SheetValidation(sheet_name=sheet_name, errors=(message,)))

        result = ValidationResult(
            sheets=tuple(sheets),
            cross_sheet=tuple(self._cross_sheet_rules(budgets, by_kind)),
        )
        logger.info(
            f"Validation {'passed' if result.is_valid else 'failed'}: "
            f"{len(result.sheets)} sheets, {result.error_count} errors, "
            f"{result.warning_count} warnings"
        )
        return result

    # =========================================================================
    # HELPERS
    # =========================================================================

    @staticmethod
    def _index(parsed: Sequence[ParsedSheet]) -> Mapping[SheetKind, List]:
        by_kind: Dict[SheetKind, List] = {}
        for sheet in parsed:
            by_kind.setdefault(sheet.kind, []).append(sheet.result)
        return MappingProxyType(by_kind)

    @staticmethod
    def _first(by_kind: Mapping[SheetKind, List], kind: SheetKind):
        results = by_kind.get(kind)
        return results[0] if results else None

    def _strict_checks(
        self,
        sheet_name: str,
        result,
        budgets: BudgetsSheetResult,
        totals: Mapping[str, float],
        target_of,
        describe,
    ) -> SheetValidation:
        """Per-discipline $0.01 comparison; a missing BUDGETS discipline is a warning."""
        errors = list(result.errors)
        warnings = list(result.warnings)
        targets = budgets.validation_targets()

        for discipline, sheet_value in totals.items():
            target = targets.get(discipline)
            if target is None:
                warnings.append(f"No matching discipline found in BUDGETS for {discipline}")
                continue
            budget_value = target_of(target)
            difference = abs(sheet_value - budget_value)
            if difference > self.config.strict_tolerance:
                errors.append(describe(discipline, sheet_value, budget_value, difference))

        return SheetValidation(sheet_name=sheet_name, errors=tuple(errors), warnings=tuple(warnings))

    # =========================================================================
    # PER-SHEET VALIDATORS
    # =========================================================================

    def _validate_staff(self, sheet, budgets, by_kind) -> List[SheetValidation]:
        staff = sheet.result
        errors = list(staff.errors)
        warnings = list(staff.warnings)
        comparison = None

        discipline = staff.discipline_mapping
        target = budgets.validation_targets().get(discipline)
        if target is None:
            errors.append(f"No matching discipline found in BUDGETS for {discipline}")
        else:
            add_ons = budgets.add_ons_by_discipline().get(discipline, 0.0)
            indirects = self._first(by_kind, SheetKind.INDIRECTS)
            constructability = self._first(by_kind, SheetKind.CONSTRUCTABILITY)

            staff_labor = staff.total_indirect_labor - add_ons
            staff_per_diem = staff.total_per_diem
            supervision = indirects.total_supervision_labor if indirects else 0.0
            constructability_labor = constructability.labor_cost if constructability else 0.0
            aggregated = staff_labor + staff_per_diem + supervision + constructability_labor + add_ons

            expected = target.indirect_labor_value
            comparison = BudgetComparison(budget_value=expected, sheet_value=aggregated)

            breakdown = ", ".join([
                f"STAFF labor: ${staff_labor:.2f}",
                f"STAFF per diem: ${staff_per_diem:.2f}",
                f"INDIRECTS supervision: ${supervision:.2f}",
                f"CONSTRUCTABILITY labor: ${constructability_labor:.2f}",
                f"ADD ONS: ${add_ons:.2f}",
                f"Total: ${aggregated:.2f}",
            ])
            warnings.append(f"INDIRECT LABOR breakdown: {breakdown}")

            tolerance = expected * self.config.aggregate_tolerance_percent / 100
            if comparison.difference > tolerance:
                warnings.append(
                    f"Aggregated indirect labor (${aggregated:.2f}) differs from BUDGETS "
                    f"(${expected:.2f}) by {comparison.percent_difference:.1f}%"
                )

        return [SheetValidation(
            sheet_name=sheet.sheet_name,
            errors=tuple(errors),
            warnings=tuple(warnings),
            budget_comparison=comparison,
        )]

    def _validate_indirects(self, sheet, budgets, by_kind) -> List[SheetValidation]:
        indirects = sheet.result
        info = (
            f"INDIRECTS supervision labor: ${indirects.total_supervision_labor:.2f} "
            f"contributes to BUDGETS INDIRECT LABOR"
        )
        return [SheetValidation(
            sheet_name=sheet.sheet_name,
            errors=tuple(indirects.errors),
            warnings=tuple(indirects.warnings) + (info,),
        )]

    def _validate_directs(self, sheet, budgets, by_kind) -> List[SheetValidation]:
        directs = sheet.result
        totals: Dict[str, float] = {}
        for disc in directs.disciplines:
            totals[disc.discipline_name] = totals.get(disc.discipline_name, 0.0) + disc.total_manhours

        return [self._strict_checks(
            sheet.sheet_name, directs, budgets, totals,
            target_of=lambda target: target.direct_labor_hours,
            describe=lambda name, value, budget, diff: (
                f"{name} manhours ({value:g}) does not match BUDGETS ({budget:g}). "
                f"Difference: {diff:g}"
            ),
        )]

    def _validate_materials(self, sheet, budgets, by_kind) -> List[SheetValidation]:
        materials = sheet.result
        totals: Dict[str, float] = {}
        for disc in materials.disciplines:
            totals[disc.discipline_name] = totals.get(disc.discipline_name, 0.0) + disc.total

        return [self._strict_checks(
            sheet.sheet_name, materials, budgets, totals,
            target_of=lambda target: target.materials_value,
            describe=lambda name, value, budget, diff: (
                f"{name} materials total (${value:.2f}) does not match BUDGETS "
                f"(${budget:.2f}). Difference: ${diff:.2f}"
            ),
        )]

    def _validate_equipment(self, sheet, budgets, by_kind) -> List[SheetValidation]:
        equipment = sheet.result
        totals = {disc.discipline_name: disc.total_cost for disc in equipment.disciplines}

        return [self._strict_checks(
            sheet.sheet_name, equipment, budgets, totals,
            target_of=lambda target: target.equipment_value,
            describe=lambda name, value, budget, diff: (
                f"{name} equipment total (${value:.2f}) does not match BUDGETS "
                f"(${budget:.2f}). Difference: ${diff:.2f}"
            ),
        )]

    def _validate_constructability(self, sheet, budgets, by_kind) -> List[SheetValidation]:
        constructability = sheet.result
        errors = list(constructability.errors)
        warnings = list(constructability.warnings)
        comparison = None

        discipline = constructability.discipline_mapping
        target = budgets.validation_targets().get(discipline)
        if target is None:
            errors.append(f"No matching discipline found in BUDGETS for {discipline}")
        else:
            budget_total = (
                target.indirect_labor_value + target.materials_value
                + target.equipment_value + target.subcontractors_value
            )
            total = constructability.total_cost
            comparison = BudgetComparison(budget_value=budget_total, sheet_value=total)
            warning = self._constructability_warning(total, budget_total, comparison.difference)
            if warning:
                warnings.append(warning)

        return [SheetValidation(
            sheet_name=sheet.sheet_name,
            errors=tuple(errors),
            warnings=tuple(warnings),
            budget_comparison=comparison,
        )]

    def _constructability_warning(self, total: float, budget_total: float, difference: float) -> Optional[str]:
        """Informational or review message; never an error."""
        ratio_min = self.config.constructability_ratio_min
        ratio_max = self.config.constructability_ratio_max

        if budget_total <= 0:
            if total > 0:
                return (
                    f"CONSTRUCTABILITY total (${total:.2f}) has no BUDGETS allocation to "
                    f"compare against."
                )
            return None

        ratio = total / budget_total
        if ratio > ratio_min:
            message = (
                f"CONSTRUCTABILITY total (${total:.2f}) is {ratio:.1f}x higher than BUDGETS "
                f"allocation (${budget_total:.2f}). This is expected as BUDGETS typically "
                f"contains only a subset of the full constructability estimate."
            )
            if ratio > ratio_max:
                message += f" The ratio is above the usual {ratio_max:g}x; review the allocation."
            return message

        if difference > budget_total * self.config.constructability_review_threshold:
            return (
                f"CONSTRUCTABILITY total (${total:.2f}) differs significantly from BUDGETS "
                f"total (${budget_total:.2f}). This may be expected depending on budgeting approach."
            )
        return None

    def _validate_disc_equipment(self, sheet, budgets, by_kind) -> List[SheetValidation]:
        equipment = sheet.result
        validations = []
        if equipment.errors or equipment.warnings:
            validations.append(SheetValidation(
                sheet_name=sheet.sheet_name,
                errors=tuple(equipment.errors),
                warnings=tuple(equipment.warnings),
            ))
        for disc in equipment.disciplines:
            name = f"DISC_EQUIPMENT_{disc.discipline_name}"
            validations.append(SheetValidation(
                sheet_name=name,
                warnings=(
                    f"{name} contains discipline-specific equipment for {disc.discipline_name}. "
                    f"Total: ${disc.total_cost:.2f}",
                ),
            ))
        return validations

    def _validate_numbered_equipment(self, sheet, budgets, by_kind) -> List[SheetValidation]:
        equipment = sheet.result
        info = (
            f"{sheet.sheet_name} contains discipline-specific equipment for "
            f"{equipment.discipline_name}. Total: ${equipment.total_cost:.2f}"
        )
        return [SheetValidation(
            sheet_name=sheet.sheet_name,
            errors=tuple(equipment.errors),
            warnings=tuple(equipment.warnings) + (info,),
        )]

    # =========================================================================
    # CROSS-SHEET RULES
    # =========================================================================

    def _cross_sheet_rules(self, budgets, by_kind) -> List[CrossSheetRule]:
        rules = []

        if SheetKind.STAFF in by_kind and SheetKind.DIRECTS in by_kind:
            rules.append(CrossSheetRule(
                rule="Labor totals consistency",
                is_valid=True,
                message="Direct and indirect labor should reconcile with BUDGETS labor totals",
            ))

        shared = sum(r.grand_total for r in by_kind.get(SheetKind.GENERAL_EQUIPMENT, ()))
        discipline_specific = (
            sum(r.grand_total for r in by_kind.get(SheetKind.DISC_EQUIPMENT, ()))
            + sum(r.total_cost for r in by_kind.get(SheetKind.NUMBERED_EQUIPMENT, ()))
        )
        if any(kind in by_kind for kind in (
            SheetKind.GENERAL_EQUIPMENT, SheetKind.DISC_EQUIPMENT, SheetKind.NUMBERED_EQUIPMENT,
        )):
            total = shared + discipline_specific
            rules.append(CrossSheetRule(
                rule="Equipment totals breakdown",
                is_valid=True,
                message=(
                    f"Total equipment: ${total:.2f} (Shared: ${shared:.2f}, "
                    f"Discipline-specific: ${discipline_specific:.2f})"
                ),
                details=MappingProxyType({
                    "shared_equipment": shared,
                    "discipline_equipment": discipline_specific,
                    "total": total,
                }),
            ))

        known = {disc.discipline_name for disc in budgets.disciplines}
        for name in self._detail_disciplines(by_kind):
            if name not in known:
                rules.append(CrossSheetRule(
                    rule="Discipline consistency",
                    is_valid=False,
                    message=f'Discipline "{name}" found in detail sheets but not in BUDGETS',
                ))

        return rules

    @staticmethod
    def _detail_disciplines(by_kind) -> List[str]:
        """Discipline names used by detail sheets, first-seen order."""
        seen: Set[str] = set()
        names = []

        def add(name):
            if name and name not in seen:
                seen.add(name)
                names.append(name)

        for kind in (SheetKind.DIRECTS, SheetKind.MATERIALS,
                     SheetKind.GENERAL_EQUIPMENT, SheetKind.DISC_EQUIPMENT):
            for result in by_kind.get(kind, ()):
                for disc in result.disciplines:
                    add(disc.discipline_name)
        for result in by_kind.get(SheetKind.NUMBERED_EQUIPMENT, ()):
            add(result.discipline_name)
        return names


def generate_report(validation: ValidationResult) -> str:
    """Render a ValidationResult as a plain-text report."""
    lines = [
        "=== BUDGET VALIDATION REPORT ===",
        f"Overall Status: {'VALID' if validation.is_valid else 'INVALID'}",
        f"Sheets Validated: {len(validation.sheets)}",
        f"Total Errors: {validation.error_count}",
        f"Total Warnings: {validation.warning_count}",
        "",
    ]

    for sheet in validation.sheets:
        if not sheet.errors and not sheet.warnings:
            continue
        lines.append(f"--- {sheet.sheet_name} ---")
        lines.append(f"Status: {'Valid' if sheet.is_valid else 'Invalid'}")

        comparison = sheet.budget_comparison
        if comparison:
            lines.append(f"Budget: ${comparison.budget_value:.2f}")
            lines.append(f"Sheet: ${comparison.sheet_value:.2f}")
            lines.append(
                f"Difference: ${comparison.difference:.2f} ({comparison.percent_difference:.2f}%)"
            )

        if sheet.errors:
            lines.append("Errors:")
            lines.extend(f"  - {error}" for error in sheet.errors)
        if sheet.warnings:
            lines.append("Warnings:")
            lines.extend(f"  - {warning}" for warning in sheet.warnings)
        lines.append("")

    if validation.cross_sheet:
        lines.append("--- CROSS-SHEET VALIDATION ---")
        for rule in validation.cross_sheet:
            mark = "OK" if rule.is_valid else "FAIL"
            lines.append(f"[{mark}] {rule.rule}: {rule.message}")

    return "\n".join(lines)
