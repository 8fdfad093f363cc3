"""
Budget Workbook Import - CLI Entry Point

Commands:
    import    - Import a workbook; optionally export and store the result
    validate  - Print the validation report for a workbook
    wbs       - Print the generated 5-level WBS
"""

import argparse
import logging
import sys
from pathlib import Path

from .config import load_config
from .exporter import export_to_excel, export_to_json
from .pipeline import BudgetImporter
from .sheets import BUDGETS_SHEET, parse_budgets_sheet
from .storage import JsonDirectoryStore, StorageError, save_import_result
from .validation import generate_report
from .wbs import generate_wbs_structure
from .workbook import WorkbookLoadError, load_workbook

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )


def _importer(args) -> BudgetImporter:
    config = load_config(Path(args.rules) if args.rules else None)
    if getattr(args, 'workers', None) is not None:
        config.max_workers = args.workers
    return BudgetImporter(config)


def cmd_import(args):
    """Import a budget workbook."""
    workbook = load_workbook(args.workbook)
    result = _importer(args).run(workbook, project_id=args.project_id)

    totals = result.totals
    print(f"\nResult: {'VALID' if result.is_valid else 'NOT VALID'}")
    print(f"Sheets: {', '.join(result.sheets_parsed) or '-'}")
    print(f"Disciplines: {len(result.disciplines)}")
    print(f"Line items: {len(result.line_items)}")
    print(f"Labor: ${totals.labor:,.2f}")
    print(f"Material: ${totals.material:,.2f}")
    print(f"Equipment: ${totals.equipment:,.2f}")
    print(f"Subcontract: ${totals.subcontract:,.2f}")
    print(f"Other: ${totals.other:,.2f}")
    print(f"Grand total: ${totals.grand_total:,.2f}")

    for error in result.errors:
        print(f"ERROR: {error}")
    for warning in result.warnings:
        print(f"WARNING: {warning}")

    if args.output:
        output_dir = Path(args.output)
        stem = Path(args.workbook).stem
        export_to_excel(result, output_dir / f"{stem}_import.xlsx")
        export_to_json(result, output_dir / f"{stem}_import.json")
        print(f"Outputs: {output_dir}")

    if args.store:
        if not args.project_id:
            print("--store requires --project-id")
            return 1
        batch_id = save_import_result(JsonDirectoryStore(Path(args.store)), result)
        print(f"Stored import batch {batch_id}")

    return 0


def cmd_validate(args):
    """Print the validation report; exit 2 when the workbook is not valid."""
    workbook = load_workbook(args.workbook)
    result = _importer(args).run(workbook)

    if result.validation_result is None:
        for error in result.errors:
            print(f"ERROR: {error}")
        return 2

    print(generate_report(result.validation_result))
    return 0 if result.is_valid else 2


def cmd_wbs(args):
    """Print the 5-level WBS generated from the BUDGETS sheet."""
    workbook = load_workbook(args.workbook)
    if BUDGETS_SHEET not in workbook:
        print(f"{BUDGETS_SHEET} sheet not found")
        return 1

    budgets = parse_budgets_sheet(workbook[BUDGETS_SHEET])
    for error in budgets.errors:
        print(f"ERROR: {error}")

    wbs = generate_wbs_structure(budgets.disciplines)
    for node in wbs.nodes():
        if node.level > args.max_level:
            continue
        indent = '  ' * (node.level - 1)
        print(f"{indent}{node.code:<16} {node.description:<28} ${node.budget_total:>16,.2f}")
    return 0


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Budget Workbook Import",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Import, export to ./out and store under ./store/P-100
  python -m budget_import import budget.xlsx --project-id P-100 --output ./out --store ./store

  # Validation report only
  python -m budget_import validate budget.xlsx

  # WBS tree down to the cost-type level
  python -m budget_import wbs budget.xlsx --max-level 4
        """
    )

    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose logging')
    parser.add_argument('--rules',
                        help='Import rules YAML (default: packaged rules)')

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Import command
    import_parser = subparsers.add_parser('import', help='Import a budget workbook')
    import_parser.add_argument('workbook', help='Budget workbook (.xlsx)')
    import_parser.add_argument('--project-id', '-p',
                               help='Project id (enables allocations and storage)')
    import_parser.add_argument('--output', '-o',
                               help='Directory for Excel/JSON exports')
    import_parser.add_argument('--store',
                               help='Directory of the JSON store')
    import_parser.add_argument('--workers', type=int,
                               help='Detail sheet parser threads (default: from rules)')
    import_parser.set_defaults(func=cmd_import)

    # Validate command
    validate_parser = subparsers.add_parser('validate', help='Print the validation report')
    validate_parser.add_argument('workbook', help='Budget workbook (.xlsx)')
    validate_parser.set_defaults(func=cmd_validate)

    # WBS command
    wbs_parser = subparsers.add_parser('wbs', help='Print the generated WBS')
    wbs_parser.add_argument('workbook', help='Budget workbook (.xlsx)')
    wbs_parser.add_argument('--max-level', type=int, default=5,
                            help='Deepest level to print (default: 5)')
    wbs_parser.set_defaults(func=cmd_wbs)

    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    if not args.command:
        parser.print_help()
        return 0

    try:
        return args.func(args)
    except WorkbookLoadError as e:
        logger.error(str(e))
        print(f"Could not load workbook: {e}")
        return 1
    except StorageError as e:
        logger.error(str(e))
        print(f"Could not store import: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
