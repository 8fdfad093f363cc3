"""
Import configuration loaded from rules/import_rules.yaml.

Falls back to built-in defaults when the rules file is missing or broken,
so the engine always has a complete set of thresholds.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).parent / "rules" / "import_rules.yaml"


@dataclass
class ImportConfig:
    """Reconciliation thresholds and template constants."""
    strict_tolerance: float = 0.01
    aggregate_tolerance_percent: float = 1.0

    constructability_discipline: str = "CONSTRUCTABILITY"
    constructability_ratio_min: float = 10.0
    constructability_ratio_max: float = 40.0
    constructability_review_threshold: float = 0.50
    constructability_expected_categories: int = 7

    staff_discipline: str = "GENERAL STAFFING"
    staff_expected_phases: int = 4
    weeks_per_month: float = 4.33

    materials_block_stride: int = 8
    materials_first_block_row: int = 1
    materials_last_block_row: int = 200

    # 1-based, inclusive
    indirects_first_row: int = 2
    indirects_last_row: int = 42

    max_workers: int = 4

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ImportConfig":
        """Build a config from the nested rules mapping."""
        tolerances = data.get("tolerances", {}) or {}
        constructability = data.get("constructability", {}) or {}
        staff = data.get("staff", {}) or {}
        materials = data.get("materials", {}) or {}
        indirects = data.get("indirects", {}) or {}
        pipeline = data.get("pipeline", {}) or {}
        defaults = cls()

        return cls(
            strict_tolerance=float(tolerances.get("strict_abs", defaults.strict_tolerance)),
            aggregate_tolerance_percent=float(
                tolerances.get("aggregate_percent", defaults.aggregate_tolerance_percent)
            ),
            constructability_discipline=str(
                constructability.get("discipline", defaults.constructability_discipline)
            ),
            constructability_ratio_min=float(
                constructability.get("expected_ratio_min", defaults.constructability_ratio_min)
            ),
            constructability_ratio_max=float(
                constructability.get("expected_ratio_max", defaults.constructability_ratio_max)
            ),
            constructability_review_threshold=float(
                constructability.get("review_threshold", defaults.constructability_review_threshold)
            ),
            constructability_expected_categories=int(
                constructability.get("expected_categories", defaults.constructability_expected_categories)
            ),
            staff_discipline=str(staff.get("discipline", defaults.staff_discipline)),
            staff_expected_phases=int(staff.get("expected_phases", defaults.staff_expected_phases)),
            weeks_per_month=float(staff.get("weeks_per_month", defaults.weeks_per_month)),
            materials_block_stride=int(materials.get("block_stride", defaults.materials_block_stride)),
            materials_first_block_row=int(
                materials.get("first_block_row", defaults.materials_first_block_row)
            ),
            materials_last_block_row=int(
                materials.get("last_block_row", defaults.materials_last_block_row)
            ),
            indirects_first_row=int(indirects.get("first_row", defaults.indirects_first_row)),
            indirects_last_row=int(indirects.get("last_row", defaults.indirects_last_row)),
            max_workers=int(pipeline.get("max_workers", defaults.max_workers)),
        )


def load_config(rules_path: Optional[Path] = None) -> ImportConfig:
    """
    Load import rules from YAML.

    Args:
        rules_path: Optional rules file; defaults to the packaged rules

    Returns:
        ImportConfig (defaults when the file cannot be read)
    """
    path = Path(rules_path) if rules_path else DEFAULT_RULES_PATH

    if not path.exists():
        logger.warning(f"Rules file not found at {path}, using defaults")
        return ImportConfig()

    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        logger.debug(f"Loaded import rules from {path}")
        return ImportConfig.from_dict(data)
    except (yaml.YAMLError, OSError, AttributeError, TypeError, ValueError) as e:
        logger.error(f"Failed to load import rules from {path}: {e}")
        return ImportConfig()
