"""
Persistence of import results.

BudgetStore is the collaborator interface: every write is keyed by project
id and receives plain dict rows. JsonDirectoryStore writes one JSON file
per collection under <root>/<project_id>/.

save_import_result() flattens an ImportResult into those rows: the 5-level
WBS becomes depth-first node rows and every line item is stamped with the
import batch id.
"""

import json
import logging
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from .models import ImportResult, WBSNode, walk_nodes

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """A store could not persist import data."""


class BudgetStore:
    """Interface of the persistence collaborator."""

    def save_wbs_nodes(self, project_id: str, nodes: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def save_line_items(self, project_id: str, items: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def save_phase_allocations(self, project_id: str, allocations: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def save_direct_labor_allocations(self, project_id: str, allocations: List[Dict[str, Any]]) -> None:
        raise NotImplementedError

    def save_project_totals(self, project_id: str, totals: Dict[str, Any]) -> None:
        raise NotImplementedError


class JsonDirectoryStore(BudgetStore):
    """
    Stores each collection as <root>/<project_id>/<collection>.json.

    Writes replace the previous file for that collection.
    """

    def __init__(self, root: Path):
        self.root = Path(root)

    def project_dir(self, project_id: str) -> Path:
        return self.root / project_id

    def load(self, project_id: str, collection: str) -> Any:
        path = self.project_dir(project_id) / f"{collection}.json"
        try:
            with open(path, encoding="utf-8") as f:
                return json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read {path}: {e}") from e

    def _write(self, project_id: str, collection: str, data: Any) -> None:
        path = self.project_dir(project_id) / f"{collection}.json"
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
        except (OSError, TypeError) as e:
            raise StorageError(f"Could not write {path}: {e}") from e
        logger.debug(f"Wrote {path}")

    def save_wbs_nodes(self, project_id, nodes):
        self._write(project_id, "wbs_nodes", nodes)

    def save_line_items(self, project_id, items):
        self._write(project_id, "line_items", items)

    def save_phase_allocations(self, project_id, allocations):
        self._write(project_id, "phase_allocations", allocations)

    def save_direct_labor_allocations(self, project_id, allocations):
        self._write(project_id, "direct_labor_allocations", allocations)

    def save_project_totals(self, project_id, totals):
        self._write(project_id, "project_totals", totals)


def flatten_wbs(roots: Sequence[WBSNode]) -> List[Dict[str, Any]]:
    """Depth-first node rows without nested children."""
    return [node.to_dict(include_children=False) for node in walk_nodes(roots)]


def save_import_result(
    store: BudgetStore,
    result: ImportResult,
    project_id: Optional[str] = None,
    batch_id: Optional[str] = None,
) -> str:
    """
    Persist an import through a store.

    Args:
        store: BudgetStore implementation
        result: ImportResult to persist
        project_id: Overrides result.project_id
        batch_id: Import batch id; generated when omitted

    Returns:
        The import batch id
    """
    project_id = project_id or result.project_id
    if not project_id:
        raise StorageError("A project id is required to save an import")

    batch_id = batch_id or str(uuid.uuid4())
    imported_at = datetime.now().isoformat()

    nodes = flatten_wbs(result.wbs_structure_5_level)
    items = [
        {**item.to_dict(), "project_id": project_id, "import_batch_id": batch_id}
        for item in result.line_items
    ]

    store.save_wbs_nodes(project_id, nodes)
    store.save_line_items(project_id, items)
    store.save_phase_allocations(project_id, [a.to_dict() for a in result.phase_allocations])
    store.save_direct_labor_allocations(
        project_id, [a.to_dict() for a in result.direct_labor_allocations]
    )
    store.save_project_totals(project_id, {
        **result.totals.to_dict(),
        "import_batch_id": batch_id,
        "imported_at": imported_at,
        "is_valid": result.is_valid,
    })

    logger.info(
        f"Saved import {batch_id} for {project_id}: {len(nodes)} WBS nodes, {len(items)} line items"
    )
    return batch_id
