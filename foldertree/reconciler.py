"""Save an edited TreeModel to the backend's flat folder collection."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from connectors.folder_connector import folder_id_of
from connectors.folder_interface import FolderBackend

from .errors import ReconciliationError
from .tree import TreeModel, TreeNode

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    created: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)

    @property
    def calls(self) -> int:
        return len(self.created) + len(self.updated)


class Reconciler:
    """Walks a tree depth-first and creates or updates each folder.

    A folder without ``backend_id`` is created under its parent's id and
    gets the returned id assigned in place. A folder with one is updated
    with its name only; category edits are not sent for existing folders.
    The update is sent even when the name did not change.

    Calls are awaited one at a time, so a child is never created before its
    parent's id is known. The first failing call aborts the walk: folders
    handled before it stay saved and keep their ids, so running the same
    model again resumes instead of creating them twice.
    """

    def __init__(self, backend: FolderBackend):
        self.backend = backend

    async def run(self, model: TreeModel, parent_id: Optional[str] = None) -> ReconciliationReport:
        """Reconcile every root of ``model`` under ``parent_id`` (top level if None)."""
        report = ReconciliationReport()
        logger.info("Reconciling %d folders under %s", model.count(), parent_id or "<top level>")
        for root in list(model.roots):
            await self._reconcile(root, parent_id, report)
        logger.info("Reconciliation done: %d created, %d updated", len(report.created), len(report.updated))
        return report

    async def _reconcile(self, node: TreeNode, parent_id: Optional[str], report: ReconciliationReport) -> None:
        try:
            if node.backend_id is None:
                created = await self.backend.create_folder(node.name, node.category.value, parent_id)
                new_id = folder_id_of(created)
                if new_id is None:
                    raise ValueError(f"backend returned no id for {node.name!r}")
                node.backend_id = new_id
                report.created.append(new_id)
                logger.info("Created folder %r (%s) under %s", node.name, new_id, parent_id)
            else:
                await self.backend.update_folder(node.backend_id, node.name)
                report.updated.append(node.backend_id)
                logger.debug("Updated folder %r (%s)", node.name, node.backend_id)
        except (httpx.HTTPError, ValueError) as exc:
            raise ReconciliationError(
                f"Could not save folder {node.name!r}: {_describe(exc)}",
                node_name=node.name,
                created=len(report.created),
                updated=len(report.updated),
                log=True,
            ) from exc

        for child in list(node.children):
            await self._reconcile(child, node.backend_id, report)


def _describe(exc: Exception) -> str:
    if isinstance(exc, httpx.HTTPStatusError):
        detail = exc.response.text.strip()
        return f"{exc.response.status_code} {detail}" if detail else str(exc.response.status_code)
    return str(exc) or type(exc).__name__


__all__ = ["ReconciliationReport", "Reconciler"]
