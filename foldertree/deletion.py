"""Cascading folder deletion driven by a flattened subfolder list."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional, Sequence

import httpx

from connectors.folder_interface import FolderBackend

from .errors import CascadeDeleteError
from .flattener import CascadeFlattener, FlattenedNode
from .loader import HierarchyLoader

logger = logging.getLogger(__name__)


class DeletePolicy(str, Enum):
    SUBTREE = "subtree"        # target plus every descendant
    TARGET_ONLY = "target"     # target only; the backend decides what happens to its children
    SELECTED = "selected"      # only the picked descendants, each on its own


@dataclass
class DeletionReport:
    deleted: list[str] = field(default_factory=list)
    skipped: int = 0


class CascadeDeleter:
    """Deletes a folder and/or its descendants, one awaited call at a time.

    Subtree deletion goes deepest-first so no folder is deleted while it
    still has children. Selected deletion uses the same order restricted to
    the selection; descendants left out of the selection stay on the
    backend (orphaned unless the backend cascades).
    """

    def __init__(self, backend: FolderBackend, loader: Optional[HierarchyLoader] = None):
        self.backend = backend
        self.loader = loader or HierarchyLoader()
        self.warnings: list[str] = []

    async def load_subfolders(self, folder_id: str) -> list[FlattenedNode]:
        """Flattened descendants of ``folder_id``; an unreadable payload gives an empty list."""
        raw = await self.backend.get_subfolders(folder_id)
        model, warning = self.loader.load_or_empty(raw)
        if warning:
            self.warnings.append(warning)
        return CascadeFlattener.flatten(model)

    async def delete(
        self,
        folder_id: str,
        flat: Sequence[FlattenedNode],
        policy: DeletePolicy,
        selected: Iterable[str] = (),
    ) -> DeletionReport:
        policy = DeletePolicy(policy)
        if policy is DeletePolicy.SUBTREE:
            targets = [entry.backend_id for entry in CascadeFlattener.deletion_order(flat)]
            targets.append(folder_id)
        elif policy is DeletePolicy.TARGET_ONLY:
            targets = [folder_id]
        else:
            targets = self._selected_targets(flat, selected)

        report = DeletionReport()
        logger.info("Deleting %d folders from %s (policy %s)", len(targets), folder_id, policy.value)
        for target in targets:
            if target is None:
                # never saved, nothing to delete on the backend
                report.skipped += 1
                continue
            try:
                await self.backend.delete_folder(target)
            except httpx.HTTPError as exc:
                raise CascadeDeleteError(
                    f"Could not delete folder {target}: {exc}",
                    folder_id=target,
                    deleted=report.deleted,
                    log=True,
                ) from exc
            report.deleted.append(target)
            logger.debug("Deleted folder %s", target)
        return report

    async def delete_folder(self, folder_id: str, policy: DeletePolicy, selected: Iterable[str] = ()) -> DeletionReport:
        """Load the descendants of ``folder_id`` and delete according to ``policy``."""
        flat = await self.load_subfolders(folder_id)
        return await self.delete(folder_id, flat, policy, selected)

    @staticmethod
    def _selected_targets(flat: Sequence[FlattenedNode], selected: Iterable[str]) -> list[Optional[str]]:
        wanted = set(selected)
        if not flat:
            raise ValueError("This folder has no subfolders to select")
        if not wanted:
            raise ValueError("Select at least one subfolder to delete")
        known = {entry.backend_id for entry in flat}
        unknown = wanted - known
        if unknown:
            raise ValueError(f"Not subfolders of this folder: {', '.join(sorted(unknown))}")
        return [entry.backend_id for entry in CascadeFlattener.deletion_order(flat) if entry.backend_id in wanted]


__all__ = ["CascadeDeleter", "DeletePolicy", "DeletionReport"]
