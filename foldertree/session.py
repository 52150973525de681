"""Edit and create flows built on TreeModel, HierarchyLoader and Reconciler.

A session owns one TreeModel. Edits are applied synchronously; ``submit``
sends the result to the backend. After a successful submit the session is
closed and a fresh one should be loaded. After a failed submit the model
keeps the backend ids assigned so far, so calling ``submit`` again resumes.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

import httpx

from connectors.folder_connector import folder_id_of
from connectors.folder_interface import FolderBackend, FolderConfig

from .errors import InvalidNameError, MalformedHierarchyError, ReconciliationError, SessionConsumedError
from .loader import HierarchyLoader
from .models import DEFAULT_CATEGORY, Category, NestedFolderSpec, coerce_category
from .path_address import PathLike, as_indices
from .reconciler import ReconciliationReport, Reconciler
from .tree import TreeModel, TreeNode

logger = logging.getLogger(__name__)


class _TreeSession:
    def __init__(self, backend: FolderBackend, model: Optional[TreeModel] = None):
        self.backend = backend
        self.model = model or TreeModel()
        self.submitted = False
        self.warnings: list[str] = []

    def _check_open(self) -> None:
        if self.submitted:
            raise SessionConsumedError("This session was already submitted; reload the folder to edit it again")

    def add_folder(self, parent_path: PathLike, name: str, category: Optional[Category] = None) -> TreeNode:
        self._check_open()
        return self.model.add_folder(parent_path, name, category)

    def rename_folder(self, path: PathLike, new_name: str) -> TreeNode:
        self._check_open()
        return self.model.rename_node(path, new_name)

    def remove_folder(self, path: PathLike) -> TreeNode:
        self._check_open()
        return self.model.remove_node(path)

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)


class FolderEditSession(_TreeSession):
    """Edit an existing folder: its name, description and whole subfolder tree."""

    def __init__(self, backend: FolderBackend, folder: Mapping[str, Any], loader: Optional[HierarchyLoader] = None,
                 default_category: Optional[Category] = None):
        super().__init__(backend)
        folder_id = folder_id_of(folder)
        if folder_id is None:
            raise ValueError("The folder to edit has no id")
        self.folder_id: str = folder_id
        self.name: str = folder.get("name") or ""
        self.description: str = folder.get("description") or folder.get("descripcion") or ""
        self.loader = loader or HierarchyLoader()
        self.category = coerce_category(folder.get("category"), self.loader.default_category)
        self.default_category = default_category

    def add_folder(self, parent_path: PathLike, name: str, category: Optional[Category] = None) -> TreeNode:
        # direct children of the edited folder inherit its category
        if category is None and self.model.default_category is None and not as_indices(parent_path):
            category = self.category
        return super().add_folder(parent_path, name, category)

    async def load(self) -> TreeModel:
        """Load the subfolder tree of the edited folder.

        The folder is looked up in the full hierarchy first; if it is not
        there the subfolders route is used. If both fail the session keeps an
        empty tree and records a warning.
        """
        model = await self._from_hierarchy()
        if model is None:
            model = await self._from_subfolders()
        model.default_category = self.default_category
        self.model = model
        self.submitted = False
        return model

    async def _from_hierarchy(self) -> Optional[TreeModel]:
        try:
            raw = await self.backend.get_hierarchical_structure()
            return self.loader.find_subtree(raw, self.folder_id)
        except (httpx.HTTPError, MalformedHierarchyError) as exc:
            logger.debug("Hierarchy lookup for %s failed: %s", self.folder_id, exc)
            return None

    async def _from_subfolders(self) -> TreeModel:
        try:
            raw = await self.backend.get_subfolders(self.folder_id)
        except httpx.HTTPError as exc:
            self._warn(f"Could not load subfolders of {self.name or self.folder_id}: {exc}")
            return TreeModel()
        model, warning = self.loader.load_or_empty(raw)
        if warning:
            self._warn(warning)
        return model

    async def submit(self, name: Optional[str] = None, description: Optional[str] = None) -> ReconciliationReport:
        """Update the folder itself, then create/update its whole subtree beneath it."""
        self._check_open()
        new_name = (self.name if name is None else name).strip()
        if not new_name:
            raise InvalidNameError("Folder name cannot be empty")
        new_description = self.description if description is None else description
        try:
            await self.backend.update_folder(self.folder_id, new_name, new_description)
        except httpx.HTTPError as exc:
            raise ReconciliationError(f"Could not save folder {new_name!r}: {exc}", node_name=new_name, log=True) from exc
        self.name, self.description = new_name, new_description
        report = await Reconciler(self.backend).run(self.model, parent_id=self.folder_id)
        report.updated.insert(0, self.folder_id)
        self.submitted = True
        return report


class FolderCreateSession(_TreeSession):
    """Build a brand-new folder tree and create it in a single create-nested call."""

    def __init__(self, backend: FolderBackend, name: str = "", category: Category = DEFAULT_CATEGORY,
                 description: str = ""):
        super().__init__(backend, TreeModel(default_category=category))
        self.name = name
        self.description = description

    @property
    def category(self) -> Category:
        return self.model.default_category or DEFAULT_CATEGORY

    @category.setter
    def category(self, value: Category) -> None:
        # new subfolders follow the currently selected category
        self.model.default_category = Category(value)

    @classmethod
    def from_description(cls, backend: FolderBackend, tree: NestedFolderSpec) -> FolderCreateSession:
        """Session pre-filled from a tree description; sibling names are validated on the way in."""
        session = cls(backend, tree.name, tree.category or DEFAULT_CATEGORY, tree.description)

        def add(parent_path: tuple[int, ...], children: list[NestedFolderSpec]) -> None:
            for index, child in enumerate(children):
                session.add_folder(parent_path, child.name, child.category)
                add(parent_path + (index,), child.subfolders)

        add((), tree.subfolders)
        return session

    def nested_payload(self) -> dict[str, Any]:
        name = (self.name or "").strip()
        if not name:
            raise InvalidNameError("Folder name cannot be empty")
        if any(node.is_persisted for node in self.model.iter_nodes()):
            raise ValueError("create-nested only accepts folders that do not exist yet")
        return {
            "name": name,
            "category": self.category.value,
            "description": self.description,
            "subfolders": [_nested(root) for root in self.model.roots],
        }

    async def submit(self) -> FolderConfig:
        self._check_open()
        payload = self.nested_payload()
        try:
            created = await self.backend.create_nested_folder(payload)
        except httpx.HTTPError as exc:
            raise ReconciliationError(f"Could not create folder {payload['name']!r}: {exc}",
                                      node_name=payload["name"], log=True) from exc
        logger.info("Created folder tree %r with %d subfolders", payload["name"], self.model.count())
        self.submitted = True
        return created


def _nested(node: TreeNode) -> dict[str, Any]:
    return {
        "name": node.name,
        "category": node.category.value,
        "subfolders": [_nested(child) for child in node.children],
    }


__all__ = ["FolderCreateSession", "FolderEditSession"]
