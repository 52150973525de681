"""Turn backend folder payloads into TreeModel instances.

The backend is not consistent about shapes: hierarchies come as a bare list
or wrapped in an object (``items``, ``carpetas``, ``folders``, ...); nested
children live under ``subfolders`` or ``subcarpetas``; some endpoints return
a flat list whose records only point at their parent through
``parentFolder``. Everything is normalized here, through FolderRecord, so the
rest of the package only ever sees TreeNode.
"""

from __future__ import annotations

import logging
from typing import Any, Mapping, Optional, Sequence

from pydantic import ValidationError

from .errors import MalformedHierarchyError
from .models import DEFAULT_CATEGORY, Category, FolderRecord, coerce_category
from .tree import TreeModel, TreeNode

logger = logging.getLogger(__name__)

# wrapper keys, tried in order; the first one holding a non-empty list wins
LIST_KEYS = ("items", "carpetas", "folders", "subfolders", "subcarpetas")


class HierarchyLoader:
    """Build TreeModels from backend payloads, keeping backend ids on every node."""

    def __init__(self, default_category: Category = DEFAULT_CATEGORY):
        self.default_category = default_category

    def load(self, raw_payload: Any) -> TreeModel:
        """Build a tree from a nested projection or a flat ``parentFolder`` list.

        Raises MalformedHierarchyError if the payload is neither a list nor
        an object carrying one of LIST_KEYS.
        """
        records = self._parse(_unwrap(raw_payload))
        if any(record.children for record in records):
            # flat listings may also carry subfolders: a top-level record already nested under another is no root
            built = [self._from_nested(record) for record in records]
            nested = {node.backend_id for root in built for child in root.children
                      for node in child.walk() if node.backend_id is not None}
            roots = [node for node in built if node.backend_id is None or node.backend_id not in nested]
        else:
            roots = self._from_flat(records)
        model = TreeModel(roots)
        logger.debug("Loaded hierarchy with %d roots and %d folders", len(model.roots), model.count())
        return model

    def load_or_empty(self, raw_payload: Any) -> tuple[TreeModel, Optional[str]]:
        """Like load(), but a malformed payload gives an empty tree and a warning."""
        try:
            return self.load(raw_payload), None
        except MalformedHierarchyError as exc:
            warning = f"Could not read folder hierarchy: {exc}"
            logger.warning(warning)
            return TreeModel(), warning

    def find_subtree(self, raw_payload: Any, folder_id: str) -> Optional[TreeModel]:
        """Tree of the children of ``folder_id`` inside a full hierarchy, or None if absent."""
        full = self.load(raw_payload)
        folder = full.find_by_backend_id(folder_id)
        if folder is None:
            return None
        return TreeModel(list(folder.children))

    # ------------------------------------------------------------------

    def _parse(self, items: Sequence[Any]) -> list[FolderRecord]:
        records = []
        for item in items:
            if not isinstance(item, Mapping):
                raise MalformedHierarchyError(f"Folder entries must be objects, got {type(item).__name__}")
            if not item.get("name"):
                logger.warning("Skipping folder without a name: %r", item.get("_id", item.get("id")))
                continue
            try:
                records.append(FolderRecord.model_validate(item))
            except ValidationError as exc:
                raise MalformedHierarchyError(f"Invalid folder entry: {exc}") from exc
        return records

    def _node(self, record: FolderRecord, children: list[TreeNode]) -> TreeNode:
        return TreeNode(
            name=record.name,
            category=coerce_category(record.category, self.default_category),
            backend_id=record.id,
            children=children,
        )

    def _from_nested(self, record: FolderRecord) -> TreeNode:
        children = self._parse(_unwrap(record.children))
        return self._node(record, [self._from_nested(child) for child in children])

    def _from_flat(self, records: list[FolderRecord]) -> list[TreeNode]:
        known = {record.id for record in records if record.id is not None}
        by_parent: dict[Optional[str], list[FolderRecord]] = {}
        for record in records:
            parent = record.parent_folder if record.parent_folder in known else None
            by_parent.setdefault(parent, []).append(record)

        def build(parent_id: Optional[str], ancestors: frozenset[str]) -> list[TreeNode]:
            nodes = []
            for record in by_parent.get(parent_id, []):
                if record.id in ancestors:
                    continue
                below = build(record.id, ancestors | {record.id}) if record.id is not None else []
                nodes.append(self._node(record, below))
            return nodes

        roots = build(None, frozenset())
        placed = sum(1 + node.descendant_count() for node in roots)
        if placed < len(records):
            logger.warning("Dropped %d folders whose parent chain never reaches a root", len(records) - placed)
        return roots


def _unwrap(payload: Any) -> Sequence[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, Mapping):
        present = [key for key in LIST_KEYS if key in payload]
        for key in present:
            value = payload[key]
            if isinstance(value, list) and value:
                return value
        if present and all(isinstance(payload[key], list) or payload[key] is None for key in present):
            return []
        raise MalformedHierarchyError(f"Unexpected hierarchy object with keys {sorted(payload)[:10]}")
    raise MalformedHierarchyError(f"Unexpected hierarchy payload of type {type(payload).__name__}")


def load_hierarchy(raw_payload: Any, default_category: Category = DEFAULT_CATEGORY) -> TreeModel:
    return HierarchyLoader(default_category).load(raw_payload)


__all__ = ["HierarchyLoader", "LIST_KEYS", "load_hierarchy"]
