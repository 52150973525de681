"""In-memory folder tree edited before (or after) it exists on the backend."""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Iterator, Optional

from .errors import DuplicateNameError, InvalidNameError, PathNotFoundError
from .models import DEFAULT_CATEGORY, Category
from .path_address import PathAddress, PathLike, as_indices, parent_of, resolve_array, resolve_node
from .validation import is_duplicate

logger = logging.getLogger(__name__)


def _new_key() -> str:
    return uuid.uuid4().hex


@dataclass(eq=False)
class TreeNode:
    """Tree node: a folder and its ordered subfolders.

    ``backend_id`` is set once the folder exists on the backend. ``key`` is a
    surrogate identity assigned at creation; it survives renames, spine
    copies and moves of sibling positions.
    """

    name: str
    category: Category = DEFAULT_CATEGORY
    backend_id: Optional[str] = None
    children: list[TreeNode] = field(default_factory=list)
    key: str = field(default_factory=_new_key)

    @property
    def is_persisted(self) -> bool:
        return self.backend_id is not None

    def walk(self) -> Iterator[TreeNode]:
        """Yield this node and all of its descendants, pre-order."""
        yield self
        for child in self.children:
            yield from child.walk()

    def descendant_count(self) -> int:
        return sum(1 for _ in self.walk()) - 1

    def to_dict(self, with_ids: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {"name": self.name, "category": self.category.value}
        if with_ids:
            data["backend_id"] = self.backend_id
        data["subfolders"] = [child.to_dict(with_ids) for child in self.children]
        return data


class TreeModel:
    """Owns the root folders of a tree and applies addressed edits to them.

    Every edit validates sibling names first and only then replaces the
    arrays along the path from the roots to the edited array with fresh
    copies. Nodes off that path are shared with earlier snapshots, so a
    reference to the previous ``roots`` list keeps a consistent view.

    Renames and the ancestors of every edited array are swapped for new
    TreeNode objects, so a node reference held across an edit can go stale.
    Keys are carried over to the replacements: hold a ``key`` and look the
    node up again with node_by_key() or path_of().
    """

    def __init__(self, roots: Optional[list[TreeNode]] = None, default_category: Optional[Category] = None):
        self._roots: list[TreeNode] = list(roots or [])
        self.default_category = default_category
        self._nodes: dict[str, TreeNode] = {}
        self._paths: dict[str, PathAddress] = {}
        self._reindex()

    @property
    def roots(self) -> list[TreeNode]:
        return self._roots

    def __repr__(self) -> str:
        return f"TreeModel(roots={len(self._roots)}, nodes={self.count()})"

    # ------------------------------------------------------------------
    # queries

    def count(self) -> int:
        """Number of nodes reachable from the roots."""
        return len(self._nodes)

    def iter_nodes(self) -> Iterator[TreeNode]:
        for root in self._roots:
            yield from root.walk()

    def get_subtree(self, path: PathLike) -> TreeNode:
        return resolve_node(self, path)

    def node_by_key(self, key: str) -> TreeNode:
        try:
            return self._nodes[key]
        except KeyError:
            raise KeyError(f"No folder with key {key!r} in this tree") from None

    def path_of(self, key: str) -> PathAddress:
        """Current address of the node with ``key``."""
        try:
            return self._paths[key]
        except KeyError:
            raise KeyError(f"No folder with key {key!r} in this tree") from None

    def find_by_backend_id(self, backend_id: str) -> Optional[TreeNode]:
        for node in self.iter_nodes():
            if node.backend_id == backend_id:
                return node
        return None

    def structure(self, with_ids: bool = True) -> list[dict[str, Any]]:
        """Plain nested representation, without surrogate keys."""
        return [root.to_dict(with_ids) for root in self._roots]

    # ------------------------------------------------------------------
    # path-addressed edits

    def insert_child(self, parent_path: PathLike, node: TreeNode) -> PathAddress:
        """Append ``node`` under ``parent_path`` (``()`` for a new root). Returns its address."""
        indices = as_indices(parent_path)
        name = _clean_name(node.name)
        siblings = resolve_array(self, indices)
        if is_duplicate(name, siblings):
            raise DuplicateNameError(name)
        if any(n.key in self._nodes for n in node.walk()):
            raise ValueError(f"Folder {name!r} is already part of this tree")
        node.name = name
        new_path = indices + (len(siblings),)
        self._rebuild(indices, lambda array: array.append(node))
        logger.debug("Inserted folder %r at %s", name, new_path)
        return new_path

    def add_folder(self, parent_path: PathLike, name: str, category: Optional[Category] = None) -> TreeNode:
        """Create a new (unpersisted) folder under ``parent_path`` and insert it."""
        indices = as_indices(parent_path)
        parent = resolve_node(self, indices) if indices else None
        node = TreeNode(name=name, category=self._category_for(parent, category))
        self.insert_child(indices, node)
        return node

    def rename_node(self, path: PathLike, new_name: str) -> TreeNode:
        parent_path, index = parent_of(path)
        name = _clean_name(new_name)
        siblings = resolve_array(self, parent_path)
        if index >= len(siblings):
            raise PathNotFoundError(as_indices(path), len(parent_path))
        if is_duplicate(name, siblings, exclude_index=index):
            raise DuplicateNameError(name)
        renamed = replace(siblings[index], name=name)

        def _swap(array: list[TreeNode]) -> None:
            array[index] = renamed

        self._rebuild(parent_path, _swap)
        logger.debug("Renamed folder at %s to %r", as_indices(path), name)
        return renamed

    def remove_node(self, path: PathLike) -> TreeNode:
        """Detach the node at ``path`` with its subtree. Backend ids are left alone."""
        parent_path, index = parent_of(path)
        siblings = resolve_array(self, parent_path)
        if index >= len(siblings):
            raise PathNotFoundError(as_indices(path), len(parent_path))
        removed = siblings[index]
        self._rebuild(parent_path, lambda array: array.pop(index))
        logger.debug("Removed folder %r from %s", removed.name, as_indices(path))
        return removed

    # ------------------------------------------------------------------
    # key-addressed edits

    def insert_child_at(self, parent_key: Optional[str], node: TreeNode) -> PathAddress:
        parent_path = () if parent_key is None else self.path_of(parent_key)
        return self.insert_child(parent_path, node)

    def rename(self, key: str, new_name: str) -> TreeNode:
        return self.rename_node(self.path_of(key), new_name)

    def remove(self, key: str) -> TreeNode:
        return self.remove_node(self.path_of(key))

    # ------------------------------------------------------------------
    # internals

    def _category_for(self, parent: Optional[TreeNode], explicit: Optional[Category]) -> Category:
        if explicit is not None:
            return explicit
        if self.default_category is not None:
            return self.default_category
        if parent is not None:
            return parent.category
        return DEFAULT_CATEGORY

    def _rebuild(self, parent_path: PathAddress, change: Callable[[list[TreeNode]], Any]) -> None:
        """Copy the array spine down to ``parent_path`` and apply ``change`` to its last array."""

        def rebuild(siblings: list[TreeNode], remaining: PathAddress) -> list[TreeNode]:
            array = list(siblings)
            if not remaining:
                change(array)
                return array
            index = remaining[0]
            array[index] = replace(array[index], children=rebuild(array[index].children, remaining[1:]))
            return array

        self._roots = rebuild(self._roots, parent_path)
        self._reindex()

    def _reindex(self) -> None:
        nodes: dict[str, TreeNode] = {}
        paths: dict[str, PathAddress] = {}

        def visit(siblings: list[TreeNode], prefix: PathAddress) -> None:
            for index, node in enumerate(siblings):
                path = prefix + (index,)
                nodes[node.key] = node
                paths[node.key] = path
                visit(node.children, path)

        visit(self._roots, ())
        self._nodes = nodes
        self._paths = paths


def _clean_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise InvalidNameError("Folder name cannot be empty")
    return cleaned


__all__ = ["TreeModel", "TreeNode"]
