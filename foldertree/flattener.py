"""Pre-order flattening of a folder tree, for bulk selection and ordered deletes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Sequence

from .path_address import PathAddress, encode
from .tree import TreeModel, TreeNode


@dataclass(frozen=True)
class FlattenedNode:
    node: TreeNode
    depth: int
    indices: PathAddress

    @property
    def path(self) -> str:
        return encode(self.indices)

    @property
    def name(self) -> str:
        return self.node.name

    @property
    def backend_id(self) -> str | None:
        return self.node.backend_id


class CascadeFlattener:
    """Lists every node of a tree with its depth (roots are 0) and address."""

    @staticmethod
    def flatten(model: TreeModel | Sequence[TreeNode]) -> list[FlattenedNode]:
        roots = model.roots if isinstance(model, TreeModel) else model
        flat: list[FlattenedNode] = []

        def visit(siblings: Sequence[TreeNode], depth: int, prefix: PathAddress) -> None:
            for index, node in enumerate(siblings):
                indices = prefix + (index,)
                flat.append(FlattenedNode(node, depth, indices))
                visit(node.children, depth + 1, indices)

        visit(roots, 0, ())
        return flat

    @staticmethod
    def deletion_order(flat: Sequence[FlattenedNode]) -> list[FlattenedNode]:
        """Deepest-first order: every node comes after all of its descendants."""
        return list(reversed(flat))


def flatten(model: TreeModel | Sequence[TreeNode]) -> list[FlattenedNode]:
    return CascadeFlattener.flatten(model)


class Selection:
    """Set of backend ids picked from a flattened list."""

    def __init__(self, flat: Sequence[FlattenedNode]):
        self._available = [entry.backend_id for entry in flat if entry.backend_id is not None]
        self._selected: set[str] = set()

    def __contains__(self, backend_id: object) -> bool:
        return backend_id in self._selected

    def __len__(self) -> int:
        return len(self._selected)

    @property
    def available(self) -> list[str]:
        return list(self._available)

    def toggle(self, backend_id: str) -> bool:
        """Flip one id; returns whether it is now selected."""
        if backend_id not in self._available:
            raise KeyError(f"Folder {backend_id!r} is not in this list")
        if backend_id in self._selected:
            self._selected.discard(backend_id)
            return False
        self._selected.add(backend_id)
        return True

    def select(self, backend_ids: Iterable[str]) -> None:
        for backend_id in backend_ids:
            if backend_id not in self._selected:
                self.toggle(backend_id)

    def select_all(self) -> None:
        self._selected = set(self._available)

    def clear(self) -> None:
        self._selected.clear()

    def ids(self) -> list[str]:
        """Selected ids in list order."""
        return [backend_id for backend_id in self._available if backend_id in self._selected]


__all__ = ["CascadeFlattener", "FlattenedNode", "Selection", "flatten"]
