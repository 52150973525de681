"""Console rendering of a TreeModel with per-node expand/collapse state."""

from __future__ import annotations

import io
from typing import Sequence

from rich.console import Console
from rich.text import Text
from rich.tree import Tree

from .path_address import PathAddress, PathLike, as_indices, encode
from .tree import TreeModel, TreeNode


class TreeView:
    """Expand state is keyed by encoded path address.

    Addresses shift when siblings are inserted or removed above them, so
    call ``forget()`` after structural edits that should reset the view.
    """

    def __init__(self, title: str = "Folders"):
        self.title = title
        self._expanded: set[str] = set()

    def is_expanded(self, path: PathLike) -> bool:
        return encode(as_indices(path)) in self._expanded

    def toggle(self, path: PathLike) -> bool:
        key = encode(as_indices(path))
        if key in self._expanded:
            self._expanded.discard(key)
            return False
        self._expanded.add(key)
        return True

    def expand_all(self, model: TreeModel) -> None:
        self._expanded.update(_branch_paths(model.roots, ()))

    def collapse_all(self) -> None:
        self._expanded.clear()

    forget = collapse_all

    def render(self, model: TreeModel) -> Tree:
        tree = Tree(Text(self.title, style="bold"))
        self._add(tree, model.roots, ())
        if not model.roots:
            tree.add(Text("(no folders)", style="dim"))
        return tree

    def render_text(self, model: TreeModel, width: int = 100) -> str:
        console = Console(width=width, record=True, color_system=None, file=io.StringIO())
        console.print(self.render(model))
        return console.export_text()

    def _add(self, branch: Tree, siblings: Sequence[TreeNode], prefix: PathAddress) -> None:
        for index, node in enumerate(siblings):
            path = prefix + (index,)
            label = Text(node.name, style="bold yellow" if node.children else "yellow")
            if not node.is_persisted:
                label.append(" (new)", style="green")
            if node.children and not self.is_expanded(path):
                label.append(f"  [{node.descendant_count()} subfolders]", style="dim")
                branch.add(label)
                continue
            self._add(branch.add(label), node.children, path)


def _branch_paths(siblings: Sequence[TreeNode], prefix: PathAddress):
    for index, node in enumerate(siblings):
        path = prefix + (index,)
        if node.children:
            yield encode(path)
            yield from _branch_paths(node.children, path)


__all__ = ["TreeView"]
