"""Sibling name checks. Uniqueness is only ever required among siblings."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Sequence

if TYPE_CHECKING:
    from .tree import TreeNode


def normalize_name(name: str) -> str:
    return name.casefold()


def is_duplicate(candidate_name: str, siblings: "Sequence[TreeNode]", exclude_index: Optional[int] = None) -> bool:
    """True if a sibling other than ``exclude_index`` has the same name, ignoring case."""
    wanted = normalize_name(candidate_name)
    for index, sibling in enumerate(siblings):
        if index == exclude_index:
            continue
        if sibling.name and normalize_name(sibling.name) == wanted:
            return True
    return False


__all__ = ["is_duplicate", "normalize_name"]
