"""Position-based addresses into a folder tree.

A path address is a sequence of sibling indices: the first selects a root
folder, each following one selects a child of the previous folder. Its text
form joins the indices with ``-`` (``"2-0-1"``); the empty string is the root
level itself.

Addresses are positions, not identities: any insertion or removal above or
beside a node shifts the addresses computed before it. Hold on to a node's
``key`` (see ``TreeModel.path_of``) when an address has to survive edits.
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Iterable, Sequence, Union

from .errors import MalformedPathError, PathNotFoundError

if TYPE_CHECKING:
    from .tree import TreeModel, TreeNode

DELIMITER = "-"

_SEGMENT = re.compile(r"[0-9]+", re.ASCII)

PathAddress = tuple[int, ...]
PathLike = Union[str, Sequence[int]]


def encode(indices: Iterable[int]) -> str:
    """Serialize an index sequence, e.g. ``[2, 0, 1]`` -> ``"2-0-1"``."""
    parts = []
    for index in indices:
        if isinstance(index, bool) or not isinstance(index, int) or index < 0:
            raise MalformedPathError(f"Path indices must be non-negative integers, got {index!r}")
        parts.append(str(index))
    return DELIMITER.join(parts)


def decode(text: str) -> PathAddress:
    """Parse ``"2-0-1"`` back into ``(2, 0, 1)``. ``""`` is the root path."""
    if not isinstance(text, str):
        raise MalformedPathError(f"Path must be a string, got {type(text).__name__}")
    if text == "":
        return ()
    segments = text.split(DELIMITER)
    for segment in segments:
        if not _SEGMENT.fullmatch(segment):
            raise MalformedPathError(f"Malformed path {text!r}: segment {segment!r} is not a number")
    return tuple(int(segment) for segment in segments)


def as_indices(path: PathLike) -> PathAddress:
    """Accept either form of an address and return the index tuple."""
    if isinstance(path, str):
        return decode(path)
    indices = tuple(path)
    encode(indices)  # validates
    return indices


def child_path(parent_path: PathLike, index: int) -> PathAddress:
    return as_indices(parent_path) + (index,)


def parent_of(path: PathLike) -> tuple[PathAddress, int]:
    """Split an address into its parent address and its last index."""
    indices = as_indices(path)
    if not indices:
        raise PathNotFoundError(indices, 0)
    return indices[:-1], indices[-1]


def resolve_array(model: "TreeModel | Sequence[TreeNode]", parent_path: PathLike) -> "list[TreeNode]":
    """Return the children list addressed by ``parent_path`` (the roots for ``()``)."""
    indices = as_indices(parent_path)
    current = getattr(model, "roots", model)
    for depth, index in enumerate(indices):
        if index >= len(current):
            raise PathNotFoundError(indices, depth)
        current = current[index].children
    return current


def resolve_node(model: "TreeModel | Sequence[TreeNode]", path: PathLike) -> "TreeNode":
    """Return the node addressed by ``path``."""
    parent_path, index = parent_of(path)
    siblings = resolve_array(model, parent_path)
    if index >= len(siblings):
        raise PathNotFoundError(as_indices(path), len(parent_path))
    return siblings[index]


__all__ = [
    "DELIMITER",
    "PathAddress",
    "PathLike",
    "as_indices",
    "child_path",
    "decode",
    "encode",
    "parent_of",
    "resolve_array",
    "resolve_node",
]
