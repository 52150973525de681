"""Exceptions raised by the folder tree core."""

from __future__ import annotations

import logging
from typing import Sequence

mylogger = logging.getLogger(__name__)


class FolderTreeError(Exception):
    """Base class for folder tree errors. Optionally logs itself on creation."""

    def __init__(self, message: str = "A folder tree error occurred", log: bool = False):
        self.message = message
        super().__init__(self.message)
        if log:
            mylogger.error(message)


class MalformedPathError(FolderTreeError, ValueError):
    """A path address string or index sequence is not well formed."""


class PathNotFoundError(FolderTreeError, LookupError):
    """A path address points outside the current tree (usually a stale path)."""

    def __init__(self, path: Sequence[int], depth: int, log: bool = False):
        self.path = tuple(path)
        self.depth = depth
        super().__init__(f"Path {'-'.join(map(str, self.path)) or '<root>'} not found at depth {depth}", log=log)


class InvalidNameError(FolderTreeError, ValueError):
    """A folder name is empty or blank."""


class DuplicateNameError(FolderTreeError):
    """A sibling with the same name (case-insensitive) already exists."""

    def __init__(self, name: str, log: bool = False):
        self.name = name
        super().__init__(f"A folder named {name!r} already exists at this level", log=log)


class MalformedHierarchyError(FolderTreeError):
    """The backend returned a hierarchy payload of an unexpected shape."""


class ReconciliationError(FolderTreeError):
    """A create or update call failed while saving a tree.

    Nodes processed before the failure stay persisted and keep the backend
    ids assigned to them.
    """

    def __init__(self, message: str, node_name: str | None = None, created: int = 0, updated: int = 0, log: bool = False):
        self.node_name = node_name
        self.created = created
        self.updated = updated
        super().__init__(message, log=log)


class CascadeDeleteError(FolderTreeError):
    """A delete call failed during a cascading delete."""

    def __init__(self, message: str, folder_id: str | None = None, deleted: Sequence[str] = (), log: bool = False):
        self.folder_id = folder_id
        self.deleted = list(deleted)
        super().__init__(message, log=log)


class SessionConsumedError(FolderTreeError):
    """The edit session was already submitted; reload before editing again."""


__all__ = [
    "CascadeDeleteError",
    "DuplicateNameError",
    "FolderTreeError",
    "InvalidNameError",
    "MalformedHierarchyError",
    "MalformedPathError",
    "PathNotFoundError",
    "ReconciliationError",
    "SessionConsumedError",
]
