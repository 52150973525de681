"""Nested folder tree core: model, addressing, loading, saving and cascading deletes."""

from .deletion import CascadeDeleter, DeletePolicy, DeletionReport
from .errors import (
    CascadeDeleteError,
    DuplicateNameError,
    FolderTreeError,
    InvalidNameError,
    MalformedHierarchyError,
    MalformedPathError,
    PathNotFoundError,
    ReconciliationError,
    SessionConsumedError,
)
from .flattener import CascadeFlattener, FlattenedNode, Selection, flatten
from .loader import HierarchyLoader, load_hierarchy
from .models import Category, FolderRecord, NestedFolderSpec, coerce_category, coerce_tree_description
from .reconciler import ReconciliationReport, Reconciler
from .session import FolderCreateSession, FolderEditSession
from .tree import TreeModel, TreeNode
from .validation import is_duplicate
from .view import TreeView

__all__ = [
    "CascadeDeleteError",
    "CascadeDeleter",
    "CascadeFlattener",
    "Category",
    "DeletePolicy",
    "DeletionReport",
    "DuplicateNameError",
    "FlattenedNode",
    "FolderCreateSession",
    "FolderEditSession",
    "FolderRecord",
    "FolderTreeError",
    "HierarchyLoader",
    "InvalidNameError",
    "MalformedHierarchyError",
    "MalformedPathError",
    "NestedFolderSpec",
    "PathNotFoundError",
    "ReconciliationError",
    "ReconciliationReport",
    "Reconciler",
    "Selection",
    "SessionConsumedError",
    "TreeModel",
    "TreeNode",
    "TreeView",
    "coerce_category",
    "coerce_tree_description",
    "flatten",
    "is_duplicate",
    "load_hierarchy",
]
