"""Core data models: rows, patch instructions and the default tree model/state."""

from .row import Row, ROOTLESS_LEVEL
from .patch import (
    RowBlock,
    RemoveRows,
    CreateAfter,
    ReplaceRow,
    ReplaceTree,
    TreePatch,
)
from .tree_model import TreeNode, DefaultTreeModel
from .tree_state import DefaultTreeState

__all__ = [
    "Row",
    "ROOTLESS_LEVEL",
    "RowBlock",
    "RemoveRows",
    "CreateAfter",
    "ReplaceRow",
    "ReplaceTree",
    "TreePatch",
    "TreeNode",
    "DefaultTreeModel",
    "DefaultTreeState",
]
