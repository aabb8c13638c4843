"""Top-level package of treepatch, an incremental tree reconciliation engine.

Front-ends (Tk widgets, web handlers) should only depend on the public API
exposed here rather than importing internal modules directly.
"""

from .core.engine import TreeReconciler
from .core.models import DefaultTreeModel, DefaultTreeState, TreeNode, TreePatch

__all__: list[str] = [
    "TreeReconciler",
    "DefaultTreeModel",
    "DefaultTreeState",
    "TreeNode",
    "TreePatch",
]
