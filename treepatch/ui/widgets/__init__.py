"""UI widgets package.

Tkinter targets for reconciliation patches.
"""

from .tree_view import PatchedTreeView

__all__ = ["PatchedTreeView"]
