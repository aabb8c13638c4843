"""Row model: the engine-side representation of one visible node."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional

__all__ = ["Row", "ROOTLESS_LEVEL"]

# Level assigned to the suppressed root in rootless mode
ROOTLESS_LEVEL = -1


@dataclass(eq=False)
class Row:
    """One visible row of the tree.

    Rows live in an arena keyed by ``id`` (see
    :class:`~treepatch.core.registry.ItemRegistry`); links between rows are
    ids, never object references.

    Attributes
    ----------
    id :
        Unique element id, ``<tree_id><separator><counter>``.
    node :
        Model node this row stands for.
    level :
        Depth from the root (root = 0, suppressed root = -1).
    parent_id :
        Id of the parent row, ``None`` for the root row.
    children :
        Ordered child row ids, or ``None`` when the children have not been
        built yet or must be rebuilt. ``[]`` means "built, nothing visible".
    content :
        Presentation payload attached by the populate callback.
    render_children :
        Set while the row is emitted together with its whole subtree.
    """

    id: str
    node: Any
    level: int
    parent_id: Optional[str] = None
    children: Optional[List[str]] = None
    content: Any = None
    render_children: bool = False

    @property
    def has_child_rows(self) -> bool:
        return bool(self.children)

    @property
    def is_hidden_root(self) -> bool:
        return self.level == ROOTLESS_LEVEL

    def __repr__(self) -> str:
        return f"Row(id={self.id!r}, node={self.node!r}, level={self.level})"
