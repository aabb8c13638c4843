from __future__ import annotations

"""In-memory hierarchical model with synchronous change notification.

:class:`DefaultTreeModel` is the reference :class:`TreeModel`: a tree of
:class:`TreeNode` objects plus mutation helpers that update the structure
first and then announce the change to every listener. It is enough to drive
the engine in tests and in simple applications; richer sources only need to
implement the :class:`TreeModel` interface.

Examples
--------
>>> root = TreeNode("A")
>>> model = DefaultTreeModel(root)
>>> b = TreeNode("B")
>>> model.insert_node_into(b, root, 0)   # fires RowsInserted((root,), (b,), (0,))
"""

import logging
from typing import Any, Iterable, List, Optional, Sequence, Tuple

from treepatch.core.events import (
    ModelEvent,
    RowsChanged,
    RowsInserted,
    RowsRemoved,
    StructureChanged,
)
from treepatch.core.interfaces import ModelListener, TreeModel

__all__ = ["TreeNode", "DefaultTreeModel"]

logger = logging.getLogger(__name__)


class TreeNode:
    """Mutable tree node holding a user object and ordered children.

    Nodes compare by identity, so two nodes with the same user object are
    still distinct model nodes.
    """

    def __init__(self, user_object: Any = None, children: Optional[Iterable["TreeNode"]] = None,
                 allows_children: bool = True) -> None:
        self.user_object = user_object
        self.allows_children = allows_children
        self.parent: Optional[TreeNode] = None
        self._children: List[TreeNode] = []
        for child in children or ():
            self.add(child)

    @property
    def children(self) -> Tuple["TreeNode", ...]:
        return tuple(self._children)

    def add(self, child: "TreeNode") -> "TreeNode":
        """Append *child* without notifying anybody (use the model for that)."""
        return self.insert(child, len(self._children))

    def insert(self, child: "TreeNode", index: int) -> "TreeNode":
        if not self.allows_children:
            raise ValueError(f"Node {self!r} does not allow children")
        if child.parent is not None:
            child.parent.remove(child)
        if not 0 <= index <= len(self._children):
            raise IndexError(f"Child index {index} out of range for {self!r}")
        self._children.insert(index, child)
        child.parent = self
        return child

    def remove(self, child: "TreeNode") -> int:
        index = self._children.index(child)
        del self._children[index]
        child.parent = None
        return index

    def index(self, child: "TreeNode") -> int:
        return self._children.index(child)

    def __str__(self) -> str:
        return "" if self.user_object is None else str(self.user_object)

    def __repr__(self) -> str:
        return f"TreeNode({self.user_object!r})"


class DefaultTreeModel(TreeModel):
    """Reference :class:`TreeModel` over :class:`TreeNode` objects.

    Parameters
    ----------
    root : TreeNode, optional
        Root node; ``None`` gives an empty model.
    asks_allows_children : bool, default=False
        When True a node is a leaf iff it does not allow children; otherwise
        a node is a leaf iff it has no children.
    """

    def __init__(self, root: Optional[TreeNode] = None, asks_allows_children: bool = False) -> None:
        self._root = root
        self._asks_allows_children = asks_allows_children
        self._listeners: List[ModelListener] = []

    # ------------------------------------------------------------------
    # TreeModel
    # ------------------------------------------------------------------
    def get_root(self) -> Optional[TreeNode]:
        return self._root

    def child_count(self, node: TreeNode) -> int:
        return len(node.children)

    def child_at(self, node: TreeNode, index: int) -> TreeNode:
        return node.children[index]

    def is_leaf(self, node: TreeNode) -> bool:
        if self._asks_allows_children:
            return not node.allows_children
        return self.child_count(node) == 0

    def add_listener(self, listener: ModelListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: ModelListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def listeners(self) -> Tuple[ModelListener, ...]:
        return tuple(self._listeners)

    def index_of_child(self, parent: TreeNode, child: TreeNode) -> int:
        """Return the index of *child* in *parent*, or -1."""
        try:
            return parent.index(child)
        except ValueError:
            return -1

    def path_to_root(self, node: TreeNode) -> Tuple[TreeNode, ...]:
        """Return the nodes from the root down to *node* (inclusive)."""
        path: List[TreeNode] = []
        current: Optional[TreeNode] = node
        while current is not None:
            path.append(current)
            if current is self._root:
                break
            current = current.parent
        if path[-1] is not self._root:
            raise ValueError(f"Node {node!r} is not part of this model")
        path.reverse()
        return tuple(path)

    # ------------------------------------------------------------------
    # Mutations (update the structure, then notify)
    # ------------------------------------------------------------------
    def set_root(self, root: Optional[TreeNode]) -> None:
        self._root = root
        self._fire(StructureChanged((root,) if root is not None else None))

    def reload(self, node: Optional[TreeNode] = None) -> None:
        """Announce that the subtree below *node* (default: root) changed arbitrarily."""
        target = node if node is not None else self._root
        if target is None:
            self._fire(StructureChanged(None))
            return
        self.node_structure_changed(target)

    def insert_node_into(self, child: TreeNode, parent: TreeNode, index: int) -> None:
        self.insert_nodes_into([child], parent, index)

    def insert_nodes_into(self, children: Sequence[TreeNode], parent: TreeNode, index: int) -> None:
        """Insert consecutive *children* into *parent* starting at *index*."""
        for offset, child in enumerate(children):
            parent.insert(child, index + offset)
        indices = tuple(range(index, index + len(children)))
        self._fire(RowsInserted(self.path_to_root(parent), tuple(children), indices))

    def remove_node_from_parent(self, node: TreeNode) -> None:
        parent = node.parent
        if parent is None:
            raise ValueError("The root node cannot be removed from its parent")
        self.remove_children(parent, [parent.index(node)])

    def remove_children(self, parent: TreeNode, indices: Sequence[int]) -> None:
        """Remove the children of *parent* at *indices* with a single event."""
        ordered = sorted(set(indices))
        removed = [parent.children[i] for i in ordered]
        for child in removed:
            parent.remove(child)
        self._fire(RowsRemoved(self.path_to_root(parent), tuple(removed), tuple(ordered)))

    def node_changed(self, node: TreeNode) -> None:
        """Announce that the content of *node* changed."""
        if node is self._root:
            self._fire(RowsChanged((node,)))
            return
        parent = node.parent
        if parent is None:
            raise ValueError(f"Node {node!r} is not part of this model")
        self._fire(RowsChanged(self.path_to_root(parent), (node,), (parent.index(node),)))

    def nodes_changed(self, parent: TreeNode, indices: Sequence[int]) -> None:
        children = tuple(parent.children[i] for i in indices)
        self._fire(RowsChanged(self.path_to_root(parent), children, tuple(indices)))

    def node_structure_changed(self, node: TreeNode) -> None:
        self._fire(StructureChanged(self.path_to_root(node)))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _fire(self, event: ModelEvent) -> None:
        logger.debug("Model event: %s", type(event).__name__)
        for listener in list(self._listeners):
            listener(event)
