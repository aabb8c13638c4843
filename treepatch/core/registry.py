from __future__ import annotations

"""Node/row bijection for the currently visible rows.

The registry is an arena: rows are stored by id and refer to each other by
id, while a second index maps model nodes to the row that currently
represents them. It is the single owner of row lifetime; the engine decides
*when* rows come and go, the registry keeps both indexes consistent.

Traversal helpers are plain functions taking the per-visit operation as an
argument, so callers keep every dirty-set mutation visible at the call site.
"""

import logging
from typing import Any, Callable, Dict, Iterator, List, Optional

from treepatch.core.exceptions import TreeConsistencyError
from treepatch.core.interfaces import TreeState
from treepatch.core.models.row import Row

__all__ = [
    "ItemRegistry",
    "visit_row_and_children",
    "visit_row_children",
    "iter_subtree",
]

logger = logging.getLogger(__name__)

RowVisitor = Callable[[Row], None]


class ItemRegistry:
    """Arena of visible rows keyed by id, indexed by node.

    Parameters
    ----------
    state_getter : Callable[[], TreeState]
        Returns the tracker whose selection is cleared on unregister.
    is_expanded : Callable[[Any], bool]
        Expansion predicate used by :meth:`is_visible`. The engine passes its
        own predicate so rootless mode can force the root open.
    """

    def __init__(self, state_getter: Callable[[], TreeState],
                 is_expanded: Callable[[Any], bool]) -> None:
        self._state_getter = state_getter
        self._is_expanded = is_expanded
        self._rows: Dict[str, Row] = {}
        self._node_to_id: Dict[Any, str] = {}

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------
    def lookup(self, node: Any) -> Optional[Row]:
        """Return the row of *node*, or ``None`` when the node is not visible."""
        if node is None:
            return None
        row_id = self._node_to_id.get(node)
        return self._rows.get(row_id) if row_id is not None else None

    def get(self, row_id: str) -> Row:
        try:
            return self._rows[row_id]
        except KeyError:
            raise TreeConsistencyError("Row is not registered", row_id=row_id) from None

    def find(self, row_id: str) -> Optional[Row]:
        return self._rows.get(row_id)

    def parent_of(self, row: Row) -> Optional[Row]:
        return self.get(row.parent_id) if row.parent_id is not None else None

    def children_of(self, row: Row) -> List[Row]:
        return [self.get(child_id) for child_id in row.children or ()]

    def parent_node(self, node: Any) -> Any:
        """Return the parent node of *node* as seen through registered rows."""
        row = self.lookup(node)
        if row is None:
            return None
        parent = self.parent_of(row)
        return parent.node if parent is not None else None

    def is_visible(self, node: Any) -> bool:
        """True when *node* has a row and every registered ancestor is expanded."""
        row = self.lookup(node)
        if row is None:
            return False
        parent = self.parent_of(row)
        while parent is not None:
            if not self._is_expanded(parent.node):
                return False
            parent = self.parent_of(parent)
        return True

    def rows(self) -> List[Row]:
        return list(self._rows.values())

    def __len__(self) -> int:
        return len(self._rows)

    def __contains__(self, node: Any) -> bool:
        return node in self._node_to_id

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def register(self, row: Row) -> None:
        """Register *row*; re-registering an id replaces the row object."""
        existing_id = self._node_to_id.get(row.node)
        if existing_id is not None and existing_id != row.id:
            raise TreeConsistencyError(
                f"Node already has row {existing_id!r}", row_id=row.id, node=row.node
            )
        previous = self._rows.get(row.id)
        if previous is not None and previous.node != row.node:
            raise TreeConsistencyError("Row id already used for another node", row_id=row.id)
        self._rows[row.id] = row
        self._node_to_id[row.node] = row.id

    def unregister(self, row: Row, keep_selection: bool = False) -> None:
        """Forget *row*; unless *keep_selection*, also deselect its node.

        The mapping is dropped before the tracker is touched, so the
        resulting Unselected event finds the node invisible.
        """
        if self._rows.get(row.id) is not row:
            raise TreeConsistencyError("Cannot unregister a row that is not registered", row_id=row.id)
        del self._rows[row.id]
        if self._node_to_id.get(row.node) == row.id:
            del self._node_to_id[row.node]
        if not keep_selection:
            state = self._state_getter()
            if state.is_selected(row.node):
                state.set_selected(row.node, False)

    def clear(self) -> None:
        self._rows.clear()
        self._node_to_id.clear()


def visit_row_and_children(registry: ItemRegistry, row: Row, visit: RowVisitor) -> None:
    """Call *visit* for *row*, then for every descendant in pre-order."""
    visit(row)
    visit_row_children(registry, row, visit)


def visit_row_children(registry: ItemRegistry, row: Row, visit: RowVisitor) -> None:
    """Call *visit* for every descendant of *row* in pre-order.

    Child rows are resolved before each visit, so *visit* may unregister the
    row it receives.
    """
    if row.children is None:
        return
    for child_id in list(row.children):
        visit_row_and_children(registry, registry.get(child_id), visit)


def iter_subtree(registry: ItemRegistry, row: Row) -> Iterator[Row]:
    """Yield *row* and its built descendants in document order."""
    stack = [row]
    while stack:
        current = stack.pop()
        yield current
        if current.children:
            stack.extend(registry.get(child_id) for child_id in reversed(current.children))
