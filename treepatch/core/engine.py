from __future__ import annotations

"""Incremental tree reconciliation engine.

:class:`TreeReconciler` keeps rows for the visible nodes of a
:class:`~treepatch.core.interfaces.TreeModel` and turns model and tree-state
events into the smallest ordered patch that brings a remote rendering of the
tree up to date.

Cycle protocol
--------------
One reconciliation cycle at a time, driven by the owner of the engine:

- full render: :meth:`TreeReconciler.render` (attach, walk, flush, detach);
- partial update: :meth:`TreeReconciler.update_tree` once, then
  :meth:`TreeReconciler.respond` once, then :meth:`TreeReconciler.detach`
  (:meth:`TreeReconciler.reconcile` does all three).

Events must be delivered synchronously between cycles; the engine performs
no locking and never reorders them.

Examples
--------
>>> model = DefaultTreeModel(TreeNode("A"))
>>> engine = TreeReconciler("tree", model)
>>> engine.render()                      # initial full rendering
>>> engine.get_tree_state().expand(model.get_root())
>>> patch = engine.reconcile(emitter)    # ReplaceRow for A with its new subtree
"""

import logging
from typing import Any, Callable, Dict, List, Optional, Set, Type

from treepatch.config import ConfigManager
from treepatch.core.events import (
    AllCollapsed,
    AllExpanded,
    Collapsed,
    Expanded,
    ModelEvent,
    RowsChanged,
    RowsInserted,
    RowsRemoved,
    Selected,
    StateEvent,
    StructureChanged,
    Unselected,
)
from treepatch.core.exceptions import ReconciliationError, TreeConsistencyError
from treepatch.core.interfaces import PatchEmitter, PopulateCallback, TreeModel, TreeState
from treepatch.core.models.patch import (
    CreateAfter,
    RemoveRows,
    ReplaceRow,
    ReplaceTree,
    RowBlock,
    TreePatch,
)
from treepatch.core.models.row import ROOTLESS_LEVEL, Row
from treepatch.core.models.tree_state import DefaultTreeState
from treepatch.core.registry import ItemRegistry, iter_subtree, visit_row_children

__all__ = ["TreeReconciler", "populate_label"]

logger = logging.getLogger(__name__)


def populate_label(row: Row, level: int) -> None:
    """Default populate callback: the row shows ``str(node)``."""
    row.content = str(row.node)


class TreeReconciler:
    """Server-side mirror of the visible rows of a tree.

    Parameters
    ----------
    tree_id : str
        Markup id of the tree element; prefix of every row id.
    model : TreeModel, optional
        Hierarchical data source. Can be set later with :meth:`set_model`.
    state : TreeState, optional
        Expansion/selection tracker; a :class:`DefaultTreeState` is created
        on first use otherwise.
    populate : PopulateCallback, optional
        Called once per row creation with ``(row, level)``; defaults to
        :func:`populate_label`. Not called for the hidden root.
    root_less, force_rebuild_on_selection_change, id_separator : optional
        Override the ``tree`` section of the engine configuration.
    """

    def __init__(
        self,
        tree_id: str,
        model: Optional[TreeModel] = None,
        state: Optional[TreeState] = None,
        populate: Optional[PopulateCallback] = None,
        *,
        root_less: Optional[bool] = None,
        force_rebuild_on_selection_change: Optional[bool] = None,
        id_separator: Optional[str] = None,
    ) -> None:
        if not tree_id:
            raise ValueError("tree_id must be a non-empty string")
        tree_cfg = ConfigManager().get_tree_config()

        self._tree_id = tree_id
        self._separator = id_separator if id_separator is not None else str(tree_cfg.get("id_separator", "_"))
        if force_rebuild_on_selection_change is None:
            force_rebuild_on_selection_change = bool(tree_cfg.get("force_rebuild_on_selection_change", True))
        self._force_rebuild_on_selection_change = force_rebuild_on_selection_change
        self._populate: PopulateCallback = populate or populate_label

        self._model: Optional[TreeModel] = model
        self._previous_model: Optional[TreeModel] = None
        self._state: Optional[TreeState] = None
        self._registry = ItemRegistry(self.get_tree_state, self.is_node_expanded)

        self._root_id: Optional[str] = None
        self._root_less = False
        # counter for generating unique ids of every row, never reused
        self._id_counter = 0

        # per-cycle dirty tracking; dicts are used as insertion-ordered sets
        self._dirty: Dict[str, None] = {}
        self._create_dom: Dict[str, None] = {}
        self._delete_ids: List[str] = []
        self._dirty_all = False

        self._attached = False
        self._update_registered = False
        self._responded = False

        self._model_handlers: Dict[Type[Any], Callable[[Any], None]] = {
            RowsChanged: self._rows_changed,
            RowsInserted: self._rows_inserted,
            RowsRemoved: self._rows_removed,
            StructureChanged: self._structure_changed,
        }
        self._state_handlers: Dict[Type[Any], Callable[[Any], None]] = {
            Expanded: lambda e: self.node_expanded(e.node),
            Collapsed: lambda e: self.node_collapsed(e.node),
            Selected: lambda e: self.node_selected(e.node),
            Unselected: lambda e: self.node_unselected(e.node),
            AllExpanded: lambda e: self.all_nodes_expanded(),
            AllCollapsed: lambda e: self.all_nodes_collapsed(),
        }

        if state is not None:
            self._set_state(state)
        self._check_model()

        root_less_default = bool(tree_cfg.get("root_less", False))
        self.set_root_less(root_less if root_less is not None else root_less_default)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------
    @property
    def tree_id(self) -> str:
        return self._tree_id

    @property
    def prefix(self) -> str:
        """Common prefix of every row id, stripped from deletion payloads."""
        return self._tree_id + self._separator

    def _short_id(self, row: Row) -> str:
        return row.id[len(self.prefix):]

    # ------------------------------------------------------------------
    # Model and state
    # ------------------------------------------------------------------
    @property
    def model(self) -> Optional[TreeModel]:
        return self._model

    def set_model(self, model: Optional[TreeModel]) -> None:
        """Switch to another model; the whole tree is redrawn on the next cycle."""
        self._model = model
        self._check_model()

    def get_tree_state(self) -> TreeState:
        if self._state is None:
            self._set_state(self.new_tree_state())
        return self._state  # type: ignore[return-value]

    def set_tree_state(self, state: TreeState) -> None:
        self._set_state(state)
        self.invalidate_all()

    def new_tree_state(self) -> TreeState:
        """Create the tracker used when none was supplied."""
        return DefaultTreeState()

    def _set_state(self, state: TreeState) -> None:
        if self._state is not None:
            self._state.remove_listener(self.on_state_event)
        self._state = state
        state.add_listener(self.on_state_event)

    def _check_model(self) -> None:
        """Move the model listener if the model object changed since the last check."""
        model = self._model
        if model is self._previous_model:
            return
        if self._previous_model is not None:
            self._previous_model.remove_listener(self.on_model_event)
        self._previous_model = model
        if model is not None:
            model.add_listener(self.on_model_event)
        logger.info("Tree %s: model changed, full redraw scheduled", self._tree_id)
        self.invalidate_all()

    @property
    def registry(self) -> ItemRegistry:
        return self._registry

    @property
    def is_force_rebuild_on_selection_change(self) -> bool:
        return self._force_rebuild_on_selection_change

    # ------------------------------------------------------------------
    # Rootless mode
    # ------------------------------------------------------------------
    def is_root_less(self) -> bool:
        return self._root_less

    def set_root_less(self, root_less: bool) -> None:
        """Hide (or show) the root row. The hidden root is always expanded."""
        if self._root_less == root_less:
            return
        self._root_less = root_less
        self.invalidate_all()
        if root_less and self._model is not None:
            root = self._model.get_root()
            if root is not None:
                self.get_tree_state().expand(root)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def root_row(self) -> Optional[Row]:
        return self._registry.find(self._root_id) if self._root_id is not None else None

    def get_node_row(self, node: Any) -> Optional[Row]:
        """Return the row of *node*, or ``None`` when the node is not visible."""
        return self._registry.lookup(node)

    def get_parent_node(self, node: Any) -> Any:
        return self._registry.parent_node(node)

    def is_node_expanded(self, node: Any) -> bool:
        root = self.root_row
        if self._root_less and root is not None and root.node == node:
            return True
        return self.get_tree_state().is_expanded(node)

    def is_node_visible(self, node: Any) -> bool:
        return self._registry.is_visible(node)

    def node_children(self, node: Any) -> List[Any]:
        model = self._require_model()
        return [model.child_at(node, i) for i in range(model.child_count(node))]

    def get_child_at(self, parent: Any, index: int) -> Any:
        return self._require_model().child_at(parent, index)

    def get_child_count(self, parent: Any) -> int:
        return self._require_model().child_count(parent)

    def is_leaf(self, node: Any) -> bool:
        return self._require_model().is_leaf(node)

    def _require_model(self) -> TreeModel:
        if self._model is None:
            raise ReconciliationError(f"Tree {self._tree_id!r} has no model")
        return self._model

    def visible_rows(self) -> List[Row]:
        """Snapshot of the current rows in document order (nothing is built)."""
        root = self.root_row
        return list(iter_subtree(self._registry, root)) if root is not None else []

    @property
    def dirty_ids(self) -> List[str]:
        return list(self._dirty)

    @property
    def pending_create_ids(self) -> List[str]:
        return list(self._create_dom)

    @property
    def deleted_ids(self) -> List[str]:
        return list(self._delete_ids)

    @property
    def is_dirty_all(self) -> bool:
        return self._dirty_all

    @property
    def is_attached(self) -> bool:
        return self._attached

    # ------------------------------------------------------------------
    # Event entry points
    # ------------------------------------------------------------------
    def on_model_event(self, event: ModelEvent) -> None:
        handler = self._model_handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported model event: {event!r}")
        handler(event)

    def on_state_event(self, event: StateEvent) -> None:
        handler = self._state_handlers.get(type(event))
        if handler is None:
            raise TypeError(f"Unsupported tree state event: {event!r}")
        handler(event)

    def node_expanded(self, node: Any) -> None:
        if self.is_node_visible(node):
            self._invalidate_node_with_children(node)

    def node_collapsed(self, node: Any) -> None:
        if self.is_node_visible(node):
            self._invalidate_node_with_children(node)

    def node_selected(self, node: Any) -> None:
        if self.is_node_visible(node):
            self._invalidate_node(node, self._force_rebuild_on_selection_change)

    def node_unselected(self, node: Any) -> None:
        if self.is_node_visible(node):
            self._invalidate_node(node, self._force_rebuild_on_selection_change)

    def all_nodes_expanded(self) -> None:
        self.invalidate_all()

    def all_nodes_collapsed(self) -> None:
        self.invalidate_all()

    # ------------------------------------------------------------------
    # Model events
    # ------------------------------------------------------------------
    def _rows_changed(self, event: RowsChanged) -> None:
        if self._dirty_all:
            return
        if event.children is None:
            # the root node itself changed
            root = self.root_row
            if root is not None:
                self._invalidate_node(root.node, True)
            return
        for node in event.children:
            if self.is_node_visible(node):
                self._invalidate_node(node, True)

    def _rows_inserted(self, event: RowsInserted) -> None:
        if self._dirty_all:
            return
        parent_row = self._resolve_event_parent(event.path)
        if parent_row is None:
            return
        parent_node = parent_row.node
        inserted = event.children
        expanded = self.is_node_expanded(parent_node)

        registered = [self._registry.get(child_id).node for child_id in parent_row.children or ()]
        was_leaf = all(node in inserted for node in registered) and (
            expanded or self.get_child_count(parent_node) == len(inserted)
        )

        if was_leaf:
            # the parent just got its first children: redraw it one level up so
            # its expand affordance appears, then open it
            logger.debug("Tree %s: first children inserted under %s", self._tree_id, parent_row.id)
            grandparent = self.get_parent_node(parent_node)
            self._invalidate_node_with_children(grandparent if grandparent is not None else parent_node)
            self.get_tree_state().expand(parent_node)
            return

        if not expanded:
            return

        children = parent_row.children
        assert children is not None  # non-empty registered children
        for node, index in zip(inserted, event.indices):
            if not 0 <= index <= len(children):
                raise TreeConsistencyError(
                    f"Insert index {index} out of range for {len(children)} child rows",
                    row_id=parent_row.id,
                    node=node,
                )
            row = self._new_row(parent_row, node, parent_row.level + 1)
            children.insert(index, row.id)
            self._mark_last_but_one_dirty(parent_row, row)
            self._mark_dirty(row)
            if row.id not in self._create_dom and not self._has_parent_marked_for_rebuild(row):
                self._create_dom[row.id] = None
            logger.debug("Tree %s: row %s inserted at %d under %s", self._tree_id, row.id, index, parent_row.id)

    def _rows_removed(self, event: RowsRemoved) -> None:
        if self._dirty_all:
            return
        parent_row = self._resolve_event_parent(event.path)
        if parent_row is None:
            return

        if self.is_node_expanded(parent_row.node) and parent_row.children is not None:
            original_count = len(parent_row.children)
            for node, index in zip(event.children, event.indices):
                if not 0 <= index < original_count:
                    raise TreeConsistencyError(
                        f"Remove index {index} out of range for {original_count} child rows",
                        row_id=parent_row.id,
                        node=node,
                    )
                row = self._registry.lookup(node)
                if row is None or row.parent_id != parent_row.id:
                    raise TreeConsistencyError(
                        "Removed node has no row under its parent", row_id=parent_row.id, node=node
                    )
                self._mark_last_but_one_dirty(parent_row, row)
                visit_row_children(self._registry, row, self._discard_removed_row)
                parent_row.children.remove(row.id)
                self._discard_removed_row(row)
                logger.debug("Tree %s: row %s removed from %s", self._tree_id, row.id, parent_row.id)

        if not parent_row.has_child_rows:
            # redraw the parent so it shows up as a leaf
            self._invalidate_node(parent_row.node, True)

    def _structure_changed(self, event: StructureChanged) -> None:
        if self._dirty_all:
            return
        path = event.path
        node = path[-1] if path else None
        if node is None or len(path) == 1:  # type: ignore[arg-type]
            self.invalidate_all()
        else:
            self._invalidate_node_with_children(node)

    def _resolve_event_parent(self, path: Any) -> Optional[Row]:
        """Return the row addressed by *path*, ``None`` if it is legitimately hidden.

        A node is hidden when some row on its path is collapsed or waits for
        its children to be rebuilt. Any other missing row is a
        desynchronization between the model and the registry.
        """
        if not path:
            raise TreeConsistencyError("Model event without a parent path")
        row = self.root_row
        if row is None:
            return None  # nothing rendered yet
        if path[0] != row.node:
            raise TreeConsistencyError("Event path does not start at the tree root", node=path[0])
        for node in path[1:]:
            if row.children is None or not self.is_node_expanded(row.node):
                return None
            child = self._registry.lookup(node)
            if child is None or child.parent_id != row.id:
                raise TreeConsistencyError(
                    "Event path node has no row under its visible parent", row_id=row.id, node=node
                )
            row = child
        return row

    def _mark_last_but_one_dirty(self, parent: Row, child: Row) -> None:
        """Redraw the previous sibling when *child* is (or was) the last one.

        The connector of the last-but-one row changes between the "last" and
        the "middle" shape, and so do the guide lines of its descendants.
        """
        children = parent.children or []
        if len(children) > 1 and children[-1] == child.id:
            self._invalidate_node_with_children(self._registry.get(children[-2]).node)

    def _has_parent_marked_for_rebuild(self, row: Row) -> bool:
        parent = self._registry.parent_of(row)
        while parent is not None:
            if parent.children is None:
                return True
            parent = self._registry.parent_of(parent)
        return False

    # ------------------------------------------------------------------
    # Invalidation
    # ------------------------------------------------------------------
    def invalidate_all(self) -> None:
        """Schedule a full redraw; use when the root or the whole model changed."""
        self._updated()
        self._dirty_all = True
        logger.info("Tree %s: whole tree invalidated", self._tree_id)

    def mark_node_dirty(self, node: Any) -> None:
        self._invalidate_node(node, False)

    def mark_node_children_dirty(self, node: Any) -> None:
        row = self._registry.lookup(node)
        if row is not None and not self._dirty_all:
            visit_row_children(self._registry, row, self._mark_dirty)

    def _mark_dirty(self, row: Row) -> None:
        if row.id not in self._dirty:
            self._dirty[row.id] = None

    def _invalidate_node(self, node: Any, force_rebuild: bool) -> None:
        """Mark the row of *node* dirty; with *force_rebuild* recreate it under the same id."""
        if self._dirty_all:
            return
        row = self._registry.lookup(node)
        if row is None:
            return
        create_dom = False
        if force_rebuild:
            create_dom = row.id in self._create_dom
            self._dirty.pop(row.id, None)
            self._create_dom.pop(row.id, None)
            row = self._refresh_row(row)
        self._mark_dirty(row)
        if create_dom and row.id not in self._create_dom:
            self._create_dom[row.id] = None
        logger.debug("Tree %s: row %s dirty (rebuild=%s)", self._tree_id, row.id, force_rebuild)

    def _invalidate_node_with_children(self, node: Any) -> None:
        """Drop every descendant row of *node* and rebuild them lazily."""
        if self._dirty_all:
            return
        row = self._registry.lookup(node)
        if row is None:
            return
        visit_row_children(self._registry, row, self._remove_row)
        row.children = None
        self._mark_dirty(row)
        logger.debug("Tree %s: row %s dirty with children", self._tree_id, row.id)

    # ------------------------------------------------------------------
    # Row lifecycle
    # ------------------------------------------------------------------
    def _new_row(self, parent: Optional[Row], node: Any, level: int) -> Row:
        row = Row(
            id=f"{self.prefix}{self._id_counter}",
            node=node,
            level=level,
            parent_id=parent.id if parent is not None else None,
        )
        self._id_counter += 1
        self._registry.register(row)
        if level != ROOTLESS_LEVEL:
            self._populate(row, level)
        return row

    def _refresh_row(self, row: Row) -> Row:
        """Recreate *row* with the same id, keeping its children."""
        fresh = Row(
            id=row.id,
            node=row.node,
            level=row.level,
            parent_id=row.parent_id,
            children=row.children,
        )
        self._registry.register(fresh)
        if fresh.level != ROOTLESS_LEVEL:
            self._populate(fresh, fresh.level)
        return fresh

    def _remove_row(self, row: Row) -> None:
        """Forget *row* and queue its remote element for deletion if it exists."""
        self._dirty.pop(row.id, None)
        if row.id in self._create_dom:
            # never reached the remote view, nothing to delete there
            del self._create_dom[row.id]
        else:
            self._delete_ids.append(self._short_id(row))
        self._registry.unregister(row, keep_selection=True)

    def _discard_removed_row(self, row: Row) -> None:
        """Like :meth:`_remove_row` for nodes deleted from the model; clears selection."""
        self._dirty.pop(row.id, None)
        if row.id in self._create_dom:
            del self._create_dom[row.id]
        else:
            self._delete_ids.append(self._short_id(row))
        self._registry.unregister(row)

    def _build_children(self, row: Row) -> None:
        """Create rows for the children of an expanded row, recursing into expanded ones."""
        if self.is_node_expanded(row.node):
            level = row.level + 1
            child_ids = []
            for node in self.node_children(row.node):
                child = self._new_row(row, node, level)
                self._build_children(child)
                child_ids.append(child.id)
            row.children = child_ids
        else:
            row.children = []

    def _clear_all_rows(self) -> None:
        self._registry.clear()
        self._root_id = None

    def _rebuild_dirty(self) -> None:
        for row_id in list(self._dirty):
            row = self._registry.get(row_id)
            if row.children is None:
                self._build_children(row)
                row.render_children = True

    # ------------------------------------------------------------------
    # Cycle
    # ------------------------------------------------------------------
    def on_before_attach(self) -> None:
        """Hook called before rows are (re)built at the start of a cycle."""

    def attach(self) -> None:
        """Bring the rows up to date for rendering; runs once per cycle."""
        if self._attached:
            return
        self.on_before_attach()
        self._check_model()

        if self._dirty_all and self._root_id is not None:
            self._clear_all_rows()
        else:
            self._rebuild_dirty()

        if self._root_id is None and self._model is not None:
            root_node = self._model.get_root()
            if root_node is not None:
                level = ROOTLESS_LEVEL if self._root_less else 0
                root = self._new_row(None, root_node, level)
                self._root_id = root.id
                self._build_children(root)

        self._attached = True

    def detach(self) -> None:
        """End the current cycle."""
        self._attached = False
        self._update_registered = False
        self._responded = False
        if self._state is not None:
            self._state.detach()

    def render(self) -> RowBlock:
        """Full (non-incremental) render cycle; returns every row in document order."""
        self.attach()
        block = RowBlock(tuple(self._collect_rows()))
        self._updated()
        self.detach()
        return block

    def update_tree(self) -> None:
        """Register the partial update of the current cycle (only once per cycle)."""
        if self._update_registered:
            raise ReconciliationError(
                f"Tree {self._tree_id!r} already has a partial update registered in this cycle"
            )
        self._update_registered = True

    def respond(self, emitter: Optional[PatchEmitter] = None) -> TreePatch:
        """Compute the patch of the registered update, emit it, then flush."""
        if not self._update_registered:
            raise ReconciliationError(f"Tree {self._tree_id!r} has no partial update registered")
        if self._responded:
            raise ReconciliationError(f"Tree {self._tree_id!r} already answered this cycle")
        self._responded = True

        self._check_model()
        if self._dirty_all:
            patch = self._full_patch()
        else:
            patch = self._incremental_patch()

        logger.debug(
            "Tree %s: patch removes=%d creates=%d replaces=%d full=%s",
            self._tree_id,
            len(patch.deleted_ids),
            len(patch.creations()),
            len(patch.replacements()),
            patch.is_full_render,
        )
        if emitter is not None:
            patch.emit(emitter)
        self._updated()
        return patch

    def reconcile(self, emitter: Optional[PatchEmitter] = None) -> TreePatch:
        """Run a complete partial-update cycle."""
        self.update_tree()
        try:
            return self.respond(emitter)
        finally:
            self.detach()

    def _full_patch(self) -> TreePatch:
        self.attach()
        patch = TreePatch(self._tree_id)
        patch.append(ReplaceTree(self._tree_id, RowBlock(tuple(self._collect_rows()))))
        return patch

    def _incremental_patch(self) -> TreePatch:
        patch = TreePatch(self._tree_id)

        if self._delete_ids:
            patch.append(RemoveRows(self.prefix, tuple(self._delete_ids)))

        # Rows can only be created after their anchor exists, and an anchor may
        # itself be waiting for creation: scan until every row is placed.
        created: Set[str] = set()
        pending: Dict[str, None] = dict(self._create_dom)
        while pending:
            progressed = False
            for row_id in list(pending):
                if row_id not in pending:
                    continue
                row = self._registry.get(row_id)
                anchor = self.insertion_anchor(row)
                if anchor.id in pending:
                    continue
                block = self._subtree_block(row, pending)
                patch.append(CreateAfter(anchor.id, row.id, block))
                del pending[row_id]
                created.add(row_id)
                progressed = True
            if not progressed:
                raise TreeConsistencyError(
                    f"{len(pending)} pending rows wait on anchors that are never created"
                )

        for row_id in list(self._dirty):
            if row_id in created or row_id not in self._dirty:
                continue
            row = self._registry.get(row_id)
            if row.children is None or row.render_children:
                block = self._subtree_block(row)
            else:
                block = RowBlock((row,))
            patch.append(ReplaceRow(row.id, block))

        return patch

    def insertion_anchor(self, row: Row) -> Row:
        """Return the row whose element *row* must be created after.

        The parent for a first child, otherwise the last row (in document
        order) of the previous sibling's subtree.
        """
        parent = self._registry.parent_of(row)
        if parent is None or parent.children is None:
            raise TreeConsistencyError("Row has no built parent to anchor on", row_id=row.id)
        index = parent.children.index(row.id)
        if index == 0:
            return parent
        previous = self._registry.get(parent.children[index - 1])
        while previous.children:
            previous = self._registry.get(previous.children[-1])
        return previous

    def _subtree_block(self, row: Row, pending: Optional[Dict[str, None]] = None) -> RowBlock:
        """Build *row*'s subtree if needed and return it as one inline block.

        Descendants are covered by the block, so their own dirty state is
        dropped.
        """
        if row.children is None:
            self._build_children(row)
        row.render_children = True
        rows = list(iter_subtree(self._registry, row))
        for descendant in rows[1:]:
            self._dirty.pop(descendant.id, None)
            self._create_dom.pop(descendant.id, None)
            if pending is not None:
                pending.pop(descendant.id, None)
        return RowBlock(tuple(rows))

    def _collect_rows(self) -> List[Row]:
        """Pre-order walk of the rows, building absent children top-down."""
        root = self.root_row
        if root is None:
            return []
        rows: List[Row] = []
        stack = [root]
        while stack:
            row = stack.pop()
            if row.children is None:
                self._build_children(row)
            rows.append(row)
            stack.extend(self._registry.get(child_id) for child_id in reversed(row.children or ()))
        return rows

    def _updated(self) -> None:
        """Flush: clear every dirty flag and queue."""
        for row_id in self._dirty:
            row = self._registry.find(row_id)
            if row is not None:
                row.render_children = False
        self._dirty_all = False
        self._dirty.clear()
        self._create_dom.clear()
        self._delete_ids.clear()
