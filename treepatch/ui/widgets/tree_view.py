from __future__ import annotations

import tkinter as tk
from tkinter import ttk
from typing import Callable, List, Optional, Sequence, Set

from treepatch.core.exceptions import PatchApplicationError
from treepatch.core.interfaces import PatchEmitter
from treepatch.core.models.patch import RowBlock
from treepatch.core.rendering import RowRenderer


class PatchedTreeView(ttk.Frame, PatchEmitter):
    """Tkinter widget that displays a tree kept up to date by patches.

    The view is a flat ``ttk.Treeview``: one item per row, in document order,
    whose text carries the connector lines drawn by :class:`RowRenderer`.
    Item ids are the row ids, so every instruction maps onto item inserts and
    deletes without rebuilding the list.

    Callbacks:
        - on_selection_changed: Invoked when selection changes (via <<TreeviewSelect>>).
          Receives the list of selected row ids.
        - on_item_activated: Invoked on double-click (<Double-1>). Receives the
          focused row id, or None.

    Notes
    -----
    - The hidden root of a rootless tree is tracked for positioning but never
      shown.
    - UI-only: the widget does not talk to the engine; the owner forwards
      callbacks to the tree state and runs reconciliation.
    """

    def __init__(
        self,
        master: "tk.Widget",
        renderer: RowRenderer,
        *,
        on_selection_changed: Optional[Callable[[List[str]], None]] = None,
        on_item_activated: Optional[Callable[[Optional[str]], None]] = None,
    ) -> None:
        super().__init__(master)
        self._renderer = renderer
        self._on_selection_changed = on_selection_changed
        self._on_item_activated = on_item_activated

        # All element ids in document order, hidden root included
        self._ids: List[str] = []
        self._hidden: Set[str] = set()

        self._tree = ttk.Treeview(self, show="tree", selectmode="browse", height=12)
        self._vsb = ttk.Scrollbar(self, orient="vertical", command=self._tree.yview)
        self._tree.configure(yscrollcommand=self._vsb.set)
        self._tree.tag_configure("selected", foreground="#0098e4")

        self._tree.grid(row=0, column=0, sticky="nsew")
        self._vsb.grid(row=0, column=1, sticky="ns")
        self.columnconfigure(0, weight=1)
        self.rowconfigure(0, weight=1)

        self._tree.bind("<<TreeviewSelect>>", self._handle_select)
        self._tree.bind("<Double-1>", self._handle_activate)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    @property
    def tree(self) -> ttk.Treeview:
        return self._tree

    def element_ids(self) -> List[str]:
        """Every element id in document order, hidden root included."""
        return list(self._ids)

    def item_ids(self) -> List[str]:
        """Ids of the displayed items in display order."""
        return list(self._tree.get_children(""))

    def item_text(self, row_id: str) -> str:
        return str(self._tree.item(row_id, "text"))

    # ------------------------------------------------------------------
    # PatchEmitter
    # ------------------------------------------------------------------
    def remove_rows(self, prefix: str, short_ids: Sequence[str]) -> None:
        for short_id in short_ids:
            row_id = prefix + short_id
            self._require(row_id, "remove")
            self._delete(row_id)

    def create_after(self, anchor_id: str, row_id: str, block: RowBlock) -> None:
        self._require(anchor_id, "create")
        self._insert_block(self._ids.index(anchor_id) + 1, block)

    def replace(self, row_id: str, block: RowBlock) -> None:
        self._require(row_id, "replace")
        position = self._ids.index(row_id)
        self._delete(row_id)
        self._insert_block(position, block)

    def replace_tree(self, tree_id: str, block: RowBlock) -> None:
        children = self._tree.get_children("")
        if children:
            self._tree.delete(*children)
        self._ids = []
        self._hidden = set()
        self._insert_block(0, block)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------
    def _require(self, row_id: str, instruction: str) -> None:
        if row_id not in self._ids:
            raise PatchApplicationError("Element does not exist", instruction=instruction, row_id=row_id)

    def _delete(self, row_id: str) -> None:
        self._ids.remove(row_id)
        if row_id in self._hidden:
            self._hidden.discard(row_id)
        else:
            self._tree.delete(row_id)

    def _insert_block(self, position: int, block: RowBlock) -> None:
        for offset, row in enumerate(block):
            index = position + offset
            self._ids.insert(index, row.id)
            if row.is_hidden_root:
                self._hidden.add(row.id)
                continue
            display_index = sum(1 for row_id in self._ids[:index] if row_id not in self._hidden)
            tags = ("selected",) if self._renderer.is_selected(row) else ()
            self._tree.insert("", display_index, iid=row.id, text=self._renderer.row_text(row), tags=tags)

    def _handle_select(self, _event: "tk.Event") -> None:
        if self._on_selection_changed is not None:
            self._on_selection_changed(list(self._tree.selection()))

    def _handle_activate(self, _event: "tk.Event") -> None:
        if self._on_item_activated is not None:
            focused = self._tree.focus()
            self._on_item_activated(focused or None)
