from __future__ import annotations

"""In-memory stand-in for a remote tree view.

:class:`MirrorView` applies patches to a flat, ordered list of element ids,
exactly as a browser would apply them to the children of the tree element.
It is strict: any instruction that refers to a missing element, or creates
one that already exists, raises :class:`PatchApplicationError`.
"""

from typing import Dict, List, Optional, Sequence

from treepatch.core.exceptions import PatchApplicationError
from treepatch.core.interfaces import PatchEmitter
from treepatch.core.models.patch import RowBlock

from .row_renderer import RowRenderer

__all__ = ["MirrorView"]


class MirrorView(PatchEmitter):
    """Ordered element ids, plus row markup when a renderer is given."""

    def __init__(self, renderer: Optional[RowRenderer] = None) -> None:
        self._renderer = renderer
        self._ids: List[str] = []
        self._markup: Dict[str, str] = {}
        self.tree_id: Optional[str] = None

    @property
    def ids(self) -> List[str]:
        return list(self._ids)

    def markup_of(self, row_id: str) -> str:
        try:
            return self._markup[row_id]
        except KeyError:
            raise PatchApplicationError("No markup recorded for element", row_id=row_id) from None

    def __len__(self) -> int:
        return len(self._ids)

    def __contains__(self, row_id: str) -> bool:
        return row_id in self._ids

    # ------------------------------------------------------------------
    # PatchEmitter
    # ------------------------------------------------------------------
    def remove_rows(self, prefix: str, short_ids: Sequence[str]) -> None:
        for short_id in short_ids:
            row_id = prefix + short_id
            if row_id not in self._ids:
                raise PatchApplicationError("Cannot remove missing element", instruction="remove", row_id=row_id)
            self._ids.remove(row_id)
            self._markup.pop(row_id, None)

    def create_after(self, anchor_id: str, row_id: str, block: RowBlock) -> None:
        if anchor_id not in self._ids:
            raise PatchApplicationError("Anchor element does not exist", instruction="create", row_id=anchor_id)
        if block.head.id != row_id:
            raise PatchApplicationError("Block does not start with the created row", instruction="create", row_id=row_id)
        self._check_new_ids(block, "create")
        index = self._ids.index(anchor_id) + 1
        self._ids[index:index] = block.ids
        self._record(block)

    def replace(self, row_id: str, block: RowBlock) -> None:
        if row_id not in self._ids:
            raise PatchApplicationError("Cannot replace missing element", instruction="replace", row_id=row_id)
        if block.head.id != row_id:
            raise PatchApplicationError("Block does not start with the replaced row", instruction="replace", row_id=row_id)
        index = self._ids.index(row_id)
        del self._ids[index]
        self._markup.pop(row_id, None)
        self._check_new_ids(block, "replace")
        self._ids[index:index] = block.ids
        self._record(block)

    def replace_tree(self, tree_id: str, block: RowBlock) -> None:
        self.tree_id = tree_id
        self._ids = block.ids
        self._markup = {}
        self._record(block)

    # ------------------------------------------------------------------
    def _check_new_ids(self, block: RowBlock, instruction: str) -> None:
        for row_id in block.ids:
            if row_id in self._ids:
                raise PatchApplicationError("Element already exists", instruction=instruction, row_id=row_id)

    def _record(self, block: RowBlock) -> None:
        if self._renderer is None:
            return
        for row in block:
            self._markup[row.id] = self._renderer.to_markup(self._renderer.render_row(row))
