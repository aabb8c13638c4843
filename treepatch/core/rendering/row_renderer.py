from __future__ import annotations

"""Markup rendering of rows.

Each visible row becomes one ``<div>`` element whose first span draws the
connector lines of the tree::

    Root
    ├─+ Folder
    │ ├─· Leaf
    │ └─· Leaf
    └─· Other

The connector prefix depends on whether every ancestor is the last child of
its parent, which is why the engine redraws the previous last sibling (and
its subtree) when a last child is inserted or removed.
"""

import logging
from typing import TYPE_CHECKING, Dict, List, Optional

from lxml import etree as ET

from treepatch.config import ConfigManager
from treepatch.core.models.patch import RowBlock
from treepatch.core.models.row import Row

if TYPE_CHECKING:  # pragma: no cover - for type checkers only
    from treepatch.core.engine import TreeReconciler

__all__ = ["RowRenderer"]

logger = logging.getLogger(__name__)

_DEFAULT_GLYPHS: Dict[str, str] = {
    "branch": "├─",
    "last": "└─",
    "pipe": "│ ",
    "blank": "  ",
    "expanded": "−",
    "collapsed": "+",
    "leaf": "·",
}


class RowRenderer:
    """Render engine rows as lxml elements or plain text.

    Parameters
    ----------
    engine : TreeReconciler
        Source of tree structure, expansion and selection.
    glyphs : dict, optional
        Overrides for the ``rendering.glyphs`` configuration section.
    """

    def __init__(self, engine: "TreeReconciler", glyphs: Optional[Dict[str, str]] = None) -> None:
        self._engine = engine
        self._glyphs = dict(_DEFAULT_GLYPHS)
        self._glyphs.update(ConfigManager().get_glyphs())
        if glyphs:
            self._glyphs.update(glyphs)

    @property
    def engine(self) -> "TreeReconciler":
        return self._engine

    @property
    def glyphs(self) -> Dict[str, str]:
        return dict(self._glyphs)

    # ------------------------------------------------------------------
    # Row parts
    # ------------------------------------------------------------------
    def _is_last(self, row: Row) -> bool:
        parent = self._engine.registry.parent_of(row)
        return parent is None or not parent.children or parent.children[-1] == row.id

    def connector(self, row: Row) -> str:
        """Guide lines of the ancestors followed by the row's own junction."""
        registry = self._engine.registry
        parent = registry.parent_of(row)
        if parent is None:
            return ""
        parts: List[str] = []
        ancestor = parent
        while registry.parent_of(ancestor) is not None:
            parts.append(self._glyphs["blank"] if self._is_last(ancestor) else self._glyphs["pipe"])
            ancestor = registry.parent_of(ancestor)
        parts.reverse()
        parts.append(self._glyphs["last"] if self._is_last(row) else self._glyphs["branch"])
        return "".join(parts)

    def affordance(self, row: Row) -> str:
        if self._engine.is_leaf(row.node):
            return self._glyphs["leaf"]
        if self._engine.is_node_expanded(row.node):
            return self._glyphs["expanded"]
        return self._glyphs["collapsed"]

    def label(self, row: Row) -> str:
        return str(row.content) if row.content is not None else str(row.node)

    def is_selected(self, row: Row) -> bool:
        return self._engine.get_tree_state().is_selected(row.node)

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------
    def row_text(self, row: Row) -> str:
        """One-line text form of *row*; empty for the hidden root."""
        if row.is_hidden_root:
            return ""
        return f"{self.connector(row)}{self.affordance(row)} {self.label(row)}"

    def render_row(self, row: Row) -> ET._Element:
        element = ET.Element("div", id=row.id)
        element.set("data-level", str(row.level))
        if row.is_hidden_root:
            element.set("class", "tree-row tree-root-hidden")
            return element

        css = "tree-row selected" if self.is_selected(row) else "tree-row"
        element.set("class", css)
        junction = ET.SubElement(element, "span", {"class": "tree-junction"})
        junction.text = self.connector(row)
        affordance = ET.SubElement(element, "span", {"class": "tree-affordance"})
        affordance.text = self.affordance(row)
        label = ET.SubElement(element, "span", {"class": "tree-label"})
        label.text = self.label(row)
        return element

    def render_block(self, block: RowBlock) -> List[ET._Element]:
        return [self.render_row(row) for row in block]

    def render_tree(self, block: RowBlock) -> ET._Element:
        """Whole tree element holding every row of *block*."""
        tree = ET.Element("div", id=self._engine.tree_id)
        tree.set("class", "tree")
        for element in self.render_block(block):
            tree.append(element)
        logger.debug("Rendered tree %s with %d rows", self._engine.tree_id, len(block))
        return tree

    @staticmethod
    def to_markup(element: ET._Element) -> str:
        return ET.tostring(element, encoding="unicode")
