from __future__ import annotations

"""Serialize patches into an XML update document.

Example output for one cycle::

    <tree-update tree="tree">
      <remove prefix="tree_" ids="4,5"/>
      <create id="tree_9" after="tree_3"><div id="tree_9" .../></create>
      <replace id="tree_2"><div id="tree_2" .../></replace>
    </tree-update>
"""

import logging
from typing import Sequence

from lxml import etree as ET

from treepatch.core.interfaces import PatchEmitter
from treepatch.core.models.patch import RowBlock

from .row_renderer import RowRenderer

__all__ = ["XmlPatchWriter"]

logger = logging.getLogger(__name__)


class XmlPatchWriter(PatchEmitter):
    """:class:`PatchEmitter` that collects instructions into an lxml document.

    Call :meth:`close` (or :meth:`to_string`) after the cycle to get the
    serialized update; :meth:`close` also starts a fresh document.
    """

    def __init__(self, renderer: RowRenderer) -> None:
        self._renderer = renderer
        self._document = self._new_document()

    def _new_document(self) -> ET._Element:
        return ET.Element("tree-update", tree=self._renderer.engine.tree_id)

    @property
    def document(self) -> ET._Element:
        return self._document

    def remove_rows(self, prefix: str, short_ids: Sequence[str]) -> None:
        ET.SubElement(self._document, "remove", prefix=prefix, ids=",".join(short_ids))

    def create_after(self, anchor_id: str, row_id: str, block: RowBlock) -> None:
        element = ET.SubElement(self._document, "create", id=row_id, after=anchor_id)
        element.extend(self._renderer.render_block(block))

    def replace(self, row_id: str, block: RowBlock) -> None:
        element = ET.SubElement(self._document, "replace", id=row_id)
        element.extend(self._renderer.render_block(block))

    def replace_tree(self, tree_id: str, block: RowBlock) -> None:
        element = ET.SubElement(self._document, "replace-tree", id=tree_id)
        element.append(self._renderer.render_tree(block))

    def to_string(self, pretty_print: bool = False) -> str:
        return ET.tostring(self._document, encoding="unicode", pretty_print=pretty_print)

    def close(self) -> str:
        """Return the serialized update and reset for the next cycle."""
        markup = self.to_string()
        logger.debug("Patch document closed with %d instructions", len(self._document))
        self._document = self._new_document()
        return markup
