"""Rendering of rows and reference patch emitters."""

from .mirror import MirrorView
from .row_renderer import RowRenderer
from .xml_patch_writer import XmlPatchWriter

__all__ = ["RowRenderer", "XmlPatchWriter", "MirrorView"]
