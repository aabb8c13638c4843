from __future__ import annotations

"""Event messages delivered to the reconciliation engine.

Two closed families of frozen dataclasses:

- model events, fired by a :class:`~treepatch.core.interfaces.TreeModel`
  when its structure or content changes;
- state events, fired by a :class:`~treepatch.core.interfaces.TreeState`
  when expansion or selection changes.

``path`` is always the sequence of nodes from the root down to the node the
event is about (the parent for insert/remove events), mirroring a tree path.
"""

from dataclasses import dataclass
from typing import Any, Optional, Tuple, Union

__all__ = [
    "RowsChanged",
    "RowsInserted",
    "RowsRemoved",
    "StructureChanged",
    "Expanded",
    "Collapsed",
    "Selected",
    "Unselected",
    "AllExpanded",
    "AllCollapsed",
    "ModelEvent",
    "StateEvent",
]


def _check_children(children: Tuple[Any, ...], indices: Tuple[int, ...]) -> None:
    if len(children) != len(indices):
        raise ValueError(
            f"Event lists {len(children)} children but {len(indices)} indices"
        )


@dataclass(frozen=True)
class RowsChanged:
    """Content of existing nodes changed, structure did not.

    ``children`` is ``None`` when the root itself changed.
    """

    path: Tuple[Any, ...]
    children: Optional[Tuple[Any, ...]] = None
    indices: Optional[Tuple[int, ...]] = None

    def __post_init__(self) -> None:
        if self.children is not None and self.indices is not None:
            _check_children(self.children, self.indices)


@dataclass(frozen=True)
class RowsInserted:
    """Nodes were inserted under ``path[-1]`` at ``indices`` (ascending, post-insert)."""

    path: Tuple[Any, ...]
    children: Tuple[Any, ...]
    indices: Tuple[int, ...]

    def __post_init__(self) -> None:
        _check_children(self.children, self.indices)

    @property
    def parent(self) -> Any:
        return self.path[-1] if self.path else None


@dataclass(frozen=True)
class RowsRemoved:
    """Nodes were removed from ``path[-1]``; ``indices`` are pre-removal positions."""

    path: Tuple[Any, ...]
    children: Tuple[Any, ...]
    indices: Tuple[int, ...]

    def __post_init__(self) -> None:
        _check_children(self.children, self.indices)

    @property
    def parent(self) -> Any:
        return self.path[-1] if self.path else None


@dataclass(frozen=True)
class StructureChanged:
    """The subtree below ``path[-1]`` changed arbitrarily (or the whole tree)."""

    path: Optional[Tuple[Any, ...]] = None


@dataclass(frozen=True)
class Expanded:
    node: Any


@dataclass(frozen=True)
class Collapsed:
    node: Any


@dataclass(frozen=True)
class Selected:
    node: Any


@dataclass(frozen=True)
class Unselected:
    node: Any


@dataclass(frozen=True)
class AllExpanded:
    pass


@dataclass(frozen=True)
class AllCollapsed:
    pass


ModelEvent = Union[RowsChanged, RowsInserted, RowsRemoved, StructureChanged]
StateEvent = Union[Expanded, Collapsed, Selected, Unselected, AllExpanded, AllCollapsed]
