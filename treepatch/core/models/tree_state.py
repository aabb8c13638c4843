from __future__ import annotations

"""Default expansion/selection tracker.

Expansion is stored as a set of *exceptions* to a default: while
``expanded_by_default`` is False the set holds expanded nodes, after
:meth:`DefaultTreeState.expand_all` it holds collapsed nodes. This keeps
``expand_all`` / ``collapse_all`` O(1) regardless of the tree size.

Only real changes are announced; listeners run synchronously inside the
mutating call.
"""

import logging
from typing import Any, List, Optional, Set

from treepatch.config import ConfigManager
from treepatch.core.events import (
    AllCollapsed,
    AllExpanded,
    Collapsed,
    Expanded,
    Selected,
    StateEvent,
    Unselected,
)
from treepatch.core.interfaces import StateListener, TreeState

__all__ = ["DefaultTreeState"]

logger = logging.getLogger(__name__)


class DefaultTreeState(TreeState):
    """In-memory :class:`TreeState`.

    Parameters
    ----------
    allow_select_multiple : bool, optional
        When False (config default), selecting a node first deselects the
        previously selected one. ``None`` reads ``state.allow_select_multiple``
        from the engine configuration.
    """

    def __init__(self, allow_select_multiple: Optional[bool] = None) -> None:
        if allow_select_multiple is None:
            state_cfg = ConfigManager().get_engine_config().get("state", {}) or {}
            allow_select_multiple = bool(state_cfg.get("allow_select_multiple", False))
        self._allow_select_multiple = allow_select_multiple
        self._expanded_by_default = False
        self._toggled: Set[Any] = set()
        self._selected: List[Any] = []
        self._listeners: List[StateListener] = []

    # ------------------------------------------------------------------
    # Expansion
    # ------------------------------------------------------------------
    def is_expanded(self, node: Any) -> bool:
        return (node in self._toggled) != self._expanded_by_default

    def expand(self, node: Any) -> None:
        if self.is_expanded(node):
            return
        self._set_expanded(node, True)
        self._fire(Expanded(node))

    def collapse(self, node: Any) -> None:
        if not self.is_expanded(node):
            return
        self._set_expanded(node, False)
        self._fire(Collapsed(node))

    def toggle(self, node: Any) -> None:
        if self.is_expanded(node):
            self.collapse(node)
        else:
            self.expand(node)

    def expand_all(self) -> None:
        self._toggled.clear()
        self._expanded_by_default = True
        self._fire(AllExpanded())

    def collapse_all(self) -> None:
        self._toggled.clear()
        self._expanded_by_default = False
        self._fire(AllCollapsed())

    def _set_expanded(self, node: Any, expanded: bool) -> None:
        if expanded != self._expanded_by_default:
            self._toggled.add(node)
        else:
            self._toggled.discard(node)

    # ------------------------------------------------------------------
    # Selection
    # ------------------------------------------------------------------
    @property
    def allow_select_multiple(self) -> bool:
        return self._allow_select_multiple

    def set_allow_select_multiple(self, value: bool) -> None:
        self._allow_select_multiple = value

    def is_selected(self, node: Any) -> bool:
        return node in self._selected

    def set_selected(self, node: Any, selected: bool) -> None:
        if selected == self.is_selected(node):
            return
        if selected:
            if not self._allow_select_multiple:
                for previous in list(self._selected):
                    self.set_selected(previous, False)
            self._selected.append(node)
            self._fire(Selected(node))
        else:
            self._selected.remove(node)
            self._fire(Unselected(node))

    def selected_nodes(self) -> List[Any]:
        return list(self._selected)

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------
    def add_listener(self, listener: StateListener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: StateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _fire(self, event: StateEvent) -> None:
        logger.debug("State event: %s", type(event).__name__)
        for listener in list(self._listeners):
            listener(event)
