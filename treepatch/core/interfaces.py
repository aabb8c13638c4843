from __future__ import annotations

"""Interfaces of the engine's external collaborators.

Defines the contracts between the reconciliation engine and the pieces it
does not own: the hierarchical data source, the expansion/selection tracker,
and the emitter that applies patches to a remote view. Reference
implementations live in :mod:`treepatch.core.models` and
:mod:`treepatch.core.rendering`.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Callable, List, Optional, Sequence

from .events import ModelEvent, StateEvent

if TYPE_CHECKING:  # pragma: no cover - for type checkers only
    from .models.patch import RowBlock
    from .models.row import Row

__all__ = [
    "ModelListener",
    "StateListener",
    "PopulateCallback",
    "TreeModel",
    "TreeState",
    "PatchEmitter",
]

# Listener callables receive one event message each
ModelListener = Callable[[ModelEvent], None]
StateListener = Callable[[StateEvent], None]

# Invoked once per row creation with (row, level); attaches presentation content
PopulateCallback = Callable[["Row", int], None]


class TreeModel(ABC):
    """Hierarchical data source.

    Nodes are opaque hashable handles compared by equality. Mutations must be
    announced to every listener synchronously, after the model reflects them.
    """

    @abstractmethod
    def get_root(self) -> Any:
        """Return the root node, or ``None`` for an empty model."""

    @abstractmethod
    def child_count(self, node: Any) -> int:
        """Return the number of children of *node*."""

    @abstractmethod
    def child_at(self, node: Any, index: int) -> Any:
        """Return the child of *node* at *index*."""

    @abstractmethod
    def is_leaf(self, node: Any) -> bool:
        """Return True if *node* cannot have children (drawn without affordance)."""

    @abstractmethod
    def add_listener(self, listener: ModelListener) -> None:
        ...

    @abstractmethod
    def remove_listener(self, listener: ModelListener) -> None:
        ...


class TreeState(ABC):
    """Expansion and selection tracker.

    Only actual state changes are announced; listeners are called
    synchronously from inside the mutating call.
    """

    @abstractmethod
    def is_expanded(self, node: Any) -> bool:
        ...

    @abstractmethod
    def expand(self, node: Any) -> None:
        ...

    @abstractmethod
    def collapse(self, node: Any) -> None:
        ...

    @abstractmethod
    def is_selected(self, node: Any) -> bool:
        ...

    @abstractmethod
    def set_selected(self, node: Any, selected: bool) -> None:
        ...

    @abstractmethod
    def selected_nodes(self) -> List[Any]:
        ...

    @abstractmethod
    def add_listener(self, listener: StateListener) -> None:
        ...

    @abstractmethod
    def remove_listener(self, listener: StateListener) -> None:
        ...

    def detach(self) -> None:
        """Release per-cycle resources; called when the engine detaches."""
        return None


class PatchEmitter(ABC):
    """Target that applies patch instructions to a (remote) view.

    Instructions arrive in patch order: one removal batch, then creations,
    then replacements; or a single full-tree replacement.
    """

    @abstractmethod
    def remove_rows(self, prefix: str, short_ids: Sequence[str]) -> None:
        """Delete the elements ``prefix + short_id`` for every id given."""

    @abstractmethod
    def create_after(self, anchor_id: str, row_id: str, block: "RowBlock") -> None:
        """Create the element(s) of *block* right after element *anchor_id*."""

    @abstractmethod
    def replace(self, row_id: str, block: "RowBlock") -> None:
        """Replace element *row_id* in place with the element(s) of *block*."""

    @abstractmethod
    def replace_tree(self, tree_id: str, block: "RowBlock") -> None:
        """Replace the whole tree with the rows of *block*."""

    def close(self) -> Optional[Any]:
        """Finish the current patch; emitters may return a serialized result."""
        return None
