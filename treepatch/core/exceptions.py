from __future__ import annotations

"""Exception classes for the tree reconciliation core.

Lookups that find nothing are not errors (an absent row simply means the node
is not visible). The classes below cover the situations where continuing
would corrupt the node/row bijection or break the one-cycle-at-a-time
contract, so they are raised immediately and never retried.
"""

from typing import Any, Optional

__all__ = [
    "TreePatchError",
    "TreeConsistencyError",
    "ReconciliationError",
    "PatchApplicationError",
]


class TreePatchError(Exception):
    """Base exception for all reconciliation errors.

    Carries optional row/node context which is folded into the string
    representation for logs.
    """

    def __init__(self, message: str, row_id: Optional[str] = None,
                 node: Any = None) -> None:
        super().__init__(message)
        self.row_id = row_id
        self.node = node

    def __str__(self) -> str:
        base = super().__str__()
        if self.row_id is not None:
            return f"[Row: {self.row_id}] {base}"
        if self.node is not None:
            return f"[Node: {self.node!r}] {base}"
        return base


class TreeConsistencyError(TreePatchError):
    """Raised when a mutation event cannot be reconciled with the registry.

    This covers events addressing a parent that should have a row but does
    not, child indices out of range, nodes registered twice and creation
    anchors that can never be resolved. All of them mean the model and the
    engine went out of sync.
    """
    pass


class ReconciliationError(TreePatchError):
    """Raised when the reconciliation cycle protocol is violated.

    Only one partial update may be registered per cycle and it may be
    answered only once.
    """
    pass


class PatchApplicationError(TreePatchError):
    """Raised by an emitter that cannot apply an instruction to its view."""

    def __init__(self, message: str, instruction: Any = None,
                 row_id: Optional[str] = None) -> None:
        super().__init__(message, row_id=row_id)
        self.instruction = instruction
