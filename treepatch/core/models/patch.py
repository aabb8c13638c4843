from __future__ import annotations

"""Patch instructions produced by one reconciliation cycle.

A :class:`TreePatch` is an ordered list of instructions. The order is the
contract with the remote view:

1. at most one :class:`RemoveRows` batch,
2. zero or more :class:`CreateAfter`, each anchored on an element that
   already exists when the instruction runs,
3. zero or more :class:`ReplaceRow`,

or, when the whole tree was invalidated, a single :class:`ReplaceTree`.

Instructions carry :class:`RowBlock` content: the rows (pre-order) that make
up the emitted element(s). A block with more than one row is a freshly built
subtree rendered as one unit.
"""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, List, Tuple, Union

from .row import Row

if TYPE_CHECKING:  # pragma: no cover - for type checkers only
    from treepatch.core.interfaces import PatchEmitter

__all__ = [
    "RowBlock",
    "RemoveRows",
    "CreateAfter",
    "ReplaceRow",
    "ReplaceTree",
    "Instruction",
    "TreePatch",
]


@dataclass(frozen=True)
class RowBlock:
    """Rows emitted as a single unit, in document (pre-order) order."""

    rows: Tuple[Row, ...]

    @property
    def head(self) -> Row:
        return self.rows[0]

    @property
    def ids(self) -> List[str]:
        return [row.id for row in self.rows]

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[Row]:
        return iter(self.rows)


@dataclass(frozen=True)
class RemoveRows:
    """Delete remote elements; ids are given relative to ``prefix``."""

    prefix: str
    short_ids: Tuple[str, ...]

    @property
    def row_ids(self) -> List[str]:
        return [self.prefix + short for short in self.short_ids]

    def apply(self, emitter: "PatchEmitter") -> None:
        emitter.remove_rows(self.prefix, self.short_ids)


@dataclass(frozen=True)
class CreateAfter:
    """Create the element(s) of ``block`` right after ``anchor_id``."""

    anchor_id: str
    row_id: str
    block: RowBlock

    def apply(self, emitter: "PatchEmitter") -> None:
        emitter.create_after(self.anchor_id, self.row_id, self.block)


@dataclass(frozen=True)
class ReplaceRow:
    """Replace the element ``row_id`` in place with the element(s) of ``block``."""

    row_id: str
    block: RowBlock

    def apply(self, emitter: "PatchEmitter") -> None:
        emitter.replace(self.row_id, self.block)


@dataclass(frozen=True)
class ReplaceTree:
    """Replace the whole tree element with a full rendering."""

    tree_id: str
    block: RowBlock

    def apply(self, emitter: "PatchEmitter") -> None:
        emitter.replace_tree(self.tree_id, self.block)


Instruction = Union[RemoveRows, CreateAfter, ReplaceRow, ReplaceTree]


@dataclass
class TreePatch:
    """Ordered instruction list for one cycle."""

    tree_id: str
    instructions: List[Instruction] = field(default_factory=list)

    def append(self, instruction: Instruction) -> None:
        self.instructions.append(instruction)

    def emit(self, emitter: "PatchEmitter") -> None:
        """Apply every instruction to *emitter* in order."""
        for instruction in self.instructions:
            instruction.apply(emitter)

    @property
    def is_empty(self) -> bool:
        return not self.instructions

    @property
    def is_full_render(self) -> bool:
        return any(isinstance(i, ReplaceTree) for i in self.instructions)

    def removals(self) -> List[RemoveRows]:
        return [i for i in self.instructions if isinstance(i, RemoveRows)]

    def creations(self) -> List[CreateAfter]:
        return [i for i in self.instructions if isinstance(i, CreateAfter)]

    def replacements(self) -> List[ReplaceRow]:
        return [i for i in self.instructions if isinstance(i, ReplaceRow)]

    @property
    def deleted_ids(self) -> List[str]:
        ids: List[str] = []
        for removal in self.removals():
            ids.extend(removal.row_ids)
        return ids

    def __len__(self) -> int:
        return len(self.instructions)

    def __iter__(self) -> Iterator[Instruction]:
        return iter(self.instructions)
