"""
boardsync.engine.positions — Sparse Ordinal Sequencer
======================================================

Columns within a board and cards within a column are ordered by an integer
``position``.  Positions are sparse: entry *i* of a freshly numbered list
gets ``(i + 1) * POSITION_GAP``.

After every move the affected list(s) are renumbered in full.  Large gaps
would let a single insertion avoid touching siblings, but full renumbering
keeps positions unique without any gap bookkeeping.

Pure functions only — callers load sibling ids, ask for a plan, and write
the resulting ``{id: position}`` mapping back inside their transaction.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

__all__ = [
    "POSITION_GAP",
    "MovePlan",
    "insert_at",
    "next_position",
    "plan_move",
    "renumber",
]

POSITION_GAP = 1000


@dataclass(frozen=True, slots=True)
class MovePlan:
    """New positions for the lists touched by one move.

    ``source`` is empty for a same-list move.
    """

    destination: dict[int, int]
    source: dict[int, int] = field(default_factory=dict)
    index: int = 0

    def assignments(self) -> dict[int, int]:
        """Every ``id → position`` write the move requires."""
        return {**self.source, **self.destination}


def renumber(ids: Sequence[int]) -> dict[int, int]:
    """Assign ``(i + 1) * POSITION_GAP`` to each id, in list order."""
    return {item_id: (i + 1) * POSITION_GAP for i, item_id in enumerate(ids)}


def insert_at(ids: Sequence[int], item_id: int, index: int) -> tuple[list[int], int]:
    """Return ``(new_order, effective_index)`` with *item_id* inserted.

    *ids* must not contain *item_id*.  The index is clamped to
    ``[0, len(ids)]``: past the end appends, 0 (or below) prepends.
    """
    effective = max(0, min(index, len(ids)))
    ordered = list(ids)
    ordered.insert(effective, item_id)
    return ordered, effective


def plan_move(
    item_id: int,
    destination_ids: Sequence[int],
    index: int,
    source_ids: Sequence[int] | None = None,
) -> MovePlan:
    """Plan a move of *item_id* to *index* of the destination list.

    Parameters
    ----------
    item_id:
        The card (or column) being moved.
    destination_ids:
        Current order of the destination list.  *item_id* is filtered out
        if present, so callers may pass the raw list.
    index:
        Requested insertion index among the remaining siblings.
    source_ids:
        Current order of the source list for a cross-list move, or ``None``
        when the item stays in the same list.  *item_id* is filtered out.
    """
    siblings = [i for i in destination_ids if i != item_id]
    ordered, effective = insert_at(siblings, item_id, index)

    source: dict[int, int] = {}
    if source_ids is not None:
        source = renumber([i for i in source_ids if i != item_id])

    return MovePlan(destination=renumber(ordered), source=source, index=effective)


def next_position(existing: Iterable[int | None]) -> int:
    """Position for an item appended after *existing* positions."""
    highest = max((p for p in existing if p is not None), default=0)
    return highest + POSITION_GAP
