"""Dense zero-based ordering for sibling collections.

Columns within a board and cards within a column are both kept as a
contiguous ``0..N-1`` sequence of ``position`` values. The helpers here
operate on any objects exposing ``id``, ``position`` and ``created_at``
and only mutate ``position``; persisting the result is the caller's job.
"""
from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional, Protocol, Sequence, TypeVar


class Positioned(Protocol):
    id: str
    position: int
    created_at: Optional[datetime]


T = TypeVar("T", bound=Positioned)


def sort_key(item: Positioned) -> tuple:
    created = item.created_at.replace(tzinfo=None) if item.created_at else datetime.min
    return (item.position, created, item.id)


def ordered(siblings: Iterable[T]) -> list[T]:
    """Return siblings in display order, ties broken by age then id."""
    return sorted(siblings, key=sort_key)


def next_position(siblings: Iterable[Positioned]) -> int:
    """Position for a new sibling appended after all existing ones."""
    positions = [s.position for s in siblings]
    return max(positions) + 1 if positions else 0


def compact(siblings: Iterable[T]) -> list[T]:
    """Rewrite every position to its index in display order."""
    result = ordered(siblings)
    for index, item in enumerate(result):
        item.position = index
    return result


def move_within(siblings: Sequence[T], item: T, position: int) -> list[T]:
    """Move ``item`` to ``position`` among ``siblings`` (which may include it).

    Siblings at or after the target slot shift up by one, then the whole set
    is re-enumerated with the moved item holding its slot. Starting from an
    inconsistent sequence (gaps, duplicates) still ends dense.
    """
    others = ordered(s for s in siblings if s is not item)
    position = max(0, min(position, len(others)))

    for sibling in others:
        if sibling.position >= position:
            sibling.position += 1
    item.position = position

    index = 0
    for sibling in others:
        if index == position:
            index += 1
        sibling.position = index
        index += 1

    result = list(others)
    result.insert(position, item)
    return result


def move_across(
    source: Sequence[T],
    destination: Sequence[T],
    item: T,
    position: int,
) -> tuple[list[T], list[T]]:
    """Move ``item`` out of ``source`` and into ``destination`` at ``position``.

    Returns the re-enumerated ``(source, destination)`` sequences. Changing
    the item's parent reference is left to the caller.
    """
    remaining = compact(s for s in source if s is not item)
    placed = move_within([s for s in destination if s is not item], item, position)
    return remaining, placed
