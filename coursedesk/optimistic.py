"""
Optimistic removal as an explicit three-phase transaction:

    snapshot + apply  ->  commit | revert

apply() removes the row from the list controller right away, so the UI does
not wait for the server. revert() puts it back if the server refused.
The pure helpers below do the list work and can be tested on their own.
"""

from __future__ import annotations

import logging
from typing import Generic, List, Optional, Tuple, TypeVar

from coursedesk.sync import HasId, ListSync

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=HasId)


def remove_by_id(items: List[T], item_id: int) -> Tuple[List[T], Optional[T], int]:
    """
    Return (remaining, removed, index). removed is None (index -1) if absent.
    """
    for i, item in enumerate(items):
        if item.id == item_id:
            return items[:i] + items[i + 1 :], item, i
    return list(items), None, -1


def restore(items: List[T], removed: T, index: int) -> List[T]:
    """
    Put removed back into items exactly once.

    Goes back to its old index when possible, otherwise to the end.
    If an item with the same id is already present nothing is added.
    """
    if any(item.id == removed.id for item in items):
        return list(items)
    out = list(items)
    pos = index if 0 <= index <= len(out) else len(out)
    out.insert(pos, removed)
    return out


class OptimisticRemoval(Generic[T]):
    def __init__(self, target: ListSync[T], item_id: int) -> None:
        self.target = target
        self.item_id = item_id
        self.snapshot: List[T] = []
        self.removed: Optional[T] = None
        self.index = -1
        self.phase = "new"
        self._applied: Optional[List[T]] = None

    def apply(self) -> Optional[T]:
        """
        Snapshot the list and remove the item. Returns the removed item,
        or None if it was not in the list (nothing changes then).
        """
        if self.phase != "new":
            raise RuntimeError(f"apply() called in phase {self.phase!r}")

        self.snapshot = list(self.target.items)
        remaining, removed, index = remove_by_id(self.snapshot, self.item_id)
        if removed is None:
            self.phase = "noop"
            return None

        self.removed = removed
        self.index = index
        self.target.replace_items(remaining)
        self._applied = self.target.items
        self.phase = "applied"
        logger.debug("%s: optimistically removed id=%s", self.target.name, self.item_id)
        return removed

    def commit(self) -> None:
        if self.phase == "applied":
            self.phase = "committed"

    def revert(self) -> None:
        if self.phase != "applied" or self.removed is None:
            return

        if self.target.items is self._applied:
            # untouched since apply(): the snapshot is still the truth
            self.target.replace_items(self.snapshot)
        else:
            self.target.replace_items(restore(self.target.items, self.removed, self.index))

        self.phase = "reverted"
        logger.debug("%s: restored id=%s", self.target.name, self.item_id)
