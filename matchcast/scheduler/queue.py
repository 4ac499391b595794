"""Broadcast queue and playback state machine.

Items move QUEUED -> ACTIVE -> DONE. At most one item is ACTIVE at any time.
Natural completion prunes the finished item; an explicit stop leaves it in the
queue as DONE so it can be replayed. Nothing here performs I/O; callers (the
scheduler) run every transition to completion before the next one starts.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence

from matchcast.shared.models import STATE_ACTIVE, STATE_DONE, STATE_QUEUED, QueueItem

logger = logging.getLogger(__name__)


class BroadcastQueue:
    """Ordered queue of broadcast items with single-active transitions."""

    def __init__(self) -> None:
        self._items: list[QueueItem] = []
        # Bumped on every promotion so a replay of the same item is a new activation
        self.activation_serial = 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[QueueItem]:
        return iter(list(self._items))

    def __contains__(self, item_id: object) -> bool:
        return any(item.id == item_id for item in self._items)

    def items(self) -> list[QueueItem]:
        return list(self._items)

    def ids(self) -> list[str]:
        return [item.id for item in self._items]

    def get(self, item_id: str) -> QueueItem | None:
        for item in self._items:
            if item.id == item_id:
                return item
        return None

    def active(self) -> QueueItem | None:
        for item in self._items:
            if item.state == STATE_ACTIVE:
                return item
        return None

    def active_count(self) -> int:
        return sum(1 for item in self._items if item.state == STATE_ACTIVE)

    # ------------------------------------------------------------------
    # Placement primitives
    # ------------------------------------------------------------------

    def append(self, items: Iterable[QueueItem]) -> None:
        self._items.extend(items)

    def push_front(self, items: Sequence[QueueItem]) -> None:
        self._items[0:0] = items

    def insert_after_active(self, items: Sequence[QueueItem]) -> None:
        """Place *items* right behind the ACTIVE item (at the front if none)."""
        active = self.active()
        index = self._items.index(active) + 1 if active is not None else 0
        self._items[index:index] = items

    def promote(self, item: QueueItem) -> None:
        current = self.active()
        if current is not None and current is not item:
            raise RuntimeError(f"Cannot promote {item.id}: {current.id} is already active")
        item.state = STATE_ACTIVE
        self.activation_serial += 1
        logger.debug(f"Promoted {item.id} (activation {self.activation_serial})")

    def promote_next(self) -> QueueItem | None:
        """Promote the first QUEUED item, skipping any DONE items left by a stop."""
        for item in self._items:
            if item.state == STATE_QUEUED:
                self.promote(item)
                return item
        return None

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def complete(self, item_id: str | None = None, *, auto_play: bool) -> QueueItem | None:
        """Natural end or acknowledgement: ACTIVE -> DONE -> pruned.

        A completion naming an item that is not on air is ignored.
        """
        active = self.active()
        if active is None or (item_id is not None and active.id != item_id):
            return None
        active.state = STATE_DONE
        self._items.remove(active)
        if auto_play:
            self.promote_next()
        return active

    def stop_active(self) -> QueueItem | None:
        """ACTIVE -> DONE, kept in the queue. No successor is promoted."""
        active = self.active()
        if active is not None:
            active.state = STATE_DONE
        return active

    def clear(self) -> int:
        """Remove every item except the ACTIVE one."""
        before = len(self._items)
        self._items = [item for item in self._items if item.state == STATE_ACTIVE]
        return before - len(self._items)

    def remove(self, item_id: str, *, auto_play: bool) -> QueueItem | None:
        item = self.get(item_id)
        if item is None:
            return None
        was_active = item.state == STATE_ACTIVE
        self._items.remove(item)
        if was_active and auto_play:
            self.promote_next()
        return item

    def play(self, item_id: str) -> QueueItem | None:
        """Put *item_id* on air now, whatever its state (DONE included).

        The previously active item goes back to QUEUED; the played item moves to
        the front of the queue.
        """
        item = self.get(item_id)
        if item is None:
            return None
        current = self.active()
        if current is not None and current is not item:
            current.state = STATE_QUEUED
        item.state = STATE_QUEUED
        self._items.remove(item)
        self._items.insert(0, item)
        self.promote(item)
        return item

    def stop_item(self, item_id: str) -> QueueItem | None:
        """Stop *item_id* if it is on air: ACTIVE -> DONE without pruning."""
        item = self.get(item_id)
        if item is None or item.state != STATE_ACTIVE:
            return None
        item.state = STATE_DONE
        return item

    def reorder(self, item_ids: Sequence[str]) -> None:
        """Apply an operator-supplied order. States are untouched.

        Unknown ids are ignored; items the order leaves out keep their relative
        order behind the listed ones.
        """
        by_id = {item.id: item for item in self._items}
        ordered: list[QueueItem] = []
        for item_id in item_ids:
            item = by_id.pop(item_id, None)
            if item is not None:
                ordered.append(item)
        ordered.extend(item for item in self._items if item.id in by_id)
        self._items = ordered

    def inject_after_active(self, items: Sequence[QueueItem]) -> QueueItem | None:
        """Place *items* right behind the ACTIVE item; go on air if nothing is.

        Returns the promoted item, if any.
        """
        if not items:
            return None
        if self.active() is not None:
            self.insert_after_active(items)
            return None
        self.push_front(items)
        self.promote(items[0])
        return items[0]

    def inject_front(self, items: Sequence[QueueItem]) -> QueueItem | None:
        """Put *items* at the head of the waiting set; go on air if nothing is.

        Returns the promoted item, if any.
        """
        if not items:
            return None
        active = self.active()
        waiting = [item for item in self._items if item is not active]
        self._items = ([active] if active is not None else []) + list(items) + waiting
        if active is None:
            self.promote(items[0])
            return items[0]
        return None

    def reset(self) -> None:
        self._items.clear()
