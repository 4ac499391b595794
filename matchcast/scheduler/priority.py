"""Priority merge policy for newly accepted queue items."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass

from matchcast.scheduler.queue import BroadcastQueue
from matchcast.shared.models import QueueItem


def is_priority(label: str, keywords: Iterable[str]) -> bool:
    """Breaking events (goals, cards, penalties, VAR) are matched on the label."""
    return any(keyword and keyword in label for keyword in keywords)


def partition(
    items: Sequence[QueueItem], keywords: Sequence[str]
) -> tuple[list[QueueItem], list[QueueItem]]:
    """Split into (priority, normal), keeping arrival order within each."""
    priority: list[QueueItem] = []
    normal: list[QueueItem] = []
    for item in items:
        (priority if is_priority(item.label, keywords) else normal).append(item)
    return priority, normal


@dataclass
class MergeOutcome:
    priority: int = 0
    normal: int = 0
    promoted: QueueItem | None = None


def merge_into_queue(
    queue: BroadcastQueue,
    items: Sequence[QueueItem],
    keywords: Sequence[str],
    *,
    auto_play: bool,
) -> MergeOutcome:
    """Merge a batch of new items.

    With an item on air, priority items go right behind it and normal items go to
    the tail. With nothing on air, the first priority item goes on air at once with
    the other priority items behind it; without priority items, normal items are
    appended and the head QUEUED item is promoted when auto-play is on.

    Callers force auto-play on when the outcome reports priority items.
    """
    priority, normal = partition(items, keywords)
    outcome = MergeOutcome(priority=len(priority), normal=len(normal))

    if priority:
        if queue.active() is not None:
            queue.insert_after_active(priority)
        else:
            queue.push_front(priority)
            queue.promote(priority[0])
            outcome.promoted = priority[0]

    queue.append(normal)

    if queue.active() is None and auto_play:
        outcome.promoted = queue.promote_next()

    return outcome
