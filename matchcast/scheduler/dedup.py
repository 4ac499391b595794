"""Deduplication of candidate events against the live queue and the cursor."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from matchcast.shared.models import CandidateEvent

logger = logging.getLogger(__name__)


def accept_new_events(
    candidates: Iterable[CandidateEvent],
    live_ids: Iterable[str],
    last_seen_event_id: str,
) -> tuple[list[CandidateEvent], str]:
    """Return (accepted events, advanced cursor).

    An event is accepted when its id is neither live in the queue nor equal to the
    cursor. The cursor moves to each accepted id in arrival order, so the last
    accepted event wins. Duplicates are dropped silently.
    """
    seen = set(live_ids)
    cursor = last_seen_event_id
    accepted: list[CandidateEvent] = []

    for event in candidates:
        if event.id == cursor or event.id in seen:
            logger.debug(f"Duplicate event {event.id} ignored")
            continue
        accepted.append(event)
        seen.add(event.id)
        cursor = event.id

    return accepted, cursor
