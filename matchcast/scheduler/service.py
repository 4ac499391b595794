"""Broadcast scheduler, the single owner of queue and session state.

Every mutation (poll-result merge, chat merge, operator command, settings change,
context reset) is a plain synchronous method. All of them are called from the one
asyncio event loop, so each runs to completion before the next starts. The only
suspension points are the network calls (the poll loop and :meth:`send_chat`);
their results are applied later in one synchronous step against the queue as it
is at that moment, and are discarded if the session was reset in between.
"""

from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from matchcast.scheduler.connectivity import ConnectivityReporter
from matchcast.scheduler.dedup import accept_new_events
from matchcast.scheduler.priority import merge_into_queue
from matchcast.scheduler.queue import BroadcastQueue
from matchcast.services.event_source import (
    ChatPayload,
    EventSourceClient,
    EventSourceError,
    PollPayload,
    SourceKeys,
)
from matchcast.services.media_store import MediaStore
from matchcast.services.playback import PlaybackDriver
from matchcast.shared.models import (
    ORIGIN_MANUAL,
    ORIGIN_REMOTE,
    CandidateEvent,
    ConsoleSettings,
    Credentials,
    MatchDetails,
    QueueItem,
    SchedulerSession,
    SourceBatch,
)

LOGGER = logging.getLogger("Scheduler")

DEFAULT_LIVE_MATCH_URL = "https://www.aiscore.com/"

SETTINGS_FIELDS = (
    "event_source_url",
    "match_id",
    "persona",
    "data_provider",
    "auto_play",
    "live_match_url",
)

CREDENTIAL_FIELDS = ("football", "sportmonks", "eleven_labs", "open_router")


@dataclass(frozen=True)
class PollRequest:
    """One outbound poll, tagged with the session epoch it was issued under."""

    epoch: int
    sequence: int
    url: str
    payload: PollPayload


@dataclass(frozen=True)
class ChatRequest:
    epoch: int
    url: str
    payload: ChatPayload


class BroadcastScheduler:
    def __init__(
        self,
        settings: ConsoleSettings,
        *,
        client: EventSourceClient,
        driver: PlaybackDriver,
        media: MediaStore,
        priority_keywords: Sequence[str],
        full_poll_every: int = 5,
    ) -> None:
        self.settings = settings
        self.client = client
        self.driver = driver
        self.media = media
        self.priority_keywords = list(priority_keywords)
        self.full_poll_every = full_poll_every

        self.queue = BroadcastQueue()
        self.connectivity = ConnectivityReporter()
        self.broadcasting = False
        self.session = SchedulerSession(context_id=settings.match_id, epoch=0)
        self._on_air: tuple[str, int] | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start_broadcast(self) -> None:
        if self.broadcasting:
            return
        self.broadcasting = True
        self.driver.mark_ready()
        LOGGER.info(f"Broadcast started (match={self.session.context_id or '-'})")

    def reset_session(self, context_id: str) -> None:
        """Drop the queue, cursor, snapshot and poll count; open a new session."""
        previous = self.session
        self.queue.reset()
        self.session = SchedulerSession(context_id=context_id, epoch=previous.epoch + 1)
        LOGGER.info(
            f"Session reset: {previous.context_id or '-'} -> {context_id or '-'} "
            f"(epoch {self.session.epoch})"
        )
        self._commit()

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def prepare_poll(self) -> PollRequest | None:
        """Build the next poll, or None while not broadcasting or not configured."""
        if not self.broadcasting or not self.settings.is_configured:
            return None

        session = self.session
        session.poll_sequence += 1
        sequence = session.poll_sequence
        # First poll and every Nth poll let the source call its upstream providers
        full = sequence == 1 or sequence % self.full_poll_every == 0

        payload = PollPayload(
            match_id=session.context_id,
            last_event_id=session.last_seen_event_id,
            last_stats=session.last_stats_snapshot,
            persona=self.settings.persona,
            skip_api=not full,
            data_provider=self.settings.data_provider or "api-football",
            keys=self._source_keys(),
        )
        return PollRequest(
            epoch=session.epoch,
            sequence=sequence,
            url=self.settings.event_source_url,
            payload=payload,
        )

    def apply_poll_result(self, request: PollRequest, batch: SourceBatch) -> list[QueueItem]:
        """Merge a completed poll. Returns the items that entered the queue."""
        self.connectivity.mark_success()

        if request.epoch != self.session.epoch:
            LOGGER.debug(
                f"Ignoring poll #{request.sequence} from a previous session "
                f"(epoch {request.epoch}, now {self.session.epoch})"
            )
            return []

        session = self.session
        if batch.current_stats is not None:
            session.last_stats_snapshot = batch.current_stats
        if batch.elapsed_hint is not None:
            self._apply_elapsed_hint(batch.elapsed_hint)

        accepted, cursor = accept_new_events(
            batch.events, self.queue.ids(), session.last_seen_event_id
        )
        session.last_seen_event_id = cursor
        if not accepted:
            return []

        items = [
            self._item_from_event(event, filename=f"ai_commentary_{event.id}.mp3")
            for event in accepted
        ]
        outcome = merge_into_queue(
            self.queue,
            items,
            self.priority_keywords,
            auto_play=self.settings.auto_play,
        )
        if outcome.priority:
            self._force_auto_play("priority event")

        LOGGER.info(
            f"Merged {len(items)} event(s): {outcome.priority} priority, {outcome.normal} normal"
        )
        self._commit()
        return items

    def record_poll_failure(self, request: PollRequest, error: EventSourceError) -> None:
        """A failed poll only affects connectivity; queue and cursor stay as they are."""
        self.connectivity.mark_failure(str(error))

    # ------------------------------------------------------------------
    # Playback commands
    # ------------------------------------------------------------------

    def complete(self, item_id: str | None = None) -> bool:
        """Natural end of the active item (or acknowledgement of a text item)."""
        finished = self.queue.complete(item_id, auto_play=self.settings.auto_play)
        if finished is None:
            return False
        LOGGER.debug(f"Completed {finished.id}")
        self._commit()
        return True

    def skip(self) -> None:
        self.driver.stop()
        self._force_auto_play("skip")
        skipped = self.queue.complete(auto_play=True)
        if skipped is not None:
            LOGGER.info(f"Skipped {skipped.id}")
        self._commit()

    def stop(self) -> None:
        """Stop the active item and freeze the queue (auto-play off)."""
        self.driver.stop()
        stopped = self.queue.stop_active()
        self.settings.auto_play = False
        LOGGER.info(f"Stopped {stopped.id if stopped else 'nothing'}, auto-play off")
        self._commit()

    def clear(self) -> int:
        removed = self.queue.clear()
        LOGGER.info(f"Cleared {removed} queued item(s)")
        self._commit()
        return removed

    def remove(self, item_id: str) -> bool:
        active = self.queue.active()
        if active is not None and active.id == item_id:
            self.driver.stop()
        removed = self.queue.remove(item_id, auto_play=self.settings.auto_play)
        if removed is None:
            return False
        LOGGER.info(f"Removed {item_id}")
        self._commit()
        return True

    def play(self, item_id: str) -> bool:
        if self.queue.get(item_id) is None:
            return False
        self.driver.stop()
        self.queue.play(item_id)
        self._force_auto_play("manual play")
        LOGGER.info(f"Playing {item_id} on operator request")
        self._commit()
        return True

    def stop_item(self, item_id: str) -> bool:
        stopped = self.queue.stop_item(item_id)
        if stopped is None:
            return False
        LOGGER.info(f"Stopped {item_id} on operator request")
        self._commit()
        return True

    def reorder(self, item_ids: Sequence[str]) -> None:
        self.queue.reorder(item_ids)
        self._commit()

    # ------------------------------------------------------------------
    # Injection
    # ------------------------------------------------------------------

    def inject_manual(
        self,
        data: bytes,
        filename: str,
        content_type: str = "audio/mpeg",
    ) -> QueueItem:
        """Wrap an operator-supplied media file and put it next on air."""
        item_id = f"manual_{int(time.time() * 1000)}_{uuid.uuid4().hex[:6]}"
        item = QueueItem(
            id=item_id,
            origin=ORIGIN_MANUAL,
            label=f"Manual Override: {filename}",
            media_ref=self.media.put(data, content_type=content_type, filename=filename),
            filename=filename,
        )
        self._force_auto_play("manual inject")
        self.queue.inject_after_active([item])
        LOGGER.info(f"Manual inject: {filename} ({len(data)} bytes)")
        self._commit()
        return item

    def prepare_chat(self, message: str) -> ChatRequest | None:
        if not self.settings.event_source_url.strip():
            return None
        session = self.session
        payload = ChatPayload(
            match_id=session.context_id,
            last_event_id=session.last_seen_event_id,
            last_stats=session.last_stats_snapshot,
            persona=self.settings.persona,
            user_message=message,
            data_provider=self.settings.data_provider or "api-football",
            match_info=self.settings.match_summary(),
            keys=self._source_keys(),
        )
        return ChatRequest(epoch=session.epoch, url=self.settings.event_source_url, payload=payload)

    def apply_chat_result(
        self, request: ChatRequest, events: Sequence[CandidateEvent]
    ) -> list[QueueItem]:
        """Put chat answers at the very front of the waiting set."""
        if request.epoch != self.session.epoch:
            LOGGER.debug("Ignoring chat response from a previous session")
            return []

        live = set(self.queue.ids())
        fresh: list[CandidateEvent] = []
        for event in events:
            if event.id in live:
                LOGGER.debug(f"Chat event {event.id} already queued")
                continue
            live.add(event.id)
            fresh.append(event)
        if not fresh:
            return []

        items = [self._item_from_event(e, filename=f"ai_chat_{e.id}.mp3") for e in fresh]
        self._force_auto_play("chat inject")
        self.queue.inject_front(items)
        LOGGER.info(f"Chat inject: {len(items)} item(s)")
        self._commit()
        return items

    async def send_chat(self, message: str) -> list[QueueItem]:
        """Ask the source to answer *message*; queue what it returns."""
        request = self.prepare_chat(message)
        if request is None:
            LOGGER.warning("Chat ignored: no event source configured")
            return []
        try:
            events = await self.client.chat(request.url, request.payload)
        except EventSourceError as e:
            LOGGER.error(f"Chat injection failed: {e}")
            return []
        return self.apply_chat_result(request, events)

    # ------------------------------------------------------------------
    # Settings & context
    # ------------------------------------------------------------------

    def update_settings(
        self,
        changes: dict[str, Any],
        credentials: dict[str, str] | None = None,
    ) -> ConsoleSettings:
        """Apply a partial settings update. A new match id resets the session."""
        credentials = credentials or {}
        for name in changes:
            if name not in SETTINGS_FIELDS:
                raise ValueError(f"Unknown setting: {name}")
        for name in credentials:
            if name not in CREDENTIAL_FIELDS:
                raise ValueError(f"Unknown credential: {name}")

        previous_match = self.settings.match_id
        for name, value in changes.items():
            setattr(self.settings, name, value)
        for name, value in credentials.items():
            setattr(self.settings.credentials, name, value)

        if self.settings.match_id != previous_match:
            LOGGER.info("Match ID changed, resetting history...")
            self.reset_session(self.settings.match_id)
        return self.settings

    def set_auto_play(self, enabled: bool) -> None:
        self.settings.auto_play = enabled

    def select_match(self, details: MatchDetails, live_match_url: str | None = None) -> None:
        match_id = str(details.fixture_id)
        previous_match = self.settings.match_id
        self.settings.match_id = match_id
        self.settings.match_details = details
        self.settings.live_match_url = live_match_url or DEFAULT_LIVE_MATCH_URL
        LOGGER.info(f"Selected match {match_id}: {details.summary()}")
        if match_id != previous_match:
            self.reset_session(match_id)

    def reset_match(self) -> None:
        self.settings.match_id = ""
        self.settings.match_details = None
        self.settings.live_match_url = ""
        self.reset_session("")

    # ------------------------------------------------------------------
    # Observers
    # ------------------------------------------------------------------

    def snapshot(self) -> list[QueueItem]:
        return self.queue.items()

    def status(self) -> dict[str, Any]:
        return {
            "source_reachable": self.connectivity.reachable,
            "broadcasting": self.broadcasting,
            "playback_ready": self.driver.ready,
            "endpoint_configured": bool(self.settings.event_source_url.strip()),
            "context_id": self.session.context_id,
            "poll_sequence": self.session.poll_sequence,
            "queue_size": len(self.queue),
            "auto_play": self.settings.auto_play,
        }

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _source_keys(self) -> SourceKeys:
        creds: Credentials = self.settings.credentials
        return SourceKeys(
            football=creds.football,
            sportmonks=creds.sportmonks,
            eleven_labs=creds.eleven_labs,
            open_router=creds.open_router,
        )

    def _item_from_event(self, event: CandidateEvent, *, filename: str) -> QueueItem:
        media_ref = None
        if event.audio:
            media_ref = self.media.put(event.audio, filename=filename)
        return QueueItem(
            id=event.id,
            origin=ORIGIN_REMOTE,
            label=event.label,
            text=event.text,
            media_ref=media_ref,
            filename=filename,
        )

    def _apply_elapsed_hint(self, elapsed: int) -> None:
        # Most recent write wins between this hint and operator-supplied details
        details = self.settings.match_details
        if details is not None and details.elapsed != elapsed:
            details.elapsed = elapsed

    def _force_auto_play(self, reason: str) -> None:
        if not self.settings.auto_play:
            self.settings.auto_play = True
            LOGGER.info(f"Auto-play enabled ({reason})")

    def _live_media_refs(self) -> Iterable[str]:
        return (item.media_ref for item in self.queue if item.media_ref is not None)

    def _commit(self) -> None:
        """Tell the playback driver about a new activation and release orphaned media."""
        active = self.queue.active()
        marker = (active.id, self.queue.activation_serial) if active is not None else None
        if marker != self._on_air:
            self._on_air = marker
            self.driver.sync(active)
        self.media.retain(self._live_media_refs())
