"""Playback driver: follows the scheduler's ACTIVE item.

The driver never touches the queue. The scheduler calls :meth:`PlaybackDriver.sync`
whenever the active item changes; the driver stops whatever it was doing and either
starts the new item or falls idle. Media items start after a short settle delay so
consecutive clips do not clip into each other; text items are presented at once and
wait for an explicit acknowledgement (a completion command).

Observers (the overlay, the status endpoint) read :class:`NowPlaying` snapshots.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field, replace

from matchcast.services.media_store import MediaStore
from matchcast.shared.models import QueueItem

LOGGER = logging.getLogger("Playback")

PHASE_IDLE = "idle"
PHASE_SETTLING = "settling"
PHASE_PLAYING = "playing"
PHASE_AWAITING_ACK = "awaiting_ack"

Listener = Callable[["NowPlaying"], None]


@dataclass(frozen=True)
class NowPlaying:
    """Immutable snapshot of what the console is putting on air."""

    phase: str  # 'idle' | 'settling' | 'playing' | 'awaiting_ack'
    item_id: str | None = None
    label: str | None = None
    text: str | None = None
    media_url: str | None = None
    volume: int = 80
    since: float = field(default_factory=time.time)


class PlaybackDriver:
    def __init__(self, settle_delay: float = 0.5, volume: int = 80) -> None:
        self.settle_delay = settle_delay
        self.ready = False
        self._state = NowPlaying(phase=PHASE_IDLE, volume=volume)
        self._listeners: list[Listener] = []
        self._start_task: asyncio.Task | None = None

    @property
    def state(self) -> NowPlaying:
        return self._state

    def mark_ready(self) -> None:
        if not self.ready:
            self.ready = True
            LOGGER.info("Playback engine ready")

    def add_listener(self, callback: Listener) -> None:
        self._listeners.append(callback)

    def remove_listener(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def stop(self) -> None:
        """Stop immediately and fall idle."""
        self._cancel_pending_start()
        if self._state.phase != PHASE_IDLE:
            LOGGER.debug(f"Stopped {self._state.item_id}")
            self._publish(NowPlaying(phase=PHASE_IDLE, volume=self._state.volume))

    def sync(self, item: QueueItem | None) -> None:
        """Follow a change of the active item."""
        self.stop()
        if item is None:
            return

        volume = self._state.volume
        if item.media_ref is None:
            self._publish(
                NowPlaying(
                    phase=PHASE_AWAITING_ACK,
                    item_id=item.id,
                    label=item.label,
                    text=item.text,
                    volume=volume,
                )
            )
            LOGGER.info(f"Presenting text: {item.label}")
            return

        snapshot = NowPlaying(
            phase=PHASE_SETTLING,
            item_id=item.id,
            label=item.label,
            text=item.text,
            media_url=MediaStore.url_for(item.media_ref),
            volume=volume,
        )
        if self.settle_delay <= 0:
            self._begin(snapshot)
            return

        self._publish(snapshot)
        self._start_task = asyncio.get_running_loop().create_task(
            self._start_after_settle(item.id)
        )

    def set_volume(self, volume: int) -> int:
        volume = max(0, min(100, int(volume)))
        if volume != self._state.volume:
            self._publish(replace(self._state, volume=volume))
        return volume

    async def aclose(self) -> None:
        task = self._start_task
        self._cancel_pending_start()
        if task is not None:
            try:
                await task
            except asyncio.CancelledError:
                pass

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _start_after_settle(self, item_id: str) -> None:
        await asyncio.sleep(self.settle_delay)
        current = self._state
        if current.phase == PHASE_SETTLING and current.item_id == item_id:
            self._start_task = None
            self._begin(current)

    def _begin(self, snapshot: NowPlaying) -> None:
        self._publish(replace(snapshot, phase=PHASE_PLAYING, since=time.time()))
        LOGGER.info(f"Now playing: {snapshot.label}")

    def _cancel_pending_start(self) -> None:
        if self._start_task is not None and not self._start_task.done():
            self._start_task.cancel()
        self._start_task = None

    def _publish(self, state: NowPlaying) -> None:
        self._state = state
        for callback in self._listeners.copy():
            try:
                callback(state)
            except Exception as e:
                # Observer failures must not affect playout
                LOGGER.warning(f"Playback listener error: {e}")
