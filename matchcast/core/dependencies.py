"""Dependency injection utilities for FastAPI"""

import logging

from fastapi import HTTPException

from matchcast.core.config import Settings, get_settings
from matchcast.scheduler import BroadcastScheduler, EventSourcePoller
from matchcast.services import EventSourceClient, MediaStore, PlaybackDriver
from matchcast.shared.models import ConsoleSettings

logger = logging.getLogger(__name__)


# ============================================
# Console Singletons
# ============================================

_scheduler: BroadcastScheduler | None = None
_poller: EventSourcePoller | None = None


def build_scheduler(settings: Settings) -> BroadcastScheduler:
    """Wire a scheduler with its client, playback driver and media store."""
    return BroadcastScheduler(
        ConsoleSettings.from_settings(settings),
        client=EventSourceClient(timeout=settings.request_timeout_seconds),
        driver=PlaybackDriver(settle_delay=settings.settle_delay_seconds),
        media=MediaStore(),
        priority_keywords=settings.priority_keywords,
        full_poll_every=settings.full_poll_every,
    )


def init_console(settings: Settings | None = None) -> BroadcastScheduler:
    """Create the process-wide scheduler and poll loop (idempotent)."""
    global _scheduler, _poller
    if _scheduler is None:
        settings = settings or get_settings()
        _scheduler = build_scheduler(settings)
        _poller = EventSourcePoller(
            _scheduler,
            interval=settings.poll_interval_seconds,
            config_retry=settings.config_retry_seconds,
        )
        if settings.start_on_launch:
            _scheduler.start_broadcast()
    return _scheduler


def get_poller() -> EventSourcePoller | None:
    return _poller


async def close_console() -> None:
    """Stop the poll loop and release network resources. Call on app shutdown."""
    global _scheduler, _poller
    if _poller is not None:
        await _poller.stop()
        _poller = None
    if _scheduler is not None:
        await _scheduler.driver.aclose()
        await _scheduler.client.close()
        _scheduler = None


# ============================================
# Route Dependencies
# ============================================


def get_scheduler() -> BroadcastScheduler:
    if _scheduler is None:
        raise HTTPException(status_code=503, detail="Console not ready")
    return _scheduler
