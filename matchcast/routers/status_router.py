"""Observer routes: system status, now playing, media."""

from __future__ import annotations

import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field

from matchcast.core.dependencies import get_scheduler
from matchcast.scheduler import BroadcastScheduler

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["status"])


class StatusResponse(BaseModel):
    source_reachable: bool
    broadcasting: bool
    playback_ready: bool
    endpoint_configured: bool
    context_id: str
    poll_sequence: int
    queue_size: int
    auto_play: bool
    consecutive_failures: int
    last_error: str | None


class NowPlayingResponse(BaseModel):
    phase: str
    item_id: str | None
    label: str | None
    text: str | None
    media_url: str | None
    volume: int
    since: float


class VolumeUpdate(BaseModel):
    volume: int = Field(..., ge=0, le=100)


def content_disposition(filename: str) -> str:
    """Inline disposition for any filename: RFC 6266 ``filename*`` plus an ASCII fallback."""
    fallback = "".join(
        ch if " " <= ch <= "~" and ch not in '"\\' else "_" for ch in filename
    )
    encoded = quote(filename, safe="")
    return f"inline; filename=\"{fallback or 'media'}\"; filename*=UTF-8''{encoded}"


def _now_playing(scheduler: BroadcastScheduler) -> NowPlayingResponse:
    state = scheduler.driver.state
    return NowPlayingResponse(
        phase=state.phase,
        item_id=state.item_id,
        label=state.label,
        text=state.text,
        media_url=state.media_url,
        volume=state.volume,
        since=state.since,
    )


@router.get("/status", response_model=StatusResponse)
async def get_status(scheduler: BroadcastScheduler = Depends(get_scheduler)) -> StatusResponse:
    """Connectivity indicator and console overview for the header bar."""
    return StatusResponse(
        **scheduler.status(),
        consecutive_failures=scheduler.connectivity.consecutive_failures,
        last_error=scheduler.connectivity.last_error,
    )


@router.get("/playback", response_model=NowPlayingResponse)
async def get_playback(scheduler: BroadcastScheduler = Depends(get_scheduler)) -> NowPlayingResponse:
    """What the overlay should be rendering right now."""
    return _now_playing(scheduler)


@router.put("/playback/volume", response_model=NowPlayingResponse)
async def set_volume(
    body: VolumeUpdate,
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> NowPlayingResponse:
    scheduler.driver.set_volume(body.volume)
    return _now_playing(scheduler)


@router.get("/media/{ref}")
async def get_media(ref: str, scheduler: BroadcastScheduler = Depends(get_scheduler)) -> Response:
    blob = scheduler.media.get(ref)
    if blob is None:
        raise HTTPException(status_code=404, detail="Media not found")
    headers = {}
    if blob.filename:
        headers["Content-Disposition"] = content_disposition(blob.filename)
    return Response(content=blob.data, media_type=blob.content_type, headers=headers)
