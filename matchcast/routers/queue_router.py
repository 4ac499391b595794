"""Broadcast queue API routes, the operator command surface."""

from __future__ import annotations

import logging
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from pydantic import BaseModel, Field

from matchcast.core.dependencies import get_scheduler
from matchcast.scheduler import BroadcastScheduler
from matchcast.services.media_store import MediaStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/queue", tags=["queue"])


# ============================================
# Response / Request Models
# ============================================


class QueueItemResponse(BaseModel):
    id: str
    origin: str
    state: str
    label: str
    text: str | None
    media_url: str | None
    filename: str | None
    created_at: datetime


class QueueStateResponse(BaseModel):
    active_id: str | None
    auto_play: bool
    queue_size: int
    items: list[QueueItemResponse]


class CompleteRequest(BaseModel):
    item_id: str | None = None  # None = whatever is on air


class ReorderRequest(BaseModel):
    item_ids: list[str]


class ChatMessage(BaseModel):
    message: str = Field(..., min_length=1, max_length=1000)


class ChatInjectResponse(BaseModel):
    injected: int
    queue: QueueStateResponse


# ============================================
# Helpers
# ============================================


def build_queue_state(scheduler: BroadcastScheduler) -> QueueStateResponse:
    items = scheduler.snapshot()
    active = scheduler.queue.active()
    return QueueStateResponse(
        active_id=active.id if active else None,
        auto_play=scheduler.settings.auto_play,
        queue_size=len(items),
        items=[
            QueueItemResponse(
                id=item.id,
                origin=item.origin,
                state=item.state,
                label=item.label,
                text=item.text,
                media_url=MediaStore.url_for(item.media_ref) if item.media_ref else None,
                filename=item.filename,
                created_at=item.created_at,
            )
            for item in items
        ],
    )


# ============================================
# Endpoints
# ============================================


@router.get("", response_model=QueueStateResponse)
async def get_queue(scheduler: BroadcastScheduler = Depends(get_scheduler)) -> QueueStateResponse:
    """Ordered queue snapshot for the dashboard and the overlay."""
    return build_queue_state(scheduler)


@router.post("/complete", response_model=QueueStateResponse)
async def complete_item(
    body: CompleteRequest,
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> QueueStateResponse:
    """Called by the overlay when an item finishes (or a text item is acknowledged)."""
    scheduler.complete(body.item_id)
    return build_queue_state(scheduler)


@router.post("/skip", response_model=QueueStateResponse)
async def skip_current(scheduler: BroadcastScheduler = Depends(get_scheduler)) -> QueueStateResponse:
    scheduler.skip()
    return build_queue_state(scheduler)


@router.post("/stop", response_model=QueueStateResponse)
async def stop_current(scheduler: BroadcastScheduler = Depends(get_scheduler)) -> QueueStateResponse:
    """Stop what is on air and freeze the queue."""
    scheduler.stop()
    return build_queue_state(scheduler)


@router.delete("/clear", response_model=QueueStateResponse)
async def clear_queue(scheduler: BroadcastScheduler = Depends(get_scheduler)) -> QueueStateResponse:
    """Clear everything except the item on air."""
    scheduler.clear()
    return build_queue_state(scheduler)


@router.delete("/items/{item_id}", response_model=QueueStateResponse)
async def remove_item(
    item_id: str,
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> QueueStateResponse:
    scheduler.remove(item_id)
    return build_queue_state(scheduler)


@router.post("/items/{item_id}/play", response_model=QueueStateResponse)
async def play_item(
    item_id: str,
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> QueueStateResponse:
    scheduler.play(item_id)
    return build_queue_state(scheduler)


@router.post("/items/{item_id}/stop", response_model=QueueStateResponse)
async def stop_item(
    item_id: str,
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> QueueStateResponse:
    scheduler.stop_item(item_id)
    return build_queue_state(scheduler)


@router.put("/order", response_model=QueueStateResponse)
async def reorder_queue(
    body: ReorderRequest,
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> QueueStateResponse:
    scheduler.reorder(body.item_ids)
    return build_queue_state(scheduler)


@router.post("/manual", status_code=201, response_model=QueueStateResponse)
async def inject_manual(
    request: Request,
    filename: str = Query(..., min_length=1, max_length=255),
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> QueueStateResponse:
    """Raw media upload; the file goes on air next."""
    data = await request.body()
    if not data:
        raise HTTPException(status_code=400, detail="Empty media upload")
    content_type = request.headers.get("content-type") or "audio/mpeg"
    scheduler.inject_manual(data, filename, content_type=content_type)
    return build_queue_state(scheduler)


@router.post("/chat", response_model=ChatInjectResponse)
async def inject_chat(
    body: ChatMessage,
    scheduler: BroadcastScheduler = Depends(get_scheduler),
) -> ChatInjectResponse:
    """Send an operator message to the source and put its answer at the front."""
    message = body.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message is empty")
    items = await scheduler.send_chat(message)
    return ChatInjectResponse(injected=len(items), queue=build_queue_state(scheduler))
