"""Data models for broadcast queue items."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime

ORIGIN_REMOTE = "REMOTE"
ORIGIN_MANUAL = "MANUAL"

STATE_QUEUED = "QUEUED"
STATE_ACTIVE = "ACTIVE"
STATE_DONE = "DONE"


@dataclass
class QueueItem:
    """One unit of broadcast: remote commentary or operator-injected media."""

    id: str
    origin: str  # 'REMOTE' | 'MANUAL'
    label: str
    state: str = STATE_QUEUED  # 'QUEUED' | 'ACTIVE' | 'DONE'
    text: str | None = None
    media_ref: str | None = None  # key into the media store
    filename: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def has_media(self) -> bool:
        return self.media_ref is not None

    @property
    def is_active(self) -> bool:
        return self.state == STATE_ACTIVE
