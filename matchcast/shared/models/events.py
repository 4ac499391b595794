"""Data models for events produced by the commentary source."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass
class CandidateEvent:
    """A well-formed event from a source response, not yet deduplicated."""

    id: str
    label: str
    text: str | None = None
    audio: bytes | None = None


@dataclass
class SourceBatch:
    """Parsed poll response."""

    events: list[CandidateEvent] = field(default_factory=list)
    current_stats: Any = None
    elapsed_hint: int | None = None
    dropped: int = 0  # malformed events discarded while parsing
