"""Shared data models for the broadcast console."""

from .events import CandidateEvent, SourceBatch
from .queue import (
    ORIGIN_MANUAL,
    ORIGIN_REMOTE,
    STATE_ACTIVE,
    STATE_DONE,
    STATE_QUEUED,
    QueueItem,
)
from .session import ConsoleSettings, Credentials, MatchDetails, SchedulerSession, TeamInfo

__all__ = [
    "ORIGIN_MANUAL",
    "ORIGIN_REMOTE",
    "STATE_ACTIVE",
    "STATE_DONE",
    "STATE_QUEUED",
    "CandidateEvent",
    "ConsoleSettings",
    "Credentials",
    "MatchDetails",
    "QueueItem",
    "SchedulerSession",
    "SourceBatch",
    "TeamInfo",
]
