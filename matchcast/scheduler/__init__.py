from .connectivity import ConnectivityReporter
from .dedup import accept_new_events
from .poller import EventSourcePoller
from .priority import is_priority, merge_into_queue
from .queue import BroadcastQueue
from .service import BroadcastScheduler, ChatRequest, PollRequest

__all__ = [
    "BroadcastQueue",
    "BroadcastScheduler",
    "ChatRequest",
    "ConnectivityReporter",
    "EventSourcePoller",
    "PollRequest",
    "accept_new_events",
    "is_priority",
    "merge_into_queue",
]
