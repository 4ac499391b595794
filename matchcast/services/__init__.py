from .event_source import ChatPayload, EventSourceClient, EventSourceError, PollPayload
from .media_store import MediaBlob, MediaStore
from .playback import NowPlaying, PlaybackDriver

__all__ = [
    "ChatPayload",
    "EventSourceClient",
    "EventSourceError",
    "MediaBlob",
    "MediaStore",
    "NowPlaying",
    "PlaybackDriver",
    "PollPayload",
]
