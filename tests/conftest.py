"""Shared fixtures for console tests."""

import json

import httpx
import pytest

from matchcast.scheduler import BroadcastScheduler
from matchcast.services import EventSourceClient, MediaStore, PlaybackDriver
from matchcast.shared.models import CandidateEvent, ConsoleSettings, SourceBatch

SOURCE_URL = "http://source.test/webhook"
KEYWORDS = ["Goal", "Penalty", "Red Card", "Yellow Card", "VAR"]


class RecordingDriver(PlaybackDriver):
    """Playback driver that starts media at once and remembers every sync."""

    def __init__(self) -> None:
        super().__init__(settle_delay=0)
        self.synced: list[str | None] = []
        self.stops = 0

    def sync(self, item) -> None:
        self.synced.append(item.id if item is not None else None)
        super().sync(item)

    def stop(self) -> None:
        self.stops += 1
        super().stop()


class SourceStub:
    """httpx transport handler that replays queued JSON responses and records requests."""

    def __init__(self) -> None:
        self.responses: list[httpx.Response] = []
        self.requests: list[dict] = []

    def reply(self, status_code: int = 200, **body) -> None:
        self.responses.append(httpx.Response(status_code, json=body))

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        if self.responses:
            return self.responses.pop(0)
        return httpx.Response(200, json={"events": []})


def event(event_id: str, label: str = "Commentary", audio: bytes | None = None, text=None):
    return CandidateEvent(id=event_id, label=label, text=text, audio=audio)


def batch(*events: CandidateEvent, **kwargs) -> SourceBatch:
    return SourceBatch(events=list(events), **kwargs)


@pytest.fixture
def source() -> SourceStub:
    return SourceStub()


@pytest.fixture
def console_settings() -> ConsoleSettings:
    return ConsoleSettings(
        event_source_url=SOURCE_URL,
        match_id="1001",
        persona="Calm analyst",
        auto_play=True,
    )


@pytest.fixture
def scheduler(console_settings, source) -> BroadcastScheduler:
    return BroadcastScheduler(
        console_settings,
        client=EventSourceClient(timeout=8.0, transport=httpx.MockTransport(source)),
        driver=RecordingDriver(),
        media=MediaStore(),
        priority_keywords=KEYWORDS,
        full_poll_every=5,
    )


@pytest.fixture
def feed(scheduler):
    """Apply a batch as if it came back from a poll issued just now."""

    def _feed(*events: CandidateEvent, **kwargs):
        scheduler.start_broadcast()
        request = scheduler.prepare_poll()
        return scheduler.apply_poll_result(request, batch(*events, **kwargs))

    return _feed
