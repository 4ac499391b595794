"""Commentary source client.

The source is an opaque HTTP webhook. Every request is a JSON POST carrying the
match context, the de-duplication cursor and the provider credentials; the
response carries zero or more commentary events.

Request kinds:
- POLL: periodic, issued by the poll loop
- CHAT: on demand, an operator message the source answers with events
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
import time
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from matchcast.shared.models import CandidateEvent, SourceBatch

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "New Event"
CHAT_LABEL = "Chat Response"


class EventSourceError(Exception):
    """Recoverable failure talking to the commentary source."""

    def __init__(self, message: str, status_code: int | None = None, body: str | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


# ============================================
# Wire Models
# ============================================


class SourceKeys(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    football: str = ""
    sportmonks: str = ""
    eleven_labs: str = Field(default="", alias="elevenLabs")
    open_router: str = Field(default="", alias="openRouter")


class PollPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    match_id: str = Field(alias="matchId")
    type: str = "POLL"
    last_event_id: str = Field(default="", alias="lastEventId")
    last_stats: Any = Field(default=None, alias="lastStats")
    persona: str = ""
    skip_api: bool = Field(default=False, alias="skipApi")
    data_provider: str = Field(default="api-football", alias="dataProvider")
    keys: SourceKeys = Field(default_factory=SourceKeys)


class ChatPayload(PollPayload):
    type: str = "CHAT"
    skip_api: bool = Field(default=True, alias="skipApi")
    user_message: str = Field(alias="userMessage")
    match_info: str = Field(default="", alias="matchInfo")


class SourceEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    description: str | None = None
    text: str | None = None
    audio_base64: str | None = Field(default=None, alias="audioBase64")

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v: Any) -> Any:
        # Sources built on spreadsheets/workflows often send numeric ids
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v


# ============================================
# Parsing
# ============================================


def _decode_audio(encoded: str) -> bytes:
    return base64.b64decode("".join(encoded.split()), validate=True)


def parse_events(
    raw_events: Any,
    *,
    default_label: str = DEFAULT_LABEL,
    fallback_id_prefix: str | None = None,
) -> tuple[list[CandidateEvent], int]:
    """Validate raw events one by one; return (well-formed events, dropped count).

    An event without an id is malformed unless *fallback_id_prefix* is given,
    in which case it gets ``<prefix>_<epoch-ms>_<index>``.
    """
    if not isinstance(raw_events, list):
        return [], 0

    events: list[CandidateEvent] = []
    dropped = 0
    now_ms = int(time.time() * 1000)

    for index, raw in enumerate(raw_events):
        if not isinstance(raw, dict):
            dropped += 1
            continue
        try:
            model = SourceEvent.model_validate(raw)
        except ValidationError as e:
            logger.debug(f"Dropping malformed event #{index}: {e.error_count()} error(s)")
            dropped += 1
            continue

        event_id = (model.id or "").strip()
        if not event_id:
            if fallback_id_prefix is None:
                logger.debug(f"Dropping event #{index}: missing id")
                dropped += 1
                continue
            event_id = f"{fallback_id_prefix}_{now_ms}_{index}"

        audio: bytes | None = None
        if model.audio_base64:
            try:
                audio = _decode_audio(model.audio_base64)
            except (binascii.Error, ValueError):
                logger.debug(f"Dropping event {event_id}: undecodable audio payload")
                dropped += 1
                continue

        events.append(
            CandidateEvent(
                id=event_id,
                label=model.description or model.text or default_label,
                text=model.text,
                audio=audio,
            )
        )

    return events, dropped


def parse_elapsed_hint(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int | float):
        return None
    return int(value)


# ============================================
# Client
# ============================================


class EventSourceClient:
    """Client for the commentary source webhook.

    Shares one httpx client across requests. Every request is bounded by
    *timeout* seconds in total; hitting it cancels the in-flight call.
    """

    def __init__(
        self,
        timeout: float = 8.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.timeout = timeout
        self._http = httpx.AsyncClient(timeout=httpx.Timeout(timeout), transport=transport)

    async def close(self) -> None:
        """Close the shared HTTP client. Call on app shutdown."""
        await self._http.aclose()

    async def _post(self, url: str, body: dict[str, Any]) -> dict[str, Any]:
        try:
            response = await asyncio.wait_for(
                self._http.post(url, json=body),
                timeout=self.timeout,
            )
        except TimeoutError as e:
            raise EventSourceError(f"Request timed out after {self.timeout}s") from e
        except httpx.InvalidURL as e:
            # InvalidURL does not derive from HTTPError
            raise EventSourceError(f"Invalid source URL: {e}") from e
        except httpx.HTTPError as e:
            raise EventSourceError(f"{type(e).__name__}: {e}") from e

        if not response.is_success:
            error_body = response.text
            logger.error(f"Source error ({response.status_code}): {error_body[:500]}")
            raise EventSourceError(
                f"Source error: {response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
                body=error_body,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise EventSourceError("Malformed response body (not JSON)") from e

        if not isinstance(data, dict):
            raise EventSourceError(f"Malformed response body ({type(data).__name__})")
        return data

    async def poll(self, url: str, payload: PollPayload) -> SourceBatch:
        """Issue one POLL request and parse the response."""
        data = await self._post(url, payload.model_dump(by_alias=True))
        events, dropped = parse_events(data.get("events"))
        if dropped:
            logger.info(f"Dropped {dropped} malformed event(s) from poll response")
        return SourceBatch(
            events=events,
            current_stats=data.get("currentStats"),
            elapsed_hint=parse_elapsed_hint(data.get("timeElapsed")),
            dropped=dropped,
        )

    async def chat(self, url: str, payload: ChatPayload) -> list[CandidateEvent]:
        """Send an operator chat message; return the events the source answers with."""
        data = await self._post(url, payload.model_dump(by_alias=True))
        events, dropped = parse_events(
            data.get("events"),
            default_label=CHAT_LABEL,
            fallback_id_prefix="chat",
        )
        if dropped:
            logger.info(f"Dropped {dropped} malformed event(s) from chat response")
        return events
