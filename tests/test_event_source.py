"""Tests for the commentary source client and response parsing."""

import asyncio
import base64
import json

import httpx
import pytest

from matchcast.services.event_source import (
    ChatPayload,
    EventSourceClient,
    EventSourceError,
    PollPayload,
    SourceKeys,
    parse_elapsed_hint,
    parse_events,
)

URL = "http://source.test/webhook"


def make_client(handler, timeout: float = 8.0) -> EventSourceClient:
    return EventSourceClient(timeout=timeout, transport=httpx.MockTransport(handler))


def poll_payload(**overrides) -> PollPayload:
    fields = {"match_id": "1001", "persona": "Calm", "keys": SourceKeys(football="fk")}
    fields.update(overrides)
    return PollPayload(**fields)


class TestParseEvents:
    def test_well_formed(self):
        audio = base64.b64encode(b"ID3").decode()
        events, dropped = parse_events(
            [{"id": "e1", "description": "Goal!", "text": "What a strike", "audioBase64": audio}]
        )
        assert dropped == 0
        assert events[0].id == "e1"
        assert events[0].label == "Goal!"
        assert events[0].text == "What a strike"
        assert events[0].audio == b"ID3"

    def test_label_falls_back_to_text_then_default(self):
        events, _ = parse_events([{"id": "1", "text": "Corner"}, {"id": "2"}])
        assert [e.label for e in events] == ["Corner", "New Event"]

    def test_numeric_id_is_coerced(self):
        events, _ = parse_events([{"id": 42, "text": "x"}])
        assert events[0].id == "42"

    def test_malformed_events_are_dropped_individually(self):
        events, dropped = parse_events(
            [
                "not an object",
                {"text": "no id"},
                {"id": "bad", "audioBase64": "@@not-base64@@"},
                {"id": ["list"]},
                {"id": "ok"},
            ]
        )
        assert [e.id for e in events] == ["ok"]
        assert dropped == 4

    def test_missing_events_field(self):
        assert parse_events(None) == ([], 0)

    def test_fallback_ids(self):
        events, dropped = parse_events(
            [{"text": "a"}, {"text": "b"}], default_label="Chat Response", fallback_id_prefix="chat"
        )
        assert dropped == 0
        assert events[0].id.startswith("chat_") and events[0].id.endswith("_0")
        assert events[1].id.endswith("_1")

    def test_elapsed_hint(self):
        assert parse_elapsed_hint(63) == 63
        assert parse_elapsed_hint(63.0) == 63
        assert parse_elapsed_hint("63") is None
        assert parse_elapsed_hint(True) is None
        assert parse_elapsed_hint(None) is None


class TestPayloads:
    def test_poll_wire_shape(self):
        body = poll_payload(last_event_id="e9", skip_api=True).model_dump(by_alias=True)
        assert body == {
            "matchId": "1001",
            "type": "POLL",
            "lastEventId": "e9",
            "lastStats": None,
            "persona": "Calm",
            "skipApi": True,
            "dataProvider": "api-football",
            "keys": {"football": "fk", "sportmonks": "", "elevenLabs": "", "openRouter": ""},
        }

    def test_chat_wire_shape(self):
        body = ChatPayload(match_id="1001", user_message="hi", match_info="A 1-0 B (10')").model_dump(
            by_alias=True
        )
        assert body["type"] == "CHAT"
        assert body["skipApi"] is True
        assert body["userMessage"] == "hi"
        assert body["matchInfo"] == "A 1-0 B (10')"


class TestEventSourceClient:
    def test_poll_success(self):
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(
                200,
                json={
                    "events": [{"id": "e1", "text": "Kick-off"}, {"bogus": True}],
                    "currentStats": {"shots": [3, 1]},
                    "timeElapsed": 12,
                },
            )

        client = make_client(handler)
        result = asyncio.run(client.poll(URL, poll_payload()))

        assert [e.id for e in result.events] == ["e1"]
        assert result.dropped == 1
        assert result.current_stats == {"shots": [3, 1]}
        assert result.elapsed_hint == 12
        assert seen[0]["matchId"] == "1001"

    def test_non_success_status(self):
        client = make_client(lambda request: httpx.Response(502, text="upstream down"))
        with pytest.raises(EventSourceError) as exc_info:
            asyncio.run(client.poll(URL, poll_payload()))
        assert exc_info.value.status_code == 502
        assert exc_info.value.body == "upstream down"

    def test_non_json_body(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>"))
        with pytest.raises(EventSourceError):
            asyncio.run(client.poll(URL, poll_payload()))

    def test_non_object_body(self):
        client = make_client(lambda request: httpx.Response(200, json=[1, 2]))
        with pytest.raises(EventSourceError):
            asyncio.run(client.poll(URL, poll_payload()))

    def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)
        with pytest.raises(EventSourceError):
            asyncio.run(client.poll(URL, poll_payload()))

    def test_timeout_cancels_request(self):
        async def slow(request):
            await asyncio.sleep(5)
            return httpx.Response(200, json={"events": []})

        client = make_client(slow, timeout=0.05)
        with pytest.raises(EventSourceError, match="timed out"):
            asyncio.run(client.poll(URL, poll_payload()))

    def test_chat_uses_fallback_ids(self):
        client = make_client(
            lambda request: httpx.Response(200, json={"events": [{"text": "Sure thing"}]})
        )
        events = asyncio.run(client.chat(URL, ChatPayload(match_id="1", user_message="hi")))
        assert len(events) == 1
        assert events[0].id.startswith("chat_")
        assert events[0].label == "Sure thing"

    def test_malformed_url_is_a_source_error(self):
        client = make_client(lambda request: httpx.Response(200, json={"events": []}))
        with pytest.raises(EventSourceError, match="Invalid source URL"):
            asyncio.run(client.poll("http://[::1/x", poll_payload()))
