"""Tests for the live chat session against a mocked agent proxy."""

import json

import httpx
import pytest

from salesdesk.application.exceptions import (
    CreditsExhaustedError,
    LiveChatError,
    MissingStreamBodyError,
    RateLimitedError,
    SessionBusyError,
)
from salesdesk.client.live_chat import WELCOME_MESSAGE, LiveChatSession


def _event(content: str) -> bytes:
    return ("data: " + json.dumps({"choices": [{"delta": {"content": content}}]}) + "\n").encode()


def _streamed(*chunks: bytes):
    async def body():
        for chunk in chunks:
            yield chunk

    return body()


def _session(recorder, handler, **kwargs):
    transport = recorder(handler)
    http = transport.client(base_url="http://app.test")
    return LiveChatSession(http, **kwargs), transport


class TestSend:
    async def test_streams_reply_into_transcript(self, recorder):
        updates = []
        session, transport = _session(
            recorder,
            lambda r: httpx.Response(
                200,
                content=_streamed(
                    _event("Hi"),
                    b'data: {"choices":[{"delta":{"content":" th',
                    b'ere"}}]}\n',
                    b"data: [DONE]\n",
                ),
            ),
            on_update=lambda messages: updates.append(messages[-1].content),
        )

        reply = await session.send("  hello  ")

        assert reply == "Hi there"
        assert [m.role for m in session.messages] == ["assistant", "user", "assistant"]
        assert session.messages[0].content == WELCOME_MESSAGE
        assert session.messages[1].content == "hello"
        assert session.messages[2].content == "Hi there"
        assert session.state == "idle"
        assert session.notice is None
        assert "Hi" in updates
        assert transport.requests[0].url.path == "/functions/sales-agent"

    async def test_history_excludes_welcome_and_grows(self, recorder):
        session, transport = _session(
            recorder, lambda r: httpx.Response(200, content=_event("ok"))
        )

        await session.send("first")
        await session.send("second")

        first, second = (json.loads(r.content) for r in transport.requests)
        assert first == {
            "messages": [{"role": "user", "content": "first"}],
            "conversationHistory": [],
        }
        assert second["messages"] == [{"role": "user", "content": "second"}]
        assert second["conversationHistory"] == [
            {"role": "user", "content": "first"},
            {"role": "assistant", "content": "ok"},
        ]

    async def test_blank_text_sends_nothing(self, recorder):
        session, transport = _session(recorder, lambda r: httpx.Response(200))
        assert await session.send("   ") == ""
        assert transport.requests == []
        assert len(session.messages) == 1

    async def test_sends_extra_headers(self, recorder):
        session, transport = _session(
            recorder,
            lambda r: httpx.Response(200, content=_event("ok")),
            headers={"Authorization": "Bearer abc"},
            welcome=None,
        )
        await session.send("hi")
        assert transport.requests[0].headers["Authorization"] == "Bearer abc"
        assert session.messages[0].role == "user"


class TestFailures:
    @pytest.mark.parametrize(
        ("status", "error", "notice"),
        [
            (429, RateLimitedError, "Rate limit exceeded. Please try again in a moment."),
            (402, CreditsExhaustedError, "AI credits exhausted. Please add credits to continue."),
            (500, LiveChatError, "Failed to get response. Please try again."),
        ],
    )
    async def test_error_status(self, recorder, status, error, notice):
        session, _ = _session(recorder, lambda r: httpx.Response(status, json={"error": "x"}))

        with pytest.raises(error):
            await session.send("hello")

        assert session.notice == notice
        assert session.state == "idle"
        assert session.input_enabled
        assert [m.role for m in session.messages] == ["assistant", "user"]

    async def test_empty_body(self, recorder):
        session, _ = _session(recorder, lambda r: httpx.Response(200, content=b""))
        with pytest.raises(MissingStreamBodyError):
            await session.send("hello")
        assert session.notice == "No response body received from the AI service."

    async def test_failed_send_keeps_earlier_history(self, recorder):
        replies = iter(
            [
                httpx.Response(200, content=_event("one")),
                httpx.Response(429),
                httpx.Response(200, content=_event("three")),
            ]
        )
        session, transport = _session(recorder, lambda r: next(replies))

        await session.send("a")
        with pytest.raises(RateLimitedError):
            await session.send("b")
        await session.send("c")

        history = json.loads(transport.requests[2].content)["conversationHistory"]
        assert [m["content"] for m in history] == ["a", "one"]

    async def test_transport_error_becomes_live_chat_error(self, recorder):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        session, _ = _session(recorder, handler)
        with pytest.raises(LiveChatError):
            await session.send("hello")
        assert session.notice == "Failed to get response. Please try again."
        assert session.state == "idle"


class TestConcurrencyAndClose:
    async def test_busy_session_rejects_second_send(self, recorder):
        session, _ = _session(recorder, lambda r: httpx.Response(200, content=_event("x")))
        session.state = "streaming"
        with pytest.raises(SessionBusyError):
            await session.send("again")
        assert not session.input_enabled

    async def test_close_stops_reading_stream(self, recorder):
        session, _ = _session(
            recorder,
            lambda r: httpx.Response(200, content=_streamed(_event("first"), _event(" second"))),
        )

        def close_after_first_delta(messages):
            if messages[-1].role == "assistant" and messages[-1].content:
                session.close()

        session.on_update = close_after_first_delta

        reply = await session.send("hi")

        assert reply == "first"
        assert session.closed
        assert not session.input_enabled

    async def test_closed_session_refuses_send(self, recorder):
        session, transport = _session(recorder, lambda r: httpx.Response(200))
        session.close()
        with pytest.raises(LiveChatError):
            await session.send("hello")
        assert transport.requests == []
