"""Live chat tester for the sales-agent proxy.

One ``LiveChatSession`` holds a visible transcript and sends one message at a
time.  A send moves the session ``idle → sending → streaming → idle``; any
failure goes straight back to ``idle`` and leaves earlier messages untouched.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal

import httpx
from loguru import logger

from salesdesk.application.exceptions import (
    CreditsExhaustedError,
    LiveChatError,
    MissingStreamBodyError,
    RateLimitedError,
    SessionBusyError,
)
from salesdesk.client.sse import SSEDeltaDecoder

ChatState = Literal["idle", "sending", "streaming"]

AGENT_PATH = "/functions/sales-agent"
WELCOME_MESSAGE = (
    "Welcome to the live chat testing interface! I'm connected to your AI Sales Agent. "
    "Try asking about laptops, desktops, or accessories!"
)


@dataclass
class LiveMessage:
    role: Literal["user", "assistant"]
    content: str
    time: datetime = field(default_factory=datetime.now)


class LiveChatSession:
    """Sends messages to the agent proxy and grows the reply as it streams in.

    Parameters
    ----------
    http:
        Client whose base URL points at the backend.
    headers:
        Extra request headers, typically the admin session header.
    on_update:
        Called with the transcript after every visible change.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        headers: dict[str, str] | None = None,
        on_update: Callable[[list[LiveMessage]], None] | None = None,
        welcome: str | None = WELCOME_MESSAGE,
    ) -> None:
        self.http = http
        self.headers = headers or {}
        self.on_update = on_update
        self.state: ChatState = "idle"
        self.notice: str | None = None
        self.messages: list[LiveMessage] = []
        self._history: list[LiveMessage] = []
        self._cancelled = asyncio.Event()
        if welcome:
            self.messages.append(LiveMessage(role="assistant", content=welcome))

    @property
    def closed(self) -> bool:
        return self._cancelled.is_set()

    @property
    def input_enabled(self) -> bool:
        return self.state == "idle" and not self.closed

    def close(self) -> None:
        """Stop reading any in-flight reply; the transcript is frozen from here on."""
        self._cancelled.set()

    async def send(self, text: str) -> str:
        """Send *text* and return the assistant reply.

        Raises:
            SessionBusyError: A previous send is still in progress.
            RateLimitedError, CreditsExhaustedError, MissingStreamBodyError,
            LiveChatError: The request failed; ``notice`` holds the message
                to show.
        """
        if self.state != "idle":
            raise SessionBusyError("A reply is still streaming")
        if self.closed:
            raise LiveChatError("Live chat session is closed")
        text = text.strip()
        if not text:
            return ""

        user_message = LiveMessage(role="user", content=text)
        prior = list(self._history)
        self.messages.append(user_message)
        self.state = "sending"
        self.notice = None
        self._notify()

        try:
            reply = await self._exchange(user_message, prior)
        except LiveChatError as exc:
            self.notice = exc.notice
            logger.warning("Live chat send failed | {}", exc)
            raise
        except httpx.HTTPError as exc:
            self.notice = LiveChatError.notice
            logger.error("Live chat request error | {}", exc)
            raise LiveChatError(str(exc)) from exc
        finally:
            self.state = "idle"
            self._notify()

        self._history += [user_message, LiveMessage(role="assistant", content=reply)]
        return reply

    async def _exchange(self, user_message: LiveMessage, prior: list[LiveMessage]) -> str:
        body = {
            "messages": [{"role": user_message.role, "content": user_message.content}],
            "conversationHistory": [{"role": m.role, "content": m.content} for m in prior],
        }
        request = self.http.stream("POST", AGENT_PATH, json=body, headers=self.headers)
        async with request as response:
            if response.status_code == 429:
                raise RateLimitedError("Agent proxy answered 429")
            if response.status_code == 402:
                raise CreditsExhaustedError("Agent proxy answered 402")
            if not response.is_success:
                raise LiveChatError(f"Agent proxy answered {response.status_code}")

            chunks = response.aiter_bytes()
            first = await anext(chunks, None)
            if first is None:
                raise MissingStreamBodyError("Agent proxy returned no body")

            self.state = "streaming"
            reply = LiveMessage(role="assistant", content="")
            self.messages.append(reply)
            decoder = SSEDeltaDecoder()

            self._apply(reply, decoder.feed(first))
            async for chunk in chunks:
                if self.closed:
                    logger.info("Live chat closed mid-stream; dropping the rest of the reply")
                    return reply.content
                self._apply(reply, decoder.feed(chunk))
            self._apply(reply, decoder.flush())
            return reply.content

    def _apply(self, reply: LiveMessage, deltas: list[str]) -> None:
        if not deltas or self.closed:
            return
        reply.content += "".join(deltas)
        self._notify()

    def _notify(self) -> None:
        if self.on_update is not None and not self.closed:
            self.on_update(self.messages)
