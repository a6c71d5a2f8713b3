"""OpenAI-compatible LLM gateway.

The sales-agent proxy relays the gateway's server-sent-events stream byte for
byte, so this gateway uses the SDK's raw streaming response instead of the
parsed chunk iterator.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import AsyncExitStack
from typing import Any

import httpx
import openai
from loguru import logger
from openai import AsyncOpenAI

from salesdesk.application.exceptions import NotConfiguredError, UpstreamError
from salesdesk.domain.models import AgentMessage


class CompletionStream:
    """An open completion response; ``aclose()`` releases the connection."""

    def __init__(self, response: Any, stack: AsyncExitStack) -> None:
        self._response = response
        self._stack = stack

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        async for chunk in self._response.iter_bytes():
            yield chunk

    async def aclose(self) -> None:
        await self._stack.aclose()


class OpenAIGateway:
    """Opens streamed chat completions against the configured gateway."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.model = model
        self.client = (
            AsyncOpenAI(
                base_url=base_url,
                api_key=api_key,
                max_retries=0,
                timeout=timeout,
                http_client=http_client,
            )
            if api_key
            else None
        )

    async def open_stream(self, messages: list[AgentMessage]) -> CompletionStream:
        if self.client is None:
            raise NotConfiguredError("LLM gateway API key not configured")

        payload = [message.model_dump() for message in messages]
        logger.info("LLM request | model={} messages={}", self.model, len(payload))

        stack = AsyncExitStack()
        try:
            response = await stack.enter_async_context(
                self.client.chat.completions.with_streaming_response.create(
                    model=self.model, messages=payload, stream=True
                )
            )
        except openai.APIStatusError as exc:
            await stack.aclose()
            logger.warning("LLM gateway error | status={}", exc.status_code)
            raise UpstreamError(
                "AI gateway rejected the request", status_code=exc.status_code, details=exc.body
            ) from exc
        except openai.APIError as exc:
            await stack.aclose()
            logger.error("LLM gateway unreachable | {}", exc)
            raise UpstreamError("AI gateway unreachable", status_code=500) from exc

        return CompletionStream(response, stack)

    async def close(self) -> None:
        if self.client is not None:
            await self.client.close()
