"""Sales-agent route: ``POST /functions/sales-agent``.

The gateway's ``text/event-stream`` body is piped to the caller chunk by
chunk, unmodified.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from loguru import logger
from pydantic import ValidationError

from salesdesk.application.exceptions import NotConfiguredError, UpstreamError
from salesdesk.application.use_cases.agent_proxy import AgentProxy
from salesdesk.domain.protocols import ICompletionStream
from salesdesk.presentation.auth import require_session
from salesdesk.presentation.responses import error_response
from salesdesk.presentation.schemas import AgentChatRequest

router = APIRouter(tags=["proxies"], dependencies=[Depends(require_session)])


async def _pipe(stream: ICompletionStream):
    try:
        async for chunk in stream.iter_bytes():
            yield chunk
    finally:
        await stream.aclose()


@router.post("/functions/sales-agent")
async def sales_agent(raw_request: Request):
    """Stream an AI sales-agent reply for the given conversation."""
    proxy: AgentProxy = raw_request.app.state.agent_proxy

    raw = await raw_request.body()
    if not raw.strip():
        return error_response(400, "Missing request body")
    try:
        request = AgentChatRequest.model_validate_json(raw)
    except ValidationError as exc:
        logger.warning("Sales agent rejected body | {} errors", exc.error_count())
        return error_response(400, "Invalid request body")

    try:
        stream = await proxy.open_stream(request.messages, request.conversation_history)
    except UpstreamError as exc:
        return error_response(exc.status_code, str(exc))
    except NotConfiguredError as exc:
        logger.error("Sales agent not configured | {}", exc)
        return error_response(500, str(exc))

    return StreamingResponse(
        _pipe(stream),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache"},
    )
