"""Messaging proxy route: ``POST /functions/whatsapp-api``."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from loguru import logger

from salesdesk.application.exceptions import NotConfiguredError, ProxyRequestError, UpstreamError
from salesdesk.application.use_cases.messaging_proxy import MessagingProxy
from salesdesk.presentation.auth import require_session
from salesdesk.presentation.responses import error_response, relay
from salesdesk.presentation.schemas import parse_action_request

router = APIRouter(tags=["proxies"], dependencies=[Depends(require_session)])


@router.post("/functions/whatsapp-api")
async def whatsapp_api(raw_request: Request):
    """Send a WhatsApp message or look up vendor contacts."""
    proxy: MessagingProxy = raw_request.app.state.messaging_proxy
    try:
        parsed = parse_action_request(await raw_request.body())
        result = await proxy.dispatch(parsed.action, parsed.data)
    except ProxyRequestError as exc:
        return error_response(400, str(exc))
    except NotConfiguredError as exc:
        logger.error("WhatsApp proxy not configured | {}", exc)
        return error_response(500, str(exc))
    except UpstreamError as exc:
        return error_response(exc.status_code, str(exc), details=exc.details)
    return relay(result)
