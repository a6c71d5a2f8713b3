"""Workflow proxy route: ``POST /functions/n8n-proxy``."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from loguru import logger

from salesdesk.application.exceptions import NotConfiguredError, ProxyRequestError, UpstreamError
from salesdesk.application.use_cases.workflow_proxy import WorkflowProxy
from salesdesk.presentation.auth import require_session
from salesdesk.presentation.responses import error_response, relay
from salesdesk.presentation.schemas import parse_action_request

router = APIRouter(tags=["proxies"], dependencies=[Depends(require_session)])


@router.post("/functions/n8n-proxy")
async def n8n_proxy(raw_request: Request):
    """Forward a dashboard action to the n8n webhook and relay its JSON."""
    proxy: WorkflowProxy = raw_request.app.state.workflow_proxy
    try:
        parsed = parse_action_request(await raw_request.body())
        result = await proxy.dispatch(parsed.action, parsed.data)
    except ProxyRequestError as exc:
        return error_response(400, str(exc))
    except NotConfiguredError as exc:
        logger.error("n8n proxy not configured | {}", exc)
        return error_response(500, str(exc))
    except UpstreamError as exc:
        return error_response(exc.status_code, str(exc), details=exc.details)
    return relay(result)
