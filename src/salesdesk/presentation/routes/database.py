"""Database proxy route: ``POST /functions/postgres-api``."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from loguru import logger
from starlette.concurrency import run_in_threadpool

from salesdesk.application.exceptions import (
    NotConfiguredError,
    ProxyRequestError,
    RecordNotFoundError,
    UpstreamError,
)
from salesdesk.application.use_cases.database_proxy import DatabaseProxy
from salesdesk.presentation.auth import require_session
from salesdesk.presentation.responses import error_response, relay
from salesdesk.presentation.schemas import parse_action_request

router = APIRouter(tags=["proxies"], dependencies=[Depends(require_session)])


@router.post("/functions/postgres-api")
async def postgres_api(raw_request: Request):
    """Run a product CRUD or chat-log action against the database."""
    proxy: DatabaseProxy = raw_request.app.state.database_proxy
    try:
        parsed = parse_action_request(await raw_request.body())
        result = await run_in_threadpool(proxy.dispatch, parsed.action, parsed.data)
    except ProxyRequestError as exc:
        return error_response(400, str(exc))
    except RecordNotFoundError as exc:
        return error_response(404, str(exc))
    except NotConfiguredError as exc:
        logger.error("Database proxy not configured | {}", exc)
        return error_response(500, str(exc))
    except UpstreamError as exc:
        return error_response(exc.status_code, str(exc))
    return relay(result)
