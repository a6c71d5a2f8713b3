"""Image proxy route: ``POST /functions/cloudinary-upload``.

Every failure (bad request, missing credentials, host error) answers 400
with ``{success: false, error}``.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from loguru import logger

from salesdesk.application.exceptions import NotConfiguredError, ProxyRequestError, UpstreamError
from salesdesk.application.use_cases.image_proxy import ImageProxy
from salesdesk.presentation.auth import require_session
from salesdesk.presentation.responses import relay
from salesdesk.presentation.schemas import parse_action_request

router = APIRouter(tags=["proxies"], dependencies=[Depends(require_session)])


@router.post("/functions/cloudinary-upload")
async def cloudinary_upload(raw_request: Request):
    """Upload, list, delete or rename product images."""
    proxy: ImageProxy = raw_request.app.state.image_proxy
    try:
        parsed = parse_action_request(await raw_request.body())
        result = await proxy.dispatch(parsed.action, parsed.params)
    except (ProxyRequestError, NotConfiguredError, UpstreamError) as exc:
        logger.error("Image proxy error | {}", exc)
        return JSONResponse({"success": False, "error": str(exc)}, status_code=400)
    return relay(result)
