"""JSON response helpers shared by the proxy routes."""

from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from salesdesk.application.use_cases.result import ProxyResult


def relay(result: ProxyResult) -> JSONResponse:
    """Render a use-case result; row timestamps go through ``jsonable_encoder``."""
    return JSONResponse(jsonable_encoder(result.body), status_code=result.status_code)


def error_response(status_code: int, message: str, **extra: Any) -> JSONResponse:
    body = {"error": message}
    body.update({key: value for key, value in extra.items() if value is not None})
    return JSONResponse(jsonable_encoder(body), status_code=status_code)
