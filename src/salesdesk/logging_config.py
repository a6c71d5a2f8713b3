"""Loguru setup for the SalesDesk backend.

``setup_logging()`` installs a single stderr sink (coloured text or JSON),
routes the stdlib loggers of uvicorn, httpx, openai and SQLAlchemy through
loguru, and masks upstream credentials before anything is written.  httpx
logs full request URLs, and the WhatsApp vendor API takes its token as a
query parameter, so without masking every proxied call would leak it.
"""

from __future__ import annotations

import logging
import re
import sys
from typing import Any

from loguru import logger

STDLIB_LOGGERS = (
    "uvicorn",
    "uvicorn.access",
    "uvicorn.error",
    "fastapi",
    "httpx",
    "openai",
    "sqlalchemy.engine",
)

TEXT_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

MASK = "***"

_SECRETS = (
    re.compile(r"(?P<keep>[?&](?:token|api_key|signature)=)[^&\s\"']+"),
    re.compile(r"(?P<keep>Bearer\s+)[A-Za-z0-9\-._~+/]+=*"),
)


def redact(message: str) -> str:
    """Mask query-string tokens, API keys, signatures and bearer tokens in *message*."""
    for pattern in _SECRETS:
        message = pattern.sub(lambda m: m.group("keep") + MASK, message)
    return message


def _redact_record(record: dict[str, Any]) -> None:
    record["message"] = redact(record["message"])


class InterceptHandler(logging.Handler):
    """Forward stdlib logging records to loguru, keeping the caller's location."""

    def emit(self, record: logging.LogRecord) -> None:
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def setup_logging(*, level: str = "INFO", json: bool = False) -> None:
    """Make loguru the only logging backend.

    Args:
        level: Minimum level for the stderr sink.
        json: Emit serialized JSON records instead of coloured text.
    """
    logger.remove()
    logger.configure(patcher=_redact_record)

    if json:
        logger.add(sys.stderr, level=level, serialize=True)
    else:
        logger.add(sys.stderr, level=level, format=TEXT_FORMAT, colorize=True)

    intercept = InterceptHandler()
    for name in STDLIB_LOGGERS:
        stdlib_logger = logging.getLogger(name)
        stdlib_logger.handlers = [intercept]
        stdlib_logger.propagate = False

    logging.root.handlers = [intercept]
    logging.root.setLevel(logging.DEBUG)
