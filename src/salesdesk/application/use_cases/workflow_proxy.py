"""Workflow proxy: maps dashboard actions onto n8n webhook sub-paths.

Each action is one upstream request:

==================  ======  ============================================
action              method  path
==================  ======  ============================================
get_products        GET     ``products``
get_chats           GET     ``chats``
get_chat_messages   GET     ``chat-messages?contact_uid=...``
send_message        POST    ``send-message`` with ``{contact_uid, message}``
==================  ======  ============================================
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any

from loguru import logger

from salesdesk.application.exceptions import UnknownActionError, UpstreamError
from salesdesk.application.use_cases.result import ProxyResult, require
from salesdesk.domain.protocols import IWorkflowGateway, UpstreamReply

ACTIONS = ("get_products", "get_chats", "get_chat_messages", "send_message")


class WorkflowProxy:
    """Forwards one dashboard action to the workflow engine and relays the reply."""

    def __init__(self, gateway: IWorkflowGateway) -> None:
        self.gateway = gateway

    async def dispatch(self, action: str, data: Mapping[str, Any] | None) -> ProxyResult:
        logger.info("Workflow proxy | action={}", action)

        if action == "get_products":
            reply = await self.gateway.request("GET", "products")
        elif action == "get_chats":
            reply = await self.gateway.request("GET", "chats")
        elif action == "get_chat_messages":
            (contact_uid,) = require(data, "contact_uid")
            reply = await self.gateway.request(
                "GET", "chat-messages", params={"contact_uid": contact_uid}
            )
        elif action == "send_message":
            contact_uid, message = require(data, "contact_uid", "message")
            reply = await self.gateway.request(
                "POST", "send-message", json={"contact_uid": contact_uid, "message": message}
            )
        else:
            raise UnknownActionError(action)

        return self._relay(reply)

    @staticmethod
    def _relay(reply: UpstreamReply) -> ProxyResult:
        if not reply.ok:
            logger.error("n8n webhook error | status={} | {}", reply.status_code, reply.text[:500])
            return ProxyResult(
                {"error": f"n8n webhook failed: {reply.status_code}", "details": reply.text},
                status_code=reply.status_code,
            )

        # Some webhooks legitimately answer with an empty body
        if not reply.text.strip():
            return ProxyResult([])

        try:
            return ProxyResult(json.loads(reply.text))
        except ValueError as exc:
            raise UpstreamError(
                "Invalid JSON returned by n8n", status_code=502, details=reply.text
            ) from exc
