"""Messaging proxy: WhatsApp sends and contact lookups."""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any

from loguru import logger

from salesdesk.application.exceptions import UnknownActionError
from salesdesk.application.use_cases.result import ProxyResult, require
from salesdesk.domain.protocols import IMessagingGateway, UpstreamReply

TEMPLATE_FIELDS = ("field_1", "field_2", "field_3", "field_4", "field_5")
DEFAULT_TEMPLATE_LANGUAGE = "en"


def clean_phone_number(phone_number: str) -> str:
    """Drop one leading ``+`` and then any leading zeros."""
    return re.sub(r"^0+", "", re.sub(r"^\+", "", phone_number.strip()))


def build_send_body(data: Mapping[str, Any]) -> dict[str, Any]:
    """Build the vendor send-message body: a template send or a plain text message."""
    body: dict[str, Any] = {"phone_number": clean_phone_number(str(data["phone_number"]))}
    if data.get("template_name"):
        body["template_name"] = data["template_name"]
        body["template_language"] = data.get("template_language") or DEFAULT_TEMPLATE_LANGUAGE
        body.update({field: data[field] for field in TEMPLATE_FIELDS if data.get(field)})
    elif data.get("message_body"):
        body["message_body"] = data["message_body"]
    return body


def _decode(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return {"raw": text}


def _relay(reply: UpstreamReply, failure: str) -> ProxyResult:
    payload = _decode(reply.text)
    if not reply.ok:
        logger.warning("WhatsApp API error | status={} | {}", reply.status_code, failure)
        return ProxyResult(
            {"error": failure, "details": payload, "status": reply.status_code},
            status_code=reply.status_code,
        )
    return ProxyResult({"success": True, "data": payload})


class MessagingProxy:
    """Runs one messaging action against the WhatsApp vendor API."""

    def __init__(self, gateway: IMessagingGateway) -> None:
        self.gateway = gateway

    async def dispatch(self, action: str, data: Mapping[str, Any] | None) -> ProxyResult:
        logger.info("Messaging proxy | action={}", action)

        if action == "send-message":
            require(data, "phone_number", message="Phone number is required")
            reply = await self.gateway.send_message(build_send_body(data))
            return _relay(reply, "Failed to send message")
        if action == "get-contacts":
            return _relay(await self.gateway.get_contacts(), "Failed to fetch contacts")
        if action == "get-contact":
            (who,) = require(data, "phone_number_or_email")
            return _relay(await self.gateway.get_contact(str(who)), "Failed to fetch contact")
        raise UnknownActionError(action)
