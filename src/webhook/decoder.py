"""Decode a verified LINE webhook body into typed events."""

from __future__ import annotations

import json
import logging
from typing import Any

from src.webhook.errors import MalformedRequestError
from src.webhook.models import (
    AccountLinkEvent,
    GroupSource,
    InboundEvent,
    LinkOutcome,
    MessageContent,
    MessageEvent,
    RoomSource,
    Source,
    TextContent,
    UnknownEvent,
    UnknownSource,
    UnsupportedContent,
    UserSource,
    WebhookCallback,
)

logger = logging.getLogger(__name__)


class _EventDecodeError(Exception):
    """A single event could not be decoded; its siblings are unaffected."""


def decode_callback(body: bytes) -> WebhookCallback:
    """Decode the whole delivery.

    Raises MalformedRequestError if the body is not a JSON object with an
    ``events`` list. Individual events that cannot be decoded become
    UnknownEvent entries in their original position.
    """
    try:
        payload = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise MalformedRequestError(f"Request body is not valid JSON: {exc}") from exc

    if not isinstance(payload, dict):
        raise MalformedRequestError("Request body must be a JSON object")
    events = payload.get("events")
    if not isinstance(events, list):
        raise MalformedRequestError("Request body is missing the 'events' list")

    destination = payload.get("destination")
    return WebhookCallback(
        events=[decode_event(raw) for raw in events],
        destination=destination if isinstance(destination, str) else None,
    )


def decode_event(raw: Any) -> InboundEvent:
    if not isinstance(raw, dict):
        return UnknownEvent(type="", reason="event is not an object", raw=raw)

    event_type = raw.get("type")
    if not isinstance(event_type, str):
        return UnknownEvent(type="", reason="event has no type", raw=raw)

    try:
        if event_type == "message":
            return MessageEvent(
                source=_decode_source(raw.get("source")),
                reply_token=_optional_str(raw, "replyToken"),
                message=_decode_message(raw.get("message")),
                timestamp=_timestamp(raw),
                webhook_event_id=_optional_str(raw, "webhookEventId"),
            )
        if event_type == "accountLink":
            return AccountLinkEvent(
                source=_decode_source(raw.get("source")),
                reply_token=_optional_str(raw, "replyToken"),
                link=_decode_link(raw.get("link")),
                timestamp=_timestamp(raw),
                webhook_event_id=_optional_str(raw, "webhookEventId"),
            )
    except _EventDecodeError as exc:
        logger.warning("Could not decode %s event: %s", event_type, exc)
        return UnknownEvent(type=event_type, reason=str(exc), raw=raw)

    return UnknownEvent(type=event_type, reason="unsupported event type", raw=raw)


def _decode_source(raw: Any) -> Source:
    if raw is None:
        return UnknownSource(type="")
    if not isinstance(raw, dict):
        raise _EventDecodeError("source must be an object")
    source_type = raw.get("type")
    if source_type == "user":
        return UserSource(user_id=_required_str(raw, "userId"))
    if source_type == "group":
        return GroupSource(
            group_id=_required_str(raw, "groupId"),
            user_id=_optional_str(raw, "userId"),
        )
    if source_type == "room":
        return RoomSource(
            room_id=_required_str(raw, "roomId"),
            user_id=_optional_str(raw, "userId"),
        )
    return UnknownSource(type=str(source_type))


def _decode_message(raw: Any) -> MessageContent:
    if not isinstance(raw, dict):
        raise _EventDecodeError("message is missing")
    message_id = _optional_str(raw, "id") or ""
    content_type = raw.get("type")
    if content_type == "text":
        return TextContent(id=message_id, text=_required_str(raw, "text"))
    return UnsupportedContent(id=message_id, type=str(content_type))


def _decode_link(raw: Any) -> LinkOutcome:
    if not isinstance(raw, dict):
        raise _EventDecodeError("link is missing")
    return LinkOutcome(
        result=_required_str(raw, "result"),
        nonce=_optional_str(raw, "nonce"),
    )


def _required_str(raw: dict[str, Any], key: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        raise _EventDecodeError(f"'{key}' must be a string")
    return value


def _optional_str(raw: dict[str, Any], key: str) -> str | None:
    value = raw.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise _EventDecodeError(f"'{key}' must be a string")
    return value


def _timestamp(raw: dict[str, Any]) -> int:
    value = raw.get("timestamp", 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise _EventDecodeError("'timestamp' must be an integer")
    return value
