"""Decoded LINE webhook events.

Each axis (event kind, message content kind, source kind) is a closed union
with an explicit fallback variant for tags the platform may add later.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Union


# --- Sources ---


@dataclass(frozen=True)
class UserSource:
    user_id: str


@dataclass(frozen=True)
class GroupSource:
    group_id: str
    user_id: str | None = None


@dataclass(frozen=True)
class RoomSource:
    room_id: str
    user_id: str | None = None


@dataclass(frozen=True)
class UnknownSource:
    type: str


Source = Union[UserSource, GroupSource, RoomSource, UnknownSource]


# --- Message contents ---


@dataclass(frozen=True)
class TextContent:
    id: str
    text: str


@dataclass(frozen=True)
class UnsupportedContent:
    """Any message content other than text (image, sticker, location, ...)."""

    id: str
    type: str


MessageContent = Union[TextContent, UnsupportedContent]


# --- Events ---


@dataclass(frozen=True)
class LinkOutcome:
    """Result of the out-of-band authorization: "ok", "failed" or anything else."""

    result: str
    nonce: str | None = None


@dataclass(frozen=True)
class MessageEvent:
    source: Source
    reply_token: str | None
    message: MessageContent
    timestamp: int = 0
    webhook_event_id: str | None = None


@dataclass(frozen=True)
class AccountLinkEvent:
    source: Source
    reply_token: str | None
    link: LinkOutcome
    timestamp: int = 0
    webhook_event_id: str | None = None


@dataclass(frozen=True)
class UnknownEvent:
    """An event whose type is unrecognized or whose payload could not be decoded."""

    type: str
    reason: str
    raw: object = None


InboundEvent = Union[MessageEvent, AccountLinkEvent, UnknownEvent]


@dataclass
class WebhookCallback:
    """One webhook delivery: an ordered batch of events."""

    events: list[InboundEvent] = field(default_factory=list)
    destination: str | None = None


def event_kind(event: InboundEvent) -> str:
    if isinstance(event, MessageEvent):
        return "message"
    if isinstance(event, AccountLinkEvent):
        return "accountLink"
    return event.type or "unknown"


def source_user_id(source: Source) -> str | None:
    """User id of the source, when the platform supplied one."""
    if isinstance(source, UnknownSource):
        return None
    return source.user_id
