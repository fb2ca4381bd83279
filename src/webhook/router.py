"""Route decoded webhook events to their handlers."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from src.webhook.errors import UnsupportedSourceError
from src.webhook.models import (
    AccountLinkEvent,
    InboundEvent,
    MessageEvent,
    Source,
    TextContent,
    UnknownEvent,
    UnknownSource,
    UserSource,
    WebhookCallback,
    event_kind,
    source_user_id,
)

if TYPE_CHECKING:
    from src.config import Settings
    from src.linking.controller import LinkingFlowController
    from src.webhook.replies import ReplyDispatcher

logger = logging.getLogger(__name__)

ECHO_TEMPLATE = "あなたは{text}と言いました。"


def extract_user_id(source: Source) -> str:
    """Return the user id of a direct one-to-one source."""
    if isinstance(source, UserSource):
        return source.user_id
    if isinstance(source, UnknownSource):
        raise UnsupportedSourceError(source.type)
    raise UnsupportedSourceError(type(source).__name__.removesuffix("Source").lower())


def echo_text(text: str) -> str:
    return ECHO_TEMPLATE.format(text=text)


class EventRouter:
    """Dispatches each event of a delivery, in order, one at a time."""

    def __init__(
        self,
        settings: Settings,
        controller: LinkingFlowController,
        dispatcher: ReplyDispatcher,
    ) -> None:
        self._link_trigger = settings.link_trigger
        self._unlink_trigger = settings.unlink_trigger
        self._controller = controller
        self._dispatcher = dispatcher

    async def dispatch(self, callback: WebhookCallback) -> None:
        for event in callback.events:
            try:
                await self.handle(event)
            except Exception:
                logger.exception(
                    "Unhandled error while processing %s event (user=%s)",
                    event_kind(event), _user_for_log(event),
                )

    async def handle(self, event: InboundEvent) -> None:
        if isinstance(event, MessageEvent):
            await self._handle_message(event)
        elif isinstance(event, AccountLinkEvent):
            logger.info("Account link result %r for %s", event.link.result, _user_for_log(event))
            await self._controller.handle_link_result(
                event.link, event.reply_token, source_user_id(event.source),
            )
        elif isinstance(event, UnknownEvent):
            logger.warning("Unsupported event type %r: %s", event.type, event.reason)
        else:
            logger.warning("Unsupported event: %r", event)

    async def _handle_message(self, event: MessageEvent) -> None:
        message = event.message
        if not isinstance(message, TextContent):
            logger.warning(
                "Unsupported message content %r from %s", message.type, _user_for_log(event),
            )
            return

        try:
            user_id = extract_user_id(event.source)
        except UnsupportedSourceError as exc:
            logger.warning("Skipping text message: %s", exc)
            return

        command = message.text.strip()
        if command == self._link_trigger:
            await self._controller.begin_linking(user_id, event.reply_token)
        elif command == self._unlink_trigger:
            await self._controller.unlink(user_id, event.reply_token)
        else:
            await self._dispatcher.send_text(event.reply_token, echo_text(message.text))


def _user_for_log(event: InboundEvent) -> str | None:
    if isinstance(event, (MessageEvent, AccountLinkEvent)):
        return source_user_id(event.source)
    return None
