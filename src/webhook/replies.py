"""Reply dispatch: one attempt per reply token, failures logged and swallowed.

The webhook is acknowledged with 200 regardless of whether the reply was
delivered; the platform only requires acknowledgement of receipt.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.line.client import LineApi, LineApiError
from src.line.messages import Message, TextMessage

logger = logging.getLogger(__name__)


class ReplyDispatcher:
    def __init__(self, api: LineApi) -> None:
        self._api = api

    async def send(self, reply_token: str | None, messages: Sequence[Message]) -> bool:
        """Send ``messages`` in reply to one event. Returns True on success."""
        if not reply_token:
            logger.warning("Event carried no reply token; dropping %d message(s)", len(messages))
            return False
        try:
            await self._api.reply_message(reply_token, messages)
        except LineApiError as exc:
            logger.error("Reply failed: %s", exc)
            return False
        logger.info("Sent %s reply", ", ".join(m.type for m in messages))
        return True

    async def send_text(self, reply_token: str | None, text: str) -> bool:
        return await self.send(reply_token, [TextMessage(text=text)])
