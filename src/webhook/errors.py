"""Webhook error taxonomy."""

from __future__ import annotations


class WebhookParseError(Exception):
    """The delivery could not be turned into an event batch."""


class InvalidSignatureError(WebhookParseError):
    """Body and x-line-signature do not match under the channel secret (HTTP 400)."""


class MalformedRequestError(WebhookParseError):
    """Body is not a well-formed webhook payload (HTTP 500)."""


class UnsupportedSourceError(Exception):
    """The event did not originate from a directly addressable user."""

    def __init__(self, source_type: str) -> None:
        self.source_type = source_type
        super().__init__(f"unsupported source type: {source_type}")
