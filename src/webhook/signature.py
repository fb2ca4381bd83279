"""LINE webhook signature verification.

LINE signs each delivery with HMAC-SHA256 of the raw body under the channel
secret, base64-encoded, in the ``x-line-signature`` header.
"""

from __future__ import annotations

import base64
import hashlib
import hmac

from src.webhook.decoder import decode_callback
from src.webhook.errors import InvalidSignatureError
from src.webhook.models import WebhookCallback

SIGNATURE_HEADER = "x-line-signature"


def compute_signature(channel_secret: str, body: bytes) -> str:
    digest = hmac.new(channel_secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


class SignatureVerifier:
    """Authenticates deliveries against the channel secret."""

    def __init__(self, channel_secret: str) -> None:
        self._channel_secret = channel_secret

    def verify(self, body: bytes, signature: str | None) -> bool:
        """Constant-time check of ``signature`` against the body's digest."""
        if not signature:
            return False
        expected = compute_signature(self._channel_secret, body)
        return hmac.compare_digest(signature.encode(), expected.encode())

    def parse_request(self, body: bytes, signature: str | None) -> WebhookCallback:
        """Verify, then decode. Raises InvalidSignatureError or MalformedRequestError."""
        if not self.verify(body, signature):
            raise InvalidSignatureError("x-line-signature does not match request body")
        return decode_callback(body)
