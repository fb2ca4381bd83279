"""Tests for LINE webhook signature verification."""

from __future__ import annotations

import base64
import hashlib
import hmac as hmac_mod
from unittest.mock import patch

import pytest

from src.webhook.errors import InvalidSignatureError, MalformedRequestError
from src.webhook.signature import SignatureVerifier, compute_signature
from tests.conftest import CHANNEL_SECRET, make_text_event, make_webhook_body


def _sign(secret: str, body: bytes) -> str:
    digest = hmac_mod.new(secret.encode(), body, hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


class TestComputeSignature:
    def test_matches_base64_hmac_sha256(self) -> None:
        body = b'{"events":[]}'
        assert compute_signature("s3cret", body) == _sign("s3cret", body)

    def test_depends_on_secret(self) -> None:
        body = b'{"events":[]}'
        assert compute_signature("a", body) != compute_signature("b", body)


class TestVerify:
    @pytest.mark.parametrize("body", [b"", b"{}", make_webhook_body(make_text_event("日本語"))])
    def test_valid_signature_accepted(self, body: bytes) -> None:
        verifier = SignatureVerifier(CHANNEL_SECRET)
        assert verifier.verify(body, _sign(CHANNEL_SECRET, body)) is True

    @pytest.mark.parametrize(
        "signature",
        ["", None, "not-base64", _sign("other-secret", b'{"events":[]}')],
    )
    def test_other_signatures_rejected(self, signature: str | None) -> None:
        verifier = SignatureVerifier(CHANNEL_SECRET)
        assert verifier.verify(b'{"events":[]}', signature) is False

    def test_signature_of_different_body_rejected(self) -> None:
        verifier = SignatureVerifier(CHANNEL_SECRET)
        sig = _sign(CHANNEL_SECRET, b'{"events":[]}')
        assert verifier.verify(b'{"events": []}', sig) is False

    def test_constant_time_comparison(self) -> None:
        verifier = SignatureVerifier(CHANNEL_SECRET)
        body = b"data"
        with patch("src.webhook.signature.hmac.compare_digest", return_value=True) as mock_cmp:
            verifier.verify(body, _sign(CHANNEL_SECRET, body))
            mock_cmp.assert_called_once()


class TestParseRequest:
    def test_invalid_signature_raises(self) -> None:
        verifier = SignatureVerifier(CHANNEL_SECRET)
        with pytest.raises(InvalidSignatureError):
            verifier.parse_request(make_webhook_body(make_text_event()), "wrong")

    def test_invalid_signature_checked_before_body_shape(self) -> None:
        verifier = SignatureVerifier(CHANNEL_SECRET)
        with pytest.raises(InvalidSignatureError):
            verifier.parse_request(b"not json", "wrong")

    def test_malformed_body_with_valid_signature_raises(self) -> None:
        verifier = SignatureVerifier(CHANNEL_SECRET)
        body = b"not json"
        with pytest.raises(MalformedRequestError):
            verifier.parse_request(body, _sign(CHANNEL_SECRET, body))

    def test_valid_request_decodes_events(self) -> None:
        verifier = SignatureVerifier(CHANNEL_SECRET)
        body = make_webhook_body(make_text_event("a"), make_text_event("b"))
        callback = verifier.parse_request(body, _sign(CHANNEL_SECRET, body))
        assert len(callback.events) == 2
