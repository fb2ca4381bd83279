"""Shared test fixtures for the LINE account-link bot."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.audit.logger import AuditLogger
from src.config import Settings
from src.line.client import LineApiClient
from src.models import AuditEvent, AuditEventType, RiskLevel

CHANNEL_SECRET = "test-channel-secret"
CHANNEL_TOKEN = "test-channel-token"
LOGIN_URL = "https://example.com/login"
USER_ID = "U4af4980629"


def make_settings(**kwargs: Any) -> Settings:
    """Factory for Settings with sensible defaults."""
    defaults: dict[str, Any] = {
        "channel_secret": CHANNEL_SECRET,
        "channel_token": CHANNEL_TOKEN,
        "login_url": LOGIN_URL,
    }
    defaults.update(kwargs)
    return Settings(**defaults)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_api() -> MagicMock:
    """Stand-in for LineApiClient with awaitable methods."""
    api = MagicMock(spec=LineApiClient)
    api.reply_message = AsyncMock(return_value=None)
    api.issue_link_token = AsyncMock(return_value="issuedLinkToken123")
    api.revoke_link = AsyncMock(return_value=None)
    return api


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


# --- Factory functions for webhook payloads ---


def make_user_source(user_id: str = USER_ID) -> dict[str, Any]:
    return {"type": "user", "userId": user_id}


def make_text_event(
    text: str = "hello",
    reply_token: str = "replyToken-1",
    source: dict[str, Any] | None = None,
    **kwargs: Any,
) -> dict[str, Any]:
    event: dict[str, Any] = {
        "type": "message",
        "mode": "active",
        "timestamp": 1462629479859,
        "source": source or make_user_source(),
        "webhookEventId": "01FZ74A0TDDPYRVKNK77XKC3ZR",
        "replyToken": reply_token,
        "message": {"id": "444573844083572737", "type": "text", "text": text},
    }
    event.update(kwargs)
    return event


def make_sticker_event(reply_token: str = "replyToken-s") -> dict[str, Any]:
    return {
        "type": "message",
        "timestamp": 1462629479859,
        "source": make_user_source(),
        "replyToken": reply_token,
        "message": {"id": "1501597916", "type": "sticker", "packageId": "446", "stickerId": "1988"},
    }


def make_account_link_event(
    result: str = "ok",
    reply_token: str = "replyToken-link",
    user_id: str = USER_ID,
) -> dict[str, Any]:
    return {
        "type": "accountLink",
        "timestamp": 1513669370317,
        "source": make_user_source(user_id),
        "replyToken": reply_token,
        "link": {"result": result, "nonce": "xxxxxxxxxxxxxxx"},
    }


def make_webhook_body(*events: dict[str, Any], destination: str = "Uxxxxxxxxxxxx") -> bytes:
    return json.dumps(
        {"destination": destination, "events": list(events)}, ensure_ascii=False,
    ).encode()


def make_audit_event(**kwargs: Any) -> AuditEvent:
    """Factory for AuditEvent with sensible defaults."""
    defaults: dict[str, Any] = {
        "event_type": AuditEventType.UNLINK_SUCCEEDED,
        "user_id": USER_ID,
        "action": "revoke_link",
        "result": "success",
        "risk_level": RiskLevel.INFO,
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)


@pytest.fixture
def audit_log_path(tmp_path: Path) -> Path:
    return tmp_path / "audit.jsonl"
