"""Shared Pydantic data models for the LINE account-link bot."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

# --- Enums ---


class AuditEventType(str, Enum):
    WEBHOOK_REJECTED = "webhook_rejected"
    LINK_TOKEN_ISSUED = "link_token_issued"
    LINK_TOKEN_FAILED = "link_token_failed"
    LINK_COMPLETED = "link_completed"
    LINK_FAILED = "link_failed"
    LINK_RESULT_UNKNOWN = "link_result_unknown"
    UNLINK_SUCCEEDED = "unlink_succeeded"
    UNLINK_FAILED = "unlink_failed"


class RiskLevel(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


# --- Audit Models ---


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    user_id: str | None = None
    action: str
    result: str  # "success" | "failure" | "ignored"
    risk_level: RiskLevel
    details: dict[str, object] | None = None
