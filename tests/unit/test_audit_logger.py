"""Tests for the audit logger."""

from __future__ import annotations

import hashlib
import json
from pathlib import Path

from src.audit.logger import AuditLogger, validate_audit_chain
from src.models import AuditEventType
from tests.conftest import make_audit_event


def test_log_appends_json_line(audit_log_path: Path) -> None:
    logger = AuditLogger(log_path=str(audit_log_path))
    logger.log(make_audit_event())

    lines = audit_log_path.read_text(encoding="utf-8").strip().split("\n")
    assert len(lines) == 1
    parsed = json.loads(lines[0])
    assert parsed["event_type"] == "unlink_succeeded"
    assert parsed["risk_level"] == "info"
    assert parsed["prev_hash"] is None


def test_log_creates_parent_directory(tmp_path: Path) -> None:
    log_file = tmp_path / "nested" / "audit.jsonl"
    AuditLogger(log_path=str(log_file)).log(make_audit_event())
    assert log_file.exists()


def test_entries_are_hash_chained(audit_log_path: Path) -> None:
    logger = AuditLogger(log_path=str(audit_log_path))
    logger.log(make_audit_event(event_type=AuditEventType.LINK_TOKEN_ISSUED))
    logger.log(make_audit_event(event_type=AuditEventType.LINK_COMPLETED))

    first, second = audit_log_path.read_text(encoding="utf-8").strip().split("\n")
    assert json.loads(second)["prev_hash"] == hashlib.sha256(first.encode()).hexdigest()
    assert validate_audit_chain(audit_log_path).valid is True


def test_chain_continues_across_instances(audit_log_path: Path) -> None:
    AuditLogger(log_path=str(audit_log_path)).log(make_audit_event(action="first"))
    AuditLogger(log_path=str(audit_log_path)).log(make_audit_event(action="second"))
    assert validate_audit_chain(audit_log_path).valid is True


def test_non_ascii_details_preserved(audit_log_path: Path) -> None:
    logger = AuditLogger(log_path=str(audit_log_path))
    logger.log(make_audit_event(details={"reply": "連携解除が完了しました。"}))
    parsed = json.loads(audit_log_path.read_text(encoding="utf-8"))
    assert parsed["details"]["reply"] == "連携解除が完了しました。"


def test_tampered_entry_detected(audit_log_path: Path) -> None:
    logger = AuditLogger(log_path=str(audit_log_path))
    for action in ("a", "b", "c"):
        logger.log(make_audit_event(action=action))

    lines = audit_log_path.read_text(encoding="utf-8").strip().split("\n")
    lines[1] = lines[1].replace('"action":"b"', '"action":"x"')
    audit_log_path.write_text("\n".join(lines) + "\n", encoding="utf-8")

    result = validate_audit_chain(audit_log_path)
    assert result.valid is False
    assert result.broken_at_line == 3


def test_missing_log_is_valid(tmp_path: Path) -> None:
    assert validate_audit_chain(tmp_path / "absent.jsonl").valid is True
