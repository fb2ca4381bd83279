"""Audit logger for account-link outcomes: append-only JSON Lines with a hash chain."""

from __future__ import annotations

import fcntl
import hashlib
import json
from dataclasses import dataclass
from pathlib import Path

from src.models import AuditEvent


@dataclass
class ChainValidationResult:
    valid: bool
    broken_at_line: int | None = None


def _line_hash(line: str) -> str:
    return hashlib.sha256(line.encode()).hexdigest()


def validate_audit_chain(log_path: Path) -> ChainValidationResult:
    """Check that every entry's prev_hash matches the line before it."""
    if not log_path.exists():
        return ChainValidationResult(valid=True)
    lines = [line for line in log_path.read_text(encoding="utf-8").splitlines() if line]

    prev: str | None = None
    for number, line in enumerate(lines, start=1):
        try:
            entry = json.loads(line)
        except json.JSONDecodeError:
            return ChainValidationResult(valid=False, broken_at_line=number)
        expected = _line_hash(prev) if prev is not None else None
        if entry.get("prev_hash") != expected:
            return ChainValidationResult(valid=False, broken_at_line=number)
        prev = line

    return ChainValidationResult(valid=True)


class AuditLogger:
    """Appends AuditEvents to a JSON Lines file, chaining each to its predecessor."""

    def __init__(self, log_path: str) -> None:
        self.log_path = Path(log_path)
        self._last_line: str | None = None
        if self.log_path.exists():
            lines = self.log_path.read_text(encoding="utf-8").splitlines()
            if lines:
                self._last_line = lines[-1]

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)

        data = json.loads(event.model_dump_json())
        data["prev_hash"] = _line_hash(self._last_line) if self._last_line else None
        line = json.dumps(data, ensure_ascii=False, separators=(",", ":"))

        with open(self.log_path, "a", encoding="utf-8") as f:
            fcntl.flock(f, fcntl.LOCK_EX)
            try:
                f.write(line + "\n")
            finally:
                fcntl.flock(f, fcntl.LOCK_UN)

        self._last_line = line
