"""Structured audit logging.

One JSON record per tool call attempt, written through the ``github_mcp_server.audit``
logger (stderr) and optionally to a size-rotated file. Records never contain the access
token or tool argument values.
"""

from __future__ import annotations

import json
import logging
import time
import uuid
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path

AUDIT_LOGGER_NAME = "github_mcp_server.audit"


def new_correlation_id() -> str:
    """Generate a random correlation id for traceability."""
    return uuid.uuid4().hex


def _now_rfc3339() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True, slots=True)
class AuditEvent:
    """A single audit event."""

    timestamp: str
    correlation_id: str
    operation: str
    target_repo: str
    outcome: str
    reason: str | None
    duration_ms: int | None


class AuditLogger:
    """Emits audit events as single-line JSON."""

    def __init__(
        self,
        *,
        sink_path: Path | None = None,
        max_bytes: int = 5 * 1024 * 1024,
        max_backups: int = 2,
    ) -> None:
        """Create an audit logger.

        The optional file sink rotates at ``max_bytes`` keeping ``max_backups`` old files.
        """
        self._logger = logging.getLogger(AUDIT_LOGGER_NAME)
        self._file_handler: RotatingFileHandler | None = None
        if sink_path is not None:
            sink_path.parent.mkdir(parents=True, exist_ok=True)
            handler = RotatingFileHandler(
                sink_path,
                maxBytes=max_bytes,
                backupCount=max_backups,
                encoding="utf-8",
            )
            handler.setFormatter(logging.Formatter("%(message)s"))
            self._file_handler = handler

    def write_event(self, event: AuditEvent) -> None:
        """Write an audit event, dropping unset optional fields."""
        payload = {k: v for k, v in asdict(event).items() if v is not None}
        line = json.dumps(payload, sort_keys=True, separators=(",", ":"))
        self._logger.info(line)
        if self._file_handler is not None:
            record = self._logger.makeRecord(
                self._logger.name, logging.INFO, __file__, 0, line, None, None
            )
            self._file_handler.handle(record)

    def close(self) -> None:
        if self._file_handler is not None:
            self._file_handler.close()

    def measure_duration_ms(self, start: float) -> int:
        """Convert a monotonic start timestamp into elapsed milliseconds."""
        return int((time.monotonic() - start) * 1000)


def build_event(
    *,
    correlation_id: str,
    operation: str,
    target_repo: str,
    outcome: str,
    reason: str | None = None,
    duration_ms: int | None = None,
) -> AuditEvent:
    """Construct an audit event."""
    return AuditEvent(
        timestamp=_now_rfc3339(),
        correlation_id=correlation_id,
        operation=operation,
        target_repo=target_repo,
        outcome=outcome,
        reason=reason,
        duration_ms=duration_ms,
    )
