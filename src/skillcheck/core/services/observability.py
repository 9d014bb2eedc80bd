"""Run-scoped event log for skillcheck.

Every event is one line on stderr; stdout is reserved for reports.

Environment:
    SKILLCHECK_LOG_FORMAT  ``text`` (default) or ``json``
    SKILLCHECK_DEBUG       ``1`` emits trace events from ``log_debug``
    SKILLCHECK_LOG_SILENT  ``1`` drops every non-trace event (JSON reports set it)
    SKILLCHECK_RUN_ID      pins the run id; ignored unless it is a UUIDv4
"""

import json
import os
import sys
import time
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional

from skillcheck.core.services.error_codes import ErrorCode, SkillcheckError

_current_run_id: Optional[str] = None


def get_run_id() -> str:
    """Return SKILLCHECK_RUN_ID when it is a valid UUIDv4, else a fresh one."""
    pinned = os.environ.get("SKILLCHECK_RUN_ID", "")
    try:
        parsed = uuid.UUID(pinned)
    except ValueError:
        return str(uuid.uuid4())
    return str(parsed) if parsed.version == 4 else str(uuid.uuid4())


def get_current_run_id() -> str:
    global _current_run_id
    if _current_run_id is None:
        _current_run_id = get_run_id()
    return _current_run_id


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


@dataclass
class Event:
    """One log line: an operation outcome or a trace point."""

    operation: str
    success: bool = True
    level: str = "info"
    duration_ms: Optional[float] = None
    error_code: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)
    run_id: str = field(default_factory=lambda: get_current_run_id())
    timestamp: str = field(default_factory=_utc_now)

    def to_json(self) -> str:
        entry: Dict[str, Any] = {
            "timestamp": self.timestamp,
            "run_id": self.run_id,
            "operation": self.operation,
            "success": self.success,
            "level": self.level,
        }
        if self.duration_ms is not None:
            entry["duration_ms"] = round(self.duration_ms, 2)
        if self.error_code:
            entry["error_code"] = self.error_code
        if self.details:
            entry["details"] = self.details
        return json.dumps(entry, separators=(",", ":"), default=str)

    def to_text(self) -> str:
        line = (
            f"{self.timestamp} run={self.run_id} {self.level.upper()} "
            f"{self.operation} {'ok' if self.success else 'failed'}"
        )
        if self.duration_ms is not None:
            line += f" {self.duration_ms:.2f}ms"
        if self.error_code:
            line += f" error={self.error_code}"
        if self.details:
            line += " " + json.dumps(self.details, default=str)
        return line


def emit(event: Event) -> None:
    """Write ``event`` to stderr unless logging is silenced.

    Trace events bypass silencing: asking for debug output wins.
    """
    if event.level != "debug" and os.environ.get("SKILLCHECK_LOG_SILENT") == "1":
        return
    as_json = os.environ.get("SKILLCHECK_LOG_FORMAT", "text") == "json"
    sys.stderr.write((event.to_json() if as_json else event.to_text()) + "\n")
    sys.stderr.flush()


def log_debug(operation: str, details: Optional[Dict[str, Any]] = None) -> None:
    if os.environ.get("SKILLCHECK_DEBUG") != "1":
        return
    emit(Event(operation=operation, level="debug", details=dict(details or {})))


def _error_code_of(exc: BaseException) -> str:
    if isinstance(exc, SkillcheckError):
        return exc.code.value
    return ErrorCode.UNKNOWN_ERROR.value


@contextmanager
def log_operation(
    operation: str,
    details: Optional[Dict[str, Any]] = None,
    run_id: Optional[str] = None,
) -> Iterator[Dict[str, Any]]:
    """Time a block and emit one event for its outcome.

    Yields a dict whose ``details`` entry the block may extend:

        with log_operation("format_skill", {"path": str(path)}) as ctx:
            ctx["details"]["changed"] = result.changed
    """
    context: Dict[str, Any] = {"details": dict(details or {})}
    event = Event(operation=operation, details=context["details"])
    if run_id:
        event.run_id = run_id
    started = time.monotonic()
    try:
        yield context
    except Exception as exc:
        event.success = False
        event.level = "error"
        event.error_code = _error_code_of(exc)
        raise
    finally:
        event.duration_ms = (time.monotonic() - started) * 1000
        event.timestamp = _utc_now()
        emit(event)
