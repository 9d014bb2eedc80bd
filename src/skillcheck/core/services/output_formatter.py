"""JSON report envelope for the skillcheck CLI.

Guarantees:
- Deterministic top-level key order
- Results sorted by path; diagnostics keep checker order
- Every envelope is checked against ENVELOPE_SCHEMA (jsonschema Draft 7)
- run_id is always a UUIDv4
- Single-line JSON output
"""

import json
import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

import click
from jsonschema import Draft7Validator

from skillcheck.core.domain.entities import Diagnostic, SkillReport
from skillcheck.core.services.error_codes import ErrorCode
from skillcheck.core.services.output_contracts import (
    DIAGNOSTIC_SCHEMA,
    ENVELOPE_SCHEMA,
    OUTPUT_SCHEMA_VERSION,
)

_ENVELOPE_KEY_ORDER = [
    "output_schema_version",
    "success",
    "command",
    "run_id",
    "timestamp",
    "results",
    "error",
]

_ENVELOPE_VALIDATOR = Draft7Validator(ENVELOPE_SCHEMA)
_DIAGNOSTIC_VALIDATOR = Draft7Validator(DIAGNOSTIC_SCHEMA)

logger = logging.getLogger(__name__)


def _schema_errors(validator: Draft7Validator, instance: Any) -> List[str]:
    return [error.message for error in sorted(validator.iter_errors(instance), key=str)]


def diagnostic_to_wire(diagnostic: Diagnostic) -> Dict[str, str]:
    """Serialize a diagnostic to its wire shape, rejecting malformed ones."""
    wire = diagnostic.to_dict()
    errors = _schema_errors(_DIAGNOSTIC_VALIDATOR, wire)
    if errors:
        raise ValueError(f"diagnostic failed schema validation: {'; '.join(errors[:3])}")
    return wire


def _normalize_run_id(run_id: Optional[str]) -> str:
    if run_id is None:
        return str(uuid.uuid4())
    try:
        parsed = uuid.UUID(str(run_id))
    except (ValueError, AttributeError, TypeError):
        return str(uuid.uuid4())
    if parsed.version != 4:
        return str(uuid.uuid4())
    return str(parsed)


def report_to_result(report: SkillReport) -> Dict[str, Any]:
    return {
        "path": Path(report.path).as_posix(),
        "diagnostics": [diagnostic_to_wire(d) for d in report.diagnostics],
        "fixes_applied": report.fixes_applied,
    }


def format_envelope(
    *,
    command: str,
    success: bool,
    results: Optional[Iterable[Dict[str, Any]]] = None,
    error: Optional[Dict[str, Any]] = None,
    include_timestamp: bool = False,
    run_id: Optional[str] = None,
) -> str:
    """Build the JSON report as a deterministic single-line string.

    Args:
        command: CLI subcommand name (e.g. "validate", "format").
        success: False when any error-severity diagnostic or operational
            error occurred.
        results: Per-skill result objects, each with ``path`` and
            ``diagnostics``. Sorted by path.
        error: Operational error object (code, message, optional details).
        include_timestamp: If True, include ISO 8601 UTC timestamp.
        run_id: Override run_id (must be a UUIDv4).
    """
    envelope: Dict[str, Any] = {
        "output_schema_version": OUTPUT_SCHEMA_VERSION,
        "success": success,
        "command": command,
        "run_id": _normalize_run_id(run_id),
        "results": sorted(results or [], key=lambda r: r.get("path", "")),
    }
    if include_timestamp:
        envelope["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    if error is not None:
        envelope["error"] = error

    ordered = {key: envelope[key] for key in _ENVELOPE_KEY_ORDER if key in envelope}

    errors = _schema_errors(_ENVELOPE_VALIDATOR, ordered)
    if errors:
        logger.error("Envelope schema validation failed: %s", "; ".join(errors[:3]))
        click.echo(f"WARN: Envelope schema validation failed: {errors[0]}", err=True)

    return json.dumps(ordered, separators=(",", ":"), ensure_ascii=False, default=str)


def format_error_envelope(
    *,
    command: str,
    error_code: ErrorCode,
    message: str,
    details: Optional[Dict[str, Any]] = None,
    run_id: Optional[str] = None,
) -> str:
    """Convenience wrapper around format_envelope for operational errors."""
    error_obj: Dict[str, Any] = {"code": error_code.value, "message": message}
    if details is not None:
        error_obj["details"] = details
    return format_envelope(command=command, success=False, error=error_obj, run_id=run_id)
