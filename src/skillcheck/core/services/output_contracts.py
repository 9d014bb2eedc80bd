"""Output contract for skillcheck JSON reports."""

OUTPUT_SCHEMA_VERSION = "1.0"

SEVERITY_VALUES = ["error", "warning", "info"]

DIAGNOSTIC_SCHEMA = {
    "type": "object",
    "required": ["severity", "code", "message"],
    "additionalProperties": False,
    "properties": {
        "severity": {"type": "string", "enum": SEVERITY_VALUES},
        "code": {"type": "string", "pattern": "^[A-Z][0-9]{3}$"},
        "message": {"type": "string"},
        "field": {"type": "string"},
        "suggestion": {"type": "string"},
    },
}

ERROR_SCHEMA = {
    "type": "object",
    "required": ["code", "message"],
    "properties": {
        "code": {"type": "string"},
        "message": {"type": "string"},
        "details": {"type": "object"},
    },
}

ENVELOPE_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["output_schema_version", "success", "command", "run_id", "results"],
    "properties": {
        "output_schema_version": {"type": "string", "const": OUTPUT_SCHEMA_VERSION},
        "success": {"type": "boolean"},
        "command": {"type": "string"},
        "run_id": {"type": "string"},
        "timestamp": {"type": "string"},
        "results": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["path", "diagnostics"],
                "properties": {
                    "path": {"type": "string"},
                    "diagnostics": {"type": "array", "items": DIAGNOSTIC_SCHEMA},
                    "fixes_applied": {"type": "integer", "minimum": 0},
                    "changed": {"type": "boolean"},
                    "properties": {"type": "object"},
                },
            },
        },
        "error": ERROR_SCHEMA,
    },
}
