"""Exit code mapping for the skillcheck CLI."""

from __future__ import annotations

import os

from skillcheck.core.services.error_codes import ErrorCode

EX_SUCCESS = 0
EX_COMPLIANCE_FAIL = 1
EX_DATAERR = getattr(os, "EX_DATAERR", 65)
EX_NOINPUT = getattr(os, "EX_NOINPUT", 66)
EX_CANTCREAT = getattr(os, "EX_CANTCREAT", 73)
EX_NOPERM = getattr(os, "EX_NOPERM", 77)


def exit_code_for_error(error_code: ErrorCode) -> int:
    """Map ErrorCode to sysexits-style exit codes."""
    mapping = {
        ErrorCode.SKILL_NOT_FOUND: EX_NOINPUT,
        ErrorCode.DIRECTORY_NOT_FOUND: EX_NOINPUT,
        ErrorCode.READ_ERROR: EX_NOINPUT,
        ErrorCode.FILE_TOO_LARGE: EX_DATAERR,
        ErrorCode.INVALID_ENCODING: EX_DATAERR,
        ErrorCode.PATH_ESCAPE: EX_NOPERM,
        ErrorCode.WRITE_ERROR: EX_CANTCREAT,
        ErrorCode.MISSING_FRONTMATTER: EX_DATAERR,
        ErrorCode.UNCLOSED_FRONTMATTER: EX_DATAERR,
        ErrorCode.INVALID_YAML: EX_DATAERR,
        ErrorCode.NON_MAPPING_FRONTMATTER: EX_DATAERR,
        ErrorCode.NON_STRING_KEY: EX_DATAERR,
        ErrorCode.MISSING_FIELD: EX_DATAERR,
        ErrorCode.INVALID_FIELD: EX_DATAERR,
        ErrorCode.UNKNOWN_ERROR: EX_DATAERR,
    }
    return mapping.get(error_code, EX_DATAERR)


def exit_code_for_diagnostics(diagnostics) -> int:
    """Error-severity diagnostics fail the run; warnings and info never do."""
    if any(d.is_error() for d in diagnostics):
        return EX_COMPLIANCE_FAIL
    return EX_SUCCESS
