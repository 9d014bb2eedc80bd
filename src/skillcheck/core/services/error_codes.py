"""Error codes and exception handling for skillcheck.

Errors fall into two families that always abort the current operation:

    Infrastructure: the definition file is missing, unreadable, too large or
        cannot be written back.
    Parse: the header delimiters are malformed, the header is not a
        string-keyed mapping, or a required field is missing/mistyped during
        property extraction.

Rule violations are never exceptions; they are reported as diagnostics.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    """Operational error codes used across skillcheck."""

    # Infrastructure
    SKILL_NOT_FOUND = "SKILL_NOT_FOUND"
    DIRECTORY_NOT_FOUND = "DIRECTORY_NOT_FOUND"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    READ_ERROR = "READ_ERROR"
    INVALID_ENCODING = "INVALID_ENCODING"
    WRITE_ERROR = "WRITE_ERROR"
    PATH_ESCAPE = "PATH_ESCAPE"

    # Parse
    MISSING_FRONTMATTER = "MISSING_FRONTMATTER"
    UNCLOSED_FRONTMATTER = "UNCLOSED_FRONTMATTER"
    INVALID_YAML = "INVALID_YAML"
    NON_MAPPING_FRONTMATTER = "NON_MAPPING_FRONTMATTER"
    NON_STRING_KEY = "NON_STRING_KEY"
    MISSING_FIELD = "MISSING_FIELD"
    INVALID_FIELD = "INVALID_FIELD"

    # CLI
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


PARSE_ERROR_CODES = frozenset(
    {
        ErrorCode.MISSING_FRONTMATTER,
        ErrorCode.UNCLOSED_FRONTMATTER,
        ErrorCode.INVALID_YAML,
        ErrorCode.NON_MAPPING_FRONTMATTER,
        ErrorCode.NON_STRING_KEY,
        ErrorCode.MISSING_FIELD,
        ErrorCode.INVALID_FIELD,
    }
)


class SkillcheckError(Exception):
    """Base exception for skillcheck errors.

    Wraps an ErrorCode with a human-readable message and optional structured
    details for machine-parseable error responses.

    Attributes:
        code: The ErrorCode enum value for this error.
        message: Human-readable error description.
        details: Optional dictionary of additional structured context.

    Example:
        >>> error = SkillcheckError(
        ...     code=ErrorCode.SKILL_NOT_FOUND,
        ...     message="no SKILL.md found in 'my-skill'",
        ...     details={"directory": "my-skill"},
        ... )
        >>> error.code
        <ErrorCode.SKILL_NOT_FOUND: 'SKILL_NOT_FOUND'>
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details
        super().__init__(message)

    @property
    def is_parse_error(self) -> bool:
        return self.code in PARSE_ERROR_CODES

    def __repr__(self) -> str:
        """Return a developer-friendly representation of the error."""
        return f"{type(self).__name__}(code={self.code.value!r}, message={self.message!r}, details={self.details!r})"


class FrontmatterParseError(SkillcheckError, ValueError):
    """Structural header problem; catchable as both SkillcheckError and ValueError."""

    def __init__(self, code: ErrorCode, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code=code, message=message, details=details)


class FileTooLargeError(SkillcheckError):
    """Raised before parsing when a definition exceeds the size ceiling."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(code=ErrorCode.FILE_TOO_LARGE, message=message, details=details)
