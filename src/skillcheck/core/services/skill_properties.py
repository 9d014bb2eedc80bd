"""Read a skill definition from disk and derive its typed properties."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional

from skillcheck.core.domain.entities import SkillProperties
from skillcheck.core.services.error_codes import (
    ErrorCode,
    FileTooLargeError,
    FrontmatterParseError,
    SkillcheckError,
)
from skillcheck.core.services.frontmatter_parser import find_skill_md, parse_frontmatter
from skillcheck.core.services.safe_yaml import safe_frontmatter_dumps

# Hard ceiling on any definition read; checked before decoding or parsing.
MAX_FILE_SIZE = 1024 * 1024

REQUIRED_FIELDS = ("name", "description")
OPTIONAL_FIELDS = (
    ("license", "license"),
    ("compatibility", "compatibility"),
    ("allowed-tools", "allowed_tools"),
)
TYPED_KEYS = frozenset(REQUIRED_FIELDS) | frozenset(key for key, _ in OPTIONAL_FIELDS)


def read_skill_bytes(path: Path) -> bytes:
    """Read at most MAX_FILE_SIZE bytes, failing if the file is larger."""
    path = Path(path)
    try:
        with open(path, "rb") as handle:
            data = handle.read(MAX_FILE_SIZE + 1)
    except OSError as exc:
        raise SkillcheckError(
            code=ErrorCode.READ_ERROR,
            message=f"cannot read '{path}': {exc}",
            details={"path": str(path)},
        ) from exc

    if len(data) > MAX_FILE_SIZE:
        raise FileTooLargeError(
            message=f"file exceeds {MAX_FILE_SIZE} byte limit: '{path}'",
            details={"path": str(path), "limit": MAX_FILE_SIZE},
        )
    return data


def read_skill_text(path: Path) -> str:
    data = read_skill_bytes(path)
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise SkillcheckError(
            code=ErrorCode.INVALID_ENCODING,
            message=f"'{path}' is not valid UTF-8: {exc.reason} at byte {exc.start}",
            details={"path": str(path)},
        ) from exc


def require_skill_md(directory: Path) -> Path:
    directory = Path(directory)
    path = find_skill_md(directory)
    if path is None:
        raise SkillcheckError(
            code=ErrorCode.SKILL_NOT_FOUND,
            message=f"no SKILL.md found in '{directory}'",
            details={"directory": str(directory)},
        )
    return path


def _optional_string(header: Dict[str, Any], key: str) -> Optional[str]:
    value = header.get(key)
    if value is None or isinstance(value, str):
        return value
    raise FrontmatterParseError(
        ErrorCode.INVALID_FIELD,
        f"field '{key}' must be a string, got {type(value).__name__}",
        details={"field": key},
    )


def extract_properties(header: Dict[str, Any]) -> SkillProperties:
    """Build SkillProperties from a parsed header mapping.

    Raises:
        FrontmatterParseError: MISSING_FIELD when ``name`` or ``description``
            is absent, INVALID_FIELD when a typed field has the wrong type.
    """
    for key in REQUIRED_FIELDS:
        if key not in header:
            raise FrontmatterParseError(
                ErrorCode.MISSING_FIELD,
                f"missing required field '{key}'",
                details={"field": key},
            )
        if not isinstance(header[key], str):
            raise FrontmatterParseError(
                ErrorCode.INVALID_FIELD,
                f"field '{key}' must be a string, got {type(header[key]).__name__}",
                details={"field": key},
            )

    optional = {attr: _optional_string(header, key) for key, attr in OPTIONAL_FIELDS}
    residual = {key: value for key, value in header.items() if key not in TYPED_KEYS}

    return SkillProperties(
        name=header["name"],
        description=header["description"],
        metadata=residual or None,
        **optional,
    )


def read_properties(directory: Path) -> SkillProperties:
    path = require_skill_md(directory)
    header, _body = parse_frontmatter(read_skill_text(path))
    return extract_properties(header)


def read_body(directory: Path) -> str:
    path = require_skill_md(directory)
    _header, body = parse_frontmatter(read_skill_text(path))
    return body


def render_skill_md(properties: SkillProperties, body: str = "") -> str:
    """Serialize properties back into SKILL.md text.

    Header keys come out in typed-field order followed by residual keys, so
    extracting the result yields equal properties.
    """
    return safe_frontmatter_dumps(properties.to_header(), body)
