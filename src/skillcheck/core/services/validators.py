"""Content rules for SKILL.md headers.

Every rule runs on every call; a single definition reports all of its
violations at once.
"""

from __future__ import annotations

import os
import re
import unicodedata
from pathlib import Path
from typing import Any, Dict, FrozenSet, List, Optional

from skillcheck.core.domain.entities import (
    Diagnostic,
    Severity,
    SkillProperties,
    ValidationTarget,
)
from skillcheck.core.services.diagnostic_codes import DiagnosticCode

MAX_NAME_LENGTH = 64
MAX_DESCRIPTION_LENGTH = 1024
MAX_COMPATIBILITY_LENGTH = 500

KNOWN_KEYS = (
    "name",
    "description",
    "license",
    "compatibility",
    "allowed-tools",
    "metadata",
)

CLAUDE_CODE_KEYS = (
    "argument-hint",
    "disable-model-invocation",
    "user-invocable",
    "model",
    "context",
    "agent",
    "hooks",
)

RESERVED_WORDS = ("anthropic", "claude")

TAG_RE = re.compile(r"<[A-Za-z/][^>]*>")
_HYPHEN_RUN_RE = re.compile(r"-{2,}")

# Distinguishes an absent key from one whose value is null.
_MISSING = object()


def known_keys_for(target: ValidationTarget) -> Optional[FrozenSet[str]]:
    """Return the keys treated as known, or None when every key is accepted."""
    target = ValidationTarget(target)
    if target == ValidationTarget.PERMISSIVE:
        return None
    if target == ValidationTarget.CLAUDE_CODE:
        return frozenset(KNOWN_KEYS + CLAUDE_CODE_KEYS)
    return frozenset(KNOWN_KEYS)


def normalize(value: str) -> str:
    return unicodedata.normalize("NFKC", value)


def _error(code: DiagnosticCode, message: str, field: str) -> Diagnostic:
    return Diagnostic(severity=Severity.ERROR, code=code.value, message=message, field=field)


_COMBINING_MARK_CATEGORIES = ("Mn", "Mc")


def _is_valid_name_char(ch: str) -> bool:
    if ch.isascii():
        return ch.islower() or ch.isdigit() or ch == "-"
    return ch.isalpha() and not ch.isupper()


def _invalid_name_chars(name: str) -> List[str]:
    """Distinct invalid characters of ``name`` in first-seen order.

    A combining mark (vowel sign, virama, nukta) is valid only after a letter,
    so Devanagari, Tamil and other abugida names validate cleanly.
    """
    invalid: List[str] = []
    after_letter = False
    for ch in name:
        if unicodedata.category(ch) in _COMBINING_MARK_CATEGORIES:
            valid = after_letter
        else:
            valid = _is_valid_name_char(ch)
            after_letter = valid and ch.isalpha()
        if not valid and ch not in invalid:
            invalid.append(ch)
    return invalid


def _truncate_at_hyphen(name: str) -> str:
    cut = name[:MAX_NAME_LENGTH]
    if "-" in cut:
        shortened = cut[: cut.rfind("-")].rstrip("-")
        if shortened:
            return shortened
    return cut.rstrip("-")


def _check_name(value: Any, directory: Optional[Path]) -> List[Diagnostic]:
    if value is _MISSING:
        return [
            _error(DiagnosticCode.NAME_MISSING, "missing required field 'name'", "name")
            .with_suggestion("Add a 'name' field to the frontmatter")
        ]
    if value is None:
        value = ""
    if not isinstance(value, str):
        return [
            _error(
                DiagnosticCode.NAME_NOT_STRING,
                f"name must be a string, got {type(value).__name__}",
                "name",
            )
        ]

    name = normalize(value)
    if name.strip():
        diags = _check_name_text(name)
    else:
        diags = [_error(DiagnosticCode.NAME_EMPTY, "name must not be empty", "name")]

    if directory is not None:
        dir_name = normalize(Path(os.path.abspath(directory)).name)
        if name != dir_name:
            diags.append(
                _error(
                    DiagnosticCode.NAME_DIRECTORY_MISMATCH,
                    f"name '{name}' does not match directory name '{dir_name}'",
                    "name",
                ).with_suggestion(f"Rename the directory or set name to: '{dir_name}'")
            )

    return diags


def _check_name_text(name: str) -> List[Diagnostic]:
    diags: List[Diagnostic] = []

    if len(name) > MAX_NAME_LENGTH:
        diags.append(
            _error(
                DiagnosticCode.NAME_TOO_LONG,
                f"name exceeds {MAX_NAME_LENGTH} characters ({len(name)})",
                "name",
            ).with_suggestion(f"Truncate to: '{_truncate_at_hyphen(name)}'")
        )

    for ch in _invalid_name_chars(name):
        diag = _error(
            DiagnosticCode.NAME_INVALID_CHARACTER,
            f"name contains invalid character: '{ch}'",
            "name",
        )
        if ch.isupper():
            diag = diag.with_suggestion(f"Use lowercase: '{name.lower()}'")
        else:
            diag = diag.with_suggestion("Use only lowercase letters, digits and hyphens")
        diags.append(diag)

    if TAG_RE.search(name):
        diags.append(
            _error(DiagnosticCode.NAME_CONTAINS_TAGS, "name contains XML/HTML tags", "name")
        )

    if name.startswith("-"):
        diags.append(
            _error(DiagnosticCode.NAME_LEADING_HYPHEN, "name must not start with a hyphen", "name")
        )
    if name.endswith("-"):
        diags.append(
            _error(DiagnosticCode.NAME_TRAILING_HYPHEN, "name must not end with a hyphen", "name")
        )
    if "--" in name:
        collapsed = _HYPHEN_RUN_RE.sub("-", name)
        diags.append(
            _error(
                DiagnosticCode.NAME_CONSECUTIVE_HYPHENS,
                "name contains consecutive hyphens",
                "name",
            ).with_suggestion(f"Collapse hyphens: '{collapsed}'")
        )

    segments = name.split("-")
    for word in RESERVED_WORDS:
        if word in segments:
            diags.append(
                _error(
                    DiagnosticCode.NAME_RESERVED_WORD,
                    f"name contains reserved word: '{word}'",
                    "name",
                )
            )

    return diags


def _check_description(value: Any) -> List[Diagnostic]:
    if value is _MISSING:
        return [
            _error(
                DiagnosticCode.DESCRIPTION_MISSING,
                "missing required field 'description'",
                "description",
            ).with_suggestion("Add a 'description' field to the frontmatter")
        ]
    if value is None:
        value = ""
    if not isinstance(value, str):
        return [
            _error(
                DiagnosticCode.DESCRIPTION_NOT_STRING,
                f"description must be a string, got {type(value).__name__}",
                "description",
            )
        ]
    if not value.strip():
        return [
            _error(DiagnosticCode.DESCRIPTION_EMPTY, "description must not be empty", "description")
        ]

    diags: List[Diagnostic] = []
    if len(value) > MAX_DESCRIPTION_LENGTH:
        diags.append(
            _error(
                DiagnosticCode.DESCRIPTION_TOO_LONG,
                f"description exceeds {MAX_DESCRIPTION_LENGTH} characters ({len(value)})",
                "description",
            )
        )
    if TAG_RE.search(value):
        diags.append(
            _error(
                DiagnosticCode.DESCRIPTION_CONTAINS_TAGS,
                "description contains XML/HTML tags",
                "description",
            ).with_suggestion("Remove XML/HTML tags")
        )
    return diags


def _check_compatibility(value: Any) -> List[Diagnostic]:
    if value is None:
        return []
    if not isinstance(value, str):
        return [
            _error(
                DiagnosticCode.COMPATIBILITY_NOT_STRING,
                f"compatibility must be a string, got {type(value).__name__}",
                "compatibility",
            )
        ]
    if len(value) > MAX_COMPATIBILITY_LENGTH:
        return [
            _error(
                DiagnosticCode.COMPATIBILITY_TOO_LONG,
                f"compatibility exceeds {MAX_COMPATIBILITY_LENGTH} characters ({len(value)})",
                "compatibility",
            )
        ]
    return []


def _check_unknown_keys(header: Dict[str, Any], target: ValidationTarget) -> List[Diagnostic]:
    known = known_keys_for(target)
    if known is None:
        return []
    return [
        Diagnostic(
            severity=Severity.WARNING,
            code=DiagnosticCode.UNKNOWN_FIELD.value,
            message=f"unknown field: '{key}'",
            field=key,
            suggestion="Remove the field or move it under 'metadata'",
        )
        for key in header
        if key not in known
    ]


def validate_metadata(
    header: Dict[str, Any],
    directory: Optional[Path] = None,
    target: ValidationTarget = ValidationTarget.STANDARD,
) -> List[Diagnostic]:
    """Validate a raw header mapping.

    Args:
        header: Parsed header, keys in header order.
        directory: Skill directory; enables the directory-name match rule.
        target: Selects the known-key set for unknown-field warnings.

    Returns:
        Every diagnostic found, name rules first, then description,
        compatibility and unknown fields.
    """
    diags: List[Diagnostic] = []
    diags.extend(_check_name(header.get("name", _MISSING), directory))
    diags.extend(_check_description(header.get("description", _MISSING)))
    diags.extend(_check_compatibility(header.get("compatibility")))
    diags.extend(_check_unknown_keys(header, target))
    return diags


def validate_properties(
    properties: SkillProperties,
    directory: Optional[Path] = None,
    target: ValidationTarget = ValidationTarget.STANDARD,
) -> List[Diagnostic]:
    return validate_metadata(properties.to_header(), directory, target)
