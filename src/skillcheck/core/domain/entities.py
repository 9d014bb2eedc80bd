from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationTarget(str, Enum):
    """Which header keys count as known for the unknown-field warning.

    The target changes nothing else: every other rule runs identically.
    """

    STANDARD = "standard"
    CLAUDE_CODE = "claude-code"
    PERMISSIVE = "permissive"


@dataclass
class Diagnostic:
    """A single finding reported by a checker.

    Every checker returns a flat list of these; consumers only branch on
    ``severity`` and ``code``.

    Attributes:
        severity: Error, Warning or Info.
        code: Stable, category-prefixed code (e.g. ``E003``, ``S006``).
        message: Human-readable description.
        field: Header field (or area such as ``body``/``structure``) involved.
        suggestion: Actionable fix text. Fixable codes embed the replacement
            value in single quotes, e.g. ``Use lowercase: 'my-skill'``.
    """

    severity: Severity
    code: str
    message: str
    field: Optional[str] = None
    suggestion: Optional[str] = None

    def with_field(self, field_name: str) -> "Diagnostic":
        return replace(self, field=field_name)

    def with_suggestion(self, suggestion: str) -> "Diagnostic":
        return replace(self, suggestion=suggestion)

    def is_error(self) -> bool:
        return self.severity == Severity.ERROR

    def is_warning(self) -> bool:
        return self.severity == Severity.WARNING

    def is_info(self) -> bool:
        return self.severity == Severity.INFO

    def to_dict(self) -> Dict[str, str]:
        data: Dict[str, str] = {
            "severity": Severity(self.severity).value,
            "code": str(getattr(self.code, "value", self.code)),
            "message": self.message,
        }
        if self.field is not None:
            data["field"] = self.field
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        return data

    def __str__(self) -> str:
        if self.severity == Severity.WARNING:
            return f"warning: {self.message}"
        if self.severity == Severity.INFO:
            return f"info: {self.message}"
        return self.message


@dataclass
class SkillProperties:
    """Typed view of a SKILL.md header.

    ``metadata`` holds every header key that is not one of the typed fields,
    in header order. It is ``None`` (never an empty dict) when nothing remains.
    """

    name: str
    description: str
    license: Optional[str] = None
    compatibility: Optional[str] = None
    allowed_tools: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    def to_header(self) -> Dict[str, Any]:
        """Rebuild the raw header mapping these properties were extracted from."""
        header: Dict[str, Any] = {"name": self.name, "description": self.description}
        if self.license is not None:
            header["license"] = self.license
        if self.compatibility is not None:
            header["compatibility"] = self.compatibility
        if self.allowed_tools is not None:
            header["allowed-tools"] = self.allowed_tools
        if self.metadata:
            header.update(self.metadata)
        return header

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "description": self.description}
        if self.license is not None:
            data["license"] = self.license
        if self.compatibility is not None:
            data["compatibility"] = self.compatibility
        if self.allowed_tools is not None:
            data["allowed-tools"] = self.allowed_tools
        if self.metadata is not None:
            data["metadata"] = self.metadata
        return data


@dataclass(frozen=True)
class KeyBlock:
    """A top-level header key with its verbatim raw text.

    ``raw`` includes the ``key:`` line and every continuation line (indented
    values, blank lines, attached comments) joined with ``\\n``.
    """

    name: str
    raw: str
    line: int = 0


@dataclass(frozen=True)
class CommentBlock:
    """A standalone header line that belongs to no key (usually a ``#`` comment)."""

    raw: str
    line: int = 0


HeaderBlock = Union[KeyBlock, CommentBlock]


@dataclass
class FormatResult:
    changed: bool
    content: str
    path: Optional[Path] = None


@dataclass
class FixAction:
    code: str
    field: str
    description: str


@dataclass
class FixReport:
    path: Optional[Path] = None
    applied: List[FixAction] = field(default_factory=list)

    @property
    def fix_count(self) -> int:
        return len(self.applied)


@dataclass
class SkillReport:
    """Result of validating one skill directory.

    Attributes:
        path: The skill directory that was checked.
        diagnostics: Every finding, in checker order (content, structure, lint).
        fixes_applied: Number of auto-fixes written before the final pass.
    """

    path: Path
    diagnostics: List[Diagnostic] = field(default_factory=list)
    fixes_applied: int = 0

    @property
    def has_errors(self) -> bool:
        return any(d.is_error() for d in self.diagnostics)

    @property
    def has_warnings(self) -> bool:
        return any(d.is_warning() for d in self.diagnostics)


@dataclass
class DiscoveryWarning:
    path: Path
    message: str
