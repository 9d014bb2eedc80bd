import re
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

from skillcheck.core.domain.entities import Diagnostic, FixAction, FixReport, KeyBlock
from skillcheck.core.services.diagnostic_codes import DiagnosticCode
from skillcheck.core.services.error_codes import ErrorCode, SkillcheckError
from skillcheck.core.services.frontmatter_parser import (
    parse_frontmatter,
    parse_header_blocks,
    split_frontmatter,
)
from skillcheck.core.services.observability import log_operation
from skillcheck.core.services.safe_fs import ensure_safe_write_path
from skillcheck.core.services.skill_properties import read_skill_bytes, require_skill_md
from skillcheck.core.services.validators import TAG_RE

_LOWERCASE_VERB = "use lowercase"

# (field, value transform, description)
FixPlan = Tuple[str, Callable[[str], str], str]


def extract_quoted_value(suggestion: Optional[str]) -> Optional[str]:
    """Return the text between the first and last single quote.

    >>> extract_quoted_value("Truncate to: 'my-skill'")
    'my-skill'
    """
    if not suggestion:
        return None
    start = suggestion.find("'")
    end = suggestion.rfind("'")
    if start == -1 or start >= end:
        return None
    return suggestion[start + 1 : end]


class _SkillLines:
    """Line-addressable view of a definition that keeps original line endings."""

    def __init__(self, content: str):
        normalized = content.replace("\r\n", "\n")
        # Fail fast on anything the parser rejects.
        parse_frontmatter(normalized)
        header_source, _body = split_frontmatter(normalized)

        self.lines: List[str] = content.split("\n")
        self._field_lines: Dict[str, int] = {}
        for block in parse_header_blocks(header_source):
            if not isinstance(block, KeyBlock) or block.name in self._field_lines:
                continue
            # Values spread over continuation lines are left alone.
            continuation = block.raw.split("\n")[1:]
            if any(line.strip() and not line.lstrip().startswith("#") for line in continuation):
                continue
            # +1 skips the opening delimiter.
            self._field_lines[block.name] = block.line + 1

    def render(self) -> str:
        return "\n".join(self.lines)

    def rewrite_field(self, field: str, transform: Callable[[str], str]) -> bool:
        """Rewrite the first line of ``field``'s block; return whether it changed."""
        index = self._field_lines.get(field)
        if index is None:
            return False

        line = self.lines[index]
        ending = "\r" if line.endswith("\r") else ""
        text = line[: len(line) - len(ending)]

        match = re.match(rf"^{re.escape(field)}:\s*(.*)$", text)
        if match is None:
            return False

        new_text = f"{field}: {transform(match.group(1))}"
        if new_text == text:
            return False
        self.lines[index] = new_text + ending
        return True


def _fix_for(diagnostic: Diagnostic) -> Optional[FixPlan]:
    """Return (field, transform, description) for a fixable diagnostic, else None."""
    code = str(getattr(diagnostic.code, "value", diagnostic.code))
    suggestion = diagnostic.suggestion
    if suggestion is None:
        return None

    if code in (DiagnosticCode.NAME_TOO_LONG.value, DiagnosticCode.NAME_CONSECUTIVE_HYPHENS.value):
        replacement = extract_quoted_value(suggestion)
        if replacement is None:
            return None
        return "name", (lambda _value: replacement), f"set name to '{replacement}'"

    if code == DiagnosticCode.NAME_INVALID_CHARACTER.value:
        if not suggestion.lower().startswith(_LOWERCASE_VERB):
            return None
        return "name", (lambda value: value.lower()), "lowercase name"

    if code == DiagnosticCode.DESCRIPTION_CONTAINS_TAGS.value:
        return "description", (lambda value: TAG_RE.sub("", value)), "strip tags from description"

    return None


def apply_fixes_to_content(
    content: str, diagnostics: List[Diagnostic]
) -> Tuple[str, List[FixAction]]:
    """Apply fixes in memory and return (new_content, applied FixActions).

    Only a diagnostic whose rewrite actually changes the content counts, so
    duplicates and already-fixed diagnostics contribute nothing.
    """
    view = _SkillLines(content)
    applied: List[FixAction] = []
    for diagnostic in diagnostics:
        fix = _fix_for(diagnostic)
        if fix is None:
            continue
        field, transform, description = fix
        if view.rewrite_field(field, transform):
            applied.append(
                FixAction(
                    code=str(getattr(diagnostic.code, "value", diagnostic.code)),
                    field=field,
                    description=description,
                )
            )
    return view.render(), applied


class FixSkillUseCase:
    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def execute(self, diagnostics: List[Diagnostic]) -> FixReport:
        path = require_skill_md(self.directory)
        report = FixReport(path=path)

        with log_operation("fix_skill", details={"path": str(path)}):
            data = read_skill_bytes(path)
            try:
                content = data.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise SkillcheckError(
                    code=ErrorCode.INVALID_ENCODING,
                    message=f"'{path}' is not valid UTF-8",
                    details={"path": str(path)},
                ) from exc

            new_content, applied = apply_fixes_to_content(content, diagnostics)
            report.applied.extend(applied)

            if applied and new_content != content:
                ensure_safe_write_path(path)
                try:
                    with open(path, "wb") as handle:
                        handle.write(new_content.encode("utf-8"))
                except OSError as exc:
                    raise SkillcheckError(
                        code=ErrorCode.WRITE_ERROR,
                        message=f"cannot write '{path}': {exc}",
                        details={"path": str(path)},
                    ) from exc

        return report


def apply_fixes(directory: str | Path, diagnostics: List[Diagnostic]) -> int:
    """Fix a skill in place and return the number of fixes that changed it."""
    return FixSkillUseCase(directory).execute(diagnostics).fix_count
