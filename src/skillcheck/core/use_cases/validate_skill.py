from pathlib import Path
from typing import Callable, List

from skillcheck.core.domain.entities import Diagnostic, Severity, SkillReport, ValidationTarget
from skillcheck.core.services.diagnostic_codes import FIXABLE_CODES, DiagnosticCode
from skillcheck.core.services.error_codes import FrontmatterParseError, SkillcheckError
from skillcheck.core.services.frontmatter_parser import parse_frontmatter
from skillcheck.core.services.linter import lint
from skillcheck.core.services.observability import log_debug, log_operation
from skillcheck.core.services.skill_properties import (
    extract_properties,
    read_skill_text,
    require_skill_md,
)
from skillcheck.core.services.structure import validate_structure
from skillcheck.core.services.validators import validate_metadata
from skillcheck.core.use_cases.fix_skill import FixSkillUseCase

MAX_BODY_LINES = 500


def check_body_length(body: str) -> List[Diagnostic]:
    line_count = len(body.splitlines())
    if line_count <= MAX_BODY_LINES:
        return []
    return [
        Diagnostic(
            severity=Severity.WARNING,
            code=DiagnosticCode.BODY_TOO_LONG.value,
            message=f"body exceeds {MAX_BODY_LINES} lines ({line_count})",
            field="body",
            suggestion="Move detailed material into referenced files",
        )
    ]


class ValidateSkillUseCase:
    """Validate one skill directory end to end.

    Infrastructure and parse errors propagate as SkillcheckError; rule
    violations are collected into the returned SkillReport.
    """

    def __init__(
        self,
        target: ValidationTarget = ValidationTarget.STANDARD,
        structure: bool = False,
        lint: bool = False,
        apply_fixes: bool = False,
    ):
        self.target = ValidationTarget(target)
        self.structure = structure
        self.lint = lint
        self.apply_fixes = apply_fixes

    def _content_diagnostics(self, directory: Path):
        path = require_skill_md(directory)
        header, body = parse_frontmatter(read_skill_text(path))
        diagnostics = validate_metadata(header, directory, self.target)
        diagnostics.extend(check_body_length(body))
        return header, body, diagnostics

    def _lint(self, header, body: str) -> List[Diagnostic]:
        # Missing or mistyped required fields are already reported as E014-E018.
        try:
            properties = extract_properties(header)
        except FrontmatterParseError as exc:
            log_debug("validate_skill.lint_skipped", {"error_code": exc.code.value})
            return []
        return lint(properties, body)

    def execute(self, directory: str | Path) -> SkillReport:
        directory = Path(directory)
        report = SkillReport(path=directory)

        with log_operation("validate_skill", details={"path": str(directory)}):
            header, body, diagnostics = self._content_diagnostics(directory)

            if self.apply_fixes and any(d.code in FIXABLE_CODES for d in diagnostics):
                fix_report = FixSkillUseCase(directory).execute(diagnostics)
                report.fixes_applied = fix_report.fix_count
                if fix_report.fix_count:
                    header, body, diagnostics = self._content_diagnostics(directory)

            if self.structure:
                diagnostics.extend(validate_structure(directory))

            if self.lint:
                diagnostics.extend(self._lint(header, body))

        report.diagnostics = diagnostics
        return report


def validate_skill(
    directory: str | Path,
    target: ValidationTarget = ValidationTarget.STANDARD,
) -> List[Diagnostic]:
    """Content diagnostics only; no structure checks, lint or fixes."""
    return ValidateSkillUseCase(target=target).execute(directory).diagnostics


def infrastructure_diagnostic(error: SkillcheckError) -> Diagnostic:
    """Represent an aborted skill as a single E000 diagnostic in batch runs."""
    return Diagnostic(
        severity=Severity.ERROR,
        code=DiagnosticCode.INFRASTRUCTURE.value,
        message=f"cannot validate skill: [{error.code.value}] {error.message}",
    )


def validate_many(
    directories: List[Path],
    use_case_for: Callable[[Path], ValidateSkillUseCase],
) -> List[SkillReport]:
    """Validate several skills; one broken skill never hides the others.

    ``use_case_for`` builds the use case per directory so each skill can
    carry its own configuration.
    """
    reports: List[SkillReport] = []
    for directory in directories:
        try:
            reports.append(use_case_for(Path(directory)).execute(directory))
        except SkillcheckError as exc:
            reports.append(SkillReport(path=Path(directory), diagnostics=[infrastructure_diagnostic(exc)]))
    return reports
