"""Quality hints for skill definitions.

Lint findings are Info-severity only and never fail validation.
"""

from __future__ import annotations

import re
from typing import List

from skillcheck.core.domain.entities import Diagnostic, Severity, SkillProperties
from skillcheck.core.services.diagnostic_codes import DiagnosticCode

GENERIC_SEGMENTS = ("helper", "utils", "tools", "stuff", "thing", "misc", "general")

TRIGGER_PHRASES = ("use when", "use for", "use this", "invoke when", "activate when")

PERSON_RE = re.compile(r"\b(I|me|my|you|your)\b", re.IGNORECASE)

MIN_DESCRIPTION_CHARS = 20
MIN_DESCRIPTION_WORDS = 4


def _info(code: DiagnosticCode, message: str, field: str, suggestion: str) -> Diagnostic:
    return Diagnostic(
        severity=Severity.INFO,
        code=code.value,
        message=message,
        field=field,
        suggestion=suggestion,
    )


def lint(properties: SkillProperties, body: str = "") -> List[Diagnostic]:
    """Run every lint rule against the typed properties.

    The body is accepted for future body-level rules; current rules only
    look at name and description.
    """
    description = properties.description
    first_segment = properties.name.split("-", 1)[0]
    diags: List[Diagnostic] = []

    if PERSON_RE.search(description):
        diags.append(
            _info(
                DiagnosticCode.LINT_PERSON,
                "description uses first/second person",
                "description",
                "Rewrite in third person, e.g. 'Processes PDFs' not 'I process PDFs'",
            )
        )

    lowered = description.lower()
    if not any(phrase in lowered for phrase in TRIGGER_PHRASES):
        diags.append(
            _info(
                DiagnosticCode.LINT_NO_TRIGGER,
                "description lacks trigger phrase",
                "description",
                "Add a trigger phrase, e.g. 'Use when working with PDF files.'",
            )
        )

    if not first_segment.endswith("ing"):
        diags.append(
            _info(
                DiagnosticCode.LINT_NOT_GERUND,
                "name does not use gerund form",
                "name",
                "Consider gerund form, e.g. 'processing-pdfs' instead of 'pdf-processor'",
            )
        )

    if first_segment in GENERIC_SEGMENTS:
        diags.append(
            _info(
                DiagnosticCode.LINT_GENERIC_NAME,
                f"name is overly generic: '{first_segment}'",
                "name",
                "Use a specific, descriptive name",
            )
        )

    if len(description) < MIN_DESCRIPTION_CHARS or len(description.split()) < MIN_DESCRIPTION_WORDS:
        diags.append(
            _info(
                DiagnosticCode.LINT_VAGUE_DESCRIPTION,
                "description is overly vague",
                "description",
                "Add detail about what the skill does and when to use it",
            )
        )

    return diags
