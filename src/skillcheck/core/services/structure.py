"""Directory-tree checks for a skill package.

Checks are independent: a failure inside one (an unreadable subdirectory,
an unparseable definition) never suppresses the others. Every status query
goes through lstat so no symlink is ever followed.
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import List

from skillcheck.core.domain.entities import Diagnostic, Severity
from skillcheck.core.services.diagnostic_codes import DiagnosticCode
from skillcheck.core.services.error_codes import SkillcheckError
from skillcheck.core.services.frontmatter_parser import find_skill_md, parse_frontmatter
from skillcheck.core.services.observability import log_debug
from skillcheck.core.services.safe_fs import (
    is_executable,
    path_exists,
    supports_executable_bit,
)
from skillcheck.core.services.skill_properties import read_skill_text

MAX_REFERENCE_DEPTH = 1
MAX_NESTING_DEPTH = 2
# Hard stop for recursive walks, independent of the nesting rule.
MAX_WALK_DEPTH = 10

LINK_RE = re.compile(r"!?\[(?:[^\]]*)\]\((?P<path>[^)]+)\)")
_SCHEME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def validate_structure(directory: Path) -> List[Diagnostic]:
    """Run every structure check against a skill directory.

    S001/S003/S006 come from references in the body, S002 from script modes,
    S004 from directory nesting and S005 from symlinks.
    """
    directory = Path(directory)
    diags: List[Diagnostic] = []
    diags.extend(check_references(directory, _read_body_best_effort(directory)))
    diags.extend(check_script_permissions(directory))
    diags.extend(check_nesting_depth(directory))
    diags.extend(check_symlinks(directory))
    return diags


def _read_body_best_effort(directory: Path) -> str:
    path = find_skill_md(directory)
    if path is None:
        return ""
    try:
        _header, body = parse_frontmatter(read_skill_text(path))
    except SkillcheckError as exc:
        log_debug("structure.read_body_skipped", {"path": str(path), "error_code": exc.code.value})
        return ""
    return body


def _is_external(reference: str) -> bool:
    return bool(_SCHEME_RE.match(reference)) or reference.startswith(("mailto:", "#"))


def _is_traversal(reference: str) -> bool:
    if reference.startswith("/") or os.path.isabs(reference):
        return True
    parts = re.split(r"[\\/]", reference)
    return ".." in parts


def check_references(directory: Path, body: str) -> List[Diagnostic]:
    diags: List[Diagnostic] = []

    for match in LINK_RE.finditer(body):
        raw = match.group("path").strip()
        if _is_external(raw):
            continue

        reference = raw.split("#", 1)[0]
        if not reference:
            continue

        if _is_traversal(reference):
            diags.append(
                Diagnostic(
                    severity=Severity.ERROR,
                    code=DiagnosticCode.REFERENCE_PATH_TRAVERSAL.value,
                    message=f"reference escapes the skill directory: '{reference}'",
                    field="body",
                    suggestion="Reference files inside the skill directory only",
                )
            )
            continue

        if reference.count("/") > MAX_REFERENCE_DEPTH:
            diags.append(
                Diagnostic(
                    severity=Severity.WARNING,
                    code=DiagnosticCode.REFERENCE_TOO_DEEP.value,
                    message=f"reference depth exceeds {MAX_REFERENCE_DEPTH} level(s): '{reference}'",
                    field="body",
                    suggestion="Keep referenced files at most one directory level deep",
                )
            )

        if not path_exists(directory / reference):
            diags.append(
                Diagnostic(
                    severity=Severity.WARNING,
                    code=DiagnosticCode.REFERENCE_MISSING.value,
                    message=f"referenced file does not exist: '{reference}'",
                    field="body",
                    suggestion=f"Create the file or fix the reference path: '{reference}'",
                )
            )

    return diags


def check_script_permissions(directory: Path) -> List[Diagnostic]:
    """Flag ``.sh`` files directly in the directory that lack an execute bit."""
    if not supports_executable_bit():
        return []

    diags: List[Diagnostic] = []
    try:
        entries = sorted(os.scandir(directory), key=lambda e: e.name)
    except OSError as exc:
        log_debug("structure.scan_failed", {"path": str(directory), "error": str(exc)})
        return diags

    for entry in entries:
        if not entry.name.lower().endswith(".sh"):
            continue
        try:
            if not entry.is_file(follow_symlinks=False):
                continue
        except OSError:
            continue
        if is_executable(Path(entry.path)) is False:
            diags.append(
                Diagnostic(
                    severity=Severity.WARNING,
                    code=DiagnosticCode.SCRIPT_NOT_EXECUTABLE.value,
                    message=f"script missing execute permission: '{entry.name}'",
                    field="structure",
                    suggestion=f"Run: chmod +x {entry.name}",
                )
            )
    return diags


def _subdirectories(current: Path) -> List[os.DirEntry]:
    """Non-hidden real subdirectories of ``current``, sorted by name."""
    try:
        entries = sorted(os.scandir(current), key=lambda e: e.name)
    except OSError as exc:
        log_debug("structure.scan_failed", {"path": str(current), "error": str(exc)})
        return []
    result = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            if entry.is_dir(follow_symlinks=False):
                result.append(entry)
        except OSError:
            continue
    return result


def check_nesting_depth(directory: Path) -> List[Diagnostic]:
    diags: List[Diagnostic] = []
    _walk_nesting(directory, directory, 0, diags)
    return diags


def _walk_nesting(root: Path, current: Path, depth: int, diags: List[Diagnostic]) -> None:
    if depth > MAX_NESTING_DEPTH:
        relative = current.relative_to(root).as_posix()
        diags.append(
            Diagnostic(
                severity=Severity.WARNING,
                code=DiagnosticCode.NESTING_TOO_DEEP.value,
                message=f"excessive nesting depth ({depth} levels): '{relative}'",
                field="structure",
                suggestion=f"Keep directory depth to at most {MAX_NESTING_DEPTH} levels",
            )
        )
        return

    for entry in _subdirectories(current):
        _walk_nesting(root, Path(entry.path), depth + 1, diags)


def check_symlinks(directory: Path) -> List[Diagnostic]:
    diags: List[Diagnostic] = []
    _walk_symlinks(directory, directory, 0, diags)
    return diags


def _walk_symlinks(root: Path, current: Path, depth: int, diags: List[Diagnostic]) -> None:
    if depth > MAX_WALK_DEPTH:
        return
    try:
        entries = sorted(os.scandir(current), key=lambda e: e.name)
    except OSError as exc:
        log_debug("structure.scan_failed", {"path": str(current), "error": str(exc)})
        return

    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            if entry.is_symlink():
                relative = Path(entry.path).relative_to(root).as_posix()
                diags.append(
                    Diagnostic(
                        severity=Severity.INFO,
                        code=DiagnosticCode.SYMLINK_PRESENT.value,
                        message=f"symlink found: '{relative}'",
                        field="structure",
                        suggestion="Replace the symlink with a regular file if it is not intentional",
                    )
                )
            elif entry.is_dir(follow_symlinks=False):
                _walk_symlinks(root, Path(entry.path), depth + 1, diags)
        except OSError:
            continue
