"""Symlink-safe filesystem helpers.

Every status query here uses ``lstat`` semantics: a symlink is reported as a
symlink and never followed. Skill directories are frequently untrusted input,
so a link pointing outside the tree must not be picked up as a definition,
walked into, or written through.
"""

from __future__ import annotations

import os
import stat
from pathlib import Path
from typing import Optional

from skillcheck.core.services.error_codes import ErrorCode, SkillcheckError


def _lstat(path: Path) -> Optional[os.stat_result]:
    try:
        return os.lstat(path)
    except (OSError, ValueError):
        return None


def is_regular_file(path: Path) -> bool:
    """True for a regular file; False for symlinks (even to files) and missing paths."""
    st = _lstat(path)
    return st is not None and stat.S_ISREG(st.st_mode)


def is_regular_dir(path: Path) -> bool:
    """True for a real directory; False for symlinks to directories."""
    st = _lstat(path)
    return st is not None and stat.S_ISDIR(st.st_mode)


def is_symlink(path: Path) -> bool:
    st = _lstat(path)
    return st is not None and stat.S_ISLNK(st.st_mode)


def path_exists(path: Path) -> bool:
    """Existence check that treats a dangling symlink as present."""
    return _lstat(path) is not None


def supports_executable_bit() -> bool:
    """Whether the platform has a POSIX permission model with execute bits."""
    return os.name == "posix"


def is_executable(path: Path) -> Optional[bool]:
    """Return whether any execute bit is set, or None when not applicable.

    None means either the platform has no POSIX permission model or the path
    could not be inspected.
    """
    if not supports_executable_bit():
        return None
    st = _lstat(path)
    if st is None:
        return None
    return bool(st.st_mode & (stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH))


def ensure_safe_write_path(target_path: Path) -> None:
    """Refuse to write through a symlink or to something that is not a regular file.

    Raises:
        SkillcheckError: with code PATH_ESCAPE.
    """
    target_path = Path(target_path)
    if is_symlink(target_path):
        raise SkillcheckError(
            code=ErrorCode.PATH_ESCAPE,
            message=f"Refusing to write through symlink '{target_path}'",
            details={"target_path": str(target_path)},
        )
    if path_exists(target_path) and not is_regular_file(target_path):
        raise SkillcheckError(
            code=ErrorCode.PATH_ESCAPE,
            message=f"Target is no longer a regular file: '{target_path}'",
            details={"target_path": str(target_path)},
        )
