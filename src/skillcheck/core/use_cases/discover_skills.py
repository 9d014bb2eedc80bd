import os
from pathlib import Path
from typing import List, Tuple

from skillcheck.core.domain.entities import DiscoveryWarning
from skillcheck.core.services.frontmatter_parser import find_skill_md
from skillcheck.core.services.observability import log_debug
from skillcheck.core.services.safe_fs import is_regular_dir

DEFAULT_MAX_DEPTH = 10


def discover_skills(
    root: str | Path, max_depth: int = DEFAULT_MAX_DEPTH
) -> Tuple[List[Path], List[DiscoveryWarning]]:
    """Find every directory under ``root`` (inclusive) that holds a definition.

    Symlinked directories and dot directories are never entered. Unreadable
    directories are reported as warnings and skipped.
    """
    root = Path(root)
    found: List[Path] = []
    warnings: List[DiscoveryWarning] = []

    if not is_regular_dir(root):
        warnings.append(DiscoveryWarning(path=root, message="not a directory"))
        return found, warnings

    _walk(root, 0, max_depth, found, warnings)
    return sorted(found), warnings


def _walk(
    current: Path,
    depth: int,
    max_depth: int,
    found: List[Path],
    warnings: List[DiscoveryWarning],
) -> None:
    if find_skill_md(current) is not None:
        found.append(current)

    if depth >= max_depth:
        log_debug("discover.depth_limit", {"path": str(current), "max_depth": max_depth})
        return

    try:
        entries = sorted(os.scandir(current), key=lambda e: e.name)
    except OSError as exc:
        warnings.append(DiscoveryWarning(path=current, message=f"cannot read directory: {exc.strerror or exc}"))
        return

    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError:
            continue
        if is_dir:
            _walk(Path(entry.path), depth + 1, max_depth, found, warnings)
