"""Strict SKILL.md header parsing.

A definition starts with a line equal to ``---`` (trailing whitespace allowed,
leading whitespace is not) and the next such line closes the header. The text
in between must be a YAML mapping with string keys; everything after the
closing line is the body, byte for byte.
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import yaml

from skillcheck.core.domain.entities import CommentBlock, HeaderBlock, KeyBlock
from skillcheck.core.services.error_codes import ErrorCode, FrontmatterParseError
from skillcheck.core.services.safe_fs import is_regular_file
from skillcheck.core.services.safe_yaml import safe_yaml_load

SKILL_FILENAMES = ("SKILL.md", "skill.md")
DELIMITER = "---"

_KEY_NAME_RE = re.compile(r"^([^:]*):")


def find_skill_md(directory: Path) -> Optional[Path]:
    """Locate the definition file, preferring SKILL.md over skill.md.

    Candidates are checked without following symlinks, so a symlinked
    SKILL.md is treated as absent.
    """
    directory = Path(directory)
    for filename in SKILL_FILENAMES:
        candidate = directory / filename
        if is_regular_file(candidate):
            return candidate
    return None


def _is_delimiter(line: str) -> bool:
    return line.rstrip() == DELIMITER


def has_frontmatter(text: str) -> bool:
    first_line = text.split("\n", 1)[0]
    return _is_delimiter(first_line)


def split_frontmatter(text: str) -> Tuple[str, str]:
    """Split text into (header_source, body) without interpreting the header.

    Raises:
        FrontmatterParseError: MISSING_FRONTMATTER when line 0 is not a
            delimiter, UNCLOSED_FRONTMATTER when no closing delimiter follows.
    """
    lines = text.split("\n")
    if not _is_delimiter(lines[0]):
        raise FrontmatterParseError(
            ErrorCode.MISSING_FRONTMATTER,
            "SKILL.md must start with a '---' frontmatter delimiter",
        )

    for index in range(1, len(lines)):
        if _is_delimiter(lines[index]):
            header = "\n".join(lines[1:index])
            body = "\n".join(lines[index + 1 :])
            return header, body

    raise FrontmatterParseError(
        ErrorCode.UNCLOSED_FRONTMATTER,
        "missing closing '---' frontmatter delimiter",
    )


def parse_header(header_source: str) -> Dict[str, Any]:
    """Parse header source into a string-keyed mapping (header order kept)."""
    try:
        data = safe_yaml_load(header_source)
    except yaml.YAMLError as exc:
        raise FrontmatterParseError(
            ErrorCode.INVALID_YAML,
            f"invalid YAML in frontmatter: {exc}",
        ) from exc

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise FrontmatterParseError(
            ErrorCode.NON_MAPPING_FRONTMATTER,
            f"frontmatter must be a YAML mapping, got {type(data).__name__}: {data!r}",
            details={"type": type(data).__name__},
        )

    for key in data:
        if not isinstance(key, str):
            raise FrontmatterParseError(
                ErrorCode.NON_STRING_KEY,
                f"frontmatter keys must be strings, got {type(key).__name__} key {key!r}",
                details={"key": repr(key)},
            )

    return data


def parse_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Return (header mapping, body) for text that must carry a header."""
    header_source, body = split_frontmatter(text)
    return parse_header(header_source), body


def parse_optional_frontmatter(text: str) -> Tuple[Dict[str, Any], str]:
    """Like parse_frontmatter, but a missing header means an empty one.

    An opening delimiter without a closing one is still an error.
    """
    if not has_frontmatter(text):
        return {}, text
    return parse_frontmatter(text)


def _key_name(line: str) -> str:
    match = _KEY_NAME_RE.match(line)
    if match:
        return match.group(1).strip()
    return line.strip()


def _is_blank(line: str) -> bool:
    return line == ""


def _is_indented(line: str) -> bool:
    return line[:1] in (" ", "\t")


def _is_column0_comment(line: str) -> bool:
    return line.startswith("#")


def _comment_continues_key(lines: List[str], index: int) -> bool:
    """A column-0 comment stays with the open key when nested content follows it."""
    for line in lines[index + 1 :]:
        if _is_blank(line) or _is_column0_comment(line):
            continue
        return _is_indented(line)
    return False


def parse_header_blocks(header_source: str) -> List[HeaderBlock]:
    """Group header lines into key blocks and standalone comment blocks.

    - A column-0 line starts a new key block (``key: value``).
    - Indented and blank lines continue the open key block, so multiline
      scalars and nested mappings stay attached to their key.
    - A column-0 ``#`` line is a standalone comment block, unless indented
      content for the open key follows it.
    - Lines with no open key to attach to become comment blocks.

    Joining every block's ``raw`` with newlines reproduces the source exactly.
    """
    blocks: List[HeaderBlock] = []
    if header_source == "":
        return blocks

    lines = header_source.split("\n")
    current_name: Optional[str] = None
    current_lines: List[str] = []
    current_start = 0

    def flush() -> None:
        nonlocal current_name, current_lines
        if current_name is not None:
            blocks.append(KeyBlock(name=current_name, raw="\n".join(current_lines), line=current_start))
        current_name = None
        current_lines = []

    for index, line in enumerate(lines):
        if _is_blank(line) or _is_indented(line):
            if current_name is not None:
                current_lines.append(line)
            else:
                blocks.append(CommentBlock(raw=line, line=index))
            continue

        if _is_column0_comment(line):
            if current_name is not None and _comment_continues_key(lines, index):
                current_lines.append(line)
            else:
                flush()
                blocks.append(CommentBlock(raw=line, line=index))
            continue

        flush()
        current_name = _key_name(line)
        current_lines = [line]
        current_start = index

    flush()
    return blocks


def render_header_blocks(blocks: List[HeaderBlock]) -> str:
    return "\n".join(block.raw for block in blocks)
