import difflib
from pathlib import Path
from typing import List, Tuple

from skillcheck.core.domain.entities import CommentBlock, FormatResult, HeaderBlock, KeyBlock
from skillcheck.core.services.error_codes import ErrorCode, SkillcheckError
from skillcheck.core.services.frontmatter_parser import parse_header_blocks, split_frontmatter
from skillcheck.core.services.observability import log_operation
from skillcheck.core.services.safe_fs import ensure_safe_write_path
from skillcheck.core.services.skill_properties import read_skill_text, require_skill_md

# Keys not listed here follow alphabetically.
KEY_ORDER = (
    "name",
    "description",
    "instructions",
    "compatibility",
    "context",
    "allowed-tools",
    "license",
    "metadata",
)

MAX_CONSECUTIVE_BLANK_LINES = 2


def _order_blocks(blocks: List[HeaderBlock]) -> List[HeaderBlock]:
    header_comments: List[CommentBlock] = []
    known: List[Tuple[int, KeyBlock]] = []
    interleaved: List[CommentBlock] = []
    unknown: List[KeyBlock] = []

    seen_key = False
    for block in blocks:
        if isinstance(block, CommentBlock):
            (interleaved if seen_key else header_comments).append(block)
            continue
        seen_key = True
        if block.name in KEY_ORDER:
            known.append((KEY_ORDER.index(block.name), block))
        else:
            unknown.append(block)

    # sorted() is stable, so duplicate keys keep their relative order.
    ordered: List[HeaderBlock] = list(header_comments)
    ordered.extend(block for _, block in sorted(known, key=lambda item: item[0]))
    ordered.extend(interleaved)
    ordered.extend(sorted(unknown, key=lambda block: block.name))
    return ordered


def format_header(header_source: str) -> str:
    """Reorder header blocks canonically and strip trailing whitespace."""
    lines: List[str] = []
    for block in _order_blocks(parse_header_blocks(header_source)):
        lines.extend(line.rstrip() for line in block.raw.split("\n"))
    return "\n".join(lines)


def format_body(body: str) -> str:
    if not body:
        return "\n"

    result: List[str] = []
    blank_run = 0
    for line in body.split("\n"):
        line = line.rstrip()
        if line:
            blank_run = 0
            result.append(line)
            continue
        blank_run += 1
        if blank_run <= MAX_CONSECUTIVE_BLANK_LINES:
            result.append("")

    while result and not result[-1]:
        result.pop()
    return "\n".join(result) + "\n"


def format_content(text: str) -> str:
    """Return the canonical form of a SKILL.md document.

    Raises:
        FrontmatterParseError: when the header delimiters are malformed.
    """
    header_source, body = split_frontmatter(text.replace("\r\n", "\n"))
    header = format_header(header_source)
    if header:
        return f"---\n{header}\n---\n{format_body(body)}"
    return f"---\n---\n{format_body(body)}"


def diff_skill(result: FormatResult, original: str, label: str = "SKILL.md") -> str:
    """Unified diff from ``original`` to the formatted content."""
    return "".join(
        difflib.unified_diff(
            original.splitlines(keepends=True),
            result.content.splitlines(keepends=True),
            fromfile=f"a/{label}",
            tofile=f"b/{label}",
        )
    )


class FormatSkillUseCase:
    def __init__(self, directory: str | Path):
        self.directory = Path(directory)

    def execute(self, write: bool = False) -> FormatResult:
        """Format the skill's definition; write it back only when asked and changed."""
        path = require_skill_md(self.directory)
        with log_operation("format_skill", details={"path": str(path), "write": write}):
            original = read_skill_text(path)
            content = format_content(original)
            result = FormatResult(changed=content != original, content=content, path=path)
            if write and result.changed:
                ensure_safe_write_path(path)
                try:
                    with open(path, "w", encoding="utf-8", newline="") as handle:
                        handle.write(content)
                except OSError as exc:
                    raise SkillcheckError(
                        code=ErrorCode.WRITE_ERROR,
                        message=f"cannot write '{path}': {exc}",
                        details={"path": str(path)},
                    ) from exc
        return result


def format_skill(directory: str | Path) -> FormatResult:
    """Format without touching the file; the caller decides whether to write."""
    return FormatSkillUseCase(directory).execute(write=False)
