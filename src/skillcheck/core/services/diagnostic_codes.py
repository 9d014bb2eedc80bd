"""Stable diagnostic codes shared by every skillcheck checker.

Codes are category-prefixed and never reused:

    E  header content (name, description, compatibility, field types)
    W  non-fatal content warnings
    I  semantic lint hints
    S  directory structure
    C  cross-skill conflicts
    P  plugin manifest
    H  hook configuration
    A  agent files
    K  command files
    X  cross-component consistency

The C/P/H/A/K/X families belong to sibling validators that report through the
same diagnostic model; only the constants live here so the whole table stays
globally unique.
"""

from enum import Enum, unique


@unique
class DiagnosticCode(str, Enum):
    INFRASTRUCTURE = "E000"

    NAME_EMPTY = "E001"
    NAME_TOO_LONG = "E002"
    NAME_INVALID_CHARACTER = "E003"
    NAME_LEADING_HYPHEN = "E004"
    NAME_TRAILING_HYPHEN = "E005"
    NAME_CONSECUTIVE_HYPHENS = "E006"
    NAME_RESERVED_WORD = "E007"
    NAME_CONTAINS_TAGS = "E008"
    NAME_DIRECTORY_MISMATCH = "E009"

    DESCRIPTION_EMPTY = "E010"
    DESCRIPTION_TOO_LONG = "E011"
    DESCRIPTION_CONTAINS_TAGS = "E012"

    COMPATIBILITY_TOO_LONG = "E013"

    NAME_NOT_STRING = "E014"
    DESCRIPTION_NOT_STRING = "E015"
    COMPATIBILITY_NOT_STRING = "E016"

    NAME_MISSING = "E017"
    DESCRIPTION_MISSING = "E018"

    UNKNOWN_FIELD = "W001"
    BODY_TOO_LONG = "W002"

    LINT_PERSON = "I001"
    LINT_NO_TRIGGER = "I002"
    LINT_NOT_GERUND = "I003"
    LINT_GENERIC_NAME = "I004"
    LINT_VAGUE_DESCRIPTION = "I005"

    REFERENCE_MISSING = "S001"
    SCRIPT_NOT_EXECUTABLE = "S002"
    REFERENCE_TOO_DEEP = "S003"
    NESTING_TOO_DEEP = "S004"
    SYMLINK_PRESENT = "S005"
    REFERENCE_PATH_TRAVERSAL = "S006"

    CONFLICT_NAME_COLLISION = "C001"
    CONFLICT_DESCRIPTION_OVERLAP = "C002"
    CONFLICT_TOKEN_BUDGET = "C003"

    MANIFEST_SYNTAX = "P001"
    MANIFEST_NAME_MISSING = "P002"
    MANIFEST_NAME_FORMAT = "P003"
    MANIFEST_VERSION_FORMAT = "P004"
    MANIFEST_DESCRIPTION_MISSING = "P005"
    MANIFEST_ABSOLUTE_PATH = "P006"
    MANIFEST_PATH_MISSING = "P007"
    MANIFEST_CREDENTIAL = "P008"
    MANIFEST_INSECURE_URL = "P009"
    MANIFEST_RECOMMENDED_FIELD = "P010"

    HOOKS_SYNTAX = "H001"
    HOOKS_STRUCTURE = "H002"
    HOOKS_UNKNOWN_EVENT = "H003"
    HOOKS_MISSING_ARRAY = "H004"
    HOOKS_MISSING_TYPE = "H005"
    HOOKS_UNKNOWN_TYPE = "H006"
    HOOKS_MISSING_COMMAND = "H007"
    HOOKS_MISSING_PROMPT = "H008"
    HOOKS_TIMEOUT_RANGE = "H009"
    HOOKS_ABSOLUTE_PATH = "H010"
    HOOKS_PROMPT_EVENT = "H011"

    AGENT_FRONTMATTER_MISSING = "A001"
    AGENT_FIELD_MISSING = "A002"
    AGENT_NAME_FORMAT = "A003"
    AGENT_NAME_GENERIC = "A004"
    AGENT_NAME_LENGTH = "A005"
    AGENT_DESCRIPTION_LENGTH = "A006"
    AGENT_MODEL = "A007"
    AGENT_COLOR = "A008"
    AGENT_PROMPT_TOO_SHORT = "A009"
    AGENT_PROMPT_TOO_LONG = "A010"

    COMMAND_FRONTMATTER_SYNTAX = "K001"
    COMMAND_DESCRIPTION_LENGTH = "K002"
    COMMAND_MODEL = "K003"
    COMMAND_DESCRIPTION_VERB = "K004"
    COMMAND_BODY_EMPTY = "K005"
    COMMAND_ALLOWED_TOOLS = "K006"
    COMMAND_DESCRIPTION_MISSING = "K007"

    COMPONENT_DIRECTORY_EMPTY = "X001"
    HOOK_SCRIPT_MISSING = "X002"
    ORPHANED_FILE = "X003"
    NAMING_INCONSISTENCY = "X004"
    TOKEN_BUDGET_EXCEEDED = "X005"
    DUPLICATE_COMPONENT = "X006"


# Codes the auto-fixer knows how to repair, as plain strings so that
# membership tests work against Diagnostic.code.
FIXABLE_CODES = frozenset(
    code.value
    for code in (
        DiagnosticCode.NAME_TOO_LONG,
        DiagnosticCode.NAME_INVALID_CHARACTER,
        DiagnosticCode.NAME_CONSECUTIVE_HYPHENS,
        DiagnosticCode.DESCRIPTION_CONTAINS_TAGS,
    )
)
