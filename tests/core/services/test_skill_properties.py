import pytest

from skillcheck.core.domain.entities import SkillProperties
from skillcheck.core.services.error_codes import (
    ErrorCode,
    FileTooLargeError,
    FrontmatterParseError,
    SkillcheckError,
)
from skillcheck.core.services.frontmatter_parser import parse_frontmatter
from skillcheck.core.services.skill_properties import (
    MAX_FILE_SIZE,
    extract_properties,
    read_body,
    read_properties,
    read_skill_text,
    render_skill_md,
)


class TestExtractProperties:
    def test_required_fields(self):
        props = extract_properties({"name": "my-skill", "description": "Does things"})
        assert props == SkillProperties(name="my-skill", description="Does things")
        assert props.metadata is None

    def test_optional_fields(self):
        props = extract_properties(
            {
                "name": "a",
                "description": "b",
                "license": "MIT",
                "compatibility": "Python 3.10+",
                "allowed-tools": "Bash, Read",
            }
        )
        assert props.license == "MIT"
        assert props.compatibility == "Python 3.10+"
        assert props.allowed_tools == "Bash, Read"
        assert props.metadata is None

    def test_residual_keys_collected_in_order(self):
        props = extract_properties(
            {"zeta": 1, "name": "a", "description": "b", "metadata": {"author": "me"}, "alpha": True}
        )
        assert props.metadata == {"zeta": 1, "metadata": {"author": "me"}, "alpha": True}
        assert list(props.metadata) == ["zeta", "metadata", "alpha"]

    @pytest.mark.parametrize("missing", ["name", "description"])
    def test_missing_required_field(self, missing):
        header = {"name": "a", "description": "b"}
        del header[missing]
        with pytest.raises(FrontmatterParseError) as exc_info:
            extract_properties(header)
        assert exc_info.value.code == ErrorCode.MISSING_FIELD
        assert missing in exc_info.value.message

    def test_non_string_required_field(self):
        with pytest.raises(FrontmatterParseError) as exc_info:
            extract_properties({"name": 42, "description": "b"})
        assert exc_info.value.code == ErrorCode.INVALID_FIELD

    def test_non_string_optional_field(self):
        with pytest.raises(FrontmatterParseError) as exc_info:
            extract_properties({"name": "a", "description": "b", "license": ["MIT"]})
        assert exc_info.value.code == ErrorCode.INVALID_FIELD

    def test_null_optional_field_is_none(self):
        props = extract_properties({"name": "a", "description": "b", "license": None})
        assert props.license is None
        assert props.metadata is None


class TestReading:
    def test_read_properties_and_body(self, make_skill):
        skill_dir = make_skill(
            "my-skill",
            "---\nname: my-skill\ndescription: Does things\nauthor: me\n---\n\n# Body\n",
        )
        props = read_properties(skill_dir)
        assert props.name == "my-skill"
        assert props.metadata == {"author": "me"}
        assert read_body(skill_dir) == "\n# Body\n"

    def test_missing_definition(self, tmp_path):
        with pytest.raises(SkillcheckError) as exc_info:
            read_properties(tmp_path)
        assert exc_info.value.code == ErrorCode.SKILL_NOT_FOUND

    def test_oversized_file_rejected_before_parsing(self, tmp_path):
        path = tmp_path / "SKILL.md"
        # Not a valid header either: the size check must win.
        path.write_bytes(b"x" * (MAX_FILE_SIZE + 1))
        with pytest.raises(FileTooLargeError) as exc_info:
            read_properties(tmp_path)
        assert exc_info.value.code == ErrorCode.FILE_TOO_LARGE

    def test_file_at_limit_accepted(self, tmp_path):
        header = b"---\nname: a\ndescription: b\n---\n"
        path = tmp_path / "SKILL.md"
        path.write_bytes(header + b"x" * (MAX_FILE_SIZE - len(header)))
        assert len(read_skill_text(path)) == MAX_FILE_SIZE

    def test_invalid_utf8(self, tmp_path):
        path = tmp_path / "SKILL.md"
        path.write_bytes(b"---\nname: \xff\n---\n")
        with pytest.raises(SkillcheckError) as exc_info:
            read_skill_text(path)
        assert exc_info.value.code == ErrorCode.INVALID_ENCODING


class TestRoundTrip:
    @pytest.mark.parametrize(
        "props",
        [
            SkillProperties(name="my-skill", description="Does things"),
            SkillProperties(
                name="processing-pdfs",
                description="Extracts text: tables, forms and more. Use when reading PDFs.",
                license="Apache-2.0",
                compatibility="Requires poppler",
                allowed_tools="Bash(pdftotext:*) Read",
                metadata={"author": "someone", "version": "1.0", "tags": ["pdf", "text"]},
            ),
            SkillProperties(name="yes", description="null"),
        ],
    )
    def test_render_then_extract_is_identity(self, props):
        text = render_skill_md(props, "# Body\n")
        header, body = parse_frontmatter(text)
        assert extract_properties(header) == props
        assert "# Body" in body

    def test_render_keeps_typed_key_order(self):
        text = render_skill_md(SkillProperties(name="a", description="b", license="MIT", metadata={"x": 1}))
        header, _ = parse_frontmatter(text)
        assert list(header) == ["name", "description", "license", "x"]
