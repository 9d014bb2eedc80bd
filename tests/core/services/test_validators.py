import pytest

from skillcheck.core.domain.entities import Severity, SkillProperties, ValidationTarget
from skillcheck.core.services.validators import (
    CLAUDE_CODE_KEYS,
    KNOWN_KEYS,
    known_keys_for,
    validate_metadata,
    validate_properties,
)


def codes(diags):
    return [d.code for d in diags]


def header(**fields):
    data = {"name": "my-skill", "description": "Processes files."}
    data.update({k.replace("_", "-"): v for k, v in fields.items()})
    return data


class TestNameRules:
    def test_valid_name_has_no_diagnostics(self):
        assert validate_metadata(header()) == []

    def test_missing_name(self):
        assert codes(validate_metadata({"description": "x"})) == ["E017"]

    def test_null_name_is_empty(self):
        assert codes(validate_metadata({"name": None, "description": "x"})) == ["E001"]

    def test_non_string_name(self):
        assert codes(validate_metadata(header(name=42))) == ["E014"]

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name(self, name):
        assert codes(validate_metadata(header(name=name))) == ["E001"]

    def test_too_long_name_suggests_hyphen_truncation(self):
        name = "-".join(["segment"] * 10)  # 79 chars
        diags = validate_metadata(header(name=name))
        assert codes(diags) == ["E002"]
        suggestion = diags[0].suggestion
        truncated = suggestion.split("'")[1]
        assert len(truncated) <= 64
        assert not truncated.endswith("-")
        assert name.startswith(truncated)

    def test_exactly_64_characters_allowed(self):
        assert validate_metadata(header(name="a" * 64)) == []

    def test_length_counts_codepoints(self):
        assert validate_metadata(header(name="é" * 64)) == []

    def test_uppercase_suggests_lowercase(self):
        diags = validate_metadata(header(name="MySkill"))
        assert codes(diags) == ["E003", "E003"]
        assert all(d.suggestion == "Use lowercase: 'myskill'" for d in diags)

    def test_invalid_character_reported_once_per_character(self):
        diags = validate_metadata(header(name="my_skill_name"))
        assert codes(diags) == ["E003"]
        assert "'_'" in diags[0].message

    def test_non_latin_lowercase_allowed(self):
        assert validate_metadata(header(name="données-outil")) == []
        assert validate_metadata(header(name="инструмент")) == []
        assert validate_metadata(header(name="工具")) == []

    @pytest.mark.parametrize(
        "name",
        [
            "हिंदी",  # हिंदी
            "हिन्दी",  # हिन्दी, with virama
            "தமிழ்",  # தமிழ்
            "বাংলা",  # বাংলা
            "ไทย",  # ไทย
        ],
    )
    def test_combining_vowel_signs_allowed(self, name):
        assert validate_metadata(header(name=name)) == []

    def test_combining_mark_without_letter_rejected(self):
        diags = validate_metadata(header(name="ab-ि"))
        assert codes(diags) == ["E003"]
        assert "'ि'" in diags[0].message
        assert codes(validate_metadata(header(name="िab"))) == ["E003"]

    def test_non_latin_uppercase_rejected(self):
        assert "E003" in codes(validate_metadata(header(name="Инструмент")))

    def test_nfkc_normalization_applied(self):
        # Fullwidth latin letters normalize to ASCII lowercase.
        assert validate_metadata(header(name="ｍｙ-ｓｋｉｌｌ")) == []

    def test_tags_in_name(self):
        assert "E008" in codes(validate_metadata(header(name="my-<b>skill")))

    def test_leading_and_trailing_hyphens(self):
        assert codes(validate_metadata(header(name="-skill"))) == ["E004"]
        assert codes(validate_metadata(header(name="skill-"))) == ["E005"]

    def test_consecutive_hyphens_suggest_collapse(self):
        diags = validate_metadata(header(name="my--skill"))
        assert codes(diags) == ["E006"]
        assert diags[0].suggestion == "Collapse hyphens: 'my-skill'"

    def test_reserved_word_is_segment_match_only(self):
        assert validate_metadata(header(name="claudette")) == []
        assert codes(validate_metadata(header(name="my-claude-tool"))) == ["E007"]
        assert codes(validate_metadata(header(name="claude-helper"))) == ["E007"]
        assert codes(validate_metadata(header(name="anthropic"))) == ["E007"]

    def test_directory_match(self, tmp_path):
        skill_dir = tmp_path / "my-skill"
        skill_dir.mkdir()
        assert validate_metadata(header(), directory=skill_dir) == []

        other = tmp_path / "other-skill"
        other.mkdir()
        diags = validate_metadata(header(), directory=other)
        assert codes(diags) == ["E009"]
        assert "other-skill" in diags[0].message

    @pytest.mark.parametrize("name", ["", "   ", None])
    def test_empty_name_still_checked_against_directory(self, tmp_path, name):
        skill_dir = tmp_path / "my-skill"
        skill_dir.mkdir()
        diags = validate_metadata({"name": name, "description": "x"}, directory=skill_dir)
        assert codes(diags) == ["E001", "E009"]

    def test_all_name_rules_collected_in_one_pass(self):
        diags = validate_metadata(header(name="-Bad--claude-"))
        assert {"E003", "E004", "E005", "E006", "E007"} <= set(codes(diags))


class TestDescriptionRules:
    def test_missing(self):
        assert codes(validate_metadata({"name": "my-skill"})) == ["E018"]

    def test_non_string(self):
        assert codes(validate_metadata(header(description=["a"]))) == ["E015"]

    def test_empty(self):
        assert codes(validate_metadata(header(description="  "))) == ["E010"]

    def test_too_long(self):
        assert validate_metadata(header(description="x" * 1024)) == []
        assert codes(validate_metadata(header(description="x" * 1025))) == ["E011"]

    def test_tags(self):
        diags = validate_metadata(header(description="Runs <script>alert(1)</script> safely"))
        assert codes(diags) == ["E012"]
        assert diags[0].suggestion == "Remove XML/HTML tags"

    def test_comparison_operators_are_not_tags(self):
        assert validate_metadata(header(description="Handles a < b and c > d")) == []


class TestCompatibility:
    def test_length_limit(self):
        assert validate_metadata(header(compatibility="x" * 500)) == []
        assert codes(validate_metadata(header(compatibility="x" * 501))) == ["E013"]

    def test_non_string(self):
        assert codes(validate_metadata(header(compatibility=3))) == ["E016"]


class TestUnknownFields:
    def test_known_keys_accepted(self):
        data = header(license="MIT", compatibility="any", allowed_tools="Read", metadata={"a": 1})
        assert validate_metadata(data) == []

    def test_unknown_field_warns_with_field_name(self):
        diags = validate_metadata(header(model="fast", zeta="z"))
        assert codes(diags) == ["W001", "W001"]
        assert [d.field for d in diags] == ["model", "zeta"]
        assert all(d.severity == Severity.WARNING for d in diags)

    def test_claude_code_target_extends_known_keys(self):
        data = header(model="fast", argument_hint="<file>", zeta="z")
        diags = validate_metadata(data, target=ValidationTarget.CLAUDE_CODE)
        assert [d.field for d in diags] == ["zeta"]

    def test_permissive_disables_unknown_field_warning(self):
        data = header(anything="goes")
        assert validate_metadata(data, target=ValidationTarget.PERMISSIVE) == []

    def test_target_does_not_change_other_rules(self):
        for target in ValidationTarget:
            assert codes(validate_metadata(header(name="Bad"), target=target)) == ["E003"]

    def test_known_keys_for(self):
        assert known_keys_for(ValidationTarget.STANDARD) == frozenset(KNOWN_KEYS)
        assert known_keys_for(ValidationTarget.CLAUDE_CODE) == frozenset(KNOWN_KEYS + CLAUDE_CODE_KEYS)
        assert known_keys_for(ValidationTarget.PERMISSIVE) is None
        assert known_keys_for("claude-code") == known_keys_for(ValidationTarget.CLAUDE_CODE)


def test_scenario_invalid_name_and_empty_description():
    diags = validate_metadata({"name": "My_Skill", "description": ""})
    errors = [d for d in diags if d.is_error()]
    assert "E003" in codes(errors)
    assert "E010" in codes(errors)
    assert not any(d.is_warning() for d in diags)


def test_validate_properties_flattens_metadata():
    props = SkillProperties(name="my-skill", description="x", metadata={"author": "me"})
    diags = validate_properties(props)
    assert codes(diags) == ["W001"]
    assert diags[0].field == "author"
