import os

import pytest

from skillcheck.core.domain.entities import Severity
from skillcheck.core.services.structure import (
    check_nesting_depth,
    check_references,
    check_script_permissions,
    check_symlinks,
    validate_structure,
)

posix_only = pytest.mark.skipif(os.name != "posix", reason="requires POSIX symlinks and modes")


def codes(diags):
    return [d.code for d in diags]


def skill_with_body(make_skill, body):
    return make_skill("my-skill", f"---\nname: my-skill\ndescription: desc\n---\n\n{body}\n")


class TestReferences:
    def test_missing_reference(self, make_skill):
        skill_dir = skill_with_body(make_skill, "See [guide](guide.md).")
        diags = validate_structure(skill_dir)
        assert codes(diags) == ["S001"]
        assert diags[0].severity == Severity.WARNING
        assert diags[0].field == "body"

    def test_existing_reference(self, make_skill):
        skill_dir = skill_with_body(make_skill, "See [guide](guide.md).")
        (skill_dir / "guide.md").write_text("# Guide")
        assert validate_structure(skill_dir) == []

    def test_image_reference_checked(self, make_skill):
        skill_dir = skill_with_body(make_skill, "![diagram](arch.png)")
        assert codes(validate_structure(skill_dir)) == ["S001"]

    def test_urls_and_anchors_skipped(self, tmp_path):
        body = "[a](https://example.com) [b](http://x.y) [c](#usage) [d](mailto:a@b.c) [e](ftp://host/f)"
        assert check_references(tmp_path, body) == []

    def test_fragment_is_stripped(self, tmp_path):
        (tmp_path / "guide.md").write_text("x")
        assert check_references(tmp_path, "[s](guide.md#section)") == []

    @pytest.mark.parametrize("reference", ["../../etc/passwd", "sub/../../../leak.md", "/etc/passwd"])
    def test_traversal_flagged_without_missing_file(self, tmp_path, reference):
        diags = check_references(tmp_path, f"[x]({reference})")
        assert codes(diags) == ["S006"]
        assert diags[0].severity == Severity.ERROR

    @pytest.mark.parametrize("reference", ["./scripts/run.sh", "scripts/setup.sh"])
    def test_in_tree_paths_not_traversal(self, tmp_path, reference):
        (tmp_path / "scripts").mkdir()
        (tmp_path / "scripts" / "run.sh").write_text("")
        (tmp_path / "scripts" / "setup.sh").write_text("")
        assert "S006" not in codes(check_references(tmp_path, f"[x]({reference})"))

    def test_reference_depth_is_string_based(self, tmp_path):
        (tmp_path / "a" / "b").mkdir(parents=True)
        (tmp_path / "a" / "b" / "c.md").write_text("")
        (tmp_path / "a" / "one.md").write_text("")

        assert check_references(tmp_path, "[x](a/one.md)") == []
        assert codes(check_references(tmp_path, "[x](a/b/c.md)")) == ["S003"]
        # "./" counts as a separator.
        assert codes(check_references(tmp_path, "[x](./a/one.md)")) == ["S003"]

    def test_deep_missing_reference_reports_both(self, tmp_path):
        assert codes(check_references(tmp_path, "[x](a/b/c.md)")) == ["S003", "S001"]

    def test_unparseable_definition_skips_reference_checks(self, make_skill):
        skill_dir = make_skill("my-skill", "no header here [x](missing.md)\n")
        assert validate_structure(skill_dir) == []


@posix_only
class TestScriptPermissions:
    def test_non_executable_script_flagged(self, tmp_path):
        script = tmp_path / "setup.sh"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o644)
        diags = check_script_permissions(tmp_path)
        assert codes(diags) == ["S002"]
        assert diags[0].suggestion == "Run: chmod +x setup.sh"

    def test_executable_script_ok(self, tmp_path):
        script = tmp_path / "setup.sh"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o755)
        assert check_script_permissions(tmp_path) == []

    def test_extension_case_insensitive(self, tmp_path):
        script = tmp_path / "SETUP.SH"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o644)
        assert codes(check_script_permissions(tmp_path)) == ["S002"]

    def test_nested_scripts_not_checked(self, tmp_path):
        (tmp_path / "scripts").mkdir()
        script = tmp_path / "scripts" / "run.sh"
        script.write_text("#!/bin/sh\n")
        script.chmod(0o644)
        assert check_script_permissions(tmp_path) == []

    def test_symlinked_script_not_checked(self, tmp_path):
        real = tmp_path / "real.txt"
        real.write_text("x")
        real.chmod(0o644)
        (tmp_path / "link.sh").symlink_to(real)
        assert check_script_permissions(tmp_path) == []


class TestNesting:
    def test_two_levels_allowed(self, tmp_path):
        (tmp_path / "a" / "b").mkdir(parents=True)
        assert check_nesting_depth(tmp_path) == []

    def test_three_levels_flagged_once(self, tmp_path):
        (tmp_path / "a" / "b" / "c" / "d").mkdir(parents=True)
        diags = check_nesting_depth(tmp_path)
        assert codes(diags) == ["S004"]
        assert "'a/b/c'" in diags[0].message

    def test_each_violating_branch_reported(self, tmp_path):
        (tmp_path / "a" / "b" / "c").mkdir(parents=True)
        (tmp_path / "x" / "y" / "z").mkdir(parents=True)
        assert len(check_nesting_depth(tmp_path)) == 2

    def test_hidden_directories_skipped(self, tmp_path):
        (tmp_path / ".git" / "objects" / "ab" / "cd").mkdir(parents=True)
        assert check_nesting_depth(tmp_path) == []

    @posix_only
    def test_symlinked_directories_not_followed(self, tmp_path):
        (tmp_path / "a").mkdir()
        (tmp_path / "a" / "loop").symlink_to(tmp_path)
        assert check_nesting_depth(tmp_path) == []


@posix_only
class TestSymlinks:
    def test_symlink_reported_as_info(self, tmp_path):
        (tmp_path / "real.txt").write_text("x")
        (tmp_path / "link.txt").symlink_to(tmp_path / "real.txt")
        diags = check_symlinks(tmp_path)
        assert codes(diags) == ["S005"]
        assert diags[0].severity == Severity.INFO
        assert not any(d.is_error() for d in diags)

    def test_nested_and_directory_symlinks(self, tmp_path):
        (tmp_path / "sub").mkdir()
        (tmp_path / "sub" / "dangling").symlink_to(tmp_path / "nowhere")
        (tmp_path / "loop").symlink_to(tmp_path)
        diags = check_symlinks(tmp_path)
        assert sorted(d.message for d in diags) == [
            "symlink found: 'loop'",
            "symlink found: 'sub/dangling'",
        ]

    def test_unreadable_branch_does_not_block_other_checks(self, make_skill):
        skill_dir = skill_with_body(make_skill, "See [guide](guide.md).")
        locked = skill_dir / "locked"
        locked.mkdir()
        (skill_dir / "link.txt").symlink_to(skill_dir / "SKILL.md")
        locked.chmod(0o000)
        try:
            diags = validate_structure(skill_dir)
        finally:
            locked.chmod(0o755)
        assert "S001" in codes(diags)
        assert "S005" in codes(diags)


@posix_only
def test_real_file_and_symlink_directory(make_skill):
    skill_dir = make_skill("my-skill", "---\nname: my-skill\ndescription: desc\n---\n")
    (skill_dir / "real.txt").write_text("x")
    (skill_dir / "link.txt").symlink_to(skill_dir / "real.txt")
    diags = validate_structure(skill_dir)
    assert [d for d in diags if d.is_info()] == [d for d in diags if d.code == "S005"]
    assert codes(diags) == ["S005"]
    assert not any(d.is_error() for d in diags)
