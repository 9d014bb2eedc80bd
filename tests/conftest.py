"""Shared pytest fixtures."""

import pytest

import skillcheck.core.services.observability as observability


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep every test independent of the caller's SKILLCHECK_* settings."""
    for name in (
        "SKILLCHECK_LOG_FORMAT",
        "SKILLCHECK_DEBUG",
        "SKILLCHECK_RUN_ID",
        "SKILLCHECK_LOG_SILENT",
        "SKILLCHECK_TARGET",
    ):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setattr(observability, "_current_run_id", None, raising=False)
    yield


@pytest.fixture
def make_skill(tmp_path):
    """Create ``tmp_path/<name>/SKILL.md`` with the given content and return the directory."""

    def _make(name: str = "my-skill", content: str = None, filename: str = "SKILL.md"):
        if content is None:
            content = f"---\nname: {name}\ndescription: Processes files. Use when handling files.\n---\n\n# Body\n"
        skill_dir = tmp_path / name
        skill_dir.mkdir(parents=True, exist_ok=True)
        (skill_dir / filename).write_bytes(content.encode("utf-8"))
        return skill_dir

    return _make
