from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from skillcheck.core.domain.entities import ValidationTarget
from skillcheck.core.services.observability import log_debug

CONFIG_FILENAME = "skillcheck.config.yaml"
TARGET_ENV_VAR = "SKILLCHECK_TARGET"


@dataclass(frozen=True)
class SkillcheckConfig:
    target: ValidationTarget = ValidationTarget.STANDARD
    structure: bool = False
    lint: bool = False
    config_path: Optional[Path] = None

    def with_overrides(
        self,
        *,
        target: Optional[str] = None,
        structure: Optional[bool] = None,
        lint: Optional[bool] = None,
    ) -> "SkillcheckConfig":
        """Apply CLI flag values; None leaves the configured value in place."""
        return SkillcheckConfig(
            target=ValidationTarget(target) if target is not None else self.target,
            structure=self.structure if structure is None else structure,
            lint=self.lint if lint is None else lint,
            config_path=self.config_path,
        )


def find_config_file(start_dir: str | Path) -> Optional[Path]:
    start = Path(start_dir).resolve()
    for parent in (start, *start.parents):
        candidate = parent / CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _parse_target(raw: Any) -> Optional[ValidationTarget]:
    if not isinstance(raw, str):
        return None
    try:
        return ValidationTarget(raw.strip().lower())
    except ValueError:
        return None


def _parse_bool(raw: Any) -> Optional[bool]:
    if isinstance(raw, bool):
        return raw
    return None


def load_skill_config(
    start_dir: str | Path,
    environ: Optional[Mapping[str, str]] = None,
) -> SkillcheckConfig:
    """Load settings for a skill directory.

    Precedence (lowest first): built-in defaults, the nearest
    ``skillcheck.config.yaml`` at or above ``start_dir``, then the
    SKILLCHECK_TARGET environment variable. Invalid values are ignored.
    """
    environ = os.environ if environ is None else environ
    config_path = find_config_file(start_dir)

    data: Dict[str, Any] = {}
    load_error: Optional[str] = None
    if config_path is not None:
        try:
            loaded = yaml.safe_load(config_path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, yaml.YAMLError) as exc:
            load_error = str(exc)
            loaded = None
        if isinstance(loaded, Mapping):
            data = dict(loaded)
    log_debug(
        operation="debug.config_loaded",
        details={
            "config_path": str(config_path) if config_path else None,
            "loaded": config_path is not None and load_error is None,
            "error": load_error,
        },
    )

    target = _parse_target(data.get("target"))
    if "target" in data and target is None:
        log_debug("debug.config_invalid_value", {"key": "target", "value": repr(data.get("target"))})
    env_target = _parse_target(environ.get(TARGET_ENV_VAR))
    if env_target is not None:
        target = env_target

    structure = _parse_bool(data.get("structure"))
    lint = _parse_bool(data.get("lint"))

    return SkillcheckConfig(
        target=target or ValidationTarget.STANDARD,
        structure=bool(structure),
        lint=bool(lint),
        config_path=config_path,
    )
