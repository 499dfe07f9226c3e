"""Configuration loading for buildversion (.buildversion.yml)."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

CONFIG_FILENAME = ".buildversion.yml"


class ConfigError(RuntimeError):
    """Raised when the configuration file cannot be parsed."""


@dataclass(frozen=True)
class FailurePolicy:
    """Which failure categories abort the run instead of only warning."""

    error_on_missing_arguments: bool = False
    error_on_repository_check_failure: bool = False
    error_on_uncommitted_changes: bool = False
    error_if_no_initialization_target: bool = False

    def enable(self, **flags: bool) -> "FailurePolicy":
        """Return a copy with the given flags switched on (never off)."""
        active = {name: True for name, value in flags.items() if value}
        return replace(self, **active) if active else self


@dataclass(frozen=True)
class TargetConfig:
    """Where the generated declaration and the shared variable live."""

    program: str = "BuildVer"
    declaration_file: str = "Variables.var"
    global_file: str = "Logical/Global.var"
    variable: str = "BuildVersion"
    type_name: str = "BuildVersionType"


@dataclass(frozen=True)
class BuildVersionConfig:
    """Represents the settings defined in .buildversion.yml."""

    root: Path
    policy: FailurePolicy = field(default_factory=FailurePolicy)
    target: TargetConfig = field(default_factory=TargetConfig)
    generator_name: str = "BuildVersion"
    git_executable: str = "git"


# YAML option name -> FailurePolicy attribute
_POLICY_KEYS = {
    "errorOnMissingArguments": "error_on_missing_arguments",
    "errorOnRepositoryCheckFailure": "error_on_repository_check_failure",
    "errorOnUncommittedChanges": "error_on_uncommitted_changes",
    "errorIfNoInitializationTarget": "error_if_no_initialization_target",
}


def load_config(config_path: Path) -> BuildVersionConfig:
    """Load configuration from disk, falling back to defaults when absent."""
    config_file = _resolve_config_path(config_path)
    root = config_file.parent.resolve()

    if not config_file.exists():
        return BuildVersionConfig(root=root)

    data = _read_config(config_file)
    if not isinstance(data, dict):
        raise ConfigError(f"{CONFIG_FILENAME} must contain a mapping at the root")

    options = _as_dict(data.get("options"))
    policy_values: Dict[str, bool] = {}
    for key, attribute in _POLICY_KEYS.items():
        if key not in options:
            continue
        value = _as_bool(options[key])
        if value is None:
            raise ConfigError(f"options.{key} must be a boolean")
        policy_values[attribute] = value
    policy = FailurePolicy(**policy_values)

    target_data = _as_dict(data.get("target"))
    defaults = TargetConfig()
    target = TargetConfig(
        program=_as_str(target_data.get("program")) or defaults.program,
        declaration_file=_as_str(target_data.get("declaration_file")) or defaults.declaration_file,
        global_file=_as_str(target_data.get("global_file")) or defaults.global_file,
        variable=_as_str(target_data.get("variable")) or defaults.variable,
        type_name=_as_str(target_data.get("type")) or defaults.type_name,
    )

    generator_data = _as_dict(data.get("generator"))
    git_data = _as_dict(data.get("git"))

    return BuildVersionConfig(
        root=root,
        policy=policy,
        target=target,
        generator_name=_as_str(generator_data.get("name")) or "BuildVersion",
        git_executable=_as_str(git_data.get("executable")) or "git",
    )


def _resolve_config_path(config_path: Path) -> Path:
    config_path = config_path.expanduser()
    if config_path.is_dir():
        return (config_path / CONFIG_FILENAME).resolve()
    return config_path.resolve()


def _read_config(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if not text.strip():
        return {}
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse {path.name}: {exc}") from exc
    return loaded if loaded is not None else {}


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_str(value: Any) -> Optional[str]:
    if isinstance(value, bool):
        return None
    if isinstance(value, (str, int, float)):
        text = str(value).strip()
        return text or None
    return None


def _as_bool(value: Any) -> Optional[bool]:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "yes", "1"}:
            return True
        if lowered in {"false", "no", "0"}:
            return False
    return None


__all__ = [
    "BuildVersionConfig",
    "CONFIG_FILENAME",
    "ConfigError",
    "FailurePolicy",
    "TargetConfig",
    "load_config",
]
