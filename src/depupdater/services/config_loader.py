"""Configuration loader for depupdater."""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from depupdater.errors import ConfigValidationError
from depupdater.models import GROUP_BY_CHOICES, PLATFORM_CHOICES, RepositoryConfig


class ConfigLoader:
    """Loads and validates YAML configuration files."""

    SUPPORTED_KEYS = {
        "local_dir",
        "base_branches",
        "enabled_managers",
        "file_match",
        "ignore_paths",
        "gradle_timeout",
        "gradle_wrapper",
        "allowed_env",
        "branch_prefix",
        "group_by",
        "dry_run",
        "push",
        "platform",
        "repository",
        "endpoint",
        "git_author",
        "upgrades_file",
        "manifest_file",
        "verbose",
        "log_file",
    }
    LIST_KEYS = ("base_branches", "enabled_managers", "ignore_paths", "allowed_env")
    BOOL_KEYS = ("dry_run", "push", "verbose")
    STRING_KEYS = (
        "local_dir",
        "gradle_wrapper",
        "branch_prefix",
        "repository",
        "endpoint",
        "git_author",
        "upgrades_file",
        "manifest_file",
        "log_file",
    )

    def load(self, config_path: Optional[str]) -> Dict[str, Any]:
        if not config_path:
            return {}

        path = Path(config_path)
        if not path.exists():
            raise ConfigValidationError(config_path, "Config file not found.")

        try:
            parsed = yaml.safe_load(path.read_text(encoding="utf-8"))
        except (yaml.YAMLError, OSError) as exc:
            raise ConfigValidationError(config_path, f"Invalid config file: {exc}") from exc

        if parsed is None:
            return {}
        if not isinstance(parsed, dict):
            raise ConfigValidationError(config_path, "Config file must contain a YAML mapping at the root.")

        self.validate(parsed, source=config_path)
        return parsed

    def validate(self, values: Dict[str, Any], source: str):
        unknown = sorted(set(values.keys()) - self.SUPPORTED_KEYS)
        if unknown:
            unknown_list = ", ".join(unknown)
            raise ConfigValidationError(source, f"Unknown configuration keys: {unknown_list}")

        for key in self.LIST_KEYS:
            if key in values and not (
                isinstance(values[key], list) and all(isinstance(item, str) for item in values[key])
            ):
                raise ConfigValidationError(source, f"'{key}' must be a list of strings.")

        for key in self.BOOL_KEYS:
            if key in values and not isinstance(values[key], bool):
                raise ConfigValidationError(source, f"'{key}' must be true or false.")

        for key in self.STRING_KEYS:
            if key in values and values[key] is not None and not isinstance(values[key], str):
                raise ConfigValidationError(source, f"'{key}' must be a string.")

        timeout = values.get("gradle_timeout")
        if timeout is not None and (isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0):
            raise ConfigValidationError(source, "'gradle_timeout' must be a positive number of seconds.")

        if "group_by" in values and values["group_by"] not in GROUP_BY_CHOICES:
            raise ConfigValidationError(source, f"'group_by' must be one of: {', '.join(GROUP_BY_CHOICES)}")

        if "platform" in values and values["platform"] not in PLATFORM_CHOICES:
            raise ConfigValidationError(source, f"'platform' must be one of: {', '.join(PLATFORM_CHOICES)}")

        file_match = values.get("file_match")
        if file_match is not None:
            if not isinstance(file_match, dict) or not all(
                isinstance(patterns, list) and all(isinstance(item, str) for item in patterns)
                for patterns in file_match.values()
            ):
                raise ConfigValidationError(source, "'file_match' must map manager names to lists of patterns.")


def build_repository_config(values: Dict[str, Any]) -> RepositoryConfig:
    """Builds the immutable run config from already validated values."""
    defaults = RepositoryConfig(local_dir=values.get("local_dir") or ".")
    kwargs: Dict[str, Any] = {}

    for key in ("base_branches", "enabled_managers", "ignore_paths", "allowed_env"):
        if values.get(key) is not None:
            kwargs[key] = tuple(values[key])
    if values.get("file_match") is not None:
        kwargs["file_match"] = {manager: tuple(patterns) for manager, patterns in values["file_match"].items()}
    if values.get("gradle_timeout") is not None:
        kwargs["gradle_timeout"] = float(values["gradle_timeout"])
    for key in (
        "gradle_wrapper",
        "branch_prefix",
        "group_by",
        "dry_run",
        "push",
        "platform",
        "repository",
        "endpoint",
        "git_author",
    ):
        if values.get(key) is not None:
            kwargs[key] = values[key]

    return RepositoryConfig(local_dir=defaults.local_dir, **kwargs)
