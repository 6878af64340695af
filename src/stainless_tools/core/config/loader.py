"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < explicit --config file

Project config is the first of these found in the working directory:
    stainless-tools.json, .stainless-toolsrc.json,
    stainless-tools.yaml, stainless-tools.yml,
    .stainless-toolsrc.yaml, .stainless-toolsrc.yml
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from stainless_tools.core.exceptions import ConfigurationError

from .models import StainlessToolsConfig

logger = logging.getLogger(__name__)

PROJECT_CONFIG_NAMES = (
    "stainless-tools.json",
    ".stainless-toolsrc.json",
    "stainless-tools.yaml",
    "stainless-tools.yml",
    ".stainless-toolsrc.yaml",
    ".stainless-toolsrc.yml",
)

USER_CONFIG_NAMES = ("config.json", "config.yaml", "config.yml")


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path | None:
    """
    Get path to the user configuration file, if one exists.

    Returns:
        First existing ~/.config/stainless-tools/config.{json,yaml,yml}
    """
    config_dir = get_xdg_config_home() / "stainless-tools"
    for name in USER_CONFIG_NAMES:
        if (config_dir / name).is_file():
            return config_dir / name
    return None


def get_project_config_path(cwd: Path | None = None) -> Path | None:
    """
    Get path to the project configuration file, if one exists.

    Args:
        cwd: Working directory to search (defaults to current directory)
    """
    if cwd is None:
        cwd = Path.cwd()
    for name in PROJECT_CONFIG_NAMES:
        if (cwd / name).is_file():
            return cwd / name
    return None


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`.
    Nested dicts are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 20}})
        {'a': 1, 'b': {'x': 10, 'y': 20}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_config_file(path: Path) -> dict[str, Any]:
    """
    Load a JSON or YAML config file.

    Args:
        path: Path to the file; ``.yaml``/``.yml`` are parsed as YAML,
            everything else as JSON

    Raises:
        ConfigurationError: If the file is missing, unparseable, or not a mapping
    """
    try:
        text = path.read_text()
    except OSError as e:
        raise ConfigurationError(f"Failed to read configuration file {path}", path=str(path)) from e

    try:
        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Failed to parse configuration file {path}", path=str(path)) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file {path} must contain a mapping", path=str(path)
        )
    return data


def get_default_config() -> dict[str, Any]:
    """Hardcoded defaults, lowest precedence."""
    return {
        "defaults": {"target_dir": "./sdks/{sdk}"},
        "poll_interval_seconds": 5.0,
    }


def load_config(
    config_path: Path | None = None,
    project_dir: Path | None = None,
) -> StainlessToolsConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Explicit config file (``--config``)
        2. Project config (stainless-tools.json etc. in ``project_dir``)
        3. User config (~/.config/stainless-tools/config.json)
        4. Hardcoded defaults

    Args:
        config_path: Explicit configuration file
        project_dir: Directory to search for project config (defaults to cwd)

    Returns:
        Validated StainlessToolsConfig instance

    Raises:
        ConfigurationError: If no config file exists or validation fails

    Example:
        >>> config = load_config()
        >>> config.sdk_repos["python"].staging
        'git@github.com:stainless-sdks/acme-python.git'
    """
    sources: list[Path] = []
    if user_path := get_user_config_path():
        sources.append(user_path)
    if project_path := get_project_config_path(project_dir):
        sources.append(project_path)
    if config_path is not None:
        sources.append(Path(config_path))

    if not sources:
        raise ConfigurationError("No configuration file found")

    merged = get_default_config()
    for path in sources:
        logger.debug("Loading configuration from %s", path)
        merged = deep_merge(merged, _normalize_keys(load_config_file(path)))

    try:
        return StainlessToolsConfig.model_validate(merged)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    """Rename top-level camelCase aliases so layers merge on the same key."""
    aliases = {
        "stainlessSdkRepos": "sdk_repos",
        "pollIntervalSeconds": "poll_interval_seconds",
    }
    result = {aliases.get(k, k): v for k, v in data.items()}
    if isinstance(result.get("defaults"), dict):
        result["defaults"] = {to_snake(k): v for k, v in result["defaults"].items()}
    if isinstance(result.get("lifecycle"), dict):
        result["lifecycle"] = {
            sdk: {to_snake(k): v for k, v in commands.items()}
            if isinstance(commands, dict)
            else commands
            for sdk, commands in result["lifecycle"].items()
        }
    return result

