"""
Option resolution shared by the SDK commands.

Merges command-line flags, environment variables and the configuration file
into a validated :class:`SessionOptions`.
"""

from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path

from git import InvalidGitRepositoryError, NoSuchPathError, Repo
from pydantic import ValidationError

from stainless_tools.core.config import StainlessToolsConfig, load_config
from stainless_tools.core.exceptions import ConfigurationError
from stainless_tools.core.session import SessionOptions
from stainless_tools.utils.paths import DEFAULT_TARGET_DIR, get_target_dir

logger = logging.getLogger(__name__)


def generate_branch_name() -> str:
    """Random branch name of the form ``cli/<8 hex chars>``."""
    return f"cli/{secrets.token_hex(4)}"


def current_branch(path: Path) -> str | None:
    """Checked-out branch of the repository at ``path``, if there is one."""
    try:
        return Repo(path).active_branch.name
    except (InvalidGitRepositoryError, NoSuchPathError, TypeError, ValueError):
        # TypeError: detached HEAD
        return None


def resolve_sdk_options(
    sdk_name: str,
    *,
    branch: str | None = None,
    target_dir: str | None = None,
    open_api_file: str | None = None,
    config_file: str | None = None,
    stainless_config_file: str | None = None,
    project_name: str | None = None,
    guess_config: bool = False,
    prod: bool = False,
    poll_interval: float | None = None,
    cwd: Path | None = None,
) -> tuple[SessionOptions, StainlessToolsConfig]:
    """
    Build session options for ``sdk_name``.

    Branch precedence:
        1. ``--branch``
        2. STAINLESS_SDK_BRANCH
        3. ``defaults.branch`` in the config
        4. Current branch of an existing clone in the target directory
        5. A new random ``cli/xxxxxxxx`` branch

    Returns:
        The session options and the loaded configuration

    Raises:
        ConfigurationError: If the config is missing, the SDK is unknown, the
            selected URL is not defined or a required option is missing
    """
    base_dir = cwd or Path.cwd()
    config = load_config(Path(config_file) if config_file else None, project_dir=base_dir)

    sdk_config = config.sdk_repos.get(sdk_name)
    if sdk_config is None:
        raise ConfigurationError(f'SDK "{sdk_name}" not found in configuration')

    mode = "prod" if prod else "staging"
    sdk_repo = sdk_config.url_for(mode)
    if not sdk_repo:
        raise ConfigurationError(
            f'{"Production" if prod else "Staging"} URL not defined for SDK "{sdk_name}". '
            f'Please add a "{mode}" URL to the configuration.'
        )

    defaults = config.defaults
    template = target_dir or defaults.target_dir or DEFAULT_TARGET_DIR

    resolved_branch = branch or os.environ.get("STAINLESS_SDK_BRANCH") or defaults.branch
    if not resolved_branch:
        # Only templates without {branch} can point at an existing clone here
        candidate_dir = base_dir / get_target_dir(template, sdk_name=sdk_name, env=mode)
        resolved_branch = current_branch(candidate_dir) or generate_branch_name()
        logger.debug("Using branch %s", resolved_branch)

    spec_path = open_api_file or defaults.open_api_file
    config_path = stainless_config_file or defaults.stainless_config_file

    resolved_project = project_name or defaults.project_name
    if not resolved_project:
        raise ConfigurationError(
            "Project name is required when using OpenAPI file. Provide it via "
            "--project-name option or in the configuration defaults."
        )

    try:
        options = SessionOptions(
            sdk_name=sdk_name,
            sdk_repo=sdk_repo,
            branch=resolved_branch,
            target_dir=str(base_dir / template),
            env=mode,
            open_api_file=(base_dir / spec_path).resolve() if spec_path else None,
            stainless_config_file=(base_dir / config_path).resolve() if config_path else None,
            project_name=resolved_project,
            guess_config=guess_config or defaults.guess_config,
            poll_interval_seconds=poll_interval or config.poll_interval_seconds,
            lifecycle=config.lifecycle,
        )
    except ValidationError as e:
        messages = "; ".join(str(err["msg"]).removeprefix("Value error, ") for err in e.errors())
        raise ConfigurationError(messages) from e

    return options, config
