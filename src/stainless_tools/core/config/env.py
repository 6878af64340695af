"""
.env file loading for Stainless credentials.

STAINLESS_API_KEY, STAINLESS_API_URL and STAINLESS_SDK_BRANCH are read from
the process environment. So that the API key does not have to be exported in
every shell, they can also be kept in .env files, applied in this order:

1. ``$XDG_CONFIG_HOME/stainless-tools/.env`` (per user)
2. ``.env`` in the project directory
3. ``.env.local`` in the project directory

Later files win over earlier ones, but no file ever replaces a variable that
was already set in the process environment before loading.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

ENV_FILE_NAMES = (".env", ".env.local")


def default_env_files(project_dir: Path | None = None) -> list[Path]:
    """The user .env file followed by the project .env files, lowest precedence first."""
    project_dir = project_dir or Path.cwd()
    user_file = get_xdg_config_home() / "stainless-tools" / ".env"
    return [user_file, *(project_dir / name for name in ENV_FILE_NAMES)]


def read_env_files(paths: Iterable[Path]) -> dict[str, str]:
    """
    Merge the variables defined in ``paths``.

    Missing files are skipped and keys without a value are ignored.
    """
    merged: dict[str, str] = {}
    for path in paths:
        if not path.is_file():
            continue
        logger.debug("Reading environment from %s", path)
        merged.update({k: v for k, v in dotenv_values(path).items() if v is not None})
    return merged


def load_layered_env(
    *,
    project_dir: Path | None = None,
    env_files: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Apply .env files to ``os.environ`` without touching pre-set variables.

    Args:
        project_dir: Directory holding the project .env files (defaults to cwd)
        env_files: Explicit files to read instead of the defaults

    Returns:
        The variables that were set
    """
    files = list(env_files) if env_files is not None else default_env_files(project_dir)
    applied = {k: v for k, v in read_env_files(files).items() if k not in os.environ}
    os.environ.update(applied)
    return applied
