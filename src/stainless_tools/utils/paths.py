"""Target directory templating."""

from __future__ import annotations

DEFAULT_TARGET_DIR = "./sdks/{sdk}"


def get_target_dir(
    target_dir: str,
    *,
    sdk_name: str | None = None,
    env: str | None = None,
    branch: str | None = None,
) -> str:
    """
    Expand ``{sdk}``, ``{env}`` and ``{branch}`` in a target directory template.

    Slashes in the branch name become dashes so ``feature/x`` does not create
    nested directories. Tokens without a value are left as they are.

    Example:
        >>> get_target_dir("./sdks/{sdk}-{env}-{branch}", sdk_name="python", env="staging",
        ...                branch="feature/auth")
        './sdks/python-staging-feature-auth'
    """
    result = target_dir
    if sdk_name:
        result = result.replace("{sdk}", sdk_name)
    if env:
        result = result.replace("{env}", env)
    if branch:
        result = result.replace("{branch}", branch.replace("/", "-"))
    return result
