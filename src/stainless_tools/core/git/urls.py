"""
Helpers for working with git repository URLs.

Both SSH (``git@github.com:org/repo.git``) and HTTP(S)
(``https://github.com/org/repo.git``) forms are supported.
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

# org/repo at the end of a URL, after "/", ":" or the start of the string
_REPO_PATH_RE = re.compile(r"(?:^|/|:)([\w.-]+/[\w.-]+?)(?:\.git)?/?$")

_DOMAIN_RE = re.compile(r"^[a-zA-Z0-9][a-zA-Z0-9-]*(\.[a-zA-Z0-9-]+)*$")
_REPO_NAME_RE = re.compile(r"^[a-zA-Z0-9][-a-zA-Z0-9]*/[-a-zA-Z0-9_.]+\.git$")


def get_repo_path(url: str) -> str:
    """
    Extract the ``org/repo`` part of a git URL.

    Protocol, host (including ``ssh://`` and ``git@host:`` prefixes) and the
    ``.git`` suffix are ignored.

    Args:
        url: Repository URL in SSH or HTTP(S) form

    Returns:
        ``org/repo`` string, or an empty string if the URL has no such path

    Example:
        >>> get_repo_path("git@github.com:stainless-sdks/acme-python.git")
        'stainless-sdks/acme-python'
        >>> get_repo_path("https://github.com/stainless-sdks/acme-python")
        'stainless-sdks/acme-python'
    """
    match = _REPO_PATH_RE.search(url.strip())
    return match.group(1) if match else ""


def is_same_repository(url1: str, url2: str) -> bool:
    """Check whether two git URLs point at the same ``org/repo``."""
    repo1 = get_repo_path(url1)
    repo2 = get_repo_path(url2)
    return repo1 != "" and repo2 != "" and repo1 == repo2


def is_valid_domain(domain: str) -> bool:
    """Validate a host name such as ``github.com`` or ``gitlab.company.com``."""
    return bool(_DOMAIN_RE.match(domain))


def is_valid_repo_path(path: str) -> bool:
    """Validate a repository path such as ``user/repo.git``."""
    return bool(_REPO_NAME_RE.match(path))


def is_valid_git_url(url: str) -> bool:
    """
    Check that a URL looks like a cloneable git repository.

    Accepts ``git@host:org/repo.git`` and ``http(s)://host/org/repo.git``.
    """
    if url.startswith("git@"):
        prefix, _, repo_path = url.partition(":")
        return is_valid_domain(prefix[4:]) and is_valid_repo_path(repo_path)

    parsed = urlparse(url)
    if parsed.scheme not in ("http", "https") or not parsed.hostname:
        return False
    return is_valid_domain(parsed.hostname) and is_valid_repo_path(parsed.path.lstrip("/"))

