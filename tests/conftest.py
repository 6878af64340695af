"""
Pytest configuration and shared fixtures.

Provides real git repositories for the sync engine tests: a bare "remote"
repository plus a seed working copy used to push new commits to it, the way
the Stainless backend pushes generated SDK code.
"""

from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

# ==============================================================================
# Git helpers
# ==============================================================================


def git(cwd: Path, *args: str) -> str:
    """Run a git command and return stripped stdout."""
    result = subprocess.run(
        ["git", *args],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


class RemoteRepo:
    """
    A bare repository with a seed clone used to publish commits.

    Attributes:
        bare: Path of the bare repository (used as the remote URL)
        seed: Working copy that pushes to the bare repository
    """

    def __init__(self, bare: Path, seed: Path) -> None:
        self.bare = bare
        self.seed = seed

    @property
    def url(self) -> str:
        return str(self.bare)

    def commit(self, files: dict[str, str], message: str = "Update", branch: str = "main") -> str:
        """Write ``files`` on ``branch``, commit, push, and return the new hash."""
        if git(self.seed, "symbolic-ref", "--short", "HEAD") != branch:
            existing = git(self.seed, "branch", "--list", branch)
            if existing:
                git(self.seed, "checkout", branch)
            else:
                git(self.seed, "checkout", "-b", branch)
        for name, content in files.items():
            path = self.seed / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content)
        git(self.seed, "add", "-A")
        git(self.seed, "commit", "-m", message)
        git(self.seed, "push", "origin", branch)
        return git(self.seed, "rev-parse", "HEAD")

    def head(self, branch: str = "main") -> str:
        return git(self.bare, "rev-parse", branch)


@pytest.fixture(autouse=True)
def git_identity(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Give git a commit identity and isolate it from the user's config."""
    monkeypatch.setenv("GIT_AUTHOR_NAME", "Test User")
    monkeypatch.setenv("GIT_AUTHOR_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_COMMITTER_NAME", "Test User")
    monkeypatch.setenv("GIT_COMMITTER_EMAIL", "test@example.com")
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    (tmp_path / "home").mkdir(exist_ok=True)


def make_remote(root: Path, name: str = "remote") -> RemoteRepo:
    """Create a bare repository named ``<name>.git`` with one commit on main."""
    bare = root / f"{name}.git"
    bare.mkdir(parents=True)
    git(bare, "init", "--bare")
    git(bare, "symbolic-ref", "HEAD", "refs/heads/main")

    seed = root / f"{name}-seed"
    seed.mkdir()
    git(seed, "init")
    git(seed, "symbolic-ref", "HEAD", "refs/heads/main")
    git(seed, "remote", "add", "origin", str(bare))

    remote = RemoteRepo(bare, seed)
    remote.commit({"README.md": "# Acme SDK\n", "src/client.py": "VERSION = 1\n"}, "Initial commit")
    return remote


@pytest.fixture
def remote_repo(tmp_path: Path) -> RemoteRepo:
    """A remote SDK repository with an initial commit on main."""
    return make_remote(tmp_path / "remotes")


@pytest.fixture
def target_dir(tmp_path: Path) -> Path:
    """Where the engine should place its clone (does not exist yet)."""
    return tmp_path / "sdks" / "python"


@pytest.fixture
def run_git():
    """The ``git(cwd, *args)`` helper, for tests that inspect a working tree."""
    return git


@pytest.fixture
def other_remote(tmp_path: Path) -> RemoteRepo:
    """A second, unrelated remote repository."""
    return make_remote(tmp_path / "others", "other")
