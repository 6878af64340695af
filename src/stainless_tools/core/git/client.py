"""
Async facade over GitPython for a single working tree.

Every call is a suspension point: GitPython runs the git subprocess in a
worker thread via ``asyncio.to_thread`` so the event loop keeps serving the
poll loop, the file watcher and hook output while git works.

All ``GitCommandError``s are re-raised as :class:`GitError` carrying the
command and stderr, with the original exception chained.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from git import GitCommandError, InvalidGitRepositoryError, NoSuchPathError, Repo

from stainless_tools.core.exceptions import GitError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class GitClient:
    """
    Thin async wrapper around a GitPython ``Repo``.

    The repository is opened lazily so the client can be created before the
    working directory exists (``init`` creates it).

    Example:
        >>> client = GitClient(Path("./sdks/python"))
        >>> await client.fetch()
        >>> if await client.is_dirty():
        ...     await client.stash("push", "-u", "-m", "WIP")
    """

    def __init__(self, working_dir: Path) -> None:
        """
        Initialize the client.

        Args:
            working_dir: Root of the working tree this client operates on
        """
        self.working_dir = Path(working_dir)
        self._repo: Repo | None = None

    @property
    def repo(self) -> Repo:
        """The underlying GitPython repository, opened on first use."""
        if self._repo is None:
            try:
                self._repo = Repo(self.working_dir)
            except (InvalidGitRepositoryError, NoSuchPathError) as e:
                raise GitError(f"Not a git repository: {self.working_dir}") from e
        return self._repo

    @staticmethod
    def is_repository(path: Path) -> bool:
        """Check whether ``path`` exists and is a git repository."""
        if not path.is_dir():
            return False
        try:
            Repo(path).git.rev_parse("--git-dir")
            return True
        except (InvalidGitRepositoryError, NoSuchPathError, GitCommandError):
            return False

    async def _call(self, description: str, func: Callable[..., T], *args: Any) -> T:
        """Run a blocking GitPython call in a worker thread."""
        logger.debug("Running git %s in %s", description, self.working_dir)
        try:
            return await asyncio.to_thread(func, *args)
        except GitCommandError as e:
            stderr = str(e.stderr or "").strip()
            command = [str(part) for part in e.command] if isinstance(e.command, list) else None
            raise GitError(
                f"Git command failed: git {description}", command=command, stderr=stderr
            ) from e

    async def _git(self, command: str, *args: str) -> str:
        """Run ``git <command> <args>`` and return stripped stdout."""
        method = getattr(self.repo.git, command.replace("-", "_"))
        output = await self._call(" ".join([command, *args]), method, *args)
        return str(output).strip()

    async def init(self) -> None:
        """Create the working directory and initialize an empty repository."""

        def _init() -> Repo:
            self.working_dir.mkdir(parents=True, exist_ok=True)
            return Repo.init(self.working_dir)

        self._repo = await self._call("init", _init)

    async def add_remote(self, name: str, url: str) -> None:
        """Register a remote."""
        await self._git("remote", "add", name, url)

    async def remote_url(self, name: str = "origin") -> str | None:
        """
        Get the fetch URL of a remote.

        Falls back to the first configured remote when ``name`` does not
        exist. Returns None when the repository has no remotes.
        """

        def _url() -> str | None:
            remotes = list(self.repo.remotes)
            if not remotes:
                return None
            remote = next((r for r in remotes if r.name == name), remotes[0])
            urls = list(remote.urls)
            return urls[0] if urls else None

        return await self._call("remote get-url", _url)

    async def fetch(self, remote: str | None = None, branch: str | None = None) -> None:
        """Fetch from a remote, optionally a single branch."""
        args = [a for a in (remote, branch) if a]
        await self._git("fetch", *args)

    async def remote_branches(self) -> list[str]:
        """List remote-tracking branches (``origin/main`` style)."""
        output = await self._git("branch", "-r")
        branches = []
        for line in output.splitlines():
            line = line.strip()
            # Skip symbolic refs like "origin/HEAD -> origin/main"
            if not line or "->" in line:
                continue
            branches.append(line)
        return branches

    async def current_branch(self) -> str:
        """Name of the checked-out branch (``HEAD`` when detached)."""
        return await self._git("rev-parse", "--abbrev-ref", "HEAD")

    async def checkout(self, *args: str) -> None:
        """Run ``git checkout`` with the given arguments."""
        await self._git("checkout", *args)

    async def is_dirty(self) -> bool:
        """Check for staged, unstaged or untracked changes."""
        return await self._call(
            "status", lambda: self.repo.is_dirty(untracked_files=True)
        )

    async def head_hash(self, ref: str | None = None) -> str:
        """
        Get the commit hash at the tip of ``ref`` (HEAD by default).

        Returns an empty string for a repository with no commits yet.
        """
        args = ["-1", "--format=%H"]
        if ref:
            args.append(ref)
        try:
            return await self._git("log", *args)
        except GitError as e:
            if ref is None and "does not have any commits" in e.stderr:
                return ""
            raise

    async def pull(self, remote: str, branch: str) -> None:
        """Pull ``branch`` from ``remote`` into the current branch."""
        await self._git("pull", remote, branch)

    async def stash(self, *args: str) -> str:
        """Run ``git stash`` with the given arguments and return its output."""
        return await self._git("stash", *args)
