"""
Hash-based change detection for the tracked branch.

Fetches the remote and compares the local tip with the remote-tracking tip.
Only tip hashes are compared; no history is diffed.
"""

from __future__ import annotations

import logging

from stainless_tools.core.exceptions import ChangeDetectionError, GitError
from stainless_tools.core.git.client import GitClient
from stainless_tools.core.repo.models import CommitHashPair

logger = logging.getLogger(__name__)


class ChangeDetector:
    """
    Detects new commits on ``<remote>/<branch>``.

    Example:
        >>> detector = ChangeDetector(client, branch="main")
        >>> if await detector.has_new_changes():
        ...     print("remote moved")
    """

    def __init__(self, client: GitClient, branch: str, remote: str = "origin") -> None:
        self.client = client
        self.branch = branch
        self.remote = remote

    @property
    def remote_ref(self) -> str:
        """Remote-tracking ref for the branch (e.g. ``origin/main``)."""
        return f"{self.remote}/{self.branch}"

    async def local_hash(self) -> str:
        """Hash of the local HEAD."""
        return await self.client.head_hash()

    async def snapshot(self) -> CommitHashPair:
        """
        Fetch and capture the local and remote tip hashes.

        Raises:
            ChangeDetectionError: If the fetch or either log lookup fails
        """
        try:
            await self.client.fetch()
            local = await self.client.head_hash()
            remote = await self.client.head_hash(self.remote_ref)
        except GitError as e:
            raise ChangeDetectionError("Failed to check for new changes") from e

        pair = CommitHashPair(local_hash=local, remote_hash=remote)
        logger.debug("Local %s, remote %s", pair.local_short, pair.remote_short)
        return pair

    async def has_new_changes(self) -> bool:
        """True when the remote tip differs from the local tip."""
        return (await self.snapshot()).has_changes
