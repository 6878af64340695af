"""
Stash/restore helper.

Wraps the three stash operations the sync engine needs (push, pop/apply, and
list) as individual awaitable steps so the engine can decide what to do when
one of them fails.
"""

from __future__ import annotations

import logging
import re

from stainless_tools.core.git.client import GitClient

logger = logging.getLogger(__name__)

_STASH_REF_RE = re.compile(r"stash@\{0\}")


class StashHelper:
    """
    Stash operations on a single working tree.

    Only one stash entry is ever created per operation, so "the latest
    stash" (``stash@{0}``) is always the one this helper pushed.
    """

    def __init__(self, client: GitClient) -> None:
        self.client = client

    async def push(self, message: str) -> None:
        """Stash tracked and untracked changes under ``message``."""
        logger.debug("Stashing local changes: %s", message)
        await self.client.stash("push", "-u", "-m", message)

    async def pop(self) -> None:
        """Pop the latest stash. Raises GitError on conflicts."""
        await self.client.stash("pop")

    async def apply(self, ref: str) -> None:
        """Apply a stash entry without dropping it."""
        await self.client.stash("apply", ref)

    async def latest_ref(self) -> str | None:
        """
        Find the most recent stash reference.

        Returns:
            ``"stash@{0}"`` if the stash list is non-empty, otherwise None
        """
        listing = await self.client.stash("list")
        first_line = listing.splitlines()[0] if listing else ""
        match = _STASH_REF_RE.search(first_line)
        return match.group(0) if match else None
