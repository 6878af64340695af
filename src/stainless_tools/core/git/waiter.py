"""
Waiting for a remote branch to appear.

The Stainless backend creates the SDK branch some time after specs are first
published to it, with no fixed deadline. The waiter therefore polls forever
by default and ignores errors from individual attempts so a network blip
cannot abort the wait.
"""

from __future__ import annotations

import asyncio
import logging
import time

from stainless_tools.core.exceptions import BranchWaitTimeout, GitError
from stainless_tools.core.git.client import GitClient

logger = logging.getLogger(__name__)

DEFAULT_DELAY_SECONDS = 5.0


class BranchWaiter:
    """Polls a remote until a named branch exists."""

    def __init__(self, client: GitClient, remote: str = "origin") -> None:
        self.client = client
        self.remote = remote

    async def exists(self, branch: str) -> bool:
        """Fetch and check whether ``<remote>/<branch>`` exists."""
        await self.client.fetch()
        return f"{self.remote}/{branch}" in await self.client.remote_branches()

    async def wait(
        self,
        branch: str,
        delay: float = DEFAULT_DELAY_SECONDS,
        timeout: float | None = None,
    ) -> None:
        """
        Block until ``branch`` exists on the remote.

        Args:
            branch: Branch name without the remote prefix
            delay: Seconds to sleep between attempts
            timeout: Optional upper bound in seconds; None waits forever

        Raises:
            BranchWaitTimeout: If ``timeout`` elapses first
        """
        deadline = time.monotonic() + timeout if timeout is not None else None
        attempts = 0

        while True:
            attempts += 1
            try:
                if await self.exists(branch):
                    logger.debug("Branch %s found after %d attempt(s)", branch, attempts)
                    return
            except GitError as e:
                logger.debug("Branch check for %s failed, retrying: %s", branch, e.stderr or e)

            if deadline is not None and time.monotonic() + delay > deadline:
                raise BranchWaitTimeout(branch, timeout or 0.0)

            await asyncio.sleep(delay)
