"""
Repository synchronization engine.

Keeps a local clone of a Stainless SDK repository in step with one remote
branch while preserving whatever the user has changed locally:

- fresh directories are initialized, wired to the remote and checked out on
  the tracked branch (waiting for the branch to be created if needed)
- existing clones are verified to be the same ``org/repo``, switched to the
  tracked branch and pulled
- every checkout and pull of a dirty tree is wrapped in stash/restore

When local changes can no longer be reconciled automatically the engine
raises :class:`ManualInterventionRequired` with the recovery steps; it never
exits the process.

Example:
    >>> repo = TrackedRepository(
    ...     url="git@github.com:stainless-sdks/acme-python.git",
    ...     branch="main",
    ...     target_dir=Path("./sdks/python").resolve(),
    ... )
    >>> manager = RepoManager(repo, sdk_name="python", lifecycle=LifecycleManager(hooks))
    >>> await manager.initialize()
    >>> if await manager.has_new_changes():
    ...     await manager.pull()
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from stainless_tools.core.exceptions import (
    CloneError,
    GitError,
    ManualInterventionRequired,
    RepositoryMismatchError,
    StashError,
    SyncError,
)
from stainless_tools.core.git.changes import ChangeDetector
from stainless_tools.core.git.client import GitClient
from stainless_tools.core.git.stash import StashHelper
from stainless_tools.core.git.urls import is_same_repository
from stainless_tools.core.git.waiter import DEFAULT_DELAY_SECONDS, BranchWaiter
from stainless_tools.core.hooks.lifecycle import LifecycleManager
from stainless_tools.core.hooks.models import HookPoint, LifecycleContext
from stainless_tools.core.repo.models import PullResult, RepoState, TrackedRepository

logger = logging.getLogger(__name__)

SWITCH_STASH_MESSAGE = "Stashing changes before switching branches"
UPDATE_STASH_MESSAGE = "Stashing changes before SDK update"

STASH_PRESERVED_HEADER = "Your changes are preserved in the stash. To resolve:"


class RepoManager:
    """
    Synchronizes one local working tree with one remote branch.

    All git-mutating operations (``initialize``, ``pull``,
    ``has_new_changes``) are serialized by a per-engine lock, so the poll
    loop and any other caller never run git concurrently on the same tree.

    Attributes:
        repo: The tracked repository
        sdk_name: SDK name used for lifecycle hooks (hooks are skipped if None)
        state: Current engine state
        last_commit_hash: Local tip after the last clone or pull
    """

    def __init__(
        self,
        repo: TrackedRepository,
        *,
        sdk_name: str | None = None,
        lifecycle: LifecycleManager | None = None,
        branch_wait_interval: float = DEFAULT_DELAY_SECONDS,
        branch_wait_timeout: float | None = None,
        client: GitClient | None = None,
    ) -> None:
        self.repo = repo.model_copy(update={"target_dir": Path(repo.target_dir).resolve()})
        self.sdk_name = sdk_name
        self.lifecycle = lifecycle
        self.branch_wait_interval = branch_wait_interval
        self.branch_wait_timeout = branch_wait_timeout

        self.client = client or GitClient(self.repo.target_dir)
        self.stash = StashHelper(self.client)
        self.detector = ChangeDetector(self.client, self.repo.branch, self.repo.remote_name)
        self.waiter = BranchWaiter(self.client, self.repo.remote_name)

        self.state = RepoState.UNINITIALIZED
        self.last_commit_hash: str | None = None
        self._lock = asyncio.Lock()

    @property
    def target_dir(self) -> Path:
        return self.repo.target_dir

    @property
    def branch(self) -> str:
        return self.repo.branch

    def context(self) -> LifecycleContext | None:
        """Lifecycle context for hooks, or None when no SDK name is known."""
        if not self.sdk_name:
            return None
        return LifecycleContext(path=str(self.target_dir), branch=self.branch, name=self.sdk_name)

    # ------------------------------------------------------------------
    # Public operations
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Clone into an empty location or bring an existing clone up to date.

        Raises:
            RepositoryMismatchError: If the directory holds another repository
            CloneError: If setting up a fresh clone fails
            SyncError: If updating an existing clone fails
            ManualInterventionRequired: If local changes could not be reconciled
        """
        async with self._lock:
            try:
                if GitClient.is_repository(self.target_dir):
                    await self._update_existing()
                else:
                    await self._clone_fresh()
            except ManualInterventionRequired:
                self.state = RepoState.MANUAL_INTERVENTION_REQUIRED
                raise
            self.state = RepoState.SYNCED

    async def pull(self) -> PullResult:
        """
        Pull the tracked branch, stashing and restoring local changes.

        Raises:
            SyncError: If the pull fails and no local changes were at risk
            ManualInterventionRequired: If local changes could not be reconciled
        """
        async with self._lock:
            return await self._pull()

    async def has_new_changes(self) -> bool:
        """
        Fetch and compare the local tip with the remote tip.

        Raises:
            ChangeDetectionError: If fetching or reading hashes fails
        """
        async with self._lock:
            return await self.detector.has_new_changes()

    async def wait_for_remote_branch(self, branch: str, delay: float | None = None) -> None:
        """Block until ``branch`` exists on the remote."""
        await self.waiter.wait(
            branch,
            delay=self.branch_wait_interval if delay is None else delay,
            timeout=self.branch_wait_timeout,
        )

    # ------------------------------------------------------------------
    # Initialization paths
    # ------------------------------------------------------------------

    async def _clone_fresh(self) -> None:
        try:
            await self.client.init()
            await self.client.add_remote(self.repo.remote_name, self.repo.url)

            if not await self.waiter.exists(self.branch):
                logger.info("Waiting for branch '%s' to be created...", self.branch)
                await self.wait_for_remote_branch(self.branch)

            await self.client.fetch(self.repo.remote_name, self.branch)
            await self.client.checkout("-b", self.branch, self.repo.remote_ref)
            self.last_commit_hash = await self.client.head_hash()

            await self._run_hook(HookPoint.POST_CLONE)
        except Exception as e:
            raise CloneError(
                f"Failed to clone SDK repository ({self.repo.url})", url=self.repo.url
            ) from e

        logger.info("Cloned %s (%s) into %s", self.repo.url, self.branch, self.target_dir)

    async def _update_existing(self) -> None:
        try:
            origin_url = await self.client.remote_url(self.repo.remote_name)
            if not origin_url or not is_same_repository(origin_url, self.repo.url):
                raise RepositoryMismatchError(str(self.target_dir), origin_url, self.repo.url)

            logger.info("Existing SDK repository found, checking for updates...")
            await self.client.fetch()

            await self._switch_branch()
            await self._pull()
            self.last_commit_hash = await self.client.head_hash()
        except (GitError, OSError) as e:
            raise SyncError("Failed to update existing repository") from e

    async def _switch_branch(self) -> None:
        """Check out the tracked branch if another one is checked out."""
        current = await self.client.current_branch()
        if current == self.branch:
            return

        logger.info("Switching from branch '%s' to '%s'", current, self.branch)
        has_local_changes = await self.client.is_dirty()
        if has_local_changes:
            logger.info("Local changes detected in SDK repository.")
            logger.info("Stashing your local changes before switching branches...")
            await self.stash.push(SWITCH_STASH_MESSAGE)

        try:
            if not await self.waiter.exists(self.branch):
                logger.info("Waiting for branch '%s' to be created...", self.branch)
                await self.wait_for_remote_branch(self.branch)
            await self.client.checkout(self.branch)
        except Exception as e:
            if has_local_changes:
                await self._recover_failed_operation(
                    e,
                    problem="Could not switch to branch due to an error.",
                    header="To switch manually:",
                    second_step=f"Switch branch: git checkout {self.branch}",
                )
            raise

        if has_local_changes:
            await self._restore_stashed()

    # ------------------------------------------------------------------
    # Pull
    # ------------------------------------------------------------------

    async def _pull(self) -> PullResult:
        previous_state = self.state
        self.state = RepoState.PULLING
        try:
            result = await self._pull_unlocked()
        except ManualInterventionRequired:
            self.state = RepoState.MANUAL_INTERVENTION_REQUIRED
            raise
        else:
            self.state = RepoState.SYNCED
            return result
        finally:
            if self.state is RepoState.PULLING:
                self.state = previous_state

    async def _pull_unlocked(self) -> PullResult:
        try:
            has_local_changes = await self.client.is_dirty()
            old_hash = await self.client.head_hash()
            if has_local_changes:
                logger.info("Local changes detected in SDK repository.")
                logger.info("Stashing your local changes before pulling updates...")
                await self.stash.push(UPDATE_STASH_MESSAGE)
        except GitError as e:
            raise SyncError("Failed to pull changes") from e

        try:
            await self.client.pull(self.repo.remote_name, self.branch)
            new_hash = await self.client.head_hash()
        except GitError as e:
            if has_local_changes:
                await self._recover_failed_operation(
                    e,
                    problem="Could not update to the latest SDK version due to conflicts.",
                    header="To update manually:",
                    second_step="Pull latest changes: git pull",
                )
            raise SyncError("Failed to pull changes") from e

        result = PullResult(old_hash=old_hash, new_hash=new_hash, stashed=has_local_changes)
        logger.info(result.summary())
        self.last_commit_hash = new_hash

        if has_local_changes:
            await self._restore_stashed()

        await self._run_hook(HookPoint.POST_UPDATE)
        return result

    # ------------------------------------------------------------------
    # Stash recovery
    # ------------------------------------------------------------------

    async def _restore_stashed(self) -> None:
        """
        Reapply the stash pushed by the current operation.

        Pops the stash; if that conflicts, applies ``stash@{0}`` so the
        changes are visible while the stash entry is kept.

        Raises:
            ManualInterventionRequired: If the changes could not be reapplied cleanly
            StashError: If the pop failed and no stash entry exists
        """
        logger.info("Reapplying your local changes...")
        try:
            await self.stash.pop()
            logger.info("Successfully reapplied your local changes.")
            return
        except GitError as pop_error:
            stash_ref = await self._latest_stash_ref()
            if stash_ref is None:
                raise StashError(
                    "Failed to reapply local changes and could not find stash reference"
                ) from pop_error

        try:
            await self.stash.apply(stash_ref)
        except GitError as apply_error:
            raise ManualInterventionRequired(
                "Could not reapply your local changes due to conflicts.",
                [
                    "Run: git stash pop",
                    "Resolve the conflicts manually",
                    "Commit your changes",
                ],
                header=STASH_PRESERVED_HEADER,
            ) from apply_error

        logger.info("Reapplied your local changes (with potential conflicts).")
        raise ManualInterventionRequired(
            "There were conflicts while reapplying your changes.",
            [
                "Resolve any conflicts in your working directory",
                "Run: git stash drop",
            ],
            header=STASH_PRESERVED_HEADER,
        )

    async def _latest_stash_ref(self) -> str | None:
        try:
            return await self.stash.latest_ref()
        except GitError:
            logger.debug("Could not list stashes", exc_info=True)
            return None

    async def _recover_failed_operation(
        self,
        error: BaseException,
        *,
        problem: str,
        header: str,
        second_step: str,
    ) -> None:
        """
        Put stashed changes back after a checkout or pull failed.

        Always raises: the failed operation still has to be finished by hand.
        """
        logger.info("Operation failed, attempting to restore your local changes...")
        try:
            await self.stash.pop()
        except GitError as pop_error:
            raise ManualInterventionRequired(
                "Failed to restore local changes after the operation failed.",
                [
                    "Inspect your stashed changes: git stash list",
                    "Reapply them: git stash pop",
                    "Resolve any conflicts",
                ],
                header=STASH_PRESERVED_HEADER,
            ) from pop_error

        logger.info("Successfully restored your local changes.")
        raise ManualInterventionRequired(
            problem,
            [
                "Stash your changes: git stash",
                second_step,
                "Reapply your changes: git stash pop",
                "Resolve any conflicts",
            ],
            header=header,
        ) from error

    # ------------------------------------------------------------------
    # Hooks
    # ------------------------------------------------------------------

    async def _run_hook(self, point: HookPoint) -> None:
        context = self.context()
        if context is None or self.lifecycle is None:
            return
        await self.lifecycle.run(point, context)

