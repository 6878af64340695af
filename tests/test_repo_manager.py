"""
Tests for the repository synchronization engine.

Tests cover:
- Fresh clone (including waiting for the branch to appear)
- Repository identity checks on existing clones
- Change detection before and after pulls
- Stash/restore around pulls and branch switches
- Manual intervention when local changes cannot be reconciled
- Serialization of git operations
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

import pytest

from stainless_tools.core.config.models import LifecycleCommands
from stainless_tools.core.exceptions import (
    BranchWaitTimeout,
    CloneError,
    ManualInterventionRequired,
    RepositoryMismatchError,
    SyncError,
)
from stainless_tools.core.hooks.lifecycle import LifecycleManager
from stainless_tools.core.hooks.models import HookPoint, LifecycleContext
from stainless_tools.core.repo.manager import RepoManager
from stainless_tools.core.repo.models import RepoState, TrackedRepository


def make_manager(url: str, target_dir: Path, branch: str = "main", **kwargs) -> RepoManager:
    repo = TrackedRepository(url=url, branch=branch, target_dir=target_dir)
    return RepoManager(repo, **kwargs)


@pytest.fixture
async def synced(remote_repo, target_dir) -> RepoManager:
    """An engine that has already cloned the remote."""
    manager = make_manager(remote_repo.url, target_dir)
    await manager.initialize()
    return manager


class TestFreshClone:
    """Tests for initializing an empty target directory."""

    @pytest.mark.asyncio
    async def test_clones_tracked_branch(self, remote_repo, target_dir, run_git) -> None:
        """A fresh directory ends up on the tracked branch at the remote tip."""
        manager = make_manager(remote_repo.url, target_dir)

        await manager.initialize()

        assert (target_dir / "README.md").read_text() == "# Acme SDK\n"
        assert run_git(target_dir, "rev-parse", "--abbrev-ref", "HEAD") == "main"
        assert manager.last_commit_hash == remote_repo.head()
        assert manager.state == RepoState.SYNCED

    @pytest.mark.asyncio
    async def test_post_clone_hook_runs_once(self, remote_repo, target_dir) -> None:
        """The post-clone command runs for the first clone only, with the SDK context."""
        log = target_dir.parent / "hook.log"
        lifecycle = LifecycleManager(
            {
                "python": LifecycleCommands(
                    post_clone=(
                        'echo "$STAINLESS_TOOLS_SDK_REPO_NAME $STAINLESS_TOOLS_SDK_BRANCH" '
                        f'>> "{log}"'
                    )
                )
            }
        )

        manager = make_manager(remote_repo.url, target_dir, sdk_name="python", lifecycle=lifecycle)
        await manager.initialize()

        again = make_manager(remote_repo.url, target_dir, sdk_name="python", lifecycle=lifecycle)
        await again.initialize()

        assert log.read_text().splitlines() == ["python main"]

    @pytest.mark.asyncio
    async def test_hooks_skipped_without_sdk_name(self, remote_repo, target_dir) -> None:
        """No SDK name means no lifecycle context and no hook calls."""
        lifecycle = AsyncMock(spec=LifecycleManager)
        manager = make_manager(remote_repo.url, target_dir, lifecycle=lifecycle)

        await manager.initialize()

        assert manager.context() is None
        lifecycle.run.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_post_clone_receives_context(self, remote_repo, target_dir) -> None:
        """The hook context carries the absolute path, branch and SDK name."""
        lifecycle = AsyncMock(spec=LifecycleManager)
        manager = make_manager(remote_repo.url, target_dir, sdk_name="python", lifecycle=lifecycle)

        await manager.initialize()

        lifecycle.run.assert_awaited_once_with(
            HookPoint.POST_CLONE,
            LifecycleContext(path=str(target_dir.resolve()), branch="main", name="python"),
        )

    @pytest.mark.asyncio
    async def test_waits_for_branch_to_appear(self, remote_repo, target_dir, run_git) -> None:
        """Initialization blocks until the tracked branch is pushed."""
        manager = make_manager(
            remote_repo.url, target_dir, branch="cli/abcd1234", branch_wait_interval=0.05
        )

        task = asyncio.create_task(manager.initialize())
        await asyncio.sleep(0.3)
        assert not task.done()

        pushed = remote_repo.commit({"late.txt": "generated\n"}, branch="cli/abcd1234")
        await asyncio.wait_for(task, timeout=15)

        assert run_git(target_dir, "rev-parse", "HEAD") == pushed
        assert (target_dir / "late.txt").exists()

    @pytest.mark.asyncio
    async def test_branch_wait_timeout(self, remote_repo, target_dir) -> None:
        """An optional timeout turns an endless wait into a clone failure."""
        manager = make_manager(
            remote_repo.url,
            target_dir,
            branch="never",
            branch_wait_interval=0.05,
            branch_wait_timeout=0.2,
        )

        with pytest.raises(CloneError, match="Failed to clone SDK repository") as exc_info:
            await manager.initialize()

        assert isinstance(exc_info.value.cause, BranchWaitTimeout)

    @pytest.mark.asyncio
    async def test_unreachable_remote(self, tmp_path, target_dir) -> None:
        """A remote that cannot be fetched is a clone failure naming the URL."""
        url = str(tmp_path / "missing.git")
        manager = make_manager(url, target_dir)

        with pytest.raises(CloneError, match="missing.git"):
            await manager.initialize()


class TestExistingClone:
    """Tests for initializing a directory that already holds a clone."""

    @pytest.mark.asyncio
    async def test_different_repository_is_rejected(
        self, remote_repo, other_remote, target_dir, run_git
    ) -> None:
        """A clone of another repository is never touched."""
        run_git(target_dir.parent.parent, "clone", other_remote.url, str(target_dir))
        manager = make_manager(remote_repo.url, target_dir)

        with pytest.raises(RepositoryMismatchError) as exc_info:
            await manager.initialize()

        message = str(exc_info.value)
        assert other_remote.url in message
        assert remote_repo.url in message
        assert "remove the directory manually" in message

    @pytest.mark.asyncio
    async def test_same_repository_is_updated(self, remote_repo, target_dir, run_git) -> None:
        """An existing clone of the same repository is pulled forward."""
        run_git(target_dir.parent.parent, "clone", remote_repo.url, str(target_dir))
        new_head = remote_repo.commit({"src/client.py": "VERSION = 2\n"})

        manager = make_manager(remote_repo.url, target_dir)
        await manager.initialize()

        assert run_git(target_dir, "rev-parse", "HEAD") == new_head
        assert manager.last_commit_hash == new_head

    @pytest.mark.asyncio
    async def test_switches_branch_keeping_local_changes(
        self, remote_repo, synced, target_dir, run_git
    ) -> None:
        """Switching the tracked branch stashes and restores local work."""
        remote_repo.commit({"feature.txt": "feature\n"}, branch="feature")
        (target_dir / "scratch.txt").write_text("my notes\n")

        manager = make_manager(remote_repo.url, target_dir, branch="feature")
        await manager.initialize()

        assert run_git(target_dir, "rev-parse", "--abbrev-ref", "HEAD") == "feature"
        assert (target_dir / "feature.txt").exists()
        assert (target_dir / "scratch.txt").read_text() == "my notes\n"
        assert run_git(target_dir, "stash", "list") == ""


class TestChangeDetection:
    """Tests for has_new_changes."""

    @pytest.mark.asyncio
    async def test_no_changes_after_clone(self, synced) -> None:
        assert await synced.has_new_changes() is False

    @pytest.mark.asyncio
    async def test_remote_commit_is_detected_and_cleared_by_pull(
        self, remote_repo, synced
    ) -> None:
        """A new remote commit is reported until it has been pulled."""
        remote_repo.commit({"src/client.py": "VERSION = 2\n"})

        assert await synced.has_new_changes() is True
        result = await synced.pull()

        assert result.updated
        assert result.new_hash == remote_repo.head()
        assert await synced.has_new_changes() is False


class TestPull:
    """Tests for pull with and without local changes."""

    @pytest.mark.asyncio
    async def test_pull_preserves_local_changes(
        self, remote_repo, synced, target_dir, run_git
    ) -> None:
        """Tracked edits and untracked files survive a pull."""
        remote_repo.commit({"src/client.py": "VERSION = 2\n"})
        (target_dir / "README.md").write_text("# Acme SDK\n\nlocal notes\n")
        (target_dir / "untracked.txt").write_text("scratch\n")

        result = await synced.pull()

        assert result.stashed is True
        assert (target_dir / "src" / "client.py").read_text() == "VERSION = 2\n"
        assert (target_dir / "README.md").read_text() == "# Acme SDK\n\nlocal notes\n"
        assert (target_dir / "untracked.txt").read_text() == "scratch\n"
        assert run_git(target_dir, "stash", "list") == ""

    @pytest.mark.asyncio
    async def test_clean_pull_does_not_stash(self, remote_repo, synced) -> None:
        remote_repo.commit({"src/client.py": "VERSION = 2\n"})

        result = await synced.pull()

        assert result.stashed is False
        assert result.summary().startswith("Updated from ")

    @pytest.mark.asyncio
    async def test_post_update_hook_runs_after_pull(self, remote_repo, target_dir) -> None:
        lifecycle = AsyncMock(spec=LifecycleManager)
        manager = make_manager(remote_repo.url, target_dir, sdk_name="python", lifecycle=lifecycle)
        await manager.initialize()
        lifecycle.run.reset_mock()

        remote_repo.commit({"src/client.py": "VERSION = 2\n"})
        await manager.pull()

        lifecycle.run.assert_awaited_once()
        assert lifecycle.run.await_args.args[0] == HookPoint.POST_UPDATE

    @pytest.mark.asyncio
    async def test_failed_pull_with_local_changes_needs_manual_steps(
        self, tmp_path, synced, target_dir, run_git
    ) -> None:
        """A failed pull restores the stash and reports four recovery steps."""
        run_git(target_dir, "remote", "set-url", "origin", str(tmp_path / "gone.git"))
        (target_dir / "README.md").write_text("# Acme SDK\n\nlocal notes\n")

        with pytest.raises(ManualInterventionRequired) as exc_info:
            await synced.pull()

        error = exc_info.value
        assert error.steps == [
            "Stash your changes: git stash",
            "Pull latest changes: git pull",
            "Reapply your changes: git stash pop",
            "Resolve any conflicts",
        ]
        assert error.format_steps()[0] == "1. Stash your changes: git stash"
        assert (target_dir / "README.md").read_text() == "# Acme SDK\n\nlocal notes\n"
        assert run_git(target_dir, "stash", "list") == ""
        assert synced.state == RepoState.MANUAL_INTERVENTION_REQUIRED

    @pytest.mark.asyncio
    async def test_failed_pull_without_local_changes_is_transient(
        self, tmp_path, synced, target_dir, run_git
    ) -> None:
        """With nothing stashed, a failed pull is an ordinary sync error."""
        run_git(target_dir, "remote", "set-url", "origin", str(tmp_path / "gone.git"))

        with pytest.raises(SyncError, match="Failed to pull changes"):
            await synced.pull()

        assert synced.state == RepoState.SYNCED

    @pytest.mark.asyncio
    async def test_conflicting_local_changes_stay_in_stash(
        self, remote_repo, synced, target_dir, run_git
    ) -> None:
        """When the stash cannot be reapplied cleanly it is kept for the user."""
        remote_repo.commit({"README.md": "# Acme SDK (remote)\n"})
        (target_dir / "README.md").write_text("# Acme SDK (local)\n")

        with pytest.raises(ManualInterventionRequired) as exc_info:
            await synced.pull()

        assert exc_info.value.header.startswith("Your changes are preserved in the stash")
        assert "stash@{0}" in run_git(target_dir, "stash", "list")
        assert synced.state == RepoState.MANUAL_INTERVENTION_REQUIRED


class TestLocking:
    """Tests for serialization of git operations."""

    @pytest.mark.asyncio
    async def test_operations_do_not_overlap(self, remote_repo, target_dir) -> None:
        manager = make_manager(remote_repo.url, target_dir)
        active = 0
        peak = 0

        async def slow_check() -> bool:
            nonlocal active, peak
            active += 1
            peak = max(peak, active)
            await asyncio.sleep(0.05)
            active -= 1
            return False

        manager.detector.has_new_changes = slow_check  # type: ignore[method-assign]

        await asyncio.gather(*(manager.has_new_changes() for _ in range(3)))

        assert peak == 1
