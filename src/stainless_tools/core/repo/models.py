"""
Data models for the repository synchronization engine.

Defines Pydantic models for the tracked repository, commit tip comparisons,
pull results, and the engine state.
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class RepoState(str, Enum):
    """Lifecycle state of a RepoManager."""

    UNINITIALIZED = "uninitialized"
    SYNCED = "synced"
    PULLING = "pulling"
    MANUAL_INTERVENTION_REQUIRED = "manual_intervention_required"


class TrackedRepository(BaseModel):
    """
    The remote SDK repository and the local clone that mirrors it.

    Example:
        >>> repo = TrackedRepository(
        ...     url="git@github.com:stainless-sdks/acme-python.git",
        ...     branch="main",
        ...     target_dir=Path("/work/sdks/acme-python"),
        ... )
    """

    url: str = Field(description="Remote repository URL (SSH or HTTPS)")
    branch: str = Field(description="Branch to track")
    target_dir: Path = Field(description="Local working tree, already templated")
    remote_name: str = Field(default="origin", description="Name of the remote")

    @property
    def remote_ref(self) -> str:
        """Remote-tracking ref for the branch (e.g. ``origin/main``)."""
        return f"{self.remote_name}/{self.branch}"


class CommitHashPair(BaseModel):
    """Local and remote tip hashes for the tracked branch."""

    model_config = ConfigDict(frozen=True)

    local_hash: str
    remote_hash: str

    @property
    def has_changes(self) -> bool:
        """True when the remote tip differs from the local tip."""
        return self.local_hash != self.remote_hash

    @property
    def local_short(self) -> str:
        return self.local_hash[:7]

    @property
    def remote_short(self) -> str:
        return self.remote_hash[:7]


class PullResult(BaseModel):
    """Outcome of a successful pull."""

    old_hash: str = Field(description="Local tip before the pull")
    new_hash: str = Field(description="Local tip after the pull")
    stashed: bool = Field(
        default=False,
        description="Whether local changes were stashed and restored around the pull",
    )

    @property
    def updated(self) -> bool:
        return self.old_hash != self.new_hash

    def summary(self) -> str:
        """One-line description for logs."""
        return f"Updated from {self.old_hash[:7]} to {self.new_hash[:7]}"
