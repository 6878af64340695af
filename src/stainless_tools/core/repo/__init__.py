"""
Repository synchronization.

The engine itself lives in :mod:`stainless_tools.core.repo.manager`; only the
models are re-exported here so the git helpers can import them without
pulling in the engine.
"""

from stainless_tools.core.repo.models import (
    CommitHashPair,
    PullResult,
    RepoState,
    TrackedRepository,
)

__all__ = [
    "CommitHashPair",
    "PullResult",
    "RepoState",
    "TrackedRepository",
]
