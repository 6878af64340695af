"""
Git building blocks for the repository synchronization engine.

- GitClient: async facade over GitPython for one working tree
- ChangeDetector: compares local and remote tip hashes
- StashHelper: stash push/pop/apply/list
- BranchWaiter: polls until a remote branch exists
"""

from stainless_tools.core.git.changes import ChangeDetector
from stainless_tools.core.git.client import GitClient
from stainless_tools.core.git.stash import StashHelper
from stainless_tools.core.git.urls import get_repo_path, is_same_repository, is_valid_git_url
from stainless_tools.core.git.waiter import BranchWaiter

__all__ = [
    "BranchWaiter",
    "ChangeDetector",
    "GitClient",
    "StashHelper",
    "get_repo_path",
    "is_same_repository",
    "is_valid_git_url",
]
