"""
Custom exceptions for stainless-tools.

This module defines a hierarchy of exceptions for repository synchronization
and spec publishing, providing structured error handling with context
preservation.

Exception Hierarchy:
    StainlessError (base)
    ├── ConfigurationError (fatal configuration problems)
    │   └── RepositoryMismatchError (target dir holds another repository)
    ├── GitError (a git command failed)
    ├── CloneError (fresh clone failed)
    ├── SyncError (pull/update failed, nothing at risk)
    ├── ChangeDetectionError (fetch/log failed while polling)
    ├── StashError (stash bookkeeping failed)
    ├── BranchWaitTimeout (branch never appeared)
    ├── HookError (lifecycle command failed)
    ├── SpecReadError (spec/config file unreadable)
    ├── PublishError (upload failed)
    │   └── StainlessApiError (backend returned non-2xx)
    └── ManualInterventionRequired (local changes need a human)

The original exception is always chained with ``raise ... from`` so that
``StainlessError.cause`` can be shown to the user.

Example:
    >>> from stainless_tools.core.exceptions import SyncError
    >>> try:
    ...     raise SyncError("Failed to pull changes") from OSError("disk full")
    ... except SyncError as e:
    ...     print(f"{e} (caused by {e.cause})")
    Failed to pull changes (caused by disk full)
"""

from __future__ import annotations


class StainlessError(Exception):
    """
    Base exception for all stainless-tools errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        """
        Initialize an error with message and context.

        Args:
            message: Human-readable error message
            **context: Additional context as keyword arguments
        """
        super().__init__(message)
        self.message = message
        self.context = context

    @property
    def cause(self) -> BaseException | None:
        """The underlying exception, if this error wraps one."""
        return self.__cause__

    def __str__(self) -> str:
        """Return string representation of the error."""
        return self.message


class ConfigurationError(StainlessError):
    """
    Raised for invalid or missing configuration.

    Always fatal: the user has to fix a flag, a config file, or the
    environment before the tool can continue.
    """


class RepositoryMismatchError(ConfigurationError):
    """
    Raised when the target directory is a clone of a different repository.

    Attributes:
        target_dir: Directory that was inspected
        actual_url: Remote URL found in the directory (or None)
        expected_url: Configured SDK repository URL
    """

    def __init__(self, target_dir: str, actual_url: str | None, expected_url: str) -> None:
        super().__init__(
            f"Directory {target_dir} contains a different repository "
            f"({actual_url or 'unknown'}). Expected {expected_url}. "
            "Please remove the directory manually and try again.",
            target_dir=target_dir,
            actual_url=actual_url,
            expected_url=expected_url,
        )
        self.target_dir = target_dir
        self.actual_url = actual_url
        self.expected_url = expected_url


class GitError(StainlessError):
    """Exception raised when a git operation fails."""

    def __init__(self, message: str, command: list[str] | None = None, stderr: str = ""):
        super().__init__(message, command=command, stderr=stderr)
        self.command = command
        self.stderr = stderr


class CloneError(StainlessError):
    """Raised when a fresh clone of the SDK repository cannot be set up."""


class SyncError(StainlessError):
    """Raised when updating an existing clone fails with no local data at risk."""


class ChangeDetectionError(StainlessError):
    """Raised when fetching or reading commit hashes fails during polling."""


class StashError(StainlessError):
    """Raised when stash bookkeeping fails in a way that should never happen."""


class BranchWaitTimeout(StainlessError):
    """Raised when a remote branch does not appear within the allowed time."""

    def __init__(self, branch: str, timeout: float) -> None:
        super().__init__(
            f"Branch '{branch}' did not appear on the remote within {timeout:g}s",
            branch=branch,
            timeout=timeout,
        )
        self.branch = branch
        self.timeout = timeout


class HookError(StainlessError):
    """Raised when a lifecycle command cannot start or exits non-zero."""


class SpecReadError(StainlessError):
    """
    Raised when a specification or config file cannot be read.

    Attributes:
        path: File that failed to read
        label: Which file it was ("OpenAPI" or "Stainless config")
    """

    def __init__(self, label: str, path: str) -> None:
        super().__init__(f"Failed to read {label} file ({path})", label=label, path=path)
        self.label = label
        self.path = path


class PublishError(StainlessError):
    """Raised when publishing specifications to the Stainless API fails."""


class StainlessApiError(PublishError):
    """
    Raised when the Stainless API rejects a request.

    Attributes:
        status_code: HTTP status returned by the API
    """

    def __init__(self, message: str, status_code: int) -> None:
        super().__init__(message, status_code=status_code)
        self.status_code = status_code


class ManualInterventionRequired(StainlessError):
    """
    Raised when local changes can no longer be reconciled automatically.

    Reaching this error means a stash could not be restored cleanly or an
    operation failed while a stash was outstanding. The library never exits
    the process itself; the CLI turns this into exit status 1 after printing
    ``steps``.

    Attributes:
        problem: Short description of what went wrong
        steps: Ordered recovery steps for the user
    """

    def __init__(self, problem: str, steps: list[str], *, header: str | None = None) -> None:
        super().__init__(problem, steps=steps)
        self.problem = problem
        self.steps = list(steps)
        self.header = header or "To resolve:"

    def format_steps(self) -> list[str]:
        """Return the recovery steps numbered from 1."""
        return [f"{i}. {step}" for i, step in enumerate(self.steps, start=1)]
