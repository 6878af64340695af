"""
Hook data models.

Defines the context handed to lifecycle commands, the hook points they can be
attached to, and the result of running one.

Context is passed to commands through environment variables:
- STAINLESS_TOOLS_SDK_PATH: absolute path of the SDK working tree
- STAINLESS_TOOLS_SDK_BRANCH: tracked branch
- STAINLESS_TOOLS_SDK_REPO_NAME: SDK name (e.g. "python")
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class HookPoint(str, Enum):
    """Points in the SDK lifecycle where a command can run."""

    POST_CLONE = "postClone"
    POST_UPDATE = "postUpdate"
    PRE_PUBLISH_SPEC = "prePublishSpec"


class LifecycleContext(BaseModel):
    """
    Context for a lifecycle command.

    Built fresh from engine (or coordinator) state for each hook call.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(description="Absolute path to the SDK repository directory")
    branch: str = Field(description="Current git branch name")
    name: str = Field(description="Name of the SDK (e.g. 'typescript', 'python')")

    def to_env(self) -> dict[str, str]:
        """Environment variables describing this context."""
        return {
            "STAINLESS_TOOLS_SDK_PATH": self.path,
            "STAINLESS_TOOLS_SDK_BRANCH": self.branch,
            "STAINLESS_TOOLS_SDK_REPO_NAME": self.name,
        }


class HookResult(BaseModel):
    """Result of running a lifecycle command."""

    command: str = Field(description="Shell command that was run")
    exit_code: int = Field(default=0, description="Exit code of the command")
    stdout: str = Field(default="", description="Captured standard output")
    stderr: str = Field(default="", description="Captured standard error")
    duration_seconds: float = Field(description="Execution duration")
    timestamp: datetime = Field(default_factory=datetime.now, description="When the hook ran")

    @property
    def success(self) -> bool:
        return self.exit_code == 0

    @property
    def failed(self) -> bool:
        """Check if hook execution failed."""
        return not self.success
