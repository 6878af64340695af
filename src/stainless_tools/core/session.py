"""
SDK session orchestration.

An :class:`SdkSession` ties the pieces together for one SDK:

1. ``connect()`` clones or updates the local SDK repository, publishes the
   spec files once (when configured) and starts watching them
2. ``poll_for_changes()`` starts a background loop that pulls new SDK
   commits as Stainless produces them
3. ``shutdown()`` stops both loops and waits for in-flight work

Usage:
    from stainless_tools.core.session import SessionOptions, generate_and_watch_sdk

    session = await generate_and_watch_sdk(
        SessionOptions(
            sdk_name="python",
            sdk_repo="git@github.com:stainless-sdks/acme-python.git",
            branch="main",
            target_dir="./sdks/{sdk}",
            open_api_file=Path("openapi.yaml"),
            project_name="acme",
        )
    )
    try:
        await session.wait()
    finally:
        await session.shutdown()
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from pydantic import BaseModel, Field, field_validator, model_validator

from stainless_tools.core.config.models import LifecycleCommands
from stainless_tools.core.exceptions import ConfigurationError, ManualInterventionRequired, StainlessError
from stainless_tools.core.git.urls import is_valid_git_url
from stainless_tools.core.hooks.lifecycle import LifecycleManager
from stainless_tools.core.publish.api import StainlessApi
from stainless_tools.core.publish.coordinator import PublishCoordinator
from stainless_tools.core.repo.manager import RepoManager
from stainless_tools.core.repo.models import TrackedRepository
from stainless_tools.utils.paths import DEFAULT_TARGET_DIR, get_target_dir

logger = logging.getLogger(__name__)


class SessionOptions(BaseModel):
    """Everything needed to run a session for one SDK."""

    sdk_name: str = Field(description="SDK name (e.g. 'python')")
    sdk_repo: str = Field(description="SDK repository URL")
    branch: str = Field(min_length=1, description="Branch to track and publish to")
    target_dir: str = Field(
        default=DEFAULT_TARGET_DIR,
        min_length=1,
        description="Clone location; supports {sdk}, {env} and {branch}",
    )
    env: str | None = Field(default=None, description="'staging' or 'prod'")
    open_api_file: Path | None = Field(default=None, description="OpenAPI spec to publish")
    stainless_config_file: Path | None = Field(
        default=None, description="Stainless config to publish alongside the spec"
    )
    project_name: str | None = Field(default=None, description="Stainless project name")
    guess_config: bool = Field(default=False, description="Let Stainless guess configuration")
    poll_interval_seconds: float = Field(default=5.0, gt=0, description="Seconds between polls")
    lifecycle: dict[str, LifecycleCommands] = Field(
        default_factory=dict, description="SDK name -> lifecycle commands"
    )
    api_key: str | None = Field(default=None, description="Stainless API key override")
    api_base_url: str | None = Field(default=None, description="Stainless API URL override")

    @field_validator("sdk_repo")
    @classmethod
    def validate_sdk_repo(cls, v: str) -> str:
        if not v:
            raise ValueError("SDK repository URL is required")
        if not is_valid_git_url(v):
            raise ValueError(f"Invalid SDK repository URL: {v}")
        return v

    @model_validator(mode="after")
    def require_spec_with_config(self) -> "SessionOptions":
        if self.stainless_config_file and not self.open_api_file:
            raise ValueError("OpenAPI specification file is required")
        return self

    def resolved_target_dir(self) -> Path:
        """Absolute target directory with template tokens expanded."""
        return Path(
            get_target_dir(
                self.target_dir, sdk_name=self.sdk_name, env=self.env, branch=self.branch
            )
        ).resolve()


class SdkSession:
    """
    Clone/update, publish, watch and poll for one SDK.

    Attributes:
        options: Session options
        engine: Repository synchronization engine
    """

    def __init__(
        self,
        options: SessionOptions,
        *,
        engine: RepoManager | None = None,
        coordinator: PublishCoordinator | None = None,
        publisher: StainlessApi | None = None,
        on_published: Callable[[], None] | None = None,
    ) -> None:
        self.options = options
        self.on_published = on_published
        self.lifecycle = LifecycleManager(options.lifecycle)
        self.engine = engine or RepoManager(
            TrackedRepository(
                url=options.sdk_repo,
                branch=options.branch,
                target_dir=options.resolved_target_dir(),
            ),
            sdk_name=options.sdk_name,
            lifecycle=self.lifecycle,
        )
        self._publisher = publisher
        self._coordinator = coordinator

        self._poll_task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._closed = False

    @property
    def target_dir(self) -> Path:
        return self.engine.target_dir

    @property
    def publisher(self) -> StainlessApi:
        """Stainless API client, created on first use."""
        if self._publisher is None:
            self._publisher = StainlessApi(
                api_key=self.options.api_key, base_url=self.options.api_base_url
            )
        return self._publisher

    @property
    def coordinator(self) -> PublishCoordinator:
        """Publish coordinator for the configured spec files, created on first use."""
        if self._coordinator is None:
            self._coordinator = PublishCoordinator(
                self.publisher,
                branch=self.options.branch,
                open_api_file=self.options.open_api_file,
                stainless_config_file=self.options.stainless_config_file,
                project_name=self.options.project_name,
                guess_config=self.options.guess_config,
                lifecycle=self.lifecycle,
                sdk_name=self.options.sdk_name,
                on_published=self.on_published,
            )
        return self._coordinator

    @property
    def is_polling(self) -> bool:
        return self._poll_task is not None and not self._poll_task.done()

    async def connect(self) -> None:
        """
        Bring the local repository up to date and start watching spec files.

        Raises:
            StainlessError: If cloning, updating or the first publish fails
        """
        if self._closed:
            raise ConfigurationError("Session has been shut down")

        await self.engine.initialize()

        if self.options.open_api_file is not None:
            await self.coordinator.publish_files()
            self.coordinator.start()

    def poll_for_changes(self) -> None:
        """Start the background poll loop. No-op if already polling."""
        if self._closed or self.is_polling:
            return
        self._poll_task = asyncio.get_running_loop().create_task(self._poll_loop())

    async def poll_once(self) -> bool:
        """
        Check for new SDK commits and pull them.

        Returns:
            True if changes were pulled
        """
        if not await self.engine.has_new_changes():
            return False

        logger.info("Detected new changes in SDK repository, pulling updates...")
        await self.engine.pull()
        logger.info("Successfully pulled latest SDK changes.")
        return True

    async def _poll_loop(self) -> None:
        while not self._closed:
            try:
                await asyncio.wait_for(
                    self._stop_event.wait(), timeout=self.options.poll_interval_seconds
                )
            except asyncio.TimeoutError:
                pass
            if self._closed:
                break

            try:
                await self.poll_once()
            except ManualInterventionRequired:
                raise
            except StainlessError as e:
                logger.error("Error: %s", e)
                if e.cause is not None:
                    logger.error("Caused by: %s", e.cause)
            except Exception:
                logger.exception("An unexpected error occurred")

    async def wait(self) -> None:
        """
        Wait until the poll loop ends.

        Raises:
            ManualInterventionRequired: If the loop stopped because local
                changes need manual resolution
        """
        if self._poll_task is not None:
            await self._poll_task

    async def shutdown(self) -> None:
        """Stop polling and watching, waiting for in-flight work. Idempotent."""
        if self._closed:
            return
        self._closed = True
        self._stop_event.set()

        if self._poll_task is not None:
            await asyncio.gather(self._poll_task, return_exceptions=True)
        if self._coordinator is not None:
            await self._coordinator.stop()


async def generate_and_watch_sdk(
    options: SessionOptions, *, on_published: Callable[[], None] | None = None
) -> SdkSession:
    """
    Create a session, connect it and start polling.

    Returns:
        The running session; call ``shutdown()`` when done
    """
    session = SdkSession(options, on_published=on_published)
    await session.connect()
    session.poll_for_changes()
    return session
