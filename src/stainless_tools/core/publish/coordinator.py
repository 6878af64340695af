"""
Debounced publish coordinator.

Turns bursts of file-change notifications for the OpenAPI spec and the
Stainless config into single uploads:

- every change cancels the pending timer and schedules a new one, so only
  the last change of a burst leads to a publish
- at most one publish is in flight; changes that arrive while publishing are
  dropped
- a failed publish is logged and the watch loop keeps running

All state (timer handle, publishing flag, watcher) lives on the instance.
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Callable
from pathlib import Path

from stainless_tools.core.exceptions import (
    ConfigurationError,
    PublishError,
    SpecReadError,
    StainlessError,
)
from stainless_tools.core.hooks.lifecycle import LifecycleManager
from stainless_tools.core.hooks.models import LifecycleContext
from stainless_tools.core.publish.api import StainlessApi
from stainless_tools.core.publish.watcher import FileWatcher

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 1.0


class PublishCoordinator:
    """
    Watches spec files and publishes them to Stainless after a quiet period.

    Attributes:
        publisher: Stainless API client
        branch: SDK branch the specs are published for
        debounce_seconds: Quiet period before a publish starts
    """

    def __init__(
        self,
        publisher: StainlessApi,
        *,
        branch: str,
        open_api_file: Path | str | None = None,
        stainless_config_file: Path | str | None = None,
        project_name: str | None = None,
        guess_config: bool = False,
        lifecycle: LifecycleManager | None = None,
        sdk_name: str | None = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
        watcher: FileWatcher | None = None,
        on_published: Callable[[], None] | None = None,
    ) -> None:
        self.publisher = publisher
        self.branch = branch
        self.open_api_file = Path(open_api_file) if open_api_file else None
        self.stainless_config_file = Path(stainless_config_file) if stainless_config_file else None
        self.project_name = project_name
        self.guess_config = guess_config
        self.lifecycle = lifecycle
        self.sdk_name = sdk_name
        self.debounce_seconds = debounce_seconds
        self.on_published = on_published

        self._watcher = watcher
        self._watching = False
        self._publishing = False
        self._timer: asyncio.TimerHandle | None = None
        self._publish_task: asyncio.Task[None] | None = None

    @property
    def is_watching(self) -> bool:
        return self._watching

    @property
    def is_publishing(self) -> bool:
        return self._publishing

    @property
    def watched_paths(self) -> list[Path]:
        return [p for p in (self.open_api_file, self.stainless_config_file) if p is not None]

    def start(self, paths: list[Path] | None = None) -> None:
        """
        Start watching ``paths`` (the spec and config files by default).

        No-op when there is nothing to watch or the coordinator is already
        watching. Must be called from a running event loop.
        """
        if self._watching:
            return
        paths = list(paths) if paths is not None else self.watched_paths
        if not paths:
            return

        if self._watcher is None:
            self._watcher = FileWatcher(paths)
        self._watcher.on_change(self.handle_change)
        self._watcher.start()
        self._watching = True
        logger.debug("Watching %s for changes", ", ".join(str(p) for p in paths))

    async def stop(self) -> None:
        """Cancel any pending publish timer and stop watching. Idempotent."""
        self._cancel_timer()
        if self._watcher is not None:
            await self._watcher.stop()
        self._watching = False

        task, self._publish_task = self._publish_task, None
        if task is not None and not task.done():
            await asyncio.gather(task, return_exceptions=True)

    def handle_change(self, path: Path) -> None:
        """
        React to a change notification for ``path``.

        Cancels the pending timer (if any), drops the event when a publish is
        already running, and otherwise schedules a publish after the quiet
        period.
        """
        self._cancel_timer()
        if self._publishing:
            logger.debug("Publish in progress, ignoring change to %s", path)
            return

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self.debounce_seconds, self._on_timer, path)

    def _on_timer(self, path: Path) -> None:
        self._timer = None
        if self._publishing:
            return
        self._publishing = True
        logger.info("Detected changes in %s, publishing to Stainless API...", path)
        self._publish_task = asyncio.get_running_loop().create_task(self._publish_in_background())

    async def _publish_in_background(self) -> None:
        try:
            await self.publish_files()
        except StainlessError as e:
            cause = f" ({e.cause})" if e.cause else ""
            logger.error("Failed to publish changes: %s%s", e, cause)
        except Exception:
            logger.exception("Failed to publish changes")
        else:
            logger.info(
                "Successfully published changes to Stainless API. "
                "Please wait up to a minute for new SDK updates."
            )
            if self.on_published is not None:
                self.on_published()
        finally:
            self._publishing = False

    async def publish_files(self) -> None:
        """
        Run the pre-publish hook, read the files and upload them.

        Raises:
            ConfigurationError: If no OpenAPI file is configured
            HookError: If the pre-publish hook fails
            SpecReadError: If either file cannot be read
            PublishError: If the upload fails
        """
        if self.open_api_file is None:
            raise ConfigurationError("OpenAPI specification file is required")

        if self.lifecycle is not None and self.sdk_name:
            await self.lifecycle.pre_publish_spec(
                LifecycleContext(path=os.getcwd(), branch=self.branch, name=self.sdk_name)
            )

        spec = await _read_file(self.open_api_file, "OpenAPI")
        config = None
        if self.stainless_config_file is not None:
            config = await _read_file(self.stainless_config_file, "Stainless config")

        try:
            await self.publisher.publish(
                spec=spec,
                config=config,
                branch=self.branch,
                project_name=self.project_name,
                guess_config=self.guess_config,
            )
        except StainlessError:
            raise
        except Exception as e:
            raise PublishError(f"Failed to publish {self._describe_files()} to Stainless API") from e

    def _describe_files(self) -> str:
        files = [f"OpenAPI ({self.open_api_file})"]
        if self.stainless_config_file is not None:
            files.append(f"Stainless config ({self.stainless_config_file})")
        return " and ".join(files)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


async def _read_file(path: Path, label: str) -> bytes:
    try:
        return await asyncio.to_thread(path.read_bytes)
    except OSError as e:
        raise SpecReadError(label, str(path)) from e
