"""
File watch subscription.

Watches a fixed set of files with ``watchfiles.awatch`` in a background task
and notifies subscribers with the path of each file that changed.

The parent directories are watched rather than the files themselves, so
editors that save by writing a temporary file and renaming it over the
original are still seen. ``step_ms`` is the write-stability window: a burst
of writes is only reported once no further change has arrived for that long,
so partially written files are not reported.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable
from pathlib import Path

import watchfiles

logger = logging.getLogger(__name__)

ChangeHandler = Callable[[Path], None]

DEFAULT_STEP_MS = 500
DEFAULT_DEBOUNCE_MS = 5000


class FileWatcher:
    """
    Runs a watch loop over specific files and fans changes out to handlers.

    Example:
        >>> watcher = FileWatcher([Path("openapi.yaml")])
        >>> watcher.on_change(lambda path: print(f"{path} changed"))
        >>> watcher.start()
        >>> ...
        >>> await watcher.stop()
    """

    def __init__(
        self,
        paths: Iterable[Path],
        *,
        step_ms: int = DEFAULT_STEP_MS,
        debounce_ms: int = DEFAULT_DEBOUNCE_MS,
        force_polling: bool | None = None,
    ) -> None:
        self.paths = [Path(p).resolve() for p in paths]
        self.step_ms = step_ms
        self.debounce_ms = debounce_ms
        self.force_polling = force_polling

        self._handlers: list[ChangeHandler] = []
        self._task: asyncio.Task[None] | None = None
        self._stop_event: asyncio.Event | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_change(self, handler: ChangeHandler) -> None:
        """Subscribe ``handler`` to change notifications."""
        self._handlers.append(handler)

    def start(self) -> None:
        """
        Start the watch loop on the running event loop.

        No-op if already running or if none of the watched files has an
        existing parent directory.
        """
        if self.is_running:
            return

        directories = sorted({p.parent for p in self.paths if p.parent.is_dir()})
        if not directories:
            logger.warning("Nothing to watch: no parent directory of %s exists", self.paths)
            return

        self._stop_event = asyncio.Event()
        self._task = asyncio.get_running_loop().create_task(self._run(directories))
        logger.debug("Watching %s", ", ".join(str(p) for p in self.paths))

    async def stop(self) -> None:
        """Stop the watch loop and wait for it to finish. Idempotent."""
        if self._stop_event is not None:
            self._stop_event.set()
        task, self._task = self._task, None
        if task is not None:
            try:
                await asyncio.wait_for(task, timeout=5.0)
            except asyncio.TimeoutError:
                task.cancel()
            except Exception:
                logger.exception("File watcher stopped with an error")
        self._stop_event = None

    async def _run(self, directories: list[Path]) -> None:
        targets = {str(p) for p in self.paths}

        def _filter(change: watchfiles.Change, path: str) -> bool:
            return change != watchfiles.Change.deleted and path in targets

        async for changes in watchfiles.awatch(
            *directories,
            watch_filter=_filter,
            step=self.step_ms,
            debounce=self.debounce_ms,
            stop_event=self._stop_event,
            force_polling=self.force_polling,
        ):
            for path in sorted({Path(p) for _, p in changes}):
                self._notify(path)

    def _notify(self, path: Path) -> None:
        for handler in list(self._handlers):
            try:
                handler(path)
            except Exception:
                logger.exception("Failed to handle file change for %s", path)
