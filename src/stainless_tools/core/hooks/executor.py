"""
Hook executor for lifecycle commands.

Runs a configured shell command with the SDK context passed via environment
variables. Output is streamed in chunks to this process's stdout/stderr
as it is produced (so long-running installs show progress) and also captured
into the returned :class:`HookResult`.

Stdin is inherited, so interactive commands keep working.

Usage:
    from stainless_tools.core.hooks.executor import HookRunner
    from stainless_tools.core.hooks.models import HookPoint, LifecycleContext

    runner = HookRunner()
    context = LifecycleContext(path="/work/sdks/python", branch="main", name="python")
    result = await runner.run("npm install", context, HookPoint.POST_CLONE)
"""

from __future__ import annotations

import asyncio
import codecs
import contextlib
import logging
import os
import sys
import time
from typing import TextIO

from stainless_tools.core.exceptions import HookError
from stainless_tools.core.hooks.models import HookPoint, HookResult, LifecycleContext

logger = logging.getLogger(__name__)

READ_CHUNK_SIZE = 4096


class HookRunner:
    """
    Runs lifecycle commands through the shell.

    Attributes:
        stdout: Stream command stdout is copied to
        stderr: Stream command stderr is copied to
    """

    def __init__(self, stdout: TextIO | None = None, stderr: TextIO | None = None):
        self.stdout = stdout
        self.stderr = stderr

    async def run(
        self,
        command: str,
        context: LifecycleContext,
        point: HookPoint | str = "hook",
    ) -> HookResult:
        """
        Run ``command`` with ``context`` exported to its environment.

        Args:
            command: Shell command line
            context: SDK path, branch and name for the command
            point: Hook point, used in messages

        Returns:
            HookResult with captured output

        Raises:
            HookError: If the command cannot be started or exits non-zero
        """
        label = point.value if isinstance(point, HookPoint) else point
        logger.info("Executing %s command: %s", label, command)

        start_time = time.monotonic()
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                env=self._build_environment(context),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise HookError(f"Failed to execute {label} command: {command}") from e

        try:
            stdout, stderr = await asyncio.gather(
                self._pump(process.stdout, self.stdout or sys.stdout),
                self._pump(process.stderr, self.stderr or sys.stderr),
            )
            exit_code = await process.wait()
        except Exception as e:
            raise HookError(f"Failed to execute {label} command: {command}") from e
        finally:
            if process.returncode is None:
                with contextlib.suppress(ProcessLookupError):
                    process.kill()
                await process.wait()

        result = HookResult(
            command=command,
            exit_code=exit_code,
            stdout=stdout,
            stderr=stderr,
            duration_seconds=time.monotonic() - start_time,
        )

        if result.failed:
            raise HookError(
                f"Failed to execute {label} command: {command}",
                exit_code=exit_code,
                stderr=stderr.strip(),
            ) from RuntimeError(f"Command {label} exited with code {exit_code}")

        logger.info("Successfully executed %s command", label)
        return result

    @staticmethod
    async def _pump(stream: asyncio.StreamReader | None, sink: TextIO) -> str:
        """Copy ``stream`` to ``sink`` as it arrives and return everything read."""
        if stream is None:
            return ""
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        chunks: list[str] = []
        while True:
            data = await stream.read(READ_CHUNK_SIZE)
            text = decoder.decode(data, final=not data)
            if text:
                chunks.append(text)
                sink.write(text)
                sink.flush()
            if not data:
                break
        return "".join(chunks)

    @staticmethod
    def _build_environment(context: LifecycleContext) -> dict[str, str]:
        """
        Build environment dictionary for hook execution.

        Includes the current process environment plus the SDK context.
        """
        env = os.environ.copy()
        env["FORCE_COLOR"] = "true"
        env.update(context.to_env())
        return env
