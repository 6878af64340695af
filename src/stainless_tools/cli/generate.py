"""
stainless-tools generate - clone an SDK and keep it in sync.

Clones (or updates) the SDK repository, publishes the OpenAPI spec once,
then watches the spec files and polls the SDK repository until interrupted.
"""

from __future__ import annotations

import asyncio
import logging
import signal

import typer
from rich.console import Console

from stainless_tools.cli.errors import (
    ExitCode,
    print_manual_intervention,
    print_stainless_error,
)
from stainless_tools.cli.options import resolve_sdk_options
from stainless_tools.core.exceptions import ManualInterventionRequired, StainlessError
from stainless_tools.core.session import SdkSession, SessionOptions

logger = logging.getLogger(__name__)

console = Console()


def print_settings(options: SessionOptions, sdk_repo_label: str) -> None:
    """Show the resolved settings before starting."""
    console.print(f"\nSDK Repository ({sdk_repo_label}): {options.sdk_repo}", highlight=False)
    console.print(f"Project name: {options.project_name}", highlight=False)
    console.print("\nWatching for changes in the SDK repository...")
    console.print(f"Branch: {options.branch}", highlight=False)
    console.print(f"Target directory: {options.resolved_target_dir()}", highlight=False)
    if options.open_api_file:
        console.print(f"OpenAPI file: {options.open_api_file}", highlight=False)
    if options.stainless_config_file:
        console.print(f"Stainless config file: {options.stainless_config_file}", highlight=False)
    console.print()


def print_listening() -> None:
    console.print("[dim]Listening for new SDK updates...[/dim]")


async def run_session(session: SdkSession) -> None:
    """
    Connect, poll, and block until SIGINT/SIGTERM or a fatal error.

    Signals trigger a clean shutdown. ManualInterventionRequired from the
    poll loop propagates after shutdown.
    """
    loop = asyncio.get_running_loop()
    stop = asyncio.Event()
    installed: list[signal.Signals] = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop.set)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Not supported on this platform; KeyboardInterrupt still works
            pass

    try:
        await session.connect()
        session.poll_for_changes()
        print_listening()

        waiter = asyncio.ensure_future(session.wait())
        stopper = asyncio.ensure_future(stop.wait())
        done, _ = await asyncio.wait({waiter, stopper}, return_when=asyncio.FIRST_COMPLETED)
        stopper.cancel()
        if waiter in done:
            # Re-raises ManualInterventionRequired from the poll loop
            waiter.result()
        else:
            console.print("\nShutting down...")
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)
        await session.shutdown()


def generate(
    sdk_name: str = typer.Argument(..., help="Name of the SDK to generate"),
    branch: str | None = typer.Option(None, "--branch", "-b", help="Git branch to use"),
    target_dir: str | None = typer.Option(
        None, "--target-dir", "-t", help="Directory where the SDK will be generated"
    ),
    open_api_file: str | None = typer.Option(
        None, "--open-api-file", "-o", help="Path to OpenAPI specification file"
    ),
    config: str | None = typer.Option(None, "--config", "-c", help="Path to configuration file"),
    stainless_config_file: str | None = typer.Option(
        None, "--stainless-config-file", "-s", help="Path to Stainless-specific configuration"
    ),
    project_name: str | None = typer.Option(
        None, "--project-name", "-p", help="Name of the project in Stainless"
    ),
    guess_config: bool = typer.Option(
        False, "--guess-config", "-g", help="Use AI to guess configuration"
    ),
    prod: bool = typer.Option(False, "--prod", help="Use production URLs instead of staging"),
    poll_interval: float | None = typer.Option(
        None, "--poll-interval", help="Seconds between checks for new SDK commits"
    ),
) -> None:
    """
    Generate an SDK and keep it in sync.

    Examples:
        stainless-tools generate python
        stainless-tools generate python -b feature/auth -o openapi.yaml -p acme
        stainless-tools generate typescript --prod
    """
    try:
        options, _ = resolve_sdk_options(
            sdk_name,
            branch=branch,
            target_dir=target_dir,
            open_api_file=open_api_file,
            config_file=config,
            stainless_config_file=stainless_config_file,
            project_name=project_name,
            guess_config=guess_config,
            prod=prod,
            poll_interval=poll_interval,
        )
        print_settings(options, "prod" if prod else "staging")
        asyncio.run(run_session(SdkSession(options, on_published=print_listening)))
    except ManualInterventionRequired as e:
        print_manual_intervention(e)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except StainlessError as e:
        print_stainless_error(e)
        raise typer.Exit(ExitCode.GENERAL_ERROR)
    except KeyboardInterrupt:
        console.print("\nShutting down...")
        raise typer.Exit(ExitCode.SUCCESS)
