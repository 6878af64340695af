"""
stainless-tools publish-specs - upload specs once.
"""

from __future__ import annotations

import asyncio

import typer
from rich.console import Console

from stainless_tools.cli.errors import ExitCode, print_error, print_stainless_error
from stainless_tools.cli.options import resolve_sdk_options
from stainless_tools.core.exceptions import StainlessError
from stainless_tools.core.hooks.lifecycle import LifecycleManager
from stainless_tools.core.publish.api import StainlessApi
from stainless_tools.core.publish.coordinator import PublishCoordinator

console = Console()


def publish_specs(
    sdk_name: str = typer.Argument(..., help="Name of the SDK to publish specs for"),
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
) -> None:
    """
    Publish the OpenAPI spec (and Stainless config) to Stainless once.

    Examples:
        stainless-tools publish-specs python -o openapi.yaml -p acme
        stainless-tools publish-specs python -b main -s stainless.yaml
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
        )
        if options.open_api_file is None:
            print_error(
                "OpenAPI specification file is required",
                solution="stainless-tools publish-specs <sdk> --open-api-file openapi.yaml",
            )
            raise typer.Exit(ExitCode.GENERAL_ERROR)

        console.print(f"\nPublishing specs for {sdk_name} (branch {options.branch})", highlight=False)
        coordinator = PublishCoordinator(
            StainlessApi(),
            branch=options.branch,
            open_api_file=options.open_api_file,
            stainless_config_file=options.stainless_config_file,
            project_name=options.project_name,
            guess_config=options.guess_config,
            lifecycle=LifecycleManager(options.lifecycle),
            sdk_name=sdk_name,
        )
        asyncio.run(coordinator.publish_files())
    except StainlessError as e:
        print_stainless_error(e)
        raise typer.Exit(ExitCode.GENERAL_ERROR)

    console.print("[green]✓[/green] Published specs to Stainless")
