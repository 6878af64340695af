"""
stainless-tools CLI - Main application entry point.

This module sets up the Typer CLI application with all subcommands.
"""

import logging
import sys

import typer
from rich.console import Console

from stainless_tools import __version__
from stainless_tools.cli import generate, publish_specs
from stainless_tools.core.config.env import load_layered_env

DEBUG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Create the main Typer app
app = typer.Typer(
    name="stainless-tools",
    help="Generate Stainless SDKs locally and keep them in sync with your OpenAPI spec",
    no_args_is_help=True,
    add_completion=True,
    context_settings={"help_option_names": ["--help", "-h"]},
)

console = Console()


def setup_logging(debug: bool) -> None:
    """Configure root logging once for the process."""
    if debug:
        logging.basicConfig(level=logging.DEBUG, format=DEBUG_FORMAT, stream=sys.stderr)
    else:
        logging.basicConfig(level=logging.INFO, format="%(message)s", stream=sys.stderr)
        # git subprocess chatter is only useful when debugging
        logging.getLogger("git").setLevel(logging.WARNING)


@app.callback()
def main(
    ctx: typer.Context,
    debug: bool = typer.Option(
        False,
        "--debug",
        help="Enable debug output with detailed logging",
    ),
) -> None:
    """
    stainless-tools - local SDK generation with Stainless.

    Publishes your OpenAPI spec to Stainless, clones the generated SDK and
    pulls every new SDK commit while keeping your local edits.

    Quick Start:
        1. Create stainless-tools.json with your SDK repositories
        2. export STAINLESS_API_KEY=...
        3. stainless-tools generate python -o openapi.yaml -p my-project
    """
    # Precedence: OS env > project .env > user .env
    load_layered_env()
    setup_logging(debug)

    ctx.obj = {"debug": debug}


app.command(name="generate")(generate.generate)
app.command(name="publish-specs")(publish_specs.publish_specs)


@app.command()
def version() -> None:
    """Show stainless-tools version and exit."""
    console.print(f"stainless-tools version {__version__}")
    raise typer.Exit(0)


def cli_main() -> None:
    """Main CLI entry point."""
    app()


__all__ = ["app", "cli_main"]
