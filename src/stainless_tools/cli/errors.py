"""
Error output and exit codes for the stainless-tools CLI.

Library code raises StainlessError subclasses; the commands catch them here
and turn them into a red "Error:" line (plus cause), or into the numbered
recovery steps for ManualInterventionRequired, before exiting with status 1.
"""

from enum import IntEnum

from rich.console import Console

from stainless_tools.core.exceptions import ManualInterventionRequired, StainlessError

console = Console(stderr=True)


class ExitCode(IntEnum):
    """Standard exit codes for stainless-tools CLI operations."""

    SUCCESS = 0
    """Operation completed successfully (including Ctrl+C shutdown)."""

    GENERAL_ERROR = 1
    """Startup failure or local changes that need manual resolution."""


def print_error(
    problem: str,
    *,
    reason: str | None = None,
    solution: str | None = None,
) -> None:
    """
    Print a standardized error message with actionable guidance.

    Args:
        problem: Brief description of what went wrong
        reason: Optional explanation of why it happened
        solution: Optional command or action to fix it

    Example:
        >>> print_error(
        ...     "Stainless API key is required",
        ...     solution="export STAINLESS_API_KEY=...",
        ... )
    """
    console.print(f"[red]Error:[/red] {problem}", highlight=False)

    if reason:
        console.print(f"[dim]Caused by: {reason}[/dim]", highlight=False)

    if solution:
        console.print(f"[cyan]→ Try:[/cyan] {solution}", highlight=False)


def print_stainless_error(error: StainlessError) -> None:
    """Print a library error with its underlying cause."""
    cause = error.cause
    print_error(error.message, reason=str(cause) if cause is not None else None)


def print_manual_intervention(error: ManualInterventionRequired) -> None:
    """Print the recovery steps for local changes that need a human."""
    console.print(f"\n[yellow]⚠️  {error.problem}[/yellow]", highlight=False)
    console.print(error.header, highlight=False)
    for line in error.format_steps():
        console.print(line, highlight=False)
