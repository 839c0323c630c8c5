"""Rich console output for the open-tasks CLI."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from opentasks.domain.models import InvocationResult, ReferenceHandle

PREVIEW_LENGTH = 200

# Shared console instances
console = Console()
error_console = Console(stderr=True)


def configure(colors: bool) -> None:
    """Recreate the shared consoles with or without colour."""
    global console, error_console
    console = Console(no_color=not colors, highlight=colors)
    error_console = Console(stderr=True, no_color=not colors, highlight=colors)


def preview(handle: ReferenceHandle, limit: int = PREVIEW_LENGTH) -> str:
    """Short printable view of a handle's content."""
    if isinstance(handle.content, bytes):
        return f"<{len(handle.content)} bytes>"
    text = handle.content
    return text if len(text) <= limit else text[:limit] + "..."


def print_error(message: str, hint: str | None = None) -> None:
    """Print formatted error message to stderr."""
    content = Text(f"ERROR: {message}", style="bold red")
    if hint:
        content.append(f"\n\nHint: {hint}", style="yellow")
    error_console.print(Panel(content, title="Error", border_style="red"))


def print_result(result: InvocationResult) -> None:
    """Print the references a successful invocation published."""
    if not result.handles:
        console.print(
            Panel(
                f"{result.command} produced no output",
                title="Success",
                border_style="green",
            )
        )
        return

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="cyan")
    table.add_column("Value")
    for position, handle in enumerate(result.handles):
        if position:
            table.add_row("", "")
        table.add_row("Reference", handle.ref_id)
        table.add_row("Token", handle.token or "-")
        table.add_row("File", str(handle.output_file) if handle.output_file else "-")
        table.add_row("Content", Text(preview(handle)))

    console.print(Panel(table, title=f"{result.command}: success", border_style="green"))


def print_failure(result: InvocationResult) -> None:
    """Print a failed invocation to stderr."""
    error = result.error
    kind = getattr(error, "kind", type(error).__name__)
    content = Text(f"{kind}: {error}", style="bold red")
    if result.error_file:
        content.append(f"\n\nError report: {result.error_file}", style="dim")
    error_console.print(
        Panel(content, title=f"{result.command}: failed", border_style="red")
    )


def print_operations(rows: Iterable[dict[str, Any]]) -> None:
    """Print the registered operations."""
    table = Table(show_header=True, box=None)
    table.add_column("Operation", style="cyan")
    table.add_column("Description")
    for row in rows:
        table.add_row(row["name"], row["description"])
    console.print(table)
