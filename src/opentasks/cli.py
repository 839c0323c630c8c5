"""
Command line interface for open-tasks.

Every registered operation is a subcommand:

    open-tasks store "Hello" --token greeting
    open-tasks replace "{{greeting}}, world" --ref greeting --token message

The CLI is the composition root: it loads configuration, wires the
infrastructure adapters into a WorkflowContext and hands the command to a
CommandRunner.
"""

from __future__ import annotations

import asyncio
import logging
import sys
from dataclasses import dataclass
from pathlib import Path

import click

from opentasks import __version__, console
from opentasks.application import CommandRunner, ReferenceManager, WorkflowContext
from opentasks.domain.exceptions import ConfigurationError, ValidationError
from opentasks.domain.interfaces import OperationInterface
from opentasks.domain.models import InvocationResult, WorkflowSettings
from opentasks.infrastructure import (
    FilesystemOutputMaterializer,
    InMemoryStore,
    OperationRegistry,
    load_config,
    rehydrate_references,
)
from opentasks.logging_setup import setup_logging

logger = logging.getLogger(__name__)


@dataclass
class CliState:
    """Objects shared by the group and its subcommands."""

    settings: WorkflowSettings


async def invoke_operation(
    settings: WorkflowSettings,
    name: str,
    args: tuple[str, ...] | list[str],
    refs: tuple[str, ...] | list[str],
    token: str | None,
) -> InvocationResult:
    """Wire the adapters for one invocation and run a single command."""
    references = ReferenceManager()
    rehydrate_references(references, settings.output_dir)

    memory = InMemoryStore(settings.default_file_extension, settings.timestamp_format)
    materializer = FilesystemOutputMaterializer(
        settings.output_dir, settings.timestamp_format, cwd=settings.cwd
    )
    async with WorkflowContext(memory, materializer, references, settings) as context:
        runner = CommandRunner(context, OperationRegistry())
        return await runner.invoke(name, list(args), list(refs), token)


def _operation_command(
    name: str, operation_class: type[OperationInterface]
) -> click.Command:
    """Build the click subcommand for a registered operation."""
    epilog = ""
    if operation_class.examples:
        epilog = "Examples:\n\n" + "\n\n".join(
            f"  {example}" for example in operation_class.examples
        )

    @click.command(
        name=name,
        help=operation_class.description or None,
        epilog=epilog or None,
        context_settings={"ignore_unknown_options": True},
    )
    @click.argument("args", nargs=-1, type=click.UNPROCESSED)
    @click.option(
        "--ref",
        "refs",
        multiple=True,
        metavar="TOKEN",
        help="Reference to pass to the operation (repeatable, order kept)",
    )
    @click.option("--token", default=None, help="Name to bind to the output")
    @click.pass_obj
    def command(
        state: CliState,
        args: tuple[str, ...],
        refs: tuple[str, ...],
        token: str | None,
    ) -> None:
        result = asyncio.run(invoke_operation(state.settings, name, args, refs, token))
        if not result.succeeded:
            console.print_failure(result)
            sys.exit(1)
        console.print_result(result)

    return command


class OperationGroup(click.Group):
    """Click group exposing registered operations as subcommands."""

    def list_commands(self, ctx: click.Context) -> list[str]:
        return sorted(set(super().list_commands(ctx)) | set(OperationRegistry.available()))

    def get_command(self, ctx: click.Context, cmd_name: str) -> click.Command | None:
        command = super().get_command(ctx, cmd_name)
        if command is not None:
            return command
        try:
            operation_class = OperationRegistry.get(cmd_name)
        except ValidationError:
            return None
        return _operation_command(cmd_name, operation_class)


@click.group(cls=OperationGroup)
@click.version_option(__version__, prog_name="open-tasks")
@click.option(
    "--config",
    "config_file",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Extra config file applied over the project config",
)
@click.option(
    "--cwd",
    default=None,
    type=click.Path(file_okay=False, exists=True, path_type=Path),
    help="Working directory (default: current directory)",
)
@click.option(
    "--log-file",
    default=None,
    type=click.Path(dir_okay=False, path_type=Path),
    help="Path to log file",
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    help="Enable verbose (DEBUG) logging to console",
)
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: Path | None,
    cwd: Path | None,
    log_file: Path | None,
    verbose: bool,
) -> None:
    """Chain operations through named references."""
    setup_logging(verbose=verbose, log_file=log_file)
    working_dir = (cwd or Path.cwd()).resolve()
    try:
        settings = load_config(working_dir, config_file=config_file)
    except ConfigurationError as e:
        console.print_error(str(e), hint="Check .open-tasks/.config.json")
        sys.exit(1)

    console.configure(settings.colors)
    logger.debug("Output directory: %s", settings.output_dir)
    ctx.obj = CliState(settings=settings)


@cli.command(name="list")
def list_operations() -> None:
    """List the available operations."""
    console.print_operations(
        OperationRegistry.describe(name) for name in OperationRegistry.available()
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
