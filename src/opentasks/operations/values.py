"""
Operations that bring values in and out of the workflow.
"""

import asyncio
import logging
from collections.abc import Sequence
from pathlib import Path

from opentasks.domain.decorators import Metadata
from opentasks.domain.exceptions import WriteError
from opentasks.domain.interfaces import OperationInterface, WorkflowContextInterface
from opentasks.domain.models import Output, ReferenceHandle
from opentasks.operations.base import (
    provenance,
    require_args,
    require_refs,
    split_flags,
)

logger = logging.getLogger(__name__)


class StoreOperation(OperationInterface):
    """Stores a literal value."""

    name = "store"
    description = "Store a literal value"
    examples = (
        'open-tasks store "Hello World" --token greeting',
        "open-tasks store production --token env",
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        require_args(self.name, args, "a VALUE argument")
        return [Output(" ".join(args), (Metadata({"operation": self.name}),))]


class LoadOperation(OperationInterface):
    """Reads a file; ``--binary`` keeps the raw bytes."""

    name = "load"
    description = "Load a file into a reference"
    examples = (
        "open-tasks load ./README.md --token readme",
        "open-tasks load ./logo.png --binary --token logo",
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        positional, flags = split_flags(args, {"--binary"})
        require_args(self.name, positional, "a PATH argument")
        entry = await context.load(positional[0], binary="--binary" in flags)
        return [
            Output(
                entry.content,
                (Metadata({**entry.metadata, "operation": self.name}),),
            )
        ]


class WriteOperation(OperationInterface):
    """Writes the first reference to a path outside the output directory."""

    name = "write"
    description = "Write a reference's content to a file"
    examples = ("open-tasks write ./out/report.md --ref report",)

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        require_args(self.name, args, "a PATH argument")
        require_refs(self.name, refs)

        target = Path(args[0]).expanduser()
        if not target.is_absolute():
            target = context.settings.cwd / target
        source = refs[0]
        if isinstance(source.content, bytes):
            data = source.content
        else:
            data = source.content.encode("utf-8")

        def _write() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)

        try:
            await asyncio.to_thread(_write)
        except OSError as e:
            raise WriteError(str(target), e.strerror or str(e)) from e

        logger.info("Wrote %s to %s", source.label, target)
        return [Output(str(target.resolve()), (provenance(self.name, refs),))]
