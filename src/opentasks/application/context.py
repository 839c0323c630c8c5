"""
WorkflowContext: the façade operations use to store, load and compose values.

One context serves exactly one CLI invocation. Operations run one at a time;
I/O is awaited but no two operations share the context concurrently, so the
memory store and reference manager need no locking.
"""

import asyncio
import itertools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from types import TracebackType

from opentasks.application.references import ReferenceManager, validate_token
from opentasks.domain.decorators import (
    Decorator,
    Metadata,
    Token,
    requests_materialization,
)
from opentasks.domain.exceptions import FileNotFound, ReadError, ReferenceNotFound
from opentasks.domain.interfaces import (
    MemoryStoreInterface,
    OperationInterface,
    OutputMaterializerInterface,
    WorkflowContextInterface,
)
from opentasks.domain.models import (
    Content,
    Invocation,
    MemoryEntry,
    ReferenceHandle,
    WorkflowSettings,
)

logger = logging.getLogger(__name__)

# Shared by every context in the process so generated tokens never repeat.
_token_counter = itertools.count(1)


@dataclass
class _Frame:
    """An invocation in progress and the handles it has published."""

    invocation: Invocation
    handles: list[ReferenceHandle] = field(default_factory=list)


class WorkflowContext(WorkflowContextInterface):
    """
    Composes the memory store, decorator pipeline, materializer and
    reference manager behind the store/load/transform/run operations.
    """

    def __init__(
        self,
        memory: MemoryStoreInterface,
        materializer: OutputMaterializerInterface,
        references: ReferenceManager | None = None,
        settings: WorkflowSettings | None = None,
    ):
        """
        Args:
            memory: Per-invocation memory store
            materializer: Writes outputs to invocation directories
            references: Reference manager (a fresh one if None)
            settings: Effective configuration (defaults if None)
        """
        self._memory = memory
        self._materializer = materializer
        self._references = references if references is not None else ReferenceManager()
        self._settings = settings or WorkflowSettings()
        self._frames: list[_Frame] = []

    @property
    def settings(self) -> WorkflowSettings:
        return self._settings

    @property
    def references(self) -> ReferenceManager:
        return self._references

    @property
    def memory(self) -> MemoryStoreInterface:
        return self._memory

    @property
    def current_invocation(self) -> Invocation | None:
        return self._frames[-1].invocation if self._frames else None

    async def __aenter__(self) -> "WorkflowContext":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Tear down per-invocation state."""
        self._memory.clear()
        self._references.clear()
        self._frames.clear()

    # -------------------------------------------------------------------------
    # store / load / transform
    # -------------------------------------------------------------------------

    async def store(
        self, content: Content, decorators: Sequence[Decorator] = ()
    ) -> MemoryEntry:
        """
        Store a value.

        The value is written to disk at once when a FileName or
        TimestampedFileName decorator is present: into the running
        invocation's directory, or a new ``store`` invocation otherwise.
        A handle is published when the decorators bind a token or the value
        was written to disk.
        """
        materialize = requests_materialization(decorators)
        standalone: Invocation | None = None
        if materialize and not self._frames:
            standalone = await self.open_invocation("store")
        invocation = self.current_invocation or standalone

        entry = self._memory.store(
            content, decorators, invocation.started_at if invocation else None
        )
        output_file: Path | None = None
        if materialize and invocation is not None:
            output_file = await self._write(entry, invocation.path)

        if entry.token is not None or output_file is not None:
            handle = self._references.create_reference(
                entry.entry_id,
                entry.content,
                entry.token,
                output_file,
                entry.created_at,
            )
            if self._frames:
                self._frames[-1].handles.append(handle)
            elif standalone is not None:
                await asyncio.to_thread(
                    self._materializer.write_index, standalone, [handle]
                )

        return entry

    async def load(
        self,
        path: str | Path,
        decorators: Sequence[Decorator] = (),
        binary: bool = False,
    ) -> MemoryEntry:
        """
        Read a file into a new entry.

        Relative paths are taken from the configured working directory.
        Text files must be UTF-8 unless ``binary`` is set.

        Raises:
            FileNotFound: If the path does not exist
            ReadError: If it is not a readable file or not valid UTF-8
        """
        resolved = Path(path)
        if not resolved.is_absolute():
            resolved = self._settings.cwd / resolved

        if not resolved.exists():
            raise FileNotFound(str(path))
        if not resolved.is_file():
            raise ReadError(str(path), "not a regular file")

        try:
            data = await asyncio.to_thread(resolved.read_bytes)
        except OSError as e:
            raise ReadError(str(path), e.strerror or str(e)) from e

        content: Content = data
        if not binary:
            try:
                content = data.decode("utf-8")
            except UnicodeDecodeError as e:
                raise ReadError(str(path), "not valid UTF-8 text") from e

        logger.debug("Loaded %s (%d bytes)", resolved, len(data))
        return await self.store(
            content, [Metadata({"source": str(resolved)}), *decorators]
        )

    async def transform(
        self,
        entry: MemoryEntry,
        fn: Callable[[Content], Content],
        decorators: Sequence[Decorator] = (),
    ) -> MemoryEntry:
        """Store ``fn(entry.content)`` as a new entry; ``entry`` is untouched."""
        content = fn(entry.content)
        return await self.store(
            content,
            [
                Metadata(dict(entry.metadata)),
                Metadata({"derived_from": entry.entry_id}),
                *decorators,
            ],
        )

    # -------------------------------------------------------------------------
    # run
    # -------------------------------------------------------------------------

    async def open_invocation(self, command: str) -> Invocation:
        """Create the invocation directory for one command execution."""
        return await asyncio.to_thread(self._materializer.open_invocation, command)

    async def run(
        self,
        operation: OperationInterface,
        inputs: Sequence[str | ReferenceHandle] = (),
        *,
        args: Sequence[str] = (),
        decorators: Sequence[Decorator] = (),
        token: str | None = None,
        invocation: Invocation | None = None,
    ) -> list[ReferenceHandle]:
        """
        Execute an operation and publish a handle for each of its outputs.

        Args:
            operation: The operation to execute
            inputs: Tokens, ids or handles, resolved in order
            args: Arguments passed to the operation
            decorators: Applied to every output after the operation's own
            token: Bound to the primary (last) output
            invocation: Directory to write into (a new one if None)

        Returns:
            Handles for the outputs, in the order the operation produced them

        Raises:
            ValidationError: If ``token`` cannot be bound
            ReferenceNotFound: If an input does not resolve
            OpenTasksError: Whatever the operation raised, unchanged
        """
        if token is not None:
            validate_token(token)
        refs = self._references.resolve_all(inputs)
        if invocation is None:
            invocation = await self.open_invocation(operation.name)

        logger.debug(
            "Running %s with %d reference(s) in %s",
            operation.name,
            len(refs),
            invocation.path,
        )

        frame = _Frame(invocation)
        self._frames.append(frame)
        try:
            outputs = await operation.execute(list(args), refs, self)
            written: list[tuple[MemoryEntry, Path]] = []
            for position, output in enumerate(outputs, start=1):
                chain = [*output.decorators, *decorators]
                if token is not None and position == len(outputs):
                    chain.append(Token(token))
                entry = self._memory.store(
                    output.content, chain, invocation.started_at
                )
                written.append((entry, await self._write(entry, invocation.path)))
        finally:
            self._frames.pop()

        handles = [
            self._references.create_reference(
                entry.entry_id, entry.content, entry.token, path, entry.created_at
            )
            for entry, path in written
        ]
        frame.handles.extend(handles)
        await asyncio.to_thread(
            self._materializer.write_index, invocation, frame.handles
        )
        return handles

    async def record_failure(
        self,
        invocation: Invocation,
        error: BaseException,
        command: str,
        args: Sequence[str],
    ) -> Path:
        """Write the error artifact for a failed invocation."""
        return await asyncio.to_thread(
            self._materializer.write_error, invocation, error, command, args
        )

    # -------------------------------------------------------------------------
    # tokens
    # -------------------------------------------------------------------------

    def token(self) -> str:
        """A generated token that is not bound in this invocation."""
        while True:
            candidate = f"ref-{next(_token_counter)}"
            if not self._references.is_bound(candidate):
                return candidate

    def lookup(self, name: str) -> str | None:
        try:
            return self._references.resolve(name).text
        except ReferenceNotFound:
            return None

    async def _write(self, entry: MemoryEntry, directory: Path) -> Path:
        return await asyncio.to_thread(
            self._materializer.materialize, entry.as_decorated(), directory
        )
