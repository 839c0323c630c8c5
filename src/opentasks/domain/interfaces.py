"""
Domain interfaces (Ports) for the workflow engine.

These abstract base classes define the contracts that implementations must satisfy.
They have no external dependencies and represent the core domain boundaries.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from opentasks.domain.decorators import Decorator
    from opentasks.domain.models import (
        Content,
        DecoratedEntry,
        Invocation,
        MemoryEntry,
        Output,
        ReferenceHandle,
        WorkflowSettings,
    )


class MemoryStoreInterface(ABC):
    """
    Port for the per-invocation memory store.

    Entries are immutable once stored and live until the store is cleared.
    """

    @abstractmethod
    def store(
        self,
        content: "Content",
        decorators: Sequence["Decorator"] = (),
        invoked_at: datetime | None = None,
    ) -> "MemoryEntry":
        """
        Create a new entry with a freshly generated id.

        Args:
            content: Value to keep, stored as given
            decorators: Decorators naming and annotating the entry
            invoked_at: Start of the invocation the entry belongs to, if any

        Returns:
            The new MemoryEntry
        """

    @abstractmethod
    def get(self, entry_id: str) -> "MemoryEntry":
        """
        Retrieve an entry by id.

        Raises:
            ReferenceNotFound: If no entry has this id
        """

    @abstractmethod
    def list(self) -> list["MemoryEntry"]:
        """All entries in creation order."""

    @abstractmethod
    def clear(self) -> None:
        """Drop every entry."""


class OutputMaterializerInterface(ABC):
    """Port for writing stored values to invocation directories."""

    @abstractmethod
    def open_invocation(self, command: str) -> "Invocation":
        """
        Create a new, never reused invocation directory.

        Raises:
            WriteError: If the directory cannot be created
        """

    @abstractmethod
    def materialize(self, entry: "DecoratedEntry", invocation_dir: Path) -> Path:
        """
        Write the entry content to ``invocation_dir / entry.filename``.

        Raises:
            WriteError: If the file cannot be written
        """

    @abstractmethod
    def write_index(
        self, invocation: "Invocation", handles: Sequence["ReferenceHandle"]
    ) -> Path:
        """Record the handles published by a successful invocation."""

    @abstractmethod
    def write_error(
        self,
        invocation: "Invocation",
        error: BaseException,
        command: str,
        args: Sequence[str],
    ) -> Path:
        """Write the error artifact for a failed invocation."""


class WorkflowContextInterface(ABC):
    """
    Port through which operations store, load and compose values.

    Passed explicitly to every operation; scoped to one CLI invocation.
    """

    @property
    @abstractmethod
    def settings(self) -> "WorkflowSettings":
        """Effective configuration."""

    @abstractmethod
    async def store(
        self, content: "Content", decorators: Sequence["Decorator"] = ()
    ) -> "MemoryEntry":
        """Store a value, materializing it when a decorator names a file."""

    @abstractmethod
    async def load(
        self,
        path: str | Path,
        decorators: Sequence["Decorator"] = (),
        binary: bool = False,
    ) -> "MemoryEntry":
        """Read a file into a new entry."""

    @abstractmethod
    async def transform(
        self,
        entry: "MemoryEntry",
        fn: Callable[["Content"], "Content"],
        decorators: Sequence["Decorator"] = (),
    ) -> "MemoryEntry":
        """Derive a new entry by applying a pure function to ``entry``."""

    @abstractmethod
    async def run(
        self,
        operation: "OperationInterface",
        inputs: Sequence["str | ReferenceHandle"] = (),
        *,
        args: Sequence[str] = (),
        decorators: Sequence["Decorator"] = (),
        token: str | None = None,
        invocation: "Invocation | None" = None,
    ) -> list["ReferenceHandle"]:
        """Execute an operation and publish handles for its outputs."""

    @abstractmethod
    def token(self) -> str:
        """A fresh token not bound in this invocation."""

    @abstractmethod
    def lookup(self, name: str) -> str | None:
        """Text content bound to ``name``, or None."""


class OperationInterface(ABC):
    """
    A single named, chainable unit of work.

    Consumes resolved references and produces outputs; the context turns
    each output into a stored, materialized reference.
    """

    name: ClassVar[str]
    description: ClassVar[str] = ""
    examples: ClassVar[tuple[str, ...]] = ()

    @abstractmethod
    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence["ReferenceHandle"],
        context: WorkflowContextInterface,
    ) -> list["Output"]:
        """
        Perform the operation.

        Args:
            args: Free-form command arguments
            refs: Resolved references, in the order they were requested
            context: The workflow context for nested store/load/run calls

        Returns:
            Outputs to store, in order (usually exactly one)
        """


class OperationRegistryInterface(ABC):
    """Port for looking up operations by name."""

    @abstractmethod
    def create(self, name: str) -> OperationInterface:
        """
        Instantiate the operation registered under ``name``.

        Raises:
            ValidationError: If the name is malformed or unknown
        """
