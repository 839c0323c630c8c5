"""
Domain models for the workflow engine.

These are pure data structures. All models are immutable (frozen dataclasses)
so that a handle issued against an entry can never observe a later change.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from opentasks.domain.timestamps import DEFAULT_TIMESTAMP_FORMAT

if TYPE_CHECKING:
    from opentasks.domain.decorators import Decorator

Content = str | bytes


def freeze_metadata(metadata: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    """Copy a mapping into a read-only view."""
    return MappingProxyType(dict(metadata or {}))


# =============================================================================
# MEMORY ENTRIES
# =============================================================================


@dataclass(frozen=True)
class MemoryEntry:
    """
    Immutable value held by the memory store for one CLI invocation.

    ``token`` and ``filename`` are the naming decisions made by the decorator
    pipeline when the entry was stored.
    """

    entry_id: str  # UUID
    content: Content
    created_at: datetime
    metadata: Mapping[str, Any] = field(default_factory=freeze_metadata)
    token: str | None = None
    filename: str | None = None

    def as_decorated(self) -> "DecoratedEntry":
        """View this entry as the materializer input."""
        return DecoratedEntry(
            entry_id=self.entry_id,
            content=self.content,
            filename=self.filename or self.entry_id,
            token=self.token,
            metadata=self.metadata,
        )


@dataclass(frozen=True)
class DecorationState:
    """Accumulated decoration passed from one decorator to the next."""

    entry_id: str
    content: Content
    created_at: datetime
    token: str | None = None
    filename: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=freeze_metadata)
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT
    invoked_at: datetime | None = None  # start of the running invocation


@dataclass(frozen=True)
class DecoratedEntry:
    """Result of the decorator pipeline, ready to be written to disk."""

    entry_id: str
    content: Content
    filename: str
    token: str | None
    metadata: Mapping[str, Any]


# =============================================================================
# REFERENCES
# =============================================================================


@dataclass(frozen=True)
class ReferenceHandle:
    """
    Read-only view over a stored value, optionally named by a token.

    The handle keeps a snapshot of the content taken when it was created and
    is linked to its memory entry by id only.
    """

    ref_id: str
    content: Content
    token: str | None = None
    output_file: Path | None = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def text(self) -> str:
        """Content as text (UTF-8 decoded when stored as bytes)."""
        if isinstance(self.content, bytes):
            return self.content.decode("utf-8", errors="replace")
        return self.content

    @property
    def label(self) -> str:
        """Token if bound, otherwise the reference id."""
        return self.token or self.ref_id


# =============================================================================
# OPERATION OUTPUT
# =============================================================================


@dataclass(frozen=True)
class Output:
    """A value produced by an operation together with its decorators."""

    content: Content
    decorators: tuple["Decorator", ...] = ()


# =============================================================================
# INVOCATION DIRECTORY
# =============================================================================


@dataclass(frozen=True)
class Invocation:
    """A uniquely named directory holding the outputs of one execution."""

    command: str
    path: Path
    started_at: datetime


# =============================================================================
# SETTINGS
# =============================================================================


@dataclass(frozen=True)
class AiCliSettings:
    """External AI command line tool used by the ai-cli operation."""

    command: str
    args: tuple[str, ...] = ()
    context_flag: str = "--context"


@dataclass(frozen=True)
class LlmSettings:
    """OpenAI-compatible chat endpoint used by the ask operation."""

    model: str = "qwen2.5-coder:7b"
    base_url: str = "http://localhost:11434/v1"
    api_key: str = "ollama"  # required by the client, ignored by Ollama


@dataclass(frozen=True)
class WorkflowSettings:
    """Effective configuration for one CLI invocation."""

    output_dir: Path = Path(".open-tasks/outputs")
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT
    default_file_extension: str = "txt"
    colors: bool = True
    timeout: float = 120.0
    shell: str | None = None
    ai_cli: AiCliSettings | None = None
    llm: LlmSettings = field(default_factory=LlmSettings)
    cwd: Path = field(default_factory=Path.cwd)


# =============================================================================
# COMMAND RUNNER STATE
# =============================================================================


class InvocationState(Enum):
    """Lifecycle of a single command invocation."""

    PARSED = "parsed"
    REFERENCES_RESOLVED = "references_resolved"
    EXECUTING = "executing"
    SUCCEEDED = "succeeded"  # terminal
    FAILED = "failed"  # terminal


@dataclass(frozen=True)
class InvocationResult:
    """Outcome of a command invocation."""

    command: str
    state: InvocationState
    handles: tuple[ReferenceHandle, ...] = ()
    invocation_dir: Path | None = None
    error: Exception | None = None
    error_file: Path | None = None
    transitions: tuple[InvocationState, ...] = ()

    @property
    def succeeded(self) -> bool:
        return self.state is InvocationState.SUCCEEDED

    @property
    def handle(self) -> ReferenceHandle | None:
        """The primary (last) output handle, if any."""
        return self.handles[-1] if self.handles else None
