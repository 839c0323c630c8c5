"""
Decorator pipeline applied to a value before it is written to disk.

Each decorator is a pure function of (previous state, its own configuration).
Decorators compose left to right; later decorators see and may override the
fields set by earlier ones.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from functools import reduce
from typing import Any

from opentasks.domain.exceptions import ValidationError
from opentasks.domain.models import (
    Content,
    DecoratedEntry,
    DecorationState,
    freeze_metadata,
)
from opentasks.domain.timestamps import DEFAULT_TIMESTAMP_FORMAT, format_timestamp


class Decorator(ABC):
    """A named, ordered transformation of the decoration state."""

    @abstractmethod
    def apply(self, state: DecorationState, default_extension: str) -> DecorationState:
        """
        Return the next decoration state.

        Args:
            state: State produced by the previous decorator
            default_extension: Extension used when a default name is needed

        Returns:
            A new DecorationState (never the mutated input)
        """


def default_filename(state: DecorationState, default_extension: str) -> str:
    """``{token-or-id}.{extension}``"""
    return f"{state.token or state.entry_id}.{default_extension}"


@dataclass(frozen=True)
class Token(Decorator):
    """Sets the logical name used for reference binding."""

    name: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("Token name must not be empty")

    def apply(self, state: DecorationState, default_extension: str) -> DecorationState:
        return replace(state, token=self.name)


@dataclass(frozen=True)
class FileName(Decorator):
    """Sets an explicit output filename."""

    name: str

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise ValidationError("File name must not be empty")

    def apply(self, state: DecorationState, default_extension: str) -> DecorationState:
        return replace(state, filename=self.name)


@dataclass(frozen=True)
class TimestampedFileName(Decorator):
    """
    Prefixes the filename chosen so far with a timestamp.

    When ``name`` is given it replaces the current filename before prefixing.
    The timestamp defaults to the start of the running invocation, or the
    entry creation time outside one.
    """

    name: str | None = None
    timestamp: datetime | None = None

    def apply(self, state: DecorationState, default_extension: str) -> DecorationState:
        base = self.name or state.filename or default_filename(state, default_extension)
        moment = self.timestamp or state.invoked_at or state.created_at
        prefix = format_timestamp(moment, state.timestamp_format)
        return replace(state, filename=f"{prefix}-{base}")


@dataclass(frozen=True)
class Metadata(Decorator):
    """Shallow-merges key/value pairs into the entry metadata."""

    values: Mapping[str, Any] = field(default_factory=dict)

    def apply(self, state: DecorationState, default_extension: str) -> DecorationState:
        merged = {**state.metadata, **self.values}
        return replace(state, metadata=freeze_metadata(merged))


def requests_materialization(decorators: Iterable[Decorator]) -> bool:
    """True when any decorator names an output file."""
    return any(isinstance(d, FileName | TimestampedFileName) for d in decorators)


def apply_decorators(
    entry_id: str,
    content: Content,
    created_at: datetime,
    decorators: Iterable[Decorator] = (),
    *,
    default_extension: str = "txt",
    timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
    metadata: Mapping[str, Any] | None = None,
    invoked_at: datetime | None = None,
) -> DecoratedEntry:
    """
    Run the decorators over a fresh state, left to right.

    Args:
        entry_id: Generated id of the entry being decorated
        content: Value being stored (never changed by decorators)
        created_at: Creation time, used by TimestampedFileName
        decorators: Decorators in caller order
        default_extension: Extension for the default filename
        timestamp_format: Pattern used by TimestampedFileName
        metadata: Initial metadata before any decorator runs
        invoked_at: Start of the running invocation, used by TimestampedFileName

    Returns:
        DecoratedEntry with the final filename, token and metadata
    """
    seed = DecorationState(
        entry_id=entry_id,
        content=content,
        created_at=created_at,
        metadata=freeze_metadata(metadata),
        timestamp_format=timestamp_format,
        invoked_at=invoked_at,
    )
    final = reduce(
        lambda state, decorator: decorator.apply(state, default_extension),
        decorators,
        seed,
    )
    return DecoratedEntry(
        entry_id=final.entry_id,
        content=final.content,
        filename=final.filename or default_filename(final, default_extension),
        token=final.token,
        metadata=final.metadata,
    )
