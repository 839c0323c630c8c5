"""
In-memory implementation of the memory store.

Holds every value stored during one CLI invocation.
"""

import uuid
from collections.abc import Sequence
from datetime import datetime

from opentasks.domain.decorators import Decorator, apply_decorators
from opentasks.domain.exceptions import ReferenceNotFound
from opentasks.domain.interfaces import MemoryStoreInterface
from opentasks.domain.models import Content, MemoryEntry
from opentasks.domain.timestamps import DEFAULT_TIMESTAMP_FORMAT


class InMemoryStore(MemoryStoreInterface):
    """Dictionary-backed store; insertion order is creation order."""

    def __init__(
        self,
        default_extension: str = "txt",
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
    ) -> None:
        self._entries: dict[str, MemoryEntry] = {}
        self._default_extension = default_extension
        self._timestamp_format = timestamp_format

    def store(
        self,
        content: Content,
        decorators: Sequence[Decorator] = (),
        invoked_at: datetime | None = None,
    ) -> MemoryEntry:
        entry_id = str(uuid.uuid4())
        created_at = datetime.now()
        decorated = apply_decorators(
            entry_id,
            content,
            created_at,
            decorators,
            invoked_at=invoked_at,
            default_extension=self._default_extension,
            timestamp_format=self._timestamp_format,
        )
        entry = MemoryEntry(
            entry_id=entry_id,
            content=content,
            created_at=created_at,
            metadata=decorated.metadata,
            token=decorated.token,
            filename=decorated.filename,
        )
        self._entries[entry_id] = entry
        return entry

    def get(self, entry_id: str) -> MemoryEntry:
        if entry_id not in self._entries:
            raise ReferenceNotFound(entry_id, f"Entry not found: {entry_id}")
        return self._entries[entry_id]

    def list(self) -> list[MemoryEntry]:
        return list(self._entries.values())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
