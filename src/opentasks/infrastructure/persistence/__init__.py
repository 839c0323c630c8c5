"""
Persistence adapters for the memory store and output materializer.
"""

from opentasks.infrastructure.persistence.filesystem import (
    FilesystemOutputMaterializer,
    InvocationClock,
    rehydrate_references,
)
from opentasks.infrastructure.persistence.memory import InMemoryStore

__all__ = [
    "InMemoryStore",
    "FilesystemOutputMaterializer",
    "InvocationClock",
    "rehydrate_references",
]
