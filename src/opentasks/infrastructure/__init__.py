"""
Infrastructure layer for the workflow engine.

Contains adapters for external concerns (persistence, configuration,
processes, LLMs, registry).
"""

from opentasks.infrastructure.config import load_config
from opentasks.infrastructure.llm import ChatClient
from opentasks.infrastructure.persistence import (
    FilesystemOutputMaterializer,
    InMemoryStore,
    InvocationClock,
    rehydrate_references,
)
from opentasks.infrastructure.process import ProcessResult, run_process
from opentasks.infrastructure.registry import OperationRegistry

__all__ = [
    # Persistence
    "InMemoryStore",
    "FilesystemOutputMaterializer",
    "InvocationClock",
    "rehydrate_references",
    # Configuration
    "load_config",
    # Processes
    "run_process",
    "ProcessResult",
    # LLM
    "ChatClient",
    # Registry
    "OperationRegistry",
]
