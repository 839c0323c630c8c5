"""
Domain layer for the workflow engine.

Contains core models, decorators and templates with no external dependencies.
"""

from opentasks.domain.decorators import (
    Decorator,
    FileName,
    Metadata,
    TimestampedFileName,
    Token,
    apply_decorators,
)
from opentasks.domain.exceptions import (
    ConfigurationError,
    ExecutionError,
    FileNotFound,
    OpenTasksError,
    OperationTimeout,
    ReadError,
    ReferenceNotFound,
    ValidationError,
    WriteError,
)
from opentasks.domain.interfaces import (
    MemoryStoreInterface,
    OperationInterface,
    OperationRegistryInterface,
    OutputMaterializerInterface,
    WorkflowContextInterface,
)
from opentasks.domain.models import (
    DecoratedEntry,
    Invocation,
    InvocationResult,
    InvocationState,
    MemoryEntry,
    Output,
    ReferenceHandle,
    WorkflowSettings,
)
from opentasks.domain.templates import substitute

__all__ = [
    # Models
    "MemoryEntry",
    "DecoratedEntry",
    "ReferenceHandle",
    "Output",
    "Invocation",
    "InvocationState",
    "InvocationResult",
    "WorkflowSettings",
    # Decorators
    "Decorator",
    "Token",
    "FileName",
    "TimestampedFileName",
    "Metadata",
    "apply_decorators",
    # Templates
    "substitute",
    # Interfaces
    "MemoryStoreInterface",
    "OutputMaterializerInterface",
    "WorkflowContextInterface",
    "OperationInterface",
    "OperationRegistryInterface",
    # Exceptions
    "OpenTasksError",
    "ReferenceNotFound",
    "ReadError",
    "FileNotFound",
    "WriteError",
    "OperationTimeout",
    "ValidationError",
    "ExecutionError",
    "ConfigurationError",
]
