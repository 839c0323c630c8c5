"""
open-tasks: Command-Chaining Workflow Engine.

Discrete operations (store, load, replace, shell, ask, extract, ...) compose
into pipelines by passing references. Every result is written to its own
invocation directory and can be named by a token for later steps.

Example:
    import asyncio

    from opentasks import WorkflowContext, Token
    from opentasks.infrastructure import FilesystemOutputMaterializer, InMemoryStore
    from opentasks.operations import ReplaceOperation

    async def main():
        async with WorkflowContext(
            InMemoryStore(), FilesystemOutputMaterializer(".open-tasks/outputs")
        ) as context:
            await context.store("production", [Token("env")])
            [handle] = await context.run(
                ReplaceOperation(), ["env"], args=["Deploy to {{env}}"]
            )
            print(handle.content)

    asyncio.run(main())
"""

# Application layer (orchestration)
from opentasks.application import CommandRunner, ReferenceManager, WorkflowContext

# Domain decorators
from opentasks.domain.decorators import (
    Decorator,
    FileName,
    Metadata,
    TimestampedFileName,
    Token,
)

# Domain exceptions
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

# Domain interfaces (for custom operations)
from opentasks.domain.interfaces import OperationInterface, WorkflowContextInterface
from opentasks.domain.models import (
    InvocationResult,
    InvocationState,
    MemoryEntry,
    Output,
    ReferenceHandle,
    WorkflowSettings,
)

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Application
    "WorkflowContext",
    "ReferenceManager",
    "CommandRunner",
    # Models
    "MemoryEntry",
    "ReferenceHandle",
    "Output",
    "InvocationState",
    "InvocationResult",
    "WorkflowSettings",
    # Decorators
    "Decorator",
    "Token",
    "FileName",
    "TimestampedFileName",
    "Metadata",
    # Interfaces
    "OperationInterface",
    "WorkflowContextInterface",
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
