"""
Application layer for the workflow engine.

Contains the reference manager, the workflow context façade and the
command runner.
"""

from opentasks.application.context import WorkflowContext
from opentasks.application.references import ReferenceManager, validate_token
from opentasks.application.runner import CommandRunner

__all__ = [
    "ReferenceManager",
    "validate_token",
    "WorkflowContext",
    "CommandRunner",
]
