"""
Built-in operations for open-tasks.

Organization by side effect:
- values: bring values in and out (store, load, write)
- text: transformations (replace, extract, match, join, template, json-transform)
- external: processes and services (shell, ai-cli, ask)
"""

from opentasks.operations.external import AiCliOperation, AskOperation, ShellOperation
from opentasks.operations.text import (
    ExtractOperation,
    JoinOperation,
    JsonTransformOperation,
    MatchOperation,
    ReplaceOperation,
    TemplateOperation,
)
from opentasks.operations.values import LoadOperation, StoreOperation, WriteOperation

BUILTIN_OPERATIONS = (
    StoreOperation,
    LoadOperation,
    WriteOperation,
    ReplaceOperation,
    ExtractOperation,
    MatchOperation,
    JoinOperation,
    TemplateOperation,
    JsonTransformOperation,
    ShellOperation,
    AiCliOperation,
    AskOperation,
)

__all__ = [
    "BUILTIN_OPERATIONS",
    # Values
    "StoreOperation",
    "LoadOperation",
    "WriteOperation",
    # Text
    "ReplaceOperation",
    "ExtractOperation",
    "MatchOperation",
    "JoinOperation",
    "TemplateOperation",
    "JsonTransformOperation",
    # External
    "ShellOperation",
    "AiCliOperation",
    "AskOperation",
]
