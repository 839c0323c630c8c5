"""open-tasks JSON Schema definitions and validation utilities.

Schemas:
    - config.schema.json: ``.open-tasks/.config.json`` (user and project)
    - index.schema.json: ``index.json`` written into each successful
      invocation directory

Usage:
    from opentasks.schemas import validate_config

    validate_config(data)  # Raises jsonschema.ValidationError if invalid
"""

from __future__ import annotations

import json
from functools import cache
from importlib.resources import files
from typing import Any

import jsonschema


@cache
def _load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the schemas package.

    Args:
        name: Schema filename (e.g., 'config.schema.json')

    Returns:
        Parsed JSON schema as a dictionary
    """
    schema_text = files("opentasks.schemas").joinpath(name).read_text()
    result: dict[str, Any] = json.loads(schema_text)
    return result


def get_config_schema() -> dict[str, Any]:
    """Get the .config.json schema."""
    return _load_schema("config.schema.json")


def get_index_schema() -> dict[str, Any]:
    """Get the invocation index.json schema."""
    return _load_schema("index.schema.json")


def validate_config(data: dict[str, Any]) -> None:
    """Validate a configuration file against the schema.

    Args:
        data: Parsed configuration dictionary

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_config_schema())


def validate_index(data: dict[str, Any]) -> None:
    """Validate an invocation index against the schema.

    Raises:
        jsonschema.ValidationError: If validation fails
    """
    jsonschema.validate(data, get_index_schema())


__all__ = [
    "get_config_schema",
    "get_index_schema",
    "validate_config",
    "validate_index",
]
