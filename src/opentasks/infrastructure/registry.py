"""
Operation Registry with Entry Points Discovery.

Built-in operations are registered statically; external packages add their
own through the ``opentasks.operations`` entry point group:

    [project.entry-points."opentasks.operations"]
    my-operation = "mypackage.operations:MyOperation"
"""

import re
import warnings
from importlib.metadata import entry_points
from typing import Any

from opentasks.domain.exceptions import ValidationError
from opentasks.domain.interfaces import OperationInterface, OperationRegistryInterface

ENTRY_POINT_GROUP = "opentasks.operations"
_NAME_RE = re.compile(r"^[a-z][a-z0-9]*(-[a-z0-9]+)*$")


def validate_operation_name(name: str) -> str:
    """
    Check that an operation name is kebab-case.

    Raises:
        ValidationError: If it is not
    """
    if not _NAME_RE.match(name or ""):
        raise ValidationError(
            f"Invalid operation name '{name}': use lowercase kebab-case"
        )
    return name


class OperationRegistry(OperationRegistryInterface):
    """
    Registry for OperationInterface implementations.

    Uses lazy loading - built-ins and entry points are only loaded on first
    access.

    Example usage:
        registry = OperationRegistry()
        operation = registry.create("replace")
    """

    _operations: dict[str, type[OperationInterface]] = {}
    _loaded: bool = False

    @classmethod
    def _load_entry_points(cls) -> None:
        """Load built-ins, then entry points (lazy, called once)."""
        if cls._loaded:
            return
        cls._loaded = True

        from opentasks.operations import BUILTIN_OPERATIONS

        for operation_class in BUILTIN_OPERATIONS:
            cls._operations.setdefault(operation_class.name, operation_class)

        for ep in entry_points(group=ENTRY_POINT_GROUP):
            try:
                operation_class = ep.load()
                cls.register(operation_class, name=ep.name)
            except Exception as e:
                warnings.warn(
                    f"Failed to load operation '{ep.name}' from entry point: {e}",
                    stacklevel=2,
                )

    @classmethod
    def register(
        cls,
        operation_class: type[OperationInterface],
        name: str | None = None,
    ) -> type[OperationInterface]:
        """
        Manually register an operation class.

        Usable as a class decorator. The name defaults to the class's
        ``name`` attribute; a later registration under the same name
        replaces the earlier one.

        Raises:
            ValidationError: If the name is not kebab-case
        """
        registered_name = validate_operation_name(
            name or getattr(operation_class, "name", "")
        )
        cls._operations[registered_name] = operation_class
        return operation_class

    @classmethod
    def get(cls, name: str) -> type[OperationInterface]:
        """
        Get an operation class by name.

        Raises:
            ValidationError: If the name is malformed or not registered
        """
        validate_operation_name(name)
        cls._load_entry_points()
        if name not in cls._operations:
            available = ", ".join(sorted(cls._operations)) or "(none)"
            raise ValidationError(
                f"Operation '{name}' not found. Available operations: {available}"
            )
        return cls._operations[name]

    @classmethod
    def create(cls, name: str, **config: Any) -> OperationInterface:
        """
        Create an operation instance by name.

        Args:
            name: Operation identifier
            **config: Configuration passed to the operation constructor

        Raises:
            ValidationError: If the operation is not found
            TypeError: If config doesn't match constructor signature
        """
        operation_class = cls.get(name)
        return operation_class(**config)

    @classmethod
    def available(cls) -> list[str]:
        """Registered operation names, sorted."""
        cls._load_entry_points()
        return sorted(cls._operations)

    @classmethod
    def describe(cls, name: str) -> dict[str, Any]:
        """Name, description and examples of a registered operation."""
        operation_class = cls.get(name)
        return {
            "name": name,
            "description": operation_class.description,
            "examples": list(operation_class.examples),
        }

    @classmethod
    def clear(cls) -> None:
        """
        Clear all registered operations (useful for testing).

        Also resets the loaded flag so built-ins and entry points are
        reloaded on next access.
        """
        cls._operations.clear()
        cls._loaded = False
