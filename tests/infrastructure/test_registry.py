"""Tests for OperationRegistry - static built-ins plus entry points discovery."""

import pytest

from opentasks.domain.exceptions import ValidationError
from opentasks.domain.interfaces import OperationInterface
from opentasks.infrastructure import OperationRegistry
from opentasks.operations import BUILTIN_OPERATIONS, ReplaceOperation


class CustomOperation(OperationInterface):
    name = "custom-op"
    description = "A custom operation"
    examples = ("open-tasks custom-op",)

    def __init__(self, greeting: str = "hi"):
        self.greeting = greeting

    async def execute(self, args, refs, context):
        return []


class TestLoading:
    """Tests for lazy loading of built-ins."""

    def test_available_lists_builtins(self, clean_registry) -> None:
        """available() includes every built-in operation."""
        available = OperationRegistry.available()

        for operation_class in BUILTIN_OPERATIONS:
            assert operation_class.name in available

    def test_lazy_loading(self, clean_registry) -> None:
        """Nothing is loaded until first access."""
        assert OperationRegistry._loaded is False
        assert len(OperationRegistry._operations) == 0

        _ = OperationRegistry.available()

        assert OperationRegistry._loaded is True
        assert len(OperationRegistry._operations) >= len(BUILTIN_OPERATIONS)

    def test_load_idempotent(self, clean_registry) -> None:
        OperationRegistry._load_entry_points()
        count_after_first = len(OperationRegistry._operations)

        OperationRegistry._load_entry_points()

        assert len(OperationRegistry._operations) == count_after_first


class TestRegistryOperations:
    """Tests for register/get/create/describe."""

    def test_get_builtin(self, clean_registry) -> None:
        assert OperationRegistry.get("replace") is ReplaceOperation

    def test_register_and_create_with_config(self, clean_registry) -> None:
        OperationRegistry.register(CustomOperation)

        operation = OperationRegistry.create("custom-op", greeting="hello")

        assert isinstance(operation, CustomOperation)
        assert operation.greeting == "hello"

    def test_registration_overrides_builtin(self, clean_registry) -> None:
        """A user registration is not replaced by the built-in loader."""
        OperationRegistry.register(CustomOperation, name="store")

        assert OperationRegistry.get("store") is CustomOperation

    def test_describe(self, clean_registry) -> None:
        OperationRegistry.register(CustomOperation)

        info = OperationRegistry.describe("custom-op")

        assert info == {
            "name": "custom-op",
            "description": "A custom operation",
            "examples": ["open-tasks custom-op"],
        }

    def test_unknown_name_lists_available(self, clean_registry) -> None:
        with pytest.raises(ValidationError, match="Available operations"):
            OperationRegistry.get("no-such-op")

    @pytest.mark.parametrize("name", ["Upper", "snake_case", "-leading", "a--b"])
    def test_name_must_be_kebab_case(self, clean_registry, name: str) -> None:
        with pytest.raises(ValidationError):
            OperationRegistry.register(CustomOperation, name=name)
