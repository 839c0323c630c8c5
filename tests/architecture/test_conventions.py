"""
Convention Enforcement Tests.

Permanent tests that catch anti-patterns which import-based layer rules
cannot detect: frozen dataclass conventions, immutable collections,
silent exception swallowing, and interface contracts.
"""

import ast
import inspect
from pathlib import Path

import pytest

SRC_ROOT = Path(__file__).parent.parent.parent / "src" / "opentasks"


def dataclass_info(filepath: Path) -> list[tuple[ast.ClassDef, bool]]:
    """Parse a file and return (class node, is_frozen) for each @dataclass."""
    tree = ast.parse(filepath.read_text())
    results = []

    for node in ast.walk(tree):
        if not isinstance(node, ast.ClassDef):
            continue
        for decorator in node.decorator_list:
            if isinstance(decorator, ast.Name) and decorator.id == "dataclass":
                results.append((node, False))
            elif (
                isinstance(decorator, ast.Call)
                and isinstance(decorator.func, ast.Name)
                and decorator.func.id == "dataclass"
            ):
                frozen = any(
                    kw.arg == "frozen"
                    and isinstance(kw.value, ast.Constant)
                    and kw.value.value is True
                    for kw in decorator.keywords
                )
                results.append((node, frozen))
    return results


class TestFrozenDataclassConvention:
    """All domain dataclasses must be frozen."""

    @pytest.mark.parametrize("module", ["models.py", "decorators.py"])
    def test_domain_dataclasses_are_frozen(self, module):
        violations = [
            node.name
            for node, frozen in dataclass_info(SRC_ROOT / "domain" / module)
            if not frozen
        ]

        assert not violations, f"Domain dataclasses must be frozen: {violations}"


class TestImmutableCollections:
    """Frozen domain model fields should use tuple, not list."""

    def test_domain_models_use_tuples_not_lists(self):
        models_file = SRC_ROOT / "domain" / "models.py"
        source = models_file.read_text()
        violations = []

        for node, frozen in dataclass_info(models_file):
            if not frozen:
                continue
            for item in node.body:
                if not isinstance(item, ast.AnnAssign):
                    continue
                annotation = ast.get_source_segment(source, item.annotation) or ""
                if "list[" in annotation.lower() or "dict[" in annotation.lower():
                    target = getattr(item.target, "id", "?")
                    violations.append(f"{node.name}.{target}: {annotation}")

        assert not violations, (
            "Frozen dataclass fields should use tuple or Mapping:\n"
            + "\n".join(f"  - {v}" for v in violations)
        )


class TestNoSilentExceptionSwallowing:
    """No 'except: pass' or 'except Exception: ...' in src/."""

    def test_no_bare_except_pass(self):
        violations = []

        for py_file in SRC_ROOT.rglob("*.py"):
            source = py_file.read_text()
            for node in ast.walk(ast.parse(source)):
                if not isinstance(node, ast.ExceptHandler):
                    continue
                if node.type is None:
                    violations.append(f"{py_file.name}:{node.lineno}: bare except")
                    continue
                if len(node.body) != 1:
                    continue
                stmt = node.body[0]
                is_pass = isinstance(stmt, ast.Pass)
                is_ellipsis = (
                    isinstance(stmt, ast.Expr)
                    and isinstance(stmt.value, ast.Constant)
                    and stmt.value.value is ...
                )
                if is_pass or is_ellipsis:
                    handler = ast.get_source_segment(source, node.type) or ""
                    violations.append(
                        f"{py_file.name}:{node.lineno}: except {handler}: pass"
                    )

        assert not violations, "Silent exception swallowing found:\n" + "\n".join(
            f"  - {v}" for v in violations
        )


class TestInterfaceConventions:
    """Interface naming and contract conventions."""

    def test_all_ports_end_with_interface(self):
        """All ABCs in domain/interfaces.py must end with 'Interface'."""
        from opentasks.domain import interfaces

        abstract_classes = [
            name
            for name, obj in inspect.getmembers(interfaces, inspect.isclass)
            if inspect.isabstract(obj)
            and obj.__module__ == interfaces.__name__
            and not name.startswith("_")
        ]

        violations = [
            name for name in abstract_classes if not name.endswith("Interface")
        ]

        assert not violations, (
            f"Abstract classes should end with 'Interface': {violations}"
        )

    def test_all_interface_methods_are_abstract(self):
        """Every public method on a port must be abstract."""
        from opentasks.domain import interfaces

        violations = []
        for name, cls in inspect.getmembers(interfaces, inspect.isclass):
            if cls.__module__ != interfaces.__name__ or not inspect.isabstract(cls):
                continue
            for method_name, method in inspect.getmembers(
                cls, predicate=inspect.isfunction
            ):
                if method_name.startswith("_"):
                    continue
                if not getattr(method, "__isabstractmethod__", False):
                    violations.append(f"{name}.{method_name}")

        assert not violations, (
            f"Public interface methods must be abstract: {violations}"
        )

    def test_implementations_satisfy_interfaces(self):
        """Every adapter implements all abstract methods of its port."""
        from opentasks.application.context import WorkflowContext
        from opentasks.infrastructure.persistence import (
            FilesystemOutputMaterializer,
            InMemoryStore,
        )
        from opentasks.infrastructure.registry import OperationRegistry

        for impl_cls in [
            InMemoryStore,
            FilesystemOutputMaterializer,
            WorkflowContext,
            OperationRegistry,
        ]:
            assert not inspect.isabstract(impl_cls), (
                f"{impl_cls.__name__} is missing methods: "
                f"{sorted(impl_cls.__abstractmethods__)}"
            )

    def test_builtin_operations_are_concrete(self):
        from opentasks.operations import BUILTIN_OPERATIONS

        for operation_class in BUILTIN_OPERATIONS:
            assert not inspect.isabstract(operation_class), operation_class.__name__
            assert operation_class.name
            assert operation_class.description
