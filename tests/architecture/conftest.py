"""Shared fixtures for architecture tests."""

import os

import pytest
from pytestarch import (
    EvaluableArchitecture,
    LayeredArchitecture,
    get_evaluable_architecture,
)


@pytest.fixture(scope="session")
def evaluable() -> EvaluableArchitecture:
    """Build evaluable architecture from src/opentasks."""
    src_dir = os.path.abspath(
        os.path.join(os.path.dirname(__file__), "..", "..", "src")
    )
    project_path = os.path.join(src_dir, "opentasks")
    return get_evaluable_architecture(src_dir, project_path)


@pytest.fixture(scope="session")
def layers() -> LayeredArchitecture:
    """Define the DDD layers plus the operations package.

    PyTestArch resolves module names relative to the source root,
    so modules appear as 'src.opentasks.domain', etc.
    """
    return (
        LayeredArchitecture()
        .layer("domain")
        .containing_modules(["src.opentasks.domain"])
        .layer("application")
        .containing_modules(["src.opentasks.application"])
        .layer("infrastructure")
        .containing_modules(["src.opentasks.infrastructure"])
        .layer("operations")
        .containing_modules(["src.opentasks.operations"])
    )
