"""Shared pytest fixtures for open-tasks tests."""

from datetime import datetime, timedelta
from pathlib import Path

import pytest

from opentasks.application.context import WorkflowContext
from opentasks.application.references import ReferenceManager
from opentasks.domain.models import WorkflowSettings
from opentasks.infrastructure.persistence.filesystem import (
    FilesystemOutputMaterializer,
    InvocationClock,
)
from opentasks.infrastructure.persistence.memory import InMemoryStore
from opentasks.infrastructure.registry import OperationRegistry


class FrozenClock:
    """Callable returning a fixed time that tests can move forward."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2025, 1, 15, 10, 30, 45, 123000)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> None:
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture
def frozen_clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def settings(tmp_path: Path) -> WorkflowSettings:
    """Settings rooted in a temporary working directory."""
    return WorkflowSettings(
        output_dir=tmp_path / ".open-tasks" / "outputs",
        timeout=5.0,
        cwd=tmp_path,
    )


@pytest.fixture
def memory_store() -> InMemoryStore:
    """Create an in-memory store."""
    return InMemoryStore()


@pytest.fixture
def materializer(
    settings: WorkflowSettings, frozen_clock: FrozenClock
) -> FilesystemOutputMaterializer:
    """Materializer writing under the temporary output directory."""
    return FilesystemOutputMaterializer(
        settings.output_dir,
        settings.timestamp_format,
        clock=InvocationClock(frozen_clock),
        cwd=settings.cwd,
    )


@pytest.fixture
def references() -> ReferenceManager:
    return ReferenceManager()


@pytest.fixture
def context(
    memory_store: InMemoryStore,
    materializer: FilesystemOutputMaterializer,
    references: ReferenceManager,
    settings: WorkflowSettings,
) -> WorkflowContext:
    """A workflow context wired to temporary storage."""
    return WorkflowContext(memory_store, materializer, references, settings)


@pytest.fixture
def clean_registry():
    """Reset the operation registry around a test."""
    OperationRegistry.clear()
    yield OperationRegistry
    OperationRegistry.clear()
