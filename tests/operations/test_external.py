"""Tests for shell, ai-cli and ask."""

import asyncio
import sys
import time
from dataclasses import replace

import pytest

from opentasks.application.context import WorkflowContext
from opentasks.domain.decorators import Token
from opentasks.domain.exceptions import (
    ConfigurationError,
    ExecutionError,
    OperationTimeout,
)
from opentasks.domain.models import AiCliSettings
from opentasks.operations import (
    AiCliOperation,
    AskOperation,
    ShellOperation,
    StoreOperation,
)

posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX shell")


@pytest.fixture
def configure(memory_store, materializer, references, settings):
    """Build a context over the shared storage with changed settings."""

    def build(**changes) -> WorkflowContext:
        return WorkflowContext(
            memory_store, materializer, references, replace(settings, **changes)
        )

    return build


@posix_only
class TestShell:
    """Tests for the shell operation."""

    def test_captures_stdout(self, context: WorkflowContext) -> None:
        [handle] = asyncio.run(
            context.run(ShellOperation(), args=["echo", "hello"], token="out")
        )

        assert handle.content.strip() == "hello"
        assert context.references.resolve("out") is handle

    def test_substitutes_refs(self, context: WorkflowContext) -> None:
        asyncio.run(context.store("templated", [Token("word")]))

        [handle] = asyncio.run(
            context.run(ShellOperation(), ["word"], args=["echo {{word}}"])
        )

        assert handle.content.strip() == "templated"

    def test_runs_in_working_directory(self, context: WorkflowContext) -> None:
        (context.settings.cwd / "marker.txt").write_text("x")

        [handle] = asyncio.run(context.run(ShellOperation(), args=["ls"]))

        assert "marker.txt" in handle.content

    def test_non_zero_exit(self, context: WorkflowContext) -> None:
        with pytest.raises(ExecutionError):
            asyncio.run(context.run(ShellOperation(), args=["exit 4"]))

    def test_timeout_publishes_nothing(self, configure) -> None:
        fast = configure(timeout=1.0)
        started = time.monotonic()

        with pytest.raises(OperationTimeout):
            asyncio.run(
                fast.run(ShellOperation(), args=["sleep 5; echo done"], token="late")
            )

        assert time.monotonic() - started < 4
        assert not fast.references.is_bound("late")


class TestAiCli:
    """Tests for the ai-cli operation, using Python as the AI tool."""

    def test_requires_configuration(self, context: WorkflowContext) -> None:
        with pytest.raises(ConfigurationError):
            asyncio.run(context.run(AiCliOperation(), args=["hi"]))

    def test_passes_context_files_and_prompt(self, configure) -> None:
        script = "import sys; print(repr(sys.argv[1:]))"
        configured = configure(
            ai_cli=AiCliSettings(command=sys.executable, args=("-c", script)),
        )
        [notes] = asyncio.run(
            configured.run(StoreOperation(), args=["some notes"], token="notes")
        )

        [handle] = asyncio.run(
            configured.run(AiCliOperation(), ["notes"], args=["Summarise"])
        )

        assert "'--context'" in handle.content
        assert str(notes.output_file) in handle.content
        assert handle.content.strip().endswith("'Summarise']")


class FakeChatClient:
    def __init__(self, settings, timeout):
        self.settings = settings
        self.timeout = timeout
        self.prompts: list[str] = []

    async def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        return f"answer to {len(self.prompts)} prompt(s)"


class TestAsk:
    """Tests for the ask operation with a fake client."""

    def test_sends_prompt_with_refs(self, context: WorkflowContext) -> None:
        clients: list[FakeChatClient] = []

        def factory(settings, timeout):
            client = FakeChatClient(settings, timeout)
            clients.append(client)
            return client

        asyncio.run(context.store("def f(): pass", [Token("source")]))

        [handle] = asyncio.run(
            context.run(
                AskOperation(client_factory=factory),
                ["source"],
                args=["What does this do?"],
                token="answer",
            )
        )

        assert handle.content == "answer to 1 prompt(s)"
        prompt = clients[0].prompts[0]
        assert prompt.startswith("What does this do?")
        assert "--- source ---\ndef f(): pass" in prompt
        assert clients[0].timeout == context.settings.timeout
