"""
Operations that delegate to external programs or services.

Each is bounded by the configured timeout; on timeout nothing is stored.
"""

import logging
from collections.abc import Callable, Sequence

from opentasks.domain.exceptions import ConfigurationError, ValidationError
from opentasks.domain.interfaces import OperationInterface, WorkflowContextInterface
from opentasks.domain.models import LlmSettings, Output, ReferenceHandle
from opentasks.domain.templates import substitute
from opentasks.infrastructure.llm import ChatClient
from opentasks.infrastructure.process import run_process
from opentasks.operations.base import provenance, reference_lookup, require_args

logger = logging.getLogger(__name__)


class ShellOperation(OperationInterface):
    """
    Runs a command line through the shell and captures stdout.

    ``{{name}}`` placeholders are substituted from the references before the
    command runs. A non-zero exit status fails the operation.
    """

    name = "shell"
    description = "Run a shell command and capture its output"
    examples = (
        'open-tasks shell "git log -1 --format=%H" --token commit',
        'open-tasks shell "grep -c TODO {{file}}" --ref file',
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        require_args(self.name, args, "a COMMAND argument")
        command = substitute(" ".join(args), reference_lookup(refs, context))
        settings = context.settings

        result = await run_process(
            shell_command=command,
            shell=settings.shell,
            timeout=settings.timeout,
            cwd=settings.cwd,
            label=self.name,
        )
        return [Output(result.stdout, (provenance(self.name, refs, command=command),))]


class AiCliOperation(OperationInterface):
    """
    Runs the configured AI command line tool.

    Each reference is passed by its output file after the configured
    context flag; the prompt is the last argument.
    """

    name = "ai-cli"
    description = "Ask the configured AI CLI tool, with references as context files"
    examples = (
        'open-tasks ai-cli "Summarise these notes" --ref notes',
        'open-tasks ai-cli "Review {{0}}" --ref diff --token review',
    )

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        require_args(self.name, args, "a PROMPT argument")
        settings = context.settings
        if settings.ai_cli is None:
            raise ConfigurationError(
                "ai-cli is not configured: set 'aiCli' in .open-tasks/.config.json"
            )

        prompt = substitute(" ".join(args), reference_lookup(refs, context))
        argv = [settings.ai_cli.command, *settings.ai_cli.args]
        for ref in refs:
            if ref.output_file is None:
                raise ValidationError(
                    f"Reference {ref.label} has no output file to pass as context"
                )
            argv.extend([settings.ai_cli.context_flag, str(ref.output_file)])
        argv.append(prompt)

        result = await run_process(
            argv, timeout=settings.timeout, cwd=settings.cwd, label=self.name
        )
        return [
            Output(
                result.stdout,
                (provenance(self.name, refs, tool=settings.ai_cli.command),),
            )
        ]


ClientFactory = Callable[[LlmSettings, float], ChatClient]


class AskOperation(OperationInterface):
    """
    Sends a prompt, followed by the referenced values, to a chat endpoint.

    Uses an OpenAI-compatible API; a local Ollama server by default.
    """

    name = "ask"
    description = "Ask an OpenAI-compatible model, with references as context"
    examples = (
        'open-tasks ask "What does this function do?" --ref source',
        'open-tasks ask "Write release notes" --ref changelog --token notes',
    )

    def __init__(self, client_factory: ClientFactory | None = None):
        """
        Args:
            client_factory: Builds the chat client (ChatClient if None)
        """
        self._client_factory = client_factory or ChatClient

    async def execute(
        self,
        args: Sequence[str],
        refs: Sequence[ReferenceHandle],
        context: WorkflowContextInterface,
    ) -> list[Output]:
        require_args(self.name, args, "a PROMPT argument")
        settings = context.settings

        parts = [substitute(" ".join(args), reference_lookup(refs, context))]
        for ref in refs:
            parts.append(f"--- {ref.label} ---\n{ref.text}")
        prompt = "\n\n".join(parts)

        client = self._client_factory(settings.llm, settings.timeout)
        reply = await client.complete(prompt)
        logger.debug("Received %d characters from %s", len(reply), settings.llm.model)
        return [
            Output(reply, (provenance(self.name, refs, model=settings.llm.model),))
        ]
