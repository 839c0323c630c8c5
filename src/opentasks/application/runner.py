"""
CommandRunner: drives one command invocation through its lifecycle.

PARSED -> REFERENCES_RESOLVED -> EXECUTING -> SUCCEEDED | FAILED

A failed invocation leaves an error artifact in its directory and never
writes a reference index. Nothing is retried.
"""

import logging
from collections.abc import Sequence

from opentasks.application.context import WorkflowContext
from opentasks.application.references import validate_token
from opentasks.domain.exceptions import OpenTasksError
from opentasks.domain.interfaces import OperationRegistryInterface
from opentasks.domain.models import (
    Invocation,
    InvocationResult,
    InvocationState,
    ReferenceHandle,
)

logger = logging.getLogger(__name__)


class CommandRunner:
    """Resolves references, executes one operation and records the outcome."""

    def __init__(
        self,
        context: WorkflowContext,
        registry: OperationRegistryInterface,
    ):
        """
        Args:
            context: Workflow context for this CLI invocation
            registry: Source of operations by name
        """
        self._context = context
        self._registry = registry

    async def invoke(
        self,
        command_name: str,
        args: Sequence[str] = (),
        refs: Sequence[str] = (),
        token: str | None = None,
    ) -> InvocationResult:
        """
        Run a command by name.

        Args:
            command_name: Registered operation name
            args: Free-form arguments for the operation
            refs: Tokens or ids to resolve, in order
            token: Name to bind to the primary output

        Returns:
            InvocationResult in state SUCCEEDED or FAILED. Failures are
            reported through the result, never raised.
        """
        transitions = [InvocationState.PARSED]
        invocation: Invocation | None = None

        try:
            operation = self._registry.create(command_name)
            invocation = await self._context.open_invocation(operation.name)
            if token is not None:
                validate_token(token)

            resolved: list[ReferenceHandle] = self._context.references.resolve_all(
                refs
            )
            transitions.append(InvocationState.REFERENCES_RESOLVED)

            transitions.append(InvocationState.EXECUTING)
            handles = await self._context.run(
                operation,
                resolved,
                args=args,
                token=token,
                invocation=invocation,
            )
        except Exception as e:
            transitions.append(InvocationState.FAILED)
            return await self._fail(command_name, args, invocation, e, transitions)

        transitions.append(InvocationState.SUCCEEDED)
        logger.info(
            "%s succeeded with %d output(s) in %s",
            command_name,
            len(handles),
            invocation.path,
        )
        return InvocationResult(
            command=command_name,
            state=InvocationState.SUCCEEDED,
            handles=tuple(handles),
            invocation_dir=invocation.path,
            transitions=tuple(transitions),
        )

    async def _fail(
        self,
        command_name: str,
        args: Sequence[str],
        invocation: Invocation | None,
        error: Exception,
        transitions: list[InvocationState],
    ) -> InvocationResult:
        kind = getattr(error, "kind", type(error).__name__)
        logger.error("%s failed (%s): %s", command_name, kind, error)
        logger.debug("Failure detail", exc_info=error)

        error_file = None
        if invocation is not None:
            try:
                error_file = await self._context.record_failure(
                    invocation, error, command_name, args
                )
            except OpenTasksError as write_failure:
                logger.error("Could not write error artifact: %s", write_failure)

        return InvocationResult(
            command=command_name,
            state=InvocationState.FAILED,
            invocation_dir=invocation.path if invocation else None,
            error=error,
            error_file=error_file,
            transitions=tuple(transitions),
        )
