"""
External process execution with a time bound.

Processes are started with ``asyncio.create_subprocess_*`` and awaited with
``asyncio.wait_for``. Each process leads its own process group; on timeout
the whole group is killed, so children started by a shell go too, and the
process is reaped before OperationTimeout is raised.
"""

import asyncio
import logging
import os
import signal
import sys
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from opentasks.domain.exceptions import ExecutionError, OperationTimeout, ValidationError

logger = logging.getLogger(__name__)

_POSIX = sys.platform != "win32"


@dataclass(frozen=True)
class ProcessResult:
    """Captured output of a finished process."""

    returncode: int
    stdout: str
    stderr: str


async def run_process(
    argv: Sequence[str] | None = None,
    *,
    shell_command: str | None = None,
    shell: str | None = None,
    timeout: float,
    cwd: Path | None = None,
    label: str | None = None,
    check: bool = True,
) -> ProcessResult:
    """
    Run a process to completion and capture its output.

    Exactly one of ``argv`` and ``shell_command`` must be given.

    Args:
        argv: Program and arguments, executed without a shell
        shell_command: Command line run through the shell
        shell: Shell executable overriding the system default
        timeout: Seconds before the process is killed
        cwd: Working directory
        label: Name used in errors and logs
        check: Raise ExecutionError on a non-zero exit status

    Returns:
        ProcessResult with decoded stdout and stderr

    Raises:
        OperationTimeout: If the process did not finish in time
        ExecutionError: If check is set and the exit status is non-zero,
            or the program could not be started
    """
    if (argv is None) == (shell_command is None):
        raise ValidationError("Give either argv or shell_command")

    if argv is not None:
        if not argv:
            raise ValidationError("Empty command")
        name = label or argv[0]
        logger.debug("Starting %s", list(argv))
        try:
            process = await asyncio.create_subprocess_exec(
                *argv,
                cwd=cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                start_new_session=_POSIX,
            )
        except OSError as e:
            raise ExecutionError(name, 127, e.strerror or str(e)) from e
    else:
        name = label or "shell"
        logger.debug("Starting shell command: %s", shell_command)
        process = await asyncio.create_subprocess_shell(
            shell_command,
            cwd=cwd,
            executable=shell,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=_POSIX,
        )

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except TimeoutError:
        _kill(process)
        await process.wait()
        logger.warning("%s killed after %ss", name, timeout)
        raise OperationTimeout(name, timeout) from None

    result = ProcessResult(
        returncode=process.returncode if process.returncode is not None else -1,
        stdout=stdout.decode("utf-8", errors="replace"),
        stderr=stderr.decode("utf-8", errors="replace"),
    )
    logger.debug("%s exited with %d", name, result.returncode)

    if check and result.returncode != 0:
        raise ExecutionError(name, result.returncode, result.stderr or result.stdout)
    return result


def _kill(process: asyncio.subprocess.Process) -> None:
    """Kill a process and every process in its group."""
    if not _POSIX:
        process.kill()
        return
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        logger.debug("Process group %d already exited", process.pid)
