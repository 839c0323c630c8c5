"""
Filesystem output materializer.

Every command execution gets its own directory
``{output_dir}/{timestamp}-{command}/``. Outputs are written there as whole
files; a successful invocation also records the references it published in
``index.json`` so later CLI runs can resolve them by token.
"""

import json
import logging
import re
import threading
import traceback
from collections.abc import Callable, Sequence
from datetime import datetime, timedelta
from pathlib import Path
from typing import TYPE_CHECKING, Any

import jsonschema

from opentasks.domain.exceptions import ReadError, ValidationError, WriteError
from opentasks.domain.interfaces import OutputMaterializerInterface
from opentasks.domain.models import (
    Content,
    DecoratedEntry,
    Invocation,
    ReferenceHandle,
)
from opentasks.domain.timestamps import (
    DEFAULT_TIMESTAMP_FORMAT,
    format_timestamp,
    has_millisecond_precision,
)
from opentasks.schemas import validate_index

if TYPE_CHECKING:
    from opentasks.application.references import ReferenceManager

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.json"
INDEX_VERSION = "1.0"
_MAX_DIRECTORY_ATTEMPTS = 100
_COMMAND_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")


class InvocationClock:
    """
    Strictly increasing timestamps at the precision a pattern can render.

    Two calls never return moments that format identically, even when the
    wall clock stands still or goes backwards.
    """

    def __init__(self, now: Callable[[], datetime] = datetime.now):
        self._now = now
        self._last: datetime | None = None
        self._lock = threading.Lock()

    def next(self, pattern: str = DEFAULT_TIMESTAMP_FORMAT) -> datetime:
        if has_millisecond_precision(pattern):
            step = timedelta(milliseconds=1)
        else:
            step = timedelta(seconds=1)

        with self._lock:
            moment = _truncate(self._now(), step)
            if self._last is not None and moment <= self._last:
                moment = self._last + step
            self._last = moment
            return moment


def _truncate(moment: datetime, step: timedelta) -> datetime:
    if step >= timedelta(seconds=1):
        return moment.replace(microsecond=0)
    return moment.replace(microsecond=moment.microsecond // 1000 * 1000)


# One clock per process so every materializer yields unique directory names.
_process_clock = InvocationClock()


class FilesystemOutputMaterializer(OutputMaterializerInterface):
    """Writes outputs, reference indexes and error reports to disk."""

    def __init__(
        self,
        output_dir: str | Path,
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
        clock: InvocationClock | None = None,
        cwd: Path | None = None,
    ):
        """
        Args:
            output_dir: Root of all invocation directories
            timestamp_format: Pattern for the directory timestamp
            clock: Source of invocation times (process clock if None)
            cwd: Working directory recorded in error reports
        """
        self._output_dir = Path(output_dir)
        self._timestamp_format = timestamp_format
        self._clock = clock or _process_clock
        self._cwd = cwd or Path.cwd()

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def open_invocation(self, command: str) -> Invocation:
        if not _COMMAND_NAME_RE.match(command):
            raise ValidationError(f"Invalid command name for a directory: '{command}'")

        for _ in range(_MAX_DIRECTORY_ATTEMPTS):
            moment = self._clock.next(self._timestamp_format)
            stamp = format_timestamp(moment, self._timestamp_format)
            path = self._output_dir / f"{stamp}-{command}"
            try:
                path.mkdir(parents=True, exist_ok=False)
            except FileExistsError:
                logger.debug("Invocation directory %s exists, retrying", path)
                continue
            except OSError as e:
                raise WriteError(str(path), e.strerror or str(e)) from e
            logger.debug("Opened invocation directory %s", path)
            return Invocation(command=command, path=path, started_at=moment)

        raise WriteError(
            str(self._output_dir), "no unused invocation directory name available"
        )

    def materialize(self, entry: DecoratedEntry, invocation_dir: Path) -> Path:
        target = invocation_dir / entry.filename
        if not target.resolve().is_relative_to(invocation_dir.resolve()):
            raise WriteError(str(target), "path escapes the invocation directory")

        if isinstance(entry.content, bytes):
            data = entry.content
        else:
            data = entry.content.encode("utf-8")

        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as e:
            raise WriteError(str(target), e.strerror or str(e)) from e

        logger.debug("Wrote %s (%d bytes)", target, len(data))
        return target

    def write_index(
        self, invocation: Invocation, handles: Sequence[ReferenceHandle]
    ) -> Path:
        """
        Atomically write ``index.json`` for a successful invocation.

        Handles that were never written to disk cannot be replayed and are
        left out.
        """
        records = [
            {
                "id": handle.ref_id,
                "token": handle.token,
                "file": handle.output_file.relative_to(invocation.path).as_posix(),
                "createdAt": handle.created_at.isoformat(),
                "binary": isinstance(handle.content, bytes),
            }
            for handle in handles
            if handle.output_file is not None
        ]
        index = {
            "version": INDEX_VERSION,
            "command": invocation.command,
            "startedAt": invocation.started_at.isoformat(),
            "references": records,
        }

        index_path = invocation.path / INDEX_FILENAME
        temp_path = index_path.with_suffix(".tmp")
        try:
            temp_path.write_text(json.dumps(index, indent=2), encoding="utf-8")
            temp_path.replace(index_path)
        except OSError as e:
            raise WriteError(str(index_path), e.strerror or str(e)) from e
        return index_path

    def write_error(
        self,
        invocation: Invocation,
        error: BaseException,
        command: str,
        args: Sequence[str],
    ) -> Path:
        context = {
            "command": command,
            "args": list(args),
            "cwd": str(self._cwd),
            "invocation": str(invocation.path),
        }
        stack = "".join(traceback.format_exception(error)).rstrip()
        report = "\n".join(
            [
                "ERROR REPORT",
                "============",
                "",
                f"Time: {datetime.now().isoformat()}",
                f"Kind: {getattr(error, 'kind', type(error).__name__)}",
                f"Error: {error}",
                "",
                "Stack Trace:",
                stack or "No stack trace available",
                "",
                "Context:",
                json.dumps(context, indent=2),
                "",
            ]
        )

        error_path = invocation.path / f"{command}.error"
        try:
            invocation.path.mkdir(parents=True, exist_ok=True)
            error_path.write_text(report, encoding="utf-8")
        except OSError as e:
            raise WriteError(str(error_path), e.strerror or str(e)) from e
        logger.debug("Wrote error report %s", error_path)
        return error_path


# =============================================================================
# CROSS-RUN REHYDRATION
# =============================================================================


def read_index(index_path: Path) -> dict[str, Any]:
    """
    Load and validate one invocation index.

    Raises:
        OSError: If the file cannot be read
        json.JSONDecodeError: If it is not JSON
        jsonschema.ValidationError: If it does not match the index schema
    """
    data: dict[str, Any] = json.loads(index_path.read_text(encoding="utf-8"))
    validate_index(data)
    return data


def rehydrate_references(
    references: "ReferenceManager", output_dir: str | Path
) -> int:
    """
    Replay the indexes of earlier invocations into a reference manager.

    Directories are replayed in name order, which is chronological for the
    default timestamp pattern; a token ends up bound to its most recent
    output that still exists. Directories without an index (failed
    invocations) are skipped, as are unreadable indexes and missing output
    files. Content is read when a reference is first resolved.

    Returns:
        Number of references restored
    """
    root = Path(output_dir)
    if not root.is_dir():
        return 0

    records: list[tuple[Path, dict[str, Any]]] = []
    for directory in sorted(p for p in root.iterdir() if p.is_dir()):
        index_path = directory / INDEX_FILENAME
        if not index_path.is_file():
            continue
        try:
            index = read_index(index_path)
        except (OSError, json.JSONDecodeError, jsonschema.ValidationError) as e:
            logger.warning("Skipping unreadable index %s: %s", index_path, e)
            continue
        for record in index["references"]:
            output_file = directory / record["file"]
            if output_file.is_file():
                records.append((output_file, record))
            else:
                logger.warning(
                    "Skipping reference %s: %s is missing", record["id"], output_file
                )

    # Only the latest surviving record for a token keeps the binding.
    latest: dict[str, int] = {}
    for position, (_, record) in enumerate(records):
        if record.get("token"):
            latest[record["token"]] = position

    for position, (output_file, record) in enumerate(records):
        token = record.get("token")
        if token and latest[token] != position:
            token = None

        references.create_deferred_reference(
            record["id"],
            _file_reader(output_file, binary=bool(record.get("binary"))),
            token,
            output_file,
            datetime.fromisoformat(record["createdAt"]),
        )

    logger.debug("Restored %d reference(s) from %s", len(records), root)
    return len(records)


def _file_reader(path: Path, binary: bool) -> Callable[[], Content]:
    def read() -> Content:
        try:
            raw = path.read_bytes()
        except OSError as e:
            raise ReadError(str(path), e.strerror or str(e)) from e
        return raw if binary else raw.decode("utf-8", errors="replace")

    return read
