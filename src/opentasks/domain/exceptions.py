"""
Domain exceptions for the workflow engine.

Every error an operation can raise derives from OpenTasksError and carries a
``kind`` used in terminal reports and error artifacts. None of them is retried.
"""


class OpenTasksError(Exception):
    """Base class for all workflow engine errors."""

    kind = "Error"


class ReferenceNotFound(OpenTasksError, LookupError):
    """
    Raised when a token or reference id cannot be resolved.

    The unresolved name is kept on ``token`` so callers can report it.
    """

    kind = "ReferenceNotFound"

    def __init__(self, token: str, message: str | None = None):
        """
        Args:
            token: The token or id that failed to resolve
            message: Optional override for the default message
        """
        super().__init__(message or f"Reference not found: {token}")
        self.token = token


class ReadError(OpenTasksError):
    """Raised when a file exists but cannot be read or decoded."""

    kind = "ReadError"

    def __init__(self, path: str, reason: str = ""):
        super().__init__(self._describe(path, reason))
        self.path = path

    def _describe(self, path: str, reason: str) -> str:
        return f"Cannot read {path}: {reason}" if reason else f"Cannot read {path}"


class FileNotFound(ReadError):
    """Raised when a file to load does not exist."""

    kind = "FileNotFound"

    def _describe(self, path: str, reason: str) -> str:
        return f"File not found: {path}"


class WriteError(OpenTasksError):
    """Raised when an invocation directory or output file cannot be written."""

    kind = "WriteError"

    def __init__(self, path: str, reason: str = ""):
        message = f"Cannot write {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.path = path


class OperationTimeout(OpenTasksError, TimeoutError):
    """Raised when an external-process operation exceeds its time bound."""

    kind = "TimeoutError"

    def __init__(self, operation: str, timeout: float):
        super().__init__(f"{operation} timed out after {timeout:g}s")
        self.operation = operation
        self.timeout = timeout


class ValidationError(OpenTasksError, ValueError):
    """Raised for malformed operation names, tokens or missing arguments."""

    kind = "ValidationError"


class ExecutionError(OpenTasksError):
    """
    Raised when an external process exits with a non-zero status.

    The captured stderr (or stdout when stderr is empty) is kept for reports.
    """

    kind = "ExecutionError"

    def __init__(self, command: str, returncode: int, output: str = ""):
        message = f"{command} exited with code {returncode}"
        if output:
            message = f"{message}\n{output.strip()}"
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.output = output


class ConfigurationError(OpenTasksError):
    """Raised when configuration files are invalid."""

    kind = "ConfigurationError"
