from typing import Optional

from .schemas import ErrorKind


class ExecutionError(Exception):
    """Base for every failure the engine reports as an unsuccessful result.

    ``stdout`` and ``time_ms`` carry whatever the run produced before it
    failed so the result can still show partial output.
    """

    kind = ErrorKind.INTERNAL_ERROR
    default_message = 'execution failed'

    def __init__(self, message: Optional[str] = None, stdout: str = '',
                 time_ms: Optional[int] = None):
        super().__init__(message or self.default_message)
        self.stdout = stdout
        self.time_ms = time_ms


class UnsupportedLanguage(ExecutionError):
    kind = ErrorKind.UNSUPPORTED_LANGUAGE

    def __init__(self, language: str):
        super().__init__(f'Unsupported language: {language}')
        self.language = language


class WorkspaceError(ExecutionError):
    kind = ErrorKind.WORKSPACE_ERROR


class CompileError(ExecutionError):
    kind = ErrorKind.COMPILE_ERROR
    default_message = 'Compilation failed'


class RuntimeFailure(ExecutionError):
    kind = ErrorKind.RUNTIME_ERROR


class TimeLimitExceeded(ExecutionError):
    kind = ErrorKind.TIME_LIMIT_EXCEEDED
    default_message = 'Time limit exceeded'


class OutputLimitExceeded(ExecutionError):
    kind = ErrorKind.OUTPUT_LIMIT_EXCEEDED
    default_message = 'Output limit exceeded'


class InternalError(ExecutionError):
    kind = ErrorKind.INTERNAL_ERROR


class ToolchainError(InternalError):
    """A compiler or interpreter binary could not be started."""


class BackendUnavailable(InternalError):
    """The isolation backend (e.g. the Docker daemon) cannot be reached."""
