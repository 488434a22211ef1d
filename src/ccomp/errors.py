"""Error taxonomy for ccomp.

Every failure is raised at its origin as a subclass of CcompError and only
caught by the CLI, which turns it into a report and a process exit status.

Exit codes:
    1  ArgumentParsingError      - CLI input could not be parsed
    2  InvalidCompilerPathError  - no usable compiler
    3  InvalidSourcePathError    - entry path missing or not a .cpp file
    4  ProcessAbortedError       - user declined output directory creation
    5  FileIOError               - entry file could not be read
    6  CompilationFailedError    - compiler exited non-zero
    7  ExecutionFailedError      - artifact exited non-zero (child's status is propagated)
"""

from enum import IntEnum
from typing import Optional


class ErrorCode(IntEnum):
    """Numeric error codes surfaced as process exit statuses."""

    ARGUMENT_PARSING_ERROR = 1
    INVALID_COMPILER_PATH = 2
    INVALID_SOURCE_PATH = 3
    PROCESS_ABORTED = 4
    FILE_IO_ERROR = 5
    COMPILATION_FAILED = 6
    EXECUTION_FAILED = 7


class CcompError(Exception):
    """Base class for all ccomp failures.

    Attributes:
        message: Short human readable description
        source: Offending path or command line, if any
    """

    code: ErrorCode = ErrorCode.ARGUMENT_PARSING_ERROR
    causes: tuple[str, ...] = ()

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.source = source

    @property
    def exit_code(self) -> int:
        """Process exit status for this failure."""
        return int(self.code)

    def __str__(self) -> str:
        if self.source:
            return f"{self.message} ({self.source})"
        return self.message


class ArgumentParsingError(CcompError):
    """Raised when the command line cannot be parsed into a configuration."""

    code = ErrorCode.ARGUMENT_PARSING_ERROR
    causes = ("unknown flag", "flag is missing its value", "source file was not provided")


class InvalidCompilerPathError(CcompError):
    """Raised when no compiler could be detected or the requested one is invalid."""

    code = ErrorCode.INVALID_COMPILER_PATH
    causes = (
        "no C++ compiler found on PATH",
        "compiler token does not match (gnu|clang)-NN",
        "compiler executable does not exist",
    )


class InvalidSourcePathError(CcompError):
    """Raised when the entry file is missing or is not a C++ source file."""

    code = ErrorCode.INVALID_SOURCE_PATH
    causes = ("source file does not exist", "source file does not end in .cpp")


class ProcessAbortedError(CcompError):
    """Raised when the user declines to create the output directory."""

    code = ErrorCode.PROCESS_ABORTED
    causes = ("output directory creation was declined",)


class FileIOError(CcompError):
    """Raised when a source file cannot be opened or read."""

    code = ErrorCode.FILE_IO_ERROR
    causes = ("file might not be readable", "file might not exist")


class CompilationFailedError(CcompError):
    """Raised when the compiler exits with a non-zero status."""

    code = ErrorCode.COMPILATION_FAILED
    causes = ("compiler reported errors, see output above",)

    def __init__(self, message: str, source: Optional[str] = None, returncode: int = 1):
        super().__init__(message, source)
        self.returncode = returncode


class ExecutionFailedError(CcompError):
    """Raised when the built artifact (or the memory checker) exits non-zero.

    The process exit status is the child's own status, not the fixed code.
    """

    code = ErrorCode.EXECUTION_FAILED
    causes = ("program returned a non-zero exit status",)

    def __init__(self, message: str, source: Optional[str] = None, returncode: int = 1):
        super().__init__(message, source)
        self.returncode = returncode

    @property
    def exit_code(self) -> int:
        return self.returncode
