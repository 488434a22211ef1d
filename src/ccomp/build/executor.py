"""Child process execution for the compile and run steps.

Both steps merge the child's stderr into stdout, stream it to the console
chunk by chunk as it arrives, partial lines such as prompts included, and
keep a copy for the result. There is no timeout: a hung compiler or
program blocks until interrupted.
"""

import codecs
import os
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from ccomp.build.command_builder import CompileCommand
from ccomp.config import CcompSettings
from ccomp.errors import CompilationFailedError, ExecutionFailedError, InvalidCompilerPathError
from ccomp.output import log, write_raw
from ccomp.subprocess_utils import format_command, safe_popen

# Shell convention for "command not found"
EXIT_COMMAND_NOT_FOUND = 127

READ_CHUNK_SIZE = 4096


@dataclass
class ProcessResult:
    """Outcome of a child process.

    Attributes:
        argv: Program and arguments that were run
        returncode: Exit status, signals mapped to 128 + signal number
        output: Combined stdout/stderr
    """

    argv: tuple[str, ...]
    returncode: int
    output: str

    @property
    def command_line(self) -> str:
        return format_command(self.argv)

    @property
    def success(self) -> bool:
        return self.returncode == 0


def normalize_returncode(returncode: int) -> int:
    """Map a Popen return code to a process exit status.

    Popen reports death by signal N as -N; shells report 128 + N.
    """
    if returncode < 0:
        return 128 - returncode
    return returncode


def stream_process(argv: Sequence[str], interactive: bool = False) -> ProcessResult:
    """Run argv, echoing its merged output as it is produced.

    Args:
        argv: Program and arguments
        interactive: Let the child read the terminal's stdin

    Returns:
        ProcessResult

    Raises:
        FileNotFoundError: If the program does not exist
        PermissionError: If the program is not executable
    """
    log(f"Running: {format_command(argv)}", verbose_only=True)

    kwargs = {"stdin": None} if interactive else {}
    proc = safe_popen(
        argv,
        stdout=subprocess.PIPE,
        stderr=subprocess.STDOUT,
        **kwargs,
    )

    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    chunks: list[str] = []
    with proc.stdout:
        while True:
            data = proc.stdout.read1(READ_CHUNK_SIZE)
            text = decoder.decode(data, final=not data)
            if text:
                chunks.append(text)
                write_raw(text)
            if not data:
                break
    returncode = proc.wait()

    return ProcessResult(argv=tuple(argv), returncode=normalize_returncode(returncode), output="".join(chunks))


def run_compile(command: CompileCommand) -> ProcessResult:
    """Run the compile command.

    Raises:
        InvalidCompilerPathError: If the compiler executable cannot be started
        CompilationFailedError: If the compiler exits non-zero
    """
    try:
        result = stream_process(command.argv)
    except OSError as e:
        raise InvalidCompilerPathError(f"Could not start compiler: {e.strerror or e}", command.argv[0]) from e

    if not result.success:
        raise CompilationFailedError(
            f"Compilation failed with exit code {result.returncode}",
            command.command_line,
            returncode=result.returncode,
        )
    return result


def artifact_argv(output_path: Path, use_memory_checker: bool, settings: CcompSettings) -> list[str]:
    """Build the argv that runs the artifact, optionally under the memory checker."""
    executable = str(output_path)
    if not output_path.is_absolute() and output_path.parent == Path("."):
        # A bare name would be looked up on PATH
        executable = f".{os.sep}{executable}"

    if use_memory_checker:
        return [*settings.memcheck_command, executable]
    return [executable]


def run_artifact(output_path: Path, use_memory_checker: bool, settings: CcompSettings) -> ProcessResult:
    """Run the built artifact.

    Raises:
        ExecutionFailedError: If the program (or memory checker) exits non-zero
            or cannot be started; returncode carries the child's status
    """
    argv = artifact_argv(output_path, use_memory_checker, settings)
    try:
        result = stream_process(argv, interactive=True)
    except OSError as e:
        raise ExecutionFailedError(
            f"Could not start {argv[0]}: {e.strerror or e}",
            format_command(argv),
            returncode=EXIT_COMMAND_NOT_FOUND,
        ) from e

    if not result.success:
        raise ExecutionFailedError(
            f"Execution failed with exit code {result.returncode}",
            result.command_line,
            returncode=result.returncode,
        )
    return result
