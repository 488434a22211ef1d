"""
Centralized user-facing output for ccomp.

Every line is prefixed with the elapsed time since launch in MM:SS.cc
format. Output of child processes (compiler, built program) is passed
through unprefixed.

Example output:
    00:00.01 [1/4] Resolving compiler...
    00:00.05       Compiler: clang++ -std=c++20
    00:00.05 [2/4] Resolving companion sources...
    00:00.06       util.hpp -> lib/util.cpp
    00:00.06 [3/4] Compiling...
    00:00.06       clang++ -std=c++20 main.cpp -o out/main lib/util.cpp

Usage:
    from ccomp.output import log, log_phase, log_detail

    log_phase(1, 4, "Resolving compiler...")
    log_detail("Compiler: g++ -std=c++17")
"""

import sys
import time
from typing import Optional, TextIO

# Global state for the timer
_start_time: Optional[float] = None
_output_stream: Optional[TextIO] = None
_verbose: bool = False


def init_timer(output_stream: Optional[TextIO] = None) -> None:
    """
    Initialize the program timer.

    Called automatically on first log if not called explicitly.

    Args:
        output_stream: Optional output stream (defaults to sys.stdout)
    """
    global _start_time, _output_stream
    _start_time = time.time()
    _output_stream = output_stream


def set_verbose(verbose: bool) -> None:
    """Enable or disable messages logged with verbose_only=True."""
    global _verbose
    _verbose = verbose


def get_elapsed() -> float:
    """Elapsed seconds since timer initialization."""
    if _start_time is None:
        init_timer(_output_stream)
    return time.time() - _start_time  # type: ignore


def format_timestamp() -> str:
    """Format the current elapsed time as MM:SS.cc."""
    elapsed = get_elapsed()
    minutes = int(elapsed // 60)
    seconds = elapsed % 60
    return f"{minutes:02d}:{seconds:05.2f}"


def _stream() -> TextIO:
    # Resolved lazily so pytest's capsys replacement of sys.stdout is honored
    return _output_stream if _output_stream is not None else sys.stdout


def _print(message: str) -> None:
    stream = _stream()
    stream.write(f"{format_timestamp()} {message}\n")
    stream.flush()


def write_raw(text: str) -> None:
    """Write text verbatim (no timestamp), e.g. a line of child process output."""
    stream = _stream()
    stream.write(text)
    stream.flush()


def log(message: str, verbose_only: bool = False) -> None:
    """
    Log a message with timestamp.

    Args:
        message: Message to log
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(message)


def log_phase(phase: int, total: int, message: str, verbose_only: bool = False) -> None:
    """
    Log a pipeline phase message.

    Format: [N/M] message
    """
    if verbose_only and not _verbose:
        return
    _print(f"[{phase}/{total}] {message}")


def log_detail(message: str, indent: int = 6, verbose_only: bool = False) -> None:
    """Log an indented detail message."""
    if verbose_only and not _verbose:
        return
    _print(f"{' ' * indent}{message}")


def log_warning(message: str) -> None:
    _print(f"WARNING: {message}")


def log_success(message: str) -> None:
    _print(message)


def log_build_complete(build_time: float, verbose_only: bool = False) -> None:
    """
    Log build completion message.

    Args:
        build_time: Total build time in seconds
        verbose_only: If True, only print if verbose mode is enabled
    """
    if verbose_only and not _verbose:
        return
    _print(f"Build time: {build_time:.2f}s")
