"""Subprocess utilities for platform-safe process execution.

Wrappers around the subprocess module that apply platform-specific flags
(no console window flashing on Windows) and keep child processes from
inheriting the console input handle unless the caller asks for it.
"""

import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Any, Optional, Sequence


def get_subprocess_creation_flags() -> int:
    """Get platform-specific subprocess creation flags.

    Returns:
        - Windows: subprocess.CREATE_NO_WINDOW (prevents console window)
        - Other platforms: 0 (no special flags)
    """
    if sys.platform == "win32":
        return subprocess.CREATE_NO_WINDOW
    return 0


def _apply_platform_defaults(kwargs: dict[str, Any]) -> dict[str, Any]:
    default_flags = get_subprocess_creation_flags()

    if "creationflags" in kwargs:
        kwargs["creationflags"] = kwargs["creationflags"] | default_flags
    elif default_flags:
        kwargs["creationflags"] = default_flags

    # Callers that need the terminal (the built program) pass stdin explicitly
    if "stdin" not in kwargs:
        kwargs["stdin"] = subprocess.DEVNULL

    return kwargs


def safe_run(cmd: Sequence[str], **kwargs: Any) -> subprocess.CompletedProcess:
    """Execute subprocess.run with platform-specific flags.

    Args:
        cmd: Command and arguments (same as subprocess.run)
        **kwargs: Additional arguments passed to subprocess.run

    Returns:
        CompletedProcess result from subprocess.run

    Note:
        - An explicit 'creationflags' is OR'd with the platform defaults.
        - An explicit 'stdin' is used as-is, otherwise stdin is DEVNULL.
    """
    return subprocess.run(list(cmd), **_apply_platform_defaults(kwargs))


def safe_popen(cmd: Sequence[str], **kwargs: Any) -> subprocess.Popen:
    """Execute subprocess.Popen with platform-specific flags.

    Same defaults as safe_run(), for callers that consume output
    incrementally.

    Args:
        cmd: Command and arguments (same as subprocess.Popen)
        **kwargs: Additional arguments passed to subprocess.Popen

    Returns:
        Popen process handle
    """
    return subprocess.Popen(list(cmd), **_apply_platform_defaults(kwargs))


def format_command(cmd: Sequence[str]) -> str:
    """Flatten an argv list into a single shell-quoted display string."""
    return shlex.join(str(part) for part in cmd)


def find_executable(name: str) -> Optional[str]:
    """Locate an executable by name on PATH, or as a direct path.

    Returns:
        Resolved executable path, or None if not found
    """
    found = shutil.which(name)
    if found:
        return found
    candidate = Path(name)
    if candidate.is_file():
        return str(candidate)
    return None
