"""Compiler resolution.

Turns either the ambient C++ toolchain or a user supplied compiler token
into the invocation prefix of the compile command.

Token forms:
    gnu-17            -> g++ -std=c++17
    clang-20          -> clang++ -std=c++20
    anything else     -> passed through verbatim (split shell-style), as long
                         as its first word names an existing executable

Ambient detection dumps the predefined macros of the first available
compiler (``<cxx> -x c++ -dM -E -``) and reads ``__clang__``/``__GNUC__``
for the family and ``__cplusplus`` for the default language standard.
"""

import logging
import re
import shlex
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ccomp.config import CcompSettings
from ccomp.errors import InvalidCompilerPathError
from ccomp.subprocess_utils import find_executable, safe_run

logger = logging.getLogger(__name__)

# __cplusplus value -> two-digit standard label
STANDARD_VERSIONS: dict[int, int] = {
    199711: 98,
    201103: 11,
    201402: 14,
    201703: 17,
    202002: 20,
}

_CPLUSPLUS_RE = re.compile(r"^#define __cplusplus (\d+)L?\s*$", re.MULTILINE)
_CLANG_RE = re.compile(r"^#define __clang__\b", re.MULTILINE)
_GNUC_RE = re.compile(r"^#define __GNUC__\b", re.MULTILINE)


class CompilerFamily(Enum):
    """Supported compiler families and their driver binaries."""

    GNU = "gnu"
    CLANG = "clang"

    @property
    def binary(self) -> str:
        return "g++" if self is CompilerFamily.GNU else "clang++"


@dataclass(frozen=True)
class CompilerSpec:
    """A compiler family paired with a C++ standard version.

    Attributes:
        family: Compiler family
        standard_version: Two-digit standard label (e.g. 17 for C++17)
    """

    family: CompilerFamily
    standard_version: int

    @property
    def standard_label(self) -> str:
        return f"{self.standard_version:02d}"

    def argv(self) -> list[str]:
        return [self.family.binary, f"-std=c++{self.standard_label}"]


@dataclass(frozen=True)
class CompilerCommand:
    """Resolved invocation prefix for the compile command.

    Attributes:
        argv: Program name followed by its leading arguments
        spec: The CompilerSpec it was rendered from (None for passthrough)
    """

    argv: tuple[str, ...]
    spec: Optional[CompilerSpec] = None

    @property
    def description(self) -> str:
        return " ".join(self.argv)


def render(spec: CompilerSpec) -> str:
    """Render a CompilerSpec as ``"<binary> -std=c++<NN>"``."""
    return " ".join(spec.argv())


def resolve_requested(token: str, settings: CcompSettings) -> Optional[CompilerSpec]:
    """Parse a ``(gnu|clang)-NN`` token.

    Returns:
        CompilerSpec, or None if the token does not match the pattern
    """
    if not settings.compiler_token_pattern.fullmatch(token):
        return None
    family_token, version = token.split("-", 1)
    return CompilerSpec(family=CompilerFamily(family_token), standard_version=int(version))


def parse_predefined_macros(macros: str) -> Optional[CompilerSpec]:
    """Build a CompilerSpec from ``-dM -E`` output.

    Returns:
        CompilerSpec, or None for an unknown family or language standard
    """
    if _CLANG_RE.search(macros):
        family = CompilerFamily.CLANG
    elif _GNUC_RE.search(macros):
        family = CompilerFamily.GNU
    else:
        return None

    match = _CPLUSPLUS_RE.search(macros)
    if match is None:
        return None
    version = STANDARD_VERSIONS.get(int(match.group(1)))
    if version is None:
        logger.debug(f"Unknown __cplusplus value {match.group(1)}")
        return None
    return CompilerSpec(family=family, standard_version=version)


def detect_ambient_compiler(settings: CcompSettings) -> Optional[CompilerSpec]:
    """Detect the compiler family and default standard of the ambient toolchain.

    Probes each of settings.probe_compilers in order and returns the first
    one that can be identified.

    Returns:
        CompilerSpec, or None if no compiler could be identified
    """
    for candidate in settings.probe_compilers:
        argv = shlex.split(candidate)
        if not argv or find_executable(argv[0]) is None:
            logger.debug(f"Compiler candidate not found: {candidate}")
            continue

        try:
            result = safe_run(
                argv + ["-x", "c++", "-dM", "-E", "-"],
                input="",
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as e:
            logger.debug(f"Failed to probe {candidate}: {e}")
            continue

        if result.returncode != 0:
            logger.debug(f"Probe of {candidate} exited with {result.returncode}")
            continue

        spec = parse_predefined_macros(result.stdout)
        if spec is not None:
            logger.debug(f"Detected ambient compiler {render(spec)} via {candidate}")
            return spec

    return None


def resolve_compiler(token: Optional[str], settings: CcompSettings) -> CompilerCommand:
    """Resolve the compiler invocation for a build.

    Args:
        token: Requested compiler (family-NN token or invocation string),
            or None to use the ambient toolchain
        settings: Process settings

    Returns:
        CompilerCommand to place at the front of the compile command

    Raises:
        InvalidCompilerPathError: If no compiler could be resolved
    """
    if token is None:
        spec = detect_ambient_compiler(settings)
        if spec is None:
            raise InvalidCompilerPathError(
                "Could not detect a C++ compiler",
                ", ".join(settings.probe_compilers),
            )
        return CompilerCommand(argv=tuple(spec.argv()), spec=spec)

    spec = resolve_requested(token, settings)
    if spec is not None:
        return CompilerCommand(argv=tuple(spec.argv()), spec=spec)

    try:
        argv = shlex.split(token)
    except ValueError as e:
        raise InvalidCompilerPathError(f"Malformed compiler string: {e}", token) from e

    if not argv or find_executable(argv[0]) is None:
        raise InvalidCompilerPathError("Invalid compiler", token)

    logger.debug(f"Passing compiler through verbatim: {argv}")
    return CompilerCommand(argv=tuple(argv))
