"""
Configuration values for ccomp.

All patterns and defaults are held by a single frozen CcompSettings instance
built once at startup and handed to every component that needs it.

Environment overrides:
- CCOMP_OUTPUT_DIR: default output directory (default: ./out)
- CCOMP_MEMCHECK: memory checker launcher, shell-style (default: valgrind)
- CCOMP_CXX / CXX: compiler probed for ambient toolchain detection
"""

import os
import re
import shlex
from dataclasses import dataclass, field
from pathlib import Path
from typing import Mapping, Optional

INCLUDE_PATTERN = r'^\s*#include\s*"([^"]+)"\s*$'
COMPILER_TOKEN_PATTERN = r"^(gnu|clang)-[0-9]{2}$"
SOURCE_PATH_PATTERN = r"^.+\.cpp$"

DEFAULT_OUTPUT_DIR = "./out"
DEFAULT_MEMCHECK = "valgrind"
DEFAULT_PROBE_COMPILERS = ("c++", "clang++", "g++")


@dataclass(frozen=True)
class CcompSettings:
    """Process-wide settings threaded through the build components.

    Attributes:
        include_pattern: Matches one quoted include directive per line
        compiler_token_pattern: Matches a family-NN compiler token
        source_path_pattern: Matches an acceptable entry file path
        implementation_suffix: Extension of companion source files
        default_output_dir: Output directory used when -o is not given
        memcheck_command: Launcher argv wrapped around the artifact for -rv
        probe_compilers: Compilers tried, in order, for ambient detection
    """

    include_pattern: re.Pattern = field(default_factory=lambda: re.compile(INCLUDE_PATTERN))
    compiler_token_pattern: re.Pattern = field(default_factory=lambda: re.compile(COMPILER_TOKEN_PATTERN))
    source_path_pattern: re.Pattern = field(default_factory=lambda: re.compile(SOURCE_PATH_PATTERN))
    implementation_suffix: str = ".cpp"
    default_output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    memcheck_command: tuple[str, ...] = (DEFAULT_MEMCHECK,)
    probe_compilers: tuple[str, ...] = DEFAULT_PROBE_COMPILERS

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "CcompSettings":
        """Create settings, applying CCOMP_* environment overrides."""
        env = os.environ if environ is None else environ

        output_dir = env.get("CCOMP_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR
        memcheck = shlex.split(env.get("CCOMP_MEMCHECK") or DEFAULT_MEMCHECK)

        probe: list[str] = []
        for var in ("CCOMP_CXX", "CXX"):
            value = env.get(var)
            if value and value not in probe:
                probe.append(value)
        probe.extend(name for name in DEFAULT_PROBE_COMPILERS if name not in probe)

        return cls(
            default_output_dir=Path(output_dir),
            memcheck_command=tuple(memcheck) or (DEFAULT_MEMCHECK,),
            probe_compilers=tuple(probe),
        )


@dataclass(frozen=True)
class BuildParams:
    """Per-invocation build parameters from the CLI.

    Attributes:
        source_path: Entry file as given on the command line
        output_dir: Directory receiving the artifact
        compiler: Requested compiler token or invocation string (None = detect)
        run: Run the artifact after a successful compile
        run_memcheck: Run the artifact under the memory checker
        extra_flags: Flags inserted between the output flag and companion sources
    """

    source_path: Path
    output_dir: Path
    compiler: Optional[str] = None
    run: bool = False
    run_memcheck: bool = False
    extra_flags: tuple[str, ...] = ()

    @property
    def wants_run(self) -> bool:
        """True when either run flag was given."""
        return self.run or self.run_memcheck
