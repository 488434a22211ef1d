"""Compile command construction.

The command is kept as an argv list and only flattened to a string for
display:

    [compiler..., entry, "-o", output, extra flags..., companions...]
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Mapping, Sequence

from ccomp.build.compiler import CompilerCommand
from ccomp.subprocess_utils import format_command


@dataclass(frozen=True)
class CompileCommand:
    """A fully assembled compiler invocation.

    Attributes:
        argv: Program and arguments
        output_path: Artifact the command produces
    """

    argv: tuple[str, ...]
    output_path: Path

    @property
    def command_line(self) -> str:
        return format_command(self.argv)

    def __str__(self) -> str:
        return self.command_line


def output_path_for(entry_path: Path, output_dir: Path) -> Path:
    """Derive the artifact path for an entry file.

    Only the final extension is stripped from the entry path as given, so
    directories in it carry over: ``src/main.cpp`` with ``out`` gives
    ``out/src/main``.
    """
    entry = str(entry_path)
    stem, dot, ext = entry.rpartition(".")
    if not dot or "/" in ext or "\\" in ext:
        stem = entry
    stem_path = Path(stem)
    if stem_path.is_absolute():
        # Joining would discard output_dir
        stem_path = stem_path.relative_to(stem_path.anchor)
    return output_dir / stem_path


def build_compile_command(
    compiler: CompilerCommand,
    entry_path: Path,
    output_dir: Path,
    extra_flags: Sequence[str],
    companions: Mapping[str, Path] | Iterable[Path],
) -> CompileCommand:
    """Assemble the compile command.

    Args:
        compiler: Resolved compiler invocation prefix
        entry_path: Entry source file
        output_dir: Directory receiving the artifact
        extra_flags: Additional compiler flags, inserted before the companions
        companions: Companion sources (a resolver mapping or plain paths)

    Returns:
        CompileCommand
    """
    output_path = output_path_for(entry_path, output_dir)

    argv = list(compiler.argv)
    argv += [str(entry_path), "-o", str(output_path)]
    argv += list(extra_flags)

    sources = companions.values() if isinstance(companions, Mapping) else companions
    seen: set[str] = set()
    for source in sources:
        text = str(source)
        if text in seen:
            continue
        seen.add(text)
        argv.append(text)

    return CompileCommand(argv=tuple(argv), output_path=output_path)
