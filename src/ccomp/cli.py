"""
Command-line interface for ccomp.

Usage:
    ccomp main.cpp                      # compile main.cpp and its companions into ./out/main
    ccomp main.cpp -r                   # compile, then run ./out/main
    ccomp main.cpp -rv                  # compile, then run under valgrind
    ccomp main.cpp -c gnu-17            # g++ -std=c++17
    ccomp main.cpp -c "g++-13 -O2"      # any compiler invocation, passed through
    ccomp main.cpp -o build -- -Wall    # everything after -- goes to the compiler
"""

import argparse
import logging
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import NoReturn, Optional

from rich.console import Console
from rich.markup import escape

from ccomp import __version__
from ccomp.build.pipeline import BuildPipeline, ConfirmFn, PromptAnswer, always_yes, interpret_answer
from ccomp.config import BuildParams, CcompSettings
from ccomp.errors import ArgumentParsingError, CcompError, ExecutionFailedError
from ccomp.output import init_timer, set_verbose

BANNER = "[bold red]CCOMP[/bold red] - single-translation-unit C++ build helper"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


@dataclass
class BuildArgs:
    """Arguments for a build."""

    source_path: Path
    output_dir: Optional[Path] = None
    compiler: Optional[str] = None
    run: bool = False
    run_valgrind: bool = False
    yes: bool = False
    verbose: bool = False
    extra_flags: list[str] = field(default_factory=list)

    def to_params(self, settings: CcompSettings) -> BuildParams:
        """Resolve defaults into BuildParams."""
        return BuildParams(
            source_path=self.source_path,
            output_dir=self.output_dir if self.output_dir is not None else settings.default_output_dir,
            compiler=self.compiler,
            run=self.run,
            run_memcheck=self.run_valgrind,
            extra_flags=tuple(self.extra_flags),
        )


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that raises instead of exiting with status 2."""

    def error(self, message: str) -> NoReturn:
        raise ArgumentParsingError(message)


def create_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="ccomp",
        description="Compile a C++ entry file together with the sources of the headers it includes",
        epilog="Arguments after a literal -- are passed to the compiler verbatim.",
        allow_abbrev=False,
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"ccomp {__version__}",
    )
    parser.add_argument(
        "source_path",
        type=Path,
        help="Entry source file (*.cpp)",
    )
    parser.add_argument(
        "-r",
        "--run",
        action="store_true",
        help="Run the program after a successful compile",
    )
    parser.add_argument(
        "-rv",
        "--runValgrind",
        dest="run_valgrind",
        action="store_true",
        help="Run the program under the memory checker after a successful compile",
    )
    parser.add_argument(
        "-o",
        "--output",
        dest="output_dir",
        type=Path,
        default=None,
        help="Output directory (default: ./out)",
    )
    parser.add_argument(
        "-c",
        "--compiler",
        default=None,
        help="Compiler as gnu-NN / clang-NN, or a full compiler invocation (default: auto-detect)",
    )
    parser.add_argument(
        "-y",
        "--yes",
        action="store_true",
        help="Create the output directory without asking",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show verbose output",
    )
    return parser


def parse_args(argv: list[str]) -> BuildArgs:
    """Parse command line arguments (without the program name).

    Raises:
        ArgumentParsingError: If the arguments are malformed
    """
    extra_flags: list[str] = []
    if "--" in argv:
        split = argv.index("--")
        argv, extra_flags = argv[:split], argv[split + 1 :]

    parsed = create_parser().parse_args(argv)
    return BuildArgs(
        source_path=parsed.source_path,
        output_dir=parsed.output_dir,
        compiler=parsed.compiler,
        run=parsed.run,
        run_valgrind=parsed.run_valgrind,
        yes=parsed.yes,
        verbose=parsed.verbose,
        extra_flags=extra_flags,
    )


def interactive_confirm(prompt: str) -> PromptAnswer:
    """Ask on the terminal. End of input counts as "no"."""
    try:
        answer = interpret_answer(input(prompt))
    except EOFError:
        print()
        return PromptAnswer.NO
    if answer is PromptAnswer.REPEAT:
        print("Invalid input. Please enter 'y' or 'n'.")
    return answer


def setup_logging(verbose: bool) -> None:
    """Configure stdlib logging for library debug output."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format=LOG_FORMAT,
        datefmt=LOG_DATEFMT,
    )


def report_error(console: Console, error: CcompError) -> None:
    """Print a failure with its exit code, source and possible causes."""
    console.print()
    console.print(f"[bold red]✗ Process terminated -- exit code {error.exit_code}[/bold red]")
    console.print(escape(error.message))
    if error.source:
        console.print(f"  [dim]{escape(error.source)}[/dim]")
    if error.causes:
        console.print("-- Possible Causes:")
        for cause in error.causes:
            console.print(f"[dim]-- {escape(cause)}[/dim]")


def build_command(args: BuildArgs, settings: CcompSettings, confirm: Optional[ConfirmFn] = None) -> None:
    """Run a build and exit with its status.

    Exit status is 0 on success, the error's code on failure, or the
    program's own status when the run step fails.
    """
    console = Console(highlight=False)
    set_verbose(args.verbose)

    if confirm is None:
        confirm = always_yes if args.yes else interactive_confirm

    try:
        pipeline = BuildPipeline(settings, confirm)
        result = pipeline.run(args.to_params(settings))

        console.print()
        console.print("[bold green]✓ Build successful![/bold green]")
        console.print(f"Binary: {escape(str(result.output_path))}")
        sys.exit(0)

    except ExecutionFailedError as e:
        console.print()
        console.print(f"[bold red]✗ Execution failed -- exit code {e.exit_code}[/bold red]")
        console.print(escape(e.message))
        console.print(f"  [dim]{escape(e.source or '')}[/dim]")
        sys.exit(e.exit_code)

    except CcompError as e:
        report_error(console, e)
        sys.exit(e.exit_code)

    except KeyboardInterrupt:
        console.print()
        console.print("[bold yellow]✗ Build interrupted[/bold yellow]")
        sys.exit(130)  # Standard exit code for SIGINT


def main(argv: Optional[list[str]] = None) -> None:
    """ccomp - build a C++ entry file with the sources it needs."""
    if argv is None:
        argv = sys.argv[1:]

    init_timer()
    console = Console(highlight=False)

    if not argv:
        console.print(BANNER)
        console.print(escape(create_parser().format_usage().rstrip()))
        sys.exit(0)

    try:
        args = parse_args(argv)
    except ArgumentParsingError as e:
        report_error(console, e)
        sys.exit(e.exit_code)

    setup_logging(args.verbose)
    build_command(args, CcompSettings.from_env())


if __name__ == "__main__":
    main()
