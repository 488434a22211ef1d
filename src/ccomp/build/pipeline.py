"""Build pipeline.

Runs one build as a fixed sequence of stages:

    ResolveCompiler -> ValidateSource -> (PromptCreateOutputDir)?
        -> BuildCommand -> Compile -> (Run)? -> Done

Each stage either completes or raises a CcompError; nothing is retried
and no stage runs twice. Confirmation of output directory creation is
delegated to an injected callable so non-interactive callers can supply a
fixed policy.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ccomp.build.command_builder import CompileCommand, build_compile_command
from ccomp.build.compiler import resolve_compiler
from ccomp.build.executor import ProcessResult, run_artifact, run_compile
from ccomp.build.source_resolver import SourceResolver
from ccomp.config import BuildParams, CcompSettings
from ccomp.errors import InvalidSourcePathError, ProcessAbortedError
from ccomp.output import log_build_complete, log_detail, log_phase, log_success, log_warning
from ccomp.path_utils import directory_exists, file_exists

logger = logging.getLogger(__name__)


class PromptAnswer(Enum):
    """Answer to a yes/no confirmation prompt."""

    YES = "yes"
    NO = "no"
    REPEAT = "repeat"


ConfirmFn = Callable[[str], PromptAnswer]


def always_yes(_prompt: str) -> PromptAnswer:
    return PromptAnswer.YES


def always_no(_prompt: str) -> PromptAnswer:
    return PromptAnswer.NO


def interpret_answer(answer: str) -> PromptAnswer:
    """Map a typed answer to a PromptAnswer (y/Y, n/N, anything else repeats)."""
    answer = answer.strip()
    if answer in ("y", "Y"):
        return PromptAnswer.YES
    if answer in ("n", "N"):
        return PromptAnswer.NO
    return PromptAnswer.REPEAT


@dataclass
class BuildResult:
    """Outcome of a successful pipeline run.

    Attributes:
        command: Compile command that was executed
        companions: Include target -> companion source used in the command
        compile_result: Compiler process result
        run_result: Artifact process result, if the artifact was run
        build_time: Seconds spent in the pipeline
    """

    command: CompileCommand
    companions: dict[str, Path] = field(default_factory=dict)
    compile_result: Optional[ProcessResult] = None
    run_result: Optional[ProcessResult] = None
    build_time: float = 0.0

    @property
    def output_path(self) -> Path:
        return self.command.output_path

    @property
    def ran(self) -> bool:
        return self.run_result is not None


class BuildPipeline:
    """Resolves, compiles and optionally runs a single entry file."""

    def __init__(self, settings: CcompSettings, confirm: ConfirmFn, cwd: Optional[Path] = None):
        """Initialize the pipeline.

        Args:
            settings: Process settings
            confirm: Callable answering the output directory prompt
            cwd: Base directory for absolute entry paths (default: Path.cwd())
        """
        self.settings = settings
        self.confirm = confirm
        self.resolver = SourceResolver(settings, cwd=cwd)

    def run(self, params: BuildParams) -> BuildResult:
        """Run every stage for params.

        Raises:
            CcompError: The first failing stage's error
        """
        start_time = time.time()
        total = 4 if params.wants_run else 3

        log_phase(1, total, "Resolving compiler...")
        compiler = resolve_compiler(params.compiler, self.settings)
        log_detail(f"Compiler: {compiler.description}")

        self.validate_source(params.source_path)
        self.ensure_output_dir(params.output_dir)

        log_phase(2, total, "Resolving companion sources...")
        companions = self.resolver.resolve(params.source_path)
        for target, source in companions.items():
            log_detail(f"{target} -> {source}")
        if not companions:
            log_detail("No companion sources", verbose_only=True)

        command = build_compile_command(
            compiler,
            params.source_path,
            params.output_dir,
            params.extra_flags,
            companions,
        )
        self.warn_missing_artifact_parent(command.output_path)

        log_phase(3, total, "Compiling...")
        log_detail(command.command_line)
        result = BuildResult(command=command, companions=companions)
        result.compile_result = run_compile(command)
        log_success(f"Built {command.output_path}")

        if params.wants_run:
            checker = " under memory checker" if params.run_memcheck else ""
            log_phase(4, total, f"Running {command.output_path}{checker}...")
            result.run_result = run_artifact(command.output_path, params.run_memcheck, self.settings)

        result.build_time = time.time() - start_time
        log_build_complete(result.build_time, verbose_only=True)
        return result

    def validate_source(self, source_path: Path) -> None:
        """Check the entry path is an existing .cpp file.

        Raises:
            InvalidSourcePathError: If it is not
        """
        if not self.settings.source_path_pattern.fullmatch(str(source_path)):
            raise InvalidSourcePathError("Source file must be a .cpp file", str(source_path))
        if not file_exists(source_path):
            raise InvalidSourcePathError("Source file does not exist", str(source_path))

    def ensure_output_dir(self, output_dir: Path) -> None:
        """Create the output directory if the user agrees.

        Raises:
            ProcessAbortedError: If the user declines
        """
        if directory_exists(output_dir):
            return

        prompt = f"Create output directory {output_dir}/ [y,n]: "
        while True:
            answer = self.confirm(prompt)
            if answer is PromptAnswer.YES:
                break
            if answer is PromptAnswer.NO:
                raise ProcessAbortedError("Operation aborted by user", str(output_dir))

        output_dir.mkdir(parents=True, exist_ok=True)
        logger.debug(f"Created output directory {output_dir}")
        log_detail(f"Output directory created: {output_dir}")

    def warn_missing_artifact_parent(self, output_path: Path) -> None:
        """Warn when the artifact's directory is missing. Nothing is created."""
        parent = output_path.parent
        if directory_exists(parent):
            return
        log_warning(f"{parent} does not exist; the compiler may fail to write {output_path.name}")
