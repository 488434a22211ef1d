"""
Build components for ccomp.

- compiler: compiler detection and token normalization
- include_scanner: quoted include extraction
- source_resolver: include -> companion source mapping
- command_builder: compile command assembly
- executor: compile/run child processes
- pipeline: the stage sequence tying them together
"""

from .command_builder import CompileCommand, build_compile_command, output_path_for
from .compiler import CompilerCommand, CompilerFamily, CompilerSpec, detect_ambient_compiler, render, resolve_compiler, resolve_requested
from .executor import ProcessResult, run_artifact, run_compile
from .include_scanner import IncludeDirective, scan_includes
from .pipeline import BuildPipeline, BuildResult, PromptAnswer
from .source_resolver import SourceResolver

__all__ = [
    "BuildPipeline",
    "BuildResult",
    "CompileCommand",
    "CompilerCommand",
    "CompilerFamily",
    "CompilerSpec",
    "IncludeDirective",
    "ProcessResult",
    "PromptAnswer",
    "SourceResolver",
    "build_compile_command",
    "detect_ambient_compiler",
    "output_path_for",
    "render",
    "resolve_compiler",
    "resolve_requested",
    "run_artifact",
    "run_compile",
    "scan_includes",
]
