"""Tests for the build pipeline stage sequence."""

import io
import sys
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest

from ccomp.build.compiler import CompilerFamily, CompilerSpec
from ccomp.build.pipeline import BuildPipeline, PromptAnswer, always_no, always_yes, interpret_answer
from ccomp.config import BuildParams
from ccomp.errors import (
    CompilationFailedError,
    ExecutionFailedError,
    FileIOError,
    InvalidCompilerPathError,
    InvalidSourcePathError,
    ProcessAbortedError,
)


def _mock_proc(returncode: int = 0, output: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.stdout = io.BytesIO(output)
    proc.wait.return_value = returncode
    return proc


def _params(**overrides) -> BuildParams:
    values = dict(source_path=Path("main.cpp"), output_dir=Path("./out"), compiler="clang-20")
    values.update(overrides)
    return BuildParams(**values)


@pytest.mark.parametrize(
    "answer,expected",
    [("y", PromptAnswer.YES), ("Y", PromptAnswer.YES), ("n", PromptAnswer.NO), ("N", PromptAnswer.NO), ("yes", PromptAnswer.REPEAT), ("", PromptAnswer.REPEAT)],
)
def test_interpret_answer(answer, expected):
    assert interpret_answer(answer) is expected


class TestBuildPipeline:
    """Test the full ResolveCompiler -> ... -> Run sequence."""

    @patch("ccomp.build.executor.safe_popen")
    def test_end_to_end_without_run(self, mock_popen, cpp_project, settings):
        (cpp_project / "out").mkdir()
        mock_popen.return_value = _mock_proc(0)

        result = BuildPipeline(settings, always_no).run(_params())

        mock_popen.assert_called_once()
        argv = list(mock_popen.call_args[0][0])
        assert argv == ["clang++", "-std=c++20", "main.cpp", "-o", "out/main", "lib/util.cpp"]
        assert result.command.command_line == "clang++ -std=c++20 main.cpp -o out/main lib/util.cpp"
        assert result.companions == {"util.hpp": Path("lib/util.cpp")}
        assert not result.ran

    @patch("ccomp.build.executor.safe_popen")
    def test_entry_without_includes(self, mock_popen, cpp_project, settings):
        (cpp_project / "out").mkdir()
        (cpp_project / "solo.cpp").write_text("int main() {}\n")
        mock_popen.return_value = _mock_proc(0)

        result = BuildPipeline(settings, always_no).run(_params(source_path=Path("solo.cpp")))

        assert result.command.argv == ("clang++", "-std=c++20", "solo.cpp", "-o", "out/solo")

    @patch("ccomp.build.executor.safe_popen")
    def test_extra_flags_before_companions(self, mock_popen, cpp_project, settings):
        (cpp_project / "out").mkdir()
        mock_popen.return_value = _mock_proc(0)

        result = BuildPipeline(settings, always_no).run(_params(extra_flags=("-Wall",)))

        assert result.command.argv[-2:] == ("-Wall", "lib/util.cpp")

    @patch("ccomp.build.executor.safe_popen")
    def test_run_after_compile(self, mock_popen, cpp_project, settings):
        (cpp_project / "out").mkdir()
        mock_popen.side_effect = [_mock_proc(0), _mock_proc(0, b"hi\n")]

        result = BuildPipeline(settings, always_no).run(_params(run=True))

        assert result.ran
        assert result.run_result.output == "hi\n"
        assert list(mock_popen.call_args_list[1][0][0]) == ["out/main"]

    @patch("ccomp.build.executor.safe_popen")
    def test_memcheck_takes_precedence(self, mock_popen, cpp_project, settings):
        (cpp_project / "out").mkdir()
        mock_popen.side_effect = [_mock_proc(0), _mock_proc(0)]

        BuildPipeline(settings, always_no).run(_params(run=True, run_memcheck=True))

        assert list(mock_popen.call_args_list[1][0][0]) == ["valgrind", "out/main"]

    @patch("ccomp.build.executor.safe_popen")
    def test_compile_failure_skips_run(self, mock_popen, cpp_project, settings):
        (cpp_project / "out").mkdir()
        mock_popen.return_value = _mock_proc(1, b"error: boom\n")

        with pytest.raises(CompilationFailedError) as exc_info:
            BuildPipeline(settings, always_no).run(_params(run=True, run_memcheck=True))

        assert mock_popen.call_count == 1
        assert "main.cpp" in exc_info.value.source

    @patch("ccomp.build.executor.safe_popen")
    def test_run_failure_propagates_status(self, mock_popen, cpp_project, settings):
        (cpp_project / "out").mkdir()
        mock_popen.side_effect = [_mock_proc(0), _mock_proc(3)]

        with pytest.raises(ExecutionFailedError) as exc_info:
            BuildPipeline(settings, always_no).run(_params(run=True))

        assert exc_info.value.exit_code == 3

    @patch("ccomp.build.executor.safe_popen")
    def test_missing_entry(self, mock_popen, cpp_project, settings):
        with pytest.raises(InvalidSourcePathError) as exc_info:
            BuildPipeline(settings, always_yes).run(_params(source_path=Path("nope.cpp")))

        assert exc_info.value.exit_code == 3
        mock_popen.assert_not_called()
        assert not (cpp_project / "out").exists()

    def test_wrong_extension(self, cpp_project, settings):
        with pytest.raises(InvalidSourcePathError):
            BuildPipeline(settings, always_yes).run(_params(source_path=Path("util.hpp")))

    @pytest.mark.skipif(sys.platform == "win32", reason="newline not allowed in Windows filenames")
    def test_trailing_newline_in_entry_path(self, cpp_project, settings):
        (cpp_project / "main.cpp\n").write_text("int main() {}\n")

        with pytest.raises(InvalidSourcePathError) as exc_info:
            BuildPipeline(settings, always_yes).validate_source(Path("main.cpp\n"))

        assert exc_info.value.message == "Source file must be a .cpp file"

    def test_entry_is_directory(self, cpp_project, settings):
        (cpp_project / "dir.cpp").mkdir()
        with pytest.raises(InvalidSourcePathError):
            BuildPipeline(settings, always_yes).run(_params(source_path=Path("dir.cpp")))

    @patch("ccomp.build.executor.safe_popen")
    def test_compiler_resolved_before_source_validated(self, mock_popen, cpp_project, settings):
        with patch("ccomp.build.compiler.find_executable", return_value=None):
            with pytest.raises(InvalidCompilerPathError):
                BuildPipeline(settings, always_yes).run(_params(source_path=Path("nope.cpp"), compiler="bogus"))

    @patch("ccomp.build.compiler.detect_ambient_compiler", return_value=CompilerSpec(CompilerFamily.GNU, 17))
    @patch("ccomp.build.executor.safe_popen")
    def test_ambient_compiler_used_without_token(self, mock_popen, mock_detect, cpp_project, settings):
        (cpp_project / "out").mkdir()
        mock_popen.return_value = _mock_proc(0)

        result = BuildPipeline(settings, always_no).run(_params(compiler=None))

        assert result.command.argv[:2] == ("g++", "-std=c++17")


class TestOutputDirectoryPrompt:
    """Test the output directory confirmation stage."""

    @patch("ccomp.build.executor.safe_popen")
    def test_existing_directory_not_prompted(self, mock_popen, cpp_project, settings):
        (cpp_project / "out").mkdir()
        mock_popen.return_value = _mock_proc(0)
        confirm = MagicMock()

        BuildPipeline(settings, confirm).run(_params())

        confirm.assert_not_called()

    @patch("ccomp.build.executor.safe_popen")
    def test_yes_creates_directory(self, mock_popen, cpp_project, settings):
        mock_popen.return_value = _mock_proc(0)

        BuildPipeline(settings, always_yes).run(_params(output_dir=Path("build/bin")))

        assert (cpp_project / "build" / "bin").is_dir()

    @patch("ccomp.build.executor.safe_popen")
    def test_no_aborts_before_compiling(self, mock_popen, cpp_project, settings):
        with pytest.raises(ProcessAbortedError) as exc_info:
            BuildPipeline(settings, always_no).run(_params())

        assert exc_info.value.exit_code == 4
        assert not (cpp_project / "out").exists()
        mock_popen.assert_not_called()

    @patch("ccomp.build.executor.safe_popen")
    def test_invalid_answers_reprompt(self, mock_popen, cpp_project, settings):
        mock_popen.return_value = _mock_proc(0)
        confirm = MagicMock(side_effect=[PromptAnswer.REPEAT, PromptAnswer.REPEAT, PromptAnswer.YES])

        BuildPipeline(settings, confirm).run(_params())

        assert confirm.call_count == 3
        assert confirm.call_args[0][0] == "Create output directory out/ [y,n]: "
        assert (cpp_project / "out").is_dir()


class TestResolveFailure:
    """Test companion resolution errors surface from the pipeline."""

    @patch("ccomp.build.executor.safe_popen")
    def test_unreadable_entry(self, mock_popen, cpp_project, settings):
        (cpp_project / "out").mkdir()
        with patch("ccomp.build.source_resolver.scan_includes", side_effect=FileIOError("main.cpp could not be processed", "main.cpp")):
            with pytest.raises(FileIOError) as exc_info:
                BuildPipeline(settings, always_no).run(_params())

        assert exc_info.value.exit_code == 5
        mock_popen.assert_not_called()


@patch("ccomp.build.executor.safe_popen")
def test_nested_entry_warns_without_creating_subdirectory(mock_popen, cpp_project, settings, capsys):
    (cpp_project / "out").mkdir()
    mock_popen.return_value = _mock_proc(0)
    confirm = MagicMock()

    result = BuildPipeline(settings, confirm).run(_params(source_path=Path("lib/shapes/circle.cpp")))

    assert result.output_path == Path("out/lib/shapes/circle")
    assert list(mock_popen.call_args[0][0])[3:5] == ["-o", "out/lib/shapes/circle"]
    assert not (cpp_project / "out" / "lib").exists()
    confirm.assert_not_called()
    assert "WARNING: out/lib/shapes does not exist; the compiler may fail to write circle" in capsys.readouterr().out


@patch("ccomp.build.executor.safe_popen")
def test_absolute_entry_outside_cwd_creates_nothing(mock_popen, cpp_project, settings):
    entry = cpp_project.parent / "elsewhere" / "deep" / "main.cpp"
    entry.parent.mkdir(parents=True)
    entry.write_text("int main() {}\n")
    (cpp_project / "out").mkdir()
    mock_popen.return_value = _mock_proc(0)

    BuildPipeline(settings, always_no).run(_params(source_path=entry))

    assert list((cpp_project / "out").iterdir()) == []
    mock_popen.assert_called_once()
