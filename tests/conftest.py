"""Pytest configuration and fixtures for ccomp tests.

Besides the shared project-tree fixtures, this conftest keeps stdout/stderr
usable after tests that replace or close them (a known pytest capture issue
on Python 3.13: https://github.com/pytest-dev/pytest/issues/11439).
"""

import sys
import warnings
from pathlib import Path

import pytest

from ccomp import output
from ccomp.config import CcompSettings

# Suppress ResourceWarnings from file cleanup in Python 3.13
if sys.version_info >= (3, 13):
    warnings.filterwarnings("ignore", category=ResourceWarning)


@pytest.fixture(autouse=True)
def _reset_output():  # noqa: PT004
    """Give every test a fresh output timer writing to the current sys.stdout."""
    output.init_timer()
    output.set_verbose(False)
    yield
    output.init_timer()
    output.set_verbose(False)


@pytest.fixture(autouse=True)
def _restore_stdio():  # noqa: PT004
    """Ensure stdout/stderr are always restored after each test."""
    yield

    if sys.stdout.closed:
        sys.stdout = sys.__stdout__
    if sys.stderr.closed:
        sys.stderr = sys.__stderr__


@pytest.fixture
def settings() -> CcompSettings:
    """Default settings, independent of the caller's environment."""
    return CcompSettings.from_env({})


@pytest.fixture
def cpp_project(tmp_path, monkeypatch) -> Path:
    """Create a small project and chdir into it.

    Layout:
        main.cpp          includes util.hpp, <vector>, and "main.hpp"
        util.hpp
        lib/util.cpp
        lib/shapes/circle.hpp, lib/shapes/circle.cpp (not included)
    """
    project = tmp_path / "project"
    (project / "lib" / "shapes").mkdir(parents=True)

    (project / "main.cpp").write_text(
        '#include <vector>\n'
        '#include "util.hpp"\n'
        '#include "main.hpp"\n'
        "\n"
        "int main() { return util(); }\n"
    )
    (project / "util.hpp").write_text("int util();\n")
    (project / "lib" / "util.cpp").write_text('#include "../util.hpp"\nint util() { return 0; }\n')
    (project / "lib" / "shapes" / "circle.hpp").write_text("struct Circle {};\n")
    (project / "lib" / "shapes" / "circle.cpp").write_text('#include "circle.hpp"\n')

    monkeypatch.chdir(project)
    return project
