"""Filesystem helpers: existence checks and project root discovery."""

from pathlib import Path
from typing import Optional


def file_exists(path: Path) -> bool:
    """Return True if path exists and is a regular file."""
    return path.exists() and path.is_file()


def directory_exists(path: Path) -> bool:
    """Return True if path exists and is a directory."""
    return path.exists() and path.is_dir()


def find_project_root(entry_path: Path, cwd: Optional[Path] = None) -> Path:
    """Find the top-most ancestor directory of an entry file.

    Walks the parents of a relative path until they run out, so
    ``src/app/main.cpp`` yields ``src`` and a bare ``main.cpp`` yields ``.``.

    Absolute paths are made relative to ``cwd`` when they lie beneath it.
    Otherwise the entry's own directory is used so that the whole filesystem
    is never indexed.

    Args:
        entry_path: Path to the entry source file
        cwd: Directory absolute paths are relativized against (default: Path.cwd())

    Returns:
        Project root directory
    """
    if entry_path.is_absolute():
        base = (cwd or Path.cwd()).resolve()
        try:
            entry_path = entry_path.resolve().relative_to(base)
        except ValueError:
            return entry_path.parent
        root = _topmost_parent(entry_path)
        return base if root == Path(".") else base / root

    return _topmost_parent(entry_path)


def _topmost_parent(relative_path: Path) -> Path:
    # Path("a/b/c.cpp").parents -> a/b, a, .
    parents = [p for p in relative_path.parents if p != Path(".")]
    if not parents:
        return Path(".")
    return parents[-1]
