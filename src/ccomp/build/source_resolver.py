"""Companion source resolution.

Maps each quoted include of an entry file to the implementation file that
defines it, searching the whole project tree:

    main.cpp: #include "lib/util.hpp"   -> util.cpp, found at src/lib/util.cpp

Only the filename of the derived companion is matched, so the directory
written in the include does not have to agree with where the .cpp lives.
The tree is indexed once per resolve() call. When several files share a
filename, the lexicographically smallest path wins.
"""

import logging
import os
from pathlib import Path
from typing import Optional

from ccomp.build.include_scanner import scan_includes
from ccomp.config import CcompSettings
from ccomp.path_utils import find_project_root

logger = logging.getLogger(__name__)


def companion_filename(target: str, suffix: str) -> Optional[str]:
    """Derive the companion filename for an include target.

    ``"lib/util.hpp"`` -> ``"util.cpp"``, ``"config"`` -> ``"config.cpp"``.

    Returns:
        Filename, or None if the target has no file component
    """
    name = Path(target).name
    if not name:
        return None
    return Path(name).with_suffix(suffix).name


class SourceResolver:
    """Resolves the companion sources needed by an entry file."""

    def __init__(self, settings: CcompSettings, cwd: Optional[Path] = None):
        """Initialize the resolver.

        Args:
            settings: Process settings (include pattern, implementation suffix)
            cwd: Base directory for absolute entry paths (default: Path.cwd())
        """
        self.settings = settings
        self.cwd = cwd

    def build_index(self, root: Path) -> dict[str, Path]:
        """Index every implementation file under root by filename.

        Args:
            root: Project root directory

        Returns:
            Mapping of filename to path (root-prefixed)
        """
        suffix = self.settings.implementation_suffix
        index: dict[str, Path] = {}

        for dirpath, _dirnames, filenames in os.walk(root):
            for filename in filenames:
                if not filename.endswith(suffix):
                    continue
                path = Path(dirpath) / filename
                current = index.get(filename)
                if current is None or path.as_posix() < current.as_posix():
                    index[filename] = path
                elif current != path:
                    logger.debug(f"Duplicate companion {filename}: keeping {current}, ignoring {path}")

        logger.debug(f"Indexed {len(index)} {suffix} files under {root}")
        return index

    def resolve(self, entry_path: Path) -> dict[str, Path]:
        """Map each include of entry_path to its companion source.

        Includes whose companion is missing from the tree are dropped, and
        a companion with the entry file's own name is never returned.

        Args:
            entry_path: Entry source file

        Returns:
            Include target -> companion path, in include order

        Raises:
            FileIOError: If the entry file cannot be opened
        """
        directives = scan_includes(entry_path, self.settings.include_pattern)

        root = find_project_root(entry_path, self.cwd)
        index = self.build_index(root)

        companions: dict[str, Path] = {}
        for directive in directives:
            if directive.target in companions:
                continue

            filename = companion_filename(directive.target, self.settings.implementation_suffix)
            if filename is None:
                continue
            if filename == entry_path.name:
                logger.debug(f"Skipping self-reference {directive.target}")
                continue

            source = index.get(filename)
            if source is None:
                logger.debug(f"No companion for {directive.target} ({filename} not under {root})")
                continue

            companions[directive.target] = source

        return companions
