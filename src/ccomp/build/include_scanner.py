"""Include directive scanner.

Extracts quoted (local) include targets from a source file, one per line:

    #include "util.hpp"        -> util.hpp
    #include <vector>          -> ignored
    #include "a.hpp" // note   -> ignored (trailing text)

This is a textual match, not a preprocessor: includes inside comments or
disabled #if blocks are still reported.
"""

import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import IO, Iterator

from ccomp.errors import FileIOError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IncludeDirective:
    """A quoted include found in a source file.

    Attributes:
        target: Path written between the quotes
        line_number: 1-based line the directive appeared on
    """

    target: str
    line_number: int


def scan_includes(path: Path, pattern: re.Pattern) -> Iterator[IncludeDirective]:
    """Scan a source file for quoted include directives.

    The file is opened immediately so an unreadable file fails here rather
    than on first iteration. Lines are then read lazily, in file order.

    Args:
        path: Source file to scan
        pattern: Regex whose first group captures the include target

    Returns:
        One-shot iterator of IncludeDirective

    Raises:
        FileIOError: If the file cannot be opened
    """
    try:
        handle = open(path, "r", encoding="utf-8", errors="replace")
    except OSError as e:
        raise FileIOError(f"{path} could not be processed: {e.strerror or e}", str(path)) from e

    return _iter_directives(handle, pattern)


def _iter_directives(handle: IO[str], pattern: re.Pattern) -> Iterator[IncludeDirective]:
    with handle:
        for line_number, line in enumerate(handle, start=1):
            match = pattern.match(line.rstrip("\r\n"))
            if match:
                logger.debug(f"{handle.name}:{line_number}: include \"{match.group(1)}\"")
                yield IncludeDirective(target=match.group(1), line_number=line_number)
