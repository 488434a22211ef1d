"""ccomp - single-translation-unit C++ build helper.

Finds the companion sources an entry file needs by scanning its quoted
include directives, compiles everything in one compiler invocation and
optionally runs the result.
"""

__version__ = "0.3.0"

__all__ = ["__version__"]
