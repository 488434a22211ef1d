"""Allow ``python -m ccomp``."""

from ccomp.cli import main

if __name__ == "__main__":
    main()
