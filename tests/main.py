"""Entry point for running the MBR test suite.

Run with:

    python tests/main.py [pytest args]

Invokes pytest on this folder, so IDEs that want a single script can use it.
"""
import sys
from pathlib import Path

import pytest


def main(argv=None):
    """Run pytest on tests/ with the provided args. Returns pytest exit code."""
    if argv is None:
        argv = ["-v"]
    return pytest.main([str(Path(__file__).parent), *argv])


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:] or None))
