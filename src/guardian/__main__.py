"""
Entry point for running Guardian as a module.

Allows running Guardian with:
    python -m guardian report-status --status SUCCESS
"""

import sys

from guardian.cli import main

if __name__ == "__main__":
    sys.exit(main())
