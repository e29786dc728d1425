"""
Entry point for running shadowgen as a module.

Usage:
    python -m shadowgen
    python -m shadowgen --verify
    python -m shadowgen --help
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
