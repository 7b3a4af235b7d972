"""
Entry point for module execution (``python -m cuda_hipify``).

This module delegates execution to the CLI handler in ``cuda_hipify.cli.__main__``.
"""

import sys

from cuda_hipify.cli.__main__ import main

if __name__ == "__main__":
  sys.exit(main())
