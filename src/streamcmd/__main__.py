"""streamcmd entry point.

Supports: python -m streamcmd
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
