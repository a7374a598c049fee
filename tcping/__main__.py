"""Entry point for ``python -m tcping``."""

import sys

from tcping.cli import main

if __name__ == "__main__":
    sys.exit(main())
