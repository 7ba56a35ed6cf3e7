"""Main entry point for ``python -m backupguard``."""

import sys

from .cli import main

sys.exit(main())
