"""Allow running setup-sqlite with ``python -m sqlite_setup``."""

import sys

from .cli import main

sys.exit(main())
