"""rsnap executable module.

Error handling lives in cli.main(), the console script entry point. This module
is only invoked via `python -m rsnap` and delegates immediately to it.
"""

from __future__ import annotations

import sys

from .cli import main


if __name__ == "__main__":
    sys.exit(main())
