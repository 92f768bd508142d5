# pyright: standard

"""backup-coordinator: backup_coordinator/__main__.py."""

import sys

from .cli.dispatcher import main

if __name__ == "__main__":
    sys.exit(main())
