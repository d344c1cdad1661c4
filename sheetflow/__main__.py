"""Allow `python -m sheetflow` by running the CLI."""

import sys

from sheetflow.cli import main

sys.exit(main())
