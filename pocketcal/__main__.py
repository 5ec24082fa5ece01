"""Run the pocketcal command line tool with `python -m pocketcal`."""

import sys

from .cli import main

sys.exit(main())
