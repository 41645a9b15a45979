"""Allow ``python -m photo_regen``."""

import sys

from photo_regen.cli import main

sys.exit(main())
