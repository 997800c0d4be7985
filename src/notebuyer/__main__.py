"""Allow ``python -m notebuyer``."""

import sys

from notebuyer.cli import main

sys.exit(main())
