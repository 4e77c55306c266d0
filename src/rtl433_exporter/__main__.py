"""Allow ``python -m rtl433_exporter``."""

import sys

from rtl433_exporter.cli import main

sys.exit(main())
