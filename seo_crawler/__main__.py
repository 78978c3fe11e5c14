# Allows the package to be run as a script using `python -m seo_crawler`

from __future__ import annotations

import sys

from seo_crawler.cli import main

if __name__ == "__main__":
    sys.exit(main())
