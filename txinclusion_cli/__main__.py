"""
Module execution entry point.

Allows running with: python -m txinclusion_cli
"""

import sys
from txinclusion_cli.main import main

if __name__ == "__main__":
    sys.exit(main())
