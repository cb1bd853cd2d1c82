"""Entry point for ``python -m src.mix_engine``."""

import sys

from src.mix_engine.cli import main

if __name__ == "__main__":
    sys.exit(main())
