"""Local entry point: `python main.py train` / `python main.py predict` / `python main.py serve`."""

import sys

from abalone_ml.cli import main

if __name__ == "__main__":
    sys.exit(main())
