# Entry point for `python -m mcpcanon`
import sys

from mcpcanon.cli import main

if __name__ == "__main__":
    sys.exit(main())
