import sys

from crash_diagnostics.cli import main

if __name__ == "__main__":
    sys.exit(main())
