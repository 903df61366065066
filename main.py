import sys

from linemarks.cli.app import main

if __name__ == "__main__":
    sys.exit(main())
