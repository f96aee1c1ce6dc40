import sys

from muon_mc.cli import main


if __name__ == "__main__":
    sys.exit(main())
