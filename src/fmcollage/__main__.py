import sys

from fmcollage.cli import main

sys.exit(main())
