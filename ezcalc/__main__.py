import sys

from ezcalc.cli import main

sys.exit(main())
