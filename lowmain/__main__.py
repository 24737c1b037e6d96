import sys

from lowmain.cli import main

sys.exit(main())
