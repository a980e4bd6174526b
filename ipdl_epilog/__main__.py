import sys

from ipdl_epilog.cli import main

sys.exit(main())
