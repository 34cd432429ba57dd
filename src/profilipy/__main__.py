import sys

from profilipy.cli import main

sys.exit(main())
