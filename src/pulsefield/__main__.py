import sys

from pulsefield.cli import main

sys.exit(main())
