import sys

from vcdisclose.cli import main

sys.exit(main())
