import sys

from beaconrelay.cli import main

sys.exit(main())
