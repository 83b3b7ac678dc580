import sys

from btwardrive.cli import main

sys.exit(main())
