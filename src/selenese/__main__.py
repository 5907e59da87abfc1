import sys

from selenese.cli import main

sys.exit(main())
