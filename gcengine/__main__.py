import sys

from gcengine.cli import main

sys.exit(main())
