import sys

from apidescribe.cli import main

sys.exit(main())
