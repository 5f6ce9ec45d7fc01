import sys

from alertdb.cli import main

sys.exit(main())
