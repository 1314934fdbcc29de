import sys

from vnshelf.cli import main

sys.exit(main())
