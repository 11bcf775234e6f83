import sys

from avlmap.main import run

sys.exit(run())
