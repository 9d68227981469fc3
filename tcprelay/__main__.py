import sys

from .run_server import main

sys.exit(main())
