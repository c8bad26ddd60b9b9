import sys

from .cli.unified_cli import main

sys.exit(main())
