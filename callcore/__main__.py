# callcore/__main__.py
import sys

from callcore.cli.main import main

sys.exit(main())
