import sys

from sdkdocs.cli import main

sys.exit(main())
