import sys

from lazywebp.cli import main

sys.exit(main())
