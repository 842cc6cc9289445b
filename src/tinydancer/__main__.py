import sys

from tinydancer.cli import main


sys.exit(main())
