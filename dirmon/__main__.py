import sys

from dirmon.main import main

sys.exit(main())
