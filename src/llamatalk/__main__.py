import sys

from llamatalk.app import main

sys.exit(main())
