import sys

from cwtail.main import main

sys.exit(main())
