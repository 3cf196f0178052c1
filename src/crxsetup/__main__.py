import sys

from crxsetup.setup_extensions import main

sys.exit(main())
