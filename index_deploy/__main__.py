import sys

from .deploy_indexes import main

sys.exit(main())
