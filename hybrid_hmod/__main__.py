import sys

from hybrid_hmod.main import main

sys.exit(main())
