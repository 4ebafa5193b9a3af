import sys

from .benchmark_runner import main

sys.exit(main())
