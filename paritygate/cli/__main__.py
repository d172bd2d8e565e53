"""
paritygate CLI entry point.

Usage:
    python -m paritygate.cli phase
    python -m paritygate.cli dashboard
    python -m paritygate.cli gate write validation/structural-register.json
    python -m paritygate.cli gate session-end
"""

import sys
from .main import main

if __name__ == "__main__":
    sys.exit(main())
