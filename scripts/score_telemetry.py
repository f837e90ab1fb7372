#!/usr/bin/env python3
"""
CLI script for scoring a telemetry sample.
Thin wrapper around chargeguard.cli for running from a checkout.
"""

import sys
from pathlib import Path

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from chargeguard.cli import main

if __name__ == "__main__":
    main()
