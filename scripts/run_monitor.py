#!/usr/bin/env python3
"""
Market Monitor Script

Runs one refresh over the configured universe and logs a ranked summary.

Usage:
    python scripts/run_monitor.py --symbols BTC ETH SOL --reference BTC --output data/snapshot.json
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from cryptoquant.engine.cli import main


if __name__ == "__main__":
    sys.exit(main())
