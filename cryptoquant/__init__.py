"""
CryptoQuant Monitor
===================
Cross-sectional market analytics for a universe of crypto assets.

Architecture:
- Layer 1: Market Data (daily OHLCV, perpetual funding history)
- Layer 2: Statistics (percentile rank, EW volatility, correlation, EMA)
- Layer 3: Metric Processors (funding, volatility, volume, correlation, factors, breadth)
- Layer 4: Monitor (concurrent fetch + fan-out to processors)
"""

__version__ = "0.1.0"
__author__ = "CryptoQuant"

from pathlib import Path

# Project root directory
PROJECT_ROOT = Path(__file__).parent.parent
CONFIG_DIR = PROJECT_ROOT / "configs"
