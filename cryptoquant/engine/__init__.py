"""Refresh orchestration."""

from .monitor import MarketMonitor, run_monitor

__all__ = [
    "MarketMonitor",
    "run_monitor",
]
