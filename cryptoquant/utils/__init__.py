"""Utility modules for CryptoQuant Monitor."""

from .config import (
    load_config,
    MonitorConfig,
    DataSourceConfig,
    UniverseConfig,
    LoggingConfig,
    TARGET_ASSETS,
)
from .logger import setup_logger, get_logger, configure_logging

__all__ = [
    "load_config",
    "MonitorConfig",
    "DataSourceConfig",
    "UniverseConfig",
    "LoggingConfig",
    "TARGET_ASSETS",
    "setup_logger",
    "get_logger",
    "configure_logging",
]
