"""
Configuration management for CryptoQuant Monitor.
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field

from .. import CONFIG_DIR


DEFAULT_CONFIG_PATH = CONFIG_DIR / "config.yaml"

# Default universe; WLFI left out, not enough history on the public API yet
TARGET_ASSETS = [
    "BTC", "ETH", "SOL", "ADA", "AVAX", "DOT", "LINK", "NEAR", "XLM",
    "APT", "SUI", "AAVE", "CRO", "XRP", "HBAR", "MNT", "TON", "ZEC",
    "BNB", "ENA", "UNI",
]


def load_config(config_path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load configuration from YAML file.

    An explicit path must exist. Without one, the bundled configs/config.yaml
    is used when present, otherwise an empty dict (all defaults).
    """
    if config_path is None:
        path = DEFAULT_CONFIG_PATH
        if not path.exists():
            return _override_with_env({})
    else:
        path = Path(config_path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

    with open(path, 'r') as f:
        config = yaml.safe_load(f) or {}

    # Override with environment variables
    config = _override_with_env(config)

    return config


def _override_with_env(config: Dict[str, Any]) -> Dict[str, Any]:
    """Override config values with environment variables."""
    data = config.setdefault("data", {})
    universe = config.setdefault("universe", {})
    logging_cfg = config.setdefault("logging", {})

    # Relay for networks where the exchange blocks direct access
    if os.getenv("CQ_PROXY_URL"):
        data["proxy_url"] = os.getenv("CQ_PROXY_URL")
    if os.getenv("CQ_SPOT_URL"):
        data["spot_url"] = os.getenv("CQ_SPOT_URL")
    if os.getenv("CQ_FUTURES_URL"):
        data["futures_url"] = os.getenv("CQ_FUTURES_URL")

    if os.getenv("CQ_SYMBOLS"):
        universe["symbols"] = [s.strip() for s in os.getenv("CQ_SYMBOLS").split(",") if s.strip()]
    if os.getenv("CQ_REFERENCE"):
        universe["reference"] = os.getenv("CQ_REFERENCE")

    if os.getenv("CQ_LOG_LEVEL"):
        logging_cfg["level"] = os.getenv("CQ_LOG_LEVEL")

    return config


@dataclass
class DataSourceConfig:
    """Market data source configuration."""
    spot_url: str = "https://api.binance.com"
    futures_url: str = "https://fapi.binance.com"
    proxy_url: str = "https://api.allorigins.win/raw?url="
    quote_asset: str = "USDT"
    interval: str = "1d"
    candle_limit: int = 1000          # 500 days of breadth + lookback buffer
    funding_limit: int = 500
    timeout_seconds: float = 30.0


@dataclass
class UniverseConfig:
    """Asset universe configuration."""
    symbols: List[str] = field(default_factory=lambda: list(TARGET_ASSETS))
    reference: str = "BTC"

    def __post_init__(self):
        # Uppercased, first occurrence wins
        self.symbols = list(dict.fromkeys(s.upper() for s in self.symbols))
        self.reference = self.reference.upper()
        if not self.symbols:
            raise ValueError("Universe must contain at least one symbol")
        if self.reference not in self.symbols:
            self.symbols.append(self.reference)


@dataclass
class LoggingConfig:
    """Logging configuration."""
    level: str = "INFO"
    log_dir: Optional[str] = None


@dataclass
class MonitorConfig:
    """Complete monitor configuration."""
    data: DataSourceConfig = field(default_factory=DataSourceConfig)
    universe: UniverseConfig = field(default_factory=UniverseConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> "MonitorConfig":
        """Create MonitorConfig from dictionary."""
        data = config_dict.get("data", {}) or {}
        universe = config_dict.get("universe", {}) or {}
        logging_cfg = config_dict.get("logging", {}) or {}

        defaults = DataSourceConfig()
        data_config = DataSourceConfig(
            spot_url=data.get("spot_url", defaults.spot_url),
            futures_url=data.get("futures_url", defaults.futures_url),
            proxy_url=data.get("proxy_url", defaults.proxy_url),
            quote_asset=data.get("quote_asset", defaults.quote_asset),
            interval=data.get("interval", defaults.interval),
            candle_limit=int(data.get("candle_limit", defaults.candle_limit)),
            funding_limit=int(data.get("funding_limit", defaults.funding_limit)),
            timeout_seconds=float(data.get("timeout_seconds", defaults.timeout_seconds)),
        )

        # null falls back to the default universe, [] is rejected
        symbols = universe.get("symbols")
        universe_config = UniverseConfig(
            symbols=list(TARGET_ASSETS if symbols is None else symbols),
            reference=universe.get("reference") or "BTC",
        )

        logging_config = LoggingConfig(
            level=logging_cfg.get("level", "INFO"),
            log_dir=logging_cfg.get("log_dir"),
        )

        return cls(data=data_config, universe=universe_config, logging=logging_config)

    @classmethod
    def from_yaml(cls, config_path: Optional[str] = None) -> "MonitorConfig":
        """Load MonitorConfig from YAML file."""
        config_dict = load_config(config_path)
        return cls.from_dict(config_dict)
