"""
Command-line entry point: one refresh, a ranked summary in the log, and an
optional JSON dump of the snapshot.

Usage:
    cryptoquant-monitor --symbols BTC ETH SOL --reference BTC --output snapshot.json
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import List, Optional

from ..metrics.types import MarketSnapshot
from ..utils.config import MonitorConfig, UniverseConfig
from ..utils.logger import configure_logging, setup_logger
from .monitor import MarketMonitor

logger = setup_logger("cryptoquant")


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Compute crypto market metrics for a universe of assets")

    parser.add_argument(
        "--config",
        type=str,
        default=None,
        help="Path to YAML config (default: configs/config.yaml)"
    )
    parser.add_argument(
        "--symbols",
        nargs="+",
        default=None,
        help="Symbols to analyse (overrides config)"
    )
    parser.add_argument(
        "--reference",
        type=str,
        default=None,
        help="Reference asset for correlation and breadth (overrides config)"
    )
    parser.add_argument(
        "--output",
        type=str,
        default=None,
        help="Write the snapshot as JSON to this path"
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default=None,
        help="Logging level (DEBUG, INFO, WARNING, ...)"
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> MonitorConfig:
    config = MonitorConfig.from_yaml(args.config)
    if args.symbols or args.reference:
        config.universe = UniverseConfig(
            symbols=list(args.symbols or config.universe.symbols),
            reference=args.reference or config.universe.reference,
        )
    if args.log_level:
        config.logging.level = args.log_level
    return config


def log_summary(snapshot: MarketSnapshot, top_n: int = 5) -> None:
    """Log the most extreme names per metric."""
    logger.info("=" * 60)
    logger.info("Market Summary")
    logger.info("=" * 60)

    funding = sorted(snapshot.funding, key=lambda m: m.percentile, reverse=True)
    for m in funding[:top_n]:
        logger.info(f"FUNDING | {m.symbol:<6} | annualized={m.current_rate:+.2%} | pct={m.percentile:.0f}")

    volatility = sorted(snapshot.volatility, key=lambda m: m.percentile, reverse=True)
    for m in volatility[:top_n]:
        logger.info(f"VOL     | {m.symbol:<6} | vol={m.current_vol:.4f} | pct={m.percentile:.0f}")

    volume = sorted(snapshot.volume, key=lambda m: abs(m.z_score), reverse=True)
    for m in volume[:top_n]:
        logger.info(f"VOLUME  | {m.symbol:<6} | z={m.z_score:+.2f} | {m.change_status.value}")

    factors = snapshot.factors
    for label, metrics in [
        ("trend", factors.trend_following),
        ("momentum", factors.momentum),
        ("mean_reversion", factors.mean_reversion),
        ("carry", factors.carry),
    ]:
        leaders = ", ".join(f"{m.symbol}({m.score:+.2f})" for m in metrics[:3])
        logger.info(f"FACTOR  | {label:<14} | {leaders or 'n/a'}")

    if snapshot.breadth.above_sma:
        last = snapshot.breadth.above_sma[-1]
        logger.info(
            f"BREADTH | {last.date} | >SMA20={last.val20:.0f}% "
            f">SMA50={last.val50:.0f}% >SMA100={last.val100:.0f}%"
        )
    if snapshot.correlation.history:
        last = snapshot.correlation.history[-1]
        logger.info(f"CORR    | {last.date} | 30d ref vs alts={last.corr30:+.2f}")


async def run(config: MonitorConfig) -> MarketSnapshot:
    async with MarketMonitor(config) as monitor:
        return await monitor.refresh()


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)

    try:
        config = build_config(args)
    except (FileNotFoundError, ValueError) as e:
        logger.error(f"Configuration error: {e}")
        return 1

    configure_logging(config.logging.level, config.logging.log_dir)

    snapshot = asyncio.run(run(config))
    log_summary(snapshot)

    if args.output:
        output_path = Path(args.output)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w") as f:
            json.dump(snapshot.to_dict(), f, indent=2)
        logger.info(f"Snapshot written to {output_path}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
