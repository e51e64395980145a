"""Market monitor: one refresh = one concurrent fetch batch + every metric processor."""

import asyncio
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

import pandas as pd

from ..data.gateway import MarketDataGateway
from ..metrics import (
    BreadthData,
    CorrelationData,
    FactorData,
    MarketSnapshot,
    process_breadth_metrics,
    process_correlation_data,
    process_factor_metrics,
    process_funding_metrics,
    process_volatility_metrics,
    process_volume_metrics,
)
from ..utils.config import MonitorConfig
from ..utils.logger import get_logger

logger = get_logger("market_monitor")


class MarketMonitor:
    """
    Coordinates a refresh cycle:
    - Clear the gateway's per-run cache
    - Fetch candles, then funding, for the whole universe concurrently
    - Keep the assets whose candle fetch succeeded
    - Run each metric processor independently

    A processor that raises yields its empty output; the others still run.
    Overlapping refreshes are not guarded against, callers serialize them.
    """

    def __init__(
        self,
        config: Optional[MonitorConfig] = None,
        gateway: Optional[MarketDataGateway] = None,
    ):
        self.config = config or MonitorConfig()
        self.gateway = gateway or MarketDataGateway(self.config.data)
        self.last_snapshot: Optional[MarketSnapshot] = None

    @property
    def symbols(self) -> List[str]:
        return self.config.universe.symbols

    @property
    def reference(self) -> str:
        return self.config.universe.reference

    async def __aenter__(self) -> "MarketMonitor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.gateway.close()

    async def fetch(self) -> Dict[str, Dict[str, pd.DataFrame]]:
        """Fetch the universe and drop empty series."""
        self.gateway.clear_cache()

        candles = await self.gateway.fetch_all_candles(self.symbols)
        funding = await self.gateway.fetch_all_funding(self.symbols)

        klines_map = {s: df for s, df in candles.items() if df is not None and not df.empty}
        funding_map = {s: df for s, df in funding.items() if df is not None and not df.empty}

        missing = [s for s in self.symbols if s not in klines_map]
        if missing:
            logger.warning(f"No candle data this run for: {', '.join(missing)}")
        logger.info(
            f"Fetched candles for {len(klines_map)}/{len(self.symbols)} assets, "
            f"funding for {len(funding_map)}"
        )
        return {"klines": klines_map, "funding": funding_map}

    def _run_processor(self, name: str, default: Callable[[], Any], fn: Callable, *args, **kwargs) -> Any:
        try:
            return fn(*args, **kwargs)
        except Exception as e:
            logger.error(f"{name} processor failed: {type(e).__name__}: {e}", exc_info=True)
            return default()

    def compute(
        self,
        klines_map: Dict[str, pd.DataFrame],
        funding_map: Dict[str, pd.DataFrame],
        now: Optional[int] = None,
    ) -> MarketSnapshot:
        """Run every processor over already-fetched data."""
        valid_assets = [s for s in self.symbols if s in klines_map]
        reference = self.reference

        snapshot = MarketSnapshot(
            funding=self._run_processor(
                "funding", list, process_funding_metrics, valid_assets, funding_map, now=now),
            volatility=self._run_processor(
                "volatility", list, process_volatility_metrics, valid_assets, klines_map),
            volume=self._run_processor(
                "volume", list, process_volume_metrics, valid_assets, klines_map),
            correlation=self._run_processor(
                "correlation", CorrelationData, process_correlation_data,
                valid_assets, klines_map, reference=reference),
            factors=self._run_processor(
                "factor", FactorData, process_factor_metrics,
                valid_assets, klines_map, funding_map, now=now),
            breadth=self._run_processor(
                "breadth", BreadthData, process_breadth_metrics,
                valid_assets, klines_map, reference=reference),
            generated_at=datetime.utcnow(),
        )
        return snapshot

    async def refresh(self, now: Optional[int] = None) -> MarketSnapshot:
        """Fetch fresh data and compute a new snapshot, replacing the previous one."""
        logger.info(f"Refreshing {len(self.symbols)} assets (reference {self.reference})")
        start = datetime.utcnow()

        data = await self.fetch()
        snapshot = self.compute(data["klines"], data["funding"], now=now)
        self.last_snapshot = snapshot

        elapsed = (datetime.utcnow() - start).total_seconds()
        logger.info(
            f"Refresh complete in {elapsed:.1f}s: funding={len(snapshot.funding)} "
            f"volatility={len(snapshot.volatility)} volume={len(snapshot.volume)} "
            f"matrix={len(snapshot.correlation.matrix.assets)} "
            f"breadth={len(snapshot.breadth.above_sma)}"
        )
        return snapshot

    async def _refresh_once(self, now: Optional[int] = None) -> MarketSnapshot:
        try:
            return await self.refresh(now=now)
        finally:
            await self.close()

    def run(self, now: Optional[int] = None) -> MarketSnapshot:
        """Synchronous wrapper: one refresh, then close the session."""
        return asyncio.run(self._refresh_once(now=now))


def run_monitor(config: Optional[MonitorConfig] = None) -> MarketSnapshot:
    return MarketMonitor(config).run()
