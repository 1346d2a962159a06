"""Market data collaborators.

`MarketDataGateway` returns a price snapshot per symbol. Gateways must not
raise: any upstream failure is reported as an empty map and a missing key
means no price is available for that symbol.

`fetch_snapshots` runs a gateway call on a worker thread with a timeout, so
a slow upstream degrades to "no prices" instead of blocking the request.
"""
from __future__ import annotations

from concurrent.futures import Executor, TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Protocol, runtime_checkable
import logging

import pandas as pd

from portfolio_analytics.data_models.price_snapshot import PriceSnapshot

logger = logging.getLogger(__name__)

DEFAULT_FETCH_TIMEOUT_SECONDS = 10.0

_PRICE_COLUMNS = {
    "LAST_PRICE": "last_price",
    "OPEN": "open",
    "HIGH": "high",
    "LOW": "low",
    "CLOSE": "close",
}


@runtime_checkable
class MarketDataGateway(Protocol):
    def get_snapshot(self, symbols: List[str]) -> Dict[str, PriceSnapshot]:
        """Snapshots for the requested symbols; {} on any upstream failure."""
        ...


def _optional_float(row: pd.Series, column: str, columns: set) -> Optional[float]:
    if column not in columns or pd.isna(row[column]):
        return None
    return float(row[column])


def load_price_snapshots_from_csv(csv_path: Path | str) -> Dict[str, PriceSnapshot]:
    """Load a prices CSV into a symbol -> PriceSnapshot map.

    Column names are matched case-insensitively. ``SYMBOL`` is required;
    ``LAST_PRICE, OPEN, HIGH, LOW, CLOSE`` are optional and blank cells are
    read as missing. When a symbol appears twice the last row wins.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Prices CSV file not found: {path}")

    df = pd.read_csv(path)
    df.columns = [str(c).strip().upper() for c in df.columns]

    if "SYMBOL" not in df.columns:
        raise ValueError(f"Missing required column SYMBOL in prices CSV: {path}")

    columns = set(df.columns)
    snapshots: Dict[str, PriceSnapshot] = {}
    for _, row in df.iterrows():
        if pd.isna(row["SYMBOL"]):
            continue
        symbol = str(row["SYMBOL"]).strip()
        if not symbol:
            continue
        snapshots[symbol] = PriceSnapshot(
            symbol=symbol,
            **{field: _optional_float(row, col, columns) for col, field in _PRICE_COLUMNS.items()},
        )

    logger.info("Loaded %d price snapshots from %s", len(snapshots), path)
    return snapshots


class CsvMarketDataGateway:
    """Gateway serving snapshots from a prices CSV, re-read on every call."""

    def __init__(self, csv_path: Path | str):
        self.csv_path = Path(csv_path)

    def get_snapshot(self, symbols: List[str]) -> Dict[str, PriceSnapshot]:
        try:
            snapshots = load_price_snapshots_from_csv(self.csv_path)
        except (OSError, ValueError, pd.errors.ParserError):
            logger.exception("Could not read prices from %s", self.csv_path)
            return {}
        wanted = set(symbols)
        return {s: p for s, p in snapshots.items() if s in wanted}


class InMemoryMarketDataGateway:
    def __init__(self, snapshots: Optional[Mapping[str, PriceSnapshot]] = None):
        self._snapshots = dict(snapshots or {})

    def get_snapshot(self, symbols: List[str]) -> Dict[str, PriceSnapshot]:
        return {s: self._snapshots[s] for s in symbols if s in self._snapshots}


def fetch_snapshots(
    gateway: MarketDataGateway,
    symbols: List[str],
    executor: Executor,
    timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
) -> Dict[str, PriceSnapshot]:
    """Call `gateway.get_snapshot` on `executor`, degrading to {} on failure.

    A timed-out call is left to finish on its worker; its result is ignored.
    """
    if not symbols:
        logger.warning("No symbols provided for market data fetch")
        return {}

    logger.info("Fetching market data for %d symbols", len(symbols))
    future = executor.submit(gateway.get_snapshot, list(symbols))
    try:
        snapshots = future.result(timeout=timeout)
    except FutureTimeoutError:
        logger.warning("Market data fetch timed out after %.1fs for %d symbols", timeout, len(symbols))
        return {}
    except Exception:
        logger.exception("Market data fetch failed for %d symbols", len(symbols))
        return {}

    if not snapshots:
        logger.warning("No market data available for the requested symbols")
        return {}

    missing = [s for s in symbols if s not in snapshots]
    if missing:
        logger.warning("No price snapshot for %d symbols: %s", len(missing), missing)
    return dict(snapshots)
