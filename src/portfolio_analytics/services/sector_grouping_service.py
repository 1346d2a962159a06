"""Sector grouping.

Partition a portfolio's holdings into sector buckets. Duplicate symbols
(the same stock held through several broker accounts) are merged into one
quantity-summed holding before any bucketing happens.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional
import logging

from portfolio_analytics.data_models.holding import Holding
from portfolio_analytics.data_models.price_snapshot import PriceSnapshot
from portfolio_analytics.data_models.sector_bucket import SectorBucket

logger = logging.getLogger(__name__)


def merge_duplicate_holdings(holdings: List[Holding]) -> List[Holding]:
    """Collapse holdings that share a symbol into a single holding.

    Quantities are summed. The first occurrence of a symbol supplies the
    remaining metadata (sector, industry, market-cap bucket) and its position
    in the returned list; later occurrences only fill metadata the first one
    is missing.
    """
    merged: Dict[str, Holding] = {}

    for h in holdings:
        symbol = h.symbol.strip()
        if not symbol:
            continue
        existing = merged.get(symbol)
        if existing is None:
            merged[symbol] = h if h.symbol == symbol else h.model_copy(update={"symbol": symbol})
            continue

        merged[symbol] = existing.model_copy(
            update={
                "quantity": float(existing.quantity) + float(h.quantity),
                "sector": existing.sector or h.sector,
                "industry": existing.industry or h.industry,
                "market_cap_bucket": existing.market_cap_bucket or h.market_cap_bucket,
                "broker": existing.broker if existing.broker == h.broker else None,
            }
        )

    if len(merged) < len(holdings):
        logger.debug("Merged %d holdings into %d unique symbols", len(holdings), len(merged))
    return list(merged.values())


def build_sector_lookup(holdings: List[Holding]) -> Dict[str, str]:
    """Map each symbol to the sector name it is grouped under."""
    return {h.symbol: h.sector_name for h in merge_duplicate_holdings(holdings)}


def group_holdings_by_sector(
    holdings: List[Holding],
    prices: Optional[Mapping[str, PriceSnapshot]] = None,
) -> Dict[str, SectorBucket]:
    """Group holdings into sector buckets keyed by sector name.

    Holdings without a sector land in the "Unknown" bucket. When `prices` is
    given, each bucket also carries the snapshots available for its symbols;
    symbols missing from `prices` simply have no snapshot.

    Buckets are returned in first-seen order of their sector.
    """
    if not holdings:
        return {}

    groups: Dict[str, List[Holding]] = {}
    for h in merge_duplicate_holdings(holdings):
        groups.setdefault(h.sector_name, []).append(h)

    buckets: Dict[str, SectorBucket] = {}
    for sector_name, stocks in groups.items():
        bucket_prices: List[PriceSnapshot] = []
        if prices:
            bucket_prices = [prices[h.symbol] for h in stocks if h.symbol in prices]
        buckets[sector_name] = SectorBucket(sector_name=sector_name, stocks=stocks, prices=bucket_prices)
        logger.debug(
            "Sector '%s' contains %d symbols (%d priced)", sector_name, len(stocks), len(bucket_prices)
        )

    logger.info("Identified %d sectors across %d holdings", len(buckets), len(holdings))
    return buckets
