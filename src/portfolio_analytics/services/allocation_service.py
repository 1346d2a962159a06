"""Allocation breakdowns by sector, industry and market-cap segment.

Weights are each group's share of the total priced value of the holdings.
Holdings without a price are left out of every group and of the total.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple
import logging
import math

from portfolio_analytics.data_models.allocation import (
    CapSegment,
    IndustryWeight,
    MarketCapAllocation,
    MarketCapType,
    SectorAllocation,
    SectorWeight,
)
from portfolio_analytics.data_models.holding import Holding, UNKNOWN_SECTOR
from portfolio_analytics.data_models.price_snapshot import PriceSnapshot
from portfolio_analytics.services.holdings_service import safe_float
from portfolio_analytics.services.sector_grouping_service import merge_duplicate_holdings
from portfolio_analytics.services.sector_performance_service import holding_value

logger = logging.getLogger(__name__)

SECTOR_TOP_STOCKS = 5
INDUSTRY_TOP_STOCKS = 3
SEGMENT_TOP_STOCKS = 5

# Numeric market caps, in the listing currency
LARGE_CAP_THRESHOLD = 50_000_000_000.0
MID_CAP_THRESHOLD = 10_000_000_000.0

_CAP_ALIASES = {
    "large": MarketCapType.LARGE_CAP,
    "largecap": MarketCapType.LARGE_CAP,
    "mid": MarketCapType.MID_CAP,
    "midcap": MarketCapType.MID_CAP,
    "small": MarketCapType.SMALL_CAP,
    "smallcap": MarketCapType.SMALL_CAP,
    "micro": MarketCapType.MICRO_CAP,
    "microcap": MarketCapType.MICRO_CAP,
}


def classify_market_cap_size(market_cap: float) -> MarketCapType:
    """Segment for a numeric market cap; non-positive values are unknown."""
    if market_cap <= 0:
        return MarketCapType.UNKNOWN
    if market_cap >= LARGE_CAP_THRESHOLD:
        return MarketCapType.LARGE_CAP
    if market_cap >= MID_CAP_THRESHOLD:
        return MarketCapType.MID_CAP
    return MarketCapType.SMALL_CAP


def normalize_market_cap_bucket(raw: Optional[str]) -> MarketCapType:
    """Map a provider bucket onto a segment.

    Accepts labels ("LARGE_CAP", "Large Cap", "micro") or a numeric market
    cap, which is classified against the size thresholds.
    """
    if raw is None:
        return MarketCapType.UNKNOWN
    market_cap = safe_float(raw)
    if market_cap is not None and math.isfinite(market_cap):
        return classify_market_cap_size(market_cap)
    key = "".join(ch for ch in raw.lower() if ch.isalpha())
    return _CAP_ALIASES.get(key, MarketCapType.UNKNOWN)


def calculate_weight_percentage(group_value: float, total_value: float) -> float:
    return group_value / total_value * 100.0 if total_value > 0 else 0.0


def top_symbols_by_value(values: List[Tuple[str, float]], limit: int) -> List[str]:
    return [symbol for symbol, _ in sorted(values, key=lambda x: x[1], reverse=True)[:limit]]


def _priced_holdings(
    holdings: List[Holding],
    prices: Mapping[str, PriceSnapshot],
) -> List[Tuple[Holding, float]]:
    priced: List[Tuple[Holding, float]] = []
    for h in merge_duplicate_holdings(holdings):
        value = holding_value(h, prices.get(h.symbol))
        if value is None:
            continue
        priced.append((h, value))
    return priced


def calculate_sector_allocation(
    holdings: List[Holding],
    prices: Mapping[str, PriceSnapshot],
    portfolio_id: Optional[str] = None,
    index_symbol: Optional[str] = None,
) -> SectorAllocation:
    """Sector and industry weights, each list sorted by weight (largest first)."""
    priced = _priced_holdings(holdings, prices)
    total_value = sum(v for _, v in priced)

    by_sector: Dict[str, List[Tuple[str, float]]] = {}
    by_industry: Dict[str, List[Tuple[str, float]]] = {}
    industry_parent: Dict[str, str] = {}

    for h, value in priced:
        by_sector.setdefault(h.sector_name, []).append((h.symbol, value))
        industry = (h.industry or "").strip() or UNKNOWN_SECTOR
        by_industry.setdefault(industry, []).append((h.symbol, value))
        industry_parent.setdefault(industry, h.sector_name)

    sector_weights = []
    for name, items in by_sector.items():
        value = sum(v for _, v in items)
        sector_weights.append(
            SectorWeight(
                sector_name=name,
                weight_percentage=calculate_weight_percentage(value, total_value),
                market_value=value,
                top_stocks=top_symbols_by_value(items, SECTOR_TOP_STOCKS),
            )
        )
    sector_weights.sort(key=lambda w: w.weight_percentage, reverse=True)

    industry_weights = []
    for name, items in by_industry.items():
        value = sum(v for _, v in items)
        industry_weights.append(
            IndustryWeight(
                industry_name=name,
                parent_sector=industry_parent.get(name, UNKNOWN_SECTOR),
                weight_percentage=calculate_weight_percentage(value, total_value),
                market_value=value,
                top_stocks=top_symbols_by_value(items, INDUSTRY_TOP_STOCKS),
            )
        )
    industry_weights.sort(key=lambda w: w.weight_percentage, reverse=True)

    logger.info(
        "Computed allocation over %d sectors and %d industries (total value %.2f)",
        len(sector_weights),
        len(industry_weights),
        total_value,
    )
    return SectorAllocation(
        portfolio_id=portfolio_id,
        index_symbol=index_symbol,
        sector_weights=sector_weights,
        industry_weights=industry_weights,
    )


def calculate_market_cap_allocation(
    holdings: List[Holding],
    prices: Mapping[str, PriceSnapshot],
    portfolio_id: Optional[str] = None,
    index_symbol: Optional[str] = None,
) -> MarketCapAllocation:
    """Weights per market-cap segment; segments with no priced stock are omitted."""
    priced = _priced_holdings(holdings, prices)
    total_value = sum(v for _, v in priced)

    by_segment: Dict[MarketCapType, List[Tuple[str, float]]] = {}
    for h, value in priced:
        by_segment.setdefault(normalize_market_cap_bucket(h.market_cap_bucket), []).append((h.symbol, value))

    segments = []
    for segment, items in by_segment.items():
        value = sum(v for _, v in items)
        segments.append(
            CapSegment(
                segment_name=segment,
                weight_percentage=calculate_weight_percentage(value, total_value),
                segment_value=value,
                number_of_stocks=len(items),
                top_stocks=top_symbols_by_value(items, SEGMENT_TOP_STOCKS),
            )
        )
    segments.sort(key=lambda s: s.weight_percentage, reverse=True)

    logger.info("Computed market-cap allocation over %d segments", len(segments))
    return MarketCapAllocation(portfolio_id=portfolio_id, index_symbol=index_symbol, segments=segments)
