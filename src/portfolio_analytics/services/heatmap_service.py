"""Sector heatmap construction.

Turns sector buckets into a `Heatmap`: each sector is aggregated, coloured
on a fixed performance ladder, given a per-stock drill-down and finally
ranked by performance.
"""
from __future__ import annotations

from typing import Dict, List, Optional
import logging

from portfolio_analytics.data_models.heatmap import Heatmap, SectorPerformance, StockDetail
from portfolio_analytics.data_models.holding import UNKNOWN_SECTOR
from portfolio_analytics.data_models.sector_bucket import SectorAggregate, SectorBucket
from portfolio_analytics.services.sector_performance_service import (
    aggregate_sector_performance,
    compute_change_percent,
    compute_price_change,
)

logger = logging.getLogger(__name__)

# Performance ladder: (exclusive lower bound in percent, colour)
COLOR_LADDER = (
    (3.0, "#006400"),   # dark green
    (1.0, "#32CD32"),   # lime green
    (0.0, "#90EE90"),   # light green
    (-1.0, "#FFA07A"),  # light salmon
    (-3.0, "#FF4500"),  # orange red
)
WORST_COLOR = "#8B0000"  # dark red
UNKNOWN_SECTOR_CODE = "UNKN"


def derive_color_from_performance(performance_percent: float) -> str:
    """Map a performance percentage to a heatmap colour.

    Bounds are exclusive, so exactly 0% is light salmon rather than green.
    """
    for lower_bound, color in COLOR_LADDER:
        if performance_percent > lower_bound:
            return color
    return WORST_COLOR


def generate_sector_code(sector_name: Optional[str]) -> str:
    """Short stable code for a sector: first four characters, upper-cased."""
    if not sector_name:
        return UNKNOWN_SECTOR_CODE
    return sector_name[:4].upper()


def build_stock_details(bucket: SectorBucket) -> List[StockDetail]:
    """First pass: per-stock price, change and value for every priced stock."""
    prices = bucket.price_map()
    details: List[StockDetail] = []

    for h in bucket.stocks:
        snapshot = prices.get(h.symbol)
        if snapshot is None or snapshot.price is None:
            continue
        price = float(snapshot.price)
        change_percent = compute_change_percent(snapshot) or 0.0
        details.append(
            StockDetail(
                symbol=h.symbol,
                name=h.symbol,
                price=price,
                change=compute_price_change(snapshot),
                change_percent=change_percent,
                quantity=float(h.quantity),
                value=price * float(h.quantity),
                color=derive_color_from_performance(change_percent),
            )
        )
    return details


def apply_stock_weights(details: List[StockDetail], total_value: float) -> List[StockDetail]:
    """Second pass: each stock's share of the sector total, sorted by value.

    Weights stay at 0 when the sector total is not positive.
    """
    if total_value > 0:
        details = [d.model_copy(update={"weight": d.value / total_value * 100.0}) for d in details]
    return sorted(details, key=lambda d: d.value, reverse=True)


def _group_by_industry(bucket: SectorBucket, details: List[StockDetail]) -> Optional[Dict[str, List[StockDetail]]]:
    industry_by_symbol = {h.symbol: h.industry for h in bucket.stocks if h.industry}
    if not industry_by_symbol:
        return None
    industries: Dict[str, List[StockDetail]] = {}
    for d in details:
        industries.setdefault(industry_by_symbol.get(d.symbol) or UNKNOWN_SECTOR, []).append(d)
    return industries or None


def build_sector_performance(
    bucket: SectorBucket,
    aggregate: SectorAggregate,
    portfolio_total_value: float,
) -> SectorPerformance:
    """Assemble the unranked performance entry for one sector."""
    details = apply_stock_weights(build_stock_details(bucket), aggregate.total_value)
    weightage = aggregate.total_value / portfolio_total_value * 100.0 if portfolio_total_value > 0 else 0.0

    return SectorPerformance(
        sector_name=bucket.sector_name,
        sector_code=generate_sector_code(bucket.sector_name),
        performance_percent=aggregate.performance_percent,
        weightage_percent=weightage,
        total_value=aggregate.total_value,
        total_return_amount=aggregate.total_return_amount,
        color=derive_color_from_performance(aggregate.performance_percent),
        stock_count=len(details),
        stocks=details,
        industries=_group_by_industry(bucket, details),
    )


def rank_sectors_by_performance(sectors: List[SectorPerformance]) -> List[SectorPerformance]:
    """Sort by performance (best first) and assign dense ranks 1..N.

    The sort is stable: sectors with equal performance keep their input order.
    """
    ordered = sorted(sectors, key=lambda s: s.performance_percent, reverse=True)
    return [s.model_copy(update={"performance_rank": i}) for i, s in enumerate(ordered, start=1)]


def build_heatmap(
    buckets: Dict[str, SectorBucket],
    portfolio_id: Optional[str] = None,
    index_symbol: Optional[str] = None,
) -> Heatmap:
    """Build a ranked sector heatmap from sector buckets.

    An empty mapping yields a heatmap with no sectors and a current timestamp.
    """
    aggregates = {name: aggregate_sector_performance(bucket) for name, bucket in buckets.items()}
    portfolio_total = sum(a.total_value for a in aggregates.values())

    sectors = [
        build_sector_performance(bucket, aggregates[name], portfolio_total)
        for name, bucket in buckets.items()
    ]
    heatmap = Heatmap(
        portfolio_id=portfolio_id,
        index_symbol=index_symbol,
        sectors=rank_sectors_by_performance(sectors),
    )

    logger.info(
        "Generated heatmap with %d sectors for %s (total value %.2f)",
        len(heatmap.sectors),
        portfolio_id or index_symbol or "<unnamed>",
        portfolio_total,
    )
    return heatmap
