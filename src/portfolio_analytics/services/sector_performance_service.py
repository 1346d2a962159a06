"""Value-weighted sector performance.

Sector performance is the return over the sector's value before today's
move:

    total_value          = sum(price_i * quantity_i)
    total_return_amount  = sum((price_i - open_i) * quantity_i)
    performance_percent  = total_return_amount / (total_value - total_return_amount) * 100

This is not the mean of per-stock percentages: larger
positions move the sector figure more.
"""
from __future__ import annotations

from typing import Optional
import logging

from portfolio_analytics.data_models.holding import Holding
from portfolio_analytics.data_models.price_snapshot import PriceSnapshot
from portfolio_analytics.data_models.sector_bucket import SectorAggregate, SectorBucket

logger = logging.getLogger(__name__)
EPS = 1e-12


def compute_price_change(snapshot: PriceSnapshot) -> float:
    """Price move since the open; 0 when the open is missing or not positive."""
    price = snapshot.price
    if price is None or not snapshot.has_valid_open:
        return 0.0
    return float(price) - float(snapshot.open)


def compute_change_percent(snapshot: PriceSnapshot) -> Optional[float]:
    """Percentage move since the open, or None when it cannot be computed."""
    price = snapshot.price
    if price is None or not snapshot.has_valid_open:
        return None
    return (float(price) - float(snapshot.open)) / float(snapshot.open) * 100.0


def compute_return_percent(total_return_amount: float, total_value: float) -> float:
    """Return relative to the value before the move; 0 for a zero base."""
    base = total_value - total_return_amount
    if abs(base) <= EPS:
        return 0.0
    return total_return_amount / base * 100.0


def holding_value(holding: Holding, snapshot: Optional[PriceSnapshot]) -> Optional[float]:
    """Market value of a holding, or None when no price is available."""
    if snapshot is None or snapshot.price is None:
        return None
    return float(snapshot.price) * float(holding.quantity)


def aggregate_sector_performance(bucket: SectorBucket) -> SectorAggregate:
    """Compute value, return amount and weighted performance for one bucket.

    Stocks without an available price are left out of both sums rather than
    counted as zero. A stock with a price but no usable open contributes its
    value and no return.
    """
    prices = bucket.price_map()
    total_value = 0.0
    total_return = 0.0
    priced = 0

    for h in bucket.stocks:
        snapshot = prices.get(h.symbol)
        value = holding_value(h, snapshot)
        if value is None:
            logger.debug("No price for %s in sector '%s'; excluded from totals", h.symbol, bucket.sector_name)
            continue
        priced += 1
        total_value += value
        total_return += compute_price_change(snapshot) * float(h.quantity)

    performance = compute_return_percent(total_return, total_value)

    logger.debug(
        "Sector '%s': value=%.2f return=%.2f performance=%.4f%% (%d/%d priced)",
        bucket.sector_name,
        total_value,
        total_return,
        performance,
        priced,
        len(bucket.stocks),
    )

    return SectorAggregate(
        total_value=total_value,
        total_return_amount=total_return,
        performance_percent=performance,
        priced_stock_count=priced,
    )
