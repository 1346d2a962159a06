"""Sector heatmap models.

A `Heatmap` lists the sectors of a portfolio or index ordered by their
value-weighted performance, each with a drill-down of the stocks it holds.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer

from portfolio_analytics.data_models.numeric import round_half_up


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class StockDetail(BaseModel):
    """One stock inside a heatmap sector."""

    symbol: str
    name: Optional[str] = None

    price: float = 0.0
    change: float = 0.0           # price - open
    change_percent: float = 0.0   # change relative to open, in percent
    quantity: float = 0.0
    value: float = 0.0            # price * quantity
    weight: float = 0.0           # share of the sector's total value (%)

    color: Optional[str] = None

    @field_serializer("price", "change", "change_percent", "quantity", "value", "weight", when_used="json")
    def _round(self, v: float) -> Optional[float]:
        return round_half_up(v)


class SectorPerformance(BaseModel):
    """Performance of one sector.

    `performance_rank` is only set once every sector of the heatmap is known
    (1 = best performing sector).
    """

    sector_name: str
    sector_code: str
    performance_rank: Optional[int] = None

    performance_percent: float = 0.0
    weightage_percent: float = 0.0   # sector's share of the whole portfolio/index value
    total_value: float = 0.0
    total_return_amount: float = 0.0

    color: Optional[str] = None
    stock_count: int = 0
    stocks: List[StockDetail] = Field(default_factory=list)
    # Stock details grouped by industry; None when no holding carries an industry
    industries: Optional[Dict[str, List[StockDetail]]] = None

    @field_serializer(
        "performance_percent", "weightage_percent", "total_value", "total_return_amount", when_used="json"
    )
    def _round(self, v: float) -> Optional[float]:
        return round_half_up(v)


class Heatmap(BaseModel):
    portfolio_id: Optional[str] = None
    index_symbol: Optional[str] = None
    timestamp: datetime = Field(default_factory=_utc_now)
    sectors: List[SectorPerformance] = Field(default_factory=list)

    def top_sectors(self, limit: int) -> List[SectorPerformance]:
        """Best performing sectors, highest performance first."""
        return sorted(self.sectors, key=lambda s: s.performance_percent, reverse=True)[:limit]

    def bottom_sectors(self, limit: int) -> List[SectorPerformance]:
        """Worst performing sectors, lowest performance first."""
        return sorted(self.sectors, key=lambda s: s.performance_percent)[:limit]
