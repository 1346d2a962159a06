from __future__ import annotations

from datetime import datetime, timezone
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_serializer

from portfolio_analytics.data_models.numeric import round_half_up


class StockMovement(BaseModel):
    """Intraday move of a single symbol, measured against its open price."""

    symbol: str
    last_price: float
    change_amount: float = 0.0
    change_percent: float = 0.0
    sector: Optional[str] = None

    # Portfolio-only fields
    quantity: Optional[float] = None
    market_value: Optional[float] = None
    weight_percentage: Optional[float] = None

    @field_serializer(
        "last_price", "change_amount", "change_percent", "market_value", "weight_percentage", when_used="json"
    )
    def _round(self, v: Optional[float]) -> Optional[float]:
        return round_half_up(v)


class SectorMovement(BaseModel):
    """Summary of how the symbols of one sector moved."""

    sector_name: str
    average_change_percent: float = 0.0   # value-weighted
    stock_count: int = 0
    market_cap_weight: float = 0.0        # sector's share of total value (%)
    top_gainer_symbols: List[str] = Field(default_factory=list)
    top_loser_symbols: List[str] = Field(default_factory=list)
    stock_performance: Dict[str, float] = Field(default_factory=dict)

    @field_serializer("average_change_percent", "market_cap_weight", when_used="json")
    def _round(self, v: float) -> Optional[float]:
        return round_half_up(v)

    @field_serializer("stock_performance", when_used="json")
    def _round_map(self, v: Dict[str, float]) -> Dict[str, Optional[float]]:
        return {k: round_half_up(x) for k, x in v.items()}


class GainerLoser(BaseModel):
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    top_gainers: List[StockMovement] = Field(default_factory=list)
    top_losers: List[StockMovement] = Field(default_factory=list)
    sector_movements: Optional[List[SectorMovement]] = None
