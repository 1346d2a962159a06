from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from portfolio_analytics.data_models.holding import Holding
from portfolio_analytics.data_models.price_snapshot import PriceSnapshot


class SectorBucket(BaseModel):
    """Holdings of one sector together with the price snapshots found for them.

    Built fresh per request by the sector grouper and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    sector_name: str
    stocks: List[Holding] = Field(default_factory=list)
    prices: List[PriceSnapshot] = Field(default_factory=list)

    def price_for(self, symbol: str) -> Optional[PriceSnapshot]:
        for snapshot in self.prices:
            if snapshot.symbol == symbol:
                return snapshot
        return None

    def price_map(self) -> Dict[str, PriceSnapshot]:
        return {p.symbol: p for p in self.prices}


class SectorAggregate(BaseModel):
    """Value-weighted totals for a single sector bucket."""

    total_value: float = 0.0
    total_return_amount: float = 0.0
    performance_percent: float = 0.0
    # Number of stocks that had a usable price and entered the sums
    priced_stock_count: int = 0
