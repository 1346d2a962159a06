"""Market data snapshot for one symbol.

Mirrors the OHLC plus last-traded-price payload returned by the market-data
collaborator. There is no previous-close field; the open price is used as
the reference for intraday change.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class PriceSnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    symbol: str
    last_price: Optional[float] = None
    open: Optional[float] = None
    high: Optional[float] = None
    low: Optional[float] = None
    close: Optional[float] = None

    @property
    def price(self) -> Optional[float]:
        """Last traded price, falling back to the close when absent."""
        if self.last_price is not None:
            return self.last_price
        return self.close

    @property
    def has_price(self) -> bool:
        return self.price is not None

    @property
    def has_valid_open(self) -> bool:
        return self.open is not None and self.open > 0
