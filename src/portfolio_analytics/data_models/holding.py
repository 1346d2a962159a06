"""Holding models.

`Holding` is one constituent of a portfolio or index as returned by a
holdings provider. The same symbol may appear more than once when a
portfolio is spread across several broker accounts.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict

UNKNOWN_SECTOR = "Unknown"


class Holding(BaseModel):
    """A single position snapshot, fetched once per analytics request."""

    model_config = ConfigDict(frozen=True)

    symbol: str
    quantity: float = 0.0
    sector: Optional[str] = None
    industry: Optional[str] = None
    # Free-form bucket from the provider, e.g. "LARGE_CAP" or "Mid Cap"
    market_cap_bucket: Optional[str] = None
    broker: Optional[str] = None

    @property
    def sector_name(self) -> str:
        """Sector used for grouping; blank or missing sectors map to "Unknown"."""
        if self.sector is None or not self.sector.strip():
            return UNKNOWN_SECTOR
        return self.sector.strip()
