"""Analytics request and response models.

An `AnalyticsRequest` names the portfolio (or index) to analyse and which
views to compute; an `AnalyticsResponse` bundles whichever views were
requested.
"""
from __future__ import annotations

from datetime import date, datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from portfolio_analytics.data_models.allocation import MarketCapAllocation, SectorAllocation
from portfolio_analytics.data_models.gainer_loser import GainerLoser
from portfolio_analytics.data_models.heatmap import Heatmap


class AnalyticsType(str, Enum):
    SECTOR_HEATMAP = "sector_heatmap"
    TOP_MOVERS = "top_movers"
    SECTOR_ALLOCATION = "sector_allocation"
    MARKET_CAP_ALLOCATION = "market_cap_allocation"


class AnalyticsRequest(BaseModel):
    """Parameters of one analytics request.

    Exactly one of `portfolio_id` or `index_symbol` identifies the holdings;
    `movers_limit` and `return_all_data` control how many top movers are
    returned.
    """

    portfolio_id: Optional[str] = None
    index_symbol: Optional[str] = Field(default=None, pattern=r"^[A-Za-z0-9 ]+$")
    comparison_index_symbol: Optional[str] = Field(default=None, pattern=r"^[A-Za-z0-9 ]*$")

    from_date: Optional[date] = None
    to_date: Optional[date] = None

    include_heatmap: bool = False
    include_movers: bool = False
    include_sector_allocation: bool = False
    include_market_cap_allocation: bool = False

    movers_limit: Optional[int] = Field(default=None, ge=1)
    return_all_data: bool = False
    include_sector_movements: bool = False

    @field_validator("portfolio_id", "index_symbol", "comparison_index_symbol", mode="before")
    @classmethod
    def _strip_identifiers(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @model_validator(mode="after")
    def _check_identifier(self) -> "AnalyticsRequest":
        if (self.portfolio_id is None) == (self.index_symbol is None):
            raise ValueError("Exactly one of portfolio_id or index_symbol must be provided")
        if self.from_date and self.to_date and self.from_date > self.to_date:
            raise ValueError(f"from_date {self.from_date} is after to_date {self.to_date}")
        return self

    @property
    def identifier(self) -> str:
        """Portfolio id or index symbol passed to the holdings provider."""
        return self.portfolio_id or self.index_symbol or ""


class AnalyticsComponent(BaseModel):
    heatmap: Optional[Heatmap] = None
    movers: Optional[GainerLoser] = None
    sector_allocation: Optional[SectorAllocation] = None
    market_cap_allocation: Optional[MarketCapAllocation] = None


class AnalyticsResponse(BaseModel):
    portfolio_id: Optional[str] = None
    index_symbol: Optional[str] = None
    comparison_index_symbol: Optional[str] = None

    start_date: Optional[date] = None
    end_date: Optional[date] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    analytics: AnalyticsComponent = Field(default_factory=AnalyticsComponent)
