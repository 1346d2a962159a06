"""Allocation breakdown models.

Sector/industry weights and market-cap segment weights for a portfolio or
index, each expressed as a percentage of the total priced value.
"""
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_serializer

from portfolio_analytics.data_models.numeric import round_half_up


class MarketCapType(str, Enum):
    """Market-cap segments, valued by their display name."""

    LARGE_CAP = "Large Cap"
    MID_CAP = "Mid Cap"
    SMALL_CAP = "Small Cap"
    MICRO_CAP = "Micro Cap"
    UNKNOWN = "Unknown"


class SectorWeight(BaseModel):
    sector_name: str
    weight_percentage: float = 0.0
    market_value: float = 0.0
    top_stocks: List[str] = Field(default_factory=list)

    @field_serializer("weight_percentage", "market_value", when_used="json")
    def _round(self, v: float) -> Optional[float]:
        return round_half_up(v)


class IndustryWeight(BaseModel):
    industry_name: str
    parent_sector: str
    weight_percentage: float = 0.0
    market_value: float = 0.0
    top_stocks: List[str] = Field(default_factory=list)

    @field_serializer("weight_percentage", "market_value", when_used="json")
    def _round(self, v: float) -> Optional[float]:
        return round_half_up(v)


class SectorAllocation(BaseModel):
    portfolio_id: Optional[str] = None
    index_symbol: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    sector_weights: List[SectorWeight] = Field(default_factory=list)
    industry_weights: List[IndustryWeight] = Field(default_factory=list)


class CapSegment(BaseModel):
    segment_name: MarketCapType
    weight_percentage: float = 0.0
    segment_value: float = 0.0
    number_of_stocks: int = 0
    top_stocks: List[str] = Field(default_factory=list)

    @field_serializer("weight_percentage", "segment_value", when_used="json")
    def _round(self, v: float) -> Optional[float]:
        return round_half_up(v)


class MarketCapAllocation(BaseModel):
    portfolio_id: Optional[str] = None
    index_symbol: Optional[str] = None
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    segments: List[CapSegment] = Field(default_factory=list)
