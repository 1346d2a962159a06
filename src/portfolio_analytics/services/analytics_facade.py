"""Analytics orchestration.

`AnalyticsFacade` fetches holdings, fetches prices for them, and hands both
to the heatmap, top-movers and allocation builders. It is the only place
that talks to the collaborators, and it fails open: a collaborator error
turns into an empty view (logged), never an exception for the caller.
"""
from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Dict, List, Optional, Tuple
import logging

from pydantic import BaseModel

from portfolio_analytics.data_models.allocation import MarketCapAllocation, SectorAllocation
from portfolio_analytics.data_models.analytics_request import (
    AnalyticsComponent,
    AnalyticsRequest,
    AnalyticsResponse,
    AnalyticsType,
)
from portfolio_analytics.data_models.gainer_loser import GainerLoser
from portfolio_analytics.data_models.heatmap import Heatmap
from portfolio_analytics.data_models.holding import Holding
from portfolio_analytics.data_models.price_snapshot import PriceSnapshot
from portfolio_analytics.services.allocation_service import (
    calculate_market_cap_allocation,
    calculate_sector_allocation,
)
from portfolio_analytics.services.heatmap_service import build_heatmap
from portfolio_analytics.services.holdings_service import HoldingsProvider
from portfolio_analytics.services.market_data_service import (
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    MarketDataGateway,
    fetch_snapshots,
)
from portfolio_analytics.services.sector_grouping_service import (
    group_holdings_by_sector,
    merge_duplicate_holdings,
)
from portfolio_analytics.services.top_movers_service import rank_top_movers, resolve_movers_limit

logger = logging.getLogger(__name__)

DEFAULT_MAX_WORKERS = 4

Prices = Dict[str, PriceSnapshot]


def _heatmap(request: AnalyticsRequest, holdings: List[Holding], prices: Prices) -> Heatmap:
    buckets = group_holdings_by_sector(holdings, prices)
    return build_heatmap(buckets, portfolio_id=request.portfolio_id, index_symbol=request.index_symbol)


def _top_movers(request: AnalyticsRequest, holdings: List[Holding], prices: Prices) -> GainerLoser:
    available = len(merge_duplicate_holdings(holdings))
    limit = resolve_movers_limit(request.movers_limit, request.return_all_data, available)
    return rank_top_movers(holdings, prices, limit=limit, include_sector_movements=request.include_sector_movements)


def _sector_allocation(request: AnalyticsRequest, holdings: List[Holding], prices: Prices) -> SectorAllocation:
    return calculate_sector_allocation(
        holdings, prices, portfolio_id=request.portfolio_id, index_symbol=request.index_symbol
    )


def _market_cap_allocation(request: AnalyticsRequest, holdings: List[Holding], prices: Prices) -> MarketCapAllocation:
    return calculate_market_cap_allocation(
        holdings, prices, portfolio_id=request.portfolio_id, index_symbol=request.index_symbol
    )


def _empty(analytics_type: AnalyticsType, request: AnalyticsRequest) -> BaseModel:
    ids = {"portfolio_id": request.portfolio_id, "index_symbol": request.index_symbol}
    if analytics_type is AnalyticsType.SECTOR_HEATMAP:
        return Heatmap(**ids)
    if analytics_type is AnalyticsType.TOP_MOVERS:
        return GainerLoser(sector_movements=[] if request.include_sector_movements else None)
    if analytics_type is AnalyticsType.SECTOR_ALLOCATION:
        return SectorAllocation(**ids)
    return MarketCapAllocation(**ids)


# Every analytics type is registered here and nowhere else.
ANALYTICS_BUILDERS: Dict[AnalyticsType, Callable[[AnalyticsRequest, List[Holding], Prices], BaseModel]] = {
    AnalyticsType.SECTOR_HEATMAP: _heatmap,
    AnalyticsType.TOP_MOVERS: _top_movers,
    AnalyticsType.SECTOR_ALLOCATION: _sector_allocation,
    AnalyticsType.MARKET_CAP_ALLOCATION: _market_cap_allocation,
}


class AnalyticsFacade:
    """Entry point for portfolio and index analytics.

    The facade owns a small thread pool used only for market-data fetches;
    call `close()` (or use it as a context manager) to release it.
    """

    def __init__(
        self,
        holdings_provider: HoldingsProvider,
        market_data_gateway: MarketDataGateway,
        fetch_timeout: float = DEFAULT_FETCH_TIMEOUT_SECONDS,
        max_workers: int = DEFAULT_MAX_WORKERS,
    ):
        self.holdings_provider = holdings_provider
        self.market_data_gateway = market_data_gateway
        self.fetch_timeout = fetch_timeout
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="market-data")

    def close(self) -> None:
        self._executor.shutdown(wait=False)

    def __enter__(self) -> "AnalyticsFacade":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _load_holdings(self, identifier: str) -> List[Holding]:
        try:
            holdings = self.holdings_provider.get_holdings(identifier)
        except Exception:
            logger.exception("Error fetching holdings for %s", identifier)
            return []
        return list(holdings or [])

    def _load_inputs(self, request: AnalyticsRequest) -> Tuple[List[Holding], Prices]:
        identifier = request.identifier
        holdings = self._load_holdings(identifier)
        if not holdings:
            logger.warning("No holdings found for %s", identifier)
            return [], {}

        symbols = [h.symbol for h in merge_duplicate_holdings(holdings)]
        prices = fetch_snapshots(self.market_data_gateway, symbols, self._executor, timeout=self.fetch_timeout)
        if not prices:
            logger.warning("No market data available for %s", identifier)
        return holdings, prices

    def _build(
        self,
        analytics_type: AnalyticsType,
        request: AnalyticsRequest,
        holdings: List[Holding],
        prices: Prices,
    ) -> BaseModel:
        if not holdings or not prices:
            return _empty(analytics_type, request)
        return ANALYTICS_BUILDERS[analytics_type](request, holdings, prices)

    def generate(self, analytics_type: AnalyticsType, request: AnalyticsRequest) -> BaseModel:
        """Compute one analytics view for the request."""
        logger.info("Generating %s for %s", analytics_type.value, request.identifier)
        holdings, prices = self._load_inputs(request)
        return self._build(analytics_type, request, holdings, prices)

    def generate_sector_heatmap(self, request: AnalyticsRequest) -> Heatmap:
        return self.generate(AnalyticsType.SECTOR_HEATMAP, request)

    def get_top_gainers_losers(self, request: AnalyticsRequest) -> GainerLoser:
        return self.generate(AnalyticsType.TOP_MOVERS, request)

    def calculate_sector_allocations(self, request: AnalyticsRequest) -> SectorAllocation:
        return self.generate(AnalyticsType.SECTOR_ALLOCATION, request)

    def calculate_market_cap_allocations(self, request: AnalyticsRequest) -> MarketCapAllocation:
        return self.generate(AnalyticsType.MARKET_CAP_ALLOCATION, request)

    def calculate_advanced_analytics(self, request: AnalyticsRequest) -> AnalyticsResponse:
        """Bundle every view toggled on in the request into one response.

        Holdings and prices are fetched once and shared by all views.
        """
        toggles: Dict[AnalyticsType, Tuple[bool, str]] = {
            AnalyticsType.SECTOR_HEATMAP: (request.include_heatmap, "heatmap"),
            AnalyticsType.TOP_MOVERS: (request.include_movers, "movers"),
            AnalyticsType.SECTOR_ALLOCATION: (request.include_sector_allocation, "sector_allocation"),
            AnalyticsType.MARKET_CAP_ALLOCATION: (request.include_market_cap_allocation, "market_cap_allocation"),
        }
        selected = [(t, field) for t, (enabled, field) in toggles.items() if enabled]
        logger.info(
            "Calculating advanced analytics for %s: %s",
            request.identifier,
            ", ".join(t.value for t, _ in selected) or "nothing requested",
        )

        components: Dict[str, Optional[BaseModel]] = {}
        if selected:
            holdings, prices = self._load_inputs(request)
            for analytics_type, field in selected:
                components[field] = self._build(analytics_type, request, holdings, prices)

        return AnalyticsResponse(
            portfolio_id=request.portfolio_id,
            index_symbol=request.index_symbol,
            comparison_index_symbol=request.comparison_index_symbol,
            start_date=request.from_date,
            end_date=request.to_date,
            analytics=AnalyticsComponent(**components),
        )
