"""Top gainers and losers.

Ranks the symbols of a portfolio or index by their move since the open and
returns the strongest movers in each direction, each tagged with its sector
and position size.
"""
from __future__ import annotations

from typing import Dict, List, Mapping, Optional, Tuple
import logging

from portfolio_analytics.data_models.gainer_loser import GainerLoser, SectorMovement, StockMovement
from portfolio_analytics.data_models.holding import Holding, UNKNOWN_SECTOR
from portfolio_analytics.data_models.price_snapshot import PriceSnapshot
from portfolio_analytics.services.sector_grouping_service import (
    build_sector_lookup,
    merge_duplicate_holdings,
)
from portfolio_analytics.services.sector_performance_service import compute_change_percent

logger = logging.getLogger(__name__)

DEFAULT_LIMIT = 5
# Gainer/loser symbols listed per sector in sector movements
SECTOR_MOVER_SYMBOLS = 3


def resolve_movers_limit(movers_limit: Optional[int], return_all_data: bool, available: int) -> int:
    """Number of movers to return for a request.

    `return_all_data` returns everything available; otherwise an explicit
    positive `movers_limit` wins, falling back to `DEFAULT_LIMIT`.
    """
    if return_all_data:
        return max(int(available), 0)
    if movers_limit is not None and movers_limit > 0:
        return int(movers_limit)
    return DEFAULT_LIMIT


def _build_movements(
    holdings: List[Holding],
    prices: Mapping[str, PriceSnapshot],
) -> List[StockMovement]:
    """One movement per merged holding that has a price and a positive open."""
    sector_lookup = build_sector_lookup(holdings)
    merged = merge_duplicate_holdings(holdings)

    values: Dict[str, float] = {}
    for h in merged:
        snapshot = prices.get(h.symbol)
        if snapshot is not None and snapshot.price is not None:
            values[h.symbol] = float(snapshot.price) * float(h.quantity)
    total_value = sum(values.values())

    movements: List[StockMovement] = []
    for h in merged:
        snapshot = prices.get(h.symbol)
        if snapshot is None:
            continue
        change_percent = compute_change_percent(snapshot)
        if change_percent is None:
            logger.debug("Skipping %s: no price or non-positive open", h.symbol)
            continue
        market_value = values[h.symbol]
        movements.append(
            StockMovement(
                symbol=h.symbol,
                last_price=float(snapshot.price),
                change_amount=float(snapshot.price) - float(snapshot.open),
                change_percent=change_percent,
                sector=sector_lookup.get(h.symbol),
                quantity=float(h.quantity),
                market_value=market_value,
                weight_percentage=market_value / total_value * 100.0 if total_value > 0 else 0.0,
            )
        )
    return movements


def split_gainers_losers(
    movements: List[StockMovement],
    limit: Optional[int] = DEFAULT_LIMIT,
) -> Tuple[List[StockMovement], List[StockMovement]]:
    """Top `limit` positive movers (descending) and negative movers (ascending).

    Symbols with no move at all appear in neither list. `limit=None` keeps
    every qualifying symbol.
    """
    gainers = sorted((m for m in movements if m.change_percent > 0), key=lambda m: m.change_percent, reverse=True)
    losers = sorted((m for m in movements if m.change_percent < 0), key=lambda m: m.change_percent)
    if limit is not None:
        gainers = gainers[:limit]
        losers = losers[:limit]
    return gainers, losers


def calculate_sector_movements(movements: List[StockMovement]) -> List[SectorMovement]:
    """Value-weighted movement summary per sector, best sector first."""
    total_value = sum(m.market_value or 0.0 for m in movements)
    by_sector: Dict[str, List[StockMovement]] = {}
    for m in movements:
        by_sector.setdefault(m.sector or UNKNOWN_SECTOR, []).append(m)

    result: List[SectorMovement] = []
    for sector_name, items in by_sector.items():
        sector_value = sum(m.market_value or 0.0 for m in items)
        weighted_change = sum(m.change_percent * (m.market_value or 0.0) for m in items)

        gainers, losers = split_gainers_losers(items, limit=SECTOR_MOVER_SYMBOLS)
        result.append(
            SectorMovement(
                sector_name=sector_name,
                average_change_percent=weighted_change / sector_value if sector_value > 0 else 0.0,
                stock_count=len(items),
                market_cap_weight=sector_value / total_value * 100.0 if total_value > 0 else 0.0,
                top_gainer_symbols=[m.symbol for m in gainers],
                top_loser_symbols=[m.symbol for m in losers],
                stock_performance={m.symbol: m.change_percent for m in items},
            )
        )

    result.sort(key=lambda s: s.average_change_percent, reverse=True)
    logger.debug("Generated sector movements for %d sectors", len(result))
    return result


def rank_top_movers(
    holdings: List[Holding],
    prices: Mapping[str, PriceSnapshot],
    limit: Optional[int] = DEFAULT_LIMIT,
    include_sector_movements: bool = False,
) -> GainerLoser:
    """Rank holdings by intraday change and return the top gainers and losers.

    A symbol is ranked only when it has a price and an open greater than
    zero; anything else is left out instead of producing an infinite or
    undefined percentage.
    """
    if not holdings or not prices:
        return GainerLoser(sector_movements=[] if include_sector_movements else None)

    movements = _build_movements(holdings, prices)
    gainers, losers = split_gainers_losers(movements, limit=limit)

    logger.info(
        "Ranked %d movers: %d gainers, %d losers (limit %s)",
        len(movements),
        len(gainers),
        len(losers),
        "all" if limit is None else limit,
    )

    return GainerLoser(
        top_gainers=gainers,
        top_losers=losers,
        sector_movements=calculate_sector_movements(movements) if include_sector_movements else None,
    )
