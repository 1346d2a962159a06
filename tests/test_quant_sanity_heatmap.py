import random

import pytest

from portfolio_analytics.data_models.holding import Holding
from portfolio_analytics.data_models.price_snapshot import PriceSnapshot
from portfolio_analytics.services.heatmap_service import build_heatmap
from portfolio_analytics.services.sector_grouping_service import group_holdings_by_sector


def _random_portfolio(seed: int, n: int = 40):
    rng = random.Random(seed)
    sectors = ["Energy", "Metals", "Banks", "IT", "Pharma", "Autos"]
    holdings = []
    prices = {}
    for i in range(n):
        symbol = f"S{i:03d}"
        holdings.append(Holding(symbol=symbol, quantity=rng.randint(1, 500), sector=rng.choice(sectors)))
        open_ = rng.uniform(10.0, 2000.0)
        prices[symbol] = PriceSnapshot(symbol=symbol, open=open_, last_price=open_ * rng.uniform(0.9, 1.1))
    return holdings, prices


@pytest.mark.parametrize("seed", [1, 7, 42])
def test_ranks_are_a_permutation_ordered_by_performance(seed):
    holdings, prices = _random_portfolio(seed)
    hm = build_heatmap(group_holdings_by_sector(holdings, prices))

    ranks = [s.performance_rank for s in hm.sectors]
    assert sorted(ranks) == list(range(1, len(hm.sectors) + 1))

    perf = [s.performance_percent for s in hm.sectors]
    assert all(a >= b for a, b in zip(perf, perf[1:]))


@pytest.mark.parametrize("seed", [3, 11])
def test_weights_sum_to_one_hundred(seed):
    holdings, prices = _random_portfolio(seed)
    hm = build_heatmap(group_holdings_by_sector(holdings, prices))

    assert sum(s.weightage_percent for s in hm.sectors) == pytest.approx(100.0, abs=0.01)
    for s in hm.sectors:
        if s.total_value > 0:
            assert sum(d.weight for d in s.stocks) == pytest.approx(100.0, abs=0.01)


def test_scaling_quantities_leaves_performance_unchanged():
    holdings, prices = _random_portfolio(5)
    doubled = [h.model_copy(update={"quantity": h.quantity * 2}) for h in holdings]

    base = build_heatmap(group_holdings_by_sector(holdings, prices))
    scaled = build_heatmap(group_holdings_by_sector(doubled, prices))

    for a, b in zip(base.sectors, scaled.sectors):
        assert a.sector_name == b.sector_name
        assert a.performance_percent == pytest.approx(b.performance_percent, rel=1e-9)
        assert b.total_value == pytest.approx(2 * a.total_value, rel=1e-9)


def test_sector_performance_lies_between_its_stocks():
    holdings, prices = _random_portfolio(9)
    hm = build_heatmap(group_holdings_by_sector(holdings, prices))

    for s in hm.sectors:
        changes = [d.change_percent for d in s.stocks]
        assert min(changes) - 1e-9 <= s.performance_percent <= max(changes) + 1e-9
