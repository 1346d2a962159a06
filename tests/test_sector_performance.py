import pytest

from portfolio_analytics.data_models.holding import Holding
from portfolio_analytics.data_models.price_snapshot import PriceSnapshot
from portfolio_analytics.data_models.sector_bucket import SectorBucket
from portfolio_analytics.services.sector_performance_service import (
    aggregate_sector_performance,
    compute_change_percent,
    compute_return_percent,
)


def _bucket(rows):
    stocks = [Holding(symbol=s, quantity=q, sector="Test") for s, q, _, _ in rows]
    prices = [PriceSnapshot(symbol=s, open=o, last_price=p) for s, _, o, p in rows if p is not None]
    return SectorBucket(sector_name="Test", stocks=stocks, prices=prices)


def test_weighted_performance_example():
    bucket = _bucket([("X", 10, 100.0, 110.0), ("Y", 5, 200.0, 190.0)])

    agg = aggregate_sector_performance(bucket)

    assert agg.total_value == pytest.approx(2050.0)
    assert agg.total_return_amount == pytest.approx(50.0)
    assert agg.performance_percent == pytest.approx(2.5)
    assert agg.priced_stock_count == 2


def test_performance_is_value_weighted_not_a_simple_mean():
    # +10% on a large position, -50% on a tiny one
    bucket = _bucket([("BIG", 100, 100.0, 110.0), ("SMALL", 1, 10.0, 5.0)])

    agg = aggregate_sector_performance(bucket)

    simple_mean = (10.0 + -50.0) / 2
    assert agg.performance_percent > 0
    assert agg.performance_percent != pytest.approx(simple_mean)
    # (1000 - 5) / (11005 - 995) * 100
    assert agg.performance_percent == pytest.approx(995.0 / 10010.0 * 100.0)


def test_unpriced_stock_is_excluded_from_both_sums():
    priced_only = aggregate_sector_performance(_bucket([("X", 10, 100.0, 110.0)]))
    with_missing = aggregate_sector_performance(_bucket([("X", 10, 100.0, 110.0), ("Z", 1000, 50.0, None)]))

    assert with_missing.total_value == pytest.approx(priced_only.total_value)
    assert with_missing.total_return_amount == pytest.approx(priced_only.total_return_amount)
    assert with_missing.priced_stock_count == 1


def test_close_is_used_when_last_price_missing():
    bucket = SectorBucket(
        sector_name="Test",
        stocks=[Holding(symbol="X", quantity=2)],
        prices=[PriceSnapshot(symbol="X", open=100.0, close=104.0)],
    )

    agg = aggregate_sector_performance(bucket)

    assert agg.total_value == pytest.approx(208.0)
    assert agg.total_return_amount == pytest.approx(8.0)


def test_zero_open_contributes_value_but_no_return():
    bucket = _bucket([("X", 10, 100.0, 110.0), ("Z", 10, 0.0, 50.0)])

    agg = aggregate_sector_performance(bucket)

    assert agg.total_value == pytest.approx(1600.0)
    assert agg.total_return_amount == pytest.approx(100.0)


def test_empty_bucket_is_zero():
    agg = aggregate_sector_performance(SectorBucket(sector_name="Empty"))

    assert agg.total_value == 0.0
    assert agg.performance_percent == 0.0


def test_return_percent_zero_denominator():
    assert compute_return_percent(0.0, 0.0) == 0.0
    assert compute_return_percent(10.0, 10.0) == 0.0


def test_change_percent_guards():
    assert compute_change_percent(PriceSnapshot(symbol="A", open=100.0, last_price=110.0)) == pytest.approx(10.0)
    assert compute_change_percent(PriceSnapshot(symbol="A", open=0.0, last_price=110.0)) is None
    assert compute_change_percent(PriceSnapshot(symbol="A", open=None, last_price=110.0)) is None
    assert compute_change_percent(PriceSnapshot(symbol="A", open=100.0)) is None
