import pytest

from portfolio_analytics.data_models.holding import Holding
from portfolio_analytics.data_models.price_snapshot import PriceSnapshot
from portfolio_analytics.services.sector_grouping_service import (
    build_sector_lookup,
    group_holdings_by_sector,
    merge_duplicate_holdings,
)


def test_empty_holdings_give_empty_groups():
    assert group_holdings_by_sector([]) == {}


def test_duplicate_symbols_are_merged_before_bucketing():
    holdings = [
        Holding(symbol="INFY", quantity=40, sector="IT", broker="zerodha"),
        Holding(symbol="TCS", quantity=12, sector="IT"),
        Holding(symbol="INFY", quantity=10, sector="IT", broker="groww"),
    ]

    buckets = group_holdings_by_sector(holdings)

    assert list(buckets) == ["IT"]
    symbols = [h.symbol for h in buckets["IT"].stocks]
    assert symbols == ["INFY", "TCS"]
    infy = buckets["IT"].stocks[0]
    assert infy.quantity == pytest.approx(50.0)


def test_merge_keeps_first_seen_metadata_and_fills_gaps():
    holdings = [
        Holding(symbol="HDFCBANK", quantity=5, sector="Financial Services"),
        Holding(symbol="HDFCBANK", quantity=7, sector="Banks", industry="Private Banks"),
    ]

    merged = merge_duplicate_holdings(holdings)

    assert len(merged) == 1
    h = merged[0]
    assert h.quantity == pytest.approx(12.0)
    assert h.sector == "Financial Services"
    assert h.industry == "Private Banks"


def test_missing_or_blank_sector_goes_to_unknown_bucket():
    holdings = [
        Holding(symbol="A", quantity=1, sector=None),
        Holding(symbol="B", quantity=1, sector="   "),
        Holding(symbol="C", quantity=1, sector="Energy"),
    ]

    buckets = group_holdings_by_sector(holdings)

    assert set(buckets) == {"Unknown", "Energy"}
    assert [h.symbol for h in buckets["Unknown"].stocks] == ["A", "B"]


def test_buckets_carry_only_available_prices():
    holdings = [
        Holding(symbol="A", quantity=1, sector="Energy"),
        Holding(symbol="B", quantity=1, sector="Energy"),
    ]
    prices = {"A": PriceSnapshot(symbol="A", last_price=10.0, open=9.0)}

    bucket = group_holdings_by_sector(holdings, prices)["Energy"]

    assert [p.symbol for p in bucket.prices] == ["A"]
    assert bucket.price_for("B") is None


def test_sector_lookup_matches_grouping():
    holdings = [
        Holding(symbol="A", quantity=1, sector="Energy"),
        Holding(symbol="B", quantity=1),
    ]

    assert build_sector_lookup(holdings) == {"A": "Energy", "B": "Unknown"}
