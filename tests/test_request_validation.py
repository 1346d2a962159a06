from datetime import date

import pytest
from pydantic import ValidationError

from portfolio_analytics.data_models.analytics_request import AnalyticsRequest


def test_identifiers_are_stripped():
    request = AnalyticsRequest(portfolio_id=" p1 ", index_symbol="  ", comparison_index_symbol=" NIFTY 50 ")

    assert request.portfolio_id == "p1"
    assert request.index_symbol is None
    assert request.comparison_index_symbol == "NIFTY 50"
    assert request.identifier == "p1"


def test_index_request_identifier():
    request = AnalyticsRequest(index_symbol="NIFTY 50")
    assert request.identifier == "NIFTY 50"


def test_requires_exactly_one_identifier():
    with pytest.raises(ValidationError):
        AnalyticsRequest()
    with pytest.raises(ValidationError):
        AnalyticsRequest(portfolio_id="p1", index_symbol="NIFTY 50")


def test_index_symbol_is_alphanumeric():
    with pytest.raises(ValidationError):
        AnalyticsRequest(index_symbol="NIFTY;DROP")


def test_movers_limit_must_be_positive():
    with pytest.raises(ValidationError):
        AnalyticsRequest(portfolio_id="p1", movers_limit=0)


def test_date_range_order():
    AnalyticsRequest(portfolio_id="p1", from_date=date(2025, 1, 1), to_date=date(2025, 1, 31))
    with pytest.raises(ValidationError):
        AnalyticsRequest(portfolio_id="p1", from_date=date(2025, 2, 1), to_date=date(2025, 1, 31))
