"""CLI to generate portfolio analytics JSON from holdings and prices CSVs.

Example:

    python src/portfolio_analytics/cli/generate_analytics.py \
      --holdings-file data/sample_holdings.csv --prices-file data/sample_prices.csv \
      --portfolio-id demo-portfolio --heatmap --movers --movers-limit 3 \
      --output out/demo_analytics.json
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import List, Optional
import argparse
import logging

from pydantic import BaseModel, ValidationError

from portfolio_analytics.data_models.analytics_request import AnalyticsRequest
from portfolio_analytics.services.analytics_facade import AnalyticsFacade, DEFAULT_MAX_WORKERS
from portfolio_analytics.services.holdings_service import CsvHoldingsProvider
from portfolio_analytics.services.market_data_service import (
    CsvMarketDataGateway,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
)

logger = logging.getLogger(__name__)


def to_json(model: BaseModel) -> str:
    """Serialise an analytics model, omitting fields that are None."""
    return model.model_dump_json(indent=2, exclude_none=True)


def _parse_date(value: Optional[str]):
    if value is None:
        return None
    return datetime.strptime(value, "%Y-%m-%d").date()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Generate sector heatmap, top movers and allocation analytics.")
    parser.add_argument("--holdings-file", dest="holdings_file", type=str, default="data/sample_holdings.csv",
                        help="Holdings CSV (portfolio_id,symbol,quantity,sector,industry,market_cap_bucket,broker).")
    parser.add_argument("--prices-file", dest="prices_file", type=str, default="data/sample_prices.csv",
                        help="Prices CSV (symbol,last_price,open,high,low,close).")
    target = parser.add_mutually_exclusive_group()
    target.add_argument("--portfolio-id", dest="portfolio_id", type=str, default=None,
                        help="Portfolio to analyse.")
    target.add_argument("--index-symbol", dest="index_symbol", type=str, default=None,
                        help="Index to analyse instead of a portfolio.")
    parser.add_argument("--comparison-index", dest="comparison_index", type=str, default=None)
    parser.add_argument("--from-date", dest="from_date", type=str, default=None, help="YYYY-MM-DD")
    parser.add_argument("--to-date", dest="to_date", type=str, default=None, help="YYYY-MM-DD")

    parser.add_argument("--heatmap", action="store_true", help="Include the sector heatmap.")
    parser.add_argument("--movers", action="store_true", help="Include top gainers and losers.")
    parser.add_argument("--sector-allocation", dest="sector_allocation", action="store_true")
    parser.add_argument("--market-cap-allocation", dest="market_cap_allocation", action="store_true")
    parser.add_argument("--all", dest="include_all", action="store_true", help="Include every analytics view.")

    parser.add_argument("--movers-limit", dest="movers_limit", type=int, default=None,
                        help="Number of gainers/losers to return (default 5).")
    parser.add_argument("--return-all", dest="return_all_data", action="store_true",
                        help="Return every gainer/loser instead of the top N.")
    parser.add_argument("--sector-movements", dest="sector_movements", action="store_true",
                        help="Add per-sector movement summaries to the movers view.")

    parser.add_argument("--fetch-timeout", dest="fetch_timeout", type=float, default=DEFAULT_FETCH_TIMEOUT_SECONDS,
                        help="Seconds to wait for market data before continuing without prices.")
    parser.add_argument("--max-workers", dest="max_workers", type=int, default=DEFAULT_MAX_WORKERS)
    parser.add_argument("--output", dest="output", type=str, default=None,
                        help="If provided, write the analytics JSON to this path.")
    parser.add_argument("--log-level", dest="log_level", default="INFO",
                        choices=("DEBUG", "INFO", "WARNING", "ERROR"))
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(level=getattr(logging, args.log_level), format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not args.portfolio_id and not args.index_symbol:
        parser.error("one of --portfolio-id or --index-symbol is required")

    try:
        request = AnalyticsRequest(
            portfolio_id=args.portfolio_id,
            index_symbol=args.index_symbol,
            comparison_index_symbol=args.comparison_index,
            from_date=_parse_date(args.from_date),
            to_date=_parse_date(args.to_date),
            include_heatmap=args.heatmap or args.include_all,
            include_movers=args.movers or args.include_all,
            include_sector_allocation=args.sector_allocation or args.include_all,
            include_market_cap_allocation=args.market_cap_allocation or args.include_all,
            movers_limit=args.movers_limit,
            return_all_data=args.return_all_data,
            include_sector_movements=args.sector_movements,
        )
    except (ValidationError, ValueError) as exc:
        logger.error("Invalid analytics request: %s", exc)
        return 2

    with AnalyticsFacade(
        CsvHoldingsProvider(args.holdings_file),
        CsvMarketDataGateway(args.prices_file),
        fetch_timeout=args.fetch_timeout,
        max_workers=args.max_workers,
    ) as facade:
        response = facade.calculate_advanced_analytics(request)

    payload = to_json(response)
    if args.output:
        out = Path(args.output)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(payload, encoding="utf-8")
        logger.info("Wrote analytics to %s", out)
    else:
        print(payload)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
