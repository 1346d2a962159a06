from pathlib import Path
import json

from portfolio_analytics.cli.generate_analytics import main


def _write(path: Path, lines: list[str]):
    path.write_text("\n".join(lines), encoding="utf-8")


def _make_files(tmp_path):
    holdings = tmp_path / "holdings.csv"
    prices = tmp_path / "prices.csv"
    _write(
        holdings,
        [
            "portfolio_id,symbol,quantity,sector,industry,market_cap_bucket,broker",
            "p1,INFY,10,IT,IT Services,LARGE_CAP,zerodha",
            "p1,TCS,5,IT,IT Services,LARGE_CAP,zerodha",
            "p1,HDFCBANK,1,Financials,Banks,LARGE_CAP,groww",
        ],
    )
    _write(
        prices,
        [
            "symbol,last_price,open,high,low,close",
            "INFY,110.0,100.0,111,99,100",
            "TCS,190.0,200.0,201,189,200",
            "HDFCBANK,100.125,100.0,101,99,100",
        ],
    )
    return holdings, prices


def test_cli_writes_rounded_json(tmp_path):
    holdings, prices = _make_files(tmp_path)
    out = tmp_path / "out" / "analytics.json"

    rc = main([
        "--holdings-file", str(holdings),
        "--prices-file", str(prices),
        "--portfolio-id", "p1",
        "--heatmap", "--movers", "--movers-limit", "1",
        "--output", str(out),
    ])

    assert rc == 0
    payload = json.loads(out.read_text(encoding="utf-8"))
    assert payload["portfolio_id"] == "p1"
    assert "index_symbol" not in payload
    assert "sector_allocation" not in payload["analytics"]

    sectors = payload["analytics"]["heatmap"]["sectors"]
    assert sectors[0]["sector_name"] == "IT"
    assert sectors[0]["performance_percent"] == 2.5
    fin = sectors[1]
    # 100.125 rounds half-up
    assert fin["total_value"] == 100.13

    movers = payload["analytics"]["movers"]
    assert [m["symbol"] for m in movers["top_gainers"]] == ["INFY"]
    assert "sector_movements" not in movers


def test_cli_rejects_invalid_dates(tmp_path):
    holdings, prices = _make_files(tmp_path)

    rc = main([
        "--holdings-file", str(holdings),
        "--prices-file", str(prices),
        "--portfolio-id", "p1",
        "--from-date", "2025-02-01",
        "--to-date", "2025-01-01",
    ])

    assert rc == 2


def test_cli_missing_prices_file_gives_empty_views(tmp_path):
    holdings, _ = _make_files(tmp_path)
    out = tmp_path / "empty.json"

    rc = main([
        "--holdings-file", str(holdings),
        "--prices-file", str(tmp_path / "missing.csv"),
        "--portfolio-id", "p1",
        "--all",
        "--output", str(out),
    ])

    assert rc == 0
    analytics = json.loads(out.read_text(encoding="utf-8"))["analytics"]
    assert analytics["heatmap"]["sectors"] == []
    assert analytics["sector_allocation"]["sector_weights"] == []
