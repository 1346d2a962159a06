"""Holdings collaborators.

`HoldingsProvider` is the narrow interface the analytics facade uses to
fetch the constituents of a portfolio or index. A CSV-backed and an
in-memory implementation are provided.
"""
from __future__ import annotations

from io import StringIO
from pathlib import Path
from typing import Dict, List, Optional, Protocol, runtime_checkable
import csv
import logging

from portfolio_analytics.data_models.holding import Holding

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = {"portfolio_id", "symbol", "quantity"}


@runtime_checkable
class HoldingsProvider(Protocol):
    """Returns the holdings of a portfolio id or index symbol.

    An unknown portfolio and an empty one both return an empty list.
    """

    def get_holdings(self, portfolio_id_or_index_symbol: str) -> List[Holding]:
        ...


def safe_float(val: str | None) -> float | None:
    if val is None:
        return None
    s = str(val).strip()
    if s == "" or s.lower() in {"unknown", "na", "n/a", "-"}:
        return None
    # Remove thousands separators (Swiss apostrophes, commas)
    s = s.replace("'", "").replace(",", "")
    try:
        return float(s)
    except ValueError:
        return None


def load_holdings_from_csv(
    csv_path: Path | str,
    portfolio_id_filter: str | None = None,
) -> List[Holding]:
    """Load holdings from a CSV file.

    Expected columns: ``portfolio_id, symbol, quantity`` plus the optional
    ``sector, industry, market_cap_bucket, broker``. Markdown code fences
    around the CSV are stripped before parsing. Rows with an unparseable
    quantity are kept with quantity 0 and a warning.

    Raises FileNotFoundError when the file is missing and ValueError when
    required columns are absent.
    """
    path = Path(csv_path)
    if not path.exists():
        raise FileNotFoundError(f"Holdings CSV file not found: {path}")

    text = path.read_text(encoding="utf-8")
    cleaned_lines = [ln for ln in text.splitlines() if not ln.strip().startswith("```")]
    reader = csv.DictReader(StringIO("\n".join(cleaned_lines)))

    columns = {str(c).strip() for c in (reader.fieldnames or [])}
    missing = REQUIRED_COLUMNS - columns
    if missing:
        raise ValueError(f"Missing required columns in holdings CSV {path}: {sorted(missing)}")

    rows = list(reader)
    if portfolio_id_filter is not None:
        rows = [r for r in rows if (r.get("portfolio_id") or "").strip() == portfolio_id_filter]

    holdings: List[Holding] = []
    for r in rows:
        symbol = (r.get("symbol") or "").strip()
        if not symbol:
            logger.warning("Skipping holdings row without a symbol: %s", r)
            continue

        quantity = safe_float(r.get("quantity"))
        if quantity is None:
            logger.warning("Unparseable quantity for %s; treating as 0", symbol)
            quantity = 0.0

        holdings.append(
            Holding(
                symbol=symbol,
                quantity=quantity,
                sector=(r.get("sector") or "").strip() or None,
                industry=(r.get("industry") or "").strip() or None,
                market_cap_bucket=(r.get("market_cap_bucket") or "").strip() or None,
                broker=(r.get("broker") or "").strip() or None,
            )
        )

    logger.info(
        "Loaded %d holdings from %s%s",
        len(holdings),
        path,
        f" for {portfolio_id_filter}" if portfolio_id_filter is not None else "",
    )
    return holdings


class CsvHoldingsProvider:
    """Holdings provider reading a single CSV that lists every portfolio.

    A missing or malformed file is logged and reported as no holdings.
    """

    def __init__(self, csv_path: Path | str):
        self.csv_path = Path(csv_path)

    def get_holdings(self, portfolio_id_or_index_symbol: str) -> List[Holding]:
        try:
            return load_holdings_from_csv(self.csv_path, portfolio_id_filter=portfolio_id_or_index_symbol)
        except (OSError, ValueError):
            logger.exception("Could not read holdings from %s", self.csv_path)
            return []


class InMemoryHoldingsProvider:
    def __init__(self, holdings_by_id: Optional[Dict[str, List[Holding]]] = None):
        self._holdings = dict(holdings_by_id or {})

    def get_holdings(self, portfolio_id_or_index_symbol: str) -> List[Holding]:
        return list(self._holdings.get(portfolio_id_or_index_symbol, []))
