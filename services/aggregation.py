"""
Aggregation engine.
Allocation breakdowns, dividend bucketing, and the trailing equity series.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from services.common import (
    DateLike,
    to_calendar_date,
    to_utc_datetime,
    trailing_month_ends,
    utc_today,
    utc_year_month,
)
from services.records import AssetState, Dividend, InvestmentTransaction
from services.replay import replay_holdings
from services.valuation import index_assets, value_holdings

logger = logging.getLogger(__name__)

UNKNOWN_TICKER = "Unknown"


@dataclass(frozen=True)
class AllocationSlice:
    name: str
    value: float


@dataclass(frozen=True)
class DividendBucket:
    """Dividends paid in one UTC month. ``sort_index`` is year*100 + month."""
    label: str
    amount: float
    sort_index: int


@dataclass(frozen=True)
class DividendEntry:
    id: str
    date: date
    ticker: str
    amount: float


@dataclass(frozen=True)
class HistoryPoint:
    date: date
    label: str
    value: float


def _allocate(assets: Iterable[AssetState], key: Callable[[AssetState], str]) -> Tuple[AllocationSlice, ...]:
    totals: Dict[str, float] = {}
    for asset in assets:
        name = key(asset)
        totals[name] = totals.get(name, 0.0) + asset.quantity * asset.current_price
    return tuple(AllocationSlice(name=name, value=value) for name, value in totals.items())


def allocation_by_type(assets: Iterable[AssetState]) -> Tuple[AllocationSlice, ...]:
    """Current equity (quantity * current_price) per asset type, first-seen order."""
    return _allocate(assets, lambda asset: asset.asset_type)


def allocation_by_broker(assets: Iterable[AssetState]) -> Tuple[AllocationSlice, ...]:
    """Current equity (quantity * current_price) per broker, first-seen order."""
    return _allocate(assets, lambda asset: asset.broker)


def _dividends(transactions: Iterable[InvestmentTransaction]) -> List[Dividend]:
    return [tx for tx in transactions if isinstance(tx, Dividend)]


def dividends_history(transactions: Iterable[InvestmentTransaction]) -> Tuple[DividendBucket, ...]:
    """
    Bucket dividends by UTC (year, month) of their date.

    Buckets are ordered by ``sort_index`` so December 2023 always precedes
    January 2024 regardless of how the label reads.
    """
    amounts: Dict[Tuple[int, int], float] = {}
    for tx in _dividends(transactions):
        key = utc_year_month(tx.date)
        amounts[key] = amounts.get(key, 0.0) + tx.amount

    buckets = [
        DividendBucket(
            label=date(year, month, 1).strftime("%b/%y"),
            amount=amount,
            sort_index=year * 100 + month
        )
        for (year, month), amount in amounts.items()
    ]
    buckets.sort(key=lambda bucket: bucket.sort_index)
    return tuple(buckets)


def recent_dividends(
    transactions: Iterable[InvestmentTransaction],
    assets: Iterable[AssetState],
    limit: int = 10,
    unknown_label: str = UNKNOWN_TICKER
) -> Tuple[DividendEntry, ...]:
    """
    Most recent dividends, newest first, with the paying asset's ticker.
    Dividends whose asset no longer exists show ``unknown_label``.
    """
    by_id = index_assets(assets)
    newest_first = sorted(
        _dividends(transactions), key=lambda tx: (to_utc_datetime(tx.date), str(tx.id)), reverse=True
    )

    entries = []
    for tx in newest_first[:limit]:
        asset = by_id.get(tx.asset_id)
        if asset is None:
            logger.debug(f"Dividend {tx.id} references deleted asset {tx.asset_id}")
        entries.append(DividendEntry(
            id=tx.id,
            date=tx.day,
            ticker=asset.ticker if asset is not None else unknown_label,
            amount=tx.amount
        ))
    return tuple(entries)


def dividends_until(transactions: Iterable[InvestmentTransaction], as_of: DateLike) -> float:
    """Total dividends dated on or before ``as_of``."""
    cutoff = to_calendar_date(as_of)
    return sum(tx.amount for tx in _dividends(transactions) if tx.day <= cutoff)


def portfolio_history(
    assets: Iterable[AssetState],
    transactions: Iterable[InvestmentTransaction],
    months: int = 6,
    today: Optional[DateLike] = None
) -> Tuple[HistoryPoint, ...]:
    """
    Equity at each month-end of the trailing window, oldest first.

    Each point independently replays the ledger and values it as of that
    month-end, then adds dividends received up to that day as flat cash.
    """
    today = to_calendar_date(today) if today is not None else utc_today()
    by_id = index_assets(assets)
    transactions = list(transactions)

    points = []
    for end in trailing_month_ends(today, months):
        holdings = replay_holdings(transactions, end)
        valuation = value_holdings(holdings, by_id, end, today)
        points.append(HistoryPoint(
            date=end,
            label=end.strftime("%b"),
            value=valuation.equity + dividends_until(transactions, end)
        ))
    return tuple(points)

