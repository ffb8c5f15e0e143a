"""
Portfolio summary facade.
Combines replay, valuation and aggregation into the aggregate summary and dated snapshots.
"""

import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional, Tuple

import pandas as pd

from config import get_settings
from services.aggregation import (
    AllocationSlice,
    DividendBucket,
    DividendEntry,
    HistoryPoint,
    allocation_by_broker,
    allocation_by_type,
    dividends_history,
    dividends_until,
    portfolio_history,
    recent_dividends,
)
from services.common import DateLike, profitability_pct, to_calendar_date, utc_today
from services.records import AssetState, Dividend, InvestmentTransaction
from services.replay import replay_holdings
from services.valuation import value_holdings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PortfolioSummary:
    """Always-current totals plus every aggregation the dashboard shows."""
    total_invested: float
    total_equity: float
    total_profit: float
    profitability: float  # %
    allocation_by_type: Tuple[AllocationSlice, ...]
    allocation_by_broker: Tuple[AllocationSlice, ...]
    dividends_total: float
    dividends_history: Tuple[DividendBucket, ...]
    recent_dividends: Tuple[DividendEntry, ...]
    portfolio_history: Tuple[HistoryPoint, ...]
    selic: float
    ipca: float


@dataclass(frozen=True)
class Snapshot:
    """Valuation of the ledger as of one reference date."""
    date: date
    equity: float
    invested: float
    profit: float
    profitability: float  # %
    dividends: float


def compute_summary(
    assets: Iterable[AssetState],
    transactions: Iterable[InvestmentTransaction],
    selic: Optional[float] = None,
    ipca: Optional[float] = None,
    today: Optional[DateLike] = None
) -> PortfolioSummary:
    """
    Build the aggregate summary from live asset state and the full ledger.

    Totals use each asset's live quantity: invested at average cost, equity
    at the current quote. Safe to call repeatedly; inputs are never modified
    and equal inputs give equal results.

    Args:
        assets: Live asset states
        transactions: All ledger entries for the account
        selic: Policy rate to pass through (default from settings)
        ipca: Inflation rate to pass through (default from settings)
        today: Override for the current date

    Returns:
        PortfolioSummary
    """
    settings = get_settings()
    assets = tuple(assets)
    transactions = tuple(transactions)
    today = to_calendar_date(today) if today is not None else utc_today()

    total_invested = 0.0
    total_equity = 0.0
    for asset in assets:
        total_invested += asset.quantity * asset.average_price
        total_equity += asset.quantity * asset.current_price
    total_profit = total_equity - total_invested

    return PortfolioSummary(
        total_invested=total_invested,
        total_equity=total_equity,
        total_profit=total_profit,
        profitability=profitability_pct(total_profit, total_invested),
        allocation_by_type=allocation_by_type(assets),
        allocation_by_broker=allocation_by_broker(assets),
        dividends_total=sum(tx.amount for tx in transactions if isinstance(tx, Dividend)),
        dividends_history=dividends_history(transactions),
        recent_dividends=recent_dividends(
            transactions,
            assets,
            limit=settings.recent_dividends_limit,
            unknown_label=settings.unknown_ticker_label
        ),
        portfolio_history=portfolio_history(assets, transactions, months=settings.history_months, today=today),
        selic=settings.selic_rate if selic is None else selic,
        ipca=settings.ipca_rate if ipca is None else ipca,
    )


def compute_snapshot(
    assets: Iterable[AssetState],
    transactions: Iterable[InvestmentTransaction],
    reference_date: DateLike,
    today: Optional[DateLike] = None
) -> Snapshot:
    """
    Value the ledger as of ``reference_date`` (ISO date string or date).
    Holdings are replayed up to that day; dividends are totalled up to it.
    """
    day = to_calendar_date(reference_date)
    transactions = tuple(transactions)

    holdings = replay_holdings(transactions, day)
    valuation = value_holdings(holdings, assets, day, today)

    return Snapshot(
        date=day,
        equity=valuation.equity,
        invested=valuation.invested,
        profit=valuation.profit,
        profitability=valuation.profitability,
        dividends=dividends_until(transactions, day),
    )


def format_summary_report(summary: PortfolioSummary) -> str:
    """
    Format a summary report for display.

    Args:
        summary: PortfolioSummary object

    Returns:
        Formatted report string
    """
    lines = [
        "=" * 60,
        "PORTFOLIO SUMMARY",
        "=" * 60,
        "",
        f"Invested:                  {summary.total_invested:,.2f}",
        f"Equity:                    {summary.total_equity:,.2f}",
        f"Profit:                    {summary.total_profit:,.2f} ({summary.profitability:.2f}%)",
        f"Dividends received:        {summary.dividends_total:,.2f}",
        f"Selic: {summary.selic:.2f}%   IPCA (12m): {summary.ipca:.2f}%",
    ]

    for title, slices in (("ALLOCATION BY TYPE", summary.allocation_by_type),
                          ("ALLOCATION BY BROKER", summary.allocation_by_broker)):
        lines += ["", title, "-" * 40]
        if slices:
            frame = pd.DataFrame([(s.name, s.value) for s in slices], columns=["name", "value"])
            if summary.total_equity > 0:
                frame["share_pct"] = (frame["value"] / summary.total_equity * 100).round(2)
            lines.append(frame.to_string(index=False))
        else:
            lines.append("  (no holdings)")

    lines += ["", "EQUITY HISTORY", "-" * 40]
    history = pd.DataFrame(
        [(p.date.isoformat(), p.label, p.value) for p in summary.portfolio_history],
        columns=["month_end", "month", "value"]
    )
    lines.append(history.to_string(index=False))

    if summary.recent_dividends:
        lines += ["", "RECENT DIVIDENDS", "-" * 40]
        for entry in summary.recent_dividends:
            lines.append(f"  {entry.date.isoformat()}  {entry.ticker:<10} {entry.amount:,.2f}")

    lines.append("")
    lines.append("=" * 60)

    return "\n".join(lines)


def format_snapshot_report(snapshot: Snapshot) -> str:
    """Format a dated snapshot for display."""
    return "\n".join([
        "=" * 60,
        f"PORTFOLIO SNAPSHOT AS OF {snapshot.date.isoformat()}",
        "=" * 60,
        f"Equity:                    {snapshot.equity:,.2f}",
        f"Invested:                  {snapshot.invested:,.2f}",
        f"Profit:                    {snapshot.profit:,.2f} ({snapshot.profitability:.2f}%)",
        f"Dividends to date:         {snapshot.dividends:,.2f}",
        "=" * 60,
    ])
