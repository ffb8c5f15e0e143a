"""
Services package for the portfolio ledger.
Provides the pure replay/valuation engine separated from the data layer.

The store-backed LedgerService lives in services.ledger and is imported
from there directly.
"""

from services.common import (
    to_calendar_date,
    to_utc_datetime,
    utc_year_month,
    trailing_month_ends,
    profitability_pct,
)
from services.records import (
    TransactionType,
    AssetState,
    PricePoint,
    Buy,
    Sell,
    Dividend,
    make_transaction,
)
from services.replay import replay_holdings, apply_transaction, record_price
from services.valuation import Valuation, price_at, value_holdings
from services.aggregation import (
    allocation_by_type,
    allocation_by_broker,
    dividends_history,
    recent_dividends,
    portfolio_history,
)
from services.portfolio import (
    PortfolioSummary,
    Snapshot,
    compute_summary,
    compute_snapshot,
    format_summary_report,
    format_snapshot_report,
)

__all__ = [
    # Common utilities
    'to_calendar_date',
    'to_utc_datetime',
    'utc_year_month',
    'trailing_month_ends',
    'profitability_pct',
    # Records
    'TransactionType',
    'AssetState',
    'PricePoint',
    'Buy',
    'Sell',
    'Dividend',
    'make_transaction',
    # Replay
    'replay_holdings',
    'apply_transaction',
    'record_price',
    # Valuation
    'Valuation',
    'price_at',
    'value_holdings',
    # Aggregation
    'allocation_by_type',
    'allocation_by_broker',
    'dividends_history',
    'recent_dividends',
    'portfolio_history',
    # Facade
    'PortfolioSummary',
    'Snapshot',
    'compute_summary',
    'compute_snapshot',
    'format_summary_report',
    'format_snapshot_report',
]
