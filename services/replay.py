"""
Transaction replay engine.

Reconstructs quantity held per asset as of any calendar day from the
transaction log, and maintains the live average-cost state of a holding.
"""

import logging
from dataclasses import replace
from typing import Dict, Iterable, List

from services.common import DateLike, to_calendar_date
from services.records import (
    AssetState,
    Buy,
    Dividend,
    InvestmentTransaction,
    PricePoint,
    Sell,
)

logger = logging.getLogger(__name__)

# Same-day ordering: buys land before sells so a same-day round trip never clamps.
_TYPE_RANK = {Buy: 0, Sell: 1, Dividend: 2}


def replay_order(transaction: InvestmentTransaction):
    """Sort key giving a total, input-order independent replay order."""
    return transaction.day, _TYPE_RANK[type(transaction)], str(transaction.id)


def sorted_for_replay(transactions: Iterable[InvestmentTransaction]) -> List[InvestmentTransaction]:
    return sorted(transactions, key=replay_order)


def replay_holdings(transactions: Iterable[InvestmentTransaction], as_of: DateLike) -> Dict[str, float]:
    """
    Rebuild the quantity held per asset as of a calendar day.

    Every BUY/SELL dated on or before ``as_of`` is applied in date order.
    A SELL larger than the running quantity clamps the position at zero
    instead of failing. Dividends never change quantity.

    Args:
        transactions: Ledger entries, in any order
        as_of: Cutoff date (inclusive); time components are ignored

    Returns:
        Mapping of asset_id to quantity held (never negative)
    """
    cutoff = to_calendar_date(as_of)
    holdings: Dict[str, float] = {}

    for tx in sorted_for_replay(transactions):
        if tx.day > cutoff:
            break
        if isinstance(tx, Buy):
            holdings[tx.asset_id] = holdings.get(tx.asset_id, 0.0) + tx.quantity
        elif isinstance(tx, Sell):
            held = holdings.get(tx.asset_id, 0.0)
            if tx.quantity > held:
                logger.warning(
                    f"Sell {tx.id} of {tx.quantity} exceeds {held} held in {tx.asset_id}; clamping to zero"
                )
            holdings[tx.asset_id] = max(0.0, held - tx.quantity)

    return holdings


def apply_transaction(asset: AssetState, transaction: InvestmentTransaction) -> AssetState:
    """
    Apply one transaction to an asset's live state.

    BUY folds the purchase into the weighted-average cost. SELL only reduces
    quantity (clamped at zero); no realized gain is tracked. DIVIDEND leaves
    the asset untouched.

    Returns:
        A new AssetState; the input is not modified
    """
    if isinstance(transaction, Buy):
        new_quantity = asset.quantity + transaction.quantity
        new_average = asset.average_price
        if new_quantity > 0:
            total_cost = asset.quantity * asset.average_price + transaction.quantity * transaction.price
            new_average = total_cost / new_quantity
        return replace(asset, quantity=new_quantity, average_price=new_average)

    if isinstance(transaction, Sell):
        if transaction.quantity > asset.quantity:
            logger.warning(
                f"Sell of {transaction.quantity} exceeds {asset.quantity} held in {asset.ticker}; clamping to zero"
            )
        return replace(asset, quantity=max(0.0, asset.quantity - transaction.quantity))

    return asset


def record_price(asset: AssetState, price: float, on: DateLike) -> AssetState:
    """
    Record a manual quote: set current_price and upsert the history sample for that day.
    History stays ascending with one entry per calendar day.
    """
    day = to_calendar_date(on)
    history = [point for point in asset.price_history if point.day != day]
    history.append(PricePoint(date=day, price=price))
    history.sort(key=lambda point: point.day)
    return replace(asset, current_price=price, price_history=tuple(history))
