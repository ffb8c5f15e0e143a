"""
Valuation engine.
Prices replayed holdings at a reference date using the latest-preceding-sample rule.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Mapping, Optional, Union

from services.common import DateLike, profitability_pct, to_calendar_date, utc_today
from services.records import AssetState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Valuation:
    """Equity and cost basis of a set of holdings at one date."""
    equity: float
    invested: float

    @property
    def profit(self) -> float:
        return self.equity - self.invested

    @property
    def profitability(self) -> float:
        return profitability_pct(self.profit, self.invested)


def index_assets(assets: Union[Iterable[AssetState], Mapping[str, AssetState]]) -> Dict[str, AssetState]:
    """Key assets by id (first occurrence wins)."""
    if isinstance(assets, Mapping):
        return dict(assets)
    by_id: Dict[str, AssetState] = {}
    for asset in assets:
        by_id.setdefault(asset.id, asset)
    return by_id


def price_at(asset: AssetState, as_of: DateLike, today: Optional[DateLike] = None) -> float:
    """
    Resolve an asset's unit price as of a calendar day.

    1. On or after today: the live ``current_price``.
    2. Otherwise: the latest history sample dated on or before ``as_of``.
    3. With no such sample: ``average_price``.
    """
    day = to_calendar_date(as_of)
    today = to_calendar_date(today) if today is not None else utc_today()

    if day >= today:
        return asset.current_price

    best = None
    for point in asset.price_history:
        point_day = point.day
        if point_day <= day and (best is None or point_day >= best.day):
            best = point

    if best is None:
        logger.debug(f"No price sample for {asset.ticker} on or before {day}; using average cost")
        return asset.average_price
    return best.price


def value_holdings(
    holdings: Mapping[str, float],
    assets: Union[Iterable[AssetState], Mapping[str, AssetState]],
    as_of: DateLike,
    today: Optional[DateLike] = None
) -> Valuation:
    """
    Value replayed holdings at ``as_of``.

    Cost basis uses each asset's current average price for every date; it is
    not a point-in-time replay of purchase costs.

    Args:
        holdings: asset_id -> quantity, e.g. from replay_holdings()
        assets: Asset states (iterable or id mapping)
        as_of: Reference date
        today: Override for the current date

    Returns:
        Valuation with equity and invested totals
    """
    by_id = index_assets(assets)
    equity = 0.0
    invested = 0.0

    for asset_id, quantity in holdings.items():
        if quantity <= 0:
            continue
        asset = by_id.get(asset_id)
        if asset is None:
            logger.debug(f"Holding references unknown asset {asset_id}; skipped")
            continue
        equity += quantity * price_at(asset, as_of, today)
        invested += quantity * asset.average_price

    return Valuation(equity=equity, invested=invested)
