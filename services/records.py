"""
Immutable ledger records consumed by the replay and valuation engines.

Transactions are tagged variants: each type carries only the fields that
apply to it, so a dividend has an ``amount`` and never a quantity.
"""

from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import ClassVar, Tuple, Union

from services.common import DateLike, to_calendar_date


class TransactionType(str, Enum):
    """Kind of ledger entry."""
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"


def _require_non_negative(owner: str, **values: float) -> None:
    for name, value in values.items():
        if value < 0:
            raise ValueError(f"{owner}.{name} must be >= 0, got {value}")


@dataclass(frozen=True)
class PricePoint:
    """A dated price sample from an asset's price history."""
    date: DateLike
    price: float

    @property
    def day(self) -> date:
        return to_calendar_date(self.date)


@dataclass(frozen=True)
class AssetState:
    """
    Live state of a holding.

    ``average_price`` is the running weighted-average cost and
    ``current_price`` the latest manual quote. ``price_history`` is kept
    ascending by date with at most one sample per calendar day.
    """
    id: str
    ticker: str
    asset_type: str
    broker: str
    quantity: float = 0.0
    average_price: float = 0.0
    current_price: float = 0.0
    price_history: Tuple[PricePoint, ...] = field(default_factory=tuple)

    def __post_init__(self):
        _require_non_negative("AssetState", quantity=self.quantity)
        if not isinstance(self.price_history, tuple):
            object.__setattr__(self, "price_history", tuple(self.price_history))


@dataclass(frozen=True)
class _Trade:
    id: str
    asset_id: str
    quantity: float
    price: float  # per unit
    date: DateLike

    def __post_init__(self):
        _require_non_negative(type(self).__name__, quantity=self.quantity, price=self.price)

    @property
    def day(self) -> date:
        return to_calendar_date(self.date)


@dataclass(frozen=True)
class Buy(_Trade):
    type: ClassVar[TransactionType] = TransactionType.BUY


@dataclass(frozen=True)
class Sell(_Trade):
    type: ClassVar[TransactionType] = TransactionType.SELL


@dataclass(frozen=True)
class Dividend:
    """A cash distribution; ``amount`` is the total paid, not a unit price."""
    id: str
    asset_id: str
    amount: float
    date: DateLike
    type: ClassVar[TransactionType] = TransactionType.DIVIDEND

    def __post_init__(self):
        _require_non_negative("Dividend", amount=self.amount)

    @property
    def day(self) -> date:
        return to_calendar_date(self.date)


InvestmentTransaction = Union[Buy, Sell, Dividend]


def make_transaction(
    transaction_type: Union[TransactionType, str],
    id: str,
    asset_id: str,
    quantity: float,
    price: float,
    date: DateLike
) -> InvestmentTransaction:
    """
    Build the tagged variant from the flat (type, quantity, price) layout
    used by storage and user input. For dividends ``price`` is the total
    amount and ``quantity`` is ignored.
    """
    kind = TransactionType(str(getattr(transaction_type, "value", transaction_type)).upper())
    if kind is TransactionType.BUY:
        return Buy(id=id, asset_id=asset_id, quantity=quantity, price=price, date=date)
    if kind is TransactionType.SELL:
        return Sell(id=id, asset_id=asset_id, quantity=quantity, price=price, date=date)
    return Dividend(id=id, asset_id=asset_id, amount=price, date=date)
