"""
Transaction model - represents a buy, sell or dividend entry for an asset.
"""

from datetime import date

from sqlmodel import SQLModel, Field

from models.asset import new_id
from services.records import Dividend, InvestmentTransaction, make_transaction


class Transaction(SQLModel, table=True):
    """
    Represents a ledger entry for an asset.
    Dividends store their total amount in ``price`` and 0 in ``quantity``.

    ``occurred_at`` keeps the timestamp exactly as recorded (ISO-8601 text,
    offset included); ``transaction_date`` is its calendar day, for lookups.
    """
    id: str = Field(default_factory=new_id, primary_key=True)
    account_id: str = Field(index=True)
    asset_id: str = Field(index=True)  # Weak reference; asset may be deleted
    transaction_date: date = Field(index=True)
    occurred_at: str  # e.g., "2024-01-31T23:00:00-03:00" or "2024-01-31"
    transaction_type: str  # "BUY", "SELL" or "DIVIDEND"
    quantity: float = Field(default=0.0)
    price: float  # Price per unit, or total amount for dividends

    def to_record(self) -> InvestmentTransaction:
        """Convert to the tagged engine variant."""
        return make_transaction(
            self.transaction_type,
            id=self.id,
            asset_id=self.asset_id,
            quantity=self.quantity,
            price=self.price,
            date=self.occurred_at
        )

    @classmethod
    def from_record(cls, record: InvestmentTransaction, account_id: str) -> "Transaction":
        """Flatten a tagged variant into a row."""
        if isinstance(record, Dividend):
            quantity, price = 0.0, record.amount
        else:
            quantity, price = record.quantity, record.price
        occurred_at = record.date if isinstance(record.date, str) else record.date.isoformat()
        return cls(
            id=record.id,
            account_id=account_id,
            asset_id=record.asset_id,
            transaction_date=record.day,
            occurred_at=occurred_at,
            transaction_type=record.type.value,
            quantity=quantity,
            price=price
        )
