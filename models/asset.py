"""
Asset model - represents a holding in an account's portfolio.
"""

from typing import Iterable, Optional
from datetime import date, datetime, timezone
from uuid import uuid4

from sqlalchemy import UniqueConstraint
from sqlmodel import SQLModel, Field

from services.records import AssetState, PricePoint as PriceSample


def new_id() -> str:
    return uuid4().hex


class Asset(SQLModel, table=True):
    """Represents a holding (stock, fund, fixed income...) held at a broker."""
    id: str = Field(default_factory=new_id, primary_key=True)
    account_id: str = Field(index=True)
    ticker: str = Field(index=True)  # e.g., "PETR4", "HGLG11"
    asset_type: str  # e.g., "Stock", "FII", "Crypto"
    broker: str  # e.g., "XP", "NuInvest"
    quantity: float = Field(default=0.0)
    average_price: float = Field(default=0.0)  # Running weighted-average cost
    current_price: float = Field(default=0.0)  # Latest manual quote
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    def to_record(self, history: Iterable["PricePoint"] = ()) -> AssetState:
        """Convert to the immutable engine record, attaching its price history."""
        samples = sorted(
            (PriceSample(date=point.price_date, price=point.price) for point in history),
            key=lambda sample: sample.day
        )
        return AssetState(
            id=self.id,
            ticker=self.ticker,
            asset_type=self.asset_type,
            broker=self.broker,
            quantity=self.quantity,
            average_price=self.average_price,
            current_price=self.current_price,
            price_history=tuple(samples)
        )


class PricePoint(SQLModel, table=True):
    """One manual price sample per asset per calendar day."""
    __table_args__ = (UniqueConstraint("asset_id", "price_date"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    asset_id: str = Field(foreign_key="asset.id", index=True)
    price_date: date = Field(index=True)
    price: float
