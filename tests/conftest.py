"""
Pytest configuration and shared fixtures for the portfolio ledger tests.
"""

import pytest
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, create_engine

from db_engine import init_db
from services.ledger import LedgerService
from services.records import AssetState, Buy, Dividend, PricePoint, Sell


@pytest.fixture
def engine():
    """Fresh in-memory SQLite store per test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def ledger(engine) -> LedgerService:
    return LedgerService("acct-1", engine=engine)


@pytest.fixture
def stock() -> AssetState:
    return AssetState(
        id="a1",
        ticker="PETR4",
        asset_type="Stock",
        broker="XP",
        quantity=6,
        average_price=100.0,
        current_price=120.0,
        price_history=(
            PricePoint("2023-12-01", 105.0),
            PricePoint("2024-02-10", 110.0),
        ),
    )


@pytest.fixture
def ledger_entries() -> list:
    """Buy 10, sell 4, and two dividends straddling a year boundary."""
    return [
        Buy(id="t1", asset_id="a1", quantity=10, price=100.0, date="2023-11-15T10:30:00Z"),
        Dividend(id="t3", asset_id="a1", amount=30.0, date="2023-12-28"),
        Dividend(id="t4", asset_id="a1", amount=20.0, date="2024-01-03"),
        Sell(id="t2", asset_id="a1", quantity=4, price=115.0, date="2024-01-20"),
    ]
