"""
Ledger service.
Orchestrates the ledger store and the pure valuation engine for one account.
"""

import logging
from typing import Optional, Tuple

from sqlmodel import Session

from db_engine import get_engine
from models.asset import new_id
from repositories import AssetRepository, TransactionRepository
from services.common import DateLike, to_calendar_date, utc_today
from services.portfolio import PortfolioSummary, Snapshot, compute_snapshot, compute_summary
from services.records import (
    AssetState,
    Dividend,
    InvestmentTransaction,
    TransactionType,
    make_transaction,
)
from services.replay import apply_transaction, record_price

logger = logging.getLogger(__name__)


class LedgerService:
    """
    Service for ledger mutations and portfolio recomputation.

    Holds an explicit database engine instead of relying on the global one,
    so callers decide which store an account lives in. Every public method
    opens and closes its own session.
    """

    def __init__(self, account_id: str, engine=None):
        self.account_id = account_id
        self.engine = engine if engine is not None else get_engine()

    def _session(self) -> Session:
        return Session(self.engine)

    def _load_asset(self, asset_id: str, session: Session) -> Optional[AssetState]:
        asset = AssetRepository.get_by_id(asset_id, session=session)
        if asset is None or asset.account_id != self.account_id:
            return None
        history = AssetRepository.get_price_history([asset_id], session=session)
        return asset.to_record(history[asset_id])

    def load(self) -> Tuple[Tuple[AssetState, ...], Tuple[InvestmentTransaction, ...]]:
        """
        Load the account's assets and transactions as engine records.

        Returns:
            Tuple of (assets, transactions)
        """
        with self._session() as session:
            rows = AssetRepository.get_all(self.account_id, session=session)
            history = AssetRepository.get_price_history([row.id for row in rows], session=session)
            assets = tuple(row.to_record(history[row.id]) for row in rows)
            transactions = tuple(
                tx.to_record() for tx in TransactionRepository.get_all(self.account_id, session=session)
            )
        return assets, transactions

    def get_asset(self, asset_id: str) -> Optional[AssetState]:
        with self._session() as session:
            return self._load_asset(asset_id, session)

    def add_asset(
        self,
        ticker: str,
        asset_type: str,
        broker: str,
        quantity: float = 0.0,
        average_price: float = 0.0,
        on: Optional[DateLike] = None
    ) -> AssetState:
        """
        Register a new holding.

        The quote starts at the average price and seeds the price history.
        The average price is stored as entered. A positive initial quantity
        is recorded as an opening BUY so that replay reconstructs it; the
        BUY folds into an empty position, so the average is unchanged.

        Args:
            ticker: Ticker or name
            asset_type: Asset class
            broker: Broker holding the asset
            quantity: Quantity already held
            average_price: Average cost of that quantity
            on: Date of the opening position (default: today)

        Returns:
            The created AssetState
        """
        day = to_calendar_date(on) if on is not None else utc_today()
        with self._session() as session:
            asset = AssetRepository.add(
                self.account_id, ticker, asset_type, broker,
                average_price=average_price,
                current_price=average_price,
                session=session
            )
            AssetRepository.upsert_price(asset.id, day, average_price, session=session)
            asset_id = asset.id

        if quantity > 0:
            self.register_transaction(asset_id, TransactionType.BUY, quantity, average_price, on=day)
        return self.get_asset(asset_id)

    def register_transaction(
        self,
        asset_id: str,
        transaction_type: TransactionType,
        quantity: float,
        price: float,
        on: Optional[DateLike] = None,
        transaction_id: Optional[str] = None
    ) -> Optional[InvestmentTransaction]:
        """
        Record a BUY, SELL or DIVIDEND and update the asset's live state.

        For dividends ``price`` is the total amount and ``quantity`` is ignored.
        ``on`` is stored as given, so a full timestamp keeps its time and offset.

        Returns:
            The stored record, or None if the asset does not exist
        """
        when = on if on is not None else utc_today()
        to_calendar_date(when)  # raises on malformed dates before anything is stored
        record = make_transaction(
            transaction_type,
            id=transaction_id or new_id(),
            asset_id=asset_id,
            quantity=quantity,
            price=price,
            date=when
        )

        with self._session() as session:
            asset = self._load_asset(asset_id, session)
            if asset is None:
                logger.warning(f"Cannot register transaction: asset {asset_id} not found")
                return None

            TransactionRepository.add(self.account_id, record, session=session)
            if not isinstance(record, Dividend):
                updated = apply_transaction(asset, record)
                AssetRepository.update_state(
                    asset_id,
                    quantity=updated.quantity,
                    average_price=updated.average_price,
                    session=session
                )
        return record

    def update_transaction(self, record: InvestmentTransaction) -> Optional[InvestmentTransaction]:
        """
        Replace a transaction with a full record.
        The asset's live state is not re-derived; callers keep it consistent.
        """
        with self._session() as session:
            existing = TransactionRepository.get_by_id(record.id, session=session)
            if existing is None or existing.account_id != self.account_id:
                return None
            TransactionRepository.replace(record, session=session)
        return record

    def delete_transaction(self, transaction_id: str) -> bool:
        with self._session() as session:
            existing = TransactionRepository.get_by_id(transaction_id, session=session)
            if existing is None or existing.account_id != self.account_id:
                return False
            return TransactionRepository.delete(transaction_id, session=session)

    def record_price(self, asset_id: str, price: float, on: Optional[DateLike] = None) -> Optional[AssetState]:
        """
        Record a manual quote for an asset.

        Sets the current price and replaces any sample already stored for
        the same day.

        Returns:
            Updated AssetState or None if the asset does not exist
        """
        day = to_calendar_date(on) if on is not None else utc_today()
        with self._session() as session:
            asset = self._load_asset(asset_id, session)
            if asset is None:
                return None
            updated = record_price(asset, price, day)
            AssetRepository.upsert_price(asset_id, day, price, session=session)
            AssetRepository.update_state(asset_id, current_price=updated.current_price, session=session)
        return updated

    def delete_asset(self, asset_id: str) -> bool:
        """Delete an asset; its transactions and price history go with it."""
        with self._session() as session:
            if self._load_asset(asset_id, session) is None:
                return False
            return AssetRepository.delete(asset_id, session=session)

    def summary(
        self,
        selic: Optional[float] = None,
        ipca: Optional[float] = None,
        today: Optional[DateLike] = None
    ) -> PortfolioSummary:
        assets, transactions = self.load()
        return compute_summary(assets, transactions, selic=selic, ipca=ipca, today=today)

    def snapshot(self, reference_date: DateLike, today: Optional[DateLike] = None) -> Snapshot:
        assets, transactions = self.load()
        return compute_snapshot(assets, transactions, reference_date, today=today)
