"""
Asset Repository - data access layer for Asset and PricePoint models.
Optimized with optional session parameter for transaction reuse.
"""

import logging
from typing import Dict, List, Optional
from datetime import date, datetime, timezone
from sqlmodel import Session, select

from db_engine import get_engine
from models import Asset, PricePoint

logger = logging.getLogger(__name__)


class AssetRepository:
    """Repository for Asset CRUD operations, scoped per account."""

    @staticmethod
    def add(
        account_id: str,
        ticker: str,
        asset_type: str,
        broker: str,
        quantity: float = 0.0,
        average_price: float = 0.0,
        current_price: Optional[float] = None,
        session: Optional[Session] = None
    ) -> Asset:
        """
        Add a new asset to the database.

        Args:
            account_id: Owning account
            ticker: Ticker or name (stored upper-case)
            asset_type: Asset class, e.g. "Stock" or "FII"
            broker: Broker holding the asset
            quantity: Initial quantity
            average_price: Initial average cost
            current_price: Initial quote (defaults to average_price)
            session: Optional existing session for transaction reuse

        Returns:
            Created Asset object
        """
        def _create_asset(sess: Session) -> Asset:
            try:
                asset = Asset(
                    account_id=account_id,
                    ticker=ticker.upper(),
                    asset_type=asset_type,
                    broker=broker,
                    quantity=quantity,
                    average_price=average_price,
                    current_price=average_price if current_price is None else current_price
                )
                sess.add(asset)
                sess.commit()
                sess.refresh(asset)
                logger.info(f"Added asset {asset.ticker} ({asset.id}) for account {account_id}")
                return asset
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _create_asset(session)
        else:
            with Session(get_engine()) as session:
                return _create_asset(session)

    @staticmethod
    def get_all(account_id: str, session: Optional[Session] = None) -> List[Asset]:
        """
        Retrieve all assets of an account.

        Args:
            account_id: Owning account
            session: Optional existing session for transaction reuse

        Returns:
            List of Asset objects
        """
        def _get_all(sess: Session) -> List[Asset]:
            statement = select(Asset).where(Asset.account_id == account_id)
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def get_by_id(asset_id: str, session: Optional[Session] = None) -> Optional[Asset]:
        """Retrieve an asset by its ID."""
        def _get_by_id(sess: Session) -> Optional[Asset]:
            return sess.get(Asset, asset_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def get_by_ticker(account_id: str, ticker: str, session: Optional[Session] = None) -> Optional[Asset]:
        """
        Find an asset by ticker (case-insensitive exact match) within an account.

        Args:
            account_id: Owning account
            ticker: Ticker to search for
            session: Optional existing session for transaction reuse

        Returns:
            Asset object or None if not found
        """
        def _get_by_ticker(sess: Session) -> Optional[Asset]:
            statement = select(Asset).where(
                Asset.account_id == account_id,
                Asset.ticker == ticker.upper()
            )
            return sess.exec(statement).first()

        if session is not None:
            return _get_by_ticker(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_ticker(session)

    @staticmethod
    def update_state(
        asset_id: str,
        quantity: Optional[float] = None,
        average_price: Optional[float] = None,
        current_price: Optional[float] = None,
        session: Optional[Session] = None
    ) -> Optional[Asset]:
        """
        Update the live state of an asset.
        Only updates fields that are provided (not None).

        Returns:
            Updated Asset object or None if not found
        """
        def _update(sess: Session) -> Optional[Asset]:
            try:
                asset = sess.get(Asset, asset_id)
                if asset:
                    if quantity is not None:
                        asset.quantity = quantity
                    if average_price is not None:
                        asset.average_price = average_price
                    if current_price is not None:
                        asset.current_price = current_price
                    asset.updated_at = datetime.now(timezone.utc)
                    sess.add(asset)
                    sess.commit()
                    sess.refresh(asset)
                    return asset
                return None
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _update(session)
        else:
            with Session(get_engine()) as session:
                return _update(session)

    @staticmethod
    def upsert_price(asset_id: str, price_date: date, price: float, session: Optional[Session] = None) -> PricePoint:
        """
        Save a price sample, replacing any existing sample for the same day.
        """
        def _upsert(sess: Session) -> PricePoint:
            try:
                statement = select(PricePoint).where(
                    PricePoint.asset_id == asset_id,
                    PricePoint.price_date == price_date
                )
                point = sess.exec(statement).first()
                if point:
                    point.price = price
                else:
                    point = PricePoint(asset_id=asset_id, price_date=price_date, price=price)
                sess.add(point)
                sess.commit()
                sess.refresh(point)
                return point
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _upsert(session)
        else:
            with Session(get_engine()) as session:
                return _upsert(session)

    @staticmethod
    def get_price_history(asset_ids: List[str], session: Optional[Session] = None) -> Dict[str, List[PricePoint]]:
        """
        Retrieve price samples for several assets, ascending by date.

        Returns:
            Mapping of asset_id to its samples (every requested id is present)
        """
        def _get_history(sess: Session) -> Dict[str, List[PricePoint]]:
            history: Dict[str, List[PricePoint]] = {asset_id: [] for asset_id in asset_ids}
            if not asset_ids:
                return history
            statement = select(PricePoint).where(
                PricePoint.asset_id.in_(asset_ids)
            ).order_by(PricePoint.price_date.asc())
            for point in sess.exec(statement).all():
                history[point.asset_id].append(point)
            return history

        if session is not None:
            return _get_history(session)
        else:
            with Session(get_engine()) as session:
                return _get_history(session)

    @staticmethod
    def delete(asset_id: str, session: Optional[Session] = None) -> bool:
        """
        Delete an asset together with its transactions and price history.

        Args:
            asset_id: Asset ID to delete
            session: Optional existing session for transaction reuse

        Returns:
            True if successful, False otherwise
        """
        from models import Transaction

        def _delete(sess: Session) -> bool:
            try:
                asset = sess.get(Asset, asset_id)
                if not asset:
                    return False

                for tx in sess.exec(select(Transaction).where(Transaction.asset_id == asset_id)).all():
                    sess.delete(tx)
                for point in sess.exec(select(PricePoint).where(PricePoint.asset_id == asset_id)).all():
                    sess.delete(point)

                sess.delete(asset)
                sess.commit()
                logger.info(f"Deleted asset {asset_id} with its transactions and prices")
                return True
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _delete(session)
        else:
            with Session(get_engine()) as session:
                return _delete(session)
