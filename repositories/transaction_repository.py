"""
Transaction Repository - data access layer for Transaction model.
Optimized with optional session parameter for transaction reuse.
"""

import logging
from typing import Optional, List
from sqlmodel import Session, select

from db_engine import get_engine
from models import Transaction
from services.records import InvestmentTransaction

logger = logging.getLogger(__name__)


class TransactionRepository:
    """Repository for Transaction CRUD operations, scoped per account."""

    @staticmethod
    def add(
        account_id: str,
        record: InvestmentTransaction,
        session: Optional[Session] = None
    ) -> Transaction:
        """
        Add a new ledger entry to the database.

        Args:
            account_id: Owning account
            record: Buy, Sell or Dividend record (its id becomes the row id)
            session: Optional existing session for transaction reuse

        Returns:
            Created Transaction object
        """
        def _create_transaction(sess: Session) -> Transaction:
            try:
                transaction = Transaction.from_record(record, account_id)
                sess.add(transaction)
                sess.commit()
                sess.refresh(transaction)
                logger.info(
                    f"Recorded {transaction.transaction_type} {transaction.id} for asset {transaction.asset_id}"
                )
                return transaction
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _create_transaction(session)
        else:
            with Session(get_engine()) as session:
                return _create_transaction(session)

    @staticmethod
    def get_all(account_id: str, session: Optional[Session] = None) -> List[Transaction]:
        """
        Retrieve every transaction of an account.

        Args:
            account_id: Owning account
            session: Optional existing session for transaction reuse

        Returns:
            List of Transaction objects
        """
        def _get_all(sess: Session) -> List[Transaction]:
            statement = select(Transaction).where(Transaction.account_id == account_id)
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_all(session)
        else:
            with Session(get_engine()) as session:
                return _get_all(session)

    @staticmethod
    def get_by_asset(asset_id: str, session: Optional[Session] = None) -> List[Transaction]:
        """Retrieve all transactions for a specific asset."""
        def _get_by_asset(sess: Session) -> List[Transaction]:
            statement = select(Transaction).where(Transaction.asset_id == asset_id)
            results = sess.exec(statement)
            return list(results.all())

        if session is not None:
            return _get_by_asset(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_asset(session)

    @staticmethod
    def get_by_id(transaction_id: str, session: Optional[Session] = None) -> Optional[Transaction]:
        """Retrieve a transaction by its ID."""
        def _get_by_id(sess: Session) -> Optional[Transaction]:
            return sess.get(Transaction, transaction_id)

        if session is not None:
            return _get_by_id(session)
        else:
            with Session(get_engine()) as session:
                return _get_by_id(session)

    @staticmethod
    def replace(record: InvestmentTransaction, session: Optional[Session] = None) -> Optional[Transaction]:
        """
        Overwrite an existing transaction with a full record.
        Entries are never partially patched; every field is taken from ``record``.

        Args:
            record: Replacement record; its id selects the row
            session: Optional existing session for transaction reuse

        Returns:
            Updated Transaction object or None if not found
        """
        def _replace(sess: Session) -> Optional[Transaction]:
            try:
                transaction = sess.get(Transaction, record.id)
                if transaction:
                    flat = Transaction.from_record(record, transaction.account_id)
                    transaction.asset_id = flat.asset_id
                    transaction.transaction_date = flat.transaction_date
                    transaction.occurred_at = flat.occurred_at
                    transaction.transaction_type = flat.transaction_type
                    transaction.quantity = flat.quantity
                    transaction.price = flat.price
                    sess.add(transaction)
                    sess.commit()
                    sess.refresh(transaction)
                    return transaction
                return None
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _replace(session)
        else:
            with Session(get_engine()) as session:
                return _replace(session)

    @staticmethod
    def delete(transaction_id: str, session: Optional[Session] = None) -> bool:
        """
        Delete a transaction by its ID.

        Returns:
            True if successful, False otherwise
        """
        def _delete(sess: Session) -> bool:
            try:
                transaction = sess.get(Transaction, transaction_id)
                if transaction:
                    sess.delete(transaction)
                    sess.commit()
                    return True
                return False
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _delete(session)
        else:
            with Session(get_engine()) as session:
                return _delete(session)

    @staticmethod
    def delete_by_asset(asset_id: str, session: Optional[Session] = None) -> int:
        """
        Delete all transactions for a specific asset.

        Returns:
            Number of transactions deleted
        """
        def _delete_by_asset(sess: Session) -> int:
            try:
                statement = select(Transaction).where(Transaction.asset_id == asset_id)
                transactions = sess.exec(statement).all()
                count = 0
                for tx in transactions:
                    sess.delete(tx)
                    count += 1
                sess.commit()
                return count
            except Exception as e:
                sess.rollback()
                raise e

        if session is not None:
            return _delete_by_asset(session)
        else:
            with Session(get_engine()) as session:
                return _delete_by_asset(session)
