"""
Database engine and session management for the portfolio ledger.
Uses SQLModel with SQLite for persistent storage.
Features Write-Ahead Logging (WAL) mode for improved concurrency.
"""

from sqlmodel import SQLModel, create_engine
from typing import Optional
import logging

from config import get_settings

logger = logging.getLogger(__name__)

# Global engine instance
_engine: Optional[object] = None


def get_engine():
    """Get or create the database engine with WAL mode enabled."""
    global _engine
    if _engine is None:
        settings = get_settings()
        connect_args = {}
        if settings.is_sqlite:
            connect_args["check_same_thread"] = False  # Allow use across threads
        _engine = create_engine(
            settings.database_url,
            echo=settings.db_echo,
            connect_args=connect_args
        )
        if settings.is_sqlite:
            _enable_wal_mode(_engine)
    return _engine


def _enable_wal_mode(engine):
    """Enable SQLite WAL mode for improved concurrent read/write performance."""
    try:
        with engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA journal_mode=WAL")
            # Set busy timeout to 5 seconds to handle concurrent access
            conn.exec_driver_sql("PRAGMA busy_timeout=5000")
            logger.info("SQLite WAL mode enabled for concurrent access")
    except Exception as e:
        logger.warning(f"Could not enable WAL mode: {e}")


def init_db(engine=None):
    """Initialize the database and create all tables."""
    from models import Asset, PricePoint, Transaction

    engine = engine or get_engine()
    SQLModel.metadata.create_all(engine)
    logger.info("Database initialized")
