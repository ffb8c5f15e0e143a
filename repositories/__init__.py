"""
Repositories package for the portfolio ledger.
Provides the data access layer for all database operations.
"""

from repositories.asset_repository import AssetRepository
from repositories.transaction_repository import TransactionRepository

__all__ = [
    'AssetRepository',
    'TransactionRepository',
]
