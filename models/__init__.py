"""
Database models for the portfolio ledger.
All SQLModel table definitions are centralized here.
"""

from models.asset import Asset, PricePoint
from models.transaction import Transaction

__all__ = [
    'Asset',
    'PricePoint',
    'Transaction',
]
