"""
Event-sourced Points Ledger

This package provides:
- An append-only transaction ledger kept in event-time order
- A cached per-payer balance projection
- Oldest-first spending recorded as new debit transactions
- A FastAPI surface over add / spend / balance
"""

from .errors import InvalidAmount, InvalidTransaction, PointsLedgerError
from .ledger import Ledger
from .models import PayerPoints, Transaction
from .service import PointsService
from .spend import SpendAllocator

__all__ = [
    "Transaction",
    "PayerPoints",
    "Ledger",
    "SpendAllocator",
    "PointsService",
    "PointsLedgerError",
    "InvalidTransaction",
    "InvalidAmount",
]
