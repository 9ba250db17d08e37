import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Optional, Union

from .errors import InvalidAmount, InvalidTransaction, PointsLedgerError
from .ledger import Ledger, TransactionInput
from .models import PayerPoints
from .spend import Amount, SpendAllocator

logger = logging.getLogger(__name__)

__all__ = [
    "PointsService",
    "PointsLedgerError",
    "InvalidTransaction",
    "InvalidAmount",
]


class PointsService:
    def __init__(self, ledger: Optional[Ledger] = None):
        self.ledger = ledger or Ledger()
        self.allocator = SpendAllocator(self.ledger)

    def add_transactions(self, transactions: Union[TransactionInput, Iterable[TransactionInput]]) -> None:
        try:
            self.ledger.append(transactions)
        except InvalidTransaction as e:
            logger.warning("Rejected transactions: %s", e)
            raise
        logger.info("Ledger now holds %d transaction(s)", len(self.ledger))

    def spend_points(self, amount: Amount) -> list[PayerPoints]:
        try:
            spent = self.allocator.spend(amount)
        except InvalidAmount as e:
            logger.warning("Rejected spend of %r: %s", amount, e)
            raise
        logger.info("Spent %s point(s) across %d payer(s)", -sum(p.points for p in spent), len(spent))
        return spent

    def get_balances(self) -> Mapping[str, Decimal]:
        return self.ledger.projection()
