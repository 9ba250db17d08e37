import logging
from decimal import Decimal, InvalidOperation
from typing import Union

from .errors import InvalidAmount
from .ledger import Ledger
from .models import PayerPoints, Transaction

logger = logging.getLogger(__name__)

Amount = Union[int, float, str, Decimal]


def coerce_amount(amount: Amount) -> Decimal:
    if amount is None or isinstance(amount, bool):
        raise InvalidAmount("Points must be a number")
    try:
        value = Decimal(str(amount))
    except InvalidOperation:
        raise InvalidAmount("Points must be a number")
    if not value.is_finite():
        raise InvalidAmount("Points must be a finite number")
    if value < 0:
        raise InvalidAmount("Points must be a valid positive value")
    return value


class SpendAllocator:
    """Withdraws points oldest-first without taking any payer below zero.

    Each withdrawal is recorded as a new negative transaction; existing
    entries are never touched. Debits are buffered while walking the
    ledger and appended in a single batch once the walk is done.
    """

    def __init__(self, ledger: Ledger):
        self.ledger = ledger

    def spend(self, amount: Amount) -> list[PayerPoints]:
        remaining = coerce_amount(amount)
        if remaining == 0:
            return []

        with self.ledger.lock:
            start = len(self.ledger)
            stamp = self.ledger.next_timestamp()
            balances = dict(self.ledger.projection())
            debits: list[Transaction] = []

            for transaction in self.ledger.transactions:
                if remaining == 0:
                    break
                balance = balances.get(transaction.payer, Decimal(0))
                if balance <= 0:
                    continue

                take = min(transaction.points, remaining, balance)
                if take == 0:
                    continue
                balances[transaction.payer] = balance - take
                remaining -= take
                debits.append(Transaction(
                    payer=transaction.payer,
                    points=-take,
                    timestamp=stamp,
                ))

            if debits:
                self.ledger.append(debits)
            spent = self.ledger.projection_from(start)

        if remaining > 0:
            logger.info("Partial spend: %s of %s points left unallocated", remaining, amount)
        return [PayerPoints(payer=payer, points=points) for payer, points in spent.items()]
