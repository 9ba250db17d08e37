class PointsLedgerError(Exception):
    pass


class InvalidTransaction(PointsLedgerError):
    """An appended entry is missing its payer, timestamp or numeric points."""


class InvalidAmount(PointsLedgerError):
    """A spend amount is negative, non-finite or not a number."""
