from decimal import Decimal
from typing import Optional


class LedgerError(Exception):
    """Base class for errors raised by the referral and wallet engine."""
    pass

class ValidationError(LedgerError):
    """Bad amount, missing method, malformed ancestor input. Never retried."""
    pass

class NotFoundError(LedgerError):
    pass

class AlreadyProcessedError(LedgerError):
    """A distribution re-run or a withdrawal re-decision. Benign."""
    pass

class InsufficientBalanceError(LedgerError):
    def __init__(self, message: str = "Insufficient balance", available_balance: Optional[Decimal] = None):
        super().__init__(message)
        self.available_balance = available_balance

class StorageUnavailableError(LedgerError):
    """The unit of work was aborted. Nothing from it was written."""
    pass
