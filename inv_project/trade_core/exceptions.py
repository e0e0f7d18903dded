from django.core.exceptions import ValidationError


class SequenceAllocationError(Exception):
    """Raised when no unique order/transaction number could be allocated."""

    def __init__(self, message="could not allocate a unique number",
                 attempts=None):
        super().__init__(message)
        self.attempts = attempts


class CreditLimitExceeded(ValidationError):
    """
    Raised when a credit sale would push a client past its credit limit.
    Carries the CreditCheck so callers can report the available credit.
    """

    def __init__(self, check):
        super().__init__(check.reason, code="credit_limit_exceeded")
        self.check = check

    @property
    def available(self):
        return self.check.available
