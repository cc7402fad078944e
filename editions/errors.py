# editions/errors.py
"""
Error taxonomy for the edition ledger.

Every failure raised by a ledger operation is an EditionError. The
`retryable` flag tells callers whether the same call can succeed later
without changing identity or target:

- Unauthorized: identity check failed (not retryable)
- NotFound: referenced edition does not exist (not retryable)
- SoldOut: supply exhausted, permanent for the edition (not retryable)
- InsufficientFunds: payment below price (retryable with more funds)
- RegistryUnavailable / TransferFailed: external dependency failure
- ReentrantCall: a mutating entry point was re-entered mid-transaction
- InvalidEdition: creation parameters out of range
- Overdrawn: a payout larger than the outstanding claim
"""

from typing import Optional


class EditionError(Exception):
    """Base class for ledger failures."""

    retryable = False

    def __init__(self, message: str = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    default_message = "edition ledger error"


class Unauthorized(EditionError):
    default_message = "unauthorized"


class NotFound(EditionError):
    default_message = "edition does not exist"

    def __init__(self, message: str = None, edition_id: Optional[int] = None):
        super().__init__(message)
        self.edition_id = edition_id


class SoldOut(EditionError):
    default_message = "edition is sold out"

    def __init__(self, message: str = None, edition_id: Optional[int] = None):
        super().__init__(message)
        self.edition_id = edition_id


class InsufficientFunds(EditionError):
    default_message = "payment is below the edition price"
    retryable = True

    def __init__(self, message: str = None, price: int = 0, payment: int = 0):
        super().__init__(message)
        self.price = price
        self.payment = payment


class RegistryUnavailable(EditionError):
    default_message = "registry is not configured"


class TransferFailed(EditionError):
    default_message = "funds transfer failed"


class ReentrantCall(EditionError):
    default_message = "reentrant call"


class InvalidEdition(EditionError, ValueError):
    default_message = "invalid edition parameters"


class Overdrawn(EditionError):
    default_message = "withdrawal exceeds the claimable amount"

    def __init__(self, message: str = None, edition_id: Optional[int] = None):
        super().__init__(message)
        self.edition_id = edition_id
