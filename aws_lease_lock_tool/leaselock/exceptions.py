"""
Custom exceptions for lease lock operations.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

from typing import Any


class LockStoreError(Exception):
    """Base exception for lease lock operations."""

    pass


class ConditionFailedError(LockStoreError):
    """Conditional write failed: the stored record does not match."""

    pass


class TransactionConflictError(LockStoreError):
    """Another transaction is touching the same item. Retrying usually succeeds."""

    pass


class TransactionCanceledError(LockStoreError):
    """A TransactWriteItems call was canceled."""

    def __init__(self, message: str, reasons: list[dict[str, Any]] | None = None):
        super().__init__(message)
        self.reasons = reasons or []

    @property
    def condition_failed(self) -> bool:
        """True if any item of the transaction failed its condition."""
        return any(r.get("Code") == "ConditionalCheckFailed" for r in self.reasons)


class LockTimeoutError(LockStoreError):
    """Cancellation signal fired before the operation completed."""

    pass


class LockUpdateError(LockStoreError):
    """Lock renewal failed: the lease was lost to another holder or expired."""

    pass


class LockRecordError(LockStoreError):
    """Stored lock record has an unexpected shape."""

    pass


class AWSThrottlingError(LockStoreError):
    """DynamoDB throttling occurred."""

    pass


class AWSPermissionError(LockStoreError):
    """AWS permission denied."""

    pass


class TableNotFoundError(LockStoreError):
    """DynamoDB table does not exist."""

    pass


class TableAlreadyExistsError(LockStoreError):
    """DynamoDB table already exists."""

    pass
