"""
Lock handle: renewal, release and transaction integration of a held lease.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import logging
import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from ..constants import RELEASE_RETRY_DELAY, RELEASE_RETRY_VARIANCE
from ..exceptions import LockStoreError, LockTimeoutError, LockUpdateError, TransactionConflictError
from ..utils import jittered_delay
from .cancellation import CancelSignal

if TYPE_CHECKING:
    from .lock_manager import LockManager

logger = logging.getLogger(__name__)


class Lock:
    """
    A held lease on one partition.

    The owner token rotates on every successful renewal, so a handle is not
    safe for concurrent use: serialize renew/release calls on one handle.
    """

    def __init__(self, manager: "LockManager", partition: Any, owner_token: str):
        self._manager = manager
        self._partition = partition
        self._owner_token = owner_token

    @property
    def owner_token(self) -> str:
        return self._owner_token

    @property
    def partition(self) -> Any:
        return self._partition

    @property
    def key(self) -> dict[str, Any]:
        return self._manager.key(self._partition)

    def renew(self, cancel: CancelSignal | None = None) -> None:
        """
        Extend the lease by rewriting the record under a new owner token.

        Args:
            cancel: Signal checked before writing

        Raises:
            LockUpdateError: If the record is gone or carries another token
            LockTimeoutError: If the signal already fired
            LockStoreError: For DynamoDB errors
        """
        if cancel is not None and cancel.is_set():
            raise LockTimeoutError(f"Renewal of lock on {self._partition!r} cancelled")

        renewed = self._manager.renew_lease(self._partition, self._owner_token)
        if renewed is None:
            raise LockUpdateError(
                f"Cannot renew lock on {self._partition!r}: lease lost by {self._owner_token}"
            )

        logger.debug("Lock on %r renewed as %s", self._partition, renewed.owner_token)
        self._owner_token = renewed.owner_token

    def release(self, cancel: CancelSignal | None = None) -> None:
        """
        Delete the lock record if this handle still owns it.

        Transaction conflicts are retried after a short jittered pause until the
        delete goes through or the signal fires. The handle must not be renewed
        after a successful release.

        Args:
            cancel: Signal that stops conflict retries (None retries indefinitely)

        Raises:
            ConditionFailedError: If the record is gone or owned by someone else
            LockTimeoutError: If the signal fires between retries
            LockStoreError: For other DynamoDB errors
        """
        while True:
            if cancel is not None and cancel.is_set():
                raise LockTimeoutError(f"Release of lock on {self._partition!r} cancelled")

            try:
                self._manager.client.delete_if_matching(self.key, self._owner_token)
            except TransactionConflictError:
                logger.debug("Release of lock on %r conflicted, retrying", self._partition)
                delay = jittered_delay(RELEASE_RETRY_DELAY, RELEASE_RETRY_VARIANCE)
                if cancel is None:
                    time.sleep(delay)
                else:
                    cancel.wait(delay)
                continue

            logger.debug("Lock on %r released by %s", self._partition, self._owner_token)
            return

    def as_condition_check(self) -> dict[str, Any]:
        """
        TransactWriteItems entry that fails the transaction unless this lock is still held.
        """
        return self._manager.client.condition_check_item(self.key, self._owner_token)

    def as_refresh_update(self) -> tuple[dict[str, Any], Callable[[bool], None]]:
        """
        TransactWriteItems entry that checks the lock and rotates its owner token.

        The returned callback must be called with whether the transaction
        committed. The handle only switches to the new token on success.
        """
        new_token = self._manager.id_generator.id()
        item = self._manager.client.conditional_update_item(
            self.key, self._owner_token, new_token
        )

        def apply(committed: bool) -> None:
            if committed:
                self._owner_token = new_token

        return item, apply

    def commit_with_refresh(self, items: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Commit items together with a refresh of this lock.

        Args:
            items: Other TransactWriteItems entries

        Returns:
            Response from DynamoDB

        Raises:
            TransactionCanceledError: If the lock was lost or another item failed
            LockStoreError: For other DynamoDB errors
        """
        refresh, apply = self.as_refresh_update()
        try:
            response = self._manager.client.transact_write_items([*items, refresh])
        except LockStoreError:
            apply(False)
            raise
        apply(True)
        return response

    def __enter__(self) -> "Lock":
        return self

    def __exit__(self, exc_type: type[BaseException] | None, exc: BaseException | None, tb: object) -> None:
        if exc_type is None:
            self.release()
            return
        # The body's exception wins over a failed release
        try:
            self.release()
        except LockStoreError as e:
            logger.warning("Release of lock on %r failed after an error in the block: %s", self._partition, e)

    def __repr__(self) -> str:
        return f"Lock(partition={self._partition!r}, owner_token={self._owner_token!r})"
