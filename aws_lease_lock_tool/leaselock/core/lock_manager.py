"""
Lease lock manager: single-shot and blocking acquisition.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import logging
import time
from typing import Any

from ..constants import DEFAULT_LEASE_DURATION, DEFAULT_POLL_INTERVAL, DEFAULT_POLL_VARIANCE
from ..exceptions import ConditionFailedError, LockTimeoutError, TransactionConflictError
from ..models import HashKey, KeyShape, LeaseObservation, LockRecord
from ..utils import jittered_delay
from .cancellation import CancelSignal
from .client import DynamoDBClient
from .id_generator import IdGenerator, IdSource
from .lock_handle import Lock

logger = logging.getLogger(__name__)


class LockManager:
    """
    Hands out lease locks on partitions of a single DynamoDB table.

    Works with hash tables (HashKey) and hash+range tables (HashRangeKey).
    The manager holds configuration only and is safe to share between threads.

    Blocking acquisition steals a lease once the waiter's local estimate says
    it has expired. There is no shared clock: a holder that is paused longer
    than its lease, or clocks that drift apart, can let two processes believe
    they hold the lock. Callers needing strict exclusion should pair the lock
    with Lock.as_condition_check() in their own transactions.
    """

    def __init__(
        self,
        client: DynamoDBClient,
        key_shape: KeyShape | None = None,
        lease_duration: float = DEFAULT_LEASE_DURATION,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        poll_variance: float = DEFAULT_POLL_VARIANCE,
        id_generator: IdSource | None = None,
    ):
        """
        Initialize lock manager.

        Args:
            client: DynamoDB client bound to the lock table
            key_shape: Table key shape (default: hash key named "PK")
            lease_duration: Lease stored in each lock record, in seconds
            poll_interval: Average time between two polls while blocking, in seconds
            poll_variance: Maximum jitter added to each poll interval, in seconds
            id_generator: Source of owner tokens (default: uuid4 based)

        Raises:
            ValueError: If a duration is out of range
        """
        if lease_duration <= 0:
            raise ValueError("Lease duration must be positive")
        if poll_interval <= 0:
            raise ValueError("Poll interval must be positive")
        if poll_variance < 0:
            raise ValueError("Poll variance cannot be negative")

        self.client = client
        self.key_shape: KeyShape = key_shape or HashKey()
        self.lease_duration = lease_duration
        self.poll_interval = poll_interval
        self.poll_variance = poll_variance
        self.id_generator: IdSource = id_generator or IdGenerator()

    def key(self, partition: Any) -> dict[str, Any]:
        """Item key of the lock record for a partition."""
        return self.key_shape.key(partition)

    def try_acquire(self, partition: Any, expected_owner_token: str = "") -> Lock | None:
        """
        Try once to lock a partition.

        Args:
            partition: Partition key value
            expected_owner_token: Token the existing record may carry to be overwritten.
                The default "" only matches a missing record.

        Returns:
            Lock on success, None if another owner holds the partition

        Raises:
            LockStoreError: For DynamoDB errors other than a failed condition
        """
        return self._write_lease(partition, expected_owner_token, allow_absent=True)

    def renew_lease(self, partition: Any, owner_token: str) -> Lock | None:
        """
        Rewrite an existing record under a new token, only if it still carries owner_token.

        Unlike try_acquire, a missing record is a miss: a released or expired
        and cleaned-up lease cannot be renewed.
        """
        return self._write_lease(partition, owner_token, allow_absent=False)

    def _write_lease(
        self, partition: Any, expected_owner_token: str, allow_absent: bool
    ) -> Lock | None:
        token = self.id_generator.id()
        record = LockRecord(token, self.lease_duration)

        try:
            self.client.put_if_absent_or_matching(
                self.key(partition),
                record,
                expected_owner_token,
                self.key_shape.existence_attribute,
                allow_absent=allow_absent,
            )
        except (ConditionFailedError, TransactionConflictError):
            logger.debug(
                "Lock on %r not acquired (expected owner %r)", partition, expected_owner_token
            )
            return None

        logger.debug("Lock on %r acquired as %s", partition, token)
        return Lock(self, partition, token)

    def acquire(
        self,
        partition: Any,
        cancel: CancelSignal | None = None,
        timeout: float | None = None,
    ) -> Lock:
        """
        Lock a partition, polling until it becomes available.

        Each failed attempt reads the current record. A new owner token starts a
        fresh lease estimate; once that estimate has passed without the token
        changing, the next attempt overwrites the record.

        Args:
            partition: Partition key value
            cancel: Signal that aborts the wait
            timeout: Seconds to wait, shorthand for CancelSignal(timeout)

        Returns:
            Lock on the partition

        Raises:
            LockTimeoutError: If the signal fires before the lock is acquired
            LockStoreError: For DynamoDB errors
        """
        if cancel is None:
            cancel = CancelSignal(timeout)
        elif timeout is not None:
            raise ValueError("Pass either cancel or timeout, not both")

        observation = LeaseObservation()

        while True:
            if cancel.is_set():
                raise LockTimeoutError(f"Timed out waiting for lock on {partition!r}")

            lock = self.try_acquire(partition, observation.expected_token(time.monotonic()))
            if lock is not None:
                return lock

            record = self.lookup(partition)
            observation = observation.observe(record, time.monotonic())
            if record is not None:
                logger.debug(
                    "Lock on %r held by %s, lease estimated to end in %.3fs",
                    partition,
                    record.owner_token,
                    observation.expires_at - time.monotonic(),
                )

            if cancel.wait(jittered_delay(self.poll_interval, self.poll_variance)):
                raise LockTimeoutError(f"Timed out waiting for lock on {partition!r}")

    def lookup(self, partition: Any) -> LockRecord | None:
        """
        Read the current lock record with a consistent read.

        Returns:
            Lock record, or None if the partition is free
        """
        return self.client.get_consistent(self.key(partition))

    def resume(self, partition: Any, owner_token: str) -> Lock:
        """
        Rebuild a handle for a token returned by an earlier acquisition.

        Nothing is written; a stale token only shows up when the handle is
        renewed or released.
        """
        return Lock(self, partition, owner_token)
