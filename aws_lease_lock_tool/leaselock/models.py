"""
Type models for lease lock operations.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

from dataclasses import dataclass
from typing import Any

from .constants import DEFAULT_PARTITION_KEY, DEFAULT_SORT_KEY_VALUE


@dataclass(frozen=True)
class HashKey:
    """Key shape of a table with only a partition key."""

    partition_key_name: str = DEFAULT_PARTITION_KEY

    def key(self, partition: Any) -> dict[str, Any]:
        return {self.partition_key_name: partition}

    @property
    def existence_attribute(self) -> str:
        return self.partition_key_name


@dataclass(frozen=True)
class HashRangeKey:
    """
    Key shape of a table with a partition and a sort key.

    The lock record lives under a fixed sort key value so it does not collide
    with other items sharing the partition.
    """

    partition_key_name: str
    sort_key_name: str
    sort_key_value: Any = DEFAULT_SORT_KEY_VALUE

    def key(self, partition: Any) -> dict[str, Any]:
        return {self.partition_key_name: partition, self.sort_key_name: self.sort_key_value}

    @property
    def existence_attribute(self) -> str:
        return self.sort_key_name


KeyShape = HashKey | HashRangeKey


@dataclass(frozen=True)
class LockRecord:
    """Lock record as stored in DynamoDB."""

    owner_token: str
    lease_duration: float  # seconds


@dataclass(frozen=True)
class LeaseObservation:
    """
    What a waiter last saw of the current holder.

    expires_at is measured on the waiter's own monotonic clock; it is an
    estimate, not a shared deadline.
    """

    owner_token: str = ""
    expires_at: float = 0.0

    def expected_token(self, now: float) -> str:
        """Token to CAS against: the observed holder once its lease looks expired."""
        if now >= self.expires_at:
            return self.owner_token
        return ""

    def observe(self, record: LockRecord | None, now: float) -> "LeaseObservation":
        """
        Fold a freshly read record into the observation.

        An unchanged token keeps the previous estimate, otherwise a holder that
        never renews would never be judged expired.
        """
        if record is None or record.owner_token == self.owner_token:
            return self
        return LeaseObservation(record.owner_token, now + record.lease_duration)
