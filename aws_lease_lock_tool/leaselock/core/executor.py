"""
Paginated Query/Scan execution with optional lock renewal between pages.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import logging
from collections.abc import Callable, Iterator
from typing import Any, Protocol

from boto3.dynamodb.types import TypeDeserializer

from .cancellation import CancelSignal
from .client import DynamoDBClient

logger = logging.getLogger(__name__)

MapFn = Callable[[dict[str, Any]], Any]

_deserializer = TypeDeserializer()


class Renewable(Protocol):
    """Anything that can extend a lease, such as a Lock."""

    def renew(self, cancel: CancelSignal | None = None) -> None: ...


def unmarshal_item(item: dict[str, Any]) -> dict[str, Any]:
    """Convert a typed DynamoDB item into plain Python values."""
    return {k: _deserializer.deserialize(v) for k, v in item.items()}


class Executor:
    """
    Iterates over every page of a Query or Scan.

    When a lock is given it is renewed after each page is fetched. There is no
    guarantee that the data read is still covered by the lock.
    """

    def __init__(self, client: DynamoDBClient):
        self.client = client

    def query(
        self,
        params: dict[str, Any],
        lock: Renewable | None = None,
        map_fn: MapFn | None = None,
        cancel: CancelSignal | None = None,
    ) -> Iterator[Any]:
        """
        Yield every item matched by a Query.

        Args:
            params: Query parameters; TableName defaults to the client's table
            lock: Lock renewed after each page (optional)
            map_fn: Transform applied to each item; returning None drops it
            cancel: Signal passed to each renewal

        Raises:
            LockUpdateError: If a renewal fails
            LockStoreError: For DynamoDB errors
        """
        return self._execute(self.client.query, params, lock, map_fn, cancel)

    def scan(
        self,
        params: dict[str, Any],
        lock: Renewable | None = None,
        map_fn: MapFn | None = None,
        cancel: CancelSignal | None = None,
    ) -> Iterator[Any]:
        """Yield every item returned by a Scan. Same options as query()."""
        return self._execute(self.client.scan, params, lock, map_fn, cancel)

    def _execute(
        self,
        fetch: Callable[[dict[str, Any]], dict[str, Any]],
        params: dict[str, Any],
        lock: Renewable | None,
        map_fn: MapFn | None,
        cancel: CancelSignal | None,
    ) -> Iterator[Any]:
        request = {"TableName": self.client.table_name, **params}
        page = 0

        while True:
            response = fetch(request)
            page += 1

            if lock is not None:
                lock.renew(cancel)

            items = response.get("Items", [])
            logger.debug("Fetched page %d with %d items", page, len(items))

            for item in items:
                output = map_fn(item) if map_fn else item
                if output is not None:
                    yield output

            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return
            request = {**request, "ExclusiveStartKey": last_key}
