"""Pytest configuration and fixtures for lease lock tests"""
import json
import threading
from collections import defaultdict
from typing import Any

import pytest
from botocore.exceptions import ClientError

from aws_lease_lock_tool.leaselock.core.client import DynamoDBClient
from aws_lease_lock_tool.leaselock.core.lock_manager import LockManager
from aws_lease_lock_tool.leaselock.models import HashKey


def client_error(code: str, operation: str, **extra: Any) -> ClientError:
    response = {"Error": {"Code": code, "Message": f"{code} raised by fake"}, **extra}
    return ClientError(response, operation)


class FakeDynamoDB:
    """
    In-memory stand-in for the boto3 low-level DynamoDB client.

    Understands the condition and update expressions the lock package emits:
    `attribute_not_exists(#x)`, `#x = :v` joined by OR, and `SET #x = :v`.
    """

    def __init__(self):
        self.items: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.failures: dict[str, list[str]] = defaultdict(list)
        self._mutex = threading.Lock()

    # Test helpers

    def fail_next(self, operation: str, code: str, times: int = 1) -> None:
        self.failures[operation].extend([code] * times)

    def record(self, key: dict[str, Any]) -> dict[str, Any] | None:
        return self.items.get(self._key_id(key))

    def seed(self, key: dict[str, Any], lock_id: str, timeout_ns: int) -> None:
        self.items[self._key_id(key)] = {
            **key,
            "lockId": {"S": lock_id},
            "timeout": {"N": str(timeout_ns)},
        }

    def count(self, operation: str) -> int:
        return sum(1 for name, _ in self.calls if name == operation)

    # Client surface

    def put_item(self, **kwargs: Any) -> dict[str, Any]:
        with self._mutex:
            self._enter("PutItem", kwargs)
            item = kwargs["Item"]
            key_id = self._key_id_from_item(item)
            self._check(kwargs, self.items.get(key_id), "PutItem")
            self.items[key_id] = dict(item)
            return {}

    def get_item(self, **kwargs: Any) -> dict[str, Any]:
        with self._mutex:
            self._enter("GetItem", kwargs)
            item = self.items.get(self._key_id(kwargs["Key"]))
            return {"Item": dict(item)} if item else {}

    def delete_item(self, **kwargs: Any) -> dict[str, Any]:
        with self._mutex:
            self._enter("DeleteItem", kwargs)
            key_id = self._key_id(kwargs["Key"])
            self._check(kwargs, self.items.get(key_id), "DeleteItem")
            self.items.pop(key_id, None)
            return {}

    def transact_write_items(self, **kwargs: Any) -> dict[str, Any]:
        with self._mutex:
            self._enter("TransactWriteItems", kwargs)
            entries = kwargs["TransactItems"]

            reasons = []
            for entry in entries:
                (action, params), = entry.items()
                key = params["Key"] if "Key" in params else self._key_from_item(params["Item"])
                if self._holds(params, self.items.get(self._key_id(key))):
                    reasons.append({"Code": "None"})
                else:
                    reasons.append({"Code": "ConditionalCheckFailed"})

            if any(r["Code"] != "None" for r in reasons):
                raise client_error(
                    "TransactionCanceledException", "TransactWriteItems", CancellationReasons=reasons
                )

            for entry in entries:
                (action, params), = entry.items()
                if action == "Update":
                    self._apply_update(params)
                elif action == "Put":
                    self.items[self._key_id_from_item(params["Item"])] = dict(params["Item"])
                elif action == "Delete":
                    self.items.pop(self._key_id(params["Key"]), None)
            return {}

    # Internals

    def _enter(self, operation: str, kwargs: dict[str, Any]) -> None:
        self.calls.append((operation, kwargs))
        if self.failures[operation]:
            raise client_error(self.failures[operation].pop(0), operation)

    def _check(self, params: dict[str, Any], existing: dict[str, Any] | None, operation: str) -> None:
        if not self._holds(params, existing):
            raise client_error("ConditionalCheckFailedException", operation)

    def _holds(self, params: dict[str, Any], existing: dict[str, Any] | None) -> bool:
        expression = params.get("ConditionExpression")
        if not expression:
            return True
        names = params.get("ExpressionAttributeNames", {})
        values = params.get("ExpressionAttributeValues", {})

        for term in expression.split(" OR "):
            term = term.strip()
            if term.startswith("attribute_not_exists("):
                placeholder = term[len("attribute_not_exists(") : -1]
                if existing is None or names[placeholder] not in existing:
                    return True
            else:
                left, right = (part.strip() for part in term.split("="))
                if existing is not None and existing.get(names[left]) == values[right]:
                    return True
        return False

    def _apply_update(self, params: dict[str, Any]) -> None:
        item = self.items[self._key_id(params["Key"])]
        names = params.get("ExpressionAttributeNames", {})
        values = params.get("ExpressionAttributeValues", {})
        assignments = params["UpdateExpression"][len("SET ") :]
        for assignment in assignments.split(","):
            left, right = (part.strip() for part in assignment.split("="))
            item[names.get(left, left)] = values[right]

    def _key_from_item(self, item: dict[str, Any]) -> dict[str, Any]:
        return {k: v for k, v in item.items() if k not in ("lockId", "timeout")}

    def _key_id_from_item(self, item: dict[str, Any]) -> str:
        return self._key_id(self._key_from_item(item))

    @staticmethod
    def _key_id(key: dict[str, Any]) -> str:
        return json.dumps(key, sort_keys=True)


class SequenceIds:
    """Deterministic owner tokens: t1, t2, t3, ..."""

    def __init__(self, prefix: str = "t"):
        self.prefix = prefix
        self.issued = 0

    def id(self) -> str:
        self.issued += 1
        return f"{self.prefix}{self.issued}"


@pytest.fixture
def fake_dynamodb():
    """Fresh in-memory DynamoDB"""
    return FakeDynamoDB()


@pytest.fixture
def client(fake_dynamodb):
    """DynamoDBClient bound to the fake"""
    return DynamoDBClient("locks", client=fake_dynamodb)


@pytest.fixture
def make_manager(client):
    """Factory for lock managers sharing the fake table"""

    def factory(**kwargs: Any) -> LockManager:
        kwargs.setdefault("key_shape", HashKey("PK"))
        return LockManager(client, **kwargs)

    return factory


@pytest.fixture
def manager(make_manager):
    """Lock manager with short timings and deterministic tokens"""
    return make_manager(
        lease_duration=0.1,
        poll_interval=0.01,
        poll_variance=0.0,
        id_generator=SequenceIds(),
    )
