"""
Tests for paginated Query/Scan execution with lock renewal.
"""

from unittest.mock import MagicMock

import pytest

from aws_lease_lock_tool.leaselock.core.client import DynamoDBClient
from aws_lease_lock_tool.leaselock.core.executor import Executor, unmarshal_item
from aws_lease_lock_tool.leaselock.exceptions import LockUpdateError

PAGES = [
    {"Items": [{"id": {"S": "a"}}, {"id": {"S": "b"}}], "LastEvaluatedKey": {"id": {"S": "b"}}},
    {"Items": [{"id": {"S": "c"}}], "LastEvaluatedKey": {"id": {"S": "c"}}},
    {"Items": [{"id": {"S": "d"}}]},
]


@pytest.fixture
def low_level():
    mock = MagicMock()
    mock.query.side_effect = [dict(page) for page in PAGES]
    mock.scan.side_effect = [dict(page) for page in PAGES]
    return mock


@pytest.fixture
def executor(low_level):
    return Executor(DynamoDBClient("tableName", client=low_level))


def test_query_follows_pages(executor, low_level):
    items = list(executor.query({"KeyConditionExpression": "id = :id"}))

    assert [item["id"]["S"] for item in items] == ["a", "b", "c", "d"]
    calls = low_level.query.call_args_list
    assert len(calls) == 3
    assert calls[0].kwargs == {"TableName": "tableName", "KeyConditionExpression": "id = :id"}
    assert calls[1].kwargs["ExclusiveStartKey"] == {"id": {"S": "b"}}
    assert calls[2].kwargs["ExclusiveStartKey"] == {"id": {"S": "c"}}


def test_scan_renews_lock_once_per_page(executor):
    lock = MagicMock()

    items = list(executor.scan({}, lock=lock))

    assert len(items) == 4
    assert lock.renew.call_count == 3


def test_renewal_failure_stops_iteration(executor, low_level):
    lock = MagicMock()
    lock.renew.side_effect = [None, LockUpdateError("lease lost")]

    results = executor.query({}, lock=lock)
    seen = [next(results), next(results)]

    with pytest.raises(LockUpdateError):
        next(results)

    assert [item["id"]["S"] for item in seen] == ["a", "b"]
    assert low_level.query.call_count == 2


def test_map_fn_can_drop_items(executor):
    def only_vowels(item):
        value = unmarshal_item(item)["id"]
        return value if value in "aeiou" else None

    assert list(executor.query({}, map_fn=only_vowels)) == ["a"]


def test_unmarshal_item():
    assert unmarshal_item({"id": {"S": "a"}, "n": {"N": "3"}}) == {"id": "a", "n": 3}
