"""
DynamoDB client wrapper exposing the conditional writes a lease lock needs.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

import logging
from typing import Any

import boto3
from boto3.dynamodb.types import TypeSerializer
from botocore.exceptions import ClientError

from ..constants import (
    ATTR_LOCK_ID,
    ATTR_TIMEOUT,
    NAME_KEY,
    NAME_LOCK_ID,
    NANOSECONDS_PER_SECOND,
    VALUE_LOCK_ID,
    VALUE_NEW_LOCK_ID,
)
from ..exceptions import (
    AWSPermissionError,
    AWSThrottlingError,
    ConditionFailedError,
    LockRecordError,
    LockStoreError,
    TableNotFoundError,
    TransactionCanceledError,
    TransactionConflictError,
)
from ..models import LockRecord

logger = logging.getLogger(__name__)

_THROTTLING_CODES = {
    "ProvisionedThroughputExceededException",
    "ThrottlingException",
    "RequestLimitExceeded",
}


class DynamoDBClient:
    """DynamoDB client wrapper with error handling."""

    def __init__(
        self,
        table_name: str,
        region: str | None = None,
        profile: str | None = None,
        client: Any = None,
    ):
        """
        Initialize DynamoDB client.

        Args:
            table_name: DynamoDB table name
            region: AWS region (optional, uses SDK default)
            profile: AWS profile (optional, uses SDK default)
            client: Pre-built low-level DynamoDB client (optional, overrides region/profile)
        """
        if client is None:
            session = boto3.Session(profile_name=profile, region_name=region)
            client = session.client("dynamodb")
        self.client = client
        self.table_name = table_name
        self._serializer = TypeSerializer()

    def serialize(self, values: dict[str, Any]) -> dict[str, Any]:
        """Convert plain Python values to DynamoDB typed attribute values."""
        return {k: self._serializer.serialize(v) for k, v in values.items()}

    def put_if_absent_or_matching(
        self,
        key: dict[str, Any],
        record: LockRecord,
        match_token: str,
        key_attribute: str,
        allow_absent: bool = True,
    ) -> None:
        """
        Write a lock record if none exists or the stored one carries match_token.

        Args:
            key: Item key (plain values)
            record: Lock record to write
            match_token: Owner token the existing record must carry ("" only matches absence)
            key_attribute: Key attribute whose absence means no record exists
            allow_absent: If False, a missing record fails the condition too

        Raises:
            ConditionFailedError: If another owner holds the record
            TransactionConflictError: If a transaction is touching the record
            LockStoreError: For other DynamoDB errors
        """
        item = self.serialize(key)
        item[ATTR_LOCK_ID] = {"S": record.owner_token}
        item[ATTR_TIMEOUT] = {"N": str(int(record.lease_duration * NANOSECONDS_PER_SECOND))}

        if allow_absent:
            condition = f"attribute_not_exists({NAME_KEY}) OR {NAME_LOCK_ID} = {VALUE_LOCK_ID}"
            names = {NAME_LOCK_ID: ATTR_LOCK_ID, NAME_KEY: key_attribute}
        else:
            condition = f"{NAME_LOCK_ID} = {VALUE_LOCK_ID}"
            names = {NAME_LOCK_ID: ATTR_LOCK_ID}

        try:
            self.client.put_item(
                TableName=self.table_name,
                Item=item,
                ConditionExpression=condition,
                ExpressionAttributeNames=names,
                ExpressionAttributeValues={VALUE_LOCK_ID: {"S": match_token}},
            )
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

    def get_consistent(self, key: dict[str, Any]) -> LockRecord | None:
        """
        Read the lock record with a strongly consistent read.

        Args:
            key: Item key (plain values)

        Returns:
            Lock record, or None if the item or its owner token is missing

        Raises:
            LockRecordError: If the stored record is malformed
            LockStoreError: For DynamoDB errors
        """
        try:
            response = self.client.get_item(
                TableName=self.table_name,
                Key=self.serialize(key),
                ConsistentRead=True,
            )
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

        item = response.get("Item")
        if not item:
            return None
        return parse_lock_record(item)

    def delete_if_matching(self, key: dict[str, Any], match_token: str) -> None:
        """
        Delete the lock record if it still carries match_token.

        Raises:
            ConditionFailedError: If the record is gone or owned by someone else
            TransactionConflictError: If a transaction is touching the record
            LockStoreError: For other DynamoDB errors
        """
        try:
            self.client.delete_item(
                TableName=self.table_name,
                Key=self.serialize(key),
                **_match_condition(match_token),
            )
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

    def condition_check_item(self, key: dict[str, Any], match_token: str) -> dict[str, Any]:
        """Build a TransactWriteItems entry asserting the record carries match_token."""
        return {
            "ConditionCheck": {
                "TableName": self.table_name,
                "Key": self.serialize(key),
                **_match_condition(match_token),
                "ReturnValuesOnConditionCheckFailure": "NONE",
            }
        }

    def conditional_update_item(
        self, key: dict[str, Any], match_token: str, new_token: str
    ) -> dict[str, Any]:
        """Build a TransactWriteItems entry rotating match_token to new_token."""
        condition = _match_condition(match_token)
        condition["ExpressionAttributeValues"][VALUE_NEW_LOCK_ID] = {"S": new_token}
        return {
            "Update": {
                "TableName": self.table_name,
                "Key": self.serialize(key),
                "UpdateExpression": f"SET {NAME_LOCK_ID} = {VALUE_NEW_LOCK_ID}",
                **condition,
                "ReturnValuesOnConditionCheckFailure": "NONE",
            }
        }

    def transact_write_items(self, items: list[dict[str, Any]]) -> dict[str, Any]:
        """
        Commit items atomically.

        Args:
            items: TransactWriteItems entries (max 100)

        Returns:
            Response from DynamoDB

        Raises:
            TransactionCanceledError: If any condition failed or items conflicted
            LockStoreError: For other DynamoDB errors
        """
        if not items:
            raise LockStoreError("Transaction requires at least one item")
        if len(items) > 100:
            raise LockStoreError("Transaction cannot exceed 100 items")

        try:
            return self.client.transact_write_items(TransactItems=items)  # type: ignore[no-any-return]
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

    def query(self, params: dict[str, Any]) -> dict[str, Any]:
        """Run a single Query page."""
        try:
            return self.client.query(**params)  # type: ignore[no-any-return]
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

    def scan(self, params: dict[str, Any]) -> dict[str, Any]:
        """Run a single Scan page."""
        try:
            return self.client.scan(**params)  # type: ignore[no-any-return]
        except ClientError as e:
            self._handle_error(e)
            raise  # For type checker

    def _handle_error(self, error: ClientError) -> None:
        """
        Convert boto3 errors to lease lock exceptions.

        Args:
            error: ClientError from boto3

        Raises:
            ConditionFailedError: If condition check failed
            TransactionConflictError: If a concurrent transaction touched the item
            TransactionCanceledError: If a transaction was canceled
            TableNotFoundError: If table not found
            AWSThrottlingError: If throttled
            AWSPermissionError: If permission denied
            LockStoreError: For other errors
        """
        code = error.response["Error"]["Code"]
        logger.debug("DynamoDB %s failed with %s", error.operation_name, code)

        if code == "ConditionalCheckFailedException":
            raise ConditionFailedError(f"Condition failed: {error}")
        elif code == "TransactionConflictException":
            raise TransactionConflictError(f"Transaction conflict: {error}")
        elif code == "TransactionCanceledException":
            reasons = error.response.get("CancellationReasons", [])
            raise TransactionCanceledError(f"Transaction canceled: {error}", reasons)
        elif code == "ResourceNotFoundException":
            raise TableNotFoundError(f"Table '{self.table_name}' not found")
        elif code in _THROTTLING_CODES:
            raise AWSThrottlingError("DynamoDB throttling - retry with backoff")
        elif code == "AccessDeniedException":
            raise AWSPermissionError("AWS permission denied")
        else:
            raise LockStoreError(f"DynamoDB error: {error}")


def parse_lock_record(item: dict[str, Any]) -> LockRecord | None:
    """
    Parse a typed DynamoDB item into a lock record.

    Args:
        item: Item as returned by the low-level client

    Returns:
        Lock record, or None if the item carries no owner token

    Raises:
        LockRecordError: If attributes have unexpected types
    """
    lock_id = item.get(ATTR_LOCK_ID)
    if lock_id is None:
        return None
    if "S" not in lock_id:
        raise LockRecordError(
            f"attribute {ATTR_LOCK_ID} not of expected type S but was {sorted(lock_id)}"
        )

    timeout = item.get(ATTR_TIMEOUT)
    if timeout is None or "N" not in timeout:
        raise LockRecordError(f"attribute {ATTR_TIMEOUT} missing or not of type N")
    try:
        timeout_ns = int(timeout["N"])
    except ValueError:
        raise LockRecordError(f"attribute {ATTR_TIMEOUT} is not an integer: {timeout['N']}")

    return LockRecord(lock_id["S"], timeout_ns / NANOSECONDS_PER_SECOND)


def _match_condition(match_token: str) -> dict[str, Any]:
    return {
        "ConditionExpression": f"{NAME_LOCK_ID} = {VALUE_LOCK_ID}",
        "ExpressionAttributeNames": {NAME_LOCK_ID: ATTR_LOCK_ID},
        "ExpressionAttributeValues": {VALUE_LOCK_ID: {"S": match_token}},
    }
