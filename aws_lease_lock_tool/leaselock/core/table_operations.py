"""
Table management operations for lease locks.

Note: This code was generated with assistance from AI coding tools
and has been reviewed and tested by a human.
"""

from typing import Any, Literal

import boto3
from botocore.exceptions import ClientError

from ..exceptions import TableAlreadyExistsError, TableNotFoundError
from ..models import HashKey, HashRangeKey, KeyShape


def create_table(
    table_name: str,
    key_shape: KeyShape,
    region: str | None = None,
    profile: str | None = None,
    billing_mode: Literal["PAY_PER_REQUEST", "PROVISIONED"] = "PAY_PER_REQUEST",
    client: Any = None,
) -> dict[str, Any]:
    """
    Create a DynamoDB table that can hold lock records.

    Args:
        table_name: Table name
        key_shape: HashKey for a hash-only table, HashRangeKey for hash+range
        region: AWS region (optional)
        profile: AWS profile (optional)
        billing_mode: Billing mode (PAY_PER_REQUEST or PROVISIONED)
        client: Pre-built low-level DynamoDB client (optional)

    Returns:
        Table description

    Raises:
        TableAlreadyExistsError: If table already exists
    """
    dynamodb = client or boto3.Session(profile_name=profile, region_name=region).client("dynamodb")

    key_schema = [{"AttributeName": key_shape.partition_key_name, "KeyType": "HASH"}]
    attribute_definitions = [{"AttributeName": key_shape.partition_key_name, "AttributeType": "S"}]
    if isinstance(key_shape, HashRangeKey):
        key_schema.append({"AttributeName": key_shape.sort_key_name, "KeyType": "RANGE"})
        attribute_definitions.append({"AttributeName": key_shape.sort_key_name, "AttributeType": "S"})

    try:
        response = dynamodb.create_table(
            TableName=table_name,
            KeySchema=key_schema,
            AttributeDefinitions=attribute_definitions,
            BillingMode=billing_mode,
            Tags=[
                {"Key": "ManagedBy", "Value": "aws-lease-lock-tool"},
                {"Key": "Purpose", "Value": "locks"},
            ],
        )
        return response["TableDescription"]  # type: ignore[no-any-return]

    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceInUseException":
            raise TableAlreadyExistsError(f"Table '{table_name}' already exists")
        raise


def drop_table(
    table_name: str, region: str | None = None, profile: str | None = None, client: Any = None
) -> dict[str, Any]:
    """
    Drop DynamoDB table.

    Raises:
        TableNotFoundError: If table does not exist
    """
    dynamodb = client or boto3.Session(profile_name=profile, region_name=region).client("dynamodb")

    try:
        response = dynamodb.delete_table(TableName=table_name)
        return response["TableDescription"]  # type: ignore[no-any-return]
    except ClientError as e:
        if e.response["Error"]["Code"] == "ResourceNotFoundException":
            raise TableNotFoundError(f"Table '{table_name}' not found")
        raise


def key_shape_for(
    partition_key: str, sort_key: str | None = None, sort_key_value: str | None = None
) -> KeyShape:
    """Build the key shape matching a table's key schema."""
    if sort_key is None:
        return HashKey(partition_key)
    if sort_key_value is None:
        return HashRangeKey(partition_key, sort_key)
    return HashRangeKey(partition_key, sort_key, sort_key_value)
