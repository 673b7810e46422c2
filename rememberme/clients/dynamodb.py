"""
Triplet storage on a DynamoDB table.

Items live under ``pk = "user#<identity>"`` and ``sk = "triplet#<persistent>"``;
``expires_at`` is kept as epoch seconds so it can serve as the table's TTL
attribute.
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.conditions import Attr, Key
from botocore.exceptions import ClientError

from rememberme.core.config import StorageSettings
from rememberme.clients.base import tokens_match
from rememberme.models.triplet import TripletState

_CONDITION_FAILED = "ConditionalCheckFailedException"


def _timestamp(value: datetime) -> Decimal:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return Decimal(str(value.timestamp()))


def _expiry_epoch(value: datetime) -> int:
    # Rounded up so a triplet never expires earlier than requested.
    return math.ceil(_timestamp(value))


def _key(identity: str, persistent_token: str) -> Dict[str, str]:
    return {"pk": f"user#{identity}", "sk": f"triplet#{persistent_token}"}


class DynamoDBTripletStore:
    """Stores login triplets as items of a DynamoDB table."""

    def __init__(self, settings: StorageSettings, table: Any = None) -> None:
        if table is None:
            if not settings.dynamodb_table_name:
                raise ValueError("DynamoDB backend requires STORAGE_DYNAMODB_TABLE_NAME.")
            resource = boto3.resource("dynamodb", region_name=settings.aws_region)
            table = resource.Table(settings.dynamodb_table_name)
        self._table = table

    def find_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        *,
        now: Optional[datetime] = None,
    ) -> TripletState:
        now = now or datetime.now(timezone.utc)
        response = self._table.get_item(
            Key=_key(identity, persistent_token),
            ConsistentRead=True,
        )
        item = response.get("Item")
        if not item or Decimal(item["expires_at"]) <= _timestamp(now):
            return TripletState.NOT_FOUND
        if not tokens_match(item["current_token"], current_token):
            return TripletState.INVALID
        return TripletState.FOUND

    def store_triplet(
        self,
        identity: str,
        current_token: str,
        persistent_token: str,
        expires_at: datetime,
    ) -> None:
        item = {
            **_key(identity, persistent_token),
            "identity": identity,
            "current_token": current_token,
            "expires_at": _expiry_epoch(expires_at),
        }
        self._table.put_item(Item=item)

    def replace_triplet(
        self,
        identity: str,
        new_current_token: str,
        persistent_token: str,
        expires_at: datetime,
        *,
        expected_current_token: Optional[str] = None,
    ) -> bool:
        values: Dict[str, Any] = {
            ":token": new_current_token,
            ":expires": _expiry_epoch(expires_at),
        }
        condition = "attribute_exists(pk)"
        if expected_current_token is not None:
            condition += " AND current_token = :expected"
            values[":expected"] = expected_current_token
        try:
            self._table.update_item(
                Key=_key(identity, persistent_token),
                UpdateExpression="SET current_token = :token, expires_at = :expires",
                ConditionExpression=condition,
                ExpressionAttributeValues=values,
            )
        except ClientError as exc:
            if exc.response.get("Error", {}).get("Code") == _CONDITION_FAILED:
                return False
            raise
        return True

    def clean_triplet(self, identity: str, persistent_token: str) -> bool:
        response = self._table.delete_item(
            Key=_key(identity, persistent_token),
            ReturnValues="ALL_OLD",
        )
        return bool(response.get("Attributes"))

    def clean_all_triplets(self, identity: str) -> int:
        query: Dict[str, Any] = {
            "KeyConditionExpression": Key("pk").eq(f"user#{identity}")
            & Key("sk").begins_with("triplet#"),
            "ProjectionExpression": "pk, sk",
        }
        removed = 0
        while True:
            response = self._table.query(**query)
            for item in response.get("Items", []):
                self._table.delete_item(Key={"pk": item["pk"], "sk": item["sk"]})
                removed += 1
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return removed
            query["ExclusiveStartKey"] = last_key

    def clean_expired_tokens(self, cutoff: datetime) -> int:
        scan: Dict[str, Any] = {
            "FilterExpression": Attr("expires_at").lte(_timestamp(cutoff)),
            "ProjectionExpression": "pk, sk",
        }
        removed = 0
        while True:
            response = self._table.scan(**scan)
            for item in response.get("Items", []):
                self._table.delete_item(Key={"pk": item["pk"], "sk": item["sk"]})
                removed += 1
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return removed
            scan["ExclusiveStartKey"] = last_key


__all__ = ["DynamoDBTripletStore"]
