"""Contract tests shared by every triplet storage backend."""

try:
    from . import _bootstrap  # noqa: F401
except Exception:  # pragma: no cover - fallback for direct execution
    import _bootstrap  # type: ignore # noqa: F401

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from botocore.exceptions import ClientError

from rememberme.clients import (
    DynamoDBTripletStore,
    HashedTripletStore,
    InMemoryTripletStore,
    SQLiteTripletStore,
)
from rememberme.core.config import StorageSettings
from rememberme.models.triplet import TripletState
from rememberme.services.token_digest import TokenDigestService

NOW = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)
LATER = NOW + timedelta(days=7)


def _matches(condition, item: dict) -> bool:
    expression = condition.get_expression()
    operator = expression["operator"]
    values = expression["values"]
    if operator == "AND":
        return all(_matches(value, item) for value in values)
    attribute, operand = values
    actual = item.get(attribute.name)
    if actual is None:
        return False
    if operator == "=":
        return actual == operand
    if operator == "<=":
        return actual <= operand
    if operator == "begins_with":
        return actual.startswith(operand)
    raise NotImplementedError(operator)


class FakeDynamoTable:
    """Just enough of a boto3 Table resource for the triplet store."""

    def __init__(self, page_size: int = 2) -> None:
        self.items: dict[tuple[str, str], dict] = {}
        self.page_size = page_size
        self.update_error: ClientError | None = None

    def get_item(self, *, Key: dict, ConsistentRead: bool = False) -> dict:
        item = self.items.get((Key["pk"], Key["sk"]))
        return {"Item": dict(item)} if item else {}

    def put_item(self, *, Item: dict) -> None:
        self.items[(Item["pk"], Item["sk"])] = dict(Item)

    def update_item(
        self,
        *,
        Key: dict,
        UpdateExpression: str,
        ConditionExpression: str,
        ExpressionAttributeValues: dict,
    ) -> dict:
        if self.update_error is not None:
            raise self.update_error
        item = self.items.get((Key["pk"], Key["sk"]))
        expected = ExpressionAttributeValues.get(":expected")
        if item is None or (expected is not None and item["current_token"] != expected):
            raise ClientError(
                {"Error": {"Code": "ConditionalCheckFailedException", "Message": "no"}},
                "UpdateItem",
            )
        item["current_token"] = ExpressionAttributeValues[":token"]
        item["expires_at"] = ExpressionAttributeValues[":expires"]
        return {}

    def delete_item(self, *, Key: dict, ReturnValues: str = "NONE") -> dict:
        item = self.items.pop((Key["pk"], Key["sk"]), None)
        if item and ReturnValues == "ALL_OLD":
            return {"Attributes": item}
        return {}

    def query(self, *, KeyConditionExpression, ProjectionExpression=None, ExclusiveStartKey=None) -> dict:
        return self._page(KeyConditionExpression, ExclusiveStartKey)

    def scan(self, *, FilterExpression, ProjectionExpression=None, ExclusiveStartKey=None) -> dict:
        return self._page(FilterExpression, ExclusiveStartKey)

    def _page(self, condition, start_key) -> dict:
        keys = sorted(key for key, item in self.items.items() if _matches(condition, item))
        if start_key is not None:
            keys = [key for key in keys if key > (start_key["pk"], start_key["sk"])]
        page = keys[: self.page_size]
        response: dict = {"Items": [dict(self.items[key]) for key in page]}
        if len(keys) > self.page_size:
            response["LastEvaluatedKey"] = {"pk": page[-1][0], "sk": page[-1][1]}
        return response


@pytest.fixture(params=["memory", "sqlite", "dynamodb", "hashed"])
def store(request, tmp_path: Path):
    if request.param == "memory":
        return InMemoryTripletStore()
    if request.param == "sqlite":
        return SQLiteTripletStore(str(tmp_path / "nested" / "triplets.sqlite3"))
    if request.param == "dynamodb":
        return DynamoDBTripletStore(StorageSettings(), table=FakeDynamoTable())
    return HashedTripletStore(InMemoryTripletStore(), TokenDigestService(secret="pepper"))


def test_find_classifies_found_invalid_and_not_found(store) -> None:
    store.store_triplet("u1", "tA", "pA", LATER)

    assert store.find_triplet("u1", "tA", "pA", now=NOW) is TripletState.FOUND
    assert store.find_triplet("u1", "tX", "pA", now=NOW) is TripletState.INVALID
    assert store.find_triplet("u1", "tA", "pX", now=NOW) is TripletState.NOT_FOUND
    assert store.find_triplet("u2", "tA", "pA", now=NOW) is TripletState.NOT_FOUND


def test_expired_triplet_is_not_found_even_with_matching_tokens(store) -> None:
    store.store_triplet("u1", "tA", "pA", NOW - timedelta(seconds=1))

    assert store.find_triplet("u1", "tA", "pA", now=NOW) is TripletState.NOT_FOUND
    assert store.find_triplet("u1", "tX", "pA", now=NOW) is TripletState.NOT_FOUND


def test_store_upserts_existing_persistent_token(store) -> None:
    store.store_triplet("u1", "tA", "pA", LATER)
    store.store_triplet("u1", "tB", "pA", LATER)

    assert store.find_triplet("u1", "tB", "pA", now=NOW) is TripletState.FOUND
    assert store.find_triplet("u1", "tA", "pA", now=NOW) is TripletState.INVALID


def test_replace_rotates_current_token_and_extends_expiry(store) -> None:
    store.store_triplet("u1", "tA", "pA", NOW + timedelta(minutes=1))
    extended = NOW + timedelta(days=30)

    assert store.replace_triplet("u1", "tB", "pA", extended)

    later = NOW + timedelta(days=10)
    assert store.find_triplet("u1", "tB", "pA", now=later) is TripletState.FOUND
    assert store.find_triplet("u1", "tA", "pA", now=later) is TripletState.INVALID


def test_replace_with_expected_token_is_compare_and_swap(store) -> None:
    store.store_triplet("u1", "tA", "pA", LATER)

    assert store.replace_triplet("u1", "tB", "pA", LATER, expected_current_token="tA")
    assert not store.replace_triplet("u1", "tC", "pA", LATER, expected_current_token="tA")
    assert store.find_triplet("u1", "tB", "pA", now=NOW) is TripletState.FOUND


def test_replace_does_not_resurrect_deleted_triplet(store) -> None:
    store.store_triplet("u1", "tA", "pA", LATER)
    assert store.clean_triplet("u1", "pA")

    assert not store.replace_triplet("u1", "tB", "pA", LATER)
    assert store.find_triplet("u1", "tB", "pA", now=NOW) is TripletState.NOT_FOUND


def test_clean_triplet_removes_exactly_one(store) -> None:
    store.store_triplet("u1", "tA", "pA", LATER)
    store.store_triplet("u1", "tB", "pB", LATER)
    store.store_triplet("u2", "tC", "pA", LATER)

    assert store.clean_triplet("u1", "pA")
    assert not store.clean_triplet("u1", "pA")

    assert store.find_triplet("u1", "tA", "pA", now=NOW) is TripletState.NOT_FOUND
    assert store.find_triplet("u1", "tB", "pB", now=NOW) is TripletState.FOUND
    assert store.find_triplet("u2", "tC", "pA", now=NOW) is TripletState.FOUND


def test_clean_all_triplets_only_touches_one_identity(store) -> None:
    for index in range(5):
        store.store_triplet("u1", f"t{index}", f"p{index}", LATER)
    store.store_triplet("u2", "tZ", "pZ", LATER)

    assert store.clean_all_triplets("u1") == 5

    assert store.find_triplet("u1", "t0", "p0", now=NOW) is TripletState.NOT_FOUND
    assert store.find_triplet("u2", "tZ", "pZ", now=NOW) is TripletState.FOUND


def test_clean_expired_tokens_uses_inclusive_cutoff(store) -> None:
    store.store_triplet("u1", "tA", "pA", NOW - timedelta(days=1))
    store.store_triplet("u1", "tB", "pB", NOW)
    store.store_triplet("u2", "tC", "pC", NOW - timedelta(hours=1))
    store.store_triplet("u2", "tD", "pD", LATER)

    assert store.clean_expired_tokens(NOW) == 3

    assert store.find_triplet("u2", "tD", "pD", now=NOW) is TripletState.FOUND
    assert store.clean_expired_tokens(NOW) == 0


def test_dynamodb_store_propagates_unexpected_errors() -> None:
    table = FakeDynamoTable()
    table.update_error = ClientError(
        {"Error": {"Code": "ProvisionedThroughputExceededException", "Message": "slow"}},
        "UpdateItem",
    )
    store = DynamoDBTripletStore(StorageSettings(), table=table)
    store.store_triplet("u1", "tA", "pA", LATER)

    with pytest.raises(ClientError):
        store.replace_triplet("u1", "tB", "pA", LATER)


def test_dynamodb_store_requires_table_name() -> None:
    with pytest.raises(ValueError):
        DynamoDBTripletStore(StorageSettings(dynamodb_table_name=None))


def test_dynamodb_items_use_prefixed_keys_and_epoch_expiry() -> None:
    table = FakeDynamoTable()
    store = DynamoDBTripletStore(StorageSettings(), table=table)

    store.store_triplet("u1", "tA", "pA", LATER)

    item = table.items[("user#u1", "triplet#pA")]
    assert item["identity"] == "u1"
    assert item["expires_at"] == int(LATER.timestamp())


def test_sqlite_store_survives_reopen(tmp_path: Path) -> None:
    path = str(tmp_path / "triplets.sqlite3")
    SQLiteTripletStore(path).store_triplet("u1", "tA", "pA", LATER)

    reopened = SQLiteTripletStore(path)

    assert reopened.find_triplet("u1", "tA", "pA", now=NOW) is TripletState.FOUND
    [triplet] = reopened.list_triplets("u1")
    assert triplet.expires_at == LATER


def test_non_ascii_tokens_are_compared_without_error(store) -> None:
    store.store_triplet("u1", "tAcafé", "pAcafé", LATER)

    assert store.find_triplet("u1", "tAcafé", "pAcafé", now=NOW) is TripletState.FOUND
    assert store.find_triplet("u1", "éclair", "pAcafé", now=NOW) is TripletState.INVALID


def test_presented_non_ascii_token_against_ascii_triplet_is_invalid(store) -> None:
    store.store_triplet("u1", "tA", "pA", LATER)

    assert store.find_triplet("u1", "é-tampered", "pA", now=NOW) is TripletState.INVALID


def test_triplet_with_subsecond_lifetime_left_is_found(store) -> None:
    store.store_triplet("u1", "tA", "pA", NOW + timedelta(milliseconds=400))

    assert store.find_triplet("u1", "tA", "pA", now=NOW) is TripletState.FOUND


def test_naive_times_are_treated_as_utc(store) -> None:
    naive_now = NOW.replace(tzinfo=None)
    store.store_triplet("u1", "tA", "pA", naive_now - timedelta(hours=1))
    store.store_triplet("u2", "tB", "pB", naive_now + timedelta(hours=1))

    assert store.find_triplet("u2", "tB", "pB", now=naive_now) is TripletState.FOUND
    assert store.clean_expired_tokens(naive_now) == 1
    assert store.find_triplet("u2", "tB", "pB", now=NOW) is TripletState.FOUND
