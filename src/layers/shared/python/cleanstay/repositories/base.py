"""Generic DynamoDB access for single-table entities."""

import os
import time
from typing import Any, Generic, TypeVar

import boto3
import structlog
from botocore.exceptions import ClientError

from cleanstay.models.base import BaseModel
from cleanstay.utils.exceptions import CleanStayError, ConflictError

logger = structlog.get_logger()

T = TypeVar("T", bound=BaseModel)

KEY_ATTRIBUTES = {
    None: ("PK", "SK"),
    "GSI1": ("GSI1PK", "GSI1SK"),
    "GSI2": ("GSI2PK", "GSI2SK"),
}

BATCH_GET_LIMIT = 100

# Seconds to wait before re-requesting throttled batch keys
BATCH_RETRY_DELAYS = (0.05, 0.1, 0.2, 0.4, 0.8)


def _is_condition_failure(error: ClientError) -> bool:
    return error.response["Error"]["Code"] == "ConditionalCheckFailedException"


class BaseRepository(Generic[T]):
    """Reads and writes one entity type in the shared table.

    Items are stored as the model's attributes plus its primary key and
    whatever secondary index keys the model currently projects. Updates are
    guarded by the ``version`` attribute.
    """

    def __init__(self, model_class: type[T], table_name: str | None = None):
        self.model_class = model_class
        self.table_name = table_name or os.environ.get("TABLE_NAME", "cleanstay-dev")
        self._resource = None
        self._table = None

    @property
    def dynamodb(self):
        if self._resource is None:
            self._resource = boto3.resource("dynamodb")
        return self._resource

    @property
    def table(self):
        if self._table is None:
            self._table = self.dynamodb.Table(self.table_name)
        return self._table

    def _item(self, entity: T) -> dict[str, Any]:
        return {**entity.to_dynamodb(), **entity.get_keys(), **entity.get_index_keys()}

    def _write(self, entity: T, conflict_message: str, **conditions: Any) -> dict[str, Any]:
        item = self._item(entity)
        try:
            self.table.put_item(Item=item, **conditions)
        except ClientError as e:
            if _is_condition_failure(e):
                raise ConflictError(conflict_message) from e
            logger.error("DynamoDB put_item failed", error=str(e), pk=item["PK"])
            raise
        return item

    def get(self, pk: str, sk: str) -> T | None:
        """Load one entity by primary key, or None."""
        try:
            item = self.table.get_item(Key={"PK": pk, "SK": sk}).get("Item")
        except ClientError as e:
            logger.error("DynamoDB get_item failed", error=str(e), pk=pk, sk=sk)
            raise
        return self.model_class.from_dynamodb(item) if item else None

    def put(self, entity: T) -> T:
        """Write unconditionally, replacing any stored item."""
        entity.update_timestamp()
        item = self._write(entity, "Item write rejected")
        logger.debug("Item saved", pk=item["PK"], sk=item["SK"], model=self.model_class.__name__)
        return entity

    def create(self, entity: T) -> T:
        """Write a new item.

        Raises:
            ConflictError: An item with the same key exists.
        """
        entity.update_timestamp()
        item = self._write(
            entity,
            "Item already exists",
            ConditionExpression="attribute_not_exists(PK)",
        )
        logger.debug("Item created", pk=item["PK"], sk=item["SK"], model=self.model_class.__name__)
        return entity

    def update(self, entity: T, check_version: bool = True) -> T:
        """Replace a stored item and bump its version.

        Args:
            entity: Entity carrying the version it was loaded with.
            check_version: Require the stored version to be unchanged.

        Raises:
            ConflictError: The stored item was modified concurrently.
        """
        loaded_version = entity.version
        entity.increment_version()
        entity.update_timestamp()

        conditions: dict[str, Any] = {}
        if check_version:
            conditions = {
                "ConditionExpression": "version = :loaded",
                "ExpressionAttributeValues": {":loaded": loaded_version},
            }

        try:
            item = self._write(entity, "Item was modified by another process", **conditions)
        except (ConflictError, ClientError):
            entity.version = loaded_version
            raise

        logger.debug("Item updated", pk=item["PK"], sk=item["SK"], version=entity.version)
        return entity

    def delete(self, pk: str, sk: str) -> bool:
        """Delete an item; False when nothing was stored under the key."""
        try:
            self.table.delete_item(
                Key={"PK": pk, "SK": sk},
                ConditionExpression="attribute_exists(PK)",
            )
        except ClientError as e:
            if _is_condition_failure(e):
                return False
            logger.error("DynamoDB delete_item failed", error=str(e), pk=pk, sk=sk)
            raise
        logger.debug("Item deleted", pk=pk, sk=sk)
        return True

    def query(
        self,
        pk: str,
        sk_begins_with: str | None = None,
        sk_between: tuple[str, str] | None = None,
        index_name: str | None = None,
        limit: int | None = None,
        scan_forward: bool = True,
        filter_expression: str | None = None,
        expression_values: dict | None = None,
        expression_names: dict | None = None,
        last_key: dict | None = None,
    ) -> tuple[list[T], dict | None]:
        """Fetch one page of a partition.

        Args:
            pk: Partition key of the table or of ``index_name``.
            sk_begins_with: Sort key prefix.
            sk_between: Inclusive sort key range; takes precedence over the prefix.
            index_name: ``"GSI1"`` or ``"GSI2"``; the base table when None.
            limit: Items evaluated before filtering.
            scan_forward: Ascending sort key order.
            filter_expression: Filter applied after the key condition.
            expression_values: Values referenced by the filter.
            expression_names: Names referenced by the filter.
            last_key: ``LastEvaluatedKey`` of the previous page.

        Returns:
            ``(entities, last_evaluated_key)``.
        """
        pk_attr, sk_attr = KEY_ATTRIBUTES[index_name]
        conditions = [f"{pk_attr} = :pk"]
        values: dict[str, Any] = {":pk": pk}

        if sk_between:
            conditions.append(f"{sk_attr} BETWEEN :sk_from AND :sk_to")
            values[":sk_from"], values[":sk_to"] = sk_between
        elif sk_begins_with:
            conditions.append(f"begins_with({sk_attr}, :sk_prefix)")
            values[":sk_prefix"] = sk_begins_with

        params: dict[str, Any] = {
            "KeyConditionExpression": " AND ".join(conditions),
            "ExpressionAttributeValues": {**values, **(expression_values or {})},
            "ScanIndexForward": scan_forward,
        }
        optional = {
            "IndexName": index_name,
            "Limit": limit,
            "FilterExpression": filter_expression,
            "ExpressionAttributeNames": expression_names,
            "ExclusiveStartKey": last_key,
        }
        params.update({k: v for k, v in optional.items() if v})

        try:
            response = self.table.query(**params)
        except ClientError as e:
            logger.error("DynamoDB query failed", error=str(e), pk=pk, index=index_name)
            raise

        entities = [self.model_class.from_dynamodb(item) for item in response.get("Items", [])]
        return entities, response.get("LastEvaluatedKey")

    def query_all(self, pk: str, max_items: int | None = None, **kwargs: Any) -> list[T]:
        """Follow ``query`` pages until exhausted or ``max_items`` are collected."""
        collected: list[T] = []
        last_key = None
        while True:
            page, last_key = self.query(pk, last_key=last_key, **kwargs)
            collected.extend(page)
            if not last_key or (max_items and len(collected) >= max_items):
                break
        return collected[:max_items] if max_items else collected

    def _batch_get_chunk(self, keys: list[dict[str, str]]) -> list[dict[str, Any]]:
        """Read one batch, re-requesting ``UnprocessedKeys`` with backoff.

        Raises:
            CleanStayError: Keys were still unprocessed after the last retry.
        """
        items: list[dict[str, Any]] = []
        request = {self.table_name: {"Keys": keys}}
        delays = iter(BATCH_RETRY_DELAYS)

        while True:
            try:
                response = self.dynamodb.batch_get_item(RequestItems=request)
            except ClientError as e:
                logger.error("DynamoDB batch_get_item failed", error=str(e), keys=len(keys))
                raise

            items.extend(response.get("Responses", {}).get(self.table_name, []))
            request = response.get("UnprocessedKeys") or {}
            if not request.get(self.table_name, {}).get("Keys"):
                return items

            delay = next(delays, None)
            pending = len(request[self.table_name]["Keys"])
            if delay is None:
                logger.error("Batch read gave up on unprocessed keys", unprocessed=pending)
                raise CleanStayError("Batch read incomplete", error_code="BATCH_INCOMPLETE")

            logger.warning("Retrying unprocessed batch keys", unprocessed=pending, delay=delay)
            time.sleep(delay)

    def batch_get(self, keys: list[tuple[str, str]]) -> list[T]:
        """Load many entities by ``(pk, sk)``. Missing keys are skipped; order is not kept."""
        entities: list[T] = []
        for start in range(0, len(keys), BATCH_GET_LIMIT):
            chunk = [{"PK": pk, "SK": sk} for pk, sk in keys[start:start + BATCH_GET_LIMIT]]
            entities.extend(
                self.model_class.from_dynamodb(item) for item in self._batch_get_chunk(chunk)
            )
        return entities
