from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Dict, List, Optional, Sequence, Union

from bolt_installation_store.adapters.dynamodb.keys import CompositeKeyGenerator, DynamoDbDeletionKey, DynamoDbKey
from bolt_installation_store.config import DeletionOption
from bolt_installation_store.infrastructure.chunks import gather_chunks
from bolt_installation_store.ports.aws import DynamoDbClientPort
from bolt_installation_store.ports.storage import Storage, StorageError

default_logger = logging.getLogger(__name__)

BATCH_GET_ITEM_MAX_KEYS = 100
BATCH_WRITE_ITEM_MAX_ITEMS = 25

# Batch calls are re-issued for unprocessed keys/items with exponential backoff.
UNPROCESSED_MAX_ATTEMPTS = 5
UNPROCESSED_BASE_DELAY = 0.05


class DynamoDbStorage(Storage[DynamoDbKey, DynamoDbDeletionKey]):
    """Keeps each encoded installation in one binary attribute of a table item.

    Only ``attribute_name`` is written, so items may carry other attributes owned
    by the host application. With ``DeletionOption.DELETE_ATTRIBUTE`` deletion
    leaves those items in place and removes just the installation attribute.
    """

    def __init__(
        self,
        client: DynamoDbClientPort,
        table_name: str,
        key_generator: CompositeKeyGenerator,
        attribute_name: str = "Installation",
        deletion_option: DeletionOption = DeletionOption.DELETE_ITEM,
    ) -> None:
        self.client = client
        self.table_name = table_name
        self.key_generator = key_generator
        self.attribute_name = attribute_name
        self.deletion_option = deletion_option

    @classmethod
    async def create(
        cls,
        client: Union[DynamoDbClientPort, Awaitable[DynamoDbClientPort]],
        table_name: str,
        key_generator: CompositeKeyGenerator,
        attribute_name: str = "Installation",
        deletion_option: DeletionOption = DeletionOption.DELETE_ITEM,
    ) -> "DynamoDbStorage":
        if inspect.isawaitable(client):
            client = await client
        return cls(client, table_name, key_generator, attribute_name, deletion_option)

    # Writes ------------------------------------------------------------------

    async def store(self, key: DynamoDbKey, data: bytes, logger: Optional[logging.Logger] = None) -> None:
        log = logger or default_logger
        response = await self.client.update_item(
            TableName=self.table_name,
            Key=key,
            UpdateExpression="SET #attrName = :d",
            ExpressionAttributeNames={"#attrName": self.attribute_name},
            ExpressionAttributeValues={":d": {"B": data}},
            ReturnConsumedCapacity="TOTAL",
        )
        log.debug(f"[store] UpdateItem consumed capacity: {response.get('ConsumedCapacity')}")

    # Reads -------------------------------------------------------------------

    async def fetch(self, key: DynamoDbKey, logger: Optional[logging.Logger] = None) -> Optional[bytes]:
        log = logger or default_logger
        response = await self.client.get_item(
            TableName=self.table_name,
            Key=key,
            ProjectionExpression="#attrName",
            ExpressionAttributeNames={"#attrName": self.attribute_name},
            ReturnConsumedCapacity="TOTAL",
        )
        log.debug(f"[fetch] GetItem consumed capacity: {response.get('ConsumedCapacity')}")

        item = response.get("Item")
        if item is None:
            log.debug(f"Item not found: {key}")
            return None
        return self._value_of(item)

    async def fetch_multiple(
        self, keys: Sequence[DynamoDbKey], logger: Optional[logging.Logger] = None
    ) -> List[Optional[bytes]]:
        if len(keys) == 1:
            return [await self.fetch(keys[0], logger)]

        chunks = await gather_chunks(keys, BATCH_GET_ITEM_MAX_KEYS, lambda chunk: self._batch_get(chunk, logger))
        items = [item for chunk in chunks for item in chunk]

        # BatchGetItem returns items in no particular order and skips missing keys.
        results: List[Optional[bytes]] = []
        for key in keys:
            match = next((item for item in items if self.key_generator.keys_equal(item, key)), None)
            results.append(None if match is None else self._value_of(match))
        return results

    async def _batch_get(
        self, keys: List[DynamoDbKey], logger: Optional[logging.Logger]
    ) -> List[Dict[str, Any]]:
        log = logger or default_logger
        names = {"#attrName": self.attribute_name}
        projection = ["#attrName"]
        for i, name in enumerate(self.key_generator.key_attribute_names):
            names[f"#k{i}"] = name
            projection.append(f"#k{i}")

        request: Dict[str, Any] = {
            self.table_name: {
                "Keys": keys,
                "ProjectionExpression": ",".join(projection),
                "ExpressionAttributeNames": names,
            }
        }
        items: List[Dict[str, Any]] = []
        for attempt in range(UNPROCESSED_MAX_ATTEMPTS):
            if attempt:
                await asyncio.sleep(_backoff(attempt))
            response = await self.client.batch_get_item(RequestItems=request, ReturnConsumedCapacity="TOTAL")
            log.debug(f"[fetch] BatchGetItem consumed capacity: {response.get('ConsumedCapacity')}")
            items.extend(response.get("Responses", {}).get(self.table_name, []))
            request = response.get("UnprocessedKeys") or {}
            if not request:
                return items
        log.error(f"Keys still unprocessed after {UNPROCESSED_MAX_ATTEMPTS} attempts: {request}")
        raise StorageError(f"Failed to fetch installations: unprocessed keys remain in {self.table_name}")

    def _value_of(self, item: Dict[str, Any]) -> Optional[bytes]:
        value = item.get(self.attribute_name)
        if value is None or "B" not in value:
            return None
        return bytes(value["B"])

    # Deletion ----------------------------------------------------------------

    async def delete(self, key: DynamoDbDeletionKey, logger: Optional[logging.Logger] = None) -> None:
        log = logger or default_logger
        keys_to_delete = await self._list_keys_to_delete(key, log)
        if not keys_to_delete:
            log.warning(f"No items found to be deleted: {key}")
            return

        if self.deletion_option == DeletionOption.DELETE_ATTRIBUTE:
            await self._delete_attributes(keys_to_delete, log)
        else:
            await self._delete_items(keys_to_delete, log)

    async def _list_keys_to_delete(self, key: DynamoDbDeletionKey, log: logging.Logger) -> List[DynamoDbKey]:
        query_input = key.to_query_input()
        params: Dict[str, Any] = {
            "TableName": self.table_name,
            "ProjectionExpression": ",".join(query_input["ExpressionAttributeNames"]),
            **query_input,
            "ReturnConsumedCapacity": "TOTAL",
        }

        keys: List[DynamoDbKey] = []
        while True:
            response = await self.client.query(**params)
            log.debug(f"[delete] Query consumed capacity: {response.get('ConsumedCapacity')}")
            keys.extend(self.key_generator.extract_key(item) for item in response.get("Items", []))
            last_key = response.get("LastEvaluatedKey")
            if not last_key:
                return keys
            params["ExclusiveStartKey"] = last_key

    async def _delete_items(self, keys: List[DynamoDbKey], log: logging.Logger) -> None:
        async def delete_chunk(chunk: List[DynamoDbKey]) -> None:
            pending = chunk
            for attempt in range(UNPROCESSED_MAX_ATTEMPTS):
                if attempt:
                    await asyncio.sleep(_backoff(attempt))
                log.info(f"Going to delete installation items: {pending}")
                response = await self.client.batch_write_item(
                    RequestItems={self.table_name: [{"DeleteRequest": {"Key": k}} for k in pending]},
                    ReturnConsumedCapacity="TOTAL",
                )
                log.debug(f"[delete] BatchWriteItem consumed capacity: {response.get('ConsumedCapacity')}")
                unprocessed = (response.get("UnprocessedItems") or {}).get(self.table_name, [])
                pending = [request["DeleteRequest"]["Key"] for request in unprocessed]
                if not pending:
                    return
            log.error(f"Items still unprocessed after {UNPROCESSED_MAX_ATTEMPTS} attempts: {pending}")
            raise StorageError(f"Failed to delete {len(pending)} installation items: {pending}")

        await gather_chunks(keys, BATCH_WRITE_ITEM_MAX_ITEMS, delete_chunk)

    async def _delete_attributes(self, keys: List[DynamoDbKey], log: logging.Logger) -> None:
        async def remove_attribute(k: DynamoDbKey) -> None:
            response = await self.client.update_item(
                TableName=self.table_name,
                Key=k,
                UpdateExpression="REMOVE #attrName",
                ExpressionAttributeNames={"#attrName": self.attribute_name},
                ReturnConsumedCapacity="TOTAL",
            )
            log.debug(f"[delete] UpdateItem consumed capacity: {response.get('ConsumedCapacity')}")

        log.info(f"Going to remove installation attribute '{self.attribute_name}' from: {keys}")
        await asyncio.gather(*(remove_attribute(k) for k in keys))


def _backoff(attempt: int) -> float:
    return UNPROCESSED_BASE_DELAY * 2 ** (attempt - 1)
