from __future__ import annotations

import inspect
import logging
from typing import Awaitable, List, Optional, Union

from botocore.exceptions import ClientError

from bolt_installation_store.infrastructure.chunks import gather_chunks
from bolt_installation_store.ports.aws import S3ClientPort
from bolt_installation_store.ports.storage import Storage, StorageError

default_logger = logging.getLogger(__name__)

# DeleteObjects accepts at most 1,000 keys per call.
DELETE_OBJECTS_MAX_KEYS = 1000

_MISSING_OBJECT_CODES = {"NoSuchKey", "404", "NotFound"}


class S3Storage(Storage[str, str]):
    """Stores each encoded installation as one object in a bucket."""

    def __init__(self, client: S3ClientPort, bucket_name: str) -> None:
        self.client = client
        self.bucket_name = bucket_name

    @classmethod
    async def create(
        cls, client: Union[S3ClientPort, Awaitable[S3ClientPort]], bucket_name: str
    ) -> "S3Storage":
        if inspect.isawaitable(client):
            client = await client
        return cls(client, bucket_name)

    async def store(self, key: str, data: bytes, logger: Optional[logging.Logger] = None) -> None:
        log = logger or default_logger
        response = await self.client.put_object(Bucket=self.bucket_name, Key=key, Body=data)
        log.debug(f"S3 putObject response: {response.get('ResponseMetadata')}")

    async def fetch(self, key: str, logger: Optional[logging.Logger] = None) -> Optional[bytes]:
        log = logger or default_logger
        try:
            response = await self.client.get_object(Bucket=self.bucket_name, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in _MISSING_OBJECT_CODES:
                log.debug(f"Installation not found: bucket = {self.bucket_name}, key = {key}")
                return None
            log.warning(f"Failed to get installation: bucket = {self.bucket_name}, key = {key}: {e}")
            raise
        log.debug(f"S3 getObject response: {response.get('ResponseMetadata')}")

        body = response.get("Body")
        if body is None:
            return None
        async with body as stream:
            return await stream.read()

    async def delete(self, key_prefix: str, logger: Optional[logging.Logger] = None) -> None:
        log = logger or default_logger
        object_keys = await self._list_keys(key_prefix)
        if not object_keys:
            log.warning(f"No installations found to be deleted: prefix = {key_prefix}")
            return

        async def delete_chunk(chunk: List[str]) -> None:
            log.info(f"Going to delete installations: {', '.join(chunk)}")
            response = await self.client.delete_objects(
                Bucket=self.bucket_name,
                Delete={"Objects": [{"Key": k} for k in chunk]},
            )
            errors = response.get("Errors") or []
            if errors:
                failed = ", ".join(f"{e.get('Key')} ({e.get('Code')})" for e in errors)
                log.error(f"Failed to delete installations: {failed}")
                raise StorageError(f"Failed to delete installations: {failed}")

        await gather_chunks(object_keys, DELETE_OBJECTS_MAX_KEYS, delete_chunk)

    async def _list_keys(self, key_prefix: str) -> List[str]:
        params = {"Bucket": self.bucket_name, "Prefix": key_prefix}
        keys: List[str] = []
        while True:
            response = await self.client.list_objects_v2(**params)
            keys.extend(obj["Key"] for obj in response.get("Contents", []) if isinstance(obj.get("Key"), str))
            if not response.get("IsTruncated"):
                return keys
            params["ContinuationToken"] = response["NextContinuationToken"]
