from __future__ import annotations

from typing import Any, Dict, Protocol

Response = Dict[str, Any]


class S3ClientPort(Protocol):
    """Subset of the asynchronous botocore S3 client the storage adapter calls."""

    async def put_object(self, **kwargs: Any) -> Response:
        ...

    async def get_object(self, **kwargs: Any) -> Response:
        ...

    async def list_objects_v2(self, **kwargs: Any) -> Response:
        ...

    async def delete_objects(self, **kwargs: Any) -> Response:
        ...


class DynamoDbClientPort(Protocol):
    """Subset of the asynchronous botocore DynamoDB client the storage adapter calls."""

    async def update_item(self, **kwargs: Any) -> Response:
        ...

    async def get_item(self, **kwargs: Any) -> Response:
        ...

    async def batch_get_item(self, **kwargs: Any) -> Response:
        ...

    async def query(self, **kwargs: Any) -> Response:
        ...

    async def batch_write_item(self, **kwargs: Any) -> Response:
        ...
