from __future__ import annotations

from typing import Any, Awaitable, Optional, Union

from bolt_installation_store.adapters.dynamodb.keys import CompositeKeyGenerator, DynamoDbDeletionKey, DynamoDbKey
from bolt_installation_store.adapters.dynamodb.storage import DynamoDbStorage
from bolt_installation_store.adapters.s3.keys import PathKeyGenerator
from bolt_installation_store.adapters.s3.storage import S3Storage
from bolt_installation_store.application.services import InstallationStoreService
from bolt_installation_store.config import CodecSettings, DeletionOption, StoreSettings
from bolt_installation_store.infrastructure.codec.binary_codec import BinaryInstallationCodec
from bolt_installation_store.infrastructure.codec.json_codec import JsonInstallationCodec
from bolt_installation_store.ports.aws import DynamoDbClientPort, S3ClientPort
from bolt_installation_store.ports.codec import InstallationCodec


def create_codec(settings: CodecSettings) -> InstallationCodec:
    """Plain JSON when neither compression nor encryption is configured."""
    if not settings.compression and settings.encryption is None:
        return JsonInstallationCodec()
    return BinaryInstallationCodec(settings)


async def create_s3_installation_store(
    client: Union[S3ClientPort, Awaitable[S3ClientPort]],
    bucket_name: str,
    client_id: str,
    codec: Optional[InstallationCodec] = None,
    historical_data_enabled: bool = False,
) -> InstallationStoreService[str, str]:
    storage = await S3Storage.create(client, bucket_name)
    return InstallationStoreService(
        client_id=client_id,
        key_generator=PathKeyGenerator(),
        storage=storage,
        codec=codec,
        historical_data_enabled=historical_data_enabled,
    )


async def create_dynamodb_installation_store(
    client: Union[DynamoDbClientPort, Awaitable[DynamoDbClientPort]],
    table_name: str,
    client_id: str,
    partition_key_name: str = "PK",
    sort_key_name: str = "SK",
    attribute_name: str = "Installation",
    deletion_option: DeletionOption = DeletionOption.DELETE_ITEM,
    codec: Optional[InstallationCodec] = None,
    historical_data_enabled: bool = False,
) -> InstallationStoreService[DynamoDbKey, DynamoDbDeletionKey]:
    key_generator = CompositeKeyGenerator(partition_key_name, sort_key_name)
    storage = await DynamoDbStorage.create(client, table_name, key_generator, attribute_name, deletion_option)
    return InstallationStoreService(
        client_id=client_id,
        key_generator=key_generator,
        storage=storage,
        codec=codec,
        historical_data_enabled=historical_data_enabled,
    )


async def create_installation_store(settings: StoreSettings, client: Any) -> InstallationStoreService:
    """Build the store described by ``settings`` on top of a ready (or pending) backend client."""
    codec = create_codec(settings.codec)
    if settings.backend == "dynamodb":
        dynamodb = settings.dynamodb
        assert dynamodb is not None
        return await create_dynamodb_installation_store(
            client,
            table_name=dynamodb.table_name,
            client_id=settings.client_id,
            partition_key_name=dynamodb.partition_key_name,
            sort_key_name=dynamodb.sort_key_name,
            attribute_name=dynamodb.attribute_name,
            deletion_option=dynamodb.deletion_option,
            codec=codec,
            historical_data_enabled=settings.historical_data_enabled,
        )

    s3 = settings.s3
    assert s3 is not None
    return await create_s3_installation_store(
        client,
        bucket_name=s3.bucket_name,
        client_id=settings.client_id,
        codec=codec,
        historical_data_enabled=settings.historical_data_enabled,
    )
