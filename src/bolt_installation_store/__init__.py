from .adapters.dynamodb.keys import CompositeKeyGenerator
from .adapters.dynamodb.storage import DynamoDbStorage
from .adapters.s3.keys import PathKeyGenerator
from .adapters.s3.storage import S3Storage
from .adapters.slack.events import register_uninstall_handlers
from .adapters.slack.installation_store import SlackInstallationStore
from .application.services import InstallationNotFoundError, InstallationStoreService
from .config import DeletionOption, StoreSettings
from .domain.identity import InstallationIdentity, InstallationQuery
from .factory import create_dynamodb_installation_store, create_installation_store, create_s3_installation_store
from .infrastructure.codec.binary_codec import BinaryInstallationCodec
from .infrastructure.codec.json_codec import JsonInstallationCodec
from .infrastructure.storage.in_memory import InMemoryStorage

__all__ = [
    "InstallationStoreService",
    "InstallationNotFoundError",
    "InstallationIdentity",
    "InstallationQuery",
    "BinaryInstallationCodec",
    "JsonInstallationCodec",
    "PathKeyGenerator",
    "S3Storage",
    "CompositeKeyGenerator",
    "DynamoDbStorage",
    "InMemoryStorage",
    "SlackInstallationStore",
    "register_uninstall_handlers",
    "DeletionOption",
    "StoreSettings",
    "create_installation_store",
    "create_s3_installation_store",
    "create_dynamodb_installation_store",
]
