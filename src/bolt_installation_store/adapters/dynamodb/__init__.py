from bolt_installation_store.adapters.dynamodb.keys import CompositeKeyGenerator, DynamoDbDeletionKey
from bolt_installation_store.adapters.dynamodb.storage import DynamoDbStorage

__all__ = ["CompositeKeyGenerator", "DynamoDbDeletionKey", "DynamoDbStorage"]
