from bolt_installation_store.adapters.s3.keys import PathKeyGenerator
from bolt_installation_store.adapters.s3.storage import S3Storage

__all__ = ["PathKeyGenerator", "S3Storage"]
