from bolt_installation_store.infrastructure.codec.binary_codec import BinaryInstallationCodec
from bolt_installation_store.infrastructure.codec.json_codec import JsonInstallationCodec

__all__ = ["BinaryInstallationCodec", "JsonInstallationCodec"]
