from __future__ import annotations

from typing import Protocol

from bolt_installation_store.domain.records import InstallationRecord


class InstallationDecodeError(Exception):
    """Stored bytes could not be turned back into an installation record."""


class UnsupportedFormatError(InstallationDecodeError):
    pass


class UnsupportedCompressionError(InstallationDecodeError):
    pass


class DecryptionError(InstallationDecodeError):
    pass


class CodecConfigurationError(ValueError):
    pass


class InstallationCodec(Protocol):
    """Serializes installation records to the bytes kept in storage."""

    def encode(self, record: InstallationRecord) -> bytes:
        ...

    def decode(self, data: bytes) -> InstallationRecord:
        ...
