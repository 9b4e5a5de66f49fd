"""Versioned binary envelope for stored installations.

Layout of an encoded installation (format version 1)::

    [0x01][encryption header][compression code][body]

The encryption header is a single zero byte when encryption is disabled,
otherwise ``[name length][algorithm name][key length][iv length][iv]``
followed by the ciphertext of everything after it. The compression code is
``b`` for Brotli and ``r`` for raw JSON. Buffers starting with ``{`` are
treated as plain JSON written before the envelope existed.
"""

from __future__ import annotations

import logging
import os
from typing import Dict, Optional, Tuple

import brotli
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from bolt_installation_store.config import CodecSettings, EncryptionSettings
from bolt_installation_store.domain.records import InstallationRecord
from bolt_installation_store.infrastructure.codec.json_codec import dump_json, load_json
from bolt_installation_store.ports.codec import (
    CodecConfigurationError,
    DecryptionError,
    InstallationCodec,
    InstallationDecodeError,
    UnsupportedCompressionError,
    UnsupportedFormatError,
)

logger = logging.getLogger(__name__)

FORMAT_VERSION_1 = 0x01
LEGACY_JSON_MARKER = 0x7B  # "{"

NO_ENCRYPTION = 0x00
BROTLI = ord("b")
RAW = ord("r")

# scrypt cost parameters. Changing them changes every derived key.
SCRYPT_N = 2**14
SCRYPT_R = 8
SCRYPT_P = 1

_MODES = {
    "ctr": modes.CTR,
    "cbc": modes.CBC,
}
_PADDED_MODES = {"cbc"}


def _single_byte(value: int, field: str) -> bytes:
    if value < 0 or value >= 256:
        raise CodecConfigurationError(f"{field} must be >= 0 and < 256 but was {value}")
    return bytes([value])


def _parse_algorithm(name: str) -> Tuple[int, str]:
    """Split an OpenSSL-style name such as ``aes-256-ctr`` into key bits and mode."""
    parts = name.lower().split("-")
    if len(parts) != 3 or parts[0] != "aes" or parts[2] not in _MODES or not parts[1].isdigit():
        raise ValueError(f"Unsupported encryption algorithm: {name}")
    return int(parts[1]), parts[2]


class BinaryInstallationCodec(InstallationCodec):
    """Compresses and/or encrypts installations inside the version 1 envelope."""

    def __init__(self, settings: Optional[CodecSettings] = None) -> None:
        self.settings = settings or CodecSettings()
        self._keys: Dict[int, bytes] = {}

    @classmethod
    def create_default(cls, password: str, salt: str) -> "BinaryInstallationCodec":
        """Brotli compression plus AES-256-CTR encryption."""
        return cls(
            CodecSettings(
                compression=True,
                encryption=EncryptionSettings(password=password, salt=salt),
            )
        )

    # Encoding ----------------------------------------------------------------

    def encode(self, record: InstallationRecord) -> bytes:
        data = self._compress(dump_json(record))
        data = self._encrypt(data)
        return bytes([FORMAT_VERSION_1]) + data

    def _compress(self, data: bytes) -> bytes:
        if self.settings.compression:
            return bytes([BROTLI]) + brotli.compress(data)
        return bytes([RAW]) + data

    def _encrypt(self, data: bytes) -> bytes:
        encryption = self.settings.encryption
        if encryption is None:
            return bytes([NO_ENCRYPTION]) + data

        name = encryption.algorithm.encode("ascii")
        header = (
            _single_byte(len(name), "algorithm name length")
            + name
            + _single_byte(encryption.key_length, "key_length")
            + _single_byte(encryption.iv_length, "iv_length")
        )

        iv = os.urandom(encryption.iv_length)
        try:
            cipher, padded = self._cipher(encryption.algorithm, encryption.key_length, iv)
        except ValueError as e:
            raise CodecConfigurationError(str(e)) from e

        if padded:
            padder = padding.PKCS7(algorithms.AES.block_size).padder()
            data = padder.update(data) + padder.finalize()
        encryptor = cipher.encryptor()
        return header + iv + encryptor.update(data) + encryptor.finalize()

    # Decoding ----------------------------------------------------------------

    def decode(self, data: bytes) -> InstallationRecord:
        if not data:
            raise UnsupportedFormatError("Stored installation is empty")

        first = data[0]
        if first == LEGACY_JSON_MARKER:
            return load_json(data)
        if first == FORMAT_VERSION_1:
            return self._decode_v1(data[1:])
        raise UnsupportedFormatError(f"Detected format version that is not supported: {first}")

    def _decode_v1(self, data: bytes) -> InstallationRecord:
        encrypted = len(data) > 0 and data[0] != NO_ENCRYPTION
        payload = self._decrypt(data)
        try:
            record = load_json(self._decompress(payload))
        except InstallationDecodeError as e:
            if encrypted:
                raise DecryptionError(f"Decrypted installation is unreadable (wrong password or salt?): {e}") from e
            raise
        if not isinstance(record, dict):
            raise InstallationDecodeError(f"Stored installation is not an object: {type(record).__name__}")
        return record

    def _decrypt(self, data: bytes) -> bytes:
        if not data:
            raise UnsupportedFormatError("Encryption header is missing")

        name_length = data[0]
        if name_length == NO_ENCRYPTION:
            return data[1:]

        pos = 1
        header_end = pos + name_length + 2
        if len(data) < header_end:
            raise UnsupportedFormatError("Encryption header is truncated")
        try:
            algorithm = data[pos : pos + name_length].decode("ascii")
        except UnicodeDecodeError as e:
            raise DecryptionError("Encryption algorithm name is not ASCII") from e
        pos += name_length
        key_length = data[pos]
        iv_length = data[pos + 1]
        pos += 2
        iv = data[pos : pos + iv_length]
        if len(iv) != iv_length:
            raise UnsupportedFormatError("Initialization vector is truncated")
        ciphertext = data[pos + iv_length :]

        if self.settings.encryption is None:
            raise DecryptionError("Installation is encrypted but no encryption settings are configured")

        try:
            cipher, padded = self._cipher(algorithm, key_length, iv)
            decryptor = cipher.decryptor()
            plain = decryptor.update(ciphertext) + decryptor.finalize()
            if padded:
                unpadder = padding.PKCS7(algorithms.AES.block_size).unpadder()
                plain = unpadder.update(plain) + unpadder.finalize()
        except ValueError as e:
            raise DecryptionError(f"Failed to decrypt installation: {e}") from e
        return plain

    def _decompress(self, data: bytes) -> bytes:
        if not data:
            raise UnsupportedCompressionError("Compression code is missing")

        code = data[0]
        if code == BROTLI:
            try:
                return brotli.decompress(data[1:])
            except brotli.error as e:
                raise InstallationDecodeError(f"Failed to decompress installation: {e}") from e
        if code == RAW:
            return data[1:]
        raise UnsupportedCompressionError(f"Detected compression algorithm that is not supported: {code}")

    # Keys --------------------------------------------------------------------

    def _cipher(self, algorithm: str, key_length: int, iv: bytes) -> Tuple[Cipher, bool]:
        key_bits, mode_name = _parse_algorithm(algorithm)
        if key_bits != key_length * 8:
            raise ValueError(f"Invalid key length {key_length} for {algorithm}")
        mode = _MODES[mode_name](iv)
        cipher = Cipher(algorithms.AES(self._key(key_length)), mode)
        return cipher, mode_name in _PADDED_MODES

    def _key(self, key_length: int) -> bytes:
        # Derived once per codec instance and key length.
        key = self._keys.get(key_length)
        if key is None:
            encryption = self.settings.encryption
            assert encryption is not None
            logger.debug(f"Deriving {key_length}-byte installation encryption key")
            kdf = Scrypt(salt=encryption.salt.encode("utf-8"), length=key_length, n=SCRYPT_N, r=SCRYPT_R, p=SCRYPT_P)
            key = kdf.derive(encryption.password.encode("utf-8"))
            self._keys[key_length] = key
        return key
