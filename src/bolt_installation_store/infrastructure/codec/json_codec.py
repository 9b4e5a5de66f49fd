from __future__ import annotations

import json

from bolt_installation_store.domain.records import InstallationRecord
from bolt_installation_store.ports.codec import InstallationCodec, InstallationDecodeError

JSON_SEPARATORS = (",", ":")


def dump_json(record: InstallationRecord) -> bytes:
    return json.dumps(record, separators=JSON_SEPARATORS, ensure_ascii=False).encode("utf-8")


def load_json(data: bytes) -> InstallationRecord:
    try:
        return json.loads(data.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InstallationDecodeError(f"Stored installation is not valid JSON: {e}") from e


class JsonInstallationCodec(InstallationCodec):
    """Stores installations as plain UTF-8 JSON."""

    def encode(self, record: InstallationRecord) -> bytes:
        return dump_json(record)

    def decode(self, data: bytes) -> InstallationRecord:
        return load_json(data)
