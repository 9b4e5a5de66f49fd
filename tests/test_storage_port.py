from typing import Optional

import pytest

from bolt_installation_store.infrastructure.storage.in_memory import InMemoryStorage
from bolt_installation_store.ports.storage import Storage


class WriteOnlyStorage(Storage[str, str]):
    async def store(self, key: str, data: bytes, logger=None) -> None:
        return None

    async def fetch(self, key: str, logger=None) -> Optional[bytes]:
        return None


def test_storage_without_delete_cannot_be_created():
    with pytest.raises(TypeError):
        WriteOnlyStorage()


async def test_default_fetch_multiple_keeps_key_order():
    storage = InMemoryStorage()
    await storage.store("b", b"2")
    await storage.store("a", b"1")

    assert await storage.fetch_multiple(["a", "missing", "b"]) == [b"1", None, b"2"]
    assert storage.keys() == ["a", "b"]
