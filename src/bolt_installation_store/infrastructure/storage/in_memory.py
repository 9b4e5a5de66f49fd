from __future__ import annotations

import logging
from typing import Dict, List, Optional

from bolt_installation_store.ports.storage import Storage

default_logger = logging.getLogger(__name__)


class InMemoryStorage(Storage[str, str]):
    """Process-local storage over path keys; deletion removes every key under a prefix."""

    def __init__(self) -> None:
        self._storage: Dict[str, bytes] = {}

    async def store(self, key: str, data: bytes, logger: Optional[logging.Logger] = None) -> None:
        self._storage[key] = data

    async def fetch(self, key: str, logger: Optional[logging.Logger] = None) -> Optional[bytes]:
        return self._storage.get(key)

    async def delete(self, key_prefix: str, logger: Optional[logging.Logger] = None) -> None:
        log = logger or default_logger
        keys = [key for key in self._storage if key.startswith(key_prefix)]
        if not keys:
            log.warning(f"No installations found to be deleted: prefix = {key_prefix}")
            return
        log.info(f"Going to delete installations: {', '.join(keys)}")
        for key in keys:
            del self._storage[key]

    def keys(self) -> List[str]:
        return sorted(self._storage)
