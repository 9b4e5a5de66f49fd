from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Generic, List, Optional, Protocol, Sequence, TypeVar

from bolt_installation_store.domain.identity import InstallationIdentity

K = TypeVar("K")
D = TypeVar("D")


class StorageError(Exception):
    """The backend reported a failure for part of a request."""


class KeyGenerator(Protocol[K, D]):
    """Derives backend-specific storage keys from an installation identity."""

    def generate(self, identity: InstallationIdentity, history_version: Optional[str] = None) -> K:
        ...

    def generate_for_deletion(self, identity: InstallationIdentity) -> D:
        ...


class Storage(ABC, Generic[K, D]):
    """Byte-oriented persistence keyed by a backend-specific key type."""

    @abstractmethod
    async def store(self, key: K, data: bytes, logger: Optional[logging.Logger] = None) -> None:
        raise NotImplementedError

    @abstractmethod
    async def fetch(self, key: K, logger: Optional[logging.Logger] = None) -> Optional[bytes]:
        raise NotImplementedError

    async def fetch_multiple(
        self, keys: Sequence[K], logger: Optional[logging.Logger] = None
    ) -> List[Optional[bytes]]:
        return list(await asyncio.gather(*(self.fetch(key, logger) for key in keys)))

    @abstractmethod
    async def delete(self, key: D, logger: Optional[logging.Logger] = None) -> None:
        raise NotImplementedError
