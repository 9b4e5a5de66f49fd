from __future__ import annotations

import asyncio
import logging
from typing import Generic, List, Optional

from slack_sdk.oauth.installation_store import Installation

from bolt_installation_store.domain.identity import InstallationIdentity, InstallationQuery
from bolt_installation_store.domain.records import from_record, identity_of, merge_records, to_record
from bolt_installation_store.domain.time import Instant
from bolt_installation_store.infrastructure.codec.json_codec import JsonInstallationCodec
from bolt_installation_store.ports.codec import InstallationCodec
from bolt_installation_store.ports.storage import D, K, KeyGenerator, Storage


class InstallationNotFoundError(Exception):
    pass


class InstallationStoreService(Generic[K, D]):
    """Backend-agnostic store for OAuth installations.

    Every installation is written twice: once under the app-level (bot) key of its
    workspace or organization and once under the installing user's key. Lookups
    read both and merge them, so a user without their own grant still gets the
    bot credentials of the team.
    """

    def __init__(
        self,
        client_id: str,
        key_generator: KeyGenerator[K, D],
        storage: Storage[K, D],
        codec: Optional[InstallationCodec] = None,
        historical_data_enabled: bool = False,
    ) -> None:
        self.client_id = client_id
        self.key_generator = key_generator
        self.storage = storage
        self.codec = codec or JsonInstallationCodec()
        self.historical_data_enabled = historical_data_enabled
        self.logger = logging.getLogger(__name__)

    async def store_installation(
        self,
        installation: Installation,
        logger: Optional[logging.Logger] = None,
        now: Optional[Instant] = None,
    ) -> None:
        log = logger or self.logger
        bot = identity_of(self.client_id, installation)
        user = bot.for_user(installation.user_id)
        data = self.codec.encode(to_record(installation))

        keys: List[K] = [self.key_generator.generate(bot), self.key_generator.generate(user)]
        if self.historical_data_enabled:
            # Bot and user snapshots of one call share a version so they can be paired later.
            history_version = (now or Instant.utc_now()).history_version()
            keys += [
                self.key_generator.generate(bot, history_version),
                self.key_generator.generate(user, history_version),
            ]

        log.debug(f"Storing installation of {user} under {len(keys)} keys")
        await asyncio.gather(*(self.storage.store(key, data, log) for key in keys))

    async def fetch_installation(
        self,
        query: InstallationQuery,
        logger: Optional[logging.Logger] = None,
        history_version: Optional[str] = None,
    ) -> Installation:
        log = logger or self.logger
        identity = InstallationIdentity.from_query(self.client_id, query)

        keys: List[K] = [self.key_generator.generate(identity.for_bot(), history_version)]
        if query.user_id:
            keys.append(self.key_generator.generate(identity, history_version))

        fetched = await self.storage.fetch_multiple(keys, log)
        records = [self.codec.decode(data) if data is not None else None for data in fetched]
        bot_record = records[0]
        user_record = records[1] if len(records) > 1 else None

        merged = merge_records(bot_record, user_record)
        if merged is None:
            raise InstallationNotFoundError(f"No valid installation found: query = {query.model_dump()}")
        return from_record(merged)

    async def delete_installation(
        self,
        query: InstallationQuery,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        log = logger or self.logger
        identity = InstallationIdentity.from_query(self.client_id, query)
        key = self.key_generator.generate_for_deletion(identity)
        log.debug(f"Deleting installations of {identity}")
        await self.storage.delete(key, log)
