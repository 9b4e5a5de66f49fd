from __future__ import annotations

import logging
from typing import Optional

from slack_sdk.oauth.installation_store import Bot, Installation
from slack_sdk.oauth.installation_store.async_installation_store import AsyncInstallationStore

from bolt_installation_store.application.services import InstallationNotFoundError, InstallationStoreService
from bolt_installation_store.domain.identity import InstallationQuery


class SlackInstallationStore(AsyncInstallationStore):
    """Exposes an InstallationStoreService through slack-sdk's async installation store interface.

    The SDK expects ``None`` for unknown installations, so not-found errors from the
    service are translated here. Deletion without a user id removes the whole
    workspace (or organization) scope, including every user's records.
    """

    def __init__(self, service: InstallationStoreService, logger: Optional[logging.Logger] = None) -> None:
        self.service = service
        self._logger = logger or logging.getLogger(__name__)

    @property
    def logger(self) -> logging.Logger:
        return self._logger

    async def async_save(self, installation: Installation):
        await self.service.store_installation(installation, self.logger)

    async def async_find_installation(
        self,
        *,
        enterprise_id: Optional[str],
        team_id: Optional[str],
        user_id: Optional[str] = None,
        is_enterprise_install: Optional[bool] = False,
    ) -> Optional[Installation]:
        query = InstallationQuery(
            enterprise_id=enterprise_id,
            team_id=team_id,
            user_id=user_id,
            is_enterprise_install=bool(is_enterprise_install),
        )
        try:
            return await self.service.fetch_installation(query, self.logger)
        except InstallationNotFoundError:
            self.logger.debug(f"No installation found: {query.model_dump()}")
            return None

    async def async_find_bot(
        self,
        *,
        enterprise_id: Optional[str],
        team_id: Optional[str],
        is_enterprise_install: Optional[bool] = False,
    ) -> Optional[Bot]:
        installation = await self.async_find_installation(
            enterprise_id=enterprise_id,
            team_id=team_id,
            is_enterprise_install=is_enterprise_install,
        )
        if installation is None or installation.bot_token is None:
            return None
        return installation.to_bot()

    async def async_delete_bot(
        self,
        *,
        enterprise_id: Optional[str],
        team_id: Optional[str],
        is_enterprise_install: Optional[bool] = False,
    ) -> None:
        await self.async_delete_installation(
            enterprise_id=enterprise_id,
            team_id=team_id,
            is_enterprise_install=is_enterprise_install,
        )

    async def async_delete_installation(
        self,
        *,
        enterprise_id: Optional[str],
        team_id: Optional[str],
        user_id: Optional[str] = None,
        is_enterprise_install: Optional[bool] = False,
    ) -> None:
        query = InstallationQuery(
            enterprise_id=enterprise_id,
            team_id=team_id,
            user_id=user_id,
            is_enterprise_install=bool(is_enterprise_install),
        )
        await self.service.delete_installation(query, self.logger)

    async def async_delete_all(
        self,
        *,
        enterprise_id: Optional[str],
        team_id: Optional[str],
        is_enterprise_install: Optional[bool] = False,
    ) -> None:
        # The bot-scope deletion already covers every user of the team.
        await self.async_delete_bot(
            enterprise_id=enterprise_id,
            team_id=team_id,
            is_enterprise_install=is_enterprise_install,
        )
