from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional

from slack_bolt.async_app import AsyncApp
from slack_bolt.context.async_context import AsyncBoltContext

from bolt_installation_store.application.services import InstallationStoreService
from bolt_installation_store.domain.identity import InstallationQuery


class UninstallListeners:
    """Bolt listeners that remove stored credentials when Slack revokes them."""

    def __init__(self, service: InstallationStoreService) -> None:
        self.service = service

    def register(self, app: AsyncApp) -> None:
        app.event("tokens_revoked")(self.handle_tokens_revoked)
        app.event("app_uninstalled")(self.handle_app_uninstalled)

    async def handle_tokens_revoked(
        self,
        event: Dict[str, Any],
        context: AsyncBoltContext,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        user_ids = (event.get("tokens") or {}).get("oauth") or []
        if not user_ids:
            return

        queries = [_query_from(context, user_id) for user_id in user_ids]
        await asyncio.gather(*(self.service.delete_installation(query, logger) for query in queries))

    async def handle_app_uninstalled(
        self,
        context: AsyncBoltContext,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        await self.service.delete_installation(_query_from(context), logger)


def register_uninstall_handlers(app: AsyncApp, service: InstallationStoreService) -> UninstallListeners:
    listeners = UninstallListeners(service)
    listeners.register(app)
    return listeners


def _query_from(context: AsyncBoltContext, user_id: Optional[str] = None) -> InstallationQuery:
    return InstallationQuery(
        enterprise_id=context.enterprise_id,
        team_id=context.team_id,
        user_id=user_id,
        is_enterprise_install=bool(context.is_enterprise_install),
    )
