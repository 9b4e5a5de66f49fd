from __future__ import annotations

from typing import Optional

from bolt_installation_store.domain.identity import NONE_SENTINEL, InstallationIdentity
from bolt_installation_store.ports.storage import KeyGenerator

LATEST = "latest"


class PathKeyGenerator(KeyGenerator[str, str]):
    """Object keys of the form ``{client}/{enterprise}-{team}/installer[-{user}]-{version}``.

    The deletion key is the same path without the version, used as a listing prefix.
    """

    def generate(self, identity: InstallationIdentity, history_version: Optional[str] = None) -> str:
        return self._installer_key(identity, history_version or LATEST)

    def generate_for_deletion(self, identity: InstallationIdentity) -> str:
        return self._installer_key(identity, "")

    def base_key(self, identity: InstallationIdentity) -> str:
        elements = [identity.enterprise_id or NONE_SENTINEL, identity.team_id or NONE_SENTINEL]
        return f"{identity.client_id}/{'-'.join(elements)}"

    def _installer_key(self, identity: InstallationIdentity, version: str) -> str:
        base = self.base_key(identity)
        if identity.user_id is None:
            return f"{base}/installer-{version}"
        return f"{base}/installer-{identity.user_id}-{version}"
