from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, model_validator

# Literal written into storage keys for absent enterprise/team ids.
NONE_SENTINEL = "none"


class InstallationQuery(BaseModel):
    """Lookup/deletion request as issued by the Bolt framework."""

    enterprise_id: Optional[str] = None
    team_id: Optional[str] = None
    user_id: Optional[str] = None
    is_enterprise_install: bool = False

    @model_validator(mode="after")
    def validate_addressable(self) -> "InstallationQuery":
        if not (self.enterprise_id or self.team_id):
            raise ValueError("enterprise_id or team_id is required")
        return self


class InstallationIdentity(BaseModel):
    """Addressing tuple for every stored record.

    Organization-wide installs are keyed by ``enterprise_id`` alone; the team id
    is dropped even if the caller knows which workspace the request came from.
    Single-workspace installs are keyed by both ids, with ``enterprise_id``
    absent for workspaces outside an Enterprise Grid.
    """

    model_config = ConfigDict(frozen=True)

    client_id: str
    enterprise_id: Optional[str] = None
    team_id: Optional[str] = None
    user_id: Optional[str] = None

    @model_validator(mode="after")
    def validate_addressable(self) -> "InstallationIdentity":
        if not (self.enterprise_id or self.team_id):
            raise ValueError("enterprise_id or team_id is required")
        return self

    @classmethod
    def organization(
        cls, client_id: str, enterprise_id: Optional[str], user_id: Optional[str] = None
    ) -> "InstallationIdentity":
        return cls(client_id=client_id, enterprise_id=enterprise_id, team_id=None, user_id=user_id)

    @classmethod
    def workspace(
        cls,
        client_id: str,
        enterprise_id: Optional[str],
        team_id: Optional[str],
        user_id: Optional[str] = None,
    ) -> "InstallationIdentity":
        return cls(client_id=client_id, enterprise_id=enterprise_id, team_id=team_id, user_id=user_id)

    @classmethod
    def from_query(cls, client_id: str, query: InstallationQuery) -> "InstallationIdentity":
        if query.is_enterprise_install:
            return cls.organization(client_id, query.enterprise_id, query.user_id)
        return cls.workspace(client_id, query.enterprise_id, query.team_id, query.user_id)

    @property
    def is_bot_scope(self) -> bool:
        return self.user_id is None

    def for_bot(self) -> "InstallationIdentity":
        return self.model_copy(update={"user_id": None})

    def for_user(self, user_id: str) -> "InstallationIdentity":
        return self.model_copy(update={"user_id": user_id})
