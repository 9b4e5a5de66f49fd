from __future__ import annotations

from typing import Any, Dict, Optional

from slack_sdk.oauth.installation_store import Installation

from bolt_installation_store.domain.identity import InstallationIdentity

InstallationRecord = Dict[str, Any]

# Fields that make up the installing user's grant.
USER_FIELDS = (
    "user_id",
    "user_token",
    "user_scopes",
    "user_refresh_token",
    "user_token_expires_at",
)

# Subset of USER_FIELDS that carry a usable credential.
USER_TOKEN_FIELDS = (
    "user_token",
    "user_scopes",
    "user_refresh_token",
    "user_token_expires_at",
)


def to_record(installation: Installation) -> InstallationRecord:
    return dict(installation.__dict__)


def from_record(record: InstallationRecord) -> Installation:
    return Installation(**record)


def identity_of(client_id: str, installation: Installation) -> InstallationIdentity:
    """Bot-scope identity the installation is stored under."""
    if installation.is_enterprise_install:
        return InstallationIdentity.organization(client_id, installation.enterprise_id)
    return InstallationIdentity.workspace(client_id, installation.enterprise_id, installation.team_id)


def overlay_user(bot_record: InstallationRecord, user_record: InstallationRecord) -> InstallationRecord:
    """Bot record with its user grant replaced by the one from ``user_record``."""
    merged = dict(bot_record)
    for field in USER_FIELDS:
        merged[field] = user_record.get(field)
    return merged


def strip_user_tokens(record: InstallationRecord) -> InstallationRecord:
    """Bot-only view: keeps who installed the app, drops their token."""
    stripped = dict(record)
    for field in USER_TOKEN_FIELDS:
        stripped[field] = None
    return stripped


def merge_records(
    bot_record: Optional[InstallationRecord],
    user_record: Optional[InstallationRecord],
) -> Optional[InstallationRecord]:
    if bot_record is not None:
        if user_record is not None:
            return overlay_user(bot_record, user_record)
        return strip_user_tokens(bot_record)
    return user_record
