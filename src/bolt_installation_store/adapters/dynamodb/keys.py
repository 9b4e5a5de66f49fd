from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple

from bolt_installation_store.domain.identity import NONE_SENTINEL, InstallationIdentity
from bolt_installation_store.ports.storage import KeyGenerator

# Attribute-value map as used by the low-level DynamoDB API, e.g. {"PK": {"S": "..."}}.
DynamoDbKey = Dict[str, Dict[str, Any]]

BOT_USER = "___bot___"
LATEST = "latest"


@dataclass(frozen=True)
class DynamoDbDeletionKey:
    """Exact partition value plus a sort-key prefix, resolved with a Query."""

    partition_key_name: str
    sort_key_name: str
    partition_value: str
    sort_prefix: str

    def to_query_input(self) -> Dict[str, Any]:
        return {
            "KeyConditionExpression": "#pk = :pk AND begins_with(#sk, :sk)",
            "ExpressionAttributeNames": {"#pk": self.partition_key_name, "#sk": self.sort_key_name},
            "ExpressionAttributeValues": {":pk": {"S": self.partition_value}, ":sk": {"S": self.sort_prefix}},
        }


class CompositeKeyGenerator(KeyGenerator[DynamoDbKey, DynamoDbDeletionKey]):
    """Partition key ``Client#..$Enterprise#..$Team#..``, sort key ``Type#Token$User#..$Version#..``."""

    def __init__(self, partition_key_name: str = "PK", sort_key_name: str = "SK") -> None:
        self.partition_key_name = partition_key_name
        self.sort_key_name = sort_key_name

    @property
    def key_attribute_names(self) -> Tuple[str, str]:
        return self.partition_key_name, self.sort_key_name

    def generate(self, identity: InstallationIdentity, history_version: Optional[str] = None) -> DynamoDbKey:
        return {
            self.partition_key_name: {"S": self.partition_value(identity)},
            self.sort_key_name: {"S": self.sort_value(identity, history_version)},
        }

    def generate_for_deletion(self, identity: InstallationIdentity) -> DynamoDbDeletionKey:
        # Without a user id the prefix stops at "User#" and so covers the bot and every user.
        user_part = "User#" if identity.user_id is None else f"User#{identity.user_id}$"
        return DynamoDbDeletionKey(
            partition_key_name=self.partition_key_name,
            sort_key_name=self.sort_key_name,
            partition_value=self.partition_value(identity),
            sort_prefix=f"Type#Token${user_part}",
        )

    def extract_key(self, item: Mapping[str, Dict[str, Any]]) -> DynamoDbKey:
        return {name: item[name] for name in self.key_attribute_names}

    def keys_equal(self, a: Mapping[str, Dict[str, Any]], b: Mapping[str, Dict[str, Any]]) -> bool:
        return all(a.get(name) == b.get(name) for name in self.key_attribute_names)

    def partition_value(self, identity: InstallationIdentity) -> str:
        return "$".join(
            [
                f"Client#{identity.client_id}",
                f"Enterprise#{identity.enterprise_id or NONE_SENTINEL}",
                f"Team#{identity.team_id or NONE_SENTINEL}",
            ]
        )

    def sort_value(self, identity: InstallationIdentity, history_version: Optional[str] = None) -> str:
        return "$".join(
            [
                "Type#Token",
                f"User#{identity.user_id or BOT_USER}",
                f"Version#{history_version or LATEST}",
            ]
        )
