import pytest

from bolt_installation_store.adapters.dynamodb.keys import CompositeKeyGenerator
from bolt_installation_store.adapters.s3.keys import PathKeyGenerator
from bolt_installation_store.domain.identity import InstallationIdentity, InstallationQuery

WORKSPACE = InstallationIdentity.workspace("client", None, "T1")
GRID_WORKSPACE = InstallationIdentity.workspace("client", "E1", "T1")
ORGANIZATION = InstallationIdentity.organization("client", "E1")


def test_path_keys_for_bot_and_user():
    keys = PathKeyGenerator()

    assert keys.generate(WORKSPACE) == "client/none-T1/installer-latest"
    assert keys.generate(WORKSPACE.for_user("U1")) == "client/none-T1/installer-U1-latest"
    assert keys.generate(GRID_WORKSPACE) == "client/E1-T1/installer-latest"
    assert keys.generate(ORGANIZATION.for_user("U1")) == "client/E1-none/installer-U1-latest"


def test_path_keys_for_history_versions():
    keys = PathKeyGenerator()

    assert keys.generate(WORKSPACE, "1762761600000") == "client/none-T1/installer-1762761600000"
    assert keys.generate(WORKSPACE.for_user("U1"), "1762761600000") == "client/none-T1/installer-U1-1762761600000"


def test_path_deletion_keys_are_prefixes_without_version():
    keys = PathKeyGenerator()

    assert keys.generate_for_deletion(WORKSPACE) == "client/none-T1/installer-"
    assert keys.generate_for_deletion(WORKSPACE.for_user("U1")) == "client/none-T1/installer-U1-"
    assert keys.generate(WORKSPACE.for_user("U1")).startswith(keys.generate_for_deletion(WORKSPACE))
    assert not keys.generate(WORKSPACE.for_user("U12")).startswith(
        keys.generate_for_deletion(WORKSPACE.for_user("U1"))
    )


def test_composite_keys():
    keys = CompositeKeyGenerator("PK", "SK")

    assert keys.generate(WORKSPACE) == {
        "PK": {"S": "Client#client$Enterprise#none$Team#T1"},
        "SK": {"S": "Type#Token$User#___bot___$Version#latest"},
    }
    assert keys.generate(ORGANIZATION.for_user("U1"), "42") == {
        "PK": {"S": "Client#client$Enterprise#E1$Team#none"},
        "SK": {"S": "Type#Token$User#U1$Version#42"},
    }


def test_composite_deletion_key_for_team_covers_bot_and_users():
    keys = CompositeKeyGenerator("PK", "SK")
    deletion = keys.generate_for_deletion(WORKSPACE)

    assert deletion.to_query_input() == {
        "KeyConditionExpression": "#pk = :pk AND begins_with(#sk, :sk)",
        "ExpressionAttributeNames": {"#pk": "PK", "#sk": "SK"},
        "ExpressionAttributeValues": {
            ":pk": {"S": "Client#client$Enterprise#none$Team#T1"},
            ":sk": {"S": "Type#Token$User#"},
        },
    }


def test_composite_deletion_key_for_user_stops_at_version():
    keys = CompositeKeyGenerator()
    deletion = keys.generate_for_deletion(WORKSPACE.for_user("U1"))

    assert deletion.sort_prefix == "Type#Token$User#U1$"
    assert keys.sort_value(WORKSPACE.for_user("U1"), "42").startswith(deletion.sort_prefix)
    assert not keys.sort_value(WORKSPACE.for_user("U12")).startswith(deletion.sort_prefix)


def test_composite_key_equality_and_extraction():
    keys = CompositeKeyGenerator("Partition", "Sort")
    key = keys.generate(WORKSPACE.for_user("U1"))
    item = {**key, "Installation": {"B": b"data"}, "Owner": {"S": "app"}}

    assert keys.key_attribute_names == ("Partition", "Sort")
    assert keys.extract_key(item) == key
    assert keys.keys_equal(item, key)
    assert not keys.keys_equal(item, keys.generate(WORKSPACE))


def test_enterprise_install_query_ignores_team_id():
    query = InstallationQuery(enterprise_id="E1", team_id="T9", user_id="U1", is_enterprise_install=True)
    identity = InstallationIdentity.from_query("client", query)

    assert identity == ORGANIZATION.for_user("U1")
    assert PathKeyGenerator().generate(identity) == "client/E1-none/installer-U1-latest"


def test_workspace_query_keeps_team_id():
    query = InstallationQuery(enterprise_id="E1", team_id="T1")
    assert InstallationIdentity.from_query("client", query) == GRID_WORKSPACE


def test_query_without_enterprise_or_team_is_rejected():
    with pytest.raises(ValueError):
        InstallationQuery(user_id="U1")


def test_enterprise_install_query_without_enterprise_id_is_rejected():
    query = InstallationQuery(team_id="T1", is_enterprise_install=True)

    with pytest.raises(ValueError):
        InstallationIdentity.from_query("client", query)
