"""Tests for reading stored admin events back from Keycloak."""
from unittest.mock import Mock

from fga_publisher.core.events import OperationType, ResourceKind
from fga_publisher.core.keycloak.admin_events import KeycloakAdminEventSource


def _event(i):
    return {
        "id": f"evt-{i}",
        "realmId": "acme-id",
        "operationType": "CREATE",
        "resourceType": "REALM_ROLE_MAPPING",
        "resourcePath": f"users/u{i}/role-mappings/realm",
        "representation": '[{"name": "admin"}]',
    }


def test_pages_until_short_page():
    events = [_event(i) for i in range(5)]
    client = Mock()
    client.get.side_effect = lambda path, params=None: Mock(
        json=lambda: events[params["first"]:params["first"] + params["max"]]
    )

    source = KeycloakAdminEventSource(client, "acme", page_size=2, date_from="2024-01-01")
    descriptors = list(source)

    assert [d.event_id for d in descriptors] == [f"evt-{i}" for i in range(5)]
    assert descriptors[0].resource_kind == ResourceKind.USER_ROLE_MAPPING
    assert descriptors[0].operation == OperationType.CREATE
    firsts = [call.kwargs["params"]["first"] for call in client.get.call_args_list]
    assert firsts == [0, 2, 4]


def test_fetch_page_filters_handled_types():
    client = Mock()
    client.get.return_value = Mock(json=lambda: [])

    assert KeycloakAdminEventSource(client, "acme").fetch_page() == []

    path = client.get.call_args.args[0]
    params = client.get.call_args.kwargs["params"]
    assert path == "/admin/realms/acme/admin-events"
    assert params["operationTypes"] == ["CREATE", "DELETE"]
    assert "REALM_ROLE_MAPPING" in params["resourceTypes"]
    assert params["max"] == 100
    assert "dateFrom" not in params
