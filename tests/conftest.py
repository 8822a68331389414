"""Pytest shared fixtures: network guard, fake OpenFGA server, fake identity store."""
import json
import pathlib
import sys
from typing import Optional

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import pytest
import requests

from fga_publisher.core.keycloak.exceptions import RealmNotFoundError, RoleNotFoundError
from fga_publisher.core.keycloak.identity import RealmHandle

OPENFGA_URL = "http://openfga:8080"


class StubResponse:
    """Just enough of requests.Response for the clients under test."""

    def __init__(self, payload=None, status_code: int = 200, url: str = ""):
        self._payload = payload
        self.status_code = status_code
        self.url = url
        self.text = json.dumps(payload) if payload is not None else ""

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON body")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(response=self)


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Prevent tests from reaching Keycloak or OpenFGA unless a fixture routes the call."""
    def _stub_post(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP POST in unit test: {url}")

    def _stub_get(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected HTTP GET in unit test: {url}")

    monkeypatch.setattr(requests, "post", _stub_post)
    monkeypatch.setattr(requests, "get", _stub_get)


# ─────────────────────────────────────────────────────────────────────────────
# Fake OpenFGA Server
# ─────────────────────────────────────────────────────────────────────────────
def authorization_model(model_id: str = "01MODEL") -> dict:
    """Authorization model with the relations the default mapper emits."""
    return {
        "id": model_id,
        "schema_version": "1.1",
        "type_definitions": [
            {"type": "user"},
            {
                "type": "role",
                "relations": {"assignee": {"this": {}}, "parent": {"this": {}}, "parent_group": {"this": {}}},
                "metadata": {
                    "relations": {
                        "assignee": {"directly_related_user_types": [{"type": "user"}]},
                        "parent": {"directly_related_user_types": [{"type": "role"}]},
                        "parent_group": {"directly_related_user_types": [{"type": "group"}]},
                    }
                },
            },
            {
                "type": "group",
                "relations": {"assignee": {"this": {}}},
                "metadata": {"relations": {"assignee": {"directly_related_user_types": [{"type": "user"}]}}},
            },
        ],
    }


class FakeOpenFgaServer:
    """Routes stubbed requests.get/post calls for one OpenFGA endpoint."""

    def __init__(self, api_url: str = OPENFGA_URL):
        self.api_url = api_url
        self.stores = []
        self.models = {}
        self.writes = []
        self.calls = []
        self.write_status = 200
        self.write_error = {"code": "validation_error", "message": "invalid relation"}

    def add_store(self, name: str, store_id: Optional[str] = None, models: Optional[list] = None) -> str:
        store_id = store_id or f"store-{name}"
        self.stores.append({"id": store_id, "name": name})
        self.models[store_id] = [authorization_model(f"model-{name}")] if models is None else models
        return store_id

    def list_store_calls(self) -> int:
        return sum(1 for method, path in self.calls if method == "GET" and path == "/stores")

    def get(self, url, params=None, headers=None, timeout=None, **kwargs):
        path = url[len(self.api_url):]
        self.calls.append(("GET", path))
        if path == "/stores":
            return StubResponse({"stores": list(self.stores), "continuation_token": ""}, url=url)
        if path.startswith("/stores/") and path.endswith("/authorization-models"):
            store_id = path.split("/")[2]
            return StubResponse({"authorization_models": self.models.get(store_id, [])}, url=url)
        return StubResponse({"code": "undefined_endpoint", "message": "not found"}, 404, url)

    def post(self, url, json=None, data=None, headers=None, timeout=None, **kwargs):
        path = url[len(self.api_url):]
        self.calls.append(("POST", path))
        if path.startswith("/stores/") and path.endswith("/write"):
            self.writes.append((path.split("/")[2], json))
            if self.write_status >= 400:
                return StubResponse(self.write_error, self.write_status, url)
            return StubResponse({}, url=url)
        return StubResponse({"code": "undefined_endpoint", "message": "not found"}, 404, url)


@pytest.fixture()
def fake_openfga(monkeypatch):
    """Fake OpenFGA at OPENFGA_URL with no stores; tests add what they need."""
    server = FakeOpenFgaServer()
    monkeypatch.setattr(requests, "get", server.get)
    monkeypatch.setattr(requests, "post", server.post)
    return server


# ─────────────────────────────────────────────────────────────────────────────
# Fake Identity Store
# ─────────────────────────────────────────────────────────────────────────────
class FakeIdentity:
    """In-memory IdentityLookup: realm ids to names, (realm, role id) to role names."""

    def __init__(self, realms=None, roles=None):
        self.realms = dict(realms or {})
        self.roles = dict(roles or {})
        self.role_lookups = []

    def lookup_role_name_by_id(self, realm, role_id):
        self.role_lookups.append((realm.name, role_id))
        try:
            return self.roles[(realm.name, role_id)]
        except KeyError:
            raise RoleNotFoundError(f"Role id '{role_id}' not found in realm '{realm.name}'")

    def lookup_realm_by_name(self, name):
        for realm_id, realm_name in self.realms.items():
            if realm_name == name:
                return RealmHandle(id=realm_id, name=realm_name)
        raise RealmNotFoundError(f"Realm '{name}' not found")

    def lookup_realm_by_id(self, realm_id):
        if realm_id not in self.realms:
            raise RealmNotFoundError(f"Realm id '{realm_id}' not found")
        return RealmHandle(id=realm_id, name=self.realms[realm_id])


@pytest.fixture()
def fake_identity():
    """Realms acme (id acme-id) and master (id master-id) with a few roles."""
    return FakeIdentity(
        realms={"acme-id": "acme", "master-id": "master"},
        roles={
            ("acme", "r-viewer"): "viewer",
            ("master", "r-viewer"): "master-viewer",
            ("acme", "r-editor"): "editor",
        },
    )


@pytest.fixture()
def make_event():
    """Factory for raw admin events (AdminEventRepresentation dicts)."""

    def _make(
        resource_type="REALM_ROLE_MAPPING",
        resource_path="users/u1/role-mappings/realm",
        operation="CREATE",
        representation='[{"id": "r-admin", "name": "admin"}]',
        realm_id="acme-id",
        auth_realm_id="master-id",
        **extra,
    ):
        event = {
            "id": extra.pop("event_id", "evt-1"),
            "time": 1700000000000,
            "realmId": realm_id,
            "operationType": operation,
            "resourceType": resource_type,
            "resourcePath": resource_path,
            "representation": representation,
            "authDetails": {
                "realmId": auth_realm_id,
                "clientId": "admin-cli",
                "userId": "admin-user",
                "ipAddress": "10.0.0.1",
            },
        }
        event.update(extra)
        return event

    return _make


@pytest.fixture()
def fga_model():
    """Factory for the default authorization model document."""
    return authorization_model
