"""Read-only identity-store lookups used while classifying events."""
from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Protocol

from .client import KeycloakClient
from .exceptions import KeycloakAPIError, RealmNotFoundError, RoleNotFoundError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RealmHandle:
    """Realm identity: internal id plus the name used in URLs and store names."""

    id: str
    name: str


class IdentityLookup(Protocol):
    """Identity-store operations the classifier and listener depend on."""

    def lookup_role_name_by_id(self, realm: RealmHandle, role_id: str) -> str:
        ...

    def lookup_realm_by_name(self, name: str) -> RealmHandle:
        ...

    def lookup_realm_by_id(self, realm_id: str) -> RealmHandle:
        ...


class KeycloakIdentityLookup:
    """IdentityLookup backed by the Keycloak Admin REST API."""

    def __init__(self, client: KeycloakClient):
        """Initialize identity lookup.

        Args:
            client: Authenticated Keycloak client (needs view-realm rights)
        """
        self.client = client
        # Realm ids never change, so id -> handle is safe to keep for the process lifetime
        self._realms_by_id: Dict[str, RealmHandle] = {}

    def lookup_role_name_by_id(self, realm: RealmHandle, role_id: str) -> str:
        """Resolve a role id to its name inside the given realm.

        Args:
            realm: Realm to search
            role_id: Role id (UUID)

        Returns:
            Role name

        Raises:
            RoleNotFoundError: If the id does not resolve to a named role
        """
        try:
            resp = self.client.get(f"/admin/realms/{realm.name}/roles-by-id/{role_id}")
        except KeycloakAPIError as e:
            if e.status_code == 404:
                raise RoleNotFoundError(f"Role id '{role_id}' not found in realm '{realm.name}'") from e
            raise

        name = (resp.json() or {}).get("name")
        if not name:
            raise RoleNotFoundError(f"Role id '{role_id}' has no name in realm '{realm.name}'")
        return name

    def lookup_realm_by_name(self, name: str) -> RealmHandle:
        """Fetch a realm by name.

        Raises:
            RealmNotFoundError: If no realm has that name
        """
        try:
            resp = self.client.get(f"/admin/realms/{name}")
        except KeycloakAPIError as e:
            if e.status_code == 404:
                raise RealmNotFoundError(f"Realm '{name}' not found") from e
            raise

        realm = resp.json() or {}
        handle = RealmHandle(id=realm.get("id") or name, name=realm.get("realm") or name)
        self._realms_by_id[handle.id] = handle
        return handle

    def lookup_realm_by_id(self, realm_id: str) -> RealmHandle:
        """Resolve a realm id (as carried on admin events) to a realm handle.

        Raises:
            RealmNotFoundError: If no visible realm has that id
        """
        cached = self._realms_by_id.get(realm_id)
        if cached is not None:
            return cached

        resp = self.client.get("/admin/realms", params={"briefRepresentation": "true"})
        found: Optional[RealmHandle] = None
        for realm in resp.json() or []:
            handle = RealmHandle(id=realm.get("id", ""), name=realm.get("realm", ""))
            if handle.id:
                self._realms_by_id[handle.id] = handle
            if handle.id == realm_id:
                found = handle

        if found is None:
            raise RealmNotFoundError(f"Realm id '{realm_id}' not found")
        logger.debug(f"Resolved realm id {realm_id} to '{found.name}'")
        return found
